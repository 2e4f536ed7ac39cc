"""Shared fixtures: app on in-memory SQLite, clients, seeded question bank."""

import pytest
from werkzeug.security import generate_password_hash

from growth_iq.app import create_app
from growth_iq.models import db, User, ROLE_ADMIN, ROLE_STAFF
from growth_iq.services.question_bank import QuestionBankService, DEFAULT_QUESTIONS


# ============================================================================
# APPLICATION FIXTURES
# ============================================================================

@pytest.fixture
def app(monkeypatch):
    monkeypatch.delenv('RESEND_API_KEY', raising=False)
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'RESEND_API_KEY': None,
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seeded_bank(app):
    QuestionBankService.seed_default_questions()
    return QuestionBankService.active_questions()


def _make_user(email, role):
    user = User(name=email.split('@')[0], email=email,
                password_hash=generate_password_hash('secret-pass'), role=role)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin_user(app):
    return _make_user('admin@example.com', ROLE_ADMIN)


@pytest.fixture
def staff_user(app):
    return _make_user('staff@example.com', ROLE_STAFF)


def _login(client, user):
    with client.session_transaction() as sess:
        sess['_user_id'] = str(user.id)
        sess['_fresh'] = True
    return client


@pytest.fixture
def admin_client(client, admin_user):
    return _login(client, admin_user)


@pytest.fixture
def staff_client(app, staff_user):
    return _login(app.test_client(), staff_user)


# ============================================================================
# TEST DATA
# ============================================================================

@pytest.fixture
def all_threes():
    return {number: 3 for number, _, _ in DEFAULT_QUESTIONS}


@pytest.fixture
def contact():
    return {
        'firstName': '  Jane ',
        'lastName': 'Owner',
        'email': 'jane@example.com',
        'company': 'Acme Manufacturing',
        'phone': '555-0100',
    }


@pytest.fixture
def sent_emails(monkeypatch, app):
    """Captures resend.Emails.send calls and reports success."""
    import resend

    app.config['RESEND_API_KEY'] = 're_test_key'
    calls = []

    def fake_send(params):
        calls.append(params)
        return {'id': f'email-{len(calls)}'}

    monkeypatch.setattr(resend.Emails, 'send', fake_send)
    return calls
