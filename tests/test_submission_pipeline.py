import pytest
from sqlalchemy.exc import SQLAlchemyError

from growth_iq.errors import ImmutableFieldError, SubmissionError, SubmissionNotFoundError
from growth_iq.models import db, EmailLog, QuizSubmission
from growth_iq.services import report_renderer
from growth_iq.services.pdf_service import PdfService
from growth_iq.services.report_template import default_template
from growth_iq.services.submission_service import SubmissionService, contact_fields


# ============================================================================
# SUBMIT
# ============================================================================

def test_submit_all_threes_is_developing(seeded_bank, all_threes, contact):
    outcome = SubmissionService.submit(all_threes, contact)
    submission = db.session.get(QuizSubmission, outcome.submission.id)

    assert submission.total_score == 72
    assert submission.max_score == 120
    assert submission.percentage == 60
    assert submission.score_level == "Developing"
    assert submission.follow_up_status == 'pending'
    assert submission.respondent_name == "Jane Owner"
    assert submission.completed_at is not None
    assert len(submission.category_scores) == 6
    assert submission.to_dict()['answers'][1] == 3

    results = outcome.results()
    assert results['tier']['key'] == 'developing'
    assert results['topStrength']['category'] == 'independence'


def test_submit_with_empty_bank(app):
    outcome = SubmissionService.submit({1: 5}, {})
    assert outcome.submission.percentage == 0
    assert outcome.submission.score_level == "Critical"
    assert outcome.submission.category_scores == []


def test_submit_uses_only_active_questions(seeded_bank, all_threes):
    from growth_iq.services.question_bank import QuestionBankService
    for question in seeded_bank:
        if question.category != 'independence':
            QuestionBankService.toggle_active(question.id)
    outcome = SubmissionService.submit(all_threes, {})
    assert outcome.submission.max_score == 20
    assert [c['category'] for c in outcome.submission.category_scores] == ['independence']


def test_contact_fields():
    fields = contact_fields({'name': '  Pat Lee ', 'email': ' pat@example.com ', 'company': ''})
    assert fields == {
        'respondent_name': "Pat Lee",
        'respondent_email': "pat@example.com",
        'respondent_company': None,
        'respondent_phone': None,
    }
    assert contact_fields({'firstName': 'Pat', 'lastName': ''})['respondent_name'] == "Pat"
    with pytest.raises(ValueError):
        contact_fields({'email': 'not-an-email'})


def test_persistence_failure_writes_nothing(seeded_bank, all_threes, monkeypatch):
    def fail():
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(db.session, 'commit', fail)
    with pytest.raises(SubmissionError):
        SubmissionService.submit(all_threes, {})
    monkeypatch.undo()
    assert QuizSubmission.query.count() == 0


# ============================================================================
# IMMUTABILITY & FOLLOW-UP
# ============================================================================

def test_scoring_fields_are_frozen(seeded_bank, all_threes):
    submission = SubmissionService.submit(all_threes, {}).submission
    submission.percentage = 99
    with pytest.raises(ImmutableFieldError) as exc:
        db.session.commit()
    assert exc.value.field == 'percentage'
    db.session.rollback()
    assert db.session.get(QuizSubmission, submission.id).percentage == 60


def test_answers_are_frozen(seeded_bank, all_threes):
    submission = SubmissionService.submit(all_threes, {}).submission
    submission.answers = {'1': 5}
    with pytest.raises(ImmutableFieldError):
        db.session.commit()
    db.session.rollback()


def test_update_follow_up(seeded_bank, all_threes):
    submission = SubmissionService.submit(all_threes, {}).submission
    updated = SubmissionService.update_follow_up(submission.id, 'contacted', 'Left a voicemail')
    assert updated.follow_up_status == 'contacted'
    assert updated.follow_up_notes == 'Left a voicemail'
    assert updated.percentage == 60


def test_update_follow_up_rejects_unknown_status(seeded_bank, all_threes):
    submission = SubmissionService.submit(all_threes, {}).submission
    with pytest.raises(ValueError):
        SubmissionService.update_follow_up(submission.id, 'archived')


def test_update_follow_up_unknown_submission(app):
    with pytest.raises(SubmissionNotFoundError):
        SubmissionService.update_follow_up('missing', 'contacted')


# ============================================================================
# REPORTS
# ============================================================================

def test_generate_report_without_email(seeded_bank, all_threes, contact):
    submission = SubmissionService.submit(all_threes, contact).submission
    result = SubmissionService.generate_report(submission.id)

    assert result['success'] is True
    assert result['emailSent'] is False
    assert "Jane Owner" in result['reportHTML']
    assert result['submission']['reportSentAt'] is not None
    assert set(result['template']) == {'emailSettings', 'branding'}


def test_generate_report_is_repeatable(seeded_bank, all_threes, contact):
    submission = SubmissionService.submit(all_threes, contact).submission
    first = SubmissionService.generate_report(submission.id)['reportHTML']
    second = SubmissionService.generate_report(submission.id)['reportHTML']
    assert first == second


def test_generate_report_sends_email(seeded_bank, all_threes, contact, sent_emails):
    submission = SubmissionService.submit(all_threes, contact).submission
    result = SubmissionService.generate_report(submission.id, send_email=True)

    assert result['emailSent'] is True
    assert len(sent_emails) == 1
    params = sent_emails[0]
    assert params['to'] == ["jane@example.com"]
    assert params['subject'] == "Your Legacy Growth IQ Assessment Results"
    assert params['reply_to'] == "info@legacy83business.com"
    assert any(a['filename'].endswith('.html') for a in params['attachments'])
    assert EmailLog.query.filter_by(submission_id=submission.id, status='sent').count() == 1
    assert result['submission']['reportSentAt'] is not None


def test_email_without_api_key_is_not_marked_sent(seeded_bank, all_threes, contact):
    submission = SubmissionService.submit(all_threes, contact).submission
    result = SubmissionService.generate_report(submission.id, send_email=True)
    assert result['emailSent'] is False
    assert result['submission']['reportSentAt'] is None


def test_generate_report_unknown_submission(app):
    with pytest.raises(SubmissionNotFoundError):
        SubmissionService.generate_report('missing')


def test_report_failure_keeps_submission(seeded_bank, all_threes, contact, monkeypatch):
    def boom(submission, template):
        raise RuntimeError("template engine exploded")

    monkeypatch.setattr(report_renderer, 'render', boom)
    outcome, report = SubmissionService.submit_and_report(all_threes, contact)

    assert report is None
    stored = db.session.get(QuizSubmission, outcome.submission.id)
    assert stored.percentage == 60
    assert stored.report_sent_at is None


def test_submit_and_report_without_email_skips_report(seeded_bank, all_threes):
    outcome, report = SubmissionService.submit_and_report(all_threes, {'name': "No Email"})
    assert report is None
    assert outcome.submission.respondent_name == "No Email"


def test_pdf_report(seeded_bank, all_threes, contact):
    submission = SubmissionService.submit(all_threes, contact).submission
    pdf = PdfService.generate_report_pdf(submission.to_dict(), default_template())
    assert pdf.startswith(b'%PDF')


# ============================================================================
# STAFF QUERIES
# ============================================================================

def test_list_and_stats(seeded_bank, all_threes):
    first = SubmissionService.submit(all_threes, {}).submission
    SubmissionService.submit({n: 5 for n in all_threes}, {})
    SubmissionService.update_follow_up(first.id, 'scheduled')

    assert len(SubmissionService.list_submissions()) == 2
    assert [s.id for s in SubmissionService.list_submissions(status='scheduled')] == [first.id]

    stats = SubmissionService.submission_stats()
    assert stats['totalSubmissions'] == 2
    assert stats['pendingFollowUps'] == 1
    assert stats['avgScore'] == 80
    assert stats['byLevel']["Developing"] == 1
    assert stats['byLevel']["Legacy-Ready"] == 1
    assert stats['byLevel']["Critical"] == 0


def test_stats_empty(app):
    assert SubmissionService.submission_stats()['avgScore'] == 0


def test_report_token(app):
    token = SubmissionService.generate_report_token('sub-1')
    assert SubmissionService.verify_report_token(token, 'sub-1')
    assert not SubmissionService.verify_report_token(token, 'sub-2')
    assert not SubmissionService.verify_report_token('garbage', 'sub-1')
