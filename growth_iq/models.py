from datetime import datetime, timezone
from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from sqlalchemy import event, inspect
import uuid

from growth_iq.errors import ImmutableFieldError
from growth_iq.services.scoring import CATEGORIES


def get_now():
    """Naive UTC timestamp (SQLite has no tz-aware column type)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


db = SQLAlchemy()

ROLE_ADMIN = 'admin'
ROLE_STAFF = 'staff'

FOLLOW_UP_PENDING = 'pending'
FOLLOW_UP_STATUSES = ['pending', 'contacted', 'scheduled', 'completed', 'not_interested']

# Fields of a submission that are frozen once it has been written
IMMUTABLE_SUBMISSION_FIELDS = (
    'answers', 'total_score', 'max_score', 'percentage', 'score_level', 'category_scores',
)


def _isoformat(value):
    return value.isoformat() if value else None


class User(UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_STAFF)
    permissions = db.Column(db.JSON, nullable=True)  # explicit grants, overrides role defaults
    is_super_admin = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=get_now)
    last_login = db.Column(db.DateTime, nullable=True)

    def has_permission(self, permission):
        """
        Checks if the user has a specific permission.
        1. Super Admin (always True)
        2. Explicit permission list
        3. Role defaults
        """
        if self.is_super_admin:
            return True

        if self.permissions:
            return permission in self.permissions

        role_permissions = {
            ROLE_ADMIN: ['quiz_view', 'quiz_follow_up', 'quiz_admin'],
            ROLE_STAFF: ['quiz_view', 'quiz_follow_up'],
        }
        role_key = self.role.lower() if self.role else ROLE_STAFF
        return permission in role_permissions.get(role_key, [])


class QuizQuestion(db.Model):
    __tablename__ = 'quiz_question'
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    question_number = db.Column(db.Integer, unique=True, nullable=False)  # answers are keyed by this
    text = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(20), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    order = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=get_now)
    updated_at = db.Column(db.DateTime, default=get_now, onupdate=get_now)

    def to_dict(self):
        return {
            'id': self.id,
            'questionNumber': self.question_number,
            'text': self.text,
            'category': self.category,
            'isActive': bool(self.is_active),
            'order': self.order,
        }

    def __repr__(self):
        return f"<QuizQuestion #{self.question_number} category='{self.category}'>"


class QuizSubmission(db.Model):
    __tablename__ = 'quiz_submission'
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Respondent
    respondent_name = db.Column(db.String(200), nullable=True)
    respondent_email = db.Column(db.String(200), nullable=True)
    respondent_company = db.Column(db.String(200), nullable=True)
    respondent_phone = db.Column(db.String(50), nullable=True)

    # Scoring snapshot (immutable)
    answers = db.Column(db.JSON, nullable=False)
    total_score = db.Column(db.Integer, nullable=False, default=0)
    max_score = db.Column(db.Integer, nullable=False, default=0)
    percentage = db.Column(db.Integer, nullable=False, default=0)
    score_level = db.Column(db.String(50), nullable=False)
    category_scores = db.Column(db.JSON, nullable=False)

    # Staff workflow
    follow_up_status = db.Column(db.String(20), nullable=False, default=FOLLOW_UP_PENDING)
    follow_up_notes = db.Column(db.Text, nullable=True)

    completed_at = db.Column(db.DateTime, default=get_now)
    created_at = db.Column(db.DateTime, default=get_now)
    updated_at = db.Column(db.DateTime, default=get_now, onupdate=get_now)
    report_sent_at = db.Column(db.DateTime, nullable=True)

    email_logs = db.relationship('EmailLog', backref='submission', lazy=True)

    def to_dict(self):
        """Document shape shared with the renderer, the API and the CSV export."""
        return {
            'id': self.id,
            'respondentName': self.respondent_name,
            'respondentEmail': self.respondent_email,
            'respondentCompany': self.respondent_company,
            'respondentPhone': self.respondent_phone,
            'answers': {int(k): v for k, v in (self.answers or {}).items()},
            'totalScore': self.total_score,
            'maxScore': self.max_score,
            'percentage': self.percentage,
            'scoreLevel': self.score_level,
            'categoryScores': list(self.category_scores or []),
            'followUpStatus': self.follow_up_status or FOLLOW_UP_PENDING,
            'followUpNotes': self.follow_up_notes,
            'completedAt': _isoformat(self.completed_at),
            'createdAt': _isoformat(self.created_at),
            'reportSentAt': _isoformat(self.report_sent_at),
        }

    def __repr__(self):
        return f"<QuizSubmission {self.id} {self.score_level} {self.percentage}%>"


@event.listens_for(QuizSubmission, 'before_update')
def _guard_frozen_submission_fields(mapper, connection, target):
    state = inspect(target)
    for field in IMMUTABLE_SUBMISSION_FIELDS:
        if state.attrs[field].history.has_changes():
            raise ImmutableFieldError(field)


class ReportTemplate(db.Model):
    __tablename__ = 'quiz_report_template'
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(200), nullable=False, default='Custom Template')
    is_active = db.Column(db.Boolean, default=False, nullable=False)
    document = db.Column(db.JSON, nullable=False)  # executiveSummary, detailedSections, ...
    created_at = db.Column(db.DateTime, default=get_now)
    updated_at = db.Column(db.DateTime, default=get_now, onupdate=get_now)

    def to_dict(self):
        data = dict(self.document or {})
        data.update({
            'id': self.id,
            'name': self.name,
            'isActive': bool(self.is_active),
            'updatedAt': _isoformat(self.updated_at),
        })
        return data


class EmailLog(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(db.String(36), db.ForeignKey('quiz_submission.id'), nullable=True)
    email_to = db.Column(db.String(255), nullable=False)
    subject = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(50), default='sent')  # sent, failed
    provider = db.Column(db.String(50), default='resend')
    provider_message_id = db.Column(db.String(100), nullable=True)
    error_message = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=get_now)

    @classmethod
    def create_log(cls, email_to, subject, status, submission_id=None, provider='resend',
                   error_message=None, provider_message_id=None):
        try:
            log = cls(
                submission_id=submission_id,
                email_to=email_to,
                subject=subject,
                status=status,
                provider=provider,
                error_message=error_message,
                provider_message_id=provider_message_id
            )
            db.session.add(log)
            db.session.commit()
            return log
        except Exception as e:
            from flask import current_app
            current_app.logger.error(f"Error saving email log: {e}")
            db.session.rollback()
            return None


__all__ = [
    'db', 'get_now', 'User', 'QuizQuestion', 'QuizSubmission', 'ReportTemplate', 'EmailLog',
    'CATEGORIES', 'FOLLOW_UP_STATUSES', 'FOLLOW_UP_PENDING', 'ROLE_ADMIN', 'ROLE_STAFF',
]
