from dataclasses import dataclass
from typing import Any, Dict

from flask import current_app
from itsdangerous import URLSafeTimedSerializer, SignatureExpired, BadSignature
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from growth_iq.errors import ReportGenerationError, SubmissionError, SubmissionNotFoundError
from growth_iq.models import (
    db, get_now, QuizSubmission, FOLLOW_UP_PENDING, FOLLOW_UP_STATUSES,
)
from growth_iq.services import report_renderer, report_template, scoring, tiers
from growth_iq.services.email_service import EmailService
from growth_iq.services.pdf_service import PdfService
from growth_iq.services.question_bank import QuestionBankService

REPORT_TOKEN_SALT = 'quiz-report'
DEFAULT_REPORT_TOKEN_MAX_AGE = 7 * 24 * 3600


@dataclass
class SubmissionOutcome:
    submission: QuizSubmission
    result: scoring.ScoreResult
    tier: tiers.Tier

    def results(self) -> Dict[str, Any]:
        """Respondent-facing results block."""
        data = self.result.to_dict()
        data['tier'] = self.tier.to_dict()
        data['scoreLevel'] = self.tier.level
        data['priorityAreas'] = [c.category for c in self.result.priority_areas]
        return data


def _clean(value, limit):
    if value is None:
        return None
    value = str(value).strip()
    return value[:limit] if value else None


def contact_fields(contact):
    """
    Respondent columns from a contact payload. Accepts either ``name`` or
    ``firstName``/``lastName``. All fields are optional.
    """
    contact = contact or {}
    name = contact.get('name')
    if not (name or '').strip():
        parts = [(contact.get('firstName') or '').strip(), (contact.get('lastName') or '').strip()]
        name = ' '.join(p for p in parts if p)

    email = _clean(contact.get('email'), 200)
    if email and '@' not in email:
        raise ValueError("Please enter a valid email address")

    return {
        'respondent_name': _clean(name, 200),
        'respondent_email': email,
        'respondent_company': _clean(contact.get('company'), 200),
        'respondent_phone': _clean(contact.get('phone'), 50),
    }


class SubmissionService:
    @staticmethod
    def get_serializer():
        return URLSafeTimedSerializer(current_app.config['SECRET_KEY'])

    @staticmethod
    def generate_report_token(submission_id):
        s = SubmissionService.get_serializer()
        return s.dumps({'sid': submission_id}, salt=REPORT_TOKEN_SALT)

    @staticmethod
    def verify_report_token(token, submission_id):
        s = SubmissionService.get_serializer()
        max_age = current_app.config.get('REPORT_TOKEN_MAX_AGE', DEFAULT_REPORT_TOKEN_MAX_AGE)
        try:
            data = s.loads(token, salt=REPORT_TOKEN_SALT, max_age=max_age)
        except (SignatureExpired, BadSignature):
            return False
        return data.get('sid') == submission_id

    @staticmethod
    def submit(answers, contact=None):
        """
        Process a completed assessment:
        1. Score against the active question bank
        2. Classify the aggregate percentage
        3. Save the submission (one commit, nothing partial)
        """
        # 1. Score
        bank = [q.to_dict() for q in QuestionBankService.active_questions()]
        result = scoring.score(answers, bank)

        # 2. Classify
        tier = tiers.classify(result.percentage)

        # 3. Save
        fields = contact_fields(contact)
        now = get_now()
        submission = QuizSubmission(
            answers={str(k): v for k, v in scoring.normalize_answers(answers).items()},
            total_score=result.total_score,
            max_score=result.max_score,
            percentage=result.percentage,
            score_level=tier.level,
            category_scores=[c.snapshot() for c in result.category_scores],
            follow_up_status=FOLLOW_UP_PENDING,
            completed_at=now,
            created_at=now,
            **fields
        )
        try:
            db.session.add(submission)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error saving quiz submission: {e}")
            raise SubmissionError("Your assessment could not be saved. Please try again.") from e

        current_app.logger.info(
            f"Quiz submission {submission.id} saved: {result.percentage}% ({tier.level})"
        )
        return SubmissionOutcome(submission=submission, result=result, tier=tier)

    @staticmethod
    def get_submission(submission_id):
        submission = db.session.get(QuizSubmission, submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)
        return submission

    @staticmethod
    def generate_report(submission_id, send_email=False, include_pdf=True):
        """
        Render the personalized report for a stored submission and optionally
        e-mail it. Scoring fields are never touched; only ``reportSentAt`` is
        stamped once the report exists (and, with ``send_email``, was delivered).
        """
        submission = SubmissionService.get_submission(submission_id)
        document = submission.to_dict()
        template = report_template.resolve()

        try:
            report_html = report_renderer.render(document, template)
        except Exception as e:
            current_app.logger.error(f"Error rendering report for {submission_id}: {e}")
            raise ReportGenerationError(f"Report rendering failed: {e}") from e

        email_sent = False
        if send_email:
            if not document.get('respondentEmail'):
                current_app.logger.info(f"Submission {submission_id} has no email; report not sent")
            else:
                pdf_bytes = None
                if include_pdf:
                    try:
                        pdf_bytes = PdfService.generate_report_pdf(document, template)
                    except ReportGenerationError:
                        # The HTML attachment still goes out
                        pdf_bytes = None
                email_sent, info = EmailService.send_report_email(document, template, report_html, pdf_bytes)
                if not email_sent:
                    current_app.logger.error(f"Report email for {submission_id} failed: {info}")

        if email_sent or not send_email:
            submission.report_sent_at = get_now()
            try:
                db.session.commit()
                document = submission.to_dict()
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error(f"Error stamping reportSentAt on {submission_id}: {e}")

        return {
            'success': True,
            'reportHTML': report_html,
            'submission': document,
            'template': {
                'emailSettings': template.get('emailSettings') or {},
                'branding': template.get('branding') or {},
            },
            'emailSent': email_sent,
        }

    @staticmethod
    def submit_and_report(answers, contact=None, send_email=True):
        """
        Submit, then generate the report best-effort. A report failure is
        logged and returned as ``None``; the saved submission stands.
        """
        outcome = SubmissionService.submit(answers, contact)
        report = None
        if outcome.submission.respondent_email:
            try:
                report = SubmissionService.generate_report(outcome.submission.id, send_email=send_email)
            except Exception as e:
                current_app.logger.error(f"Report generation failed for {outcome.submission.id}: {e}")
        return outcome, report

    @staticmethod
    def update_follow_up(submission_id, status, notes=None):
        if status not in FOLLOW_UP_STATUSES:
            raise ValueError(f"Unknown follow-up status '{status}'")
        submission = SubmissionService.get_submission(submission_id)
        submission.follow_up_status = status
        if notes is not None:
            submission.follow_up_notes = notes
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        return submission

    @staticmethod
    def list_submissions(status=None):
        """Newest first, optionally filtered by follow-up status."""
        query = QuizSubmission.query
        if status:
            query = query.filter_by(follow_up_status=status)
        return query.order_by(QuizSubmission.created_at.desc()).all()

    @staticmethod
    def submission_stats():
        total = QuizSubmission.query.count()
        pending = QuizSubmission.query.filter_by(follow_up_status=FOLLOW_UP_PENDING).count()
        percentage_sum = db.session.query(func.sum(QuizSubmission.percentage)).scalar() or 0

        by_level = {t.level: 0 for t in tiers.TIERS}
        rows = db.session.query(QuizSubmission.score_level, func.count(QuizSubmission.id))\
            .group_by(QuizSubmission.score_level).all()
        for level, count in rows:
            by_level[level] = count

        return {
            'totalSubmissions': total,
            'pendingFollowUps': pending,
            # half-up mean
            'avgScore': (2 * percentage_sum + total) // (2 * total) if total else 0,
            'byLevel': by_level,
        }
