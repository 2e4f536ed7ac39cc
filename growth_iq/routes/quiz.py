from flask import Blueprint, request, jsonify, current_app, session
from flask_login import current_user

from growth_iq.errors import ReportGenerationError, SubmissionError, SubmissionNotFoundError
from growth_iq.services.answer_collector import AnswerCollector
from growth_iq.services.question_bank import QuestionBankService
from growth_iq.services.submission_service import SubmissionService

quiz_bp = Blueprint('quiz', __name__)

# ==========================================
# PUBLIC ROUTES (RESPONDENT)
# ==========================================


@quiz_bp.route('/quiz/questions', methods=['GET'])
def get_questions():
    questions = QuestionBankService.active_questions()
    return jsonify({
        'questions': [q.to_dict() for q in questions],
        'scale': QuestionBankService.scale(),
    })


@quiz_bp.route('/quiz/start', methods=['POST'])
def start_quiz():
    AnswerCollector(session).start()
    return jsonify({'success': True, 'answers': {}})


@quiz_bp.route('/quiz/answers', methods=['POST'])
def record_answer():
    data = request.get_json(silent=True) or {}
    collector = AnswerCollector(session)
    if not collector.started:
        collector.start()
    try:
        collector.record(data.get('questionNumber'), data.get('value'))
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify({'success': True, 'answers': collector.answers()})


@quiz_bp.route('/quiz/submit', methods=['POST'])
def submit_quiz():
    """
    Public Endpoint: Submit the assessment
    Body: { contact: {...}, answers?: {...}, sendEmail?: bool }
    Without ``answers`` the session's answer set is used.
    """
    data = request.get_json(silent=True) or {}
    collector = AnswerCollector(session)

    answers = data.get('answers')
    if answers is None:
        answers = collector.answers()
    if not isinstance(answers, dict):
        return jsonify({'error': 'answers must be an object'}), 400

    contact = data.get('contact') or {k: data.get(k) for k in (
        'name', 'firstName', 'lastName', 'email', 'company', 'phone')}

    try:
        outcome, report = SubmissionService.submit_and_report(
            answers, contact, send_email=bool(data.get('sendEmail', True))
        )
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except SubmissionError as e:
        return jsonify({'error': str(e)}), 503

    collector.clear()
    submission = outcome.submission
    return jsonify({
        'success': True,
        'submissionId': submission.id,
        'reportToken': SubmissionService.generate_report_token(submission.id),
        'results': outcome.results(),
        'report': {
            'reportHTML': report['reportHTML'],
            'emailSent': report['emailSent'],
        } if report else None,
    }), 201


@quiz_bp.route('/api/quiz/generate-report', methods=['POST'])
def generate_report():
    """
    Body: { submissionId, sendEmail, reportToken }
    Staff sessions may omit the token; respondents present the one issued at submit.
    """
    data = request.get_json(silent=True) or {}
    submission_id = data.get('submissionId')
    if not submission_id:
        return jsonify({'error': 'Submission ID is required'}), 400

    token = data.get('reportToken')
    auth_header = request.headers.get('Authorization') or ''
    if not token and auth_header.startswith('Bearer '):
        token = auth_header.split(' ', 1)[1]

    is_staff = current_user.is_authenticated and current_user.has_permission('quiz_view')
    if not is_staff and not (token and SubmissionService.verify_report_token(token, submission_id)):
        return jsonify({'error': 'Invalid or expired token'}), 401

    try:
        result = SubmissionService.generate_report(submission_id, send_email=bool(data.get('sendEmail')))
    except SubmissionNotFoundError:
        return jsonify({'error': 'Submission not found'}), 404
    except ReportGenerationError as e:
        current_app.logger.error(f"Error generating report: {e}")
        return jsonify({'error': 'Failed to generate report'}), 500
    return jsonify(result)
