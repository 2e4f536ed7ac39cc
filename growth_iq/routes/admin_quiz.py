import io
from flask import Blueprint, request, jsonify, current_app, send_file, Response
from flask_login import login_required

from growth_iq.errors import ReportGenerationError, SubmissionNotFoundError, TemplateValidationError
from growth_iq.models import FOLLOW_UP_STATUSES
from growth_iq.services import report_template
from growth_iq.services.export_service import export_csv
from growth_iq.services.pdf_service import PdfService
from growth_iq.services.question_bank import QuestionBankService
from growth_iq.services.submission_service import SubmissionService
from growth_iq.utils import api_response, permission_required

admin_quiz_bp = Blueprint('admin_quiz', __name__, url_prefix='/admin/quiz')

# ==========================================
# QUESTION BANK
# ==========================================


@admin_quiz_bp.route('/questions', methods=['GET'])
@login_required
@permission_required('quiz_view')
def list_questions():
    questions = QuestionBankService.all_questions()
    return jsonify({
        'questions': [q.to_dict() for q in questions],
        'activeQuestions': sum(1 for q in questions if q.is_active),
    })


@admin_quiz_bp.route('/questions', methods=['POST'])
@login_required
@permission_required('quiz_admin')
def create_question():
    try:
        question = QuestionBankService.create_question(request.get_json(silent=True) or {})
    except ValueError as e:
        return api_response(False, error=str(e), status=400)
    return api_response(data=question.to_dict(), status=201)


@admin_quiz_bp.route('/questions/<question_id>', methods=['PUT', 'PATCH'])
@login_required
@permission_required('quiz_admin')
def update_question(question_id):
    try:
        question = QuestionBankService.update_question(question_id, request.get_json(silent=True) or {})
    except ValueError as e:
        return api_response(False, error=str(e), status=400)
    if not question:
        return api_response(False, error='Question not found', status=404)
    return api_response(data=question.to_dict())


@admin_quiz_bp.route('/questions/<question_id>', methods=['DELETE'])
@login_required
@permission_required('quiz_admin')
def delete_question(question_id):
    if not QuestionBankService.delete_question(question_id):
        return api_response(False, error='Question not found', status=404)
    return api_response()


@admin_quiz_bp.route('/questions/<question_id>/toggle', methods=['POST'])
@login_required
@permission_required('quiz_admin')
def toggle_question(question_id):
    question = QuestionBankService.toggle_active(question_id)
    if not question:
        return api_response(False, error='Question not found', status=404)
    return api_response(data=question.to_dict())


@admin_quiz_bp.route('/questions/seed', methods=['POST'])
@login_required
@permission_required('quiz_admin')
def seed_questions():
    added = QuestionBankService.seed_default_questions()
    return api_response(data={'added': added})

# ==========================================
# SUBMISSIONS
# ==========================================


@admin_quiz_bp.route('/submissions', methods=['GET'])
@login_required
@permission_required('quiz_view')
def list_submissions():
    status = request.args.get('status')
    if status and status not in FOLLOW_UP_STATUSES:
        return jsonify({'error': f"Unknown follow-up status '{status}'"}), 400
    submissions = SubmissionService.list_submissions(status=status)
    return jsonify({'submissions': [s.to_dict() for s in submissions]})


@admin_quiz_bp.route('/submissions/stats', methods=['GET'])
@login_required
@permission_required('quiz_view')
def submission_stats():
    stats = SubmissionService.submission_stats()
    stats['activeQuestions'] = len(QuestionBankService.active_questions())
    return jsonify(stats)


@admin_quiz_bp.route('/submissions/export.csv', methods=['GET'])
@login_required
@permission_required('quiz_view')
def export_submissions():
    status = request.args.get('status') or None
    submissions = SubmissionService.list_submissions(status=status)
    content = export_csv(s.to_dict() for s in submissions)
    return Response(
        content,
        mimetype='text/csv',
        headers={'Content-Disposition': 'attachment; filename=legacy-growth-iq-submissions.csv'},
    )


@admin_quiz_bp.route('/submissions/<submission_id>', methods=['GET'])
@login_required
@permission_required('quiz_view')
def get_submission(submission_id):
    try:
        submission = SubmissionService.get_submission(submission_id)
    except SubmissionNotFoundError:
        return jsonify({'error': 'Submission not found'}), 404
    data = submission.to_dict()
    data['emailLogs'] = [
        {'status': log.status, 'subject': log.subject, 'error': log.error_message,
         'createdAt': log.created_at.isoformat() if log.created_at else None}
        for log in submission.email_logs
    ]
    return jsonify(data)


@admin_quiz_bp.route('/submissions/<submission_id>/follow-up', methods=['POST', 'PATCH'])
@login_required
@permission_required('quiz_follow_up')
def update_follow_up(submission_id):
    data = request.get_json(silent=True) or {}
    try:
        submission = SubmissionService.update_follow_up(
            submission_id, data.get('followUpStatus'), data.get('followUpNotes')
        )
    except SubmissionNotFoundError:
        return jsonify({'error': 'Submission not found'}), 404
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify(submission.to_dict())


@admin_quiz_bp.route('/submissions/<submission_id>/resend', methods=['POST'])
@login_required
@permission_required('quiz_follow_up')
def resend_report(submission_id):
    try:
        result = SubmissionService.generate_report(submission_id, send_email=True)
    except SubmissionNotFoundError:
        return jsonify({'error': 'Submission not found'}), 404
    except ReportGenerationError as e:
        current_app.logger.error(f"Error resending report: {e}")
        return jsonify({'error': 'Failed to generate report'}), 500
    status = 200 if result['emailSent'] else 502
    return jsonify({'success': result['emailSent'], 'emailSent': result['emailSent'],
                    'reportSentAt': result['submission'].get('reportSentAt')}), status


@admin_quiz_bp.route('/submissions/<submission_id>/report.pdf', methods=['GET'])
@login_required
@permission_required('quiz_view')
def download_report_pdf(submission_id):
    try:
        submission = SubmissionService.get_submission(submission_id)
        pdf_bytes = PdfService.generate_report_pdf(submission.to_dict(), report_template.resolve())
    except SubmissionNotFoundError:
        return jsonify({'error': 'Submission not found'}), 404
    except ReportGenerationError:
        return jsonify({'error': 'Failed to generate PDF'}), 500

    return send_file(
        io.BytesIO(pdf_bytes),
        mimetype='application/pdf',
        as_attachment=True,
        download_name=f"Legacy_Growth_IQ_{submission_id}.pdf"
    )

# ==========================================
# REPORT TEMPLATE
# ==========================================


@admin_quiz_bp.route('/template', methods=['GET'])
@login_required
@permission_required('quiz_view')
def get_active_template():
    return jsonify(report_template.resolve())


@admin_quiz_bp.route('/template', methods=['POST', 'PUT'])
@login_required
@permission_required('quiz_admin')
def save_template():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Template must be a JSON object'}), 400
    try:
        record = report_template.save_template(
            data,
            name=data.get('name'),
            activate=bool(data.get('isActive', True)),
            template_id=data.get('id'),
        )
    except TemplateValidationError as e:
        return jsonify(e.to_dict()), 400
    return jsonify(record.to_dict()), 201


@admin_quiz_bp.route('/templates', methods=['GET'])
@login_required
@permission_required('quiz_view')
def list_templates():
    return jsonify({'templates': [t.to_dict() for t in report_template.list_templates()]})


@admin_quiz_bp.route('/templates/<template_id>/activate', methods=['POST'])
@login_required
@permission_required('quiz_admin')
def activate_template(template_id):
    try:
        record = report_template.activate_template(template_id)
    except TemplateValidationError as e:
        return jsonify(e.to_dict()), 400
    if not record:
        return jsonify({'error': 'Template not found'}), 404
    return jsonify(record.to_dict())


@admin_quiz_bp.route('/templates/<template_id>', methods=['GET'])
@login_required
@permission_required('quiz_view')
def get_template(template_id):
    record = report_template.get_template(template_id)
    if not record:
        return jsonify({'error': 'Template not found'}), 404
    return jsonify(record.to_dict())
