import os
import base64
import resend
from flask import render_template, current_app

from growth_iq.models import EmailLog
from growth_iq.services.report_renderer import safe_url


class EmailService:

    @staticmethod
    def send_email(to, subject, html_content, from_name=None, reply_to=None, attachments=None, submission_id=None):
        """
        Main entry point for sending emails.
        :param to: List of recipients or single email string.
        :param attachments: Optional list of {"filename", "content"} (content as bytes).
        :return: (ok, provider response or error message)
        """
        api_key = current_app.config.get('RESEND_API_KEY') or os.getenv('RESEND_API_KEY')
        if not api_key:
            current_app.logger.warning("RESEND Error: Missing RESEND_API_KEY.")
            return False, "Missing API Key"

        resend.api_key = api_key

        from_name = from_name or current_app.config.get('EMAIL_NAME', 'Legacy 83 Business')
        from_email_addr = current_app.config.get('EMAIL_FROM', 'no-reply@legacy83business.com')
        from_full = f"{from_name} <{from_email_addr}>"

        if isinstance(to, str):
            to = [to]

        try:
            params = {
                "from": from_full,
                "to": to,
                "subject": subject,
                "html": html_content,
            }
            if reply_to:
                params["reply_to"] = reply_to
            if attachments:
                params["attachments"] = [
                    {"filename": a["filename"], "content": base64.b64encode(a["content"]).decode('ascii')}
                    for a in attachments
                ]

            response = resend.Emails.send(params)

            # Resend SDK returns a dict like {'id': '...'} or an object
            provider_id = None
            if isinstance(response, dict):
                provider_id = response.get('id')
            elif hasattr(response, 'id'):
                provider_id = response.id

            EmailLog.create_log(
                submission_id=submission_id,
                email_to=to[0] if to else "N/A",
                subject=subject,
                status='sent',
                provider_message_id=provider_id
            )
            return True, response
        except Exception as e:
            error_msg = str(e)
            current_app.logger.error(f"RESEND Error: {error_msg}")

            EmailLog.create_log(
                submission_id=submission_id,
                email_to=to[0] if to else "N/A",
                subject=subject,
                status='failed',
                error_message=error_msg
            )
            return False, error_msg

    @staticmethod
    def send_report_email(submission, template, report_html, pdf_bytes=None):
        """
        Delivers a rendered assessment report using the template's email settings.
        The full report goes in as an HTML attachment (and the PDF, when given);
        the body is the short intro/signature message.
        """
        recipient = submission.get('respondentEmail')
        if not recipient:
            return False, "Submission has no email address"

        settings = template.get('emailSettings') or {}
        branding = dict(template.get('branding') or {})
        branding['website'] = safe_url(branding.get('website'))

        body = render_template(
            'emails/quiz_report.html',
            submission=submission,
            settings=settings,
            branding=branding,
            recipient_name=submission.get('respondentName') or "there",
            signature_lines=(settings.get('signatureText') or '').splitlines(),
        )

        attachments = [{"filename": "legacy-growth-iq-report.html", "content": report_html.encode('utf-8')}]
        if pdf_bytes:
            attachments.append({"filename": "legacy-growth-iq-report.pdf", "content": pdf_bytes})

        return EmailService.send_email(
            to=recipient,
            subject=settings.get('subject') or "Your Legacy Growth IQ Assessment Results",
            html_content=body,
            from_name=settings.get('fromName'),
            reply_to=settings.get('replyTo'),
            attachments=attachments,
            submission_id=submission.get('id'),
        )
