import re
from fpdf import FPDF
from flask import current_app

from growth_iq.errors import ReportGenerationError
from growth_iq.services import report_renderer


class ReportPDF(FPDF):
    def __init__(self, company_name="LEGACY 83", subtitle="", primary_color="#D97706"):
        super().__init__()
        self.company_name = company_name
        self.subtitle = subtitle
        self.primary_rgb = hex_to_rgb(primary_color)
        self.set_auto_page_break(auto=True, margin=20)

    def header(self):
        # Text brand on the left, document title on the right
        self.set_font('Helvetica', 'B', 16)
        self.set_text_color(*self.primary_rgb)
        self.cell(0, 10, sanitize_latin1(self.company_name or "LEGACY 83"), 0, 0, 'L')

        self.set_font('Helvetica', 'B', 10)
        self.set_text_color(0)
        self.cell(0, 10, 'LEGACY GROWTH IQ REPORT', 0, 1, 'R')

        if self.subtitle:
            self.set_font('Helvetica', 'I', 8)
            self.set_text_color(128)
            self.cell(0, 4, sanitize_latin1(self.subtitle), 0, 1, 'R')

        self.set_draw_color(*self.primary_rgb)
        self.set_line_width(0.5)
        self.line(10, 26, 200, 26)
        self.set_y(30)

    def footer(self):
        self.set_y(-15)
        self.set_font('Helvetica', 'I', 8)
        self.set_text_color(128)
        footer_text = f"{sanitize_latin1(self.company_name)} - Confidential | Page " + str(self.page_no()) + " of {nb}"
        self.cell(0, 10, footer_text, 0, 0, 'C')


def hex_to_rgb(color):
    value = (color or '').lstrip('#')
    if len(value) == 3:
        value = ''.join(ch * 2 for ch in value)
    try:
        return tuple(int(value[i:i + 2], 16) for i in (0, 2, 4))
    except ValueError:
        return (217, 119, 6)


def sanitize_latin1(text):
    """The core PDF fonts only cover Latin-1."""
    replacements = {
        '\u2013': '-', '\u2014': '-',
        '\u2018': "'", '\u2019': "'",
        '\u201c': '"', '\u201d': '"',
        '\u2022': '-', '\u2026': '...',
        '\u2122': '(TM)', '\u2713': '*',
        '\u00a0': ' ', '\u200b': '',
    }
    text = text or ''
    for src, dst in replacements.items():
        text = text.replace(src, dst)
    return text.encode('latin-1', 'replace').decode('latin-1')


class PdfService:
    @staticmethod
    def generate_report_pdf(submission, template):
        """
        Renders the assessment report as a PDF with FPDF2.
        ``submission`` is the document dict (QuizSubmission.to_dict()).
        """
        current_app.logger.info(f"Generating PDF report for submission {submission.get('id')}")
        try:
            branding = template.get('branding') or {}
            pdf = ReportPDF(
                company_name=(branding.get('companyName') or '').upper(),
                subtitle=branding.get('website') or '',
                primary_color=branding.get('primaryColor'),
            )
            pdf.alias_nb_pages()
            pdf.add_page()
            pdf.set_font('Helvetica', '', 10)

            html = report_renderer.render_print_html(submission, template)
            # Collapse blank lines left by the template blocks
            html = re.sub(r'\n\s*\n+', '\n', html)
            pdf.write_html(sanitize_latin1(html))

            return bytes(pdf.output())
        except Exception as e:
            current_app.logger.error(f"Error generating PDF report (FPDF): {str(e)}")
            raise ReportGenerationError(f"PDF generation failed: {e}") from e
