import csv
import io

from growth_iq.services.report_renderer import parse_date

CSV_HEADERS = [
    "Date", "Name", "Email", "Company", "Phone",
    "Total Score", "Percentage", "Level", "Follow-up Status",
]


def _csv_date(value):
    parsed = parse_date(value)
    return f"{parsed.month}/{parsed.day}/{parsed.year}" if parsed else "N/A"


def submission_row(submission):
    """One CSV row from a submission document."""
    return [
        _csv_date(submission.get('createdAt')),
        submission.get('respondentName') or "Anonymous",
        submission.get('respondentEmail') or "",
        submission.get('respondentCompany') or "",
        submission.get('respondentPhone') or "",
        submission.get('totalScore', 0),
        f"{submission.get('percentage', 0)}%",
        submission.get('scoreLevel') or "",
        submission.get('followUpStatus') or "pending",
    ]


def export_csv(submissions):
    """Staff export. ``submissions`` are document dicts (QuizSubmission.to_dict())."""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator='\n')
    writer.writerow(CSV_HEADERS)
    for submission in submissions:
        writer.writerow(submission_row(submission))
    return output.getvalue()
