from growth_iq.services.export_service import CSV_HEADERS, export_csv


def _submission(**overrides):
    data = {
        'createdAt': '2025-03-07T14:30:00',
        'respondentName': "Jane Owner",
        'respondentEmail': "jane@example.com",
        'respondentCompany': "Acme, Inc.",
        'respondentPhone': "555-0100",
        'totalScore': 72,
        'percentage': 60,
        'scoreLevel': "Developing",
        'followUpStatus': "contacted",
    }
    data.update(overrides)
    return data


def test_header_row():
    assert export_csv([]) == ','.join(CSV_HEADERS) + '\n'
    assert CSV_HEADERS == ["Date", "Name", "Email", "Company", "Phone",
                           "Total Score", "Percentage", "Level", "Follow-up Status"]


def test_row_values():
    lines = export_csv([_submission()]).splitlines()
    assert lines[1] == '3/7/2025,Jane Owner,jane@example.com,"Acme, Inc.",555-0100,72,60%,Developing,contacted'


def test_full_score_renders_as_literal_percent():
    lines = export_csv([_submission(percentage=100, totalScore=120)]).splitlines()
    assert ',100%,' in lines[1]


def test_defaults_for_missing_fields():
    row = export_csv([{'percentage': 0}]).splitlines()[1]
    assert row == 'N/A,Anonymous,,,,0,0%,,pending'


def test_export_is_idempotent():
    rows = [_submission(), _submission(respondentName=None)]
    assert export_csv(rows) == export_csv(rows)


def test_one_row_per_submission():
    assert len(export_csv([_submission()] * 3).splitlines()) == 4
