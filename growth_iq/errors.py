class GrowthIQError(Exception):
    """Base class for assessment/report errors."""


class TemplateValidationError(GrowthIQError):
    """A report template violates the scoring-band partition (or another structural rule)."""

    def __init__(self, message, section=None, band=None):
        super().__init__(message)
        self.section = section
        self.band = band

    def to_dict(self):
        return {'error': str(self), 'section': self.section, 'band': self.band}


class SubmissionError(GrowthIQError):
    """The submission could not be persisted. Nothing was written; safe to retry."""


class ImmutableFieldError(GrowthIQError):
    def __init__(self, field):
        super().__init__(f"Field '{field}' cannot be changed after submission")
        self.field = field


class ReportGenerationError(GrowthIQError):
    """Rendering or delivering a report failed. The submission itself is untouched."""


class SubmissionNotFoundError(GrowthIQError):
    def __init__(self, submission_id):
        super().__init__(f"Submission '{submission_id}' not found")
        self.submission_id = submission_id
