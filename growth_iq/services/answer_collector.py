from growth_iq.services.scoring import MAX_SCALE_VALUE, MIN_SCALE_VALUE

SESSION_KEY = 'quiz_answers'


class AnswerCollector:
    """
    One respondent's in-progress answer set, kept in transient session
    storage (Flask's session in requests, any dict in tests) until submission.
    """

    def __init__(self, store):
        self.store = store

    def start(self):
        self.store[SESSION_KEY] = {}

    @property
    def started(self):
        return SESSION_KEY in self.store

    def record(self, question_number, value):
        """Store one response. Raises ValueError for a bad question number or an off-scale value."""
        try:
            number = int(question_number)
        except (TypeError, ValueError):
            raise ValueError("questionNumber must be an integer")

        if isinstance(value, bool):
            raise ValueError("value must be an integer")
        try:
            response = int(value)
        except (TypeError, ValueError):
            raise ValueError("value must be an integer")
        if response != value and str(response) != str(value).strip():
            raise ValueError("value must be an integer")
        if not MIN_SCALE_VALUE <= response <= MAX_SCALE_VALUE:
            raise ValueError(f"value must be between {MIN_SCALE_VALUE} and {MAX_SCALE_VALUE}")

        # Session serialisation is JSON, so keys are stored as strings
        answers = dict(self.store.get(SESSION_KEY) or {})
        answers[str(number)] = response
        self.store[SESSION_KEY] = answers
        return response

    def answers(self):
        return {int(k): v for k, v in (self.store.get(SESSION_KEY) or {}).items()}

    def clear(self):
        self.store.pop(SESSION_KEY, None)
