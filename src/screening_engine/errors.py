"""Exceptions raised by the screening engine."""

from typing import List, Optional


class ScreeningError(Exception):
    """Base class for all screening engine errors."""


class QuestionnaireConfigError(ScreeningError):
    """Raised when a questionnaire or rules file cannot be loaded or is invalid."""

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        self.problems = list(problems or [])
        if self.problems:
            message = f"{message}: " + "; ".join(self.problems)
        super().__init__(message)


class AnswerValidationError(ScreeningError):
    """Raised when a candidate answer is rejected at intake."""

    def __init__(self, question_id: str, message: str):
        self.question_id = question_id
        self.message = message
        super().__init__(f"Invalid answer for '{question_id}': {message}")


class UnknownQuestionError(ScreeningError, KeyError):
    """Raised when an answer targets a question id not in the question set."""

    def __init__(self, question_id: str):
        self.question_id = question_id
        super().__init__(f"Unknown question id: '{question_id}'")

    def __str__(self) -> str:
        return self.args[0]


class SubmissionRejectedError(ScreeningError):
    """Raised when classification is requested before the form can be submitted."""

    def __init__(self, message: str, missing_required: Optional[List[str]] = None):
        self.missing_required = list(missing_required or [])
        super().__init__(message)
