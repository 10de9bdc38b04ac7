"""
Domain Exceptions

Error taxonomy for course progression. Every error carries a stable
machine-readable ``code`` and the HTTP status it maps to; the messages are
shown to learners as-is, so they stay short and non-technical.
"""

from fastapi import status


class ProgressionError(Exception):
    """Base error for course progression and content management."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, code: str = "progression_error"):
        self.message = message
        self.code = code
        super().__init__(message)


# ============== Validation ==============

class ValidationError(ProgressionError):
    """Request is well-formed but violates a domain rule."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, code: str = "validation_error"):
        super().__init__(message, code)


class IncompleteSubmissionError(ValidationError):
    """A quiz was submitted without answering every question."""

    def __init__(self, missing_question_ids: list[str] | None = None):
        self.missing_question_ids = missing_question_ids or []
        super().__init__(
            "You haven't answered every question yet. "
            "Please answer all questions before submitting the quiz.",
            "incomplete_submission",
        )


class OptionLabelError(ValidationError):
    """Option labels of a question are missing, ambiguous or duplicated."""

    def __init__(self, message: str):
        super().__init__(message, "invalid_option_labels")


# ============== Lookup / access ==============

class NotFoundError(ProgressionError):
    """Course, video or question does not exist (or not under that parent)."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Not found", code: str = "not_found"):
        super().__init__(message, code)


class AuthorizationError(ProgressionError):
    """The caller is not allowed to use this course."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "You do not have access to this course", code: str = "forbidden"):
        super().__init__(message, code)


class VideoLockedError(AuthorizationError):
    """The requested video is not unlocked for this learner yet."""

    def __init__(self, video_id: object | None = None):
        self.video_id = video_id
        super().__init__(
            "This video isn't unlocked yet. "
            "Finish the previous video and its quiz to continue.",
            "video_locked",
        )


# ============== Persistence ==============

class PersistenceError(ProgressionError):
    """Progress could not be stored; nothing was changed."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = "We couldn't save your progress. Please try again."):
        super().__init__(message, "persistence_error")
