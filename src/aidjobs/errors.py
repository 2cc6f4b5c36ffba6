"""Error taxonomy for the JD assistant.

Classification and file validation errors are resolved by the chat layer and
never reach persistence. Generation errors are the only ones with a
structured recovery path (retry by draft id).
"""

from __future__ import annotations


class AidJobsError(Exception):
    """Base class for every error raised by this package."""

    user_message = "Sorry, something went wrong. Please try again."

    def __init__(self, message: str = "", *, user_message: str | None = None):
        super().__init__(message or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class ClassificationError(AidJobsError):
    pass


class InsufficientDetailError(ClassificationError):
    user_message = (
        "I need a bit more detail to create a comprehensive job description. Please provide:\n\n"
        "- a brief plus a website or project link (e.g. \"We need a field coordinator for a "
        "migration project in Kenya. Our organization: https://example.org\")\n"
        "- or a more detailed brief with organization context, role requirements "
        "and responsibilities"
    )

    def __init__(self, word_count: int, minimum: int):
        super().__init__(f"brief has {word_count} words, at least {minimum} required")
        self.word_count = word_count
        self.minimum = minimum


class FileValidationError(AidJobsError):
    pass


class UnsupportedFileTypeError(FileValidationError):
    user_message = "For job description files, please upload PDF, Word (.doc/.docx), or text files only."


class GenerationError(AidJobsError):
    user_message = "Sorry, I couldn't generate the job description right now. Please try again in a few minutes."


class AuthorizationError(AidJobsError):
    user_message = "You do not have access to this record."


class NotFoundError(AidJobsError, LookupError):
    pass


class DraftNotFoundError(NotFoundError):
    user_message = "Original job description request not found."


class JobNotFoundError(NotFoundError):
    user_message = "Job not found."


class InvalidTransitionError(AidJobsError, ValueError):
    pass


class PersistenceError(AidJobsError):
    user_message = "Sorry, we could not save your request. Please try again."


class UnknownFlagError(AidJobsError):
    pass


class FetchError(AidJobsError):
    user_message = "Could not fetch content from the provided URL. Please check the link and try again."
