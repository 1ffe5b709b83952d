"""Onboarding wizard error types.

Every error carries the message shown to the applicant. The wizard catches
them at its operation boundary and copies the message into ``state.error``.
"""


class OnboardingError(Exception):
    """Base class for recoverable onboarding failures."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(OnboardingError):
    """A required field or business rule failed."""

    default_message = "Please complete all required fields before continuing"


class FileConstraintError(ValidationError):
    """Upload rejected before it was read."""

    default_message = "Please upload only JPG, PNG, or PDF files"


class FileTooLargeError(FileConstraintError):
    default_message = "File size must be less than 10MB"


class UnsupportedTypeError(FileConstraintError):
    default_message = "Please upload only JPG, PNG, or PDF files"


class PreconditionError(ValidationError):
    """Submit attempted without an actor, documents or a complete form."""

    default_message = "Please complete all steps before submitting"


class SubmissionError(OnboardingError):
    """The request store rejected or failed the write."""

    default_message = "Failed to submit application. Please try again."


class BusyError(OnboardingError):
    default_message = "Another operation is still in progress"
