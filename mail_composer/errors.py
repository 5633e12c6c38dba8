"""Error taxonomy shared by the composer routes and the send gateway"""

from typing import Optional


class ComposerError(Exception):
    """Base class for errors the API turns into fixed-shape responses"""

    status_code = 500
    message = "Unexpected error"

    def __init__(self, detail: Optional[str] = None, message: Optional[str] = None):
        if message:
            self.message = message
        self.detail = detail or self.message
        super().__init__(self.detail)


class ValidationError(ComposerError):
    """Malformed or missing fields, reported field by field"""

    status_code = 400
    message = "Invalid payload"

    def __init__(self, issues: dict[str, list[str]]):
        self.issues = issues
        super().__init__(f"Invalid payload: {', '.join(sorted(issues))}")


class DeliveryError(ComposerError):
    """The mail provider rejected the message or could not be reached"""

    message = "Failed to send email"

    def __init__(self, detail: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(detail)


class SendInProgressError(ComposerError):
    """A send for the same composer instance has not completed yet"""

    status_code = 409
    message = "A send is already in progress for this composer"

    def __init__(self, composer_id: str):
        self.composer_id = composer_id
        super().__init__(f"Send already in flight for composer {composer_id}")


class UnexpectedError(ComposerError):
    """Anything else; logged with its cause, reported with a generic message"""
