"""
Error types raised by the interview prep components.
"""


class InterviewPrepError(Exception):
    """Base class for all interview prep errors."""


class SessionValidationError(InterviewPrepError, ValueError):
    """Caller input is missing or not allowed in the current state. No model call was made."""


class GatewayFailure(InterviewPrepError, RuntimeError):
    """The model service could not be reached or answered with an error."""

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause


class ParseFailure(InterviewPrepError, ValueError):
    """A schema-backed response was empty, not JSON, or missing required fields."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text
