"""Custom exception classes for CreditFlow."""
from enum import Enum


class ErrorKind(str, Enum):
    """Classification of extraction failures."""
    AUTH = "auth"
    SAFETY_BLOCKED = "safety_blocked"
    TRANSIENT = "transient"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"
    CANCELLED = "cancelled"


class CreditFlowError(Exception):
    """Base exception for CreditFlow."""
    pass


class ConfigError(CreditFlowError):
    """Configuration-related errors."""
    pass


class ValidationError(CreditFlowError):
    """Data validation errors."""
    pass


class SessionBusyError(CreditFlowError):
    """An analysis is already in flight for this session."""
    pass


# Retryable errors
class RetryableError(CreditFlowError):
    """Base class for errors that should trigger retry."""
    pass


class ExtractionError(CreditFlowError):
    """Base class for classified extraction failures."""

    kind = ErrorKind.UNKNOWN

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def retryable(self) -> bool:
        return isinstance(self, RetryableError)


class AuthError(ExtractionError, ConfigError):
    """Credential missing, malformed or rejected by the service."""
    kind = ErrorKind.AUTH


class SafetyBlockedError(ExtractionError):
    """The service refused the document on content policy grounds."""
    kind = ErrorKind.SAFETY_BLOCKED


class TransientError(RetryableError, ExtractionError):
    """Overload, rate limiting or a transport hiccup."""
    kind = ErrorKind.TRANSIENT


class MalformedResponseError(ExtractionError):
    """The service answered with data outside the expected contract."""
    kind = ErrorKind.MALFORMED_RESPONSE


class UnknownExtractionError(ExtractionError):
    """Anything the classifier does not recognise."""
    kind = ErrorKind.UNKNOWN


class ExtractionCancelledError(ExtractionError):
    """The caller cancelled the extraction between attempts."""
    kind = ErrorKind.CANCELLED
