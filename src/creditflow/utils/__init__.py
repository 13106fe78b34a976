"""Utility modules."""
from .logger import get_logger, set_session_context, configure_logging
from .exceptions import (
    ErrorKind,
    CreditFlowError,
    ConfigError,
    ValidationError,
    SessionBusyError,
    RetryableError,
    ExtractionError,
    AuthError,
    SafetyBlockedError,
    TransientError,
    MalformedResponseError,
    UnknownExtractionError,
    ExtractionCancelledError
)
from .retry import RetryPolicy, RetryState, RetryStateMachine, run_with_retry

__all__ = [
    "get_logger",
    "set_session_context",
    "configure_logging",
    "ErrorKind",
    "CreditFlowError",
    "ConfigError",
    "ValidationError",
    "SessionBusyError",
    "RetryableError",
    "ExtractionError",
    "AuthError",
    "SafetyBlockedError",
    "TransientError",
    "MalformedResponseError",
    "UnknownExtractionError",
    "ExtractionCancelledError",
    "RetryPolicy",
    "RetryState",
    "RetryStateMachine",
    "run_with_retry"
]
