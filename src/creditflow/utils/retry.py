"""Retry state machine with exponential backoff."""
import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from creditflow.utils.exceptions import ExtractionCancelledError, ExtractionError
from creditflow.utils.logger import get_logger

logger = get_logger()

Sleep = Callable[[float], Awaitable[Any]]
Classifier = Callable[[BaseException], ExtractionError]


class RetryState(str, Enum):
    """States of a single retried operation."""
    ATTEMPTING = "attempting"
    SUCCESS = "success"
    FATAL_FAILURE = "fatal_failure"
    EXHAUSTED_FAILURE = "exhausted_failure"


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and backoff schedule."""
    max_attempts: int = 3
    initial_delay: float = 1.0
    backoff_factor: float = 2.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0:
            raise ValueError("initial_delay must not be negative")

    def delay_for(self, attempt: int) -> float:
        """Wait before the attempt following ``attempt`` (zero-based)."""
        return self.initial_delay * (self.backoff_factor ** attempt)


class RetryStateMachine:
    """
    Tracks attempt count and last error for one operation.

    ``on_error`` returns the wait before the next attempt, or None once the
    machine has reached a terminal failure state.
    """

    def __init__(self, policy: RetryPolicy):
        self.policy = policy
        self.state = RetryState.ATTEMPTING
        self.attempt = 0
        self.last_error: Optional[ExtractionError] = None

    @property
    def finished(self) -> bool:
        return self.state is not RetryState.ATTEMPTING

    def on_success(self) -> None:
        self._require_attempting()
        self.state = RetryState.SUCCESS

    def on_error(self, error: ExtractionError) -> Optional[float]:
        self._require_attempting()
        self.last_error = error

        if not error.retryable:
            self.state = RetryState.FATAL_FAILURE
            return None

        if self.attempt + 1 >= self.policy.max_attempts:
            self.state = RetryState.EXHAUSTED_FAILURE
            return None

        delay = self.policy.delay_for(self.attempt)
        self.attempt += 1
        return delay

    def _require_attempting(self) -> None:
        if self.finished:
            raise RuntimeError(f"Retry machine already finished in state {self.state.value}")


async def run_with_retry(
    operation: Callable[[], Awaitable[Any]],
    classify: Classifier,
    policy: Optional[RetryPolicy] = None,
    sleep: Sleep = asyncio.sleep,
    cancel_event: Optional[asyncio.Event] = None,
    name: str = "operation",
) -> Any:
    """
    Run ``operation`` until it succeeds or fails terminally.

    Every raised exception is passed through ``classify``; only errors that
    classify as retryable are attempted again. The classified error is
    raised with the original exception chained.
    """
    machine = RetryStateMachine(policy or RetryPolicy())

    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise ExtractionCancelledError(f"{name} was cancelled before attempt {machine.attempt + 1}")

        logger.debug(f"Starting {name} (Attempt {machine.attempt + 1}/{machine.policy.max_attempts})")
        try:
            result = await operation()
        except Exception as e:
            error = classify(e)
            delay = machine.on_error(error)

            if delay is None:
                if machine.state is RetryState.EXHAUSTED_FAILURE:
                    logger.error(f"Permanently failed {name} after {machine.policy.max_attempts} attempts: {error}")
                else:
                    logger.error(f"{name} failed with {error.kind.value} error: {error}")
                if error is e:
                    raise
                raise error from e

            logger.warning(f"Transient failure in {name} (Attempt {machine.attempt}): {error}. Retrying in {delay}s...")
            await sleep(delay)
            continue

        machine.on_success()
        return result
