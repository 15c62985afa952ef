"""
Retry Executor
==============

Bounded exponential-backoff retry for asynchronous operations.

Every inference call is wrapped individually, so a transient failure on one
frame does not throw away the frames already analysed.

Schedule (max_retries=3, initial_delay_ms=1000):
    attempt 1 fails -> wait 1000ms
    attempt 2 fails -> wait 2000ms
    attempt 3 fails -> wait 4000ms
    attempt 4 fails -> error propagates unchanged

Design Rules:
    - Explicit loop, no recursion
    - Delay doubles with no upper cap
    - Final error is re-raised as-is (never wrapped)
    - Each retry is logged and reported to an optional observer
    - Whether an error is retriable is the caller's policy (is_retriable)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RetryAttempt:
    """A failed attempt that is about to be retried."""

    attempt: int
    delay_ms: float
    error: BaseException
    description: str


class RetryMetrics:
    """Metrics for RetryExecutor observability."""

    __slots__ = (
        "calls",
        "attempts",
        "retries",
        "failures",
    )

    def __init__(self) -> None:
        self.calls: int = 0
        self.attempts: int = 0
        self.retries: int = 0
        self.failures: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "calls": self.calls,
            "attempts": self.attempts,
            "retries": self.retries,
            "failures": self.failures,
        }


def retry_everything(error: BaseException) -> bool:
    """Default policy: every exception is worth another attempt."""
    return True


class RetryExecutor:
    """
    Executes an async operation, retrying with exponential backoff.

    Attributes:
        max_retries: Default retry budget (retries after the first attempt)
        initial_delay_ms: Default delay before the first retry
        metrics: Operational metrics

    Example:
        retry = RetryExecutor(max_retries=3, initial_delay_ms=1000)
        text = await retry.execute(lambda: session.analyze_next(frame, True))
    """

    def __init__(
        self,
        max_retries: int = 3,
        initial_delay_ms: float = 1000,
        is_retriable: Optional[Callable[[BaseException], bool]] = None,
        on_retry: Optional[Callable[[RetryAttempt], None]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize retry executor.

        Args:
            max_retries: Retries allowed after the first attempt (>= 0)
            initial_delay_ms: Delay before the first retry (>= 0)
            is_retriable: Predicate deciding whether an error may be retried
            on_retry: Observer called before each retry delay
            sleep: Awaitable sleep taking seconds (injectable for tests)
        """
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if initial_delay_ms < 0:
            raise ValueError("initial_delay_ms must be >= 0")

        self.max_retries = max_retries
        self.initial_delay_ms = initial_delay_ms
        self._is_retriable = is_retriable or retry_everything
        self._on_retry = on_retry
        self._sleep = sleep

        self.metrics = RetryMetrics()

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        max_retries: Optional[int] = None,
        initial_delay_ms: Optional[float] = None,
        description: str = "operation",
        on_retry: Optional[Callable[[RetryAttempt], None]] = None,
    ) -> T:
        """
        Run operation until it succeeds or the retry budget is spent.

        Args:
            operation: Zero-argument callable returning an awaitable
            max_retries: Override of the default retry budget
            initial_delay_ms: Override of the default initial delay
            description: Label used in logs and RetryAttempt records
            on_retry: Extra observer for this call only

        Returns:
            The operation's result

        Raises:
            Whatever the last attempt raised, unchanged
        """
        remaining = self.max_retries if max_retries is None else max_retries
        delay_ms = self.initial_delay_ms if initial_delay_ms is None else initial_delay_ms
        attempt = 0

        self.metrics.calls += 1

        while True:
            attempt += 1
            self.metrics.attempts += 1
            try:
                return await operation()
            except Exception as e:
                if remaining <= 0 or not self._is_retriable(e):
                    self.metrics.failures += 1
                    logger.error(
                        f"{description} failed after {attempt} attempt(s): "
                        f"{type(e).__name__}: {e}"
                    )
                    raise

                logger.warning(
                    f"{description} attempt {attempt} failed "
                    f"({type(e).__name__}: {e}). Retrying in {delay_ms:.0f}ms..."
                )
                record = RetryAttempt(
                    attempt=attempt,
                    delay_ms=delay_ms,
                    error=e,
                    description=description,
                )
                self._notify(self._on_retry, record)
                self._notify(on_retry, record)

                await self._sleep(delay_ms / 1000.0)

                self.metrics.retries += 1
                remaining -= 1
                delay_ms *= 2

    @staticmethod
    def _notify(
        observer: Optional[Callable[[RetryAttempt], None]],
        record: RetryAttempt,
    ) -> None:
        """Report a retry to an observer without letting it affect the outcome."""
        if observer is None:
            return
        try:
            observer(record)
        except Exception:
            logger.exception("Retry observer raised; ignoring")
