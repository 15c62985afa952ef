"""
Retry Policy
============

Which pipeline errors are worth another attempt.

Transient inference failures are retried. Errors that cannot succeed on a
second try (bad media, device refusals, session misuse) propagate at once.
Responses that fail schema validation are retried only when configured to.
"""

from typing import Callable

from vision_analyst.errors import (
    DeviceAccessError,
    EmptyFrameSetError,
    InvalidTransitionError,
    MalformedResponse,
    MediaDecodeError,
    MediaLoadError,
    SessionStateError,
)
from vision_analyst.retry import RetryExecutor


NON_RETRIABLE_ERRORS = (
    MediaLoadError,
    MediaDecodeError,
    DeviceAccessError,
    EmptyFrameSetError,
    InvalidTransitionError,
    SessionStateError,
)


def build_retry_policy(retry_malformed_responses: bool = False) -> Callable[[BaseException], bool]:
    """
    Build the is_retriable predicate used by the pipeline.

    Args:
        retry_malformed_responses: Whether MalformedResponse is retried

    Returns:
        Predicate for RetryExecutor
    """

    def is_retriable(error: BaseException) -> bool:
        if isinstance(error, NON_RETRIABLE_ERRORS):
            return False
        if isinstance(error, MalformedResponse):
            return retry_malformed_responses
        return True

    return is_retriable


def default_retry_executor() -> RetryExecutor:
    """RetryExecutor with default budget and the pipeline policy."""
    return RetryExecutor(is_retriable=build_retry_policy())
