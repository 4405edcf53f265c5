"""
Retry policy for polling Plaid endpoints that are not ready yet.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from tenacity import RetryError, Retrying, retry_if_exception, stop_after_attempt

from ..exceptions import PollTimeoutError
from .logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def constant_backoff(seconds: float) -> Callable[[int], float]:
    """Backoff that waits the same amount after every failed attempt."""

    def backoff(attempt: int) -> float:
        return seconds

    return backoff


def never_retry(exc: BaseException) -> bool:
    return False


@dataclass(frozen=True)
class RetryPolicy:
    """
    How a polled call is retried.

    `backoff` receives the 1-based number of the attempt that just failed and
    returns the delay in seconds. `retryable` decides whether an exception
    means "try again" rather than "give up".
    """

    max_attempts: int = 20
    backoff: Callable[[int], float] = field(default_factory=lambda: constant_backoff(1.0))
    retryable: Callable[[BaseException], bool] = never_retry

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")


def poll_with_retries(
    call: Callable[[], T],
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
    description: str = "request",
) -> T:
    """
    Call `call` until it succeeds, a non-retryable error is raised, or the
    policy's attempt budget runs out.

    Raises PollTimeoutError when every attempt failed with a retryable error.
    """
    retrying = Retrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=lambda retry_state: policy.backoff(retry_state.attempt_number),
        retry=retry_if_exception(policy.retryable),
        sleep=sleep,
        before_sleep=lambda retry_state: logger.info(
            f"{description} not ready (attempt {retry_state.attempt_number}/{policy.max_attempts}), "
            f"retrying in {retry_state.next_action.sleep:.2f}s"
        ),
    )

    try:
        return retrying(call)
    except RetryError as e:
        logger.warning(
            f"Gave up polling {description} after {policy.max_attempts} attempts"
        )
        raise PollTimeoutError(
            policy.max_attempts,
            detail=f"Timed out when polling for {description} after {policy.max_attempts} attempts.",
        ) from e.last_attempt.exception()
