"""Retry policy and the shared async retry combinator."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from resume_optimizer.config import RetryConfig
from resume_optimizer.errors import RetriesExhausted

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUSES = frozenset({429})
FATAL_STATUSES = frozenset({400, 401, 402})


@dataclass(frozen=True)
class RetryPolicy:
    """Immutable retry settings for a single pipeline call."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    multiplier: float = 2.0
    retryable_statuses: frozenset[int] = field(default=RETRYABLE_STATUSES)
    fatal_statuses: frozenset[int] = field(default=FATAL_STATUSES)

    @classmethod
    def from_config(cls, config: RetryConfig) -> RetryPolicy:
        return cls(
            max_attempts=config.max_attempts,
            initial_delay=config.initial_delay,
            multiplier=config.multiplier,
        )

    def is_retryable_status(self, status: int) -> bool:
        if status in self.fatal_statuses:
            return False
        return status in self.retryable_statuses or 500 <= status < 600

    def should_retry(self, exc: BaseException) -> bool:
        """Transient errors are retried; HTTP errors only for retryable statuses."""
        if not getattr(exc, "retryable", False):
            return False
        status = getattr(exc, "status_code", None)
        return status is None or self.is_retryable_status(status)

    def delay_for(self, attempt: int) -> float:
        """Delay before retrying after the given (1-based) failed attempt."""
        return self.initial_delay * self.multiplier ** (attempt - 1)


def _log_retry(policy: RetryPolicy) -> Callable[[RetryCallState], None]:
    def _before_sleep(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning(
            "%s. Retrying in %.1fs... (attempt %d/%d)",
            exc,
            state.next_action.sleep if state.next_action else 0.0,
            state.attempt_number,
            policy.max_attempts,
        )

    return _before_sleep


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    is_retryable: Callable[[BaseException], bool] | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``func()`` until it succeeds, a fatal error occurs, or attempts run out.

    Errors rejected by ``is_retryable`` (``policy.should_retry`` by default)
    propagate immediately. When every attempt fails with a retryable error,
    ``RetriesExhausted`` is raised carrying the last error and the attempt
    count.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(multiplier=policy.initial_delay, exp_base=policy.multiplier),
        retry=retry_if_exception(is_retryable or policy.should_retry),
        before_sleep=_log_retry(policy),
        sleep=sleep,
    )
    try:
        async for attempt in retrying:
            with attempt:
                return await func()
    except RetryError as e:
        last = e.last_attempt
        raise RetriesExhausted(last.exception(), attempts=last.attempt_number) from last.exception()
    raise AssertionError("unreachable")  # pragma: no cover
