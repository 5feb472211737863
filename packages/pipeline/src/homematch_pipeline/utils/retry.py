"""
utils/retry.py — Exponential-backoff retry decorator for async HTTP calls.

Built on tenacity. Each retry is logged with structlog; once attempts run
out the last exception is re-raised unchanged so callers can still tell a
timeout from a refused connection.

Usage:
    from homematch_pipeline.utils.retry import with_retry

    @with_retry(max_attempts=3, base_delay=1.0, retry_on=(httpx.TransportError,))
    async def fetch(url: str) -> httpx.Response:
        ...
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Coroutine
from typing import Any, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

log = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Coroutine[Any, Any, Any]])


def with_retry(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    retry_on: type[Exception] | tuple[type[Exception], ...] = Exception,
) -> Callable[[F], F]:
    """
    Retry an async function with exponential backoff.

    Delays are base_delay * 2^(attempt-1), capped at max_delay.

    Args:
        max_attempts: Total attempts before the last error is raised.
        base_delay:   Initial delay in seconds.
        max_delay:    Upper bound for a single delay.
        retry_on:     Exception type(s) worth retrying. Anything else is
                      raised on the first occurrence.
    """

    def decorator(fn: F) -> F:
        fn_log = log.bind(function=fn.__qualname__)

        def _before_sleep(state: RetryCallState) -> None:
            exc = state.outcome.exception() if state.outcome else None
            fn_log.warning(
                "retry_attempt",
                attempt=state.attempt_number,
                max_attempts=max_attempts,
                error=str(exc) if exc else None,
            )

        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            retrying = AsyncRetrying(
                stop=stop_after_attempt(max_attempts),
                wait=wait_exponential(multiplier=base_delay, max=max_delay),
                retry=retry_if_exception_type(retry_on),
                before_sleep=_before_sleep,
                reraise=True,
            )
            try:
                return await retrying(fn, *args, **kwargs)
            except retry_on as exc:
                fn_log.error("retry_exhausted", max_attempts=max_attempts, error=str(exc))
                raise

        return wrapper  # type: ignore[return-value]

    return decorator
