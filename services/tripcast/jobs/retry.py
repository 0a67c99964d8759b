"""
Retry with exponential backoff, gated on the error's kind.

Only errors for which ``retry_if`` returns True are retried; anything else
propagates on the first failure. The stage-1 policy is ``is_retryable``: a
PipelineError tagged TRANSIENT.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import TypeVar

from services.tripcast.errors import PipelineError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, PipelineError) and exc.retryable


def retry_with_backoff(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    retry_if: Callable[[BaseException], bool] = is_retryable,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
):
    """
    Retry decorator with exponential backoff for coroutine functions.

    Args:
        max_attempts: Total attempts including the first (default 3)
        base_delay:   Delay in seconds before the second attempt, doubles each retry
        retry_if:     Predicate deciding whether an exception is worth another attempt
        sleep:        Awaitable sleep, swapped out in tests
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if not retry_if(e):
                        raise
                    if attempt == max_attempts - 1:
                        logger.error(f"All {max_attempts} attempts failed: {e}")
                        raise
                    delay = base_delay * (2 ** attempt)
                    logger.warning(
                        f"Attempt {attempt + 1}/{max_attempts} failed: {e}. "
                        f"Retrying in {delay}s..."
                    )
                    await sleep(delay)
            raise RuntimeError("retry_with_backoff requires max_attempts >= 1")

        return wrapper

    return decorator
