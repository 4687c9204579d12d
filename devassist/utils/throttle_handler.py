"""
Exponential backoff for rate-limited Gemini requests.
"""

import asyncio
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from devassist.config.app_config import MAX_RETRIES, INITIAL_BACKOFF_SECONDS
from devassist.utils.logging_utils import logger

T = TypeVar('T')

QUOTA_INDICATORS = [
    "RESOURCE_EXHAUSTED", "Too many requests", "too many requests",
    "Rate exceeded", "rate limit", "Rate limit", "quota", "Quota",
]


def is_retryable_error(error: BaseException) -> bool:
    """
    Only rate limiting and quota exhaustion are retryable: an explicit 429
    status, or a quota indicator in the error message.
    """
    for attr in ("code", "status_code"):
        if getattr(error, attr, None) == 429:
            return True
    error_str = str(error)
    return any(indicator in error_str for indicator in QUOTA_INDICATORS)


async def call_with_backoff(
    func: Callable[..., Awaitable[T]],
    *args,
    max_retries: int = MAX_RETRIES,
    initial_delay: float = INITIAL_BACKOFF_SECONDS,
    **kwargs,
) -> T:
    """Await func, retrying rate-limit errors with a doubling delay."""
    delay = initial_delay
    for retry_count in range(max_retries + 1):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            if not is_retryable_error(e) or retry_count >= max_retries:
                raise
            logger.warning(f"Rate limited, retry {retry_count + 1}/{max_retries} after {delay}s: {e}")
            await asyncio.sleep(delay)
            delay *= 2


async def handle_with_backoff(
    stream_func: Callable[..., AsyncIterator[str]],
    *args,
    max_retries: int = MAX_RETRIES,
    initial_delay: float = INITIAL_BACKOFF_SECONDS,
    **kwargs,
) -> AsyncIterator[str]:
    """
    Iterate a streaming function with exponential backoff for rate limits.

    A stream can only be restarted before it has produced anything: once a
    chunk has been yielded to the caller, any error propagates as is.
    """
    delay = initial_delay
    for retry_count in range(max_retries + 1):
        yielded = False
        try:
            async for chunk in stream_func(*args, **kwargs):
                yielded = True
                yield chunk
            return  # Success
        except Exception as e:
            if yielded or not is_retryable_error(e) or retry_count >= max_retries:
                raise
            logger.warning(f"Rate limited, retry {retry_count + 1}/{max_retries} after {delay}s: {e}")
            await asyncio.sleep(delay)
            delay *= 2
