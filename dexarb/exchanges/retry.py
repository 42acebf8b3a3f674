"""Bounded retry with exponential backoff for venue calls."""

import asyncio
from typing import Awaitable, Callable, Tuple, Type, TypeVar
from loguru import logger

from ..errors import VenueError

T = TypeVar("T")


def _is_retryable(error: Exception) -> bool:
    if isinstance(error, VenueError):
        return error.retryable
    return True


async def retry_with_backoff(func: Callable[[], Awaitable[T]], operation_name: str,
                             attempts: int = 3, base_delay: float = 0.1,
                             retry_on: Tuple[Type[Exception], ...] = (VenueError,)) -> T:
    """Await func() up to `attempts` times, doubling the delay after each failure.

    Only exceptions listed in `retry_on` are retried, and a VenueError marked
    non-retryable is re-raised at once. The last error is re-raised when all
    attempts fail.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(attempts):
        try:
            result = await func()
            if attempt > 0:
                logger.info(f"✅ {operation_name} succeeded after {attempt + 1} attempts")
            return result
        except retry_on as e:
            if not _is_retryable(e) or attempt == attempts - 1:
                if attempt > 0:
                    logger.error(f"❌ {operation_name} failed after {attempt + 1} attempts: {e}")
                raise

            delay = base_delay * (2 ** attempt)
            logger.warning(
                f"🔄 {operation_name} failed (attempt {attempt + 1}/{attempts}): {e}; "
                f"retrying in {delay:.2f}s"
            )
            await asyncio.sleep(delay)
