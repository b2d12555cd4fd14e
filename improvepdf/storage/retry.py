"""Bounded exponential backoff for store reads and create-only writes."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from improvepdf.logging.logger import Log
from improvepdf.storage.exceptions import (
    NotFoundError,
    StoreUnavailableError,
    WriteCollisionError,
)

T = TypeVar("T")

DEFAULT_READ_ATTEMPTS = 8
DEFAULT_WRITE_ATTEMPTS = 5


def backoff_delay(base_seconds: float, attempt: int) -> float:
    """Exponential delay for a 0-based attempt number."""
    return base_seconds * (2**attempt)


async def retry_read(
    operation: Callable[[], Awaitable[T]],
    *,
    key: str,
    attempts: int = DEFAULT_READ_ATTEMPTS,
    base_delay_seconds: float = 0.1,
) -> T:
    """Run a read, retrying not-yet-visible and transient failures.

    Raises:
        NotFoundError: if the key is still missing after all attempts.
        StoreUnavailableError: if the store kept failing after all attempts.
    """
    attempts = max(1, attempts)
    for attempt in range(attempts):
        try:
            return await operation()
        except (NotFoundError, StoreUnavailableError) as exc:
            if attempt == attempts - 1:
                raise
            delay = backoff_delay(base_delay_seconds, attempt)
            Log.debug(
                f"Read of {key} failed ({type(exc).__name__}), "
                f"attempt {attempt + 1}/{attempts}, retrying in {delay:.2f}s"
            )
            await asyncio.sleep(delay)
    raise StoreUnavailableError(f"Read of {key} exhausted retries", key=key)


async def retry_write(
    operation: Callable[[], Awaitable[T]],
    *,
    key: str,
    attempts: int = DEFAULT_WRITE_ATTEMPTS,
    base_delay_seconds: float = 0.1,
) -> T:
    """Run a write, retrying only on write collisions.

    Raises:
        WriteCollisionError: if every attempt collided.
    """
    attempts = max(1, attempts)
    for attempt in range(attempts):
        try:
            return await operation()
        except WriteCollisionError:
            if attempt == attempts - 1:
                Log.error(f"Write to {key} still colliding after {attempts} attempts")
                raise
            delay = backoff_delay(base_delay_seconds, attempt)
            Log.warning(
                f"Write collision on {key}, attempt {attempt + 1}/{attempts}, "
                f"retrying in {delay:.2f}s"
            )
            await asyncio.sleep(delay)
    raise WriteCollisionError(f"Write to {key} exhausted retries", key=key)
