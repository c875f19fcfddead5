"""Retry helper for flaky async calls."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_with_backoff(
    *,
    attempts: int,
    backoff_ms: int,
    coro_factory: Callable[[], Awaitable[T]],
    retry_on: tuple[type[Exception], ...] = (Exception,),
) -> T:
    """Await ``coro_factory()`` up to ``attempts`` times with linear backoff."""
    last_error: Exception | None = None
    total = max(1, attempts)
    for attempt in range(total):
        try:
            return await coro_factory()
        except retry_on as exc:
            last_error = exc
            if attempt >= total - 1:
                break
            logger.info(
                "Retrying after error",
                extra={"attempt": attempt + 1, "attempts": total, "error": str(exc)},
            )
            await asyncio.sleep((backoff_ms / 1000.0) * (attempt + 1))
    if last_error is None:
        raise RuntimeError("retry_with_backoff finished without a result")
    raise last_error
