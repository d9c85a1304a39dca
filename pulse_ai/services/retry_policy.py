from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Attempt = Callable[[], Awaitable[T]]


def _always_retry(exc: Exception) -> bool:
    return True


async def run_attempts(
    attempts: Sequence[Attempt[T]],
    base_delay: float,
    *,
    should_retry: Callable[[Exception], bool] = _always_retry,
    label: str = "attempt",
) -> T:
    """Await each attempt in order and return the first result that succeeds.

    After attempt ``i`` fails, sleep ``base_delay * (i + 1)`` before the next
    one. The last error is re-raised once every attempt has failed, or as soon
    as ``should_retry`` rejects an error.
    """
    if not attempts:
        raise ValueError("run_attempts needs at least one attempt")

    last_exc: Exception | None = None
    for i, attempt in enumerate(attempts):
        try:
            return await attempt()
        except Exception as exc:
            last_exc = exc
            logger.warning("[Retry] %s=%d/%d failed: %s", label, i + 1, len(attempts), exc)
            if not should_retry(exc) or i == len(attempts) - 1:
                break
            if base_delay > 0:
                await asyncio.sleep(base_delay * (i + 1))
    assert last_exc is not None
    raise last_exc
