"""Retry logic with exponential or linear backoff for API calls."""

from __future__ import annotations

import asyncio
import logging
from typing import TypeVar

from saaksh.errors import SaakshError

logger = logging.getLogger(__name__)

T = TypeVar("T")

EXPONENTIAL = "exponential"
LINEAR = "linear"


def backoff_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    backoff: str = EXPONENTIAL,
    retry_after: float | None = None,
) -> float:
    """Delay before retry number ``attempt + 1`` (attempt counts from 0)."""
    if retry_after is not None and retry_after >= 0:
        return min(retry_after, max_delay)
    if backoff == LINEAR:
        delay = base_delay * (attempt + 1)
    else:
        delay = base_delay * (2**attempt)
    return min(delay, max_delay)


async def retry_async(
    fn,
    *args,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    backoff: str = EXPONENTIAL,
    **kwargs,
):
    """Call an async function, retrying transient saaksh errors.

    Only errors whose ``transient`` flag is set (rate limits, transport
    failures) are retried. A ``retry_after`` hint on the error replaces the
    computed backoff. Every wait is capped at ``max_delay``; anything else
    propagates immediately.
    """
    for attempt in range(max_retries + 1):
        try:
            return await fn(*args, **kwargs)
        except SaakshError as exc:
            if not exc.transient or attempt == max_retries:
                raise
            delay = backoff_delay(
                attempt, base_delay, max_delay, backoff,
                retry_after=getattr(exc, "retry_after", None),
            )
            logger.warning(
                "Retry %d/%d after %s (waiting %.1fs)",
                attempt + 1, max_retries, exc, delay,
            )
            await asyncio.sleep(delay)

    raise AssertionError("unreachable")  # pragma: no cover
