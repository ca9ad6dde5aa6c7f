"""Retrying HTTP calls to outbound mail providers."""

from __future__ import annotations

import logging
import random
from typing import Any, Awaitable, Callable

import anyio
import httpx

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


def retry_after_seconds(response: httpx.Response) -> float | None:
    """Seconds from a numeric Retry-After header, if the provider sent one."""
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def backoff_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    retry_after: float | None = None,
) -> float:
    if retry_after is not None:
        return min(max_delay, retry_after)
    delay = min(max_delay, base_delay * (2**attempt))
    if delay:
        delay += random.uniform(0, delay / 2)
    return delay


async def send_with_retries(
    send_fn: Callable[[], Awaitable[httpx.Response]],
    *,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 4.0,
    retry_statuses: frozenset[int] = RETRYABLE_STATUSES,
    log_context: dict[str, Any] | None = None,
) -> httpx.Response:
    """Call send_fn until the provider accepts, rejects, or attempts run out.

    Transport errors propagate after the last attempt. A retryable status on
    the last attempt is returned so the caller can report the failure. When
    the provider sends Retry-After it replaces the exponential backoff,
    capped at max_delay.
    """
    context = log_context or {}
    attempt = 0
    while True:
        attempt += 1
        try:
            response = await send_fn()
        except httpx.RequestError as exc:
            if attempt >= max_attempts:
                raise
            delay = backoff_delay(attempt - 1, base_delay, max_delay)
            logger.warning(
                "Mail provider request failed, retrying",
                exc_info=exc,
                extra={**context, "attempt": attempt},
            )
        else:
            if response.status_code not in retry_statuses or attempt >= max_attempts:
                return response
            delay = backoff_delay(
                attempt - 1, base_delay, max_delay, retry_after_seconds(response)
            )
            logger.warning(
                "Mail provider returned %s, retrying",
                response.status_code,
                extra={**context, "attempt": attempt},
            )
        if delay:
            await anyio.sleep(delay)
