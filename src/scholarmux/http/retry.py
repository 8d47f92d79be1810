"""Retrying fetcher — exponential backoff on rate limiting and network errors.

Only HTTP 429 and transport-level failures are retried. Any other status,
including 404 and 5xx, is handed back to the caller untouched.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

RATE_LIMITED = 429

_ARXIV_HTTP = "http://export.arxiv.org"
_ARXIV_HTTPS = "https://export.arxiv.org"


def _is_rate_limited(response: httpx.Response) -> bool:
    return response.status_code == RATE_LIMITED


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    if outcome is not None and outcome.failed:
        reason = repr(outcome.exception())
    else:
        reason = "HTTP 429"
    logger.warning(
        "Retrying upstream request (attempt %d, waiting %.1fs): %s",
        retry_state.attempt_number,
        delay,
        reason,
    )


def _last_outcome(retry_state: RetryCallState) -> httpx.Response:
    # Hands back the final 429 response, or re-raises the final transport error.
    return retry_state.outcome.result()  # type: ignore[union-attr]


async def fetch_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    max_retries: int = 3,
    initial_delay: float = 1.0,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    **kwargs: Any,
) -> httpx.Response:
    """Issue an HTTP request, retrying on 429 and transport errors.

    The n-th retry waits ``initial_delay * 2 ** (n - 1)`` seconds (1s, 2s,
    4s with the defaults). No jitter is applied.

    Args:
        client: Shared HTTP client.
        method: HTTP method.
        url: Absolute request URL.
        max_retries: Retries allowed after the first attempt.
        initial_delay: First backoff delay in seconds.
        sleep: Awaitable used for backoff sleeps.
        **kwargs: Forwarded to ``client.request`` (params, headers, ...).

    Returns:
        The first non-429 response, or the last 429 once retries run out.

    Raises:
        httpx.TransportError: If the final attempt still fails at transport level.
    """
    if url.startswith(_ARXIV_HTTP):
        url = _ARXIV_HTTPS + url[len(_ARXIV_HTTP) :]

    retrying = AsyncRetrying(
        sleep=sleep,
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=initial_delay, exp_base=2),
        retry=retry_if_result(_is_rate_limited) | retry_if_exception_type(httpx.TransportError),
        before_sleep=_log_retry,
        retry_error_callback=_last_outcome,
    )
    return await retrying(client.request, method, url, **kwargs)
