"""Shared utilities for retrieving external observation feeds."""

from __future__ import annotations

from typing import Any, Mapping

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from pipelines.config import DEFAULT_TIMEOUT_SECONDS

_DEFAULT_WAIT = wait_exponential(min=1, max=16)
_DEFAULT_STOP = stop_after_attempt(3)
_RETRYABLE = retry_if_exception_type(httpx.TransportError)


Headers = Mapping[str, str] | None
Params = Mapping[str, Any] | None


async def _get(
    url: str,
    *,
    headers: Headers,
    params: Params,
    timeout: float,
    client: httpx.AsyncClient | None,
) -> httpx.Response:
    if client is not None:
        response = await client.get(url, headers=headers, params=params, timeout=timeout)
    else:
        async with httpx.AsyncClient(timeout=timeout) as owned_client:
            response = await owned_client.get(url, headers=headers, params=params)

    response.raise_for_status()
    return response


async def fetch_text(
    url: str,
    *,
    headers: Headers = None,
    params: Params = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    client: httpx.AsyncClient | None = None,
) -> str:
    """GET ``url`` and return the body as text.

    Not retried: callers of the text feeds own their retry policy. Raises
    ``httpx.HTTPStatusError`` on non-success status and ``httpx.TransportError``
    when the host cannot be reached.
    """

    response = await _get(url, headers=headers, params=params, timeout=timeout, client=client)
    return response.text


@retry(wait=_DEFAULT_WAIT, stop=_DEFAULT_STOP, retry=_RETRYABLE, reraise=True)
async def fetch_json(
    url: str,
    *,
    headers: Headers = None,
    params: Params = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    client: httpx.AsyncClient | None = None,
) -> Any:
    """GET ``url`` and return the decoded JSON payload.

    Connection-level failures are retried with exponential backoff; HTTP status
    errors and undecodable bodies are raised immediately. An existing
    ``httpx.AsyncClient`` may be passed in to share its connection pool.
    """

    response = await _get(url, headers=headers, params=params, timeout=timeout, client=client)
    return response.json()


__all__ = ["fetch_text", "fetch_json"]
