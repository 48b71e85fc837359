"""
HTTP Primitive

A single bounded-timeout fetch used by every archive integration, TAP and
REST alike. One call issues exactly one outbound request; nothing is retried.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from config import DEFAULT_HTTP_TIMEOUT, USER_AGENT

logger = logging.getLogger(__name__)

# Longest response body excerpt kept on an HttpError
ERROR_BODY_LIMIT = 500


class RequestTimeout(TimeoutError):
    """Raised when a request does not complete before its deadline."""

    def __init__(self, url: str, timeout: float):
        self.url = url
        self.timeout = timeout
        super().__init__(f"Request to {url} timed out after {timeout:g}s")


class HttpError(Exception):
    """Raised when a server answers with a status outside 200-299."""

    def __init__(self, status_code: int, body: str = "", url: str = None):
        self.status_code = status_code
        self.body = (body or "")[:ERROR_BODY_LIMIT]
        self.url = url
        super().__init__(f"Request failed ({status_code}): {self.body}")


async def _send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    headers: Dict[str, str],
    params: Optional[Dict[str, Any]],
    data: Optional[Dict[str, Any]],
    json_body: Any,
) -> httpx.Response:
    return await client.request(
        method,
        url,
        headers=headers,
        params=params,
        data=data,
        json=json_body,
        follow_redirects=True,
    )


async def fetch_with_timeout(
    url: str,
    method: str = "GET",
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    data: Optional[Dict[str, Any]] = None,
    json_body: Any = None,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """
    Issue one HTTP request and return the response body as text.

    The timeout is a hard wall-clock deadline covering connect, send and the
    full body read. On expiry the in-flight request is cancelled.

    Args:
        url: Target URL
        method: HTTP method
        headers: Extra request headers (merged over the default User-Agent)
        params: Query string parameters
        data: Form fields, sent as application/x-www-form-urlencoded
        json_body: JSON request body
        timeout: Deadline in seconds
        client: Optional shared client; a private one is opened otherwise

    Returns:
        Response body text

    Raises:
        RequestTimeout: the deadline passed before the response arrived
        HttpError: the server answered with a non-2xx status
    """
    request_headers = {"User-Agent": USER_AGENT}
    if headers:
        request_headers.update(headers)

    logger.debug(f"{method} {url} (timeout {timeout:g}s)")

    async def _run(active_client: httpx.AsyncClient) -> httpx.Response:
        return await asyncio.wait_for(
            _send(active_client, method, url, request_headers, params, data, json_body),
            timeout=timeout,
        )

    try:
        if client is not None:
            response = await _run(client)
        else:
            async with httpx.AsyncClient(timeout=timeout) as own_client:
                response = await _run(own_client)
    except (asyncio.TimeoutError, httpx.TimeoutException) as e:
        logger.warning(f"Request to {url} timed out after {timeout:g}s")
        raise RequestTimeout(url, timeout) from e

    if not 200 <= response.status_code < 300:
        logger.warning(f"Request to {url} failed with HTTP {response.status_code}")
        raise HttpError(response.status_code, response.text, url=url)

    return response.text
