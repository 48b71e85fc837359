"""
TAP Client

Synchronous ADQL queries against any IVOA Table Access Protocol service.
The client never falls back to the asynchronous job pattern: a query that
outlives its deadline fails with RequestTimeout instead of being polled.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional, Union

import httpx

from config import DEFAULT_TAP_TIMEOUT
from .http import fetch_with_timeout
from .parsers import (
    TabularResult,
    parse_csv_response,
    parse_json_response,
    parse_text_response,
    wrap_votable_response,
)

logger = logging.getLogger(__name__)


class TapFormat(str, Enum):
    """Wire encoding requested from the TAP service."""

    JSON = 'json'
    CSV = 'csv'
    TEXT = 'text'
    VOTABLE = 'votable'


@dataclass(frozen=True)
class TapQueryRequest:
    """One synchronous TAP query, built fresh per tool call."""

    endpoint: str
    adql: str
    format: TapFormat = TapFormat.JSON
    maxrec: Optional[int] = None
    timeout: float = DEFAULT_TAP_TIMEOUT

    def __post_init__(self):
        # Accept plain strings such as 'csv'
        object.__setattr__(self, 'format', TapFormat(self.format))


_PARSERS: Mapping[TapFormat, Callable[[str], TabularResult]] = MappingProxyType({
    TapFormat.JSON: parse_json_response,
    TapFormat.CSV: parse_csv_response,
    TapFormat.TEXT: parse_text_response,
    TapFormat.VOTABLE: wrap_votable_response,
})


def build_tap_params(request: TapQueryRequest) -> Dict[str, str]:
    """Form fields of a synchronous doQuery request."""
    params = {
        'REQUEST': 'doQuery',
        'LANG': 'ADQL',
        'FORMAT': request.format.value,
        'QUERY': request.adql,
    }
    if request.maxrec is not None:
        params['MAXREC'] = str(request.maxrec)
    return params


def parse_tap_response(text: str, fmt: Union[TapFormat, str]) -> TabularResult:
    """Normalize response text according to the format the caller requested."""
    return _PARSERS[TapFormat(fmt)](text)


async def tap_query(
    request: TapQueryRequest,
    client: Optional[httpx.AsyncClient] = None,
) -> TabularResult:
    """
    Execute a synchronous TAP query and normalize the response.

    Args:
        request: Endpoint, ADQL, format, optional MAXREC and timeout
        client: Optional shared httpx client

    Returns:
        TabularResult (empty when the body cannot be parsed)

    Raises:
        RequestTimeout, HttpError: propagated unchanged from the HTTP layer
    """
    logger.info(f"TAP query to {request.endpoint} (format={request.format.value}, maxrec={request.maxrec})")
    logger.debug(f"ADQL: {request.adql}")

    text = await fetch_with_timeout(
        request.endpoint,
        method='POST',
        headers={'Content-Type': 'application/x-www-form-urlencoded'},
        data=build_tap_params(request),
        timeout=request.timeout,
        client=client,
    )

    result = parse_tap_response(text, request.format)
    logger.info(f"TAP query returned {len(result.rows)} row(s)")
    return result
