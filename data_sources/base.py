"""
Base Data Source Class

Provides common functionality for all astronomical archive integrations.
"""

import json
import logging
from typing import Any, Dict, Literal, Optional

import httpx
from pydantic import BaseModel, Field

from config import DEFAULT_HTTP_TIMEOUT, DEFAULT_TAP_TIMEOUT
from data_io.http import HttpError, RequestTimeout, fetch_with_timeout
from data_io.parsers import TabularResult
from data_io.preview import format_tap_result
from data_io.tap import TapFormat, TapQueryRequest, tap_query

logger = logging.getLogger(__name__)

# Failures a data source reports back as text instead of raising
QUERY_ERRORS = (RequestTimeout, HttpError, httpx.RequestError)


class QueryParams(BaseModel):
    """Parameters shared by every tool."""

    lang: Literal['en', 'zh'] = Field('en', description="Output language")


class BaseDataSource:
    """
    Base class for astronomical data sources.

    Provides common functionality for:
    - Running TAP queries and REST requests with bounded timeouts
    - Rendering tabular results as text
    - Uniform success/error result dictionaries
    - Output localization (English and Chinese)

    Every public query method returns either
    {'status': 'success', 'text': ...} or {'status': 'error', 'error': ...}.
    """

    tap_endpoint: Optional[str] = None

    def __init__(self, client: Optional[httpx.AsyncClient] = None, source_name: str = "unknown"):
        """
        Initialize base data source.

        Args:
            client: Optional shared httpx client (a private one per request otherwise)
            source_name: Name of the data source (e.g., "simbad", "gaia")
        """
        self.source_name = source_name
        self.client = client

    @staticmethod
    def localize(lang: str, en: str, zh: str) -> str:
        return zh if lang == 'zh' else en

    @staticmethod
    def success(text: str) -> Dict[str, Any]:
        return {'status': 'success', 'text': text}

    @staticmethod
    def error(message: str) -> Dict[str, Any]:
        return {'status': 'error', 'error': message}

    def query_failed(self, exc: Exception, lang: str, note_en: str = None, note_zh: str = None) -> Dict[str, Any]:
        """Turn a network or protocol failure into a localized error result."""
        logger.error(f"{self.source_name} query failed: {exc}")
        message = self.localize(lang, f"Query failed: {exc}", f"查询失败: {exc}")
        note = self.localize(lang, note_en, note_zh) if note_en else None
        if note:
            message += f"\n\n{note}"
        return self.error(message)

    async def run_tap(
        self,
        adql: str,
        fmt: TapFormat = TapFormat.JSON,
        maxrec: Optional[int] = None,
        timeout: float = DEFAULT_TAP_TIMEOUT,
        endpoint: Optional[str] = None,
    ) -> TabularResult:
        """Run one synchronous ADQL query against this source's TAP service."""
        request = TapQueryRequest(
            endpoint=endpoint or self.tap_endpoint,
            adql=adql,
            format=fmt,
            maxrec=maxrec,
            timeout=timeout,
        )
        return await tap_query(request, client=self.client)

    async def tap_search(
        self,
        adql: str,
        title: str,
        lang: str,
        fmt: TapFormat = TapFormat.JSON,
        maxrec: Optional[int] = None,
        timeout: float = DEFAULT_TAP_TIMEOUT,
        note_en: str = None,
        note_zh: str = None,
    ) -> Dict[str, Any]:
        """Run an ADQL query and render its result, reporting failures as text."""
        try:
            result = await self.run_tap(adql, fmt=fmt, maxrec=maxrec, timeout=timeout)
        except QUERY_ERRORS as e:
            return self.query_failed(e, lang, note_en, note_zh)
        return self.success(format_tap_result(result, title))

    async def fetch_text(self, url: str, timeout: float = DEFAULT_HTTP_TIMEOUT, **kwargs) -> str:
        return await fetch_with_timeout(url, timeout=timeout, client=self.client, **kwargs)

    async def fetch_json(self, url: str, timeout: float = DEFAULT_HTTP_TIMEOUT, **kwargs) -> Any:
        """
        Fetch a URL and decode its JSON body.

        Raises:
            ValueError: if the body is not valid JSON
        """
        headers = {'Accept': 'application/json'}
        headers.update(kwargs.pop('headers', None) or {})
        text = await self.fetch_text(url, timeout=timeout, headers=headers, **kwargs)
        return json.loads(text)
