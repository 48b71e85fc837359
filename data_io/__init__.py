"""
I/O Package

Contains the HTTP primitive, the TAP client, response normalizers and
result formatting.
"""

from .http import HttpError, RequestTimeout, fetch_with_timeout
from .parsers import (
    TabularResult,
    parse_csv_response,
    parse_json_response,
    parse_text_response,
    parse_votable,
    wrap_votable_response,
)
from .preview import format_tap_result
from .tap import TapFormat, TapQueryRequest, tap_query

__all__ = [
    'HttpError', 'RequestTimeout', 'fetch_with_timeout',
    'TabularResult', 'parse_csv_response', 'parse_json_response',
    'parse_text_response', 'parse_votable', 'wrap_votable_response',
    'format_tap_result', 'TapFormat', 'TapQueryRequest', 'tap_query',
]
