"""
Response Normalizers

Convert the raw text of a TAP (or VOTable-speaking REST) response into one
shared tabular shape. Parsing never raises: an empty or unparseable body is
"no data", because the request itself has already succeeded by the time
normalization runs.
"""

import html
import json
import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TabularResult:
    """
    Normalized query result shared by every parser and the formatter.

    Attributes:
        columns: Column names in source order (duplicates are passed through)
        rows: Read-only records mapping column name to a scalar value
        metadata: Optional raw format-specific metadata, never rendered
    """

    columns: Tuple[str, ...] = ()
    rows: Tuple[Mapping[str, Any], ...] = ()
    metadata: Optional[Dict[str, Any]] = field(default=None, compare=False)

    @classmethod
    def empty(cls) -> 'TabularResult':
        return cls()

    @classmethod
    def from_records(
        cls,
        columns: Sequence[str],
        records: Iterable[Mapping[str, Any]],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> 'TabularResult':
        """Freeze plain dict records into a result."""
        return cls(
            columns=tuple(columns),
            rows=tuple(MappingProxyType(dict(record)) for record in records),
            metadata=metadata,
        )

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows


# ---------------------------------------------------------------------------
# TAP-JSON
# ---------------------------------------------------------------------------

def parse_json_response(text: str) -> TabularResult:
    """
    Parse TAP-JSON, a bare array of objects, or a single object.

    Values are passed through exactly as decoded.
    """
    if not text or not text.strip():
        return TabularResult.empty()
    try:
        data = json.loads(text)
    except ValueError as e:
        logger.warning(f"Discarding unparseable JSON response: {e}")
        return TabularResult.empty()

    # Standard TAP JSON: {"metadata": [{"name": ...}], "data": [[...]]}
    if isinstance(data, dict) and isinstance(data.get('metadata'), list) and isinstance(data.get('data'), list):
        # Positions are kept for unnamed entries so later values stay aligned
        named = [
            (i, str(m['name'])) for i, m in enumerate(data['metadata'])
            if isinstance(m, dict) and m.get('name') is not None
        ]
        columns = [name for _, name in named]
        records = []
        for raw_row in data['data']:
            if not isinstance(raw_row, list):
                continue
            records.append({
                col: (raw_row[i] if i < len(raw_row) else None)
                for i, col in named
            })
        return TabularResult.from_records(columns, records, metadata={'raw_metadata': data['metadata']})

    if isinstance(data, list):
        if not data or not isinstance(data[0], dict):
            return TabularResult.empty()
        columns = list(data[0].keys())
        records = [
            {col: obj[col] for col in columns if col in obj}
            for obj in data if isinstance(obj, dict)
        ]
        return TabularResult.from_records(columns, records)

    if isinstance(data, dict):
        return TabularResult.from_records(list(data.keys()), [data])

    return TabularResult.empty()


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

def _strip_quotes(value: str) -> str:
    value = value.strip()
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def parse_csv_response(text: str) -> TabularResult:
    """
    Parse comma-separated text whose first line is the header.

    Fields are split naively on every comma; a quoted field containing a
    comma is split too. Existing consumers rely on this behavior.
    """
    if not text or not text.strip():
        return TabularResult.empty()

    lines = [line.rstrip('\r') for line in text.strip().split('\n')]
    columns = [_strip_quotes(c) for c in lines[0].split(',')]

    records = []
    for line in lines[1:]:
        values = [_strip_quotes(v) for v in line.split(',')]
        records.append({
            col: (values[i] if i < len(values) else '')
            for i, col in enumerate(columns)
        })
    return TabularResult.from_records(columns, records)


# ---------------------------------------------------------------------------
# Pipe-delimited text
# ---------------------------------------------------------------------------

_FOOTER_PREFIX = 'Number of'
_SEPARATOR_LINE = re.compile(r'[-+|\s]+')
_INTEGER = re.compile(r'[+-]?\d+')
_DECIMAL = re.compile(r'[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?')


def coerce_number(value: str) -> Any:
    """Return value as int or float when it is a plain numeric literal."""
    if _INTEGER.fullmatch(value):
        return int(value)
    if _DECIMAL.fullmatch(value):
        return float(value)
    return value


def _align_text_fields(values: List[str], width: int) -> List[str]:
    """
    Line data fields up with a header of the given width.

    A row that ends with '|' leaves a trailing empty field, dropped here the
    same way empty header fields are dropped. A row with exactly one more
    field than the header has its first field dropped: HEASARC prefixes
    rows with an unnamed leading column. Nothing beyond that one-field case
    is realigned.
    """
    if len(values) > width and values[-1] == '':
        values = values[:-1]
    if len(values) == width + 1:
        values = values[1:]
    return values


def parse_text_response(text: str) -> TabularResult:
    """
    Parse pipe-delimited text as returned by HEASARC TAP.

    Footer lines ("Number of rows...") are removed first, ASCII table rules
    made of '-', '+' and '|' are skipped, and numeric-looking cells are
    coerced to numbers.
    """
    if not text:
        return TabularResult.empty()

    lines = [
        line for line in text.split('\n')
        if line.strip() and not line.strip().startswith(_FOOTER_PREFIX)
    ]
    if not lines:
        return TabularResult.empty()

    columns = [h.strip() for h in lines[0].split('|') if h.strip()]
    if not columns:
        return TabularResult.empty()

    records = []
    for line in lines[1:]:
        if _SEPARATOR_LINE.fullmatch(line):
            continue
        values = _align_text_fields([v.strip() for v in line.split('|')], len(columns))
        record = {}
        for i, col in enumerate(columns):
            value = values[i] if i < len(values) else ''
            record[col] = coerce_number(value) if value else value
        records.append(record)
    return TabularResult.from_records(columns, records)


# ---------------------------------------------------------------------------
# VOTable
# ---------------------------------------------------------------------------

_FIELD_NAME = re.compile(r'<FIELD\b[^>]*?\bname\s*=\s*"([^"]*)"', re.IGNORECASE)
_TABLE_ROW = re.compile(r'<TR\b[^>]*>(.*?)</TR>', re.IGNORECASE | re.DOTALL)
_TABLE_CELL = re.compile(r'<TD\b[^>]*?/>|<TD\b[^>]*>(.*?)</TD>', re.IGNORECASE | re.DOTALL)


def parse_votable(text: str) -> TabularResult:
    """
    Extract FIELD names and TABLEDATA rows from a VOTable document.

    A lightweight regex reader: cell values stay strings (trimmed, with XML
    entities unescaped) and missing trailing cells become None.
    """
    if not text or not text.strip():
        return TabularResult.empty()

    columns = _FIELD_NAME.findall(text)
    if not columns:
        return TabularResult.empty()

    records = []
    for row_body in _TABLE_ROW.findall(text):
        values = [html.unescape(cell.group(1) or '').strip() for cell in _TABLE_CELL.finditer(row_body)]
        records.append({
            col: (values[i] if i < len(values) else None)
            for i, col in enumerate(columns)
        })
    return TabularResult.from_records(columns, records)


def wrap_votable_response(text: str) -> TabularResult:
    """Return raw VOTable XML as a single pseudo-row under a 'votable' column."""
    if not text or not text.strip():
        return TabularResult.empty()
    return TabularResult.from_records(['votable'], [{'votable': text}])
