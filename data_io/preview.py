"""
Result Preview Module

Renders a TabularResult as compact text for an agent to read. Small results
are listed record by record; larger ones become a width- and length-capped
table.
"""

import math
from decimal import Decimal
from typing import Any, List, Optional

from .parsers import TabularResult

# Layout policy shared by every archive integration. Downstream consumers
# parse this output, so the thresholds and the summary wording are fixed.
VERBOSE_ROW_LIMIT = 5
TABLE_ROW_LIMIT = 20
TABLE_COLUMN_LIMIT = 8

NO_RESULTS = "No results found."

POSITIONAL_FLOAT_MIN = 1e-6
POSITIONAL_FLOAT_MAX = 1e21


def _is_blank(value: Any) -> bool:
    return value is None or value == ''


def render_value(value: Any) -> str:
    """
    Render one cell, spelling booleans the way JSON does.

    Floats between 1e-6 and 1e21 are written positionally (0.00001 rather
    than 1e-05); exponent notation is kept outside that range.
    """
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and math.isfinite(value):
        text = repr(value)
        if 'e' in text and POSITIONAL_FLOAT_MIN <= abs(value) < POSITIONAL_FLOAT_MAX:
            return format(Decimal(text), 'f')
        return text
    return str(value)


def _verbose_lines(result: TabularResult) -> List[str]:
    lines = []
    many = len(result.rows) > 1
    for idx, row in enumerate(result.rows, 1):
        if many:
            lines.append(f"--- Result {idx} ---")
        for key, value in row.items():
            if not _is_blank(value):
                lines.append(f"  {key}: {render_value(value)}")
        lines.append('')
    return lines


def _table_lines(result: TabularResult) -> List[str]:
    columns = list(result.columns[:TABLE_COLUMN_LIMIT])
    lines = [
        ' | '.join(columns),
        ' | '.join('---' for _ in columns),
    ]
    for row in result.rows[:TABLE_ROW_LIMIT]:
        lines.append(' | '.join(render_value(row.get(col)) for col in columns))

    remaining = len(result.rows) - TABLE_ROW_LIMIT
    if remaining > 0:
        lines.append(f"\n... and {remaining} more rows.")
    return lines


def format_tap_result(result: TabularResult, title: Optional[str] = None) -> str:
    """
    Format a tabular result as readable text.

    Args:
        result: Normalized query result (never modified)
        title: Optional heading rendered as '## title'

    Returns:
        Text block: 'No results found.', a verbose listing for up to five
        rows, or a table of at most 8 columns and 20 rows otherwise
    """
    lines = []
    if title:
        lines.append(f"## {title}\n")

    if not result.rows:
        lines.append(NO_RESULTS)
        return '\n'.join(lines)

    lines.append(f"Found {len(result.rows)} result(s).\n")

    if len(result.rows) <= VERBOSE_ROW_LIMIT:
        lines.extend(_verbose_lines(result))
    else:
        lines.extend(_table_lines(result))

    return '\n'.join(lines)
