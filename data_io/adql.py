"""
ADQL Construction Helpers

ADQL has no parameterized queries, so every user-supplied value is
interpolated into the query text. All builders go through these helpers:
string literals are escaped by doubling single quotes and table names are
checked against a strict identifier pattern before they reach a query.
"""

import re
from typing import Union

import astropy.units as u

Number = Union[int, float]

_TABLE_NAME = re.compile(r'[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*')


def escape_adql_string(value: str) -> str:
    """Escape a value for use inside an ADQL single-quoted literal."""
    return str(value).replace("'", "''")


def adql_literal(value: str) -> str:
    """Quote and escape a value as an ADQL string literal."""
    return f"'{escape_adql_string(value)}'"


def validate_table_name(name: str) -> str:
    """
    Check a schema-qualified table name such as 'allwise_p3as_psd'.

    Raises:
        ValueError: if the name contains anything but letters, digits,
            underscores and dots between parts
    """
    name = (name or '').strip()
    if not _TABLE_NAME.fullmatch(name):
        raise ValueError(f"Invalid table name: {name!r}")
    return name


def quote_identifier(name: str) -> str:
    """Delimit an identifier such as a VizieR table 'I/239/hip_main'."""
    return '"' + str(name).replace('"', '""') + '"'


def to_degrees(value: Number, unit: str) -> float:
    """Convert an angular search radius given in `unit` to degrees."""
    return (value * u.Unit(unit)).to_value(u.deg)


def cone_condition(
    ra: Number,
    dec: Number,
    radius_deg: Number,
    ra_column: str = 'ra',
    dec_column: str = 'dec',
) -> str:
    """ADQL predicate selecting rows within radius_deg of (ra, dec)."""
    return (
        f"CONTAINS(POINT('ICRS', {ra_column}, {dec_column}), "
        f"CIRCLE('ICRS', {ra}, {dec}, {radius_deg})) = 1"
    )
