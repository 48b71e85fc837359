"""
Splatalogue Data Source

Molecular and atomic spectral lines from Splatalogue through its Simple Line
Access Protocol (SLAP) service.
"""

from typing import Any, Dict, Optional, Tuple

import astropy.units as u
from pydantic import Field

from data_io.parsers import TabularResult, parse_votable
from data_io.preview import format_tap_result
from .base import QUERY_ERRORS, BaseDataSource, QueryParams

SPLATALOGUE_SLAP = 'https://splatalogue.online/splata-slap/slap'

SPECIES_COLUMNS = ('chemical_name', 'species', 'name', 'formula', 'Chemical Name')


class SplatalogueQuery(QueryParams):
    min_frequency: float = Field(..., gt=0, description="Minimum frequency in GHz")
    max_frequency: float = Field(..., gt=0, description="Maximum frequency in GHz")
    chemical_name: Optional[str] = Field(None, description='Filter by chemical species name (e.g., "CO", "H2O")')


def wavelength_range_m(min_freq_ghz: float, max_freq_ghz: float) -> Tuple[float, float]:
    """Convert a GHz frequency window to a (min, max) wavelength window in metres."""
    shortest = (max_freq_ghz * u.GHz).to_value(u.m, equivalencies=u.spectral())
    longest = (min_freq_ghz * u.GHz).to_value(u.m, equivalencies=u.spectral())
    return shortest, longest


def filter_species(result: TabularResult, chemical_name: str) -> TabularResult:
    """Keep lines whose species name or formula contains chemical_name."""
    needle = chemical_name.lower()
    kept = [
        row for row in result.rows
        if any(needle in str(row.get(col) or '').lower() for col in SPECIES_COLUMNS)
    ]
    return TabularResult(columns=result.columns, rows=tuple(kept))


class SplatalogueDataSource(BaseDataSource):
    """Splatalogue spectral line database."""

    def __init__(self, client=None):
        super().__init__(client=client, source_name="splatalogue")

    async def query_lines(self, params: SplatalogueQuery) -> Dict[str, Any]:
        lang = params.lang
        if params.min_frequency >= params.max_frequency:
            return self.error(self.localize(
                lang,
                "min_frequency must be less than max_frequency",
                "最小频率必须小于最大频率",
            ))

        min_wl, max_wl = wavelength_range_m(params.min_frequency, params.max_frequency)
        try:
            text = await self.fetch_text(SPLATALOGUE_SLAP, params={
                'REQUEST': 'queryData',
                'WAVELENGTH': f"{min_wl}/{max_wl}",
                'RESPONSEFORMAT': 'application/x-votable+xml',
            })
        except QUERY_ERRORS as e:
            return self.query_failed(e, lang)

        result = parse_votable(text)
        if params.chemical_name:
            result = filter_species(result, params.chemical_name)

        title = self.localize(
            lang,
            f"Splatalogue Spectral Lines ({params.min_frequency}-{params.max_frequency} GHz)",
            f"Splatalogue 光谱线查询 ({params.min_frequency}-{params.max_frequency} GHz)",
        )
        return self.success(format_tap_result(result, title))
