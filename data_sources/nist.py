"""
NIST Data Source

Spectral line data from the NIST Atomic Spectra Database lines form, asked
for in its tab-delimited output format.
"""

import re
from typing import Any, Dict, Optional

from pydantic import Field

from data_io.parsers import TabularResult
from data_io.preview import format_tap_result
from .base import QUERY_ERRORS, BaseDataSource, QueryParams

NIST_LINES_URL = 'https://physics.nist.gov/cgi-bin/ASD/lines1.pl'

# The header is normally within the first lines of the response
HEADER_SEARCH_LINES = 30
HEADER_MARKERS = ('Observed', 'Ritz', 'Aki', 'Acc', 'obs_wl', 'ritz_wl')
_RULE_LINE = re.compile(r'[\s\-\t]+')

DEFAULT_FULL_RANGE = (1.0, 100000.0)


class NistQuery(QueryParams):
    linename: Optional[str] = Field(None, description='Element/ion name (e.g. "Fe II", "H I", "Na")')
    min_wavelength: Optional[float] = Field(None, ge=0, description="Minimum wavelength in Angstroms")
    max_wavelength: Optional[float] = Field(None, ge=0, description="Maximum wavelength in Angstroms")
    max_results: int = Field(50, ge=1, description="Maximum number of lines to display")


def _clean(cell: str) -> str:
    return cell.strip().replace('"', '')


def parse_nist_lines(text: str) -> TabularResult:
    """
    Parse the tab-delimited NIST lines output.

    The header is the first line (within the first 30) carrying a known column
    name, or failing that the first line with at least three tabs.
    """
    lines = [line for line in (text or '').split('\n') if line.strip()]
    window = lines[:HEADER_SEARCH_LINES]

    header_idx = next(
        (i for i, line in enumerate(window) if '\t' in line and any(m in line for m in HEADER_MARKERS)),
        None,
    )
    if header_idx is None:
        header_idx = next((i for i, line in enumerate(window) if line.count('\t') >= 3), None)
    if header_idx is None:
        return TabularResult.empty()

    columns = [_clean(c) for c in lines[header_idx].split('\t')]
    records = []
    for line in lines[header_idx + 1:]:
        if '\t' not in line or _RULE_LINE.fullmatch(line):
            continue
        values = [_clean(v) for v in line.split('\t')]
        records.append({col: (values[i] if i < len(values) else '') for i, col in enumerate(columns)})
    return TabularResult.from_records(columns, records)


class NistDataSource(BaseDataSource):
    """NIST Atomic Spectra Database."""

    def __init__(self, client=None):
        super().__init__(client=client, source_name="nist")

    @staticmethod
    def form_fields(min_wavelength: float, max_wavelength: float, linename: Optional[str]) -> Dict[str, str]:
        return {
            'spectra': linename or '',
            'low_w': str(min_wavelength),
            'upp_w': str(max_wavelength),
            'unit': '0',          # Angstrom
            'de': '0',
            'format': '3',        # tab-delimited
            'line_out': '0',      # all lines
            'en_unit': '0',       # cm-1
            'output': '0',        # entire output, no paging
            'bibrefs': '1',
            'page_size': '15',
            'show_obs_wl': '1',
            'show_calc_wl': '1',
            'order_out': '0',     # by wavelength
            'max_low_enrg': '',
            'max_upp_enrg': '',
            'min_str': '',
            'max_str': '',
            'min_accur': '',
            'min_intens': '',
            'conf_out': 'on',
            'term_out': 'on',
            'enrg_out': 'on',
            'J_out': 'on',
            'submit': 'Retrieve Data',
        }

    async def query_lines(self, params: NistQuery) -> Dict[str, Any]:
        lang = params.lang
        if params.linename:
            low, high = DEFAULT_FULL_RANGE
            min_wav = params.min_wavelength if params.min_wavelength is not None else low
            max_wav = params.max_wavelength if params.max_wavelength is not None else high
        elif params.min_wavelength is not None and params.max_wavelength is not None:
            min_wav, max_wav = params.min_wavelength, params.max_wavelength
        else:
            return self.error(self.localize(
                lang,
                "Please provide wavelength range (min_wavelength/max_wavelength) or element name (linename).",
                "请提供波长范围 (min_wavelength/max_wavelength) 或元素名称 (linename)。",
            ))

        try:
            text = await self.fetch_text(
                NIST_LINES_URL,
                method='POST',
                data=self.form_fields(min_wav, max_wav, params.linename),
                timeout=60.0,
            )
        except QUERY_ERRORS as e:
            return self.query_failed(e, lang)

        parsed = parse_nist_lines(text)
        suffix = f": {params.linename}" if params.linename else ''
        title = self.localize(lang, f"NIST Atomic Spectra Database{suffix}", f"NIST 原子光谱数据库{suffix}")

        shown = TabularResult(columns=parsed.columns, rows=parsed.rows[:params.max_results])
        output = format_tap_result(shown, title)
        hidden = len(parsed.rows) - len(shown.rows)
        if hidden > 0:
            output += f"\n\n... and {hidden} more lines."
        return self.success(output)
