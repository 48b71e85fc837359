"""
JPL Data Source

Solar-system ephemerides from JPL Horizons and small-body data from the JPL
Small-Body Database (SBDB).
"""

from datetime import date, timedelta
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from .base import QUERY_ERRORS, BaseDataSource, QueryParams

HORIZONS_API = 'https://ssd.jpl.nasa.gov/api/horizons.api'
SBDB_API = 'https://ssd-api.jpl.nasa.gov/sbdb.api'

EPHEMERIS_TYPES = {
    'ephemerides': 'OBSERVER',
    'elements': 'ELEMENTS',
    'vectors': 'VECTORS',
}


class HorizonsQuery(QueryParams):
    target: str = Field(..., min_length=1, description='Target body (e.g. "Mars", "499", "Ceres", "1P/Halley")')
    location: str = Field('500', description='Observer location code (default "500" = geocentric, "500@10" = heliocentric)')
    ephemeris_type: Literal['ephemerides', 'elements', 'vectors'] = Field('ephemerides', description="Type of ephemeris data")
    start_time: Optional[str] = Field(None, description='Start time (e.g. "2024-01-01"). Defaults to today.')
    stop_time: Optional[str] = Field(None, description='Stop time (e.g. "2024-01-02"). Defaults to start + 1 day.')
    step_size: str = Field('1d', description='Step size (e.g. "1d", "1h", "30m")')


class SbdbQuery(QueryParams):
    target: str = Field(..., min_length=1, description='Small body name or designation (e.g. "Ceres", "433", "1P/Halley")')
    phys: bool = Field(True, description="Include physical parameters")


def _parameter_lines(entries: List[Dict[str, Any]]) -> List[str]:
    lines = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        unit = f" {entry['units']}" if entry.get('units') else ''
        lines.append(f"  {entry.get('title') or entry.get('name')}: {entry.get('value')}{unit}")
    return lines


class JplDataSource(BaseDataSource):
    """JPL Solar System Dynamics APIs."""

    def __init__(self, client=None):
        super().__init__(client=client, source_name="jpl")

    @staticmethod
    def horizons_params(params: HorizonsQuery, today: Optional[date] = None) -> Dict[str, str]:
        today = today or date.today()
        start = params.start_time or today.isoformat()
        stop = params.stop_time or (today + timedelta(days=1)).isoformat()
        return {
            'format': 'json',
            'COMMAND': f"'{params.target}'",
            'OBJ_DATA': 'YES',
            'MAKE_EPHEM': 'YES',
            'EPHEM_TYPE': EPHEMERIS_TYPES[params.ephemeris_type],
            'CENTER': f"'{params.location}'",
            'START_TIME': f"'{start}'",
            'STOP_TIME': f"'{stop}'",
            'STEP_SIZE': f"'{params.step_size}'",
            'CSV_FORMAT': 'NO',
        }

    async def horizons(self, params: HorizonsQuery) -> Dict[str, Any]:
        try:
            data = await self.fetch_json(HORIZONS_API, params=self.horizons_params(params))
        except QUERY_ERRORS + (ValueError,) as e:
            return self.query_failed(e, params.lang)
        if not isinstance(data, dict):
            data = {}

        if data.get('error'):
            return self.error(self.localize(
                params.lang,
                f"JPL Horizons error: {data['error']}",
                f"JPL Horizons 错误: {data['error']}",
            ))

        body = data.get('result') or ''
        return self.success(f"## JPL Horizons: {params.target} ({params.ephemeris_type})\n\n{body}")

    async def small_body(self, params: SbdbQuery) -> Dict[str, Any]:
        try:
            data = await self.fetch_json(
                SBDB_API,
                params={'sstr': params.target, 'phys-par': '1' if params.phys else '0'},
            )
        except QUERY_ERRORS + (ValueError,) as e:
            return self.query_failed(e, params.lang)

        lang = params.lang
        title = self.localize(lang, f"JPL SBDB: {params.target}", f"JPL 小天体数据库: {params.target}")
        lines = [f"## {title}\n"]
        found = False

        if not isinstance(data, dict):
            data = {}

        obj = data.get('object')
        if isinstance(obj, dict) and obj:
            found = True
            lines.append(self.localize(lang, "### Object Info", "### 基本信息"))
            for key, label in (('fullname', 'Name'), ('kind', 'Type'), ('des', 'Designation'), ('prefix', 'Prefix')):
                if obj.get(key):
                    lines.append(f"  {label}: {obj[key]}")
            lines.append('')

        orbit = data.get('orbit')
        elements = orbit.get('elements') if isinstance(orbit, dict) else None
        if isinstance(elements, list) and elements:
            found = True
            lines.append(self.localize(lang, "### Orbital Elements", "### 轨道要素"))
            lines.extend(_parameter_lines(elements))
            lines.append('')

        phys_par = data.get('phys_par')
        if isinstance(phys_par, list) and phys_par:
            found = True
            lines.append(self.localize(lang, "### Physical Parameters", "### 物理参数"))
            lines.extend(_parameter_lines(phys_par))
            lines.append('')

        if not found:
            message = data.get('message') or self.localize(
                lang, "No information found for this target.", "未找到该天体的信息。")
            lines.append(message)

        return self.success('\n'.join(lines))
