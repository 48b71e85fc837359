"""
MAST Data Source

Observation searches on the Mikulski Archive for Space Telescopes through
the MAST invoke API.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import Field

from config import DEFAULT_TAP_TIMEOUT
from data_io.adql import to_degrees
from data_io.parsers import TabularResult
from data_io.preview import format_tap_result
from .base import QUERY_ERRORS, BaseDataSource, QueryParams

logger = logging.getLogger(__name__)

MAST_API = 'https://mast.stsci.edu/api/v0/invoke'

DISPLAY_COLUMNS = (
    'intentType', 'obs_collection', 'instrument_name', 'filters', 'target_name',
    'obsid', 's_ra', 's_dec', 't_min', 'dataproduct_type',
)


class MastQuery(QueryParams):
    object_name: Optional[str] = Field(None, description='Object name (e.g. "M31", "NGC 1068"). Use this OR ra/dec.')
    ra: Optional[float] = Field(None, ge=0, le=360, description="Right Ascension in degrees (use with dec)")
    dec: Optional[float] = Field(None, ge=-90, le=90, description="Declination in degrees (use with ra)")
    radius: float = Field(3, gt=0, description="Search radius in arcminutes")
    max_results: int = Field(50, ge=1, description="Maximum number of results")


def rows_to_result(rows: List[Dict[str, Any]]) -> TabularResult:
    """Tabulate MAST rows, leading with the columns most useful to read."""
    rows = [row for row in rows if isinstance(row, dict)] if isinstance(rows, list) else []
    if not rows:
        return TabularResult.empty()
    first = rows[0]
    columns = [c for c in DISPLAY_COLUMNS if c in first]
    columns += [c for c in first if c not in columns]
    return TabularResult.from_records(columns, ({c: row.get(c) for c in columns} for row in rows))


class MastDataSource(BaseDataSource):
    """Mikulski Archive for Space Telescopes."""

    def __init__(self, client=None):
        super().__init__(client=client, source_name="mast")

    async def invoke(self, service: str, params: Dict[str, Any], timeout: float = DEFAULT_TAP_TIMEOUT) -> Any:
        """Call one MAST service; the request travels as a form-encoded JSON document."""
        request = {'service': service, 'params': params, 'format': 'json', 'timeout': int(timeout)}
        return await self.fetch_json(
            MAST_API,
            method='POST',
            data={'request': json.dumps(request)},
            timeout=timeout,
        )

    async def resolve_name(self, name: str) -> Optional[Dict[str, float]]:
        data = await self.invoke('Mast.Name.Lookup', {'input': name, 'format': 'json'})
        resolved = data.get('resolvedCoordinate') if isinstance(data, dict) else None
        if not isinstance(resolved, list) or not resolved or not isinstance(resolved[0], dict):
            return None
        ra, dec = resolved[0].get('ra'), resolved[0].get('decl')
        if ra is None or dec is None:
            return None
        return {'ra': ra, 'dec': dec}

    async def query_observations(self, params: MastQuery) -> Dict[str, Any]:
        lang = params.lang
        ra, dec = params.ra, params.dec
        has_position = ra is not None and dec is not None
        if not params.object_name and not has_position:
            return self.error(self.localize(
                lang,
                "Please provide object_name or ra/dec coordinates.",
                "请提供 object_name 或 ra/dec 坐标。",
            ))

        try:
            if not has_position:
                position = await self.resolve_name(params.object_name)
                if position is None:
                    return self.error(self.localize(
                        lang,
                        f"Could not resolve object name: {params.object_name}",
                        f"无法解析天体名称: {params.object_name}",
                    ))
                ra, dec = position['ra'], position['dec']

            data = await self.invoke('Mast.Caom.Cone', {
                'ra': ra,
                'dec': dec,
                'radius': to_degrees(params.radius, 'arcmin'),
                'pagesize': params.max_results,
                'page': 1,
            })
        except QUERY_ERRORS + (ValueError,) as e:
            return self.query_failed(e, lang)

        rows = (data.get('data') or data.get('Data') or []) if isinstance(data, dict) else []
        suffix = f": {params.object_name}" if params.object_name else ''
        title = self.localize(lang, f"MAST Query Result{suffix}", f"MAST 查询结果{suffix}")
        return self.success(format_tap_result(rows_to_result(rows), title))
