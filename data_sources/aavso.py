"""
AAVSO Data Source

Variable star lookups in the AAVSO International Variable Star Index (VSX).
"""

import json
import re
from typing import Any, Dict, Literal, Optional

from pydantic import Field

from data_io.parsers import TabularResult, parse_votable
from data_io.preview import format_tap_result
from .base import QUERY_ERRORS, BaseDataSource, QueryParams

AAVSO_VSX = 'https://www.aavso.org/vsx/index.php'

_HTML_TAG = re.compile(r'<[^>]+>')


class AavsoStarQuery(QueryParams):
    star_name: str = Field(..., min_length=1, description='Variable star name or identifier (e.g., "Mira", "Delta Cephei", "SX Uma")')


class AavsoRegionQuery(QueryParams):
    ra: float = Field(..., ge=0, le=360, description="Right Ascension in degrees (0-360)")
    dec: float = Field(..., ge=-90, le=90, description="Declination in degrees (-90 to 90)")
    radius: float = Field(10, gt=0, description="Search radius in arcminutes")
    max_magnitude: Optional[float] = Field(None, description="Only stars brighter than this magnitude")
    format: Literal['votable', 'json', 'xml'] = Field('votable', description="Response format")


def strip_html(result: TabularResult) -> TabularResult:
    """Remove markup VSX embeds in some cell values."""
    records = []
    for row in result.rows:
        records.append({
            key: (_HTML_TAG.sub('', value).strip() if isinstance(value, str) else value)
            for key, value in row.items()
        })
    return TabularResult.from_records(result.columns, records)


def parse_vsx_json(text: str) -> TabularResult:
    """Parse the VSX JSON list ({"VSXObjects": {"VSXObject": [...]}})."""
    try:
        data = json.loads(text)
    except ValueError:
        return TabularResult.empty()
    container = data.get('VSXObjects') if isinstance(data, dict) else None
    objects = container.get('VSXObject') if isinstance(container, dict) else None
    if isinstance(objects, dict):
        objects = [objects]
    if not isinstance(objects, list):
        return TabularResult.empty()
    objects = [obj for obj in objects if isinstance(obj, dict)]
    if not objects:
        return TabularResult.empty()
    columns = list(objects[0].keys())
    return TabularResult.from_records(columns, ({c: obj.get(c) for c in columns if c in obj} for obj in objects))


class AavsoDataSource(BaseDataSource):
    """AAVSO Variable Star Index."""

    def __init__(self, client=None):
        super().__init__(client=client, source_name="aavso")

    async def query_star(self, params: AavsoStarQuery) -> Dict[str, Any]:
        try:
            text = await self.fetch_text(AAVSO_VSX, params={'view': 'query.votable', 'ident': params.star_name})
        except QUERY_ERRORS as e:
            return self.query_failed(e, params.lang)

        title = self.localize(
            params.lang,
            f"AAVSO Variable Star Query: {params.star_name}",
            f"AAVSO 变星查询: {params.star_name}",
        )
        return self.success(format_tap_result(strip_html(parse_votable(text)), title))

    async def query_region(self, params: AavsoRegionQuery) -> Dict[str, Any]:
        query = {
            'view': 'api.list',
            'ra': str(params.ra),
            'dec': f"+{params.dec}" if params.dec >= 0 else str(params.dec),
            'radius': str(params.radius / 60),
            'format': params.format,
        }
        if params.max_magnitude is not None:
            query['tomag'] = str(params.max_magnitude)

        try:
            text = await self.fetch_text(AAVSO_VSX, params=query)
        except QUERY_ERRORS as e:
            return self.query_failed(e, params.lang)

        # 'votable' and 'xml' both come back as VOTable documents
        result = parse_vsx_json(text) if params.format == 'json' else parse_votable(text)
        title = self.localize(
            params.lang,
            f"AAVSO Regional Query: ({params.ra}, {params.dec})",
            f"AAVSO 区域查询: ({params.ra}, {params.dec})",
        )
        return self.success(format_tap_result(strip_html(result), title))
