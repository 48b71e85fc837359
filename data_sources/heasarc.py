"""
HEASARC Data Source

Mission catalogue searches on the High Energy Astrophysics Science Archive
Research Center TAP service. Object names are resolved through SIMBAD first;
HEASARC is then queried with a cone around the resolved position.
"""

import logging
from typing import Any, Dict, Optional

from pydantic import Field

from data_io.adql import cone_condition, to_degrees, validate_table_name
from data_io.tap import TapFormat
from .base import QUERY_ERRORS, BaseDataSource, QueryParams
from .simbad import SimbadDataSource

logger = logging.getLogger(__name__)

HEASARC_TAP = 'https://heasarc.gsfc.nasa.gov/xamin/vo/tap/sync'


class HeasarcQuery(QueryParams):
    object_name: str = Field(..., min_length=1, description='Object name (e.g. "Crab Nebula", "Cyg X-1")')
    mission: str = Field('xmmmaster', description='Mission/catalog table (e.g. "xmmmaster", "chanmaster", "swiftmastr", "rosmaster")')
    radius: float = Field(10, gt=0, description="Search radius in arcminutes")
    max_results: int = Field(50, ge=1, description="Maximum number of results")


class HeasarcDataSource(BaseDataSource):
    """
    HEASARC mission catalogues.

    Results are requested as pipe-delimited text; the service's JSON and CSV
    encodings are unreliable.
    """

    tap_endpoint = HEASARC_TAP

    def __init__(self, client=None, resolver: Optional[SimbadDataSource] = None):
        super().__init__(client=client, source_name="heasarc")
        self.resolver = resolver or SimbadDataSource(client=client)

    async def query_mission(self, params: HeasarcQuery) -> Dict[str, Any]:
        try:
            mission = validate_table_name(params.mission)
        except ValueError as e:
            return self.error(str(e))

        # Step 1: name -> position. Any failure here ends the call.
        try:
            position = await self.resolver.resolve_name(params.object_name)
        except QUERY_ERRORS as e:
            return self.query_failed(e, params.lang)
        if position is None:
            return self.error(self.localize(
                params.lang,
                f"Could not resolve object name: {params.object_name}",
                f"无法解析天体名称: {params.object_name}",
            ))
        ra, dec = position

        # Step 2: cone search on the mission table
        radius_deg = to_degrees(params.radius, 'arcmin')
        adql = (
            f"SELECT TOP {params.max_results} * FROM {mission} "
            f"WHERE {cone_condition(ra, dec, radius_deg)}"
        )
        title = self.localize(
            params.lang,
            f"HEASARC Query Result: {params.object_name} ({mission})",
            f"HEASARC 查询结果: {params.object_name} ({mission})",
        )
        return await self.tap_search(adql, title, params.lang, fmt=TapFormat.TEXT, maxrec=params.max_results)
