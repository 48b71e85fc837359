"""
ESO Data Source

Raw-frame searches on the ESO (European Southern Observatory) science
archive by target, instrument or position.
"""

from typing import Any, Dict, Optional

from pydantic import Field

from data_io.adql import adql_literal, cone_condition, to_degrees
from .base import BaseDataSource, QueryParams

ESO_TAP = 'http://archive.eso.org/tap_obs/sync'

ESO_COLUMNS = ('target', 'ra', 'dec', 'instrument', 'filter', 'exptime', 'date_obs', 'prog_id', 'dp_id')


class EsoQuery(QueryParams):
    target: Optional[str] = Field(None, description='Target object name (e.g. "NGC 1068")')
    instrument: Optional[str] = Field(None, description='Instrument name (e.g. "UVES", "XSHOOTER", "MUSE")')
    ra: Optional[float] = Field(None, ge=0, le=360, description="Right Ascension in degrees")
    dec: Optional[float] = Field(None, ge=-90, le=90, description="Declination in degrees")
    radius: float = Field(10, gt=0, description="Search radius in arcminutes")
    max_results: int = Field(50, ge=1, description="Maximum number of results")


class EsoDataSource(BaseDataSource):
    """ESO science archive."""

    tap_endpoint = ESO_TAP

    def __init__(self, client=None):
        super().__init__(client=client, source_name="eso")

    async def query_archive(self, params: EsoQuery) -> Dict[str, Any]:
        conditions = []
        if params.target:
            conditions.append(f"target = {adql_literal(params.target)}")
        if params.instrument:
            conditions.append(f"instrument = {adql_literal(params.instrument)}")
        if params.ra is not None and params.dec is not None:
            conditions.append(cone_condition(params.ra, params.dec, to_degrees(params.radius, 'arcmin')))

        if not conditions:
            return self.error(self.localize(
                params.lang,
                "Please provide at least one search criterion (target, instrument, or coordinates)",
                "请至少提供一个查询条件 (target, instrument, 或坐标)",
            ))

        adql = (
            f"SELECT TOP {params.max_results} {', '.join(ESO_COLUMNS)} "
            f"FROM dbo.raw WHERE {' AND '.join(conditions)}"
        )
        title = self.localize(params.lang, "ESO Archive Query Result", "ESO 档案查询结果")
        return await self.tap_search(adql, title, params.lang, maxrec=params.max_results)
