"""
ALMA Data Source

Observation searches on the ALMA science archive ObsCore table.
"""

from typing import Any, Dict, Optional

from pydantic import Field

from data_io.adql import cone_condition, escape_adql_string, to_degrees
from .base import BaseDataSource, QueryParams

ALMA_TAP = 'https://almascience.eso.org/tap/sync'

ALMA_COLUMNS = (
    'obs_id', 'target_name', 's_ra', 's_dec', 'band_list', 't_exptime',
    'spatial_resolution', 'proposal_id', 'obs_release_date',
)


class AlmaQuery(QueryParams):
    target: Optional[str] = Field(None, description='Target name, matched as a substring (e.g., "Orion")')
    ra: Optional[float] = Field(None, ge=0, le=360, description="Right Ascension (degrees)")
    dec: Optional[float] = Field(None, ge=-90, le=90, description="Declination (degrees)")
    radius: float = Field(1.0, gt=0, description="Search radius in arcminutes")
    max_results: int = Field(50, ge=1, description="Maximum number of results")


class AlmaDataSource(BaseDataSource):
    """Atacama Large Millimeter/submillimeter Array science archive."""

    tap_endpoint = ALMA_TAP

    def __init__(self, client=None):
        super().__init__(client=client, source_name="alma")

    async def query_observations(self, params: AlmaQuery) -> Dict[str, Any]:
        conditions = []
        if params.target:
            pattern = escape_adql_string(params.target.lower())
            conditions.append(f"LOWER(target_name) LIKE '%{pattern}%'")
        if params.ra is not None and params.dec is not None:
            radius_deg = to_degrees(params.radius, 'arcmin')
            conditions.append(cone_condition(params.ra, params.dec, radius_deg, 's_ra', 's_dec'))

        if not conditions:
            return self.error(self.localize(
                params.lang,
                "Please provide at least one search criterion (target, or ra and dec)",
                "请至少提供一个查询条件 (target 或 ra 和 dec)",
            ))

        adql = (
            f"SELECT TOP {params.max_results} {', '.join(ALMA_COLUMNS)} "
            f"FROM ivoa.obscore WHERE {' AND '.join(conditions)}"
        )
        title = self.localize(params.lang, "ALMA Archive Query Result", "ALMA 档案查询结果")
        return await self.tap_search(adql, title, params.lang, maxrec=params.max_results)
