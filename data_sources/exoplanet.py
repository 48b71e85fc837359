"""
Exoplanet Archive Data Source

Planetary-system parameters from the NASA Exoplanet Archive TAP service.
"""

from typing import Any, Dict, Optional

from pydantic import Field

from data_io.adql import adql_literal
from .base import BaseDataSource, QueryParams

EXOPLANET_TAP = 'https://exoplanetarchive.ipac.caltech.edu/TAP/sync'

PLANET_COLUMNS = (
    'pl_name', 'hostname', 'discoverymethod', 'disc_year', 'pl_orbper', 'pl_rade',
    'pl_bmasse', 'pl_eqt', 'st_teff', 'st_rad', 'st_mass', 'sy_dist',
)


class ExoplanetQuery(QueryParams):
    planet_name: Optional[str] = Field(None, description='Planet name (e.g. "Kepler-22 b", "TRAPPIST-1 e")')
    hostname: Optional[str] = Field(None, description='Host star name (e.g. "TRAPPIST-1", "Kepler-22")')
    max_results: int = Field(50, ge=1, description="Maximum number of results")


class ExoplanetDataSource(BaseDataSource):
    """NASA Exoplanet Archive (Planetary Systems table)."""

    tap_endpoint = EXOPLANET_TAP

    def __init__(self, client=None):
        super().__init__(client=client, source_name="exoplanet")

    async def query_planets(self, params: ExoplanetQuery) -> Dict[str, Any]:
        conditions = []
        if params.planet_name:
            conditions.append(f"pl_name = {adql_literal(params.planet_name)}")
        if params.hostname:
            conditions.append(f"hostname = {adql_literal(params.hostname)}")

        where = f" WHERE {' AND '.join(conditions)}" if conditions else ''
        adql = (
            f"SELECT TOP {params.max_results} {', '.join(PLANET_COLUMNS)} "
            f"FROM ps{where} ORDER BY disc_year DESC"
        )
        title = self.localize(params.lang, "Exoplanet Query Result", "系外行星查询结果")
        return await self.tap_search(adql, title, params.lang, maxrec=params.max_results)
