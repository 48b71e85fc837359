"""
Gaia Data Source

Cone searches on the Gaia DR3 source catalogue via the ESA Gaia archive TAP
service.
"""

from typing import Any, Dict

from pydantic import Field

from data_io.adql import cone_condition
from .base import BaseDataSource, QueryParams

GAIA_TAP = 'https://gea.esac.esa.int/tap-server/tap/sync'
GAIA_SOURCE_TABLE = 'gaiadr3.gaia_source'

GAIA_COLUMNS = (
    'source_id', 'ra', 'dec', 'parallax', 'pmra', 'pmdec',
    'phot_g_mean_mag', 'bp_rp', 'radial_velocity', 'ruwe',
)


class GaiaConeSearch(QueryParams):
    ra: float = Field(..., ge=0, le=360, description="Right Ascension (degrees)")
    dec: float = Field(..., ge=-90, le=90, description="Declination (degrees)")
    radius: float = Field(1.0, gt=0, description="Search radius (degrees)")
    max_results: int = Field(50, ge=1, description="Maximum number of results")


class GaiaDataSource(BaseDataSource):
    """ESA Gaia archive."""

    tap_endpoint = GAIA_TAP

    def __init__(self, client=None):
        super().__init__(client=client, source_name="gaia")

    async def cone_search(self, params: GaiaConeSearch) -> Dict[str, Any]:
        adql = (
            f"SELECT TOP {params.max_results} {', '.join(GAIA_COLUMNS)} "
            f"FROM {GAIA_SOURCE_TABLE} "
            f"WHERE {cone_condition(params.ra, params.dec, params.radius)}"
        )
        title = self.localize(
            params.lang,
            f"Gaia DR3 Cone Search: ({params.ra}, {params.dec}), r={params.radius}°",
            f"Gaia DR3 锥形搜索: ({params.ra}, {params.dec}), r={params.radius}°",
        )
        return await self.tap_search(adql, title, params.lang, maxrec=params.max_results)
