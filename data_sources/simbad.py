"""
SIMBAD Data Source

Object lookups and cone searches against the SIMBAD TAP service. Also
provides name-to-coordinate resolution for other data sources.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from pydantic import Field

from data_io.adql import adql_literal, cone_condition, to_degrees
from .base import BaseDataSource, QueryParams

logger = logging.getLogger(__name__)

SIMBAD_TAP = 'https://simbad.cds.unistra.fr/simbad/sim-tap/sync'

OBJECT_COLUMNS = (
    'basic.main_id', 'basic.ra', 'basic.dec', 'basic.otype', 'basic.sp_type',
    'basic.rvz_redshift', 'basic.rvz_radvel', 'basic.plx_value',
    'basic.pmra', 'basic.pmdec', 'basic.galdim_majaxis', 'basic.galdim_minaxis',
)


class SimbadQuery(QueryParams):
    identifier: str = Field(..., min_length=1, description='Object identifier (e.g., "M31", "NGC 1234")')


class SimbadConeSearch(QueryParams):
    ra: float = Field(..., ge=0, le=360, description="Right Ascension in degrees (0-360)")
    dec: float = Field(..., ge=-90, le=90, description="Declination in degrees (-90 to 90)")
    radius: float = Field(1.0, gt=0, description="Search radius in arcminutes")
    max_results: int = Field(50, ge=1, description="Maximum number of results")


class SimbadDataSource(BaseDataSource):
    """SIMBAD astronomical database (CDS, Strasbourg)."""

    tap_endpoint = SIMBAD_TAP

    def __init__(self, client=None):
        super().__init__(client=client, source_name="simbad")

    @staticmethod
    def identifier_adql(identifier: str, top: int = 1) -> str:
        return (
            f"SELECT TOP {top} {', '.join(OBJECT_COLUMNS)} "
            f"FROM basic JOIN ident ON ident.oidref = basic.oid "
            f"WHERE ident.id = {adql_literal(identifier)}"
        )

    async def resolve_name(self, name: str) -> Optional[Tuple[float, float]]:
        """
        Resolve an object name to ICRS (ra, dec) in degrees.

        Returns:
            (ra, dec), or None when SIMBAD does not know the name

        Raises:
            RequestTimeout, HttpError: the lookup itself failed
        """
        adql = (
            f"SELECT TOP 1 basic.ra, basic.dec "
            f"FROM basic JOIN ident ON ident.oidref = basic.oid "
            f"WHERE ident.id = {adql_literal(name)}"
        )
        result = await self.run_tap(adql, maxrec=1)
        if not result.rows:
            logger.info(f"SIMBAD could not resolve '{name}'")
            return None

        row = result.rows[0]
        try:
            ra, dec = float(row.get('ra')), float(row.get('dec'))
        except (TypeError, ValueError):
            logger.warning(f"SIMBAD returned no usable position for '{name}'")
            return None
        logger.info(f"Resolved '{name}' to ({ra}, {dec})")
        return ra, dec

    async def query_object(self, params: SimbadQuery) -> Dict[str, Any]:
        """Look up one object by any of its identifiers."""
        title = self.localize(
            params.lang,
            f"SIMBAD Query Result: {params.identifier}",
            f"SIMBAD 查询结果: {params.identifier}",
        )
        return await self.tap_search(self.identifier_adql(params.identifier), title, params.lang, maxrec=1)

    async def cone_search(self, params: SimbadConeSearch) -> Dict[str, Any]:
        radius_deg = to_degrees(params.radius, 'arcmin')
        adql = (
            f"SELECT TOP {params.max_results} main_id, ra, dec, otype, sp_type, rvz_redshift "
            f"FROM basic WHERE {cone_condition(params.ra, params.dec, radius_deg)}"
        )
        title = self.localize(
            params.lang,
            f"SIMBAD Cone Search: ({params.ra}, {params.dec})",
            f"SIMBAD 锥形搜索: ({params.ra}, {params.dec})",
        )
        return await self.tap_search(adql, title, params.lang, maxrec=params.max_results)
