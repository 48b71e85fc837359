"""
VizieR Data Source

Catalog queries through the TAPVizieR service.
"""

from typing import Any, Dict, Optional

from pydantic import Field

from data_io.adql import cone_condition, quote_identifier
from .base import BaseDataSource, QueryParams

VIZIER_TAP = 'https://tapvizier.cds.unistra.fr/TAPVizieR/tap/sync'


class VizierQuery(QueryParams):
    catalog: str = Field(..., min_length=1, description='VizieR table name (e.g., "I/239/hip_main", "VII/118/ngc2000")')
    ra: Optional[float] = Field(None, ge=0, le=360, description="Right Ascension (degrees)")
    dec: Optional[float] = Field(None, ge=-90, le=90, description="Declination (degrees)")
    radius: float = Field(0.1, gt=0, description="Search radius (degrees)")
    max_results: int = Field(50, ge=1, description="Maximum number of results")


class VizierDataSource(BaseDataSource):
    """
    VizieR catalogue service (CDS).

    Cone searches use the J2000 position columns (RAJ2000, DEJ2000) that
    VizieR adds to every catalogue table.
    """

    tap_endpoint = VIZIER_TAP

    def __init__(self, client=None):
        super().__init__(client=client, source_name="vizier")

    async def query_catalog(self, params: VizierQuery) -> Dict[str, Any]:
        has_ra, has_dec = params.ra is not None, params.dec is not None
        if has_ra != has_dec:
            return self.error(self.localize(
                params.lang,
                "Cone search requires both ra and dec",
                "锥形搜索需要同时提供 ra 和 dec",
            ))

        adql = f"SELECT TOP {params.max_results} * FROM {quote_identifier(params.catalog)}"
        if has_ra:
            adql += " WHERE " + cone_condition(
                params.ra, params.dec, params.radius,
                ra_column='RAJ2000', dec_column='DEJ2000',
            )

        title = self.localize(
            params.lang,
            f"VizieR Query Result: {params.catalog}",
            f"VizieR 查询结果: {params.catalog}",
        )
        return await self.tap_search(adql, title, params.lang, maxrec=params.max_results)
