"""
IRSA Data Source

Catalogue cone searches and raw ADQL against the NASA/IPAC Infrared Science
Archive TAP service.
"""

from typing import Any, Dict

from pydantic import Field

from data_io.adql import cone_condition, to_degrees, validate_table_name
from .base import BaseDataSource, QueryParams

IRSA_TAP = 'https://irsa.ipac.caltech.edu/TAP/sync'


class IrsaQuery(QueryParams):
    ra: float = Field(..., ge=0, le=360, description="Right Ascension in degrees")
    dec: float = Field(..., ge=-90, le=90, description="Declination in degrees")
    catalog: str = Field('allwise_p3as_psd', description='IRSA catalog table name (e.g. "allwise_p3as_psd", "fp_psc" for 2MASS)')
    radius: float = Field(10, gt=0, description="Search radius in arcseconds")
    max_results: int = Field(50, ge=1, description="Maximum number of results")


class IrsaAdqlQuery(QueryParams):
    adql: str = Field(..., min_length=1, description="ADQL query string")
    max_results: int = Field(100, ge=1, description="Maximum number of results")


class IrsaDataSource(BaseDataSource):
    """NASA/IPAC Infrared Science Archive."""

    tap_endpoint = IRSA_TAP

    def __init__(self, client=None):
        super().__init__(client=client, source_name="irsa")

    async def query_catalog(self, params: IrsaQuery) -> Dict[str, Any]:
        try:
            catalog = validate_table_name(params.catalog)
        except ValueError as e:
            return self.error(str(e))

        radius_deg = to_degrees(params.radius, 'arcsec')
        adql = (
            f"SELECT TOP {params.max_results} * FROM {catalog} "
            f"WHERE {cone_condition(params.ra, params.dec, radius_deg)}"
        )
        title = self.localize(params.lang, f"IRSA Query Result ({catalog})", f"IRSA 查询结果 ({catalog})")
        return await self.tap_search(adql, title, params.lang, maxrec=params.max_results)

    async def run_adql(self, params: IrsaAdqlQuery) -> Dict[str, Any]:
        title = self.localize(params.lang, "IRSA TAP Query Result", "IRSA TAP 查询结果")
        return await self.tap_search(params.adql, title, params.lang, maxrec=params.max_results)
