"""
SDSS Data Source

Photometric and spectroscopic lookups on SDSS DR18 through the SkyServer SQL
search web service.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import Field

from data_io.adql import adql_literal
from data_io.parsers import TabularResult
from data_io.preview import format_tap_result
from .base import QUERY_ERRORS, BaseDataSource, QueryParams

SDSS_SQL_SEARCH = 'https://skyserver.sdss.org/dr18/SkyServerWS/SearchTools/SqlSearch'

# fGetNearbyObjEq refuses radii above 3 arcminutes
MAX_CONE_RADIUS_ARCMIN = 3.0


class SdssQuery(QueryParams):
    query_type: Literal['cone', 'specobjid', 'plate_mjd_fiberid'] = Field(..., description="Query type")
    ra: Optional[float] = Field(None, ge=0, le=360, description="Right Ascension in degrees (cone search)")
    dec: Optional[float] = Field(None, ge=-90, le=90, description="Declination in degrees (cone search)")
    radius: float = Field(2, gt=0, description="Search radius in arcminutes (cone search, max 3)")
    specobjid: Optional[int] = Field(None, description="Spectroscopic object ID")
    plate: Optional[int] = Field(None, description="Plate number")
    mjd: Optional[int] = Field(None, description="Modified Julian Date")
    fiberid: Optional[int] = Field(None, description="Fiber ID")
    objtype: Optional[str] = Field(None, description="Filter by object type (STAR, GALAXY, QSO), specobjid/plate queries only")
    max_results: int = Field(25, ge=1, description="Maximum results")


class SdssDataSource(BaseDataSource):
    """Sloan Digital Sky Survey SkyServer."""

    def __init__(self, client=None):
        super().__init__(client=client, source_name="sdss")

    def build_sql(self, params: SdssQuery) -> Optional[str]:
        """SkyServer SQL for the request, or None when required inputs are missing."""
        top = params.max_results
        objtype = f" AND class = {adql_literal(params.objtype.upper())}" if params.objtype else ''

        if params.query_type == 'cone':
            if params.ra is None or params.dec is None:
                return None
            radius = min(params.radius, MAX_CONE_RADIUS_ARCMIN)
            return (
                f"SELECT TOP {top} p.objID, p.ra, p.dec, p.u, p.g, p.r, p.i, p.z, p.type, p.clean "
                f"FROM PhotoObj p JOIN dbo.fGetNearbyObjEq({params.ra}, {params.dec}, {radius}) n "
                f"ON p.objID = n.objID"
            )
        if params.query_type == 'specobjid':
            if params.specobjid is None:
                return None
            return f"SELECT TOP {top} * FROM SpecObj WHERE specobjid = {params.specobjid}{objtype}"

        if params.plate is None or params.mjd is None or params.fiberid is None:
            return None
        return (
            f"SELECT TOP {top} * FROM SpecObj "
            f"WHERE plate = {params.plate} AND mjd = {params.mjd} AND fiberid = {params.fiberid}{objtype}"
        )

    async def query(self, params: SdssQuery) -> Dict[str, Any]:
        lang = params.lang
        sql = self.build_sql(params)
        if sql is None:
            messages = {
                'cone': ("Cone search requires ra and dec parameters", "锥形搜索需要 ra 和 dec 参数"),
                'specobjid': ("specobjid parameter is required", "需要 specobjid 参数"),
                'plate_mjd_fiberid': ("plate, mjd, and fiberid parameters are all required", "需要 plate、mjd 和 fiberid 参数"),
            }
            return self.error(self.localize(lang, *messages[params.query_type]))

        try:
            data = await self.fetch_json(SDSS_SQL_SEARCH, params={'cmd': sql, 'format': 'json'})
        except QUERY_ERRORS + (ValueError,) as e:
            return self.query_failed(e, lang)

        rows = []
        if isinstance(data, list) and data and isinstance(data[0], dict):
            rows = data[0].get('Rows') or []
        columns = list(rows[0].keys()) if rows else []
        result = TabularResult.from_records(columns, rows[:params.max_results])

        title = self.localize(lang, "SDSS DR18 Query Results", "SDSS DR18 查询结果")
        return self.success(format_tap_result(result, title))
