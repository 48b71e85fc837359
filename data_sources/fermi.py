"""
Fermi-LAT Data Source

Point-source catalogue (4FGL-DR4) searches and raw ADQL against the Fermi
LAT TAP service. The service is slow, so queries get the long timeout.
"""

from typing import Any, Dict, Optional

from pydantic import Field

from config import LONG_TAP_TIMEOUT
from data_io.adql import adql_literal, cone_condition
from .base import BaseDataSource, QueryParams

FERMI_TAP = 'https://fermi.gsfc.nasa.gov/ssc/data/access/lat/tap/sync'
FERMI_CATALOG_TABLE = 'fermilat.4fgl_dr4'

FERMI_COLUMNS = (
    'source_name', 'ra', 'dec', 'glon', 'glat', 'flux_100mev', 'flux_1000mev',
    'flux_10000mev', 'flux_100000mev', 'spectral_index', 'variability',
)

SLOW_SERVICE_NOTE_EN = "Note: Fermi LAT TAP service may take longer or be temporarily unavailable."
SLOW_SERVICE_NOTE_ZH = "注意：Fermi LAT TAP 服务可能需要更长时间或暂时不可用。"


class FermiCatalogQuery(QueryParams):
    target: Optional[str] = Field(None, description='Target name (e.g., "Crab Nebula", "3C 273")')
    ra: Optional[float] = Field(None, ge=0, le=360, description="Right Ascension in degrees (0-360)")
    dec: Optional[float] = Field(None, ge=-90, le=90, description="Declination in degrees (-90 to 90)")
    radius: float = Field(5, gt=0, description="Search radius in degrees")
    min_energy: Optional[float] = Field(None, ge=0, description="Minimum energy in MeV (e.g., 100)")
    max_energy: Optional[float] = Field(None, ge=0, description="Maximum energy in MeV (e.g., 100000)")
    max_results: int = Field(50, ge=1, description="Maximum number of results")


class FermiAdqlQuery(QueryParams):
    adql: str = Field(..., min_length=1, description="ADQL query string")
    max_results: int = Field(100, ge=1, description="Maximum number of results")


class FermiDataSource(BaseDataSource):
    """Fermi Large Area Telescope catalogue service."""

    tap_endpoint = FERMI_TAP

    def __init__(self, client=None):
        super().__init__(client=client, source_name="fermi")

    @staticmethod
    def build_catalog_adql(params: FermiCatalogQuery) -> str:
        if params.ra is not None and params.dec is not None:
            conditions = [cone_condition(params.ra, params.dec, params.radius)]
        else:
            conditions = [f"source_name = {adql_literal(params.target)}"]

        # Energies are given in MeV, the table stores GeV
        if params.min_energy is not None:
            conditions.append(f"energy_gev >= {params.min_energy / 1000}")
        if params.max_energy is not None:
            conditions.append(f"energy_gev <= {params.max_energy / 1000}")

        return (
            f"SELECT TOP {params.max_results} {', '.join(FERMI_COLUMNS)} "
            f"FROM {FERMI_CATALOG_TABLE} WHERE {' AND '.join(conditions)}"
        )

    async def query_catalog(self, params: FermiCatalogQuery) -> Dict[str, Any]:
        has_position = params.ra is not None and params.dec is not None
        if not params.target and not has_position:
            return self.error(self.localize(
                params.lang,
                "Please provide a target name or coordinates (ra + dec)",
                "请提供目标名称或坐标 (ra + dec)",
            ))

        label = params.target if params.target else f"({params.ra}, {params.dec})"
        title = self.localize(params.lang, f"Fermi LAT Catalog Query: {label}", f"Fermi LAT 目录查询: {label}")
        return await self.tap_search(
            self.build_catalog_adql(params), title, params.lang,
            maxrec=params.max_results, timeout=LONG_TAP_TIMEOUT,
            note_en=SLOW_SERVICE_NOTE_EN, note_zh=SLOW_SERVICE_NOTE_ZH,
        )

    async def run_adql(self, params: FermiAdqlQuery) -> Dict[str, Any]:
        title = self.localize(params.lang, "Fermi LAT ADQL Query Result", "Fermi LAT ADQL 查询结果")
        return await self.tap_search(
            params.adql, title, params.lang,
            maxrec=params.max_results, timeout=LONG_TAP_TIMEOUT,
        )
