"""
ESASky Data Source

Observation searches across ESA and partner missions through the ESASky TAP
service.
"""

from types import MappingProxyType
from typing import Any, Dict

from pydantic import Field

from data_io.adql import cone_condition, to_degrees
from data_io.tap import TapFormat
from .base import BaseDataSource, QueryParams

ESASKY_TAP = 'https://sky.esa.int/esasky-tap/tap/sync'

MISSION_TABLES = MappingProxyType({
    'xmm': 'observations.mv_v_v_xsa_esasky_photo_fdw_fdw',
    'hst': 'observations.mv_v_v_hst_mmi_observation_fdw_fdw',
    'alma': 'observations.mv_v_v_alma_obs_fdw',
    'jwst': 'observations.mv_v_jwst_obs_fdw',
    'chandra': 'observations.mv_chandra_obs_photo_fdw',
    'herschel': 'observations.mv_v_v_hsa_esasky_photo_fdw_fdw',
    'spitzer': 'observations.mv_spitzer_irac_fdw',
    'suzaku': 'observations.mv_suzaku_data_fdw',
    'cheops': 'observations.mv_cheops_obs_fdw',
    'xmm-om': 'observations.mv_v_esasky_xmm_om_uv_fdw',
    'iso': 'observations.mv_iso_spectra_fdw',
    'iue': 'observations.mv_iue_spectra_fdw',
    'akari': 'observations.mv_akari_irc_fdw',
})
DEFAULT_MISSION = 'xmm'

SUPPORTED_MISSIONS = ', '.join(MISSION_TABLES)


class EsaskyQuery(QueryParams):
    ra: float = Field(..., ge=0, le=360, description="Right Ascension in degrees (0-360)")
    dec: float = Field(..., ge=-90, le=90, description="Declination in degrees (-90 to 90)")
    radius: float = Field(10, gt=0, description="Search radius in arcminutes")
    mission: str = Field(DEFAULT_MISSION, description=f"Mission name: {SUPPORTED_MISSIONS} (unknown names fall back to XMM)")
    max_results: int = Field(50, ge=1, description="Maximum number of results")


class EsaskyDataSource(BaseDataSource):
    """ESASky, ESA's multi-mission sky explorer."""

    tap_endpoint = ESASKY_TAP

    def __init__(self, client=None):
        super().__init__(client=client, source_name="esasky")

    async def query_observations(self, params: EsaskyQuery) -> Dict[str, Any]:
        mission = params.mission.lower()
        if mission not in MISSION_TABLES:
            mission = DEFAULT_MISSION
        table = MISSION_TABLES[mission]

        radius_deg = to_degrees(params.radius, 'arcmin')
        adql = (
            f"SELECT TOP {params.max_results} observation_id, ra_deg, dec_deg, target_name, start_time, end_time "
            f"FROM {table} WHERE {cone_condition(params.ra, params.dec, radius_deg, 'ra_deg', 'dec_deg')}"
        )
        title = self.localize(
            params.lang,
            f"ESASky Query Result: ({params.ra}, {params.dec}) [{mission.upper()}]",
            f"ESASky 查询结果: ({params.ra}, {params.dec}) [{mission.upper()}]",
        )
        return await self.tap_search(adql, title, params.lang, fmt=TapFormat.CSV, maxrec=params.max_results)
