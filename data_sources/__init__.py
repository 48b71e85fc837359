"""
Data Sources Package

Contains data access classes for the astronomical archives the server exposes.
"""

from .base import BaseDataSource, QueryParams
from .aavso import AavsoDataSource
from .ads import AdsDataSource
from .alma import AlmaDataSource
from .esasky import EsaskyDataSource
from .eso import EsoDataSource
from .exoplanet import ExoplanetDataSource
from .fermi import FermiDataSource
from .gaia import GaiaDataSource
from .heasarc import HeasarcDataSource
from .irsa import IrsaDataSource
from .jpl import JplDataSource
from .mast import MastDataSource
from .ned import NedDataSource
from .nist import NistDataSource
from .sdss import SdssDataSource
from .simbad import SimbadDataSource
from .splatalogue import SplatalogueDataSource
from .vizier import VizierDataSource

__all__ = [
    'BaseDataSource', 'QueryParams',
    'AavsoDataSource', 'AdsDataSource', 'AlmaDataSource', 'EsaskyDataSource',
    'EsoDataSource', 'ExoplanetDataSource', 'FermiDataSource', 'GaiaDataSource',
    'HeasarcDataSource', 'IrsaDataSource', 'JplDataSource', 'MastDataSource',
    'NedDataSource', 'NistDataSource', 'SdssDataSource', 'SimbadDataSource',
    'SplatalogueDataSource', 'VizierDataSource',
]
