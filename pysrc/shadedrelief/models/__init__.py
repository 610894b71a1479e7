"""Data models for shadedrelief.

Modules
-------
grid
    ``ElevationGrid``: elevation samples, cell size, georeferencing.
config
    ``ShadingParameters``, ``ShadingMethod``, ``LightingDirection``.
tiles
    ``TileSpec``: tile geometry for large-raster processing.
results
    ``ShadedRelief``: output shading and its 8-bit display rescale.
extent
    ``RegionExtent``: lat/lon rectangle from an ROI session.
"""

from .config import LightingDirection, ShadingMethod, ShadingParameters
from .extent import RegionExtent
from .grid import ElevationGrid
from .results import ShadedRelief
from .tiles import TileSpec

__all__ = [
    "ElevationGrid",
    "LightingDirection",
    "ShadingMethod",
    "ShadingParameters",
    "TileSpec",
    "ShadedRelief",
    "RegionExtent",
]
