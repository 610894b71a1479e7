"""shadedrelief - Tiled hillshading for elevation rasters of any size.

Computes shaded relief from a single-band digital elevation model with
either a single light source (surface-normal shading) or four oblique
lights (multidirectional oblique weighting). Rasters above a size
threshold are processed as halo-padded tiles on a thread pool; a
numba-compiled kernel is used for surface-normal shading when installed.

Quick start::

    import shadedrelief

    grid = shadedrelief.ElevationGrid(samples=dem_array, cell_size=30.0)
    relief = shadedrelief.compute_hillshade(
        grid, shadedrelief.ShadingParameters(azimuth=315, altitude=45, exaggeration=2.0)
    )
    image = relief.to_uint8()

I/O helpers::

    grid = shadedrelief.io.load_elevation("dem.tif")
    shadedrelief.compute_hillshade(grid).to_geotiff("hillshade.tif")
"""

import logging
from importlib.metadata import PackageNotFoundError, version

logger = logging.getLogger(__name__)

try:
    __version__ = version("shadedrelief")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # Fallback for source checkouts without metadata

from . import io, progress, roi  # noqa: E402
from .api import compute_hillshade, hillshade, validate_inputs  # noqa: E402
from .config import load_params  # noqa: E402
from .errors import (  # noqa: E402
    AccelerationUnavailable,
    ComputationCancelled,
    ConfigurationError,
    InvalidGridData,
    InvalidTransition,
    ShadedReliefError,
)
from .models import (  # noqa: E402
    ElevationGrid,
    LightingDirection,
    RegionExtent,
    ShadedRelief,
    ShadingMethod,
    ShadingParameters,
    TileSpec,
)
from .native import is_native_available  # noqa: E402
from .tiling import generate_tiles  # noqa: E402


def get_compute_backend() -> str:
    """
    Backend used for surface-normal shading in this process.

    Returns:
        "native" if the compiled kernel is available, "portable" otherwise.
    """
    return "native" if is_native_available() else "portable"


__all__ = [
    # Version
    "__version__",
    # Core API
    "ElevationGrid",
    "ShadingParameters",
    "ShadingMethod",
    "LightingDirection",
    "ShadedRelief",
    "RegionExtent",
    "compute_hillshade",
    "hillshade",
    "validate_inputs",
    "load_params",
    # Tiling
    "TileSpec",
    "generate_tiles",
    # Errors
    "ShadedReliefError",
    "ConfigurationError",
    "InvalidGridData",
    "AccelerationUnavailable",
    "ComputationCancelled",
    "InvalidTransition",
    # Utility modules
    "io",
    "progress",
    "roi",
    # Backend
    "is_native_available",
    "get_compute_backend",
]
