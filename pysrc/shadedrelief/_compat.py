"""Raster backend selection for :mod:`shadedrelief.io`.

Shading itself only needs numpy; reading and writing GeoTIFFs goes
through rasterio (with pyproj for CRS handling) or GDAL's Python
bindings. The choice is made once at import:

1. ``SHADEDRELIEF_USE_GDAL=1`` forces GDAL and fails loudly without it.
2. Inside a QGIS / OSGeo4W interpreter GDAL is tried first, because
   rasterio wheels there clash with the host's numpy build.
3. Everywhere else rasterio is tried first.

Flags
-----
GDAL_ENV : bool
    Raster I/O uses GDAL.
RASTERIO_AVAILABLE : bool
    rasterio and pyproj imported successfully (and were chosen).
GDAL_AVAILABLE : bool
    ``osgeo.gdal`` imported successfully (and was chosen).

With no backend all three are False; :mod:`shadedrelief.io` then raises
ImportError on first use.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import NamedTuple

logger = logging.getLogger(__name__)

_HOST_ENV_VARS = ("QGIS_PREFIX_PATH", "QGIS_DEBUG", "OSGEO4W_ROOT")


class RasterBackend(NamedTuple):
    gdal_env: bool
    rasterio_available: bool
    gdal_available: bool


_RASTERIO = RasterBackend(gdal_env=False, rasterio_available=True, gdal_available=False)
_GDAL = RasterBackend(gdal_env=True, rasterio_available=False, gdal_available=True)
_NONE = RasterBackend(gdal_env=False, rasterio_available=False, gdal_available=False)


def in_osgeo_environment() -> bool:
    """True when running inside a QGIS or OSGeo4W Python."""
    if any(name in sys.modules for name in ("qgis", "qgis.core")):
        return True
    if any(var in os.environ for var in _HOST_ENV_VARS):
        return True
    exe = sys.executable.lower()
    return "osgeo4w" in exe or "qgis" in exe


def _rasterio_importable() -> bool:
    try:
        import pyproj  # noqa: F401
        import rasterio  # noqa: F401
        from rasterio.windows import from_bounds  # noqa: F401
    except (ImportError, OSError, RuntimeError) as e:
        logger.debug(f"rasterio unavailable: {e}")
        return False
    return True


def _gdal_importable() -> bool:
    try:
        from osgeo import gdal  # noqa: F401
    except (ImportError, OSError) as e:
        logger.debug(f"GDAL unavailable: {e}")
        return False
    return True


def select_backend() -> RasterBackend:
    """Pick the raster backend for this interpreter."""
    if os.environ.get("SHADEDRELIEF_USE_GDAL", "").lower() in ("1", "true", "yes"):
        if not _gdal_importable():
            raise ImportError("SHADEDRELIEF_USE_GDAL is set but osgeo.gdal cannot be imported.")
        logger.info("Raster I/O: GDAL (forced by SHADEDRELIEF_USE_GDAL)")
        return _GDAL

    if in_osgeo_environment():
        order = ((_gdal_importable, _GDAL), (_rasterio_importable, _RASTERIO))
    else:
        order = ((_rasterio_importable, _RASTERIO), (_gdal_importable, _GDAL))

    for importable, backend in order:
        if importable():
            logger.debug(f"Raster I/O: {'GDAL' if backend.gdal_env else 'rasterio'}")
            return backend

    logger.warning("Neither rasterio nor GDAL can be imported; raster file I/O is unavailable.")
    return _NONE


GDAL_ENV, RASTERIO_AVAILABLE, GDAL_AVAILABLE = select_backend()
