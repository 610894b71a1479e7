"""Compiled surface-normal shading backend.

The kernel is JIT-compiled with numba and parallelised over rows. It
handles rasters of any size in one call, with the same edge replication
and the same dot product as the portable numpy path, so both produce the
same surface-normal shading.

numba is optional. :func:`is_native_available` probes for it once per
process; set ``SHADEDRELIEF_DISABLE_NATIVE=1`` to force the portable path.
"""

from __future__ import annotations

import math
import os
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import numpy as np

from .errors import AccelerationUnavailable
from .relief_logging import get_logger

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = get_logger(__name__)

BACKEND_NAME = "numba"


def _native_disabled_by_env() -> bool:
    return os.environ.get("SHADEDRELIEF_DISABLE_NATIVE", "").lower() in ("1", "true", "yes")


@lru_cache(maxsize=1)
def _load_kernel() -> Any:
    """Import the compiled kernel, or return None when numba cannot be imported."""
    try:
        import numba

        from ._numba_kernels import surfnorm_shade
    except (ImportError, OSError) as e:
        logger.debug(f"numba import failed: {e}")
        return None

    logger.debug(f"Native backend '{BACKEND_NAME}' {numba.__version__} loaded")
    return surfnorm_shade


def is_native_available() -> bool:
    """
    Check whether the compiled backend can be used in this process.

    Returns:
        False if disabled via ``SHADEDRELIEF_DISABLE_NATIVE`` or numba is missing.
    """
    if _native_disabled_by_env():
        return False
    return _load_kernel() is not None


def native_surface_normal_shade(
    elevation: NDArray[np.floating],
    azimuth_rad: float,
    altitude_rad: float,
    cell_size: float,
) -> NDArray[np.floating]:
    """
    Surface-normal shading of a whole raster with the compiled kernel.

    Args:
        elevation: 2-D heights, already multiplied by any exaggeration.
        azimuth_rad: Light azimuth in radians, already rotated by -90 degrees.
        altitude_rad: Light altitude in radians.
        cell_size: Ground distance per cell.

    Returns:
        Shading of the same shape as ``elevation``, float64 for float64
        input and float32 otherwise.

    Raises:
        AccelerationUnavailable: If the backend is disabled or not installed.
    """
    if _native_disabled_by_env():
        raise AccelerationUnavailable(BACKEND_NAME, "disabled by SHADEDRELIEF_DISABLE_NATIVE")
    kernel = _load_kernel()
    if kernel is None:
        raise AccelerationUnavailable(BACKEND_NAME, "numba is not installed")

    dtype = np.float64 if elevation.dtype == np.float64 else np.float32
    z = np.ascontiguousarray(elevation, dtype=dtype)
    out = np.empty(z.shape, dtype=dtype)
    sx = math.cos(altitude_rad) * math.cos(azimuth_rad)
    sy = math.cos(altitude_rad) * math.sin(azimuth_rad)
    sz = math.sin(altitude_rad)
    kernel(z, sx, sy, sz, 1.0 / cell_size, out)
    return out
