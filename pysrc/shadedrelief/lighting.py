"""
Lighting model: surface normals and shading.

Every function here takes a *window*: elevation samples surrounded by a
1-cell halo on all four sides. The halo is only read for derivatives, so
results have the window's interior shape (two rows and two columns fewer).
Use :func:`pad_edges` to build a window for a whole raster.

Coordinates: x runs along columns (east), y runs along rows (south),
z is height. Light vectors use the same frame.

No I/O and no state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from .models.config import MDOW_ALTITUDE, MDOW_AZIMUTHS, LightingDirection, ShadingMethod, ShadingParameters

if TYPE_CHECKING:
    from numpy.typing import NDArray


def _working_dtype(a: NDArray) -> np.dtype:
    return np.result_type(a.dtype, np.float32)


def pad_edges(samples: NDArray[np.floating]) -> NDArray[np.floating]:
    """
    Add a 1-cell border by symmetric boundary extension.

    With a width of one cell, symmetric extension repeats the edge row and
    column, so derivatives at the raster edge become half one-sided differences.
    """
    return np.pad(samples, 1, mode="symmetric")


def light_vector(azimuth: float, altitude: float) -> tuple[float, float, float]:
    """
    Unit vector pointing towards a light source.

    Args:
        azimuth: Degrees clockwise from north.
        altitude: Degrees above the horizon.

    Returns:
        ``(sx, sy, sz)``. Azimuth is rotated by -90 degrees before the
        spherical-to-Cartesian conversion so 0 (north) points to low row indices.
    """
    return LightingDirection(azimuth=azimuth, altitude=altitude).vector()


def surface_normals(
    window: NDArray[np.floating],
    cell_size: float,
    exaggeration: float = 1.0,
) -> tuple[NDArray[np.floating], NDArray[np.floating], NDArray[np.floating]]:
    """
    Unit surface normals of the window interior from central differences.

    Heights are scaled by ``exaggeration / cell_size`` first so that slopes
    are measured in cell units.

    Args:
        window: Elevation with a 1-cell halo, shape (r + 2, c + 2).
        cell_size: Ground distance per cell.
        exaggeration: Vertical exaggeration factor.

    Returns:
        ``(nx, ny, nz)`` each of shape (r, c). Cells whose own elevation is
        NaN get NaN normals; NaN neighbours also spread through the differences.
    """
    if window.ndim != 2 or window.shape[0] < 3 or window.shape[1] < 3:
        raise ValueError(f"window must be 2-D with a 1-cell halo, got shape {window.shape}")

    z = np.asarray(window, dtype=_working_dtype(window)) * (exaggeration / cell_size)

    dzdx = (z[1:-1, 2:] - z[1:-1, :-2]) * 0.5
    dzdy = (z[2:, 1:-1] - z[:-2, 1:-1]) * 0.5

    inv_len = 1.0 / np.sqrt(dzdx * dzdx + dzdy * dzdy + 1.0)
    # Central differences skip the centre cell, so nodata there must be carried explicitly
    inv_len[np.isnan(z[1:-1, 1:-1])] = np.nan

    return -dzdx * inv_len, -dzdy * inv_len, inv_len


def shade_surface_normal(
    window: NDArray[np.floating],
    cell_size: float,
    azimuth: float = 315.0,
    altitude: float = 60.0,
    exaggeration: float = 1.0,
) -> NDArray[np.floating]:
    """
    Single-light shading: cosine of the angle between normal and light.

    Negative values (slopes facing away from the light) are kept.
    """
    nx, ny, nz = surface_normals(window, cell_size, exaggeration)
    sx, sy, sz = light_vector(azimuth, altitude)
    return nx * sx + ny * sy + nz * sz


def shade_multidirectional(
    window: NDArray[np.floating],
    cell_size: float,
    exaggeration: float = 1.0,
) -> NDArray[np.floating]:
    """
    Multidirectional oblique-weighted shading.

    Four lights at 30 degrees altitude from azimuths 360, 315, 225 and 270.
    Each contribution is clamped at zero and the sum is divided by three,
    so the result is non-negative (NaN only where nodata spreads).
    """
    nx, ny, nz = surface_normals(window, cell_size, exaggeration)
    total = np.zeros_like(nx)
    for azimuth in MDOW_AZIMUTHS:
        sx, sy, sz = light_vector(azimuth, MDOW_ALTITUDE)
        total += np.maximum(nx * sx + ny * sy + nz * sz, 0.0)
    return total / 3.0


def shade_window(
    window: NDArray[np.floating],
    cell_size: float,
    params: ShadingParameters,
) -> NDArray[np.floating]:
    """Shade a halo-padded window with the method selected in ``params``."""
    if params.method is ShadingMethod.SURFACE_NORMAL:
        return shade_surface_normal(window, cell_size, params.azimuth, params.altitude, params.exaggeration)
    if params.method is ShadingMethod.MULTIDIRECTIONAL_OBLIQUE:
        return shade_multidirectional(window, cell_size, params.exaggeration)
    raise ValueError(f"Unsupported shading method: {params.method}")
