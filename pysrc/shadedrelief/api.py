"""
Public hillshade API.

``compute_hillshade`` validates its inputs once, then picks one of two
paths:

- **native**: the compiled surface-normal kernel over the whole raster,
  used when allowed by the parameters, installed, and the method is
  surface-normal shading;
- **portable**: numpy lighting model, either in one pass or tiled when
  the raster exceeds the large-raster threshold.

Example:
    import numpy as np
    import shadedrelief

    grid = shadedrelief.ElevationGrid(samples=dem, cell_size=30.0)
    relief = shadedrelief.compute_hillshade(grid, shadedrelief.ShadingParameters(azimuth=315))
    image = relief.to_uint8()
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import numpy as np

from . import native
from .errors import AccelerationUnavailable, ConfigurationError, InvalidGridData
from .models.config import ShadingMethod, ShadingParameters
from .models.grid import ElevationGrid
from .models.results import ShadedRelief
from .relief_logging import get_logger, set_global_feedback
from .tiling import shade_tiled, shade_untiled, should_use_tiling

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = get_logger(__name__)


def validate_inputs(grid: ElevationGrid, params: ShadingParameters) -> list[str]:
    """
    Validate a grid and parameters before any work starts.

    Args:
        grid: Elevation grid to shade.
        params: Shading parameters.

    Returns:
        List of non-fatal warnings (e.g. a grid made only of nodata).

    Raises:
        ConfigurationError: A parameter is out of range.
        InvalidGridData: The grid is empty, not 2-D, or has a bad cell size.
    """
    if not isinstance(grid, ElevationGrid):
        raise InvalidGridData("grid", "expected an ElevationGrid", got=type(grid).__name__)
    if not isinstance(params, ShadingParameters):
        raise ConfigurationError("params", f"expected ShadingParameters, got {type(params).__name__}")

    samples = grid.samples
    if samples.ndim != 2 or samples.size == 0:
        raise InvalidGridData("samples", "grid is empty", expected="at least one row and one column", got=str(samples.shape))
    if not np.isfinite(grid.cell_size) or grid.cell_size <= 0:
        raise InvalidGridData("cell_size", "cell size must be positive", expected="> 0", got=str(grid.cell_size))

    params.validate()

    warnings = []
    nodata_fraction = grid.nodata_fraction
    if nodata_fraction == 1.0:
        warnings.append("Grid contains only nodata; output will be all NaN")
    elif nodata_fraction > 0:
        warnings.append(f"{nodata_fraction:.1%} of cells are nodata; NaN spreads to their direct neighbours")
    for w in warnings:
        logger.warning(w)
    return warnings


def _use_native(params: ShadingParameters) -> bool:
    """Native path: allowed by the caller, installed, and surface-normal method."""
    if not params.use_native:
        return False
    if params.method is not ShadingMethod.SURFACE_NORMAL:
        logger.debug(f"No native kernel for method '{params.method.value}', using portable path")
        return False
    return native.is_native_available()


def _shade_native(grid: ElevationGrid, params: ShadingParameters) -> NDArray[np.floating]:
    elevation = grid.samples
    if params.exaggeration != 1:
        # Private working copy; the caller's grid is never touched
        elevation = elevation * np.float32(params.exaggeration)
    light = params.light
    return native.native_surface_normal_shade(
        elevation,
        light.azimuth_radians,
        light.altitude_radians,
        grid.cell_size,
    )


def compute_hillshade(
    grid: ElevationGrid,
    params: ShadingParameters | None = None,
    *,
    tile_workers: int | None = None,
    progress_callback: Callable[[int, int], Any] | None = None,
    cancel_check: Callable[[], bool] | None = None,
    feedback: Any = None,
) -> ShadedRelief:
    """
    Compute shaded relief for an elevation grid.

    Args:
        grid: Elevation grid. Read-only; never modified.
        params: Shading parameters. Uses defaults (azimuth 315, altitude 60,
            surface-normal method) if not provided.
        tile_workers: Worker threads for tiled processing. Overrides
            ``params.tile_workers``.
        progress_callback: Optional callback(completed_tiles, total_tiles)
            for tiled runs.
        cancel_check: Optional callable polled between tile dispatches;
            returning True raises :class:`~shadedrelief.errors.ComputationCancelled`.
        feedback: Optional host feedback object. Receives progress and log
            messages and is polled for cancellation.

    Returns:
        ShadedRelief with float32 values of the grid's shape.

    Raises:
        ConfigurationError: Invalid parameters or grid (nothing is computed).

    Example:
        >>> grid = ElevationGrid(samples=np.full((50, 50), 100.0), cell_size=10.0)
        >>> relief = compute_hillshade(grid, ShadingParameters(altitude=45))
        >>> float(relief.values[25, 25])  # flat terrain: sin(45°)
        0.70710677
    """
    if params is None:
        params = ShadingParameters()
    if feedback is None:
        return _compute(grid, params, tile_workers, progress_callback, cancel_check, None)

    # Route log messages to the host for the duration of the call
    set_global_feedback(feedback)
    try:
        return _compute(grid, params, tile_workers, progress_callback, cancel_check, feedback)
    finally:
        set_global_feedback(None)


def _compute(
    grid: ElevationGrid,
    params: ShadingParameters,
    tile_workers: int | None,
    progress_callback: Callable[[int, int], Any] | None,
    cancel_check: Callable[[], bool] | None,
    feedback: Any,
) -> ShadedRelief:
    validate_inputs(grid, params)

    if _use_native(params):
        try:
            values = _shade_native(grid, params)
        except AccelerationUnavailable as e:
            logger.debug(f"{e}; falling back to portable path")
        else:
            logger.info(f"Hillshade {grid.rows}x{grid.cols}: native backend '{native.BACKEND_NAME}'")
            return ShadedRelief(
                values=values.astype(np.float32, copy=False),
                method=params.method,
                backend="native",
                n_tiles=1,
                transform=grid.transform,
                crs_wkt=grid.crs_wkt,
            )

    if should_use_tiling(grid.rows, grid.cols, params):
        values, n_tiles = shade_tiled(
            grid,
            params,
            tile_workers=tile_workers,
            progress_callback=progress_callback,
            cancel_check=cancel_check,
            feedback=feedback,
        )
    else:
        logger.info(f"Hillshade {grid.rows}x{grid.cols}: single pass, method={params.method.value}")
        values, n_tiles = shade_untiled(grid, params), 1

    return ShadedRelief(
        values=values.astype(np.float32, copy=False),
        method=params.method,
        backend="portable",
        n_tiles=n_tiles,
        transform=grid.transform,
        crs_wkt=grid.crs_wkt,
    )


def hillshade(
    samples: NDArray[np.floating],
    cell_size: float = 1.0,
    *,
    as_uint8: bool = False,
    **param_overrides: Any,
) -> NDArray:
    """
    Convenience wrapper: shade a bare array and return the values.

    Args:
        samples: 2-D elevation array (NaN = nodata).
        cell_size: Ground distance per cell.
        as_uint8: Return the 8-bit display rescale instead of raw shading.
        **param_overrides: Any :class:`ShadingParameters` field, e.g.
            ``azimuth=270, method="mdow"``.

    Example:
        >>> shade = hillshade(dem, cell_size=30.0, exaggeration=2.0)
    """
    relief = compute_hillshade(ElevationGrid(samples=samples, cell_size=cell_size), ShadingParameters(**param_overrides))
    return relief.to_uint8() if as_uint8 else relief.values
