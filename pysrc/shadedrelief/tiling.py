"""
Tiled processing for large elevation rasters.

Rasters above a cell-count threshold are split into a grid of tiles. Each
tile is shaded from a private window holding its core cells plus a 1-cell
halo of neighbouring elevations, so normals along tile seams see the same
neighbours as in a single pass. Sides of a window that fall outside the
raster are filled by symmetric boundary extension, exactly as the untiled
path pads the whole raster. Tile results are written back to disjoint
regions of the output, so processing order never changes the result.
"""

from __future__ import annotations

import os
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING, Any

import numpy as np

from .errors import ComputationCancelled, ConfigurationError, InvalidGridData
from .lighting import pad_edges, shade_window
from .models.tiles import TileSpec
from .progress import ProgressReporter
from .relief_logging import get_logger

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from .models.config import ShadingParameters
    from .models.grid import ElevationGrid

logger = get_logger(__name__)

_MAX_AUTO_TILE_WORKERS = 6  # Hard cap to avoid bandwidth/cache thrash on many-core CPUs


# =============================================================================
# Helper Functions
# =============================================================================


def _check_grid(samples: NDArray) -> None:
    if samples.ndim != 2 or 0 in samples.shape:
        raise InvalidGridData(
            "samples",
            "cannot tile an empty grid",
            expected="at least one row and one column",
            got=str(samples.shape),
        )


def should_use_tiling(rows: int, cols: int, params: ShadingParameters) -> bool:
    """Check if the raster is large enough for tiling and tiling is allowed."""
    return params.use_tiling and rows * cols > params.large_raster_threshold


def best_block_size(length: int, tile_size: int) -> int:
    """
    Choose a block length along one axis close to ``tile_size``.

    Axes no longer than ``tile_size`` form a single block. Otherwise the
    largest divisor of ``length`` in ``[tile_size // 2, tile_size]`` is used
    so tiles cover the axis evenly; when no such divisor exists the trailing
    block is shorter than ``tile_size``.

    Example:
        >>> best_block_size(12000, 5000)
        4000
        >>> best_block_size(10007, 5000)  # prime
        5000
    """
    if tile_size <= 0:
        raise ConfigurationError("tile_size", f"must be a positive integer, got {tile_size}")
    if length <= tile_size:
        return max(length, 1)
    for block in range(tile_size, max(tile_size // 2, 1) - 1, -1):
        if length % block == 0:
            return block
    return tile_size


def generate_tiles(rows: int, cols: int, block_rows: int, block_cols: int) -> list[TileSpec]:
    """
    Generate tiles that partition a raster.

    Args:
        rows: Total number of rows in raster.
        cols: Total number of columns in raster.
        block_rows: Core tile height in cells.
        block_cols: Core tile width in cells.

    Returns:
        List of TileSpec objects in row-major order; trailing tiles along
        either axis may be smaller.
    """
    if rows <= 0 or cols <= 0:
        raise InvalidGridData("samples", "cannot tile an empty grid", got=str((rows, cols)))
    if block_rows <= 0 or block_cols <= 0:
        raise ConfigurationError("tile_size", f"block size must be positive, got {(block_rows, block_cols)}")

    tiles = []
    n_tiles_row = -(-rows // block_rows)
    n_tiles_col = -(-cols // block_cols)

    for i in range(n_tiles_row):
        for j in range(n_tiles_col):
            tiles.append(
                TileSpec(
                    row_start=i * block_rows,
                    row_end=min((i + 1) * block_rows, rows),
                    col_start=j * block_cols,
                    col_end=min((j + 1) * block_cols, cols),
                    rows=rows,
                    cols=cols,
                    index=len(tiles),
                )
            )

    return tiles


def extract_window(samples: NDArray[np.floating], tile: TileSpec) -> NDArray[np.floating]:
    """
    Copy a tile's halo window out of the raster.

    Interior sides take real neighbour cells; sides on the raster edge are
    filled by symmetric extension. The returned array is a private copy of
    shape ``tile.window_shape``.
    """
    window = samples[tile.read_slice]
    pad = tile.pad_width
    if any(p for side in pad for p in side):
        return np.pad(window, pad, mode="symmetric")
    return window.copy()


def resolve_tile_workers(tile_workers: int | None, n_tiles: int) -> int:
    """Resolve worker count for tiled processing."""
    if n_tiles <= 0:
        return 1
    if tile_workers is not None and tile_workers < 1:
        raise ConfigurationError("tile_workers", f"must be >= 1, got {tile_workers}")
    if tile_workers is None:
        cpu_count = os.cpu_count() or 2
        tile_workers = max(2, min(_MAX_AUTO_TILE_WORKERS, cpu_count // 2))
    return max(1, min(tile_workers, n_tiles))


def _resolve_inflight_limit(n_workers: int, n_tiles: int) -> int:
    """Max number of tile windows alive at once: one running and one queued per worker."""
    return max(1, min(n_tiles, 2 * n_workers))


# =============================================================================
# Shading passes
# =============================================================================


def shade_untiled(grid: ElevationGrid, params: ShadingParameters) -> NDArray[np.floating]:
    """Shade the whole grid in one pass with boundary-only padding."""
    _check_grid(grid.samples)
    return shade_window(pad_edges(grid.samples), grid.cell_size, params)


def shade_tiled(
    grid: ElevationGrid,
    params: ShadingParameters,
    tile_workers: int | None = None,
    progress_callback: Callable[[int, int], Any] | None = None,
    cancel_check: Callable[[], bool] | None = None,
    feedback: Any = None,
) -> tuple[NDArray[np.floating], int]:
    """
    Shade a grid tile by tile and stitch the cores into one output.

    Args:
        grid: Elevation grid (read-only).
        params: Validated shading parameters. ``tile_size`` sets the target
            tile edge and ``use_concurrency`` selects the thread pool.
        tile_workers: Worker threads. Overrides ``params.tile_workers``.
            If both are None, uses an adaptive default based on CPU count.
        progress_callback: Optional callback(completed_tiles, total_tiles).
            When given, no progress bar is shown.
        cancel_check: Optional callable polled before each tile dispatch;
            returning True aborts with :class:`ComputationCancelled`.
        feedback: Optional host feedback object. Shows progress unless
            ``progress_callback`` is given; always polled for cancellation.

    Returns:
        Tuple of (shading array, number of tiles).
    """
    samples = grid.samples
    _check_grid(samples)
    if params.tile_size <= 0:
        raise ConfigurationError("tile_size", f"must be a positive integer, got {params.tile_size}")

    rows, cols = samples.shape
    block_rows = best_block_size(rows, params.tile_size)
    block_cols = best_block_size(cols, params.tile_size)
    tiles = generate_tiles(rows, cols, block_rows, block_cols)
    n_tiles = len(tiles)

    out = np.empty((rows, cols), dtype=np.result_type(samples.dtype, np.float32))

    logger.info(
        f"Tiled processing: {rows}x{cols} raster, {n_tiles} tiles of {block_rows}x{block_cols}, "
        f"method={params.method.value}"
    )

    _progress = (
        None
        if progress_callback is not None
        else ProgressReporter(total=n_tiles, desc="Hillshade tiles", feedback=feedback)
    )
    completed = 0

    def _cancelled() -> bool:
        if cancel_check is not None and cancel_check():
            return True
        if _progress is not None:
            return _progress.is_cancelled()
        return feedback is not None and bool(feedback.isCanceled())

    def _finish(tile: TileSpec, result: NDArray[np.floating]) -> None:
        nonlocal completed
        out[tile.write_slice] = result
        completed += 1
        if _progress is not None:
            _progress.update(1)
        if progress_callback:
            progress_callback(completed, n_tiles)

    t0 = time.perf_counter()
    try:
        if not params.use_concurrency or n_tiles == 1:
            for tile in tiles:
                if _cancelled():
                    raise ComputationCancelled(completed, n_tiles)
                _finish(tile, shade_window(extract_window(samples, tile), grid.cell_size, params))
        else:
            n_workers = resolve_tile_workers(tile_workers if tile_workers is not None else params.tile_workers, n_tiles)
            inflight_limit = _resolve_inflight_limit(n_workers, n_tiles)
            logger.info(f"Tiled runtime: workers={n_workers}, inflight_limit={inflight_limit}")

            with ThreadPoolExecutor(max_workers=n_workers) as executor:
                futures: dict[Future, TileSpec] = {}
                next_tile = 0

                def _fill_queue() -> None:
                    nonlocal next_tile
                    while next_tile < n_tiles and len(futures) < inflight_limit:
                        if _cancelled():
                            for pending in futures:
                                pending.cancel()
                            raise ComputationCancelled(completed, n_tiles)
                        tile = tiles[next_tile]
                        window = extract_window(samples, tile)
                        futures[executor.submit(shade_window, window, grid.cell_size, params)] = tile
                        next_tile += 1

                _fill_queue()
                while futures:
                    future = next(as_completed(futures))
                    tile = futures.pop(future)
                    _finish(tile, future.result())
                    _fill_queue()
    finally:
        if _progress is not None:
            _progress.close()

    logger.debug(f"Tiled telemetry: {n_tiles} tiles in {time.perf_counter() - t0:.2f}s")
    return out, n_tiles
