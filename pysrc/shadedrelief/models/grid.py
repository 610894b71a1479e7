"""Elevation grid model."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np

from ..errors import InvalidGridData

if TYPE_CHECKING:
    from numpy.typing import NDArray


@dataclass
class ElevationGrid:
    """
    Single-band elevation raster.

    The shading engine borrows the grid read-only; it is never mutated.

    Attributes:
        samples: 2-D array of heights. NaN marks nodata cells.
        cell_size: Ground distance per cell (square cells), same unit as heights.
        nodata: Original nodata sentinel of the source file, if any. Cells
            holding it have already been replaced with NaN.
        transform: GDAL-style geotransform
            [x_origin, pixel_width, 0, y_origin, 0, -pixel_height]. Optional.
        crs_wkt: Coordinate reference system in WKT format. Optional.

    Example:
        >>> grid = ElevationGrid(samples=np.zeros((3, 3)), cell_size=30.0)
        >>> grid.shape
        (3, 3)
    """

    samples: NDArray[np.floating]
    cell_size: float = 1.0
    nodata: float | None = None
    transform: list[float] | None = None
    crs_wkt: str | None = None

    def __post_init__(self):
        samples = np.asarray(self.samples)
        if not np.issubdtype(samples.dtype, np.floating):
            samples = samples.astype(np.float32)
        self.samples = samples

        if samples.ndim != 2:
            raise InvalidGridData(
                "samples",
                "elevation grid must be two-dimensional",
                expected="2-D array",
                got=f"{samples.ndim}-D array with shape {samples.shape}",
            )
        if samples.size == 0:
            raise InvalidGridData(
                "samples",
                "grid is empty",
                expected="at least one row and one column",
                got=str(samples.shape),
            )

        try:
            cell_size = float(self.cell_size)
        except (TypeError, ValueError) as e:
            raise InvalidGridData("cell_size", "cell size must be a number", got=repr(self.cell_size)) from e
        if not np.isfinite(cell_size) or cell_size <= 0:
            raise InvalidGridData("cell_size", "cell size must be positive", expected="> 0", got=str(cell_size))
        self.cell_size = cell_size

    @property
    def rows(self) -> int:
        return int(self.samples.shape[0])

    @property
    def cols(self) -> int:
        return int(self.samples.shape[1])

    @property
    def shape(self) -> tuple[int, int]:
        return (self.rows, self.cols)

    @property
    def n_cells(self) -> int:
        return self.rows * self.cols

    @property
    def nodata_fraction(self) -> float:
        """Fraction of cells that are NaN."""
        return float(np.count_nonzero(np.isnan(self.samples))) / self.n_cells

    @classmethod
    def from_file(cls, path: str | Path, band: int = 0) -> ElevationGrid:
        """
        Load an elevation grid from a raster file (GeoTIFF or any format
        the geospatial backend can read).

        See :func:`shadedrelief.io.load_elevation`.
        """
        from .. import io

        return io.load_elevation(path, band=band)
