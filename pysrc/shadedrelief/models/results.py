"""Result data models."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np

from ..relief_logging import get_logger
from .config import ShadingMethod

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = get_logger(__name__)


def to_uint8(values: NDArray[np.floating]) -> NDArray[np.uint8]:
    """
    Rescale raw shading to the 8-bit display range.

    Values are multiplied by 255, rounded and saturated to [0, 255];
    self-shadowed (negative) cells become 0 and NaN cells become 0.
    """
    scaled = np.rint(np.asarray(values, dtype=np.float64) * 255.0)
    scaled = np.nan_to_num(scaled, nan=0.0)
    return np.clip(scaled, 0, 255).astype(np.uint8)


@dataclass
class ShadedRelief:
    """
    Output of a hillshade computation.

    Attributes:
        values: Raw shading, same shape as the input grid. Roughly [-1, 1]
            for the surface-normal method (negative = self-shadowed slope)
            and [0, 1] for the multidirectional method. NaN where the
            elevation (or a direct neighbour) was nodata.
        method: Lighting method that produced the values.
        backend: ``"native"`` or ``"portable"``.
        n_tiles: Number of tiles processed (1 when untiled).
        transform: Geotransform copied from the input grid, if any.
        crs_wkt: CRS copied from the input grid, if any.
    """

    values: NDArray[np.floating]
    method: ShadingMethod = ShadingMethod.SURFACE_NORMAL
    backend: str = "portable"
    n_tiles: int = 1
    transform: list[float] | None = None
    crs_wkt: str | None = None

    @property
    def shape(self) -> tuple[int, int]:
        return self.values.shape

    def to_uint8(self) -> NDArray[np.uint8]:
        """Display-ready 8-bit image of the shading."""
        return to_uint8(self.values)

    def to_geotiff(self, path: str | Path, as_uint8: bool = False) -> None:
        """
        Save the shading as a single-band GeoTIFF.

        Args:
            path: Output file path.
            as_uint8: Write the 8-bit display rescale instead of raw float values.
        """
        from .. import io

        if as_uint8:
            io.save_raster(path, self.to_uint8(), self.transform, self.crs_wkt, no_data_val=None)
        else:
            io.save_raster(path, self.values.astype(np.float32), self.transform, self.crs_wkt, no_data_val=np.nan)
        logger.info(f"Saved hillshade ({self.method.value}, {self.backend}) to {path}")
