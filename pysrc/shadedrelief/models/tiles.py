"""Tile geometry for large-raster processing."""

from __future__ import annotations

from dataclasses import dataclass

# Cells of neighbour data each tile window needs for central differences.
HALO = 1


@dataclass(frozen=True)
class TileSpec:
    """
    Geometry of a single tile and its halo-padded input window.

    The core bounds partition the raster exactly. The input window is the
    core grown by ``HALO`` cells on every side; sides that would leave the
    raster are flagged and filled by boundary extension instead.

    Attributes:
        row_start, row_end: Core tile row bounds (end exclusive).
        col_start, col_end: Core tile column bounds (end exclusive).
        rows, cols: Shape of the whole raster.
        index: Position of the tile in generation order.
    """

    row_start: int
    row_end: int
    col_start: int
    col_end: int
    rows: int
    cols: int
    index: int = 0

    @property
    def core_shape(self) -> tuple[int, int]:
        """Shape of core tile (without halo)."""
        return (self.row_end - self.row_start, self.col_end - self.col_start)

    @property
    def halo_top(self) -> int:
        return HALO if self.row_start > 0 else 0

    @property
    def halo_bottom(self) -> int:
        return HALO if self.row_end < self.rows else 0

    @property
    def halo_left(self) -> int:
        return HALO if self.col_start > 0 else 0

    @property
    def halo_right(self) -> int:
        return HALO if self.col_end < self.cols else 0

    @property
    def read_slice(self) -> tuple[slice, slice]:
        """Slices for reading the halo window from the raster."""
        return (
            slice(self.row_start - self.halo_top, self.row_end + self.halo_bottom),
            slice(self.col_start - self.halo_left, self.col_end + self.halo_right),
        )

    @property
    def pad_width(self) -> tuple[tuple[int, int], tuple[int, int]]:
        """``numpy.pad`` widths for the sides that touch the raster edge."""
        return (
            (HALO - self.halo_top, HALO - self.halo_bottom),
            (HALO - self.halo_left, HALO - self.halo_right),
        )

    @property
    def window_shape(self) -> tuple[int, int]:
        """Shape of the padded input window (core + halo on all sides)."""
        r, c = self.core_shape
        return (r + 2 * HALO, c + 2 * HALO)

    @property
    def write_slice(self) -> tuple[slice, slice]:
        """Slices for writing the core result into the global output."""
        return (
            slice(self.row_start, self.row_end),
            slice(self.col_start, self.col_end),
        )
