"""Raster I/O for elevation grids and hillshade results.

Uses rasterio, or GDAL when running inside QGIS/OSGeo4W (see ``_compat``).
Transforms are exchanged as GDAL-style lists
``[x_origin, pixel_width, 0, y_origin, 0, -pixel_height]``.
"""

from __future__ import annotations

import math
from pathlib import Path

import numpy as np

from ._compat import GDAL_AVAILABLE, GDAL_ENV, RASTERIO_AVAILABLE
from .errors import InvalidGridData
from .models.grid import ElevationGrid
from .relief_logging import get_logger

logger = get_logger(__name__)

if GDAL_ENV:
    from osgeo import gdal
elif RASTERIO_AVAILABLE:
    import pyproj
    import rasterio
    from rasterio.transform import Affine
    from rasterio.windows import from_bounds

FLOAT_TOLERANCE = 1e-9


def _require_backend() -> None:
    if not (RASTERIO_AVAILABLE or GDAL_AVAILABLE):
        raise ImportError(
            "Raster I/O needs rasterio or GDAL.\n"
            "Install with: pip install rasterio\n"
            "Or for QGIS/OSGeo4W environments, ensure GDAL is properly configured."
        )


def _assert_north_up(transform) -> None:
    """Ensure the raster transform describes a north-up raster."""
    if hasattr(transform, "b") and hasattr(transform, "d"):
        rot_x, rot_y = transform.b, transform.d
    else:
        if len(transform) < 6:
            raise ValueError("Transform must contain 6 elements.")
        rot_x, rot_y = transform[2], transform[4]
    if not math.isclose(rot_x, 0.0, abs_tol=FLOAT_TOLERANCE) or not math.isclose(rot_y, 0.0, abs_tol=FLOAT_TOLERANCE):
        raise ValueError("Only north-up rasters (no rotation) are supported.")


def check_path(path_str: str | Path, make_dir: bool = False) -> Path:
    """Resolve a path; optionally create its parent directory."""
    path = Path(path_str).expanduser().resolve()
    if make_dir:
        path.parent.mkdir(parents=True, exist_ok=True)
    return path


def cell_size_from_transform(trf: list[float]) -> float:
    """
    Square cell size of a GDAL-style transform.

    Raises:
        InvalidGridData: If cells are not square.
    """
    width, height = abs(trf[1]), abs(trf[5])
    if not math.isclose(width, height, rel_tol=1e-6):
        raise InvalidGridData(
            "cell_size",
            "hillshade requires square cells",
            expected="pixel width == pixel height",
            got=f"{width} x {height}",
        )
    return width


def load_raster(
    path_str: str | Path,
    bbox: list[float] | tuple[float, float, float, float] | None = None,
    band: int = 0,
) -> tuple[np.ndarray, list[float], str | None, float | None]:
    """
    Load one band of a raster, optionally cropped to a bbox.

    Args:
        path_str: Path to raster file.
        bbox: Optional bounding box [minx, miny, maxx, maxy] in raster CRS units.
            The crop is snapped outwards to whole cells.
        band: Band index to read (0-based).

    Returns:
        Tuple of (float32 array with nodata replaced by NaN, transform, crs_wkt, nodata_value).
    """
    _require_backend()
    path = check_path(path_str)
    if not path.exists():
        raise FileNotFoundError(f"Raster file {path} does not exist.")

    if not GDAL_ENV:
        with rasterio.open(path) as dataset:
            _assert_north_up(dataset.transform)
            if band < 0 or band >= dataset.count:
                raise IndexError(f"Requested band {band} out of range; raster has {dataset.count} band(s)")
            crs_wkt = dataset.crs.to_wkt() if dataset.crs is not None else None
            no_data_val = dataset.nodata
            if bbox is not None:
                window = from_bounds(*bbox, transform=dataset.transform)
                window = window.round_offsets(op="floor").round_lengths(op="ceil")
                rast_arr = dataset.read(band + 1, window=window, boundless=False)
                trf = dataset.window_transform(window)
            else:
                rast_arr = dataset.read(band + 1)
                trf = dataset.transform
            trf_arr = [trf.c, trf.a, trf.b, trf.f, trf.d, trf.e]
    else:
        dataset = gdal.Open(str(path))
        if dataset is None:
            raise FileNotFoundError(f"Could not open {path}")
        trf = dataset.GetGeoTransform()
        _assert_north_up(trf)
        crs_wkt = dataset.GetProjection() or None
        rb = dataset.GetRasterBand(band + 1)
        if rb is None:
            dataset = None
            raise IndexError(f"Requested band {band} out of range in GDAL dataset")
        no_data_val = rb.GetNoDataValue()
        trf_arr = list(trf)
        if bbox is not None:
            min_x, min_y, max_x, max_y = bbox
            xoff = max(0, int(math.floor((min_x - trf[0]) / trf[1])))
            yoff = max(0, int(math.floor((trf[3] - max_y) / abs(trf[5]))))
            xend = min(dataset.RasterXSize, int(math.ceil((max_x - trf[0]) / trf[1])))
            yend = min(dataset.RasterYSize, int(math.ceil((trf[3] - min_y) / abs(trf[5]))))
            if xend <= xoff or yend <= yoff:
                dataset = None
                raise ValueError("Bounding box does not overlap the raster")
            rast_arr = rb.ReadAsArray(xoff, yoff, xend - xoff, yend - yoff)
            trf_arr = [trf[0] + xoff * trf[1], trf[1], 0.0, trf[3] + yoff * trf[5], 0.0, trf[5]]
        else:
            rast_arr = rb.ReadAsArray()
        dataset = None

    rast_arr = np.asarray(rast_arr, dtype=np.float32)
    if no_data_val is not None and not np.isnan(no_data_val):
        logger.info(f"No-data value is {no_data_val}, replacing with NaN")
        rast_arr[rast_arr == np.float32(no_data_val)] = np.nan
    if rast_arr.size == 0:
        raise ValueError("Raster array is empty after loading/cropping")
    return rast_arr, trf_arr, crs_wkt, no_data_val


def load_elevation(
    path_str: str | Path,
    bbox: list[float] | tuple[float, float, float, float] | None = None,
    band: int = 0,
) -> ElevationGrid:
    """
    Load an elevation raster as an :class:`ElevationGrid`.

    Args:
        path_str: Path to raster file.
        bbox: Optional [minx, miny, maxx, maxy] crop, e.g. ``RegionExtent.bounds``
            for a raster in geographic coordinates.
        band: Band index to read (0-based).

    Example:
        >>> grid = load_elevation("srtm.tif")
        >>> relief = shadedrelief.compute_hillshade(grid)
    """
    arr, trf, crs_wkt, nodata = load_raster(path_str, bbox=bbox, band=band)
    grid = ElevationGrid(
        samples=arr,
        cell_size=cell_size_from_transform(trf),
        nodata=nodata,
        transform=trf,
        crs_wkt=crs_wkt,
    )
    logger.info(f"Loaded elevation {grid.rows}x{grid.cols} (cell size {grid.cell_size}) from {path_str}")
    return grid


def save_raster(
    out_path_str: str | Path,
    data_arr: np.ndarray,
    trf_arr: list[float] | None,
    crs_wkt: str | None,
    no_data_val: float | None = np.nan,
) -> None:
    """
    Save a single-band GeoTIFF.

    Args:
        out_path_str: Output file path.
        data_arr: 2D numpy array to save (float or uint8).
        trf_arr: GDAL-style geotransform. If None, uses an identity-like
            transform with 1-unit cells.
        crs_wkt: CRS in WKT format, or None.
        no_data_val: No-data value to record, or None.
    """
    _require_backend()
    out_path = check_path(out_path_str, make_dir=True)
    height, width = data_arr.shape
    if trf_arr is None:
        trf_arr = [0.0, 1.0, 0.0, float(height), 0.0, -1.0]

    if not GDAL_ENV:
        crs = pyproj.CRS(crs_wkt) if crs_wkt else None
        with rasterio.open(
            out_path,
            "w",
            driver="GTiff",
            height=height,
            width=width,
            count=1,
            dtype=data_arr.dtype,
            crs=crs,
            transform=Affine.from_gdal(*trf_arr),
            nodata=no_data_val,
        ) as dst:
            dst.write(data_arr, 1)
    else:
        gdal_type = gdal.GDT_Byte if data_arr.dtype == np.uint8 else gdal.GDT_Float32
        driver = gdal.GetDriverByName("GTiff")
        ds = driver.Create(str(out_path), width, height, 1, gdal_type)
        ds.SetGeoTransform(trf_arr)
        if crs_wkt:
            ds.SetProjection(crs_wkt)
        rb = ds.GetRasterBand(1)
        if no_data_val is not None:
            rb.SetNoDataValue(no_data_val)
        rb.WriteArray(data_arr)
        ds = None
    logger.debug(f"Saved raster: {out_path}")
