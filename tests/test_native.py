"""
Parity tests for the compiled surface-normal kernel.

Skipped when numba is not installed.
"""

import math

import numpy as np
import pytest
from conftest import create_flat_dem, create_ramp_dem, create_random_dem
from shadedrelief import native
from shadedrelief.api import compute_hillshade
from shadedrelief.models import ElevationGrid, ShadingParameters

pytest.importorskip("numba")

pytestmark = pytest.mark.skipif(not native.is_native_available(), reason="native backend disabled")


def shade_both(dem, cell_size=1.0, **kwargs):
    grid = ElevationGrid(samples=dem, cell_size=cell_size)
    params = ShadingParameters(**kwargs)
    fast = compute_hillshade(grid, params)
    slow = compute_hillshade(grid, params.replace(use_native=False))
    assert fast.backend == "native"
    assert slow.backend == "portable"
    return fast.values, slow.values


class TestNativeParity:
    """Native and portable paths agree to float32 precision."""

    def test_flat(self):
        fast, _ = shade_both(create_flat_dem(), altitude=45.0)
        np.testing.assert_allclose(fast, math.sin(math.radians(45.0)), rtol=1e-6)

    def test_ramp_edges_and_corners(self):
        fast, slow = shade_both(create_ramp_dem((9, 7)), azimuth=200.0, altitude=35.0)
        np.testing.assert_allclose(fast, slow, atol=1e-5)

    @pytest.mark.parametrize("azimuth,altitude", [(0.0, 10.0), (315.0, 60.0), (135.0, 80.0)])
    def test_random_terrain(self, azimuth, altitude):
        fast, slow = shade_both(create_random_dem(), cell_size=3.0, azimuth=azimuth, altitude=altitude)
        np.testing.assert_allclose(fast, slow, atol=1e-5)

    def test_exaggeration(self):
        """High terrain (around 500) scaled by 2.5 keeps full slope precision."""
        fast, slow = shade_both(create_random_dem((20, 20)), exaggeration=2.5)
        np.testing.assert_allclose(fast, slow, atol=1e-5)

    def test_high_terrain_float64(self):
        dem = create_random_dem((30, 30)) + 4000.0
        fast, slow = shade_both(dem, exaggeration=4.0)
        np.testing.assert_allclose(fast, slow, atol=1e-6)

    @pytest.mark.parametrize("dtype", [np.float32, np.float64])
    def test_kernel_keeps_working_precision(self, dtype):
        dem = create_random_dem((6, 6)).astype(dtype)
        assert native.native_surface_normal_shade(dem, 0.0, 1.0, 1.0).dtype == dtype

    def test_nodata(self):
        dem = create_random_dem((10, 10))
        dem[4, 4] = np.nan
        dem[0, 9] = np.nan
        fast, slow = shade_both(dem)
        np.testing.assert_array_equal(np.isnan(fast), np.isnan(slow))
        np.testing.assert_allclose(fast, slow, atol=1e-5)

    def test_output_dtype(self):
        fast, _ = shade_both(create_random_dem((5, 5)))
        assert fast.dtype == np.float32

    def test_does_not_modify_input(self):
        dem = create_random_dem((10, 10)).astype(np.float32)
        before = dem.copy()
        native.native_surface_normal_shade(dem, 0.0, 1.0, 1.0)
        np.testing.assert_array_equal(dem, before)
