"""
Tests for the public hillshade API.

Covers input validation, the native/portable dispatch policy and the
convenience wrappers. The native backend is replaced by fakes here;
test_native.py exercises the compiled kernel itself.
"""

import math
from unittest.mock import MagicMock

import numpy as np
import pytest
import shadedrelief
from conftest import create_flat_dem, create_random_dem
from shadedrelief import native
from shadedrelief.api import compute_hillshade, hillshade, validate_inputs
from shadedrelief.errors import AccelerationUnavailable, ComputationCancelled, ConfigurationError, InvalidGridData
from shadedrelief.models import ElevationGrid, ShadedRelief, ShadingMethod, ShadingParameters
from shadedrelief.relief_logging import get_logger


class FakeNative:
    """Stands in for the compiled kernel and records its calls."""

    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    def __call__(self, elevation, azimuth_rad, altitude_rad, cell_size):
        self.calls.append((elevation.copy(), azimuth_rad, altitude_rad, cell_size))
        if self.fail:
            raise AccelerationUnavailable("numba", "simulated failure")
        return np.full(elevation.shape, 0.25, dtype=np.float32)


@pytest.fixture
def fake_native(monkeypatch):
    fake = FakeNative()
    monkeypatch.setattr(native, "is_native_available", lambda: True)
    monkeypatch.setattr(native, "native_surface_normal_shade", fake)
    return fake


# =============================================================================
# Validation
# =============================================================================


class TestValidateInputs:
    """validate_inputs() rejects bad input before any work starts."""

    def test_valid_inputs_return_no_warnings(self):
        grid = ElevationGrid(samples=create_random_dem((5, 5)))
        assert validate_inputs(grid, ShadingParameters()) == []

    @pytest.mark.parametrize(
        "overrides,parameter",
        [
            ({"azimuth": -1.0}, "azimuth"),
            ({"azimuth": 360.5}, "azimuth"),
            ({"altitude": 91.0}, "altitude"),
            ({"altitude": -0.1}, "altitude"),
            ({"exaggeration": 0.0}, "exaggeration"),
            ({"exaggeration": -2.0}, "exaggeration"),
            ({"azimuth": math.nan}, "azimuth"),
            ({"tile_size": 0}, "tile_size"),
            ({"tile_size": 2.5}, "tile_size"),
            ({"tile_workers": 0}, "tile_workers"),
            ({"large_raster_threshold": -1}, "large_raster_threshold"),
        ],
    )
    def test_out_of_range_parameters(self, overrides, parameter):
        grid = ElevationGrid(samples=create_flat_dem((4, 4)))
        with pytest.raises(ConfigurationError) as exc_info:
            validate_inputs(grid, ShadingParameters(**overrides))
        assert exc_info.value.parameter == parameter

    def test_boundary_angles_accepted(self):
        grid = ElevationGrid(samples=create_flat_dem((4, 4)))
        for az, alt in [(0.0, 0.0), (360.0, 90.0)]:
            validate_inputs(grid, ShadingParameters(azimuth=az, altitude=alt))

    def test_not_a_grid(self):
        with pytest.raises(InvalidGridData):
            validate_inputs(np.zeros((3, 3)), ShadingParameters())

    def test_all_nodata_warns(self):
        grid = ElevationGrid(samples=np.full((3, 3), np.nan))
        warnings = validate_inputs(grid, ShadingParameters())
        assert len(warnings) == 1
        assert "only nodata" in warnings[0]

    def test_partial_nodata_warns(self):
        dem = create_flat_dem((4, 4))
        dem[0, :2] = np.nan
        warnings = validate_inputs(ElevationGrid(samples=dem), ShadingParameters())
        assert "12.5%" in warnings[0]


class TestElevationGrid:
    """ElevationGrid rejects unusable rasters at construction."""

    def test_empty_grid(self):
        with pytest.raises(InvalidGridData) as exc_info:
            ElevationGrid(samples=np.empty((0, 5)))
        assert exc_info.value.field == "samples"
        assert isinstance(exc_info.value, ConfigurationError)

    def test_one_dimensional(self):
        with pytest.raises(InvalidGridData):
            ElevationGrid(samples=np.arange(5.0))

    @pytest.mark.parametrize("cell_size", [0.0, -1.0, math.inf, math.nan, "abc"])
    def test_bad_cell_size(self, cell_size):
        with pytest.raises(InvalidGridData) as exc_info:
            ElevationGrid(samples=create_flat_dem((3, 3)), cell_size=cell_size)
        assert exc_info.value.field == "cell_size"

    def test_integer_samples_become_float(self):
        grid = ElevationGrid(samples=np.arange(9).reshape(3, 3))
        assert grid.samples.dtype == np.float32

    def test_properties(self):
        dem = create_flat_dem((3, 4))
        dem[0, 0] = np.nan
        grid = ElevationGrid(samples=dem, cell_size=10)
        assert grid.shape == (3, 4)
        assert grid.n_cells == 12
        assert grid.cell_size == 10.0
        assert grid.nodata_fraction == pytest.approx(1 / 12)


# =============================================================================
# Dispatch
# =============================================================================


class TestDispatchPolicy:
    """Which backend compute_hillshade() selects."""

    def test_native_used_for_surface_normal(self, fake_native):
        grid = ElevationGrid(samples=create_random_dem((6, 6)), cell_size=5.0)
        relief = compute_hillshade(grid, ShadingParameters(azimuth=90.0, altitude=30.0))

        assert relief.backend == "native"
        assert relief.n_tiles == 1
        assert np.all(relief.values == 0.25)
        _, az, alt, cell = fake_native.calls[0]
        assert az == pytest.approx(0.0)
        assert alt == pytest.approx(math.radians(30.0))
        assert cell == 5.0

    def test_native_receives_exaggerated_copy(self, fake_native):
        dem = create_random_dem((6, 6))
        before = dem.copy()
        compute_hillshade(ElevationGrid(samples=dem), ShadingParameters(exaggeration=3.0))

        elevation = fake_native.calls[0][0]
        np.testing.assert_allclose(elevation, before * 3.0, rtol=1e-6)
        np.testing.assert_array_equal(dem, before)

    def test_mdow_never_native(self, fake_native):
        grid = ElevationGrid(samples=create_random_dem((6, 6)))
        relief = compute_hillshade(grid, ShadingParameters(method="mdow"))
        assert relief.backend == "portable"
        assert relief.method is ShadingMethod.MULTIDIRECTIONAL_OBLIQUE
        assert fake_native.calls == []

    def test_use_native_false(self, fake_native):
        grid = ElevationGrid(samples=create_random_dem((6, 6)))
        relief = compute_hillshade(grid, ShadingParameters(use_native=False))
        assert relief.backend == "portable"
        assert fake_native.calls == []

    def test_native_unavailable(self, monkeypatch):
        monkeypatch.setattr(native, "is_native_available", lambda: False)
        grid = ElevationGrid(samples=create_random_dem((6, 6)))
        assert compute_hillshade(grid).backend == "portable"

    def test_fallback_when_native_fails(self, monkeypatch):
        fake = FakeNative(fail=True)
        monkeypatch.setattr(native, "is_native_available", lambda: True)
        monkeypatch.setattr(native, "native_surface_normal_shade", fake)
        grid = ElevationGrid(samples=create_flat_dem((6, 6)))

        relief = compute_hillshade(grid, ShadingParameters(altitude=45.0))
        assert len(fake.calls) == 1
        assert relief.backend == "portable"
        np.testing.assert_allclose(relief.values, math.sin(math.radians(45.0)), rtol=1e-6)

    def test_env_var_disables_native(self, portable):
        assert not native.is_native_available()
        with pytest.raises(AccelerationUnavailable):
            native.native_surface_normal_shade(np.zeros((3, 3)), 0.0, 0.5, 1.0)

    def test_invalid_params_fail_before_native(self, fake_native):
        grid = ElevationGrid(samples=create_flat_dem((4, 4)))
        with pytest.raises(ConfigurationError):
            compute_hillshade(grid, ShadingParameters(altitude=120.0))
        assert fake_native.calls == []

    def test_tiling_engaged_above_threshold(self, portable):
        grid = ElevationGrid(samples=create_random_dem((20, 20)))
        params = ShadingParameters(tile_size=5, large_raster_threshold=399)
        relief = compute_hillshade(grid, params, progress_callback=lambda d, t: None)
        assert relief.n_tiles == 16

        untiled = compute_hillshade(grid, params.replace(use_tiling=False))
        assert untiled.n_tiles == 1
        np.testing.assert_array_equal(relief.values, untiled.values)

    def test_threshold_not_exceeded(self, portable):
        grid = ElevationGrid(samples=create_random_dem((20, 20)))
        relief = compute_hillshade(grid, ShadingParameters(tile_size=5, large_raster_threshold=400))
        assert relief.n_tiles == 1


# =============================================================================
# Results
# =============================================================================


class TestComputeHillshade:
    """End-to-end behaviour of the portable path."""

    def test_result_type_shape_and_dtype(self, portable):
        grid = ElevationGrid(samples=create_random_dem((7, 11)))
        relief = compute_hillshade(grid)
        assert isinstance(relief, ShadedRelief)
        assert relief.shape == (7, 11)
        assert relief.values.dtype == np.float32

    def test_default_parameters(self, portable):
        relief = compute_hillshade(ElevationGrid(samples=create_flat_dem()))
        np.testing.assert_allclose(relief.values, math.sin(math.radians(60.0)), rtol=1e-6)

    def test_idempotent(self, portable):
        grid = ElevationGrid(samples=create_random_dem((15, 15)))
        params = ShadingParameters(exaggeration=2.0)
        a = compute_hillshade(grid, params)
        b = compute_hillshade(grid, params)
        np.testing.assert_array_equal(a.values, b.values)

    def test_grid_not_modified(self, portable):
        dem = create_random_dem((15, 15))
        before = dem.copy()
        compute_hillshade(ElevationGrid(samples=dem), ShadingParameters(exaggeration=4.0, method="mdow"))
        np.testing.assert_array_equal(dem, before)

    def test_georeferencing_copied(self, portable):
        trf = [500000.0, 30.0, 0.0, 4000000.0, 0.0, -30.0]
        grid = ElevationGrid(samples=create_flat_dem((3, 3)), cell_size=30.0, transform=trf, crs_wkt="EPSG:32633")
        relief = compute_hillshade(grid)
        assert relief.transform == trf
        assert relief.crs_wkt == "EPSG:32633"

    def test_single_cell(self, portable):
        relief = compute_hillshade(ElevationGrid(samples=np.array([[42.0]])))
        assert relief.values[0, 0] == pytest.approx(math.sin(math.radians(60.0)))


class TestHostFeedback:
    """Log routing and cancellation through a host feedback object."""

    def test_log_messages_reach_host(self, portable):
        feedback = MagicMock()
        feedback.isCanceled.return_value = False
        compute_hillshade(ElevationGrid(samples=create_random_dem((9, 9))), feedback=feedback)
        messages = [c.args[0] for c in feedback.pushInfo.call_args_list]
        assert any("Hillshade 9x9" in m for m in messages)

    def test_nodata_warning_reaches_host(self, portable):
        dem = create_random_dem((8, 8))
        dem[0, 0] = np.nan
        feedback = MagicMock()
        compute_hillshade(ElevationGrid(samples=dem), feedback=feedback)
        messages = [c.args[0] for c in feedback.pushInfo.call_args_list]
        assert any(m.startswith("WARNING:") and "nodata" in m for m in messages)

    def test_host_detached_after_call(self, portable):
        compute_hillshade(ElevationGrid(samples=create_flat_dem((4, 4))), feedback=MagicMock())
        assert get_logger("shadedrelief.api")._feedback is None

    def test_host_detached_after_error(self, portable):
        feedback = MagicMock()
        with pytest.raises(ConfigurationError):
            compute_hillshade(
                ElevationGrid(samples=create_flat_dem((4, 4))),
                ShadingParameters(altitude=120.0),
                feedback=feedback,
            )
        assert get_logger("shadedrelief.api")._feedback is None

    def test_host_cancellation_in_tiled_run(self, portable):
        feedback = MagicMock()
        feedback.isCanceled.return_value = True
        params = ShadingParameters(large_raster_threshold=10, tile_size=4)
        with pytest.raises(ComputationCancelled):
            compute_hillshade(
                ElevationGrid(samples=create_random_dem((12, 12))),
                params,
                progress_callback=lambda d, t: None,
                feedback=feedback,
            )


class TestUint8Rescale:
    """8-bit display rescale of raw shading."""

    def test_rules(self):
        values = np.array([[-0.5, 0.0, 0.5, 1.0, 1.2, np.nan]])
        relief = ShadedRelief(values=values)
        np.testing.assert_array_equal(relief.to_uint8(), [[0, 0, 128, 255, 255, 0]])
        assert relief.to_uint8().dtype == np.uint8

    def test_flat_terrain(self, portable):
        image = hillshade(create_flat_dem(), altitude=90.0, as_uint8=True)
        assert np.all(image == 255)


class TestHillshadeWrapper:
    def test_overrides_reach_parameters(self, portable):
        dem = create_random_dem((9, 9))
        values = hillshade(dem, cell_size=3.0, method="mdow", exaggeration=2.0)
        expected = compute_hillshade(
            ElevationGrid(samples=dem, cell_size=3.0), ShadingParameters(method="mdow", exaggeration=2.0)
        ).values
        np.testing.assert_array_equal(values, expected)

    def test_unknown_method(self):
        with pytest.raises(ConfigurationError):
            hillshade(create_flat_dem((3, 3)), method="sunbeam")

    def test_package_exports(self):
        assert shadedrelief.compute_hillshade is compute_hillshade
        assert shadedrelief.get_compute_backend() in ("native", "portable")
