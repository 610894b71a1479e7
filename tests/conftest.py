"""Shared pytest configuration, path setup and synthetic elevation grids."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Make `from conftest import ...` work regardless of how pytest is invoked.
_tests_dir = str(Path(__file__).resolve().parent)
if _tests_dir not in sys.path:
    sys.path.insert(0, _tests_dir)


def create_flat_dem(size=(20, 20), elevation=100.0):
    """Completely flat DEM."""
    return np.full(size, elevation, dtype=np.float64)


def create_ramp_dem(size=(5, 5)):
    """DEM with z = row² + 2·col, so every cell has a different normal."""
    r, c = np.mgrid[0 : size[0], 0 : size[1]]
    return (r**2 + 2 * c).astype(np.float64)


def create_ridge_dem(size=(12, 11), slope=1.0):
    """North-south ridge along the middle column: two planes facing west and east."""
    c = np.arange(size[1], dtype=np.float64)
    ridge = size[1] // 2
    return np.tile(-slope * np.abs(c - ridge), (size[0], 1)) + 100.0


def create_random_dem(size=(37, 53), seed=42):
    """Smooth-ish random terrain."""
    rng = np.random.default_rng(seed)
    noise = rng.normal(0.0, 1.0, size).cumsum(axis=0).cumsum(axis=1)
    return 500.0 + noise


@pytest.fixture
def random_dem():
    return create_random_dem()


@pytest.fixture
def portable(monkeypatch):
    """Force the portable numpy path for the duration of a test."""
    monkeypatch.setenv("SHADEDRELIEF_DISABLE_NATIVE", "1")
