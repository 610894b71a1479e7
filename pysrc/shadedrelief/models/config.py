"""Shading configuration classes."""

from __future__ import annotations

import json
import math
import numbers
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any

import numpy as np

from ..errors import ConfigurationError
from ..relief_logging import get_logger

logger = get_logger(__name__)

# Cell count above which tiled processing kicks in (when enabled).
LARGE_RASTER_CELLS = 10001 * 10001

MDOW_AZIMUTHS = (360.0, 315.0, 225.0, 270.0)
MDOW_ALTITUDE = 30.0


class ShadingMethod(Enum):
    """Lighting algorithm used to turn surface normals into shading."""

    SURFACE_NORMAL = "surfnorm"
    MULTIDIRECTIONAL_OBLIQUE = "mdow"

    @classmethod
    def parse(cls, value: ShadingMethod | str) -> ShadingMethod:
        """
        Accept an enum member, its value, its name, or ``"default"``.

        Matching is case-insensitive.

        Example:
            >>> ShadingMethod.parse("MDOW")
            <ShadingMethod.MULTIDIRECTIONAL_OBLIQUE: 'mdow'>
            >>> ShadingMethod.parse("default")
            <ShadingMethod.SURFACE_NORMAL: 'surfnorm'>
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ConfigurationError("method", f"expected a method name, got {type(value).__name__}")
        key = value.strip().lower()
        if key == "default":
            return cls.SURFACE_NORMAL
        for member in cls:
            if key in (member.value, member.name.lower()):
                return member
        valid = ", ".join(sorted({m.value for m in cls} | {"default"}))
        raise ConfigurationError("method", f"unknown method '{value}' (valid: {valid})")


@dataclass(frozen=True)
class LightingDirection:
    """
    Direction of a light source.

    Attributes:
        azimuth: Compass direction in degrees, clockwise from north, in [0, 360].
        altitude: Angle above the horizon in degrees, in [0, 90].
    """

    azimuth: float = 315.0
    altitude: float = 60.0

    def validate(self) -> None:
        if not (0.0 <= self.azimuth <= 360.0):
            raise ConfigurationError("azimuth", f"must be in [0, 360] degrees, got {self.azimuth}")
        if not (0.0 <= self.altitude <= 90.0):
            raise ConfigurationError("altitude", f"must be in [0, 90] degrees, got {self.altitude}")

    @property
    def azimuth_radians(self) -> float:
        """Azimuth rotated by -90 degrees so north points up the rows, in radians."""
        return math.radians(self.azimuth - 90.0)

    @property
    def altitude_radians(self) -> float:
        return math.radians(self.altitude)

    def vector(self) -> tuple[float, float, float]:
        """Unit light vector ``(sx, sy, sz)`` in column/row/height space."""
        az = self.azimuth_radians
        alt = self.altitude_radians
        return (
            math.cos(alt) * math.cos(az),
            math.cos(alt) * math.sin(az),
            math.sin(alt),
        )


@dataclass(frozen=True)
class ShadingParameters:
    """
    Settings for a hillshade computation.

    Pure configuration, validated once by :func:`shadedrelief.validate_inputs`
    before any work starts.

    Attributes:
        azimuth: Light azimuth in degrees clockwise from north, [0, 360]. Default 315.
        altitude: Light altitude above the horizon in degrees, [0, 90]. Default 60.
        exaggeration: Multiplier applied to elevations before normals are
            estimated (> 0). Default 1.
        method: ``ShadingMethod.SURFACE_NORMAL`` (single light) or
            ``ShadingMethod.MULTIDIRECTIONAL_OBLIQUE`` (four fixed lights at 30°).
            Strings such as ``"surfnorm"``, ``"mdow"`` or ``"default"`` are accepted.
        use_tiling: Allow tiled processing of rasters larger than
            ``large_raster_threshold`` cells. Default True.
        tile_size: Target tile edge in cells (> 0). Default 2000.
        use_concurrency: Process tiles on a thread pool. Default True.
        use_native: Use the compiled backend when available and applicable.
            Default True.
        tile_workers: Worker threads for tiles. If None, picks an adaptive
            default based on CPU count.
        large_raster_threshold: Cell count above which tiling is engaged.
            Default 10001 × 10001.

    Examples:
        >>> params = ShadingParameters(azimuth=270, exaggeration=2.0)
        >>> params.replace(method="mdow").method
        <ShadingMethod.MULTIDIRECTIONAL_OBLIQUE: 'mdow'>
    """

    azimuth: float = 315.0
    altitude: float = 60.0
    exaggeration: float = 1.0
    method: ShadingMethod = ShadingMethod.SURFACE_NORMAL
    use_tiling: bool = True
    tile_size: int = 2000
    use_concurrency: bool = True
    use_native: bool = True
    tile_workers: int | None = None
    large_raster_threshold: int = LARGE_RASTER_CELLS

    def __post_init__(self):
        if not isinstance(self.method, ShadingMethod):
            object.__setattr__(self, "method", ShadingMethod.parse(self.method))
        # Store numpy scalars as plain Python numbers
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, np.generic):
                object.__setattr__(self, f.name, value.item())

    @property
    def light(self) -> LightingDirection:
        return LightingDirection(azimuth=self.azimuth, altitude=self.altitude)

    def validate(self) -> None:
        """Raise ConfigurationError for the first out-of-range parameter."""
        for name in ("azimuth", "altitude", "exaggeration"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
                raise ConfigurationError(name, f"must be a finite number, got {value!r}")
        self.light.validate()
        if self.exaggeration <= 0:
            raise ConfigurationError("exaggeration", f"must be positive, got {self.exaggeration}")
        if isinstance(self.tile_size, bool) or not isinstance(self.tile_size, numbers.Integral) or self.tile_size <= 0:
            raise ConfigurationError("tile_size", f"must be a positive integer, got {self.tile_size!r}")
        if self.tile_workers is not None and self.tile_workers < 1:
            raise ConfigurationError("tile_workers", f"must be >= 1, got {self.tile_workers}")
        if self.large_raster_threshold < 0:
            raise ConfigurationError(
                "large_raster_threshold", f"must be non-negative, got {self.large_raster_threshold}"
            )

    def replace(self, **changes: Any) -> ShadingParameters:
        """Return a copy with the given fields changed."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["method"] = self.method.value
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ShadingParameters:
        """
        Build parameters from a plain dict, ignoring unknown keys.

        Unknown keys are logged so typos in config files are visible.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown shading parameters: {', '.join(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_json(cls, path: str | Path) -> ShadingParameters:
        """
        Load parameters from a JSON file.

        Example:
            >>> params = ShadingParameters.from_json("hillshade.json")
        """
        from ..config import load_params

        return load_params(path)

    def save(self, path: str | Path) -> None:
        """Save parameters to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved shading parameters to {path}")
