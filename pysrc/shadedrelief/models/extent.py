"""Geographic region-of-interest extent."""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ConfigurationError


@dataclass(frozen=True)
class RegionExtent:
    """
    Rectangular lat/lon extent picked by a user.

    Attributes:
        min_lat, min_lon, max_lat, max_lon: Bounds in decimal degrees.
    """

    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float

    def __post_init__(self):
        if self.min_lat > self.max_lat:
            raise ConfigurationError("min_lat", f"{self.min_lat} is north of max_lat {self.max_lat}")
        if self.min_lon > self.max_lon:
            raise ConfigurationError("min_lon", f"{self.min_lon} is east of max_lon {self.max_lon}")
        if not (-90.0 <= self.min_lat and self.max_lat <= 90.0):
            raise ConfigurationError("latitude", "must be within [-90, 90]")

    @classmethod
    def from_position(cls, lat: float, lon: float, height: float, width: float) -> RegionExtent:
        """Build from a rectangle given as lower-left corner plus height/width in degrees."""
        return cls(min_lat=lat, min_lon=lon, max_lat=lat + height, max_lon=lon + width)

    def as_list(self) -> list[float]:
        """``[min_lat, min_lon, max_lat, max_lon]``."""
        return [self.min_lat, self.min_lon, self.max_lat, self.max_lon]

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """``(min_lon, min_lat, max_lon, max_lat)``, the x/y order used by raster bboxes."""
        return (self.min_lon, self.min_lat, self.max_lon, self.max_lat)
