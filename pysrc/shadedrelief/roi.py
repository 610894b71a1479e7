"""
Region-of-interest (ROI) selection logic.

Toolkit-free state machine behind an interactive rectangle picker. A map
front end translates user actions into messages and feeds them to
:meth:`RoiSession.dispatch`; the session tracks the rectangle, recomputes
its area on the ellipsoid after every change, and enforces an optional
area limit that blocks confirmation.

States: NO_ROI → DRAWING → HAS_ROI → CONFIRMED, with CANCELLED reachable
from every non-terminal state.

Example:
    session = RoiSession(request_limit=10_000)  # km²
    session.dispatch(StartDrawing())
    session.dispatch(UpdateRectangle(lat=46.0, lon=7.0, height=1.0, width=1.5))
    session.dispatch(FinishDrawing())
    session.dispatch(Confirm())
    extent = session.result()  # RegionExtent or None
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from .errors import InvalidTransition
from .models.extent import RegionExtent
from .relief_logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Ellipsoid area
# =============================================================================


@dataclass(frozen=True)
class Ellipsoid:
    """
    Reference ellipsoid for area computation.

    Attributes:
        a: Semi-major axis; areas come out in this unit squared.
        f: Flattening (0 for a sphere).
        unit: Label of the length unit of ``a``.
    """

    a: float
    f: float = 0.0
    unit: str = "km"

    @property
    def eccentricity(self) -> float:
        return math.sqrt(self.f * (2.0 - self.f))

    @classmethod
    def from_name(cls, name: str, unit: str = "km") -> Ellipsoid:
        """
        Look up a named ellipsoid (e.g. ``"WGS84"``, ``"GRS80"``) via pyproj.

        Args:
            name: Any ellipsoid name pyproj's ``Geod(ellps=...)`` accepts.
            unit: ``"km"`` or ``"m"``.
        """
        from pyproj import Geod

        geod = Geod(ellps=name)
        scale = 1e-3 if unit == "km" else 1.0
        return cls(a=geod.a * scale, f=geod.f, unit=unit)


# Mean Earth radius sphere (IUGG), in kilometres.
SPHERE_KM = Ellipsoid(a=6371.0088, f=0.0, unit="km")


def _authalic_q(sin_phi: float, e: float) -> float:
    es = e * sin_phi
    return sin_phi / (1.0 - es * es) + math.log((1.0 + es) / (1.0 - es)) / (2.0 * e)


def quad_area(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
    ellipsoid: Ellipsoid = SPHERE_KM,
) -> float:
    """
    Surface area of the lat/lon quadrangle bounded by two parallels and two meridians.

    Exact on the ellipsoid (via the authalic latitude); reduces to
    ``a² · Δλ · |sin φ2 − sin φ1|`` on a sphere.

    Args:
        lat1, lon1, lat2, lon2: Corner coordinates in degrees (any order).
        ellipsoid: Reference body. Default: sphere of radius 6371.0088 km.

    Returns:
        Area in ``ellipsoid.unit`` squared.
    """
    dlon = math.radians(abs(lon2 - lon1))
    s1 = math.sin(math.radians(lat1))
    s2 = math.sin(math.radians(lat2))
    e = ellipsoid.eccentricity
    if e == 0.0:
        return ellipsoid.a**2 * dlon * abs(s2 - s1)
    dq = abs(_authalic_q(s2, e) - _authalic_q(s1, e))
    return 0.5 * ellipsoid.a**2 * (1.0 - e * e) * dlon * dq


# =============================================================================
# Messages
# =============================================================================


class RoiState(Enum):
    NO_ROI = "no_roi"
    DRAWING = "drawing"
    HAS_ROI = "has_roi"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class StartDrawing:
    """Begin drawing a new rectangle, discarding any existing one."""


@dataclass(frozen=True)
class UpdateRectangle:
    """Rectangle dragged, resized or moved: lower-left corner plus size in degrees."""

    lat: float
    lon: float
    height: float
    width: float


@dataclass(frozen=True)
class FinishDrawing:
    """Mouse released; the drawn rectangle becomes the ROI."""


@dataclass(frozen=True)
class ClearRoi:
    """Delete the current rectangle."""


@dataclass(frozen=True)
class SetRoiToMapExtent:
    """Replace the ROI with the visible map extent."""

    lat_limits: tuple[float, float]
    lon_limits: tuple[float, float]


@dataclass(frozen=True)
class Confirm:
    """Accept the current ROI and end the session."""


@dataclass(frozen=True)
class Cancel:
    """Abort the session without an ROI."""


RoiMessage = StartDrawing | UpdateRectangle | FinishDrawing | ClearRoi | SetRoiToMapExtent | Confirm | Cancel

_TERMINAL = (RoiState.CONFIRMED, RoiState.CANCELLED)


# =============================================================================
# Session
# =============================================================================


class RoiSession:
    """
    Rectangle-picking session.

    Args:
        ellipsoid: Body used for area computation. Default: sphere in km.
        request_limit: Maximum ROI area (in ``ellipsoid.unit`` squared).
            Larger ROIs cannot be confirmed. Default: no limit.
        drawing_area: ``(lat_min, lon_min, height, width)`` in degrees that
            rectangles are clamped to. Default: the whole globe.
    """

    def __init__(
        self,
        ellipsoid: Ellipsoid = SPHERE_KM,
        request_limit: float = math.inf,
        drawing_area: tuple[float, float, float, float] = (-90.0, -180.0, 180.0, 360.0),
    ):
        self.ellipsoid = ellipsoid
        self.request_limit = request_limit
        self.drawing_area = drawing_area
        self._state = RoiState.NO_ROI
        self._extent: RegionExtent | None = None
        self._area = math.nan

    @property
    def state(self) -> RoiState:
        return self._state

    @property
    def extent(self) -> RegionExtent | None:
        """Current rectangle (also while drawing), or None."""
        return self._extent

    @property
    def area(self) -> float:
        """Area of the current rectangle, NaN when there is none."""
        return self._area

    @property
    def too_large(self) -> bool:
        return self._extent is not None and self._area > self.request_limit

    @property
    def can_confirm(self) -> bool:
        return self._state is RoiState.HAS_ROI and not self.too_large

    # -------------------------------------------------------------------------

    def _clamp(self, lat: float, lon: float, height: float, width: float) -> RegionExtent:
        lat0, lon0, dlat, dlon = self.drawing_area
        min_lat = min(max(min(lat, lat + height), lat0), lat0 + dlat)
        max_lat = min(max(max(lat, lat + height), lat0), lat0 + dlat)
        min_lon = min(max(min(lon, lon + width), lon0), lon0 + dlon)
        max_lon = min(max(max(lon, lon + width), lon0), lon0 + dlon)
        return RegionExtent(min_lat=min_lat, min_lon=min_lon, max_lat=max_lat, max_lon=max_lon)

    def _set_extent(self, extent: RegionExtent | None) -> None:
        self._extent = extent
        if extent is None:
            self._area = math.nan
        else:
            self._area = quad_area(extent.min_lat, extent.min_lon, extent.max_lat, extent.max_lon, self.ellipsoid)

    def _reject(self, msg: RoiMessage, reason: str | None = None) -> None:
        raise InvalidTransition(self._state.value, type(msg).__name__, reason)

    def dispatch(self, msg: RoiMessage) -> RoiState:
        """
        Apply one user-action message.

        Returns:
            The new state.

        Raises:
            InvalidTransition: The message is not allowed in the current state
                (anything after CONFIRMED/CANCELLED, confirming without a valid
                ROI, or updating a rectangle that is not being drawn or shown).
        """
        state = self._state
        if state in _TERMINAL:
            self._reject(msg, "session has ended")

        if isinstance(msg, Cancel):
            self._set_extent(None)
            self._state = RoiState.CANCELLED
        elif isinstance(msg, StartDrawing):
            self._set_extent(None)
            self._state = RoiState.DRAWING
        elif isinstance(msg, UpdateRectangle):
            if state is RoiState.NO_ROI:
                self._reject(msg, "no rectangle to update")
            self._set_extent(self._clamp(msg.lat, msg.lon, msg.height, msg.width))
        elif isinstance(msg, FinishDrawing):
            if state is not RoiState.DRAWING:
                self._reject(msg, "not drawing")
            self._state = RoiState.HAS_ROI if self._extent is not None else RoiState.NO_ROI
        elif isinstance(msg, ClearRoi):
            self._set_extent(None)
            self._state = RoiState.NO_ROI
        elif isinstance(msg, SetRoiToMapExtent):
            self._set_extent(None)
            lon1, lon2 = (min(max(v, -180.0), 180.0) for v in msg.lon_limits)
            if lon1 == lon2:
                logger.debug("Map extent has zero width after clamping; ROI removed")
                self._state = RoiState.NO_ROI
            else:
                lat1, lat2 = msg.lat_limits
                self._set_extent(self._clamp(lat1, lon1, lat2 - lat1, lon2 - lon1))
                self._state = RoiState.HAS_ROI
        elif isinstance(msg, Confirm):
            if state is not RoiState.HAS_ROI:
                self._reject(msg, "no ROI to confirm")
            if self.too_large:
                self._reject(msg, f"ROI area {self._area:.2g} exceeds limit {self.request_limit:g}")
            self._state = RoiState.CONFIRMED
        else:
            raise TypeError(f"Unknown ROI message: {msg!r}")

        if self._state is not state:
            logger.debug(f"ROI session: {state.value} -> {self._state.value}")
        return self._state

    # -------------------------------------------------------------------------

    def result(self) -> RegionExtent | None:
        """The confirmed extent, or None if the session was cancelled or is still open."""
        return self._extent if self._state is RoiState.CONFIRMED else None

    def zoom_limits(self) -> tuple[tuple[float, float], tuple[float, float]] | None:
        """``((min_lat, max_lat), (min_lon, max_lon))`` for zooming the map to the ROI."""
        if self._extent is None:
            return None
        e = self._extent
        return (e.min_lat, e.max_lat), (e.min_lon, e.max_lon)

    def area_label(self) -> str:
        if self._extent is None:
            return "Area = NaN"
        label = f"Area: {self._area:.2g} {self.ellipsoid.unit}²"
        if self.too_large:
            label += " (ROI too large)"
        return label

    def extent_label(self) -> str:
        if self._extent is None:
            return "Extent = NaN"
        e = self._extent
        return f"T:{e.max_lat:g} B:{e.min_lat:g} L:{e.min_lon:g} R:{e.max_lon:g}"
