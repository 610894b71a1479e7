"""shadedrelief error types for actionable error messages.

These exceptions carry structured information about what went wrong
so callers can identify the offending parameter without parsing strings.

Example:
    try:
        relief = shadedrelief.compute_hillshade(grid, params)
    except shadedrelief.ConfigurationError as e:
        print(f"Bad parameter '{e.parameter}': {e.reason}")
"""

from __future__ import annotations


class ShadedReliefError(Exception):
    """Base class for all shadedrelief errors."""

    pass


class ConfigurationError(ShadedReliefError):
    """Raised when a shading parameter or input grid is invalid.

    Raised before any tile work begins, so no partial output exists.

    Attributes:
        parameter: The problematic parameter name.
        reason: Why the configuration is invalid.
    """

    def __init__(self, parameter: str, reason: str):
        self.parameter = parameter
        self.reason = reason
        message = f"Invalid configuration for '{parameter}': {reason}"
        super().__init__(message)


class InvalidGridData(ConfigurationError):
    """Raised when the elevation grid itself is unusable.

    Attributes:
        field: Name of the problematic field (e.g., "samples", "cell_size").
        expected: What was expected (optional).
        got: What was actually provided (optional).

    Example:
        >>> ElevationGrid(samples=np.empty((0, 5)), cell_size=1.0)
        InvalidGridData: Invalid configuration for 'samples': grid is empty
          Expected: at least one row and one column
          Got: (0, 5)
    """

    def __init__(
        self,
        field: str,
        reason: str,
        expected: str | None = None,
        got: str | None = None,
    ):
        self.field = field
        self.expected = expected
        self.got = got
        details = reason
        if expected is not None:
            details += f"\n  Expected: {expected}"
        if got is not None:
            details += f"\n  Got: {got}"
        super().__init__(field, details)


class AccelerationUnavailable(ShadedReliefError):
    """Raised when the native shading backend cannot be used.

    Never surfaced to callers of ``compute_hillshade``: the dispatcher
    catches it and falls back to the portable path.

    Attributes:
        backend: Name of the backend that was requested.
        reason: Why it could not be used.
    """

    def __init__(self, backend: str, reason: str):
        self.backend = backend
        self.reason = reason
        super().__init__(f"Native backend '{backend}' unavailable: {reason}")


class ComputationCancelled(ShadedReliefError):
    """Raised when a tiled computation is cancelled between tile dispatches.

    Attributes:
        completed: Number of tiles finished before cancellation.
        total: Total number of tiles scheduled.
    """

    def __init__(self, completed: int, total: int):
        self.completed = completed
        self.total = total
        super().__init__(f"Hillshade computation cancelled after {completed}/{total} tiles")


class InvalidTransition(ShadedReliefError):
    """Raised when an ROI session receives a message its state cannot accept.

    Attributes:
        state: Name of the session state at the time of the message.
        message: The rejected message type name.
    """

    def __init__(self, state: str, message: str, reason: str | None = None):
        self.state = state
        self.message = message
        self.reason = reason
        text = f"Cannot handle '{message}' in ROI state '{state}'"
        if reason:
            text += f" ({reason})"
        super().__init__(text)
