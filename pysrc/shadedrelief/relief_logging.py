"""
Host-aware logging for shadedrelief.

Messages go to the standard ``logging`` module unless a host application
(e.g. a GIS processing framework) registers a feedback object, in which
case they are forwarded to it:

- ``reportError(msg)`` for errors
- ``pushInfo(msg)`` for warnings and info
- ``pushDebugInfo(msg)`` for debug

Usage:
    from shadedrelief.relief_logging import get_logger

    logger = get_logger(__name__)
    logger.info("Elevation grid loaded: 400×400 cells")
    logger.debug(f"Tile layout: {n_row}×{n_col}")
"""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import Any


class LogLevel(IntEnum):
    """Log levels matching Python logging."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40


class ReliefLogger:
    """
    Logger that forwards to a host feedback object when one is set,
    and to the standard ``logging`` module otherwise.
    """

    def __init__(self, name: str, level: LogLevel = LogLevel.INFO):
        """
        Initialize logger.

        Args:
            name: Logger name (usually module name)
            level: Minimum log level to emit
        """
        self.name = name
        self.level = level
        self._feedback: Any = None

    def set_feedback(self, feedback: Any) -> None:
        """Route messages to a host feedback object (or ``None`` to detach)."""
        self._feedback = feedback

    def _log(self, level: LogLevel, message: str) -> None:
        if level < self.level:
            return

        if self._feedback is not None:
            if level >= LogLevel.ERROR:
                self._feedback.reportError(message)
            elif level >= LogLevel.WARNING:
                self._feedback.pushInfo(f"WARNING: {message}")
            elif level >= LogLevel.INFO:
                self._feedback.pushInfo(message)
            else:
                self._feedback.pushDebugInfo(message)
            return

        logging.getLogger(self.name).log(level, message)

    def debug(self, message: str) -> None:
        """Log debug message."""
        self._log(LogLevel.DEBUG, message)

    def info(self, message: str) -> None:
        """Log info message."""
        self._log(LogLevel.INFO, message)

    def warning(self, message: str) -> None:
        """Log warning message."""
        self._log(LogLevel.WARNING, message)

    def error(self, message: str) -> None:
        """Log error message."""
        self._log(LogLevel.ERROR, message)

    def set_level(self, level: LogLevel | int) -> None:
        """Set minimum log level."""
        self.level = LogLevel(level)


_loggers: dict[str, ReliefLogger] = {}


def get_logger(name: str, level: LogLevel | int = LogLevel.DEBUG) -> ReliefLogger:
    """
    Get or create a logger for the given name.

    The wrapper passes everything at or above ``level`` through; the
    standard ``logging`` configuration of the host decides what is shown.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Hillshade started")
    """
    if name not in _loggers:
        _loggers[name] = ReliefLogger(name, LogLevel(level))
    return _loggers[name]


def set_global_level(level: LogLevel | int) -> None:
    """Set log level for all existing loggers."""
    for logger in _loggers.values():
        logger.set_level(level)


def set_global_feedback(feedback: Any) -> None:
    """Set (or clear with ``None``) the host feedback object for all loggers."""
    for logger in _loggers.values():
        logger.set_feedback(feedback)
