"""
Tile progress and cancellation for hillshade runs.

A :class:`ProgressReporter` counts finished tiles and forwards the count to
one sink:

- a host feedback object (``setProgress(percent)``, ``pushInfo(msg)``,
  ``isCanceled()``), when one is passed in;
- otherwise a transient tqdm bar on the terminal;
- otherwise nothing.

Usage:
    from shadedrelief.progress import ProgressReporter

    with ProgressReporter(total=n_tiles, desc="Hillshade tiles") as progress:
        for tile in tiles:
            if progress.is_cancelled():
                break
            shade(tile)
            progress.update()
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

_tqdm: type | None = None
try:
    from tqdm import tqdm as _tqdm
except ImportError:
    pass


def _percent(done: int, total: int) -> int:
    if total <= 0:
        return 0
    return min(100, (100 * done) // total)


class _FeedbackSink:
    """Host feedback object: integer percent, messages, cancellation flag."""

    def __init__(self, feedback: Any, total: int, desc: str):
        self.feedback = feedback
        self.total = total
        if desc:
            feedback.pushInfo(f"Starting: {desc}")

    def advance(self, n: int, done: int) -> None:
        self.feedback.setProgress(_percent(done, self.total))

    def describe(self, desc: str) -> None:
        self.feedback.pushInfo(desc)

    def cancelled(self) -> bool:
        return bool(self.feedback.isCanceled())

    def close(self) -> None:
        pass


class _TqdmSink:
    """Terminal bar, removed once the run finishes."""

    def __init__(self, total: int, desc: str):
        self.bar = _tqdm(total=total, desc=desc, leave=False)

    def advance(self, n: int, done: int) -> None:
        self.bar.update(n)

    def describe(self, desc: str) -> None:
        self.bar.set_description(desc)

    def cancelled(self) -> bool:
        return False

    def close(self) -> None:
        self.bar.close()


class ProgressReporter:
    """
    Count finished work units and report them to the best available sink.

    Args:
        total: Number of units (tiles) in the run.
        desc: Label for the bar or the host's message log.
        feedback: Optional host feedback object. Takes precedence over tqdm.
        disable: Count silently, without any sink.
    """

    def __init__(
        self,
        total: int,
        desc: str = "",
        feedback: Any = None,
        disable: bool = False,
    ):
        self.total = total
        self.desc = desc
        self.current = 0
        self._closed = False
        self._sink: _FeedbackSink | _TqdmSink | None = None

        if disable:
            return
        if feedback is not None:
            self._sink = _FeedbackSink(feedback, total, desc)
        elif _tqdm is not None:
            self._sink = _TqdmSink(total, desc)
        else:
            logger.debug(f"Progress for '{desc}' is not displayed (tqdm not installed)")

    @property
    def backend(self) -> str:
        """``"feedback"``, ``"tqdm"`` or ``"none"``."""
        if isinstance(self._sink, _FeedbackSink):
            return "feedback"
        if isinstance(self._sink, _TqdmSink):
            return "tqdm"
        return "none"

    def update(self, n: int = 1) -> None:
        if self._closed:
            return
        self.current += n
        if self._sink is not None:
            self._sink.advance(n, self.current)

    def set_description(self, desc: str) -> None:
        self.desc = desc
        if self._sink is not None:
            self._sink.describe(desc)

    def is_cancelled(self) -> bool:
        """True once the host asked to stop. Terminal runs are never cancelled here."""
        return self._sink is not None and self._sink.cancelled()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._sink is not None:
            self._sink.close()

    def __enter__(self) -> ProgressReporter:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
