"""
Step scheduling for animations.

The viewport never blocks or sleeps: an animated transition is a chain of
single steps, each scheduled on a Scheduler and cancelable through the handle
schedule() returns.
"""

from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Protocol

from .config import get_config


class Scheduler(ABC):
    """Runs a callback once, at the next frame/tick."""

    @abstractmethod
    def schedule(self, callback: Callable[[], None]) -> Any:
        """Queue callback and return a handle for cancel()."""
        ...

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        """Drop a queued callback. Unknown or already-run handles are ignored."""
        ...


class ManualScheduler(Scheduler):
    """
    Frame queue driven by the host (or a test) calling run_pending().

    Callbacks scheduled while a frame runs are deferred to the next frame.
    """

    def __init__(self):
        self._queue: dict[int, Callable[[], None]] = {}
        self._ids = itertools.count(1)

    def schedule(self, callback: Callable[[], None]) -> int:
        handle = next(self._ids)
        self._queue[handle] = callback
        return handle

    def cancel(self, handle: Any) -> None:
        self._queue.pop(handle, None)

    @property
    def pending(self) -> int:
        return len(self._queue)

    def run_pending(self) -> int:
        """Run one frame: every callback queued before this call. Returns how many ran."""
        frame = list(self._queue.items())
        ran = 0
        for handle, callback in frame:
            # an earlier callback in this frame may have canceled it
            if self._queue.pop(handle, None) is None:
                continue
            callback()
            ran += 1
        return ran

    def run_until_idle(self, max_frames: int = 10_000) -> int:
        """Run frames until nothing is queued. Returns the number of frames run."""
        frames = 0
        while self._queue and frames < max_frames:
            self.run_pending()
            frames += 1
        return frames


class _AfterWidget(Protocol):
    def after(self, ms: int, func: Callable[[], None]) -> Any: ...

    def after_cancel(self, id: Any) -> None: ...


class AfterScheduler(Scheduler):
    """Adapter for tkinter-style widgets exposing after()/after_cancel()."""

    def __init__(self, widget: _AfterWidget, interval_ms: int | None = None):
        self.widget = widget
        self.interval_ms = get_config().animation.frame_interval_ms if interval_ms is None else interval_ms

    def schedule(self, callback: Callable[[], None]) -> Any:
        return self.widget.after(self.interval_ms, callback)

    def cancel(self, handle: Any) -> None:
        self.widget.after_cancel(handle)
