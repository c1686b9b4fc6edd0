"""One-shot frame scheduling used to drive the simulation loop."""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Protocol

from .config import get_layout_config

FrameCallback = Callable[[], None]


class FrameHandle(Protocol):
    def cancel(self) -> None:
        """Prevent the scheduled callback from running."""


class FrameScheduler(Protocol):
    """Protocol implemented by frame sources."""

    def schedule(self, callback: FrameCallback) -> FrameHandle:
        """Run ``callback`` once on the next frame and return its stop handle."""


class _ManualHandle:
    __slots__ = ("callback", "cancelled")

    def __init__(self, callback: FrameCallback) -> None:
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Frame source advanced explicitly by the caller.

    Headless runs and tests step frames with :meth:`run_frame`; callbacks
    scheduled while a frame runs wait for the next one.
    """

    def __init__(self) -> None:
        self._queue: List[_ManualHandle] = []
        self.frame = 0

    def schedule(self, callback: FrameCallback) -> _ManualHandle:
        handle = _ManualHandle(callback)
        self._queue.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for handle in self._queue if not handle.cancelled)

    def run_frame(self) -> int:
        """Run the callbacks due this frame and return how many ran."""

        due, self._queue = self._queue, []
        self.frame += 1
        ran = 0
        for handle in due:
            if handle.cancelled:
                continue
            handle.cancelled = True
            handle.callback()
            ran += 1
        return ran

    def run_frames(self, count: int) -> int:
        total = 0
        for _ in range(count):
            total += self.run_frame()
        return total


class AsyncioScheduler:
    """Frame source backed by ``loop.call_later``.

    ``interval`` defaults to the process-wide ``LayoutConfig.frame_interval``.
    """

    def __init__(
        self, interval: Optional[float] = None, loop: Optional[asyncio.AbstractEventLoop] = None
    ) -> None:
        if interval is None:
            interval = get_layout_config().frame_interval
        if interval < 0.0:
            raise ValueError("interval must be non-negative")
        self.interval = interval
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(self, callback: FrameCallback) -> asyncio.TimerHandle:
        return self.loop.call_later(self.interval, callback)


__all__ = [
    "AsyncioScheduler",
    "FrameCallback",
    "FrameHandle",
    "FrameScheduler",
    "ManualScheduler",
]
