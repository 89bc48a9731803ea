"""Single-shot timer backends for the playback scheduler.

WHY: The scheduler only needs "call me back once after N milliseconds"
and "forget it". Keeping that behind a tiny interface lets the same
scheduler run on an asyncio loop (CLI, server), a GUI toolkit's event
loop, or a manual test clock.

HOW: BaseTimer is an ABC with schedule(), cancel() and an ``active``
property. AsyncioTimer implements it with ``loop.call_later``.

RULES:
- A timer holds at most one pending callback; schedule() replaces it
- cancel() is synchronous and idempotent
- Callbacks run on the loop's own thread; timers never spawn threads
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Callable, Optional

TimerCallback = Callable[[], None]


class BaseTimer(ABC):
    """Abstract single-shot timer.

    To add a backend (e.g. tkinter's ``after``):
    1. Subclass BaseTimer
    2. Implement schedule(), cancel() and active
    3. Pass an instance to PlaybackScheduler
    """

    @abstractmethod
    def schedule(self, delay_ms: float, callback: TimerCallback) -> None:
        """Arm the timer, replacing any pending callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Drop the pending callback, if any."""

    @property
    @abstractmethod
    def active(self) -> bool:
        """True while a callback is pending."""


class AsyncioTimer(BaseTimer):
    """Timer backed by ``loop.call_later`` on a running asyncio loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(self, delay_ms: float, callback: TimerCallback) -> None:
        self.cancel()

        def _fire() -> None:
            self._handle = None
            callback()

        self._handle = self._get_loop().call_later(max(delay_ms, 0.0) / 1000.0, _fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def active(self) -> bool:
        return self._handle is not None
