"""Millisecond timers on the asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Timers(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle: ...

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle: ...


class _RepeatingHandle:
    """Re-arms itself at a fixed cadence until cancelled."""

    def __init__(self, owner: LoopTimers, interval_ms: int, callback: Callable[[], None]):
        self._owner = owner
        self._interval = interval_ms / 1000
        self._callback = callback
        self._cancelled = False
        self._next_at = owner.loop.time() + self._interval
        self._handle = owner.loop.call_at(self._next_at, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        # keep the cadence of the previous deadline, but never replay missed ticks
        now = self._owner.loop.time()
        self._next_at += self._interval
        if self._next_at <= now:
            self._next_at += self._interval * max(1, math.ceil((now - self._next_at) / self._interval))
        self._handle = self._owner.loop.call_at(self._next_at, self._fire)
        self._callback()

    def cancel(self) -> None:
        self._cancelled = True
        self._handle.cancel()
        self._owner._forget(self)


class _OneShotHandle:
    def __init__(self, owner: LoopTimers, delay_ms: int, callback: Callable[[], None]):
        self._owner = owner
        self._callback = callback
        self._handle = owner.loop.call_later(delay_ms / 1000, self._fire)

    def _fire(self) -> None:
        self._owner._forget(self)
        self._callback()

    def cancel(self) -> None:
        self._handle.cancel()
        self._owner._forget(self)


class LoopTimers:
    """``Timers`` backed by the running asyncio loop.

    Every handle issued is tracked until it fires or is cancelled, so ``close()``
    can guarantee that no callback runs after teardown.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self.loop = loop or asyncio.get_running_loop()
        self._live: set[_OneShotHandle | _RepeatingHandle] = set()
        self._closed = False

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> _OneShotHandle:
        self._check_open()
        handle = _OneShotHandle(self, delay_ms, callback)
        self._live.add(handle)
        return handle

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> _RepeatingHandle:
        self._check_open()
        if interval_ms <= 0:
            raise ValueError(f"interval must be positive, got {interval_ms}")
        handle = _RepeatingHandle(self, interval_ms, callback)
        self._live.add(handle)
        return handle

    def close(self) -> None:
        pending = list(self._live)
        for handle in pending:
            handle.cancel()
        self._live.clear()
        self._closed = True
        if pending:
            logger.debug("cancelled %d pending timer(s)", len(pending))

    @property
    def pending(self) -> int:
        return len(self._live)

    def _forget(self, handle: _OneShotHandle | _RepeatingHandle) -> None:
        self._live.discard(handle)

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("timers already closed")
