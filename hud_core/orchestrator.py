"""Decides when each panel refreshes and runs the refreshes.

Each enabled panel is ``Idle`` or ``Running``. Interval panels own one
repeating timer; manual panels refresh only at startup, on "refresh all" or on
their hotkey. A second refresh of the same panel may start while the first is
still in flight: the last one to finish wins.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable

from hud_core.clock import CountdownClock
from hud_core.feedback import VisualFeedbackTracker
from hud_core.hotkeys import HotkeyAllocator, ManualPanel
from hud_core.models import PanelData, PanelView, RefreshPolicy
from hud_core.timers import TimerHandle, Timers

logger = logging.getLogger(__name__)

TICK_MS = 1000

# panels whose refresh is an explicit run rather than a re-read
COMPLETING_PANELS = frozenset({"tests"})


@dataclass(frozen=True)
class PanelSource:
    name: str
    policy: RefreshPolicy
    fetch: Callable[[], PanelData]
    fetch_async: Callable[[], Awaitable[PanelData]] | None = None
    label: str = ""

    @property
    def completes(self) -> bool:
        return self.name in COMPLETING_PANELS


@dataclass
class PanelState:
    data: PanelData | None = None
    error: str | None = None


class RefreshOrchestrator:
    def __init__(
        self,
        sources: Iterable[PanelSource],
        timers: Timers,
        on_change: Callable[[], None] | None = None,
        on_quit: Callable[[], None] | None = None,
    ):
        self.sources = {source.name: source for source in sources if source.policy.enabled}
        self._timers = timers
        self._on_change = on_change
        self._on_quit = on_quit
        self._states = {name: PanelState() for name in self.sources}
        self._handles: list[TimerHandle] = []
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

        self.clock = CountdownClock({name: source.policy for name, source in self.sources.items()})
        self.feedback = VisualFeedbackTracker(timers, self.sources, on_change=self._changed)
        self.hotkeys = HotkeyAllocator(
            [
                ManualPanel(name=name, label=source.label or f"run {name}", action=self._trigger(name))
                for name, source in self.sources.items()
                if source.policy.is_manual
            ],
            on_refresh_all=self.refresh_all,
            on_quit=self.quit,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def state(self, panel: str) -> PanelState:
        return self._states.get(panel) or PanelState()

    def refresh_sync(self, panel: str) -> None:
        """Blocking fetch, for the first frame before the display starts."""
        source = self.sources.get(panel)
        if source is None:
            return
        try:
            data = source.fetch()
        except Exception as exc:
            self._record_error(panel, exc)
        else:
            self._states[panel] = PanelState(data=data, error=None)

    def refresh_all_sync(self) -> None:
        for name in self.sources:
            self.refresh_sync(name)

    def refresh_async(self, panel: str) -> asyncio.Task | None:
        source = self.sources.get(panel)
        if source is None or self._closed:
            return None
        self.feedback.start_async(panel)
        self._changed()
        task = asyncio.get_running_loop().create_task(self._run(source), name=f"refresh:{panel}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def refresh_all(self) -> list[asyncio.Task]:
        tasks = []
        for name in self.sources:
            task = self.refresh_async(name)
            if task is not None:
                tasks.append(task)
            self.clock.reset(name)
        return tasks

    def handle_input(self, char: str) -> bool:
        return self.hotkeys.handle_input(char)

    def quit(self) -> None:
        if self._on_quit is not None:
            self._on_quit()

    def start(self) -> None:
        """Arm the countdown tick and one repeating timer per interval panel."""
        self._handles.append(self._timers.call_every(TICK_MS, self._tick))
        for name, source in self.sources.items():
            if source.policy.interval_ms is not None:
                self._handles.append(self._timers.call_every(source.policy.interval_ms, self._trigger_timed(name)))
        logger.debug("started %d timer(s)", len(self._handles))

    def close(self) -> None:
        """Cancel every timer; in-flight fetches finish but their results are dropped."""
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()
        self.feedback.close()
        self._closed = True

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def view(self, panel: str) -> PanelView:
        state = self.state(panel)
        return PanelView(
            name=panel,
            data=state.data,
            countdown=self.clock.get(panel),
            feedback=self.feedback.get_state(panel),
            hotkey=self.hotkeys.key_for(panel),
            error=state.error,
        )

    def views(self) -> list[PanelView]:
        return [self.view(name) for name in self.sources]

    async def _run(self, source: PanelSource) -> None:
        logger.debug("refresh %s started", source.name)
        try:
            if source.fetch_async is not None:
                data = await source.fetch_async()
            else:
                data = await asyncio.to_thread(source.fetch)
        except Exception as exc:
            if not self._closed:
                self._record_error(source.name, exc)
        else:
            if not self._closed:
                self._states[source.name] = PanelState(data=data, error=None)
        finally:
            if not self._closed:
                self.feedback.end_async(source.name, completed=source.completes)
                self._changed()
                logger.debug("refresh %s finished", source.name)

    def _record_error(self, panel: str, exc: Exception) -> None:
        message = str(exc) or exc.__class__.__name__
        logger.warning("refresh of %s panel failed: %s", panel, message)
        previous = self._states.get(panel) or PanelState()
        self._states[panel] = PanelState(data=previous.data, error=message)

    def _trigger(self, panel: str) -> Callable[[], None]:
        def action() -> None:
            self.refresh_async(panel)

        return action

    def _trigger_timed(self, panel: str) -> Callable[[], None]:
        def action() -> None:
            self.refresh_async(panel)
            self.clock.reset(panel)

        return action

    def _tick(self) -> None:
        self.clock.tick()
        self._changed()

    def _changed(self) -> None:
        if self._on_change is not None and not self._closed:
            self._on_change()
