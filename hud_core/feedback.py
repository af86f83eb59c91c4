"""Short-lived "running / just refreshed / just completed" flags per panel."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Iterable

from hud_core.models import VisualFeedback
from hud_core.timers import TimerHandle, Timers

logger = logging.getLogger(__name__)

FEEDBACK_DURATION_MS = 1500

_FLASH_FLAGS = ("just_refreshed", "just_completed")


class VisualFeedbackTracker:
    def __init__(
        self,
        timers: Timers,
        panels: Iterable[str] = (),
        duration_ms: int = FEEDBACK_DURATION_MS,
        on_change: Callable[[], None] | None = None,
    ):
        self._timers = timers
        self._duration_ms = duration_ms
        self._on_change = on_change
        self._states: dict[str, VisualFeedback] = {name: VisualFeedback() for name in panels}
        self._pending: dict[tuple[str, str], TimerHandle] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def states(self) -> dict[str, VisualFeedback]:
        return {name: replace(state) for name, state in self._states.items()}

    def get_state(self, panel: str) -> VisualFeedback:
        state = self._states.get(panel)
        return replace(state) if state is not None else VisualFeedback()

    def set_running(self, panel: str, running: bool) -> None:
        self._update(panel, is_running=running)

    def set_refreshed(self, panel: str) -> None:
        self._flash(panel, "just_refreshed")

    def set_completed(self, panel: str) -> None:
        self._flash(panel, "just_completed")

    def start_async(self, panel: str) -> None:
        self.set_running(panel, True)

    def end_async(self, panel: str, completed: bool = False) -> None:
        self.set_running(panel, False)
        if completed:
            self.set_completed(panel)
        else:
            self.set_refreshed(panel)

    def close(self) -> None:
        """Cancel every pending auto-clear; later calls are ignored."""
        for handle in self._pending.values():
            handle.cancel()
        self._pending.clear()
        self._closed = True

    def _update(self, panel: str, **changes: bool) -> None:
        if self._closed:
            return
        current = self._states.get(panel) or VisualFeedback()
        self._states[panel] = replace(current, **changes)

    def _flash(self, panel: str, flag: str) -> None:
        if self._closed:
            return
        # the two flash flags are mutually exclusive
        for other in _FLASH_FLAGS:
            if other != flag:
                self._cancel(panel, other)
        self._update(panel, **{name: name == flag for name in _FLASH_FLAGS})

        self._cancel(panel, flag)
        self._pending[(panel, flag)] = self._timers.call_later(
            self._duration_ms, lambda: self._expire(panel, flag)
        )

    def _cancel(self, panel: str, flag: str) -> None:
        handle = self._pending.pop((panel, flag), None)
        if handle is not None:
            handle.cancel()

    def _expire(self, panel: str, flag: str) -> None:
        self._pending.pop((panel, flag), None)
        self._update(panel, **{flag: False})
        logger.debug("%s cleared for %s", flag, panel)
        if self._on_change is not None and not self._closed:
            self._on_change()
