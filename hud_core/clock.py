"""Per-panel countdown to the next automatic refresh."""

from __future__ import annotations

from typing import Mapping

from hud_core.models import RefreshPolicy


def to_seconds(interval_ms: int | None) -> int | None:
    if interval_ms is None:
        return None
    return interval_ms // 1000


class CountdownClock:
    """Seconds remaining per panel; ``None`` for manual panels.

    ``tick()`` runs once a second. A countdown never drops below 1: the panel's
    own timer resets it, and if that timer lags the value is pinned at 1.
    """

    def __init__(self, policies: Mapping[str, RefreshPolicy]):
        self._intervals: dict[str, int | None] = {
            name: to_seconds(policy.interval_ms) for name, policy in policies.items() if policy.enabled
        }
        self._remaining: dict[str, int | None] = dict(self._intervals)

    @property
    def countdowns(self) -> dict[str, int | None]:
        return dict(self._remaining)

    def get(self, panel: str) -> int | None:
        return self._remaining.get(panel)

    def tick(self) -> None:
        for name, value in self._remaining.items():
            if value is not None and value > 1:
                self._remaining[name] = value - 1

    def reset(self, panel: str) -> None:
        interval = self._intervals.get(panel)
        if interval is None:
            return
        self._remaining[panel] = interval

    def reset_all(self) -> None:
        for name in self._remaining:
            self.reset(name)
