"""Single-key shortcuts for manually refreshed panels."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable

from hud_core.models import Hotkey

RESERVED_KEYS = frozenset({"r", "q"})


@dataclass(frozen=True)
class ManualPanel:
    name: str
    label: str
    action: Callable[[], Any]


def allocate_hotkeys(
    manual_panels: Iterable[ManualPanel],
    on_refresh_all: Callable[[], Any],
    on_quit: Callable[[], Any],
) -> list[Hotkey]:
    """Give each panel the first free letter or digit of its name.

    A panel whose every character is taken gets no key and is only reachable
    through "refresh all". ``r`` and ``q`` always close the list, in that order.
    """
    hotkeys: list[Hotkey] = []
    used = set(RESERVED_KEYS)

    for panel in manual_panels:
        for char in panel.name.lower():
            if char.isalnum() and char not in used:
                used.add(char)
                hotkeys.append(Hotkey(key=char, label=panel.label, action=panel.action, panel=panel.name))
                break

    hotkeys.append(Hotkey(key="r", label="refresh all", action=on_refresh_all))
    hotkeys.append(Hotkey(key="q", label="quit", action=on_quit))
    return hotkeys


class HotkeyAllocator:
    def __init__(
        self,
        manual_panels: Iterable[ManualPanel],
        on_refresh_all: Callable[[], Any],
        on_quit: Callable[[], Any],
    ):
        self.hotkeys = allocate_hotkeys(manual_panels, on_refresh_all, on_quit)
        self._by_key = {hotkey.key: hotkey for hotkey in self.hotkeys}

    def key_for(self, panel: str) -> str | None:
        for hotkey in self.hotkeys:
            if hotkey.panel == panel:
                return hotkey.key
        return None

    def handle_input(self, char: str) -> bool:
        hotkey = self._by_key.get(char)
        if hotkey is None:
            return False
        hotkey.action()
        return True

    @property
    def status_bar_items(self) -> list[str]:
        return [f"{hotkey.key}: {hotkey.label}" for hotkey in self.hotkeys]
