"""Status bar and config warnings."""

from __future__ import annotations

from rich.console import Group
from rich.text import Text

from hud_core.models import Hotkey


def render(hotkeys: list[Hotkey], warnings: list[str] | None = None) -> Group:
    line = Text()
    for index, hotkey in enumerate(hotkeys):
        if index:
            line.append(" · ", style="dim")
        line.append(hotkey.key, style="bold cyan")
        line.append(f": {hotkey.label}")
    rows: list[Text] = [Text(f"⚠ {warning}", style="yellow") for warning in warnings or []]
    rows.append(line)
    return Group(*rows)
