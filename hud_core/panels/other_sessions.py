"""Other agent sessions renderer."""

from __future__ import annotations

from rich.table import Table
from rich.text import Text

from hud_core.models import PanelView
from hud_core.panels import frame, placeholder

MAX_PROJECTS = 4


def render(view: PanelView, width: int | None = None):
    data = view.data
    if data is None:
        return placeholder(view, "Other Sessions", "Loading...", width)
    meta = data.meta
    if not meta.get("recent"):
        return placeholder(view, "Other Sessions", "No other sessions", width)

    table = Table(box=None, expand=True, show_header=False, pad_edge=False)
    table.add_column("", overflow="ellipsis", no_wrap=True)

    names = meta.get("projects") or []
    listed = ", ".join(names[:MAX_PROJECTS])
    if len(names) > MAX_PROJECTS:
        listed += f" +{len(names) - MAX_PROJECTS}"
    summary = Text(f"{meta.get('total_projects', 0)} projects · ")
    summary.append(f"{meta.get('active', 0)} active", style="green" if meta.get("active") else "dim")
    table.add_row(summary)
    table.add_row(Text(listed, style="dim"))

    recent = meta["recent"]
    line = Text("● " if recent.get("active") else "○ ", style="green" if recent.get("active") else "dim")
    line.append(str(recent.get("project", "")), style="bold")
    line.append(f" · {recent.get('age', '')}", style="dim")
    table.add_row(line)
    if recent.get("message"):
        table.add_row(Text(f'"{recent["message"]}"', style="italic"))
    return frame(view, "Other Sessions", table, data.status, width)
