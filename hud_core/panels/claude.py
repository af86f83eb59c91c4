"""Coding-agent session renderer."""

from __future__ import annotations

from rich.table import Table
from rich.text import Text

from hud_core.formatting import compact_count, elapsed_since, parse_iso_timestamp
from hud_core.models import PanelView
from hud_core.panels import frame, placeholder

STATUS_LABELS = {
    "running": ("● running", "green"),
    "completed": ("✓ idle", "cyan"),
    "none": ("○ no session", "dim"),
}
TODO_ICONS = {"completed": "✓", "in_progress": "▸", "pending": "○"}


def _todo_line(todos: list[dict]) -> Text | None:
    if not todos:
        return None
    done = len([t for t in todos if t.get("status") == "completed"])
    current = next((t for t in todos if t.get("status") == "in_progress"), None)
    line = Text(f"Todos {done}/{len(todos)}", style="bold")
    if current is not None:
        line.append(f"  {TODO_ICONS['in_progress']} {current.get('content', '')}", style="yellow")
    return line


def render(view: PanelView, width: int | None = None):
    data = view.data
    if data is None:
        return placeholder(view, "Claude", "Loading...", width)
    if data.errors:
        return placeholder(view, "Claude", data.errors[0], width)

    meta = data.meta
    label, style = STATUS_LABELS.get(meta.get("status", "none"), STATUS_LABELS["none"])
    if meta.get("status") == "none":
        message = "No active session" if meta.get("has_session") else "No Claude session for this project"
        return placeholder(view, "Claude", message, width)

    table = Table(box=None, expand=True, show_header=False, pad_edge=False)
    table.add_column("Time", style="dim", no_wrap=True)
    table.add_column("Icon", no_wrap=True)
    table.add_column("Activity", overflow="ellipsis", no_wrap=True)

    header = Text(label, style=style)
    header.append(f"  {compact_count(meta.get('tokens'))} tokens", style="dim")
    started = parse_iso_timestamp(meta.get("started_at"))
    if started is not None:
        header.append(f"  {elapsed_since(started)}", style="dim")
    table.add_row("", "", header)

    todos = _todo_line(meta.get("todos") or [])
    if todos is not None:
        table.add_row("", "", todos)

    for activity in data.items:
        text = Text(str(activity.get("label", "")), style="bold")
        if activity.get("detail"):
            text.append(f": {activity['detail']}")
        if activity.get("count", 1) > 1:
            text.append(f" (×{activity['count']})", style="dim")
        table.add_row(str(activity.get("time", "")), str(activity.get("icon", "")), text)

    title = "Claude"
    if meta.get("model"):
        title += f" · {meta['model']}"
    return frame(view, title, table, data.status, width)
