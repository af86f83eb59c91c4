"""Renderer for custom panels (list, progress or status layout)."""

from __future__ import annotations

from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from hud_core.models import PanelView
from hud_core.panels import frame, placeholder

MAX_ITEMS = 8

ITEM_ICONS = {
    "done": ("✓", "green"),
    "pending": ("○", "dim"),
    "failed": ("✗", "red"),
}


def _item_rows(table: Table, items: list[dict]) -> None:
    for item in items[:MAX_ITEMS]:
        icon, style = ITEM_ICONS.get(item.get("status", ""), ("•", "default"))
        table.add_row(Text(icon, style=style), str(item.get("text", "")))
    remaining = len(items) - MAX_ITEMS
    if remaining > 0:
        table.add_row("", Text(f"... and {remaining} more", style="dim"))


def _progress_row(table: Table, progress: dict) -> None:
    done = int(progress.get("done", 0) or 0)
    total = int(progress.get("total", 0) or 0)
    table.add_row(f"{done}/{total}", ProgressBar(total=max(total, 1), completed=min(done, max(total, 1)), width=30))


def _stats_row(table: Table, stats: dict) -> None:
    line = f"[green]✓ {stats.get('passed', 0)}[/green]  [red]✗ {stats.get('failed', 0)}[/red]"
    if stats.get("skipped"):
        line += f"  [dim]○ {stats['skipped']}[/dim]"
    table.add_row("", Text.from_markup(line))


def render(view: PanelView, width: int | None = None):
    data = view.data
    title = data.title if data is not None else view.name.capitalize()
    if data is None:
        return placeholder(view, title, "Loading...", width)
    if data.errors:
        return placeholder(view, title, data.errors[0], width)

    meta = data.meta
    renderer = meta.get("renderer", "list")
    table = Table(box=None, expand=True, show_header=False, pad_edge=False)
    table.add_column("", no_wrap=True)
    table.add_column("", overflow="fold")

    if meta.get("summary"):
        table.add_row("", Text(str(meta["summary"])))
    if renderer == "progress" and isinstance(meta.get("progress"), dict):
        _progress_row(table, meta["progress"])
    if renderer == "status" and isinstance(meta.get("stats"), dict):
        _stats_row(table, meta["stats"])
    if data.items:
        _item_rows(table, data.items)
    elif not meta.get("summary"):
        table.add_row("", Text("No data", style="dim"))
    return frame(view, title, table, data.status, width)
