"""Tests panel renderer."""

from __future__ import annotations

from rich.table import Table
from rich.text import Text

from hud_core.models import PanelView
from hud_core.panels import frame, placeholder

MAX_FAILURES = 5


def render(view: PanelView, width: int | None = None):
    data = view.data
    if data is None:
        return placeholder(view, "Tests", "Loading...", width)
    if data.errors and "passed" not in data.meta:
        return placeholder(view, "Tests", data.errors[0], width)

    meta = data.meta
    table = Table(box=None, expand=True, show_header=False, pad_edge=False)
    table.add_column("File", style="dim", no_wrap=True, overflow="ellipsis")
    table.add_column("Test", overflow="ellipsis", no_wrap=True)

    summary = f"[green]✓ {meta.get('passed', 0)} passed[/green]"
    if meta.get("failed"):
        summary += f"  [red]✗ {meta['failed']} failed[/red]"
    if meta.get("skipped"):
        summary += f"  [dim]○ {meta['skipped']} skipped[/dim]"
    table.add_row(Text.from_markup(summary), "")

    if meta.get("outdated"):
        behind = meta.get("commits_behind", 0)
        table.add_row(Text(f"⚠ outdated ({behind} commits behind)", style="yellow"), "")

    for failure in data.items[:MAX_FAILURES]:
        table.add_row(str(failure.get("file", "")), Text(str(failure.get("name", "")), style="red"))
    remaining = len(data.items) - MAX_FAILURES
    if remaining > 0:
        table.add_row("", Text(f"... and {remaining} more", style="dim"))

    title = "Tests"
    if meta.get("hash"):
        title += f" · {meta['hash']}"
    return frame(view, title, table, data.status, width)
