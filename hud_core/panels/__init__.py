"""Panel rendering helpers."""

from __future__ import annotations

from rich.console import RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from hud_core.models import PanelView

STATUS_BORDER = {
    "ok": "cyan",
    "warn": "yellow",
    "error": "red",
}


def border_for(status: str) -> str:
    return STATUS_BORDER.get(status, "cyan")


def kv_table(rows: list[tuple[str, str]]) -> Table:
    table = Table(box=None, show_header=False, expand=True, pad_edge=False)
    table.add_column("key", style="bold")
    table.add_column("value", style="default")
    for key, value in rows:
        table.add_row(key, value)
    return table


def title_suffix(view: PanelView) -> str:
    feedback = view.feedback
    if feedback.is_running:
        return "[yellow]running...[/yellow]"
    if feedback.just_completed:
        return "[green]✓ done[/green]"
    if feedback.just_refreshed:
        return "[green]✓[/green]"
    if view.countdown is not None:
        return f"[dim]↻ {view.countdown}s[/dim]"
    if view.hotkey:
        return f"[dim]\\[{view.hotkey}] run[/dim]"
    return ""


def frame(view: PanelView, title: str, body: RenderableType, status: str = "ok", width: int | None = None) -> Panel:
    """Wrap a panel body with its title bar; an error replaces the body, not the frame."""
    if view.error:
        body = Text(view.error, style="red")
        status = "error"
    suffix = title_suffix(view)
    return Panel(
        body,
        title=f"[bold]{title}[/bold]",
        title_align="left",
        subtitle=suffix or None,
        subtitle_align="right",
        border_style=border_for(status),
        width=width,
    )


def placeholder(view: PanelView, title: str, message: str, width: int | None = None) -> Panel:
    return frame(view, title, Text(message, style="dim"), "warn", width)

