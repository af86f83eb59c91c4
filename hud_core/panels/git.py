"""Git panel renderer."""

from __future__ import annotations

from rich.table import Table
from rich.text import Text

from hud_core.models import PanelView
from hud_core.panels import frame, placeholder

MAX_COMMITS = 5


def render(view: PanelView, width: int | None = None):
    data = view.data
    if data is None:
        return placeholder(view, "Git", "Loading...", width)
    if data.errors:
        return placeholder(view, "Git", data.errors[0], width)

    meta = data.meta
    table = Table(box=None, expand=True, show_header=False, pad_edge=False)
    table.add_column("Hash", style="yellow", no_wrap=True)
    table.add_column("Message", overflow="ellipsis", no_wrap=True)

    if not data.items:
        table.add_row("-", Text("No commits today", style="dim"))
    else:
        for commit in data.items[:MAX_COMMITS]:
            table.add_row(str(commit.get("hash", "")), str(commit.get("message", "")))
        remaining = len(data.items) - MAX_COMMITS
        if remaining > 0:
            table.add_row("", Text(f"... and {remaining} more", style="dim"))

    stats = (
        f"[green]+{meta.get('added', 0)}[/green] [red]-{meta.get('deleted', 0)}[/red] "
        f"· {meta.get('commits', 0)} commits · {meta.get('files', 0)} files"
    )
    if meta.get("uncommitted"):
        stats += f" · [yellow]{meta['uncommitted']} dirty[/yellow]"
    table.add_row("", Text.from_markup(stats))
    return frame(view, f"Git · {meta.get('branch') or '-'}", table, data.status, width)
