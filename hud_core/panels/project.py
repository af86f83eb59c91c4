"""Project panel renderer."""

from __future__ import annotations

from hud_core.models import PanelView
from hud_core.panels import frame, kv_table, placeholder


def render(view: PanelView, width: int | None = None):
    data = view.data
    if data is None:
        return placeholder(view, "Project", "Loading...", width)
    rows = [(str(item.get("label", "")), str(item.get("value", ""))) for item in data.items]
    return frame(view, f"Project · {data.meta.get('name', '-')}", kv_table(rows), data.status, width)
