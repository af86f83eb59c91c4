"""User-defined panels fed by a shell command or a JSON file."""

from __future__ import annotations

import json
from typing import Any

from hud_core.collectors import capitalize_first, utc_now_iso
from hud_core.config import PanelConfig
from hud_core.models import PanelData
from hud_core.sysio import CommandError, SystemIO

ITEM_STATUSES = {"done", "pending", "failed"}


def _items(raw: Any) -> list[dict]:
    items = []
    for entry in raw or []:
        if isinstance(entry, dict):
            item = {"text": str(entry.get("text", ""))}
            if entry.get("status") in ITEM_STATUSES:
                item["status"] = entry["status"]
            items.append(item)
        elif isinstance(entry, str):
            items.append({"text": entry})
    return items


def _panel(panel: PanelConfig, title: str, items: list[dict], extra: dict | None = None, error: str | None = None) -> PanelData:
    meta: dict[str, Any] = {"renderer": panel.renderer, "timestamp": utc_now_iso()}
    meta.update(extra or {})
    return PanelData(
        key=panel.name,
        title=title,
        status="warn" if error else "ok",
        items=items,
        meta=meta,
        errors=[error] if error else [],
    )


def from_json(panel: PanelConfig, payload: dict) -> PanelData:
    extra = {key: payload[key] for key in ("summary", "progress", "stats") if payload.get(key) is not None}
    title = str(payload.get("title") or capitalize_first(panel.name))
    return _panel(panel, title, _items(payload.get("items")), extra)


def from_output(panel: PanelConfig, output: str) -> PanelData:
    """JSON object if the command printed one, otherwise one item per non-blank line."""
    text = output.strip()
    try:
        payload = json.loads(text)
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        return from_json(panel, payload)
    lines = [line for line in text.splitlines() if line.strip()]
    return _panel(panel, capitalize_first(panel.name), [{"text": line} for line in lines])


def _command_failed(panel: PanelConfig, exc: CommandError) -> PanelData:
    first = str(exc).splitlines()[0] if str(exc) else "unknown error"
    return _panel(panel, capitalize_first(panel.name), [], error=f"Command failed: {first}")


def _from_source(panel: PanelConfig, io: SystemIO) -> PanelData:
    try:
        content = io.read_text(panel.source)
    except FileNotFoundError:
        return _panel(panel, capitalize_first(panel.name), [], error="File not found")
    except OSError as exc:
        return _panel(panel, capitalize_first(panel.name), [], error=f"Unreadable file: {exc.strerror or exc}")
    try:
        payload = json.loads(content)
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        return _panel(panel, capitalize_first(panel.name), [], error="Invalid JSON")
    return from_json(panel, payload)


def _unconfigured(panel: PanelConfig) -> PanelData:
    return _panel(panel, capitalize_first(panel.name), [], error="No command or source configured")


def collect(panel: PanelConfig, io: SystemIO) -> PanelData:
    if panel.command:
        try:
            return from_output(panel, io.run(panel.command))
        except CommandError as exc:
            return _command_failed(panel, exc)
    if panel.source:
        return _from_source(panel, io)
    return _unconfigured(panel)


async def collect_async(panel: PanelConfig, io: SystemIO) -> PanelData:
    if panel.command:
        try:
            return from_output(panel, await io.run_async(panel.command))
        except CommandError as exc:
            return _command_failed(panel, exc)
    if panel.source:
        return _from_source(panel, io)
    return _unconfigured(panel)
