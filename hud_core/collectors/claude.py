"""Coding-agent session collector.

Reads the newest JSONL transcript under ``~/.claude/projects/<encoded cwd>`` and
summarises what the agent has been doing recently.
"""

from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from hud_core.collectors import claude_projects_dir, encode_project_path, list_jsonl_files, one_line
from hud_core.formatting import parse_iso_timestamp
from hud_core.models import PanelData

MAX_LINES_TO_SCAN = 200
SESSION_TIMEOUT_SECONDS = 60 * 60
RUNNING_WINDOW_SECONDS = 30
MIN_RESPONSE_LENGTH = 10

ICONS = {
    "User": ">",
    "Response": "<",
    "Edit": "~",
    "Write": "~",
    "Read": "○",
    "Bash": "$",
    "Glob": "*",
    "Grep": "*",
    "WebFetch": "@",
    "WebSearch": "@",
    "Task": "»",
    "AskUserQuestion": "?",
}
DEFAULT_ICON = "$"
DETAIL_KEYS = ("command", "file_path", "pattern", "query", "description")


def session_dir(project_path: str | Path, projects_dir: Path | None = None) -> Path:
    return (projects_dir or claude_projects_dir()) / encode_project_path(project_path)


def find_active_session(directory: Path, timeout_seconds: float = SESSION_TIMEOUT_SECONDS) -> Path | None:
    files = list_jsonl_files(directory)
    if not files:
        return None
    newest = files[0]
    try:
        if time.time() - newest.stat().st_mtime < timeout_seconds:
            return newest
    except OSError:
        return None
    return None


def tool_detail(tool_input: Any) -> str:
    if not isinstance(tool_input, dict):
        return ""
    for key in DETAIL_KEYS:
        value = tool_input.get(key)
        if isinstance(value, str) and value:
            return Path(value).name if key == "file_path" else one_line(value)
    return ""


def _user_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text" and isinstance(block.get("text"), str):
                return block["text"]
    return ""


def _usage_tokens(usage: Any) -> int:
    if not isinstance(usage, dict):
        return 0
    return sum(int(usage.get(key) or 0) for key in ("input_tokens", "cache_read_input_tokens", "output_tokens"))


def _activity(kind: str, label: str, detail: str, ts: datetime | None) -> dict:
    return {
        "type": kind,
        "icon": ICONS.get(label, DEFAULT_ICON),
        "label": label,
        "detail": detail,
        "time": ts.astimezone().strftime("%H:%M:%S") if ts else "n/a",
        "count": 1,
    }


def parse_session(lines: list[str], max_activities: int, now: datetime | None = None) -> dict:
    now = now or datetime.now(timezone.utc)
    activities: list[dict] = []
    tokens = 0
    model = None
    todos = None
    started_at = None
    last_ts: datetime | None = None
    last_kind: str | None = None

    for raw in lines[:50]:
        try:
            entry = json.loads(raw)
        except ValueError:
            continue
        if isinstance(entry, dict) and isinstance(entry.get("timestamp"), str):
            started_at = entry["timestamp"]
            break

    for raw in lines[-MAX_LINES_TO_SCAN:]:
        try:
            entry = json.loads(raw)
        except ValueError:
            continue
        if not isinstance(entry, dict):
            continue
        kind = entry.get("type")
        ts = parse_iso_timestamp(entry.get("timestamp")) or last_ts
        message = entry.get("message") if isinstance(entry.get("message"), dict) else {}

        if kind == "user":
            last_ts = ts
            text = _user_text(message.get("content"))
            if text:
                activities.append(_activity("user", "User", one_line(text), ts))
            result = entry.get("toolUseResult")
            if isinstance(result, dict) and isinstance(result.get("newTodos"), list):
                todos = [t for t in result["newTodos"] if isinstance(t, dict)]
            last_kind = "user"

        elif kind == "assistant":
            last_ts = ts
            model = message.get("model") or model
            for block in message.get("content") or []:
                if not isinstance(block, dict):
                    continue
                if block.get("type") == "tool_use":
                    name = block.get("name") or "Tool"
                    last_kind = "tool"
                    if name == "TodoWrite":
                        continue
                    detail = tool_detail(block.get("input"))
                    previous = activities[-1] if activities else None
                    if previous and previous["type"] == "tool" and previous["label"] == name and previous["detail"] == detail:
                        previous["count"] += 1
                        continue
                    activities.append(_activity("tool", name, detail, ts))
                elif block.get("type") == "text" and len(block.get("text") or "") > MIN_RESPONSE_LENGTH:
                    activities.append(_activity("response", "Response", one_line(block["text"]), ts))
                    last_kind = "response"
            tokens += _usage_tokens(message.get("usage"))

        elif kind == "system" and entry.get("subtype") == "stop_hook_summary":
            last_ts = ts
            last_kind = "stop"

    status = "none"
    if last_ts is not None:
        elapsed = (now - last_ts).total_seconds()
        if elapsed < RUNNING_WINDOW_SECONDS and last_kind not in ("stop", "response"):
            status = "running"
        else:
            status = "completed"

    return {
        "status": status,
        "activities": list(reversed(activities[-max_activities:])),
        "tokens": tokens,
        "started_at": started_at,
        "model": model,
        "todos": todos,
    }


def collect(
    project_path: str | Path,
    max_activities: int = 10,
    projects_dir: Path | None = None,
    timeout_seconds: float = SESSION_TIMEOUT_SECONDS,
) -> PanelData:
    directory = session_dir(project_path, projects_dir)
    session = find_active_session(directory, timeout_seconds)
    if session is None:
        return PanelData(
            key="claude",
            title="Claude",
            status="warn",
            items=[],
            meta={"status": "none", "has_session": directory.exists(), "tokens": 0},
            errors=[],
        )

    try:
        lines = [line for line in session.read_text(errors="replace").splitlines() if line.strip()]
    except OSError as exc:
        return PanelData(
            key="claude",
            title="Claude",
            status="error",
            items=[],
            meta={"status": "none", "has_session": True, "tokens": 0},
            errors=[f"cannot read session: {exc.strerror or exc}"],
        )

    state = parse_session(lines, max_activities)
    return PanelData(
        key="claude",
        title="Claude",
        status="ok",
        items=state["activities"],
        meta={
            "status": state["status"],
            "has_session": True,
            "tokens": state["tokens"],
            "model": state["model"],
            "started_at": state["started_at"],
            "todos": state["todos"],
            "session_file": session.name,
        },
        errors=[],
    )
