"""Agent sessions running in other projects on this machine."""

from __future__ import annotations

import json
import os
import time
from pathlib import Path

from hud_core.collectors import claude_projects_dir, encode_project_path, list_jsonl_files, one_line
from hud_core.formatting import compact_relative_age
from hud_core.models import PanelData

TAIL_BYTES = 64 * 1024


def decode_project_path(encoded: str) -> str:
    """Best-effort inverse of the agent's ``/`` -> ``-`` folder naming.

    Dashes are ambiguous, so segments are re-joined greedily against directories
    that actually exist.
    """
    naive = encoded.replace("-", os.sep)
    if os.path.isdir(naive):
        return naive

    segments = [s for s in encoded.split("-") if s]
    current = ""
    i = 0
    while i < len(segments):
        for j in range(len(segments), i, -1):
            candidate = os.path.join(current or os.sep, "-".join(segments[i:j]))
            if os.path.isdir(candidate):
                current = candidate
                i = j
                break
        else:
            current = os.path.join(current or os.sep, segments[i])
            i += 1
    return current or naive


def last_assistant_message(session_file: Path) -> str | None:
    try:
        with open(session_file, "rb") as handle:
            handle.seek(0, os.SEEK_END)
            size = handle.tell()
            handle.seek(max(0, size - TAIL_BYTES))
            tail = handle.read().decode("utf-8", errors="replace")
    except OSError:
        return None

    for raw in reversed(tail.splitlines()):
        try:
            entry = json.loads(raw)
        except ValueError:
            continue
        if not isinstance(entry, dict) or entry.get("type") != "assistant":
            continue
        content = (entry.get("message") or {}).get("content")
        if isinstance(content, list):
            for block in content:
                if isinstance(block, dict) and block.get("type") == "text" and block.get("text"):
                    return one_line(block["text"])
    return None


def collect(
    current_project: str | Path,
    active_threshold_seconds: float = 300,
    projects_dir: Path | None = None,
) -> PanelData:
    root = projects_dir or claude_projects_dir()
    current_encoded = encode_project_path(str(current_project).rstrip("/\\"))

    sessions: list[dict] = []
    total = 0
    try:
        project_dirs = sorted(p for p in root.iterdir() if p.is_dir())
    except OSError:
        project_dirs = []

    now = time.time()
    for project_dir in project_dirs:
        total += 1
        if project_dir.name == current_encoded:
            continue
        files = list_jsonl_files(project_dir)
        if not files:
            continue
        try:
            mtime = files[0].stat().st_mtime
        except OSError:
            continue
        path = decode_project_path(project_dir.name)
        sessions.append(
            {
                "project": Path(path).name or path,
                "path": path,
                "mtime": mtime,
                "file": files[0],
                "active": now - mtime < active_threshold_seconds,
            }
        )

    sessions.sort(key=lambda s: s["mtime"], reverse=True)
    names: list[str] = []
    for session in sessions:
        if session["project"] not in names:
            names.append(session["project"])

    meta = {
        "total_projects": total,
        "active": len([s for s in sessions if s["active"]]),
        "projects": names,
        "recent": None,
    }
    if sessions:
        recent = sessions[0]
        meta["recent"] = {
            "project": recent["project"],
            "path": recent["path"],
            "active": recent["active"],
            "age": compact_relative_age(now - recent["mtime"]),
            "message": last_assistant_message(recent["file"]),
        }

    items = [
        {"project": s["project"], "active": s["active"], "age": compact_relative_age(now - s["mtime"])}
        for s in sessions
    ]
    return PanelData(
        key="other_sessions",
        title="Other Sessions",
        status="ok" if sessions else "warn",
        items=items,
        meta=meta,
        errors=[] if sessions else ["no other sessions"],
    )
