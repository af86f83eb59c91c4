"""Collector helpers and package exports."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path

ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]|\x1b\][^\x07]*\x07|\x1b\([A-Za-z]")


def list_jsonl_files(dir_path: Path) -> list[Path]:
    """Session logs in ``dir_path``, newest first; larger file wins an mtime tie."""
    try:
        files = [p for p in dir_path.glob("*.jsonl") if p.is_file()]
        return sorted(files, key=lambda p: (p.stat().st_mtime, p.stat().st_size), reverse=True)
    except OSError:
        return []


def strip_ansi(text: str) -> str:
    return ANSI_RE.sub("", text)


def one_line(text: str) -> str:
    return strip_ansi(text.replace("\r", " ").replace("\n", " ")).strip()


def capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def claude_projects_dir() -> Path:
    return Path.home() / ".claude" / "projects"


def encode_project_path(project_path: str | Path) -> str:
    """``/Users/me/app`` -> ``-Users-me-app``, the agent's session folder name."""
    return re.sub(r"[/\\]", "-", str(project_path))
