"""Git activity collector: branch, today's commits and line stats."""

from __future__ import annotations

import asyncio

from hud_core.models import PanelData
from hud_core.sysio import CommandError, SystemIO

BRANCH_CMD = "git branch --show-current"
COMMITS_CMD = 'git log --since=midnight --format="%h|%aI|%s"'
STATS_CMD = 'git log --since=midnight --numstat --format=""'
STATUS_CMD = "git status --porcelain"


def clean_output(text: str) -> str:
    # BOM and wrapping quotes show up on Windows shells
    text = text.lstrip("\ufeff").strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        text = text[1:-1]
    return text.strip()


def parse_commits(output: str) -> list[dict]:
    commits = []
    for line in output.strip().splitlines():
        line = clean_output(line)
        if not line:
            continue
        hash_, _, rest = line.partition("|")
        timestamp, _, message = rest.partition("|")
        commits.append({"hash": hash_, "timestamp": timestamp, "message": message})
    return commits


def parse_numstat(output: str) -> dict[str, int]:
    added = 0
    deleted = 0
    files: set[str] = set()
    for line in output.strip().splitlines():
        parts = line.split("\t")
        if len(parts) < 3:
            continue
        added_raw, deleted_raw, filename = parts[0], parts[1], parts[2]
        if filename:
            files.add(filename)
        # binary files report "-" for both counts
        if added_raw == "-" or deleted_raw == "-":
            continue
        added += int(added_raw) if added_raw.isdigit() else 0
        deleted += int(deleted_raw) if deleted_raw.isdigit() else 0
    return {"added": added, "deleted": deleted, "files": len(files)}


def _not_a_repo() -> PanelData:
    return PanelData(
        key="git",
        title="Git",
        status="warn",
        items=[],
        meta={"branch": None, "commits": 0, "added": 0, "deleted": 0, "files": 0, "uncommitted": 0},
        errors=["Not a git repository"],
    )


def _build(branch: str, commits_out: str, stats_out: str, status_out: str) -> PanelData:
    commits = parse_commits(commits_out)
    stats = parse_numstat(stats_out)
    uncommitted = len([line for line in status_out.splitlines() if line.strip()])
    return PanelData(
        key="git",
        title="Git",
        status="ok",
        items=commits,
        meta={
            "branch": branch or "(detached)",
            "commits": len(commits),
            "uncommitted": uncommitted,
            **stats,
        },
        errors=[],
    )


def _run_or_empty(io: SystemIO, command: str) -> str:
    try:
        return io.run(command)
    except CommandError:
        return ""


async def _run_or_empty_async(io: SystemIO, command: str) -> str:
    try:
        return await io.run_async(command)
    except CommandError:
        return ""


def collect(io: SystemIO) -> PanelData:
    try:
        branch = clean_output(io.run(BRANCH_CMD))
    except CommandError:
        return _not_a_repo()
    return _build(
        branch,
        _run_or_empty(io, COMMITS_CMD),
        _run_or_empty(io, STATS_CMD),
        _run_or_empty(io, STATUS_CMD),
    )


async def collect_async(io: SystemIO) -> PanelData:
    try:
        branch = clean_output(await io.run_async(BRANCH_CMD))
    except CommandError:
        return _not_a_repo()
    commits_out, stats_out, status_out = await asyncio.gather(
        _run_or_empty_async(io, COMMITS_CMD),
        _run_or_empty_async(io, STATS_CMD),
        _run_or_empty_async(io, STATUS_CMD),
    )
    return _build(branch, commits_out, stats_out, status_out)
