"""Test results collector (persisted report, JUnit XML or a live command)."""

from __future__ import annotations

import json

from hud_core.collectors import utc_now_iso
from hud_core.config import TEST_RESULTS_PATH
from hud_core.models import PanelData, TestData, TestResults
from hud_core.reports import parse_junit_xml
from hud_core.runner import (
    HEAD_CMD,
    NEGATIVE_PASSED,
    is_xml_source,
    run_test_command,
    run_test_command_async,
)
from hud_core.sysio import CommandError, SystemIO

NO_RESULTS = "No test results"


def _invalid(source: str) -> str:
    return "Invalid test-results.xml" if is_xml_source(source) else "Invalid test-results.json"


def _commits_cmd(hash_: str) -> str:
    return f"git rev-list {hash_}..HEAD --count"


def _parse_count(output: str) -> int:
    text = output.strip()
    return int(text) if text.isdigit() else 0


def read_results(io: SystemIO, source: str | None = None) -> TestData:
    """Load results without touching git; ``hash`` is left for the caller to compare."""
    path = source or TEST_RESULTS_PATH
    try:
        content = io.read_text(path)
    except OSError:
        return TestData(error=NO_RESULTS)

    if is_xml_source(path):
        summary = parse_junit_xml(content)
        if summary is None:
            return TestData(error=_invalid(path))
        if summary.passed < 0:
            return TestData(error=NEGATIVE_PASSED)
        return TestData(results=TestResults.from_summary(summary, hash="", timestamp=utc_now_iso()))

    try:
        payload = json.loads(content)
        if not isinstance(payload, dict):
            raise ValueError("results must be an object")
        return TestData(results=TestResults.from_dict(payload))
    except (TypeError, ValueError):
        return TestData(error=_invalid(path))


def _mark_outdated(data: TestData, head: str | None, behind: int) -> TestData:
    if data.results is None or head is None or data.results.hash == head:
        return data
    return TestData(results=data.results, is_outdated=True, commits_behind=behind)


def load_test_data(io: SystemIO, source: str | None = None) -> TestData:
    data = read_results(io, source)
    if data.results is None or is_xml_source(source):
        return data
    try:
        head = io.run(HEAD_CMD).strip()
        behind = _parse_count(io.run(_commits_cmd(data.results.hash))) if data.results.hash != head else 0
    except CommandError:
        # git unavailable: assume the results are current
        return data
    return _mark_outdated(data, head, behind)


async def load_test_data_async(io: SystemIO, source: str | None = None) -> TestData:
    data = read_results(io, source)
    if data.results is None or is_xml_source(source):
        return data
    try:
        head = (await io.run_async(HEAD_CMD)).strip()
        behind = 0
        if data.results.hash != head:
            behind = _parse_count(await io.run_async(_commits_cmd(data.results.hash)))
    except CommandError:
        return data
    return _mark_outdated(data, head, behind)


def to_panel(data: TestData) -> PanelData:
    if data.results is None:
        return PanelData(
            key="tests",
            title="Tests",
            status="warn",
            items=[],
            meta={"outdated": False, "commits_behind": 0},
            errors=[data.error or NO_RESULTS],
        )

    results = data.results
    status = "error" if results.failed else ("warn" if data.is_outdated else "ok")
    return PanelData(
        key="tests",
        title="Tests",
        status=status,
        items=[failure.to_dict() for failure in results.failures],
        meta={
            "passed": results.passed,
            "failed": results.failed,
            "skipped": results.skipped,
            "hash": results.hash,
            "timestamp": results.timestamp,
            "outdated": data.is_outdated,
            "commits_behind": data.commits_behind,
        },
        errors=[data.error] if data.error else [],
    )


def collect(io: SystemIO, source: str | None = None, command: str | None = None) -> PanelData:
    if command:
        return to_panel(run_test_command(command, source, io))
    return to_panel(load_test_data(io, source))


async def collect_async(io: SystemIO, source: str | None = None, command: str | None = None) -> PanelData:
    if command:
        return to_panel(await run_test_command_async(command, source, io))
    return to_panel(await load_test_data_async(io, source))
