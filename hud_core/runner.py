"""Run a test command once and turn its report into ``TestResults``."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import replace
from pathlib import Path

from hud_core.collectors import utc_now_iso
from hud_core.models import ParsedTestSummary, TestData, TestResults
from hud_core.reports import parse_junit_xml, parse_runner_json
from hud_core.sysio import CommandError, SystemIO

logger = logging.getLogger(__name__)

HEAD_CMD = "git rev-parse --short HEAD"
NO_REPORT = "No test report produced"
PARSE_FAILED = "Failed to parse test output"
NEGATIVE_PASSED = "Malformed JUnit report: negative passed count"


def head_hash(io: SystemIO) -> str:
    try:
        return io.run(HEAD_CMD).strip()
    except CommandError:
        return "unknown"


async def head_hash_async(io: SystemIO) -> str:
    try:
        return (await io.run_async(HEAD_CMD)).strip()
    except CommandError:
        return "unknown"


def is_xml_source(source: str | None) -> bool:
    return bool(source) and str(source).lower().endswith(".xml")


def relative_failures(summary: ParsedTestSummary, root: str) -> ParsedTestSummary:
    prefix = root.rstrip("/\\") + os.sep
    failures = tuple(
        replace(failure, file=failure.file[len(prefix):]) if failure.file.startswith(prefix) else failure
        for failure in summary.failures
    )
    return replace(summary, failures=failures)


def _root(io: SystemIO) -> str:
    return str(getattr(io, "cwd", None) or os.getcwd())


def _read_xml_report(io: SystemIO, source: str) -> TestData:
    if not io.exists(source):
        return TestData(error=NO_REPORT)
    summary = parse_junit_xml(io.read_text(source))
    if summary is None:
        return TestData(error=PARSE_FAILED)
    if summary.passed < 0:
        return TestData(error=NEGATIVE_PASSED)
    # JUnit reports carry no commit, so there is nothing to compare against HEAD
    return TestData(results=TestResults.from_summary(summary, hash="", timestamp=utc_now_iso()))


def _json_output(exc: CommandError) -> str | None:
    # runners exit non-zero when tests fail but still print the report
    if exc.returncode is not None and exc.stdout.strip():
        return exc.stdout
    return None


def _parse_json_report(io: SystemIO, output: str) -> ParsedTestSummary | TestData:
    if not output.strip():
        return TestData(error=NO_REPORT)
    summary = parse_runner_json(output)
    if summary is None:
        return TestData(error=PARSE_FAILED)
    return relative_failures(summary, _root(io))


def run_test_command(command: str, source: str | None = None, io: SystemIO | None = None) -> TestData:
    io = io or SystemIO()
    logger.info("running test command: %s", command)

    if is_xml_source(source):
        io.remove(source)
        try:
            io.run(command)
        except CommandError as exc:
            if exc.returncode is None:
                return TestData(error=str(exc))
        return _read_xml_report(io, source)

    try:
        output = io.run(command)
    except CommandError as exc:
        output = _json_output(exc)
        if output is None:
            return TestData(error=str(exc))

    parsed = _parse_json_report(io, output)
    if isinstance(parsed, TestData):
        return parsed
    return TestData(results=TestResults.from_summary(parsed, hash=head_hash(io), timestamp=utc_now_iso()))


async def run_test_command_async(command: str, source: str | None = None, io: SystemIO | None = None) -> TestData:
    io = io or SystemIO()
    logger.info("running test command: %s", command)

    if is_xml_source(source):
        io.remove(source)
        try:
            await io.run_async(command)
        except CommandError as exc:
            if exc.returncode is None:
                return TestData(error=str(exc))
        return _read_xml_report(io, source)

    try:
        output = await io.run_async(command)
    except CommandError as exc:
        output = _json_output(exc)
        if output is None:
            return TestData(error=str(exc))

    parsed = _parse_json_report(io, output)
    if isinstance(parsed, TestData):
        return parsed
    return TestData(
        results=TestResults.from_summary(parsed, hash=await head_hash_async(io), timestamp=utc_now_iso())
    )


def save_test_results(results: TestResults, path: str | Path) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(results.to_dict(), indent=2) + "\n")
    logger.info("saved test results to %s", target)
    return target
