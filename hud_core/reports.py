"""Test report parsing for the tests panel and the one-shot runner.

Two dialects are understood and normalised to ``ParsedTestSummary``:

* the JSON report written by JavaScript test runners
  (``numPassedTests`` / ``numFailedTests`` / ``testResults[].assertionResults``)
* JUnit XML, as produced by pytest, maven, go-junit-report and friends

Both functions are pure and return ``None`` when the text is not a usable
report, so callers can tell "no report" from "bad report" themselves.

JUnit XML is read with regular expressions rather than an XML parser because
runners disagree on well-formedness (stray text, unclosed suites, bare
``<testsuite>`` roots). Known limitation: nested ``<testsuite>`` elements and
attribute values containing ``>`` are misread.
"""

from __future__ import annotations

import html
import json
import math
import re
from typing import Any

from hud_core.models import ParsedTestSummary, TestFailure

SUITE_RE = re.compile(r"<testsuite\b([^>]*?)(?:/>|>(.*?)</testsuite>)", re.DOTALL)
SUITE_OPEN_RE = re.compile(r"<testsuite\b([^>]*?)/?>", re.DOTALL)
CASE_RE = re.compile(r"<testcase\b([^>]*?)(?:/>|>(.*?)</testcase>)", re.DOTALL)
ATTR_RE = re.compile(r"""([\w:.\-]+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")
FAILURE_TAG_RE = re.compile(r"<(?:failure|error)\b")

SUITE_COUNTERS = ("tests", "errors", "failures", "skipped")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def parse_runner_json(text: str) -> ParsedTestSummary | None:
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None

    passed = data.get("numPassedTests")
    failed = data.get("numFailedTests")
    if not _is_number(passed) or not _is_number(failed):
        return None

    pending = data.get("numPendingTests")
    skipped = int(pending) if _is_number(pending) else 0

    failures: list[TestFailure] = []
    for test_file in data.get("testResults") or []:
        if not isinstance(test_file, dict):
            continue
        for assertion in test_file.get("assertionResults") or []:
            if isinstance(assertion, dict) and assertion.get("status") == "failed":
                failures.append(
                    TestFailure(file=str(test_file.get("name", "")), name=str(assertion.get("title", "")))
                )

    return ParsedTestSummary(
        passed=int(passed),
        failed=int(failed),
        skipped=skipped,
        failures=tuple(failures),
    )


def _attributes(raw: str) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for match in ATTR_RE.finditer(raw or ""):
        value = match.group(2) if match.group(2) is not None else match.group(3)
        attrs[match.group(1)] = html.unescape(value)
    return attrs


def _count(attrs: dict[str, str], name: str) -> int:
    raw = attrs.get(name, "").strip()
    if not raw:
        return 0
    try:
        return int(raw)
    except ValueError:
        try:
            return int(float(raw))
        except (ValueError, OverflowError):
            return 0


def _failed_cases(body: str) -> list[TestFailure]:
    failures: list[TestFailure] = []
    for match in CASE_RE.finditer(body or ""):
        case_body = match.group(2)
        if case_body and FAILURE_TAG_RE.search(case_body):
            attrs = _attributes(match.group(1))
            failures.append(TestFailure(file=attrs.get("classname", ""), name=attrs.get("name", "")))
    return failures


def parse_junit_xml(text: str) -> ParsedTestSummary | None:
    """Summarise a JUnit XML report.

    ``passed`` is ``tests - (failures + errors) - skipped`` summed over all
    suites and is not clamped, so a malformed report can yield a negative
    count; callers decide what to show.
    """
    if not text or ("<testsuite" not in text and "<testsuites" not in text):
        return None

    suites: list[tuple[dict[str, str], str]] = [
        (_attributes(match.group(1)), match.group(2) or "") for match in SUITE_RE.finditer(text)
    ]
    explicit = bool(suites)
    if not explicit and "<testsuite" in text:
        # bare or unclosed <testsuite> root: the whole document is one suite
        opening = SUITE_OPEN_RE.search(text)
        suites = [(_attributes(opening.group(1)) if opening else {}, text)]

    totals = dict.fromkeys(SUITE_COUNTERS, 0)
    failures: list[TestFailure] = []
    for attrs, body in suites:
        for name in SUITE_COUNTERS:
            totals[name] += _count(attrs, name)
        failures.extend(_failed_cases(body))

    if totals["tests"] == 0 and not explicit:
        return None

    failed = totals["failures"] + totals["errors"]
    return ParsedTestSummary(
        passed=totals["tests"] - failed - totals["skipped"],
        failed=failed,
        skipped=totals["skipped"],
        failures=tuple(failures),
    )
