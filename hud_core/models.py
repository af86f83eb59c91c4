"""Shared model contracts for panel data, scheduling state and test reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable


@dataclass
class PanelData:
    key: str
    title: str
    status: str = "ok"
    items: list[dict[str, Any]] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "title": self.title,
            "status": self.status,
            "items": self.items,
            "meta": self.meta,
            "errors": self.errors,
        }


@dataclass(frozen=True)
class RefreshPolicy:
    """How often a panel refreshes. ``interval_ms=None`` means manual only."""

    enabled: bool = True
    interval_ms: int | None = None

    @property
    def is_manual(self) -> bool:
        return self.interval_ms is None


@dataclass
class VisualFeedback:
    is_running: bool = False
    just_refreshed: bool = False
    just_completed: bool = False


@dataclass(frozen=True)
class Hotkey:
    key: str
    label: str
    action: Callable[[], Any]
    panel: str | None = None


@dataclass(frozen=True)
class TestFailure:
    __test__ = False

    file: str
    name: str

    def to_dict(self) -> dict[str, str]:
        return {"file": self.file, "name": self.name}


@dataclass(frozen=True)
class ParsedTestSummary:
    __test__ = False

    passed: int
    failed: int
    skipped: int
    failures: tuple[TestFailure, ...] = ()


@dataclass(frozen=True)
class TestResults:
    """A parsed summary tied to the commit it was produced from."""

    __test__ = False

    hash: str
    timestamp: str
    passed: int
    failed: int
    skipped: int
    failures: tuple[TestFailure, ...] = ()

    @classmethod
    def from_summary(cls, summary: ParsedTestSummary, hash: str, timestamp: str) -> TestResults:
        return cls(
            hash=hash,
            timestamp=timestamp,
            passed=summary.passed,
            failed=summary.failed,
            skipped=summary.skipped,
            failures=summary.failures,
        )

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> TestResults:
        failures = tuple(
            TestFailure(file=str(row.get("file", "")), name=str(row.get("name", "")))
            for row in payload.get("failures") or []
            if isinstance(row, dict)
        )
        return cls(
            hash=str(payload.get("hash", "")),
            timestamp=str(payload.get("timestamp", "")),
            passed=int(payload.get("passed", 0)),
            failed=int(payload.get("failed", 0)),
            skipped=int(payload.get("skipped", 0)),
            failures=failures,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "timestamp": self.timestamp,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "failures": [failure.to_dict() for failure in self.failures],
        }


@dataclass
class TestData:
    """Result of a tests-panel fetch: results or an error message."""

    __test__ = False

    results: TestResults | None = None
    is_outdated: bool = False
    commits_behind: int = 0
    error: str | None = None


@dataclass
class PanelView:
    """Everything the rendering layer needs for one panel on one frame."""

    name: str
    data: PanelData | None
    countdown: int | None
    feedback: VisualFeedback
    hotkey: str | None = None
    error: str | None = None
