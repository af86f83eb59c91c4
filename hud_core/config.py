"""Panel configuration: defaults, user file merging and interval parsing."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from hud_core.models import RefreshPolicy
from hud_core.sysio import SystemIO

logger = logging.getLogger(__name__)

CONFIG_PATH = ".agenthud/config.yaml"
TEST_RESULTS_PATH = ".agenthud/test-results.json"

BUILTIN_PANELS = ["project", "git", "tests", "claude", "other_sessions"]
RENDERERS = ("list", "progress", "status")

INTERVAL_RE = re.compile(r"^(\d+)(s|m)$")

DEFAULT_INTERVALS: dict[str, int | None] = {
    "project": 60_000,
    "git": 30_000,
    "tests": None,
    "claude": 10_000,
    "other_sessions": 10_000,
}
CUSTOM_DEFAULT_INTERVAL = 30_000
DEFAULT_MAX_ACTIVITIES = 10
DEFAULT_ACTIVE_THRESHOLD_MS = 5 * 60 * 1000

DEFAULT_WIDTH = 70
MIN_WIDTH = 50
MAX_WIDTH = 120


@dataclass(frozen=True)
class PanelConfig:
    name: str
    policy: RefreshPolicy
    custom: bool = False
    command: str | None = None
    source: str | None = None
    renderer: str = "list"
    max_activities: int = DEFAULT_MAX_ACTIVITIES
    active_threshold_ms: int = DEFAULT_ACTIVE_THRESHOLD_MS

    @property
    def label(self) -> str:
        if self.name == "tests":
            return "run tests"
        return f"run {self.name}"


@dataclass
class Config:
    panels: dict[str, PanelConfig] = field(default_factory=dict)
    width: int = DEFAULT_WIDTH

    @property
    def policies(self) -> dict[str, RefreshPolicy]:
        return {name: panel.policy for name, panel in self.panels.items()}

    def enabled(self) -> list[PanelConfig]:
        return [panel for panel in self.panels.values() if panel.policy.enabled]

    def manual(self) -> list[PanelConfig]:
        return [panel for panel in self.enabled() if panel.policy.is_manual]


@dataclass
class ParseResult:
    config: Config
    warnings: list[str] = field(default_factory=list)


def parse_interval(interval: str | None) -> int | None:
    """``"30s"`` -> 30000, ``"5m"`` -> 300000; manual, empty or invalid -> None."""
    if not interval or interval == "manual":
        return None
    match = INTERVAL_RE.match(interval.strip())
    if not match:
        return None
    value = int(match.group(1))
    if match.group(2) == "s":
        return value * 1000
    return value * 60 * 1000


def default_config() -> Config:
    panels = {
        name: PanelConfig(name=name, policy=RefreshPolicy(enabled=True, interval_ms=DEFAULT_INTERVALS[name]))
        for name in BUILTIN_PANELS
    }
    return Config(panels=panels)


def _resolve_interval(raw: Any, default: int | None, panel: str, warnings: list[str]) -> int | None:
    if not isinstance(raw, str):
        if raw is not None:
            warnings.append(f"Invalid interval '{raw}' for {panel} panel, using default")
        return default
    if raw.strip() == "manual":
        return None
    interval = parse_interval(raw)
    if not interval:
        warnings.append(f"Invalid interval '{raw}' for {panel} panel, using default")
        return default
    return interval


def _merge_panel(base: PanelConfig, raw: dict[str, Any], warnings: list[str]) -> PanelConfig:
    enabled = raw.get("enabled", base.policy.enabled)
    if not isinstance(enabled, bool):
        warnings.append(f"Invalid 'enabled' value for {base.name} panel, using default")
        enabled = base.policy.enabled
    interval = base.policy.interval_ms
    if "interval" in raw:
        interval = _resolve_interval(raw.get("interval"), base.policy.interval_ms, base.name, warnings)

    changes: dict[str, Any] = {"policy": RefreshPolicy(enabled=enabled, interval_ms=interval)}
    for key in ("command", "source"):
        if isinstance(raw.get(key), str) and raw[key].strip():
            changes[key] = raw[key].strip()

    if base.custom and "renderer" in raw:
        renderer = raw.get("renderer")
        if renderer in RENDERERS:
            changes["renderer"] = renderer
        else:
            warnings.append(f"Invalid renderer '{renderer}' for {base.name} panel, using list")

    if base.name == "claude" and "max_activities" in raw:
        try:
            changes["max_activities"] = max(1, int(raw["max_activities"]))
        except (TypeError, ValueError):
            warnings.append(f"Invalid max_activities for {base.name} panel, using default")

    if base.name == "other_sessions" and "active_threshold" in raw:
        threshold = _resolve_interval(raw.get("active_threshold"), None, base.name, warnings)
        if threshold is not None:
            changes["active_threshold_ms"] = threshold

    return replace(base, **changes)


def merge_config(raw: Any, warnings: list[str] | None = None) -> ParseResult:
    warnings = [] if warnings is None else warnings
    config = default_config()
    if not isinstance(raw, dict):
        return ParseResult(config, warnings)

    if "width" in raw:
        try:
            config.width = min(MAX_WIDTH, max(MIN_WIDTH, int(raw["width"])))
        except (TypeError, ValueError):
            warnings.append(f"Invalid width '{raw['width']}', using default")

    panels = raw.get("panels")
    if not isinstance(panels, dict):
        return ParseResult(config, warnings)

    for name, panel_raw in panels.items():
        name = str(name)
        if not isinstance(panel_raw, dict):
            panel_raw = {}
        base = config.panels.get(name)
        if base is None:
            if not panel_raw.get("command") and not panel_raw.get("source"):
                warnings.append(f"Unknown panel '{name}' in config")
                continue
            base = PanelConfig(
                name=name,
                policy=RefreshPolicy(enabled=True, interval_ms=CUSTOM_DEFAULT_INTERVAL),
                custom=True,
            )
        config.panels[name] = _merge_panel(base, panel_raw, warnings)

    return ParseResult(config, warnings)


def load_config(path: str | Path | None = None, io: SystemIO | None = None) -> ParseResult:
    io = io or SystemIO()
    config_path = path or CONFIG_PATH
    warnings: list[str] = []

    if not io.exists(config_path):
        return ParseResult(default_config(), warnings)

    try:
        raw = yaml.safe_load(io.read_text(config_path))
    except (OSError, yaml.YAMLError) as exc:
        warnings.append(f"Failed to parse config: {exc}")
        raw = None

    result = merge_config(raw, warnings)
    for warning in result.warnings:
        logger.warning("config: %s", warning)
    return result
