from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from hud_core.config import (  # noqa: E402
    BUILTIN_PANELS,
    CUSTOM_DEFAULT_INTERVAL,
    DEFAULT_WIDTH,
    load_config,
    merge_config,
    parse_interval,
)
from hud_core.models import RefreshPolicy  # noqa: E402
from hud_core.tests.fakes import FakeIO  # noqa: E402


class ParseIntervalTests(unittest.TestCase):
    def test_seconds_and_minutes(self):
        self.assertEqual(parse_interval("30s"), 30_000)
        self.assertEqual(parse_interval("5m"), 300_000)

    def test_manual_and_empty(self):
        self.assertIsNone(parse_interval("manual"))
        self.assertIsNone(parse_interval(""))
        self.assertIsNone(parse_interval(None))

    def test_invalid(self):
        self.assertIsNone(parse_interval("fast"))
        self.assertIsNone(parse_interval("10h"))
        self.assertIsNone(parse_interval("-5s"))


class MergeConfigTests(unittest.TestCase):
    def test_defaults(self):
        result = merge_config(None)
        config = result.config
        self.assertEqual(list(config.panels), BUILTIN_PANELS)
        self.assertEqual(config.panels["git"].policy, RefreshPolicy(enabled=True, interval_ms=30_000))
        self.assertTrue(config.panels["tests"].policy.is_manual)
        self.assertEqual(config.width, DEFAULT_WIDTH)
        self.assertEqual(result.warnings, [])

    def test_disable_and_override_interval(self):
        result = merge_config({"panels": {"git": {"enabled": False}, "claude": {"interval": "2m"}}})
        self.assertFalse(result.config.panels["git"].policy.enabled)
        self.assertEqual(result.config.panels["claude"].policy.interval_ms, 120_000)
        self.assertNotIn("git", [panel.name for panel in result.config.enabled()])

    def test_manual_interval(self):
        result = merge_config({"panels": {"project": {"interval": "manual"}}})
        self.assertIsNone(result.config.panels["project"].policy.interval_ms)
        self.assertEqual([panel.name for panel in result.config.manual()], ["project", "tests"])

    def test_invalid_interval_keeps_default(self):
        result = merge_config({"panels": {"git": {"interval": "often"}, "claude": {"interval": "0s"}}})
        self.assertEqual(result.config.panels["git"].policy.interval_ms, 30_000)
        self.assertEqual(result.config.panels["claude"].policy.interval_ms, 10_000)
        self.assertEqual(
            result.warnings,
            [
                "Invalid interval 'often' for git panel, using default",
                "Invalid interval '0s' for claude panel, using default",
            ],
        )

    def test_unknown_panel_without_command_is_ignored(self):
        result = merge_config({"panels": {"weather": {"interval": "5m"}}})
        self.assertNotIn("weather", result.config.panels)
        self.assertEqual(result.warnings, ["Unknown panel 'weather' in config"])

    def test_custom_panels_follow_builtins_in_file_order(self):
        result = merge_config(
            {
                "panels": {
                    "todo": {"source": "todo.json"},
                    "git": {"interval": "1m"},
                    "deploy": {"command": "./status.sh", "renderer": "progress", "interval": "manual"},
                }
            }
        )
        config = result.config
        self.assertEqual(list(config.panels), BUILTIN_PANELS + ["todo", "deploy"])
        todo = config.panels["todo"]
        self.assertTrue(todo.custom)
        self.assertEqual(todo.policy.interval_ms, CUSTOM_DEFAULT_INTERVAL)
        self.assertEqual(todo.renderer, "list")
        deploy = config.panels["deploy"]
        self.assertEqual((deploy.command, deploy.renderer), ("./status.sh", "progress"))
        self.assertTrue(deploy.policy.is_manual)
        self.assertEqual(deploy.label, "run deploy")

    def test_unknown_renderer_falls_back_to_list(self):
        result = merge_config({"panels": {"todo": {"command": "cat todo.txt", "renderer": "chart"}}})
        self.assertEqual(result.config.panels["todo"].renderer, "list")
        self.assertEqual(len(result.warnings), 1)

    def test_builtin_options(self):
        result = merge_config(
            {
                "panels": {
                    "tests": {"command": "npx vitest run --reporter=json", "source": "report.xml"},
                    "claude": {"max_activities": 3},
                    "other_sessions": {"active_threshold": "2m"},
                }
            }
        )
        panels = result.config.panels
        self.assertEqual(panels["tests"].command, "npx vitest run --reporter=json")
        self.assertEqual(panels["tests"].source, "report.xml")
        self.assertEqual(panels["tests"].label, "run tests")
        self.assertEqual(panels["claude"].max_activities, 3)
        self.assertEqual(panels["other_sessions"].active_threshold_ms, 120_000)

    def test_width_is_clamped(self):
        self.assertEqual(merge_config({"width": 300}).config.width, 120)
        self.assertEqual(merge_config({"width": 10}).config.width, 50)
        result = merge_config({"width": "wide"})
        self.assertEqual(result.config.width, DEFAULT_WIDTH)
        self.assertEqual(len(result.warnings), 1)


class LoadConfigTests(unittest.TestCase):
    def test_missing_file_gives_defaults(self):
        result = load_config(io=FakeIO())
        self.assertEqual(list(result.config.panels), BUILTIN_PANELS)
        self.assertEqual(result.warnings, [])

    def test_yaml_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            cfg_path = Path(tmp) / "config.yaml"
            cfg_path.write_text("panels:\n  git:\n    interval: 10s\n  tests:\n    interval: nope\n")
            with self.assertLogs("hud_core.config", level="WARNING"):
                result = load_config(cfg_path)
        self.assertEqual(result.config.panels["git"].policy.interval_ms, 10_000)
        self.assertEqual(result.warnings, ["Invalid interval 'nope' for tests panel, using default"])

    def test_malformed_file_warns(self):
        io = FakeIO(files={".agenthud/config.yaml": "panels: [unclosed"})
        with self.assertLogs("hud_core.config", level="WARNING"):
            result = load_config(io=io)
        self.assertEqual(list(result.config.panels), BUILTIN_PANELS)
        self.assertEqual(len(result.warnings), 1)
        self.assertTrue(result.warnings[0].startswith("Failed to parse config: "))


if __name__ == "__main__":
    unittest.main()
