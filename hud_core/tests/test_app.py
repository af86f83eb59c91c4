from __future__ import annotations

import asyncio
import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock
import sys

from rich.console import Console

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from hud_core import logging_setup  # noqa: E402
from hud_core.app import _snapshot, build_sources, main  # noqa: E402
from hud_core.collectors import git  # noqa: E402
from hud_core.config import merge_config  # noqa: E402
from hud_core.tests.fakes import FakeIO  # noqa: E402

QUIET_PANELS = {
    "project": {"enabled": False},
    "claude": {"enabled": False},
    "other_sessions": {"enabled": False},
}


def _config(**panels):
    return merge_config({"panels": {**QUIET_PANELS, **panels}})


def _git_io() -> FakeIO:
    return FakeIO(
        commands={
            git.BRANCH_CMD: "main\n",
            git.COMMITS_CMD: "abc1234|2026-10-17T09:00:00+02:00|Add panel\n",
            git.STATS_CMD: "1\t0\ta.py\n",
            git.STATUS_CMD: "",
            "./deploy-status": "eu ok\nus ok\n",
        }
    )


class BuildSourcesTests(unittest.TestCase):
    def test_sources_follow_config_order(self):
        result = merge_config({"panels": {"git": {"enabled": False}, "deploy": {"command": "./deploy-status"}}})
        sources = build_sources(result.config, FakeIO(), Path("/repo"))
        self.assertEqual([s.name for s in sources], ["project", "tests", "claude", "other_sessions", "deploy"])
        by_name = {s.name: s for s in sources}
        self.assertIsNotNone(by_name["deploy"].fetch_async)
        self.assertIsNone(by_name["project"].fetch_async)
        self.assertEqual(by_name["tests"].label, "run tests")
        self.assertTrue(by_name["tests"].policy.is_manual)

    def test_fetchers_are_bound_to_io(self):
        result = _config(deploy={"command": "./deploy-status"})
        sources = {s.name: s for s in build_sources(result.config, _git_io(), Path("/repo"))}
        self.assertEqual(sources["git"].fetch().meta["branch"], "main")
        self.assertEqual(sources["deploy"].fetch().items, [{"text": "eu ok"}, {"text": "us ok"}])


class SnapshotTests(unittest.TestCase):
    def test_renders_every_enabled_panel(self):
        result = _config(deploy={"command": "./deploy-status"})
        console = Console(record=True, width=100, color_system=None)
        code = asyncio.run(_snapshot(result.config, _git_io(), Path("/repo"), ["careful"], console, False))
        text = console.export_text()
        self.assertEqual(code, 0)
        self.assertIn("Git · main", text)
        self.assertIn("No test results", text)
        self.assertIn("eu ok", text)
        self.assertIn("t: run tests · r: refresh all · q: quit", text)
        self.assertIn("careful", text)

    def test_json_output(self):
        result = _config()
        out = io.StringIO()
        with redirect_stdout(out):
            asyncio.run(_snapshot(result.config, _git_io(), Path("/repo"), [], Console(), True))
        payload = json.loads(out.getvalue())
        self.assertEqual(sorted(payload["panels"]), ["git", "tests"])
        self.assertEqual(payload["panels"]["git"]["meta"]["commits"], 1)
        self.assertEqual(payload["panels"]["tests"]["errors"], ["No test results"])


class MainTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        patcher = mock.patch.dict(os.environ, {"AGENTHUD_LOG_FILE": str(Path(self.tmp.name) / "hud.log")})
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(logging_setup.reset)

    def test_missing_dir_is_a_usage_error(self):
        with self.assertRaises(SystemExit) as ctx, redirect_stdout(io.StringIO()), mock.patch("sys.stderr", io.StringIO()):
            main(["--dir", str(Path(self.tmp.name) / "nope")])
        self.assertEqual(ctx.exception.code, 2)

    def test_missing_config_is_a_usage_error(self):
        with self.assertRaises(SystemExit) as ctx, mock.patch("sys.stderr", io.StringIO()):
            main(["--once", "--config", str(Path(self.tmp.name) / "missing.yaml")])
        self.assertEqual(ctx.exception.code, 2)

    def test_save_tests_without_command(self):
        with mock.patch("sys.stderr", io.StringIO()):
            self.assertEqual(main(["--dir", self.tmp.name, "save-tests"]), 2)

    def test_save_tests_writes_results(self):
        report = json.dumps({"numPassedTests": 2, "numFailedTests": 0})
        out = io.StringIO()
        with redirect_stdout(out):
            code = main(["--dir", self.tmp.name, "save-tests", "--", "echo", f"'{report}'"])
        self.assertEqual(code, 0)
        saved = json.loads((Path(self.tmp.name) / ".agenthud" / "test-results.json").read_text())
        self.assertEqual((saved["passed"], saved["failed"]), (2, 0))
        self.assertIn("2 passed", out.getvalue())


if __name__ == "__main__":
    unittest.main()
