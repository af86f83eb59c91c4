from __future__ import annotations

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from hud_core.feedback import FEEDBACK_DURATION_MS, VisualFeedbackTracker  # noqa: E402
from hud_core.tests.fakes import ManualTimers  # noqa: E402


class VisualFeedbackTests(unittest.TestCase):
    def setUp(self):
        self.timers = ManualTimers()
        self.changes = 0
        self.tracker = VisualFeedbackTracker(self.timers, ["git", "tests"], on_change=self._changed)

    def _changed(self):
        self.changes += 1

    def test_refreshed_clears_after_duration(self):
        self.tracker.set_refreshed("git")
        self.timers.advance(FEEDBACK_DURATION_MS - 1)
        self.assertTrue(self.tracker.get_state("git").just_refreshed)
        self.timers.advance(1)
        self.assertFalse(self.tracker.get_state("git").just_refreshed)
        self.assertEqual(self.changes, 1)

    def test_second_refresh_restarts_clear_timer(self):
        self.tracker.set_refreshed("git")
        self.timers.advance(1000)
        self.tracker.set_refreshed("git")
        self.timers.advance(1000)
        self.assertTrue(self.tracker.get_state("git").just_refreshed)
        self.timers.advance(600)
        self.assertFalse(self.tracker.get_state("git").just_refreshed)
        self.assertEqual(self.timers.pending, 0)

    def test_completed_replaces_refreshed(self):
        self.tracker.set_refreshed("tests")
        self.timers.advance(1000)
        self.tracker.set_completed("tests")
        state = self.tracker.get_state("tests")
        self.assertFalse(state.just_refreshed)
        self.assertTrue(state.just_completed)
        # the cancelled refresh timer must not clear anything at t=1500
        self.timers.advance(500)
        self.assertTrue(self.tracker.get_state("tests").just_completed)
        self.timers.advance(1000)
        self.assertFalse(self.tracker.get_state("tests").just_completed)

    def test_async_lifecycle(self):
        self.tracker.start_async("tests")
        self.assertTrue(self.tracker.get_state("tests").is_running)
        self.tracker.end_async("tests", completed=True)
        state = self.tracker.get_state("tests")
        self.assertFalse(state.is_running)
        self.assertTrue(state.just_completed)
        self.assertFalse(state.just_refreshed)

    def test_end_async_defaults_to_refreshed(self):
        self.tracker.start_async("git")
        self.tracker.end_async("git")
        self.assertTrue(self.tracker.get_state("git").just_refreshed)

    def test_panels_are_independent(self):
        self.tracker.set_refreshed("git")
        self.tracker.set_running("tests", True)
        self.assertFalse(self.tracker.get_state("tests").just_refreshed)
        self.assertFalse(self.tracker.get_state("git").is_running)

    def test_unknown_panel_reads_as_idle(self):
        state = self.tracker.get_state("nope")
        self.assertFalse(state.is_running or state.just_refreshed or state.just_completed)

    def test_get_state_returns_copy(self):
        self.tracker.get_state("git").is_running = True
        self.assertFalse(self.tracker.get_state("git").is_running)

    def test_close_cancels_pending_clears(self):
        self.tracker.set_refreshed("git")
        self.tracker.set_completed("tests")
        self.tracker.close()
        self.assertEqual(self.timers.pending, 0)
        self.timers.advance(5000)
        self.assertTrue(self.tracker.get_state("git").just_refreshed)
        self.assertEqual(self.changes, 0)

    def test_calls_after_close_are_ignored(self):
        self.tracker.close()
        self.tracker.set_refreshed("git")
        self.tracker.start_async("tests")
        self.assertFalse(self.tracker.get_state("git").just_refreshed)
        self.assertFalse(self.tracker.get_state("tests").is_running)
        self.assertEqual(self.timers.pending, 0)


if __name__ == "__main__":
    unittest.main()
