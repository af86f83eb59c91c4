from __future__ import annotations

import unittest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from hud_core.layout import panel_width  # noqa: E402


class LayoutTests(unittest.TestCase):
    def test_configured_width_fits(self):
        self.assertEqual(panel_width(160, 70), 70)

    def test_narrow_terminal_shrinks_panels(self):
        self.assertEqual(panel_width(62, 70), 60)

    def test_never_below_minimum(self):
        self.assertEqual(panel_width(30, 70), 50)

    def test_unknown_terminal_size(self):
        self.assertEqual(panel_width(None, 100), 78)
        self.assertEqual(panel_width(0, 70), 70)


if __name__ == "__main__":
    unittest.main()
