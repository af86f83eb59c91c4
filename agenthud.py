#!/usr/bin/env python3
"""Run the dashboard from a source checkout without installing it."""

from __future__ import annotations

from hud_core.app import main


if __name__ == "__main__":
    raise SystemExit(main())
