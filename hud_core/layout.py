"""Panel width selection by terminal width."""

from __future__ import annotations

from hud_core.config import MAX_WIDTH, MIN_WIDTH

FALLBACK_COLUMNS = 80
SIDE_MARGIN = 2


def panel_width(columns: int | None, configured: int) -> int:
    """Configured width, shrunk to fit the terminal but never below MIN_WIDTH."""
    available = (columns or FALLBACK_COLUMNS) - SIDE_MARGIN
    return max(MIN_WIDTH, min(configured, available, MAX_WIDTH))
