"""Logging bootstrap for the dashboard.

Everything under the ``hud_core`` logger goes to a rotating file. A stderr
handler is added only when the live screen is not running.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "hud_core"
DEFAULT_LOG_DIR = "~/.local/share/agenthud/logs"


@dataclass(frozen=True)
class LoggingRuntime:
    level_name: str
    level: int
    file_path: str
    live: bool


_RUNTIME: LoggingRuntime | None = None


def _parse_level(raw: str) -> tuple[str, int]:
    normalized = str(raw or "INFO").strip().upper()
    level = getattr(logging, normalized, logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO
    return str(logging.getLevelName(level)), level


def _default_log_path() -> str:
    log_dir = Path(os.path.expanduser(DEFAULT_LOG_DIR))
    return str(log_dir / "agenthud.log")


def _make_stream_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(max(level, logging.WARNING))
    handler.setFormatter(logging.Formatter("[%(name)s] %(levelname)s %(message)s"))
    return handler


def _make_file_handler(level: int, file_path: str) -> logging.Handler:
    handler = RotatingFileHandler(
        file_path,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    return handler


def configure(live: bool = False) -> LoggingRuntime:
    """Wire the ``hud_core`` logger hierarchy. Repeated calls return the first runtime."""
    global _RUNTIME
    if _RUNTIME is not None:
        return _RUNTIME

    level_name, level = _parse_level(os.environ.get("AGENTHUD_LOG_LEVEL", "INFO"))
    file_path = os.environ.get("AGENTHUD_LOG_FILE") or _default_log_path()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()
    if not live:
        logger.addHandler(_make_stream_handler(level))
    try:
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(_make_file_handler(level, file_path))
    except OSError as exc:
        # read-only home: keep running without a log file
        file_path = ""
        if live:
            logger.addHandler(logging.NullHandler())
        logger.warning("log file unavailable: %s", exc)

    logging.captureWarnings(True)

    _RUNTIME = LoggingRuntime(level_name=level_name, level=level, file_path=file_path, live=live)
    return _RUNTIME


def reset() -> None:
    """Drop handlers so the next ``configure`` starts fresh (tests)."""
    global _RUNTIME
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    _RUNTIME = None
