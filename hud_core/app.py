"""Dashboard entrypoint: panel wiring, one-shot rendering and the live loop."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import signal
import sys
from functools import partial
from pathlib import Path
from typing import Callable

from rich.console import Console, Group
from rich.live import Live

from hud_core import logging_setup
from hud_core.collectors import claude, custom, git, other_sessions, project, tests, utc_now_iso
from hud_core.config import TEST_RESULTS_PATH, Config, PanelConfig, load_config
from hud_core.layout import panel_width
from hud_core.models import PanelView
from hud_core.orchestrator import PanelSource, RefreshOrchestrator
from hud_core.panels import claude as claude_panel
from hud_core.panels import generic as generic_panel
from hud_core.panels import git as git_panel
from hud_core.panels import other_sessions as other_sessions_panel
from hud_core.panels import project as project_panel
from hud_core.panels import status_bar
from hud_core.panels import tests as tests_panel
from hud_core.runner import run_test_command, save_test_results
from hud_core.sysio import SystemIO
from hud_core.timers import LoopTimers

logger = logging.getLogger(__name__)

PANEL_RENDERERS: dict[str, Callable] = {
    "project": project_panel.render,
    "git": git_panel.render,
    "tests": tests_panel.render,
    "claude": claude_panel.render,
    "other_sessions": other_sessions_panel.render,
}


def _source(panel: PanelConfig, fetch: Callable, fetch_async: Callable | None = None) -> PanelSource:
    return PanelSource(name=panel.name, policy=panel.policy, fetch=fetch, fetch_async=fetch_async, label=panel.label)


def build_sources(config: Config, io: SystemIO, cwd: Path, projects_dir: Path | None = None) -> list[PanelSource]:
    """Map every enabled panel to its fetcher, in display order."""
    sources: list[PanelSource] = []
    for panel in config.enabled():
        if panel.custom:
            sources.append(_source(panel, partial(custom.collect, panel, io), partial(custom.collect_async, panel, io)))
        elif panel.name == "git":
            sources.append(_source(panel, partial(git.collect, io), partial(git.collect_async, io)))
        elif panel.name == "tests":
            sources.append(
                _source(
                    panel,
                    partial(tests.collect, io, panel.source, panel.command),
                    partial(tests.collect_async, io, panel.source, panel.command),
                )
            )
        elif panel.name == "project":
            sources.append(_source(panel, partial(project.collect, cwd)))
        elif panel.name == "claude":
            sources.append(
                _source(panel, partial(claude.collect, cwd, panel.max_activities, projects_dir))
            )
        elif panel.name == "other_sessions":
            sources.append(
                _source(
                    panel,
                    partial(other_sessions.collect, cwd, panel.active_threshold_ms / 1000, projects_dir),
                )
            )
    return sources


def render_panel(view: PanelView, width: int):
    renderer = PANEL_RENDERERS.get(view.name, generic_panel.render)
    return renderer(view, width)


def render_dashboard(orchestrator: RefreshOrchestrator, warnings: list[str], width: int) -> Group:
    panels = [render_panel(view, width) for view in orchestrator.views()]
    return Group(*panels, status_bar.render(orchestrator.hotkeys.hotkeys, warnings))


def _json_output(orchestrator: RefreshOrchestrator, warnings: list[str]) -> str:
    panels = {}
    for name in orchestrator.sources:
        state = orchestrator.state(name)
        payload = state.data.to_dict() if state.data is not None else {}
        if state.error:
            payload["error"] = state.error
        panels[name] = payload
    return json.dumps({"collected_at": utc_now_iso(), "panels": panels, "warnings": warnings}, indent=2)


async def _snapshot(config: Config, io: SystemIO, cwd: Path, warnings: list[str], console: Console, as_json: bool) -> int:
    timers = LoopTimers()
    orchestrator = RefreshOrchestrator(build_sources(config, io, cwd), timers)
    try:
        await asyncio.to_thread(orchestrator.refresh_all_sync)
        if as_json:
            print(_json_output(orchestrator, warnings))
        else:
            console.print(render_dashboard(orchestrator, warnings, panel_width(console.size.width, config.width)))
    finally:
        orchestrator.close()
        timers.close()
    return 0


def _enter_cbreak(fd: int) -> list | None:
    """Non-canonical, no-echo input so single keys arrive without Enter.

    Returns the previous settings, or None when stdin is not a terminal.
    """
    try:
        import termios
    except ImportError:
        return None
    try:
        old_settings = termios.tcgetattr(fd)
        new = termios.tcgetattr(fd)
        new[3] &= ~(termios.ICANON | termios.ECHO)
        new[6][termios.VMIN] = 0
        new[6][termios.VTIME] = 0
        termios.tcsetattr(fd, termios.TCSADRAIN, new)
    except termios.error:
        return None
    return old_settings


def _restore_terminal(fd: int, old_settings: list | None) -> None:
    if old_settings is None:
        return
    import termios

    termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)


async def _watch(config: Config, io: SystemIO, cwd: Path, warnings: list[str], console: Console) -> int:
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    timers = LoopTimers(loop)
    live: Live | None = None

    def redraw() -> None:
        if live is not None:
            width = panel_width(console.size.width, config.width)
            live.update(render_dashboard(orchestrator, warnings, width), refresh=True)

    orchestrator = RefreshOrchestrator(build_sources(config, io, cwd), timers, on_change=redraw, on_quit=stop.set)
    await asyncio.to_thread(orchestrator.refresh_all_sync)

    fd = sys.stdin.fileno()
    old_settings = _enter_cbreak(fd)

    def on_key() -> None:
        try:
            chunk = os.read(fd, 32).decode("utf-8", errors="ignore")
        except OSError:
            return
        for char in chunk:
            if char == "\x03":
                stop.set()
                return
            orchestrator.handle_input(char)

    try:
        if old_settings is not None:
            loop.add_reader(fd, on_key)
        try:
            loop.add_signal_handler(signal.SIGINT, stop.set)
        except (NotImplementedError, RuntimeError):
            pass
        with Live(console=console, auto_refresh=False, screen=True) as live:
            redraw()
            orchestrator.start()
            logger.info("watching %d panel(s)", len(orchestrator.sources))
            await stop.wait()
    finally:
        orchestrator.close()
        timers.close()
        if old_settings is not None:
            loop.remove_reader(fd)
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass
        _restore_terminal(fd, old_settings)
    return 0


def _save_tests(args: argparse.Namespace, io: SystemIO, cwd: Path) -> int:
    command = " ".join(args.test_command).strip()
    if not command:
        print("save-tests: no command given", file=sys.stderr)
        return 2
    data = run_test_command(command, args.source, io)
    if data.results is None:
        print(f"save-tests: {data.error or 'no results'}", file=sys.stderr)
        return 1
    target = save_test_results(data.results, cwd / args.output)
    results = data.results
    print(f"{results.passed} passed, {results.failed} failed, {results.skipped} skipped -> {target}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="agenthud", description="Terminal dashboard for coding-agent sessions")
    parser.add_argument("--once", action="store_true", help="Render one frame and exit")
    parser.add_argument("--json", action="store_true", help="Emit collected panel data as JSON")
    parser.add_argument("--config", help="Config file (default: .agenthud/config.yaml)")
    parser.add_argument("--dir", help="Project directory (default: current directory)")
    subcommands = parser.add_subparsers(dest="command")
    save = subcommands.add_parser("save-tests", help="Run a test command and save its results")
    save.add_argument("--source", help="JUnit XML file written by the command")
    save.add_argument("--output", default=TEST_RESULTS_PATH, help=f"Results file (default: {TEST_RESULTS_PATH})")
    save.add_argument("test_command", nargs=argparse.REMAINDER, help="Command to run, after --")
    args = parser.parse_args(argv)

    cwd = Path(args.dir).expanduser().resolve() if args.dir else Path.cwd()
    if not cwd.is_dir():
        parser.error(f"--dir {cwd} is not a directory")
    config_path = Path(args.config).expanduser().resolve() if args.config else None
    if config_path is not None and not config_path.is_file():
        parser.error(f"--config {args.config} does not exist")

    watching = args.command is None and not (args.once or args.json)
    logging_setup.configure(live=watching)
    io = SystemIO(cwd=cwd)

    if args.command == "save-tests":
        if args.test_command and args.test_command[0] == "--":
            args.test_command = args.test_command[1:]
        return _save_tests(args, io, cwd)

    result = load_config(config_path, io)
    console = Console()

    if not watching:
        return asyncio.run(_snapshot(result.config, io, cwd, result.warnings, console, args.json))
    return asyncio.run(_watch(result.config, io, cwd, result.warnings, console))


if __name__ == "__main__":
    raise SystemExit(main())
