"""OS capability bundle handed to collectors, the config loader and the runner."""

from __future__ import annotations

import asyncio
import os
import subprocess
from pathlib import Path

COMMAND_TIMEOUT = 30  # seconds


class CommandError(Exception):
    """A shell command failed to start, timed out or exited non-zero."""

    def __init__(self, command: str, returncode: int | None, stderr: str = "", stdout: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout
        detail = (stderr or "").strip().splitlines()
        reason = detail[0] if detail else f"exit status {returncode}"
        super().__init__(f"{command}: {reason}")


class SystemIO:
    """Real filesystem and process access.

    Tests pass a fake with the same four methods instead of patching module state.
    """

    def __init__(self, cwd: Path | None = None, timeout: int = COMMAND_TIMEOUT):
        self.cwd = Path(cwd) if cwd else None
        self.timeout = timeout

    def _resolve(self, path: str | Path) -> Path:
        candidate = Path(path).expanduser()
        if self.cwd is not None and not candidate.is_absolute():
            return self.cwd / candidate
        return candidate

    def read_text(self, path: str | Path) -> str:
        return self._resolve(path).read_text(encoding="utf-8", errors="replace")

    def exists(self, path: str | Path) -> bool:
        return self._resolve(path).exists()

    def remove(self, path: str | Path) -> None:
        try:
            os.remove(self._resolve(path))
        except FileNotFoundError:
            pass

    def run(self, command: str) -> str:
        try:
            proc = subprocess.run(
                command,
                shell=True,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                cwd=self.cwd,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise CommandError(command, None, "timed out") from exc
        except OSError as exc:
            raise CommandError(command, None, str(exc)) from exc
        if proc.returncode != 0:
            raise CommandError(command, proc.returncode, proc.stderr, proc.stdout)
        return proc.stdout

    async def run_async(self, command: str) -> str:
        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.cwd,
            )
        except OSError as exc:
            raise CommandError(command, None, str(exc)) from exc
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise CommandError(command, None, "timed out") from exc
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
            raise
        out = stdout.decode("utf-8", errors="replace")
        err = stderr.decode("utf-8", errors="replace")
        if proc.returncode != 0:
            raise CommandError(command, proc.returncode, err, out)
        return out
