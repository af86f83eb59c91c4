from __future__ import annotations

import asyncio
import sys
import unittest
from pathlib import Path
from unittest import mock

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from hud_core.sysio import CommandError, SystemIO  # noqa: E402


class _HangingProcess:
    """Stands in for a child that never finishes on its own."""

    def __init__(self):
        self.returncode: int | None = None
        self.killed = False

    async def communicate(self):
        await asyncio.Event().wait()

    async def wait(self):
        return self.returncode

    def kill(self):
        self.killed = True
        self.returncode = -9


class RunAsyncTests(unittest.IsolatedAsyncioTestCase):
    async def test_returns_stdout(self):
        out = await SystemIO().run_async("echo hud")
        self.assertEqual(out.strip(), "hud")

    async def test_non_zero_exit_raises(self):
        with self.assertRaises(CommandError) as ctx:
            await SystemIO().run_async("echo broken >&2; exit 3")
        self.assertEqual(ctx.exception.returncode, 3)
        self.assertIn("broken", str(ctx.exception))

    async def test_cancelled_fetch_kills_child(self):
        proc = _HangingProcess()
        spawn = mock.AsyncMock(return_value=proc)
        with mock.patch.object(asyncio, "create_subprocess_shell", spawn):
            task = asyncio.create_task(SystemIO().run_async("sleep 30"))
            for _ in range(5):
                await asyncio.sleep(0)
            task.cancel()
            with self.assertRaises(asyncio.CancelledError):
                await task
        self.assertTrue(proc.killed)

    async def test_timeout_kills_child(self):
        proc = _HangingProcess()
        spawn = mock.AsyncMock(return_value=proc)
        with mock.patch.object(asyncio, "create_subprocess_shell", spawn):
            with self.assertRaises(CommandError) as ctx:
                await SystemIO(timeout=0.05).run_async("sleep 30")
        self.assertTrue(proc.killed)
        self.assertIn("timed out", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
