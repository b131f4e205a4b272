"""Execution environment backed by a shell command.

"Restart and run all" re-runs the command (for example a notebook
executor or a build script) in the repository. The environment is ready
once the command has exited. Watched files are checked for new
modification times on every readiness check and reported through
`contents_changed`.
"""

import asyncio
import logging
import shlex
from pathlib import Path
from typing import Optional

from vcsflow.lib.signals import Signal

logger = logging.getLogger(__name__)


class CommandEnvironment:
    """ExecutionEnvironment that runs one command line."""

    def __init__(self, command: Optional[str], cwd: Path):
        self.argv = shlex.split(command) if command else []
        self.cwd = cwd
        self.contents_changed = Signal("contents_changed")
        self.process: Optional[asyncio.subprocess.Process] = None
        self._mtimes: dict[str, float] = {}

    def watch(self, path: str) -> None:
        """Report changes to `path` (relative to cwd) through contents_changed."""
        self._mtimes[path] = self._mtime(path)

    def _mtime(self, path: str) -> float:
        full = self.cwd / path
        return full.stat().st_mtime if full.exists() else 0.0

    def check_contents(self) -> list[str]:
        """Emit (path, mtime) for watched files that changed; return their paths."""
        changed = []
        for path, seen in list(self._mtimes.items()):
            mtime = self._mtime(path)
            if mtime != seen:
                self._mtimes[path] = mtime
                changed.append(path)
                self.contents_changed.emit(path, mtime)
        return changed

    async def restart_and_run_all(self) -> None:
        if self.process is not None and self.process.returncode is None:
            logger.info(f"[ENV] Stopping previous run (pid {self.process.pid})")
            self.process.terminate()
            await self.process.wait()

        if not self.argv:
            logger.debug("[ENV] No run command configured, nothing to restart")
            self.process = None
            return

        logger.info(f"[ENV] Running: {shlex.join(self.argv)}")
        self.process = await asyncio.create_subprocess_exec(
            *self.argv,
            cwd=self.cwd,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )

    async def is_ready(self) -> bool:
        self.check_contents()
        if self.process is None:
            return True
        if self.process.returncode is None:
            return False

        if self.process.returncode != 0:
            logger.warning(f"[ENV] Run command exited {self.process.returncode}")
        return True
