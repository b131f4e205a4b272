"""Run git as a subprocess and capture what it says."""

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30

# Exit code reported when the git executable itself is missing
GIT_NOT_FOUND = 127


@dataclass
class GitResult:
    """Outcome of one git invocation."""
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def message(self) -> str:
        """Whatever git said, preferring stderr (where git reports progress and errors)."""
        return self.stderr.strip() or self.stdout.strip()


def build_command(cwd: Path, args: list[str], config: Optional[list[str]] = None) -> list[str]:
    """`git -C <cwd> [-c key=value ...] <args>`"""
    cmd = ["git", "-C", str(cwd)]
    for item in config or []:
        cmd += ["-c", item]
    return cmd + args


def run_git(
    args: list[str],
    cwd: Path,
    timeout: int = DEFAULT_TIMEOUT,
    env: Optional[dict[str, str]] = None,
    config: Optional[list[str]] = None,
) -> GitResult:
    """
    Run one git command. Never raises for git's own failures.

    Args:
        args: Subcommand and its arguments (e.g., ["status", "--porcelain"])
        cwd: Repository (or parent directory, for clone)
        timeout: Seconds before the process is killed
        env: Variables layered over the current environment for this call only
        config: `key=value` settings passed as `-c` before the subcommand

    Returns:
        GitResult; a timeout sets timed_out, a missing git binary gives code 127
    """
    cmd = build_command(cwd, args, config)
    child_env = {**os.environ, **env} if env else None
    # config and env are never logged: they carry the credential helper
    logger.debug(f"[GIT] git {args[0] if args else ''} in {cwd}")

    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=child_env,
        )
    except subprocess.TimeoutExpired:
        logger.warning(f"[GIT] git {' '.join(args[:1])} timed out after {timeout}s")
        return GitResult(returncode=-1, stdout="", stderr=f"Command timed out after {timeout}s", timed_out=True)
    except FileNotFoundError:
        return GitResult(returncode=GIT_NOT_FOUND, stdout="", stderr="git executable not found")

    return GitResult(returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
