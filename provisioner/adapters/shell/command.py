"""
Command runner — the single place installers call ``subprocess.run``.

Every adapter shells out through a ``CommandRunner`` so that timeout,
retry, environment and logging are handled identically, and so tests
can swap in a scripted fake.
"""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass, field

from provisioner.core.context import SystemContext
from provisioner.core.reliability.retry import RetryPolicy

logger = logging.getLogger(__name__)

# Keep the tail of long installer output; brew can print thousands of lines.
_OUTPUT_TAIL = 2000


@dataclass
class CommandResult:
    """Outcome of one command invocation."""

    cmd: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    elapsed_ms: int = 0
    error: str | None = None        # set when the process never completed

    @property
    def ok(self) -> bool:
        return self.error is None and self.returncode == 0

    def describe_failure(self) -> str:
        if self.error:
            return self.error
        tail = (self.stderr or self.stdout).strip().splitlines()
        last = tail[-1] if tail else ""
        msg = f"`{' '.join(self.cmd)}` exited with code {self.returncode}"
        return f"{msg}: {last}" if last else msg


@dataclass
class CommandRunner:
    """Run commands against a ``SystemContext``.

    Args:
        system: Supplies PATH, HOME and the ambient environment.
        timeout: Seconds before a command is killed; None waits forever.
        retry: Policy applied when ``run(..., retry=True)`` is requested.
    """

    system: SystemContext
    timeout: int | None = None
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    def run(
        self,
        cmd: list[str],
        *,
        cwd: str | None = None,
        env_overrides: dict[str, str] | None = None,
        retry: bool = False,
    ) -> CommandResult:
        """Run ``cmd``; with ``retry=True`` failed attempts are retried."""
        if not retry:
            return self._run_once(cmd, cwd=cwd, env_overrides=env_overrides)
        return self.retry.run(
            lambda: self._run_once(cmd, cwd=cwd, env_overrides=env_overrides),
            should_retry=lambda r: not r.ok,
            description=" ".join(cmd[:3]),
        )

    def _run_once(
        self,
        cmd: list[str],
        *,
        cwd: str | None,
        env_overrides: dict[str, str] | None,
    ) -> CommandResult:
        logger.debug("Executing: %s (cwd=%s)", " ".join(cmd), cwd)
        start = time.monotonic()
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=self.system.child_env(env_overrides),
                cwd=cwd,
            )
        except subprocess.TimeoutExpired:
            return CommandResult(
                cmd=cmd,
                returncode=-1,
                error=f"`{' '.join(cmd)}` timed out after {self.timeout}s",
            )
        except OSError as e:
            return CommandResult(cmd=cmd, returncode=-1, error=f"Cannot run {cmd[0]}: {e}")

        elapsed_ms = int((time.monotonic() - start) * 1000)
        result = CommandResult(
            cmd=cmd,
            returncode=proc.returncode,
            stdout=proc.stdout[-_OUTPUT_TAIL:] if proc.stdout else "",
            stderr=proc.stderr[-_OUTPUT_TAIL:] if proc.stderr else "",
            elapsed_ms=elapsed_ms,
        )
        if not result.ok:
            logger.debug("Command failed (exit %d): %s", proc.returncode, " ".join(cmd))
        return result
