"""
Standalone installer adapter — tools that bootstrap themselves.

Used for things that live outside any package list: the package
manager itself, a shell prompt shipped as an install script, a shell
framework identified by its directory.

Presence:
    marker (str): Path that exists once installed (``~`` allowed), or
    binary (str): Executable looked up on PATH (default: the entry id).

Install (one of):
    formula (str): Dedicated Homebrew formula, installed with ``brew``.
    source_ref:    Script URL, fetched with curl and executed.
        interpreter (str): ``sh`` (default) or ``bash``.
        script_mode (str): ``pipe`` — ``curl URL | sh`` (default), or
                           ``inline`` — ``bash -c "$(curl URL)"``.
        script_args (list): Arguments passed to the script (e.g. ``-y``).
        env (dict): Extra environment for the installer (e.g. RUNZSH=no).
"""

from __future__ import annotations

import logging
import shlex

from provisioner.adapters.base import InstallContext, InstallerAdapter
from provisioner.adapters.shell.command import CommandRunner
from provisioner.core.context import SystemContext
from provisioner.core.errors import InstallError

logger = logging.getLogger(__name__)

_INTERPRETERS = frozenset({"sh", "bash", "zsh"})


def build_script_command(
    url: str,
    interpreter: str = "sh",
    mode: str = "pipe",
    script_args: list[str] | None = None,
) -> list[str]:
    """Command that downloads ``url`` and runs it with ``interpreter``."""
    if interpreter not in _INTERPRETERS:
        raise InstallError(f"Unsupported interpreter: {interpreter}")
    fetch = f"curl -fsSL {shlex.quote(url)}"
    extra = " ".join(shlex.quote(str(a)) for a in script_args or ())
    if mode == "pipe":
        run = f"{interpreter} -s -- {extra}" if extra else interpreter
        return ["bash", "-c", f"set -o pipefail; {fetch} | {run}"]
    if mode == "inline":
        tail = f" {interpreter} {extra}" if extra else ""
        return ["bash", "-c", f'{interpreter} -c "$({fetch})"{tail}']
    raise InstallError(f"Unknown script_mode: {mode}")


class StandaloneInstallerAdapter(InstallerAdapter):
    """Single-tool adapter: presence by binary or marker, fixed bootstrap."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    @property
    def name(self) -> str:
        return "standalone"

    def is_available(self, system: SystemContext) -> bool:
        return system.which("curl") is not None

    def check_presence(self, context: InstallContext) -> bool:
        marker = context.args.get("marker")
        if marker:
            return context.system.expand(marker).exists()
        binary = context.args.get("binary") or context.entry.id
        return context.system.which(binary) is not None

    def install_item(self, context: InstallContext) -> str:
        entry = context.entry
        formula = context.args.get("formula")

        if formula:
            brew = context.system.which("brew")
            if brew is None:
                raise InstallError(f"Cannot install {entry.id}: brew not found on PATH")
            cmd = [brew, "install", formula]
            how = f"brew formula {formula}"
        elif entry.source_ref:
            cmd = build_script_command(
                entry.source_ref,
                interpreter=context.args.get("interpreter", "sh"),
                mode=context.args.get("script_mode", "pipe"),
                script_args=context.args.get("script_args"),
            )
            how = entry.source_ref
        else:
            raise InstallError(f"No install source for {entry.id} (set source_ref or formula)")

        env = {str(k): str(v) for k, v in (context.args.get("env") or {}).items()}
        logger.info("Installing %s from %s", entry.id, how)
        result = self._runner.run(cmd, env_overrides=env or None, retry=True)
        if not result.ok:
            raise InstallError(result.describe_failure(), output=result.stderr)

        if not self.check_presence(context):
            raise InstallError(f"{entry.id} installer finished but {entry.id} is still not detected")
        return f"{entry.id} installed from {how}"
