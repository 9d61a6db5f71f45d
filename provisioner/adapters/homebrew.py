"""
Homebrew adapter — casks, formulae and fonts.

Presence is ``brew list [--cask] <id>`` exiting 0.  Install is
``brew install [--cask] <id>``.  Before the first install of a run the
formula index is refreshed with ``brew update`` (once), and any tap an
entry needs is added first.

Entry params:
    tap (str): Tap to add before installing (fonts may use ``source_ref``).
"""

from __future__ import annotations

import logging

from provisioner.adapters.base import InstallContext, InstallerAdapter
from provisioner.adapters.shell.command import CommandRunner
from provisioner.core.context import SystemContext
from provisioner.core.errors import InstallError
from provisioner.core.models.entry import EntryKind

logger = logging.getLogger(__name__)

# Kinds installed as GUI bundles rather than formulae.
CASK_KINDS = frozenset({EntryKind.CASK, EntryKind.FONT})


class HomebrewAdapter(InstallerAdapter):
    """Package-manager adapter backed by the ``brew`` CLI."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner
        self._updated = False
        self._taps: set[str] | None = None

    @property
    def name(self) -> str:
        return "homebrew"

    def is_available(self, system: SystemContext) -> bool:
        return system.which("brew") is not None

    def _brew(self, system: SystemContext) -> str:
        brew = system.which("brew")
        if brew is None:
            raise InstallError("Homebrew is not installed (brew not found on PATH)")
        return brew

    @staticmethod
    def is_cask(context: InstallContext) -> bool:
        return context.entry.kind in CASK_KINDS

    @staticmethod
    def tap_for(context: InstallContext) -> str | None:
        tap = context.args.get("tap")
        if tap:
            return tap
        if context.entry.kind == EntryKind.FONT:
            return context.entry.source_ref
        return None

    def check_presence(self, context: InstallContext) -> bool:
        brew = self._brew(context.system)
        cmd = [brew, "list"]
        if self.is_cask(context):
            cmd.append("--cask")
        cmd.append(context.entry.id)
        return self._runner.run(cmd).ok

    def install_item(self, context: InstallContext) -> str:
        brew = self._brew(context.system)

        if context.settings.update_package_manager and not self._updated:
            self._update(brew)

        tap = self.tap_for(context)
        if tap:
            self._ensure_tap(brew, tap)

        cmd = [brew, "install"]
        if self.is_cask(context):
            cmd.append("--cask")
        cmd.append(context.entry.id)

        logger.info("Installing %s via Homebrew", context.entry.id)
        result = self._runner.run(cmd, retry=True)
        if not result.ok:
            raise InstallError(result.describe_failure(), output=result.stderr)

        kind = "cask" if self.is_cask(context) else "formula"
        return f"brew {kind} {context.entry.id} installed"

    def _update(self, brew: str) -> None:
        # A stale index only degrades the install; it never blocks it.
        self._updated = True
        logger.info("Updating Homebrew...")
        result = self._runner.run([brew, "update"], retry=True)
        if not result.ok:
            logger.warning("brew update failed: %s", result.describe_failure())

    def _ensure_tap(self, brew: str, tap: str) -> None:
        if self._taps is None:
            listed = self._runner.run([brew, "tap"])
            self._taps = set(listed.stdout.split()) if listed.ok else set()
        if tap in self._taps:
            return
        logger.info("Tapping %s", tap)
        result = self._runner.run([brew, "tap", tap], retry=True)
        if not result.ok:
            raise InstallError(f"Cannot tap {tap}: {result.describe_failure()}")
        self._taps.add(tap)
