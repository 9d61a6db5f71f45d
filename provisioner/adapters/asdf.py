"""
asdf adapters — version-manager plugins and declared runtime versions.

Two adapters share the ``asdf`` CLI:

    AsdfPluginAdapter      — ``asdf plugin list`` / ``asdf plugin add``
    AsdfVersionSetAdapter  — ``.tool-versions`` → ``asdf where`` / ``asdf install``
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from provisioner.adapters.base import InstallContext, InstallerAdapter
from provisioner.adapters.shell.command import CommandRunner
from provisioner.core.context import SystemContext
from provisioner.core.errors import ConfigMissing, InstallError

logger = logging.getLogger(__name__)

DEFAULT_TOOL_VERSIONS = "~/.tool-versions"
TOOL_VERSIONS_ENV = "ASDF_DEFAULT_TOOL_VERSIONS_FILENAME"


def _asdf(system: SystemContext) -> str:
    asdf = system.which("asdf")
    if asdf is None:
        raise InstallError("asdf is not installed (asdf not found on PATH)")
    return asdf


class AsdfPluginAdapter(InstallerAdapter):
    """Plugin-manager adapter: registers asdf plugins.

    ``source_ref`` is the plugin repository URL, for plugins that are
    not in asdf's default registry.
    """

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    @property
    def name(self) -> str:
        return "asdf-plugin"

    def is_available(self, system: SystemContext) -> bool:
        return system.which("asdf") is not None

    def installed_plugins(self, system: SystemContext) -> set[str]:
        result = self._runner.run([_asdf(system), "plugin", "list"])
        if not result.ok:
            # asdf exits non-zero with "No plugins installed" on a fresh setup
            if "no plugins" in (result.stdout + result.stderr).lower():
                return set()
            raise InstallError(f"Cannot list asdf plugins: {result.describe_failure()}")
        return {line.strip() for line in result.stdout.splitlines() if line.strip()}

    def check_presence(self, context: InstallContext) -> bool:
        return context.entry.id in self.installed_plugins(context.system)

    def install_item(self, context: InstallContext) -> str:
        name = context.entry.id
        cmd = [_asdf(context.system), "plugin", "add", name]
        if context.entry.source_ref:
            cmd.append(context.entry.source_ref)

        logger.info("Adding asdf plugin %s", name)
        result = self._runner.run(cmd, retry=True)
        if not result.ok:
            raise InstallError(result.describe_failure(), output=result.stderr)

        if context.entry.source_ref:
            return f"plugin {name} added from {context.entry.source_ref}"
        return f"plugin {name} added"


# ── .tool-versions ──────────────────────────────────────────────


@dataclass(frozen=True)
class ToolVersion:
    """One declared ``tool version`` pair."""

    tool: str
    version: str


def parse_tool_versions(text: str) -> list[ToolVersion]:
    """Parse asdf's ``.tool-versions`` format.

    One tool per line, followed by one or more versions.  ``#`` starts a
    comment.  ``system`` and ``path:`` versions are not installable and
    are left out.
    """
    pairs: list[ToolVersion] = []
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        tool, *versions = line.split()
        for version in versions:
            if version == "system" or version.startswith("path:"):
                continue
            pairs.append(ToolVersion(tool=tool, version=version))
    return pairs


class AsdfVersionSetAdapter(InstallerAdapter):
    """Version-set adapter: installs everything declared in ``.tool-versions``.

    Entry params:
        file (str): Declaration file (default ``~/.tool-versions``).
    """

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    @property
    def name(self) -> str:
        return "asdf-versions"

    def is_available(self, system: SystemContext) -> bool:
        return system.which("asdf") is not None

    @staticmethod
    def declaration_file(context: InstallContext) -> Path:
        return context.system.expand(context.args.get("file", DEFAULT_TOOL_VERSIONS))

    def declared(self, context: InstallContext) -> list[ToolVersion]:
        path = self.declaration_file(context)
        if not path.is_file():
            raise ConfigMissing(f"{path} not found, skipping version installation")
        try:
            return parse_tool_versions(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise InstallError(f"Cannot read {path}: {e}") from e

    def missing(self, context: InstallContext) -> list[ToolVersion]:
        declared = self.declared(context)
        asdf = _asdf(context.system)
        return [
            tv
            for tv in declared
            if not self._runner.run([asdf, "where", tv.tool, tv.version]).ok
        ]

    def check_presence(self, context: InstallContext) -> bool:
        return not self.missing(context)

    def install_item(self, context: InstallContext) -> str:
        missing = self.missing(context)
        path = self.declaration_file(context)

        # asdf looks up declarations by this file name, from cwd upward
        logger.info("Installing versions from %s", path)
        result = self._runner.run(
            [_asdf(context.system), "install"],
            cwd=str(path.parent),
            env_overrides={TOOL_VERSIONS_ENV: path.name},
            retry=True,
        )
        if not result.ok:
            raise InstallError(result.describe_failure(), output=result.stderr)

        still_missing = self.missing(context)
        if still_missing:
            names = ", ".join(f"{tv.tool} {tv.version}" for tv in still_missing)
            raise InstallError(f"asdf install finished but {names} still not installed")

        installed = ", ".join(f"{tv.tool} {tv.version}" for tv in missing)
        return f"installed {installed}" if installed else "asdf install completed"
