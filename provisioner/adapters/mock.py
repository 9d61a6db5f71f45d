"""
Mock installer — a simulated machine for tests and ``--mock`` runs.

Tracks an in-memory set of installed keys.  Installing adds to the
set, so a second reconcile over the same mock sees everything as
already satisfied.  Failures and missing config can be scripted per key.
"""

from __future__ import annotations

from provisioner.adapters.base import InstallContext, InstallerAdapter
from provisioner.core.context import SystemContext
from provisioner.core.errors import ConfigMissing, InstallError


class MockInstaller(InstallerAdapter):
    """Universal installer double.

    By default every install succeeds.  Keys are ``kind:id``.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        installed: set[str] | None = None,
        available: bool = True,
    ) -> None:
        self._name = adapter_name
        self._available = available
        self.installed: set[str] = set(installed or ())
        self._failures: dict[str, str] = {}
        self._config_missing: set[str] = set()
        self._install_log: list[InstallContext] = []
        self._check_log: list[InstallContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def install_log(self) -> list[InstallContext]:
        """Every context ``install_item`` has received."""
        return self._install_log

    @property
    def install_count(self) -> int:
        return len(self._install_log)

    @property
    def check_count(self) -> int:
        return len(self._check_log)

    def installed_ids(self) -> list[str]:
        return [ctx.entry.id for ctx in self._install_log]

    def is_available(self, system: SystemContext) -> bool:
        return self._available

    def set_failure(self, key: str, error: str = "Mock failure") -> None:
        """Make installing ``key`` raise InstallError."""
        self._failures[key] = error

    def set_config_missing(self, key: str) -> None:
        """Make checking ``key`` raise ConfigMissing."""
        self._config_missing.add(key)

    def check_presence(self, context: InstallContext) -> bool:
        self._check_log.append(context)
        key = context.entry.key
        if key in self._config_missing:
            raise ConfigMissing(f"[mock] declaration for {key} not found")
        return key in self.installed

    def install_item(self, context: InstallContext) -> str:
        self._install_log.append(context)
        key = context.entry.key
        if key in self._failures:
            raise InstallError(self._failures[key])
        self.installed.add(key)
        return f"[mock] {key} installed"

    def reset(self) -> None:
        """Clear logs and scripted behaviour (the installed set is kept)."""
        self._install_log.clear()
        self._check_log.clear()
        self._failures.clear()
        self._config_missing.clear()
