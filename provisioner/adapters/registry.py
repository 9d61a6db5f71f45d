"""
Adapter registry — binds each entry kind to the adapter that services it.

The binding is resolved once at startup and frozen before the run
starts; the reconciler only ever reads from it.
"""

from __future__ import annotations

import logging
from typing import Any

from provisioner.adapters.base import InstallerAdapter
from provisioner.adapters.shell.command import CommandRunner
from provisioner.core.context import SystemContext
from provisioner.core.models.entry import EntryKind

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Kind → adapter mapping.

    Features:
        - Bind one adapter to one or more kinds
        - Freeze the binding before a run
        - Query adapter availability
    """

    def __init__(self) -> None:
        self._bindings: dict[EntryKind, InstallerAdapter] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def bind(self, kind: EntryKind | str, adapter: InstallerAdapter) -> None:
        """Bind an adapter to an entry kind.

        Raises:
            RuntimeError: The registry has been frozen.
        """
        if self._frozen:
            raise RuntimeError("Adapter bindings are frozen for this run")
        kind = EntryKind(kind)
        if kind in self._bindings:
            logger.warning("Overwriting adapter for kind %s", kind.value)
        self._bindings[kind] = adapter
        logger.debug("Bound %s → %s", kind.value, adapter.name)

    def bind_all(self, adapter: InstallerAdapter) -> None:
        """Bind one adapter to every kind (mock mode)."""
        for kind in EntryKind:
            self.bind(kind, adapter)

    def freeze(self) -> AdapterRegistry:
        self._frozen = True
        return self

    def get(self, kind: EntryKind | str) -> InstallerAdapter | None:
        """Look up the adapter for a kind."""
        return self._bindings.get(EntryKind(kind))

    def kinds(self) -> list[EntryKind]:
        return list(self._bindings.keys())

    def adapter_status(self, system: SystemContext) -> dict[str, dict[str, Any]]:
        """Availability of every bound adapter, keyed by kind."""
        status = {}
        for kind, adapter in self._bindings.items():
            try:
                available = adapter.is_available(system)
            except Exception:
                available = False
            status[kind.value] = {
                "adapter": adapter.name,
                "available": available,
                "type": adapter.__class__.__name__,
            }
        return status


def default_registry(runner: CommandRunner) -> AdapterRegistry:
    """The production binding: Homebrew, asdf and standalone installers."""
    from provisioner.adapters.asdf import AsdfPluginAdapter, AsdfVersionSetAdapter
    from provisioner.adapters.homebrew import HomebrewAdapter
    from provisioner.adapters.standalone import StandaloneInstallerAdapter

    registry = AdapterRegistry()
    brew = HomebrewAdapter(runner)
    registry.bind(EntryKind.CASK, brew)
    registry.bind(EntryKind.CLI, brew)
    registry.bind(EntryKind.FONT, brew)
    registry.bind(EntryKind.PLUGIN, AsdfPluginAdapter(runner))
    registry.bind(EntryKind.STANDALONE, StandaloneInstallerAdapter(runner))
    registry.bind(EntryKind.VERSIONS, AsdfVersionSetAdapter(runner))
    return registry.freeze()
