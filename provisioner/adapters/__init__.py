"""Adapters — installer backends for the reconciler.

Public re-exports for convenient access.
"""

from provisioner.adapters.base import InstallContext, InstallerAdapter
from provisioner.adapters.mock import MockInstaller
from provisioner.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "AdapterRegistry",
    "InstallContext",
    "InstallerAdapter",
    "MockInstaller",
    "default_registry",
]
