"""
Installer adapter base — the contract between the reconciler and installers.

The reconciler only talks to installers through this interface, never
directly to brew, asdf or curl.  Each adapter answers two questions
for an entry: "is it there?" and "put it there".

To create a new adapter:
    1. Subclass InstallerAdapter
    2. Implement name, is_available, check_presence, install_item
    3. Bind it to one or more entry kinds in the AdapterRegistry
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field

from provisioner.core.context import SystemContext
from provisioner.core.models.entry import DesiredEntry, Settings


class InstallContext(BaseModel):
    """Everything an adapter needs to check or install one entry."""

    model_config = ConfigDict(frozen=True)

    entry: DesiredEntry
    system: SystemContext
    settings: Settings = Field(default_factory=Settings)
    dry_run: bool = False

    @property
    def args(self) -> dict:
        return self.entry.args


class InstallerAdapter(ABC):
    """Abstract base class for all installer backends.

    ``check_presence`` and ``install_item`` signal failure by raising
    ``InstallError`` (or ``ConfigMissing`` for absent optional input).
    The reconciler catches both at the entry boundary.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'homebrew', 'asdf-plugin')."""

    @abstractmethod
    def is_available(self, system: SystemContext) -> bool:
        """Whether the backend's own executable exists.  Never raises."""

    @abstractmethod
    def check_presence(self, context: InstallContext) -> bool:
        """Return True when the entry is already installed."""

    @abstractmethod
    def install_item(self, context: InstallContext) -> str:
        """Install the entry and return a short detail line.

        Raises:
            InstallError: The install action failed.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
