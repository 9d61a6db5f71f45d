"""
Error taxonomy — every failure the provisioner distinguishes.

Only ``PreconditionError`` and ``ConfigError`` ever escape a run.
Everything raised by an adapter is caught at the entry boundary
inside the reconciler and turned into an outcome record.
"""

from __future__ import annotations


class ProvisionError(Exception):
    """Base class for provisioner errors."""


class PreconditionError(ProvisionError):
    """The machine cannot be provisioned at all (wrong OS, missing tool).

    Raised before any mutation happens.
    """


class ConfigError(ProvisionError):
    """Raised when the desired-state file is missing or invalid."""


class ConfigMissing(ProvisionError):
    """An optional declarative input (e.g. ``~/.tool-versions``) is absent.

    Informational only: recorded as ``config_missing``, never fatal.
    """


class InstallError(ProvisionError):
    """A single entry's presence check or install action failed."""

    def __init__(self, reason: str, *, output: str = "") -> None:
        super().__init__(reason)
        self.reason = reason
        self.output = output
