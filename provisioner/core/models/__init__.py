"""
Domain models — Pydantic types for the provisioner.

All models are re-exported here for convenient access:

    from provisioner.core.models import DesiredEntry, DesiredStateSpec, RunSummary
"""

from provisioner.core.models.entry import (
    DesiredEntry,
    DesiredStateSpec,
    EntryKind,
    Settings,
)
from provisioner.core.models.outcome import (
    InstallOutcome,
    OutcomeStatus,
    RunSummary,
)

__all__ = [
    # entry.py
    "DesiredEntry",
    "DesiredStateSpec",
    "EntryKind",
    # outcome.py
    "InstallOutcome",
    "OutcomeStatus",
    "RunSummary",
    "Settings",
]
