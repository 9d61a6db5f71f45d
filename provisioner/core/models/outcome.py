"""
Outcome and summary models — the result contract of a reconcile run.

Every processed entry produces exactly one ``InstallOutcome``.  The
``RunSummary`` is append-only while the run is in progress and
read-only for whoever consumes it afterwards.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from provisioner.core.models.entry import DesiredEntry

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PRECONDITION = 2
EXIT_CONFIG = 3
EXIT_INTERRUPTED = 130


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class OutcomeStatus(StrEnum):
    """How an entry ended up."""

    SATISFIED = "satisfied"             # already present, nothing done
    INSTALLED = "installed"
    FAILED = "failed"
    SKIPPED = "skipped"                 # prerequisite missing, or dry run
    CONFIG_MISSING = "config_missing"   # optional input absent

    @property
    def present(self) -> bool:
        """Whether the entry is in place after this outcome."""
        return self in (OutcomeStatus.SATISFIED, OutcomeStatus.INSTALLED)


class InstallOutcome(BaseModel):
    """Result of processing one entry.  Immutable once recorded."""

    model_config = ConfigDict(frozen=True)

    entry: DesiredEntry
    status: OutcomeStatus
    detail: str | None = None
    duration_ms: int = 0
    recorded_at: str = Field(default_factory=_now_iso)

    @property
    def key(self) -> str:
        return self.entry.key

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.entry.kind.value,
            "id": self.entry.id,
            "status": self.status.value,
            "detail": self.detail,
            "duration_ms": self.duration_ms,
            "critical": self.entry.critical,
        }


class RunSummary(BaseModel):
    """Aggregate of one reconcile run."""

    outcomes: tuple[InstallOutcome, ...] = ()    # written only through record()
    fatal_encountered: bool = False
    interrupted: bool = False
    precondition_error: str | None = None
    dry_run: bool = False
    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = ""

    _index: dict[str, InstallOutcome] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        self._index = {o.key: o for o in self.outcomes}

    def record(self, outcome: InstallOutcome) -> None:
        """Append an outcome.  Each entry may be recorded only once."""
        if outcome.key in self._index:
            raise ValueError(f"Outcome for '{outcome.key}' already recorded")
        self._index[outcome.key] = outcome
        self.outcomes = (*self.outcomes, outcome)

    def outcome_for(self, key: str) -> InstallOutcome | None:
        return self._index.get(key)

    def finish(self) -> None:
        self.ended_at = _now_iso()

    # ── Counts ──────────────────────────────────────────────────

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    def counts(self) -> dict[str, int]:
        return {status.value: self.count(status) for status in OutcomeStatus}

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def satisfied(self) -> int:
        return self.count(OutcomeStatus.SATISFIED)

    @property
    def installed(self) -> int:
        return self.count(OutcomeStatus.INSTALLED)

    @property
    def failed(self) -> int:
        return self.count(OutcomeStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self.count(OutcomeStatus.SKIPPED)

    @property
    def ok(self) -> bool:
        """No fatal condition: the caller may exit 0."""
        return not (self.fatal_encountered or self.interrupted or self.precondition_error)

    @property
    def status(self) -> str:
        if not self.ok:
            return "failed"
        if self.failed:
            return "partial"
        return "ok"

    def exit_code(self, strict: bool = False) -> int:
        """Process exit status for this run.

        Args:
            strict: Treat any failed entry as fatal.
        """
        if self.precondition_error:
            return EXIT_PRECONDITION
        if self.interrupted:
            return EXIT_INTERRUPTED
        if self.fatal_encountered:
            return EXIT_FATAL
        if strict and self.failed:
            return EXIT_FATAL
        return EXIT_OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "fatal_encountered": self.fatal_encountered,
            "interrupted": self.interrupted,
            "precondition_error": self.precondition_error,
            "dry_run": self.dry_run,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "total": self.total,
            "counts": self.counts(),
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
