"""
Run ledger — one NDJSON line per provisioning run.

Opt-in via ``--audit-file`` or PROVISIONER_AUDIT_FILE.  Lines are only
ever appended.  Nothing in a run consults the ledger: presence on the
machine is the sole source of truth for what is installed.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from provisioner.core.models.outcome import OutcomeStatus, RunSummary

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()


class AuditEntry(BaseModel):
    """What one run did, condensed."""

    timestamp: str = Field(default_factory=_utc_now)
    run_id: str = ""
    config_path: str = ""

    status: str = ""               # ok | partial | failed
    dry_run: bool = False
    counts: dict[str, int] = Field(default_factory=dict)
    fatal_encountered: bool = False
    interrupted: bool = False
    precondition_error: str | None = None

    # Entry keys, in processing order
    installed: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)

    context: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_summary(cls, summary: RunSummary, run_id: str = "", config_path: str = "") -> AuditEntry:
        def keys(status: OutcomeStatus) -> list[str]:
            return [o.key for o in summary.outcomes if o.status == status]

        return cls(
            run_id=run_id,
            config_path=config_path,
            status=summary.status,
            dry_run=summary.dry_run,
            counts=summary.counts(),
            fatal_encountered=summary.fatal_encountered,
            interrupted=summary.interrupted,
            precondition_error=summary.precondition_error,
            installed=keys(OutcomeStatus.INSTALLED),
            failed=keys(OutcomeStatus.FAILED),
        )


class AuditWriter:
    """Appends ``AuditEntry`` lines to a ledger file and reads them back.

    A ledger that cannot be written is logged and otherwise ignored; the
    run's result never depends on it.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as ledger:
                ledger.write(line + "\n")
        except OSError as e:
            logger.error("Cannot append to audit ledger %s: %s", self._path, e)
            return
        logger.debug("Recorded run %s in %s", entry.run_id, self._path)

    def read_all(self) -> list[AuditEntry]:
        """Every readable entry, oldest first.  Corrupt lines are skipped."""
        entries: list[AuditEntry] = []
        for line_num, text in self._lines():
            try:
                entries.append(AuditEntry.model_validate_json(text))
            except ValueError as e:
                logger.warning("Ignoring audit line %d in %s: %s", line_num, self._path, e)
        return entries

    def _lines(self) -> Iterator[tuple[int, str]]:
        if not self._path.is_file():
            return
        try:
            with self._path.open(encoding="utf-8") as ledger:
                for line_num, raw in enumerate(ledger, start=1):
                    if raw.strip():
                        yield line_num, raw.strip()
        except OSError as e:
            logger.error("Cannot read audit ledger %s: %s", self._path, e)
