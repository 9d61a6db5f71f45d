"""
Reconciler — the central "is it there? if not, install it" loop.

Flow:
    preconditions → for each entry in order:
        dependencies present? → adapter → check presence → install → outcome

Idempotence comes from checking presence before every install: a
re-run against a provisioned machine performs no installs.  Entries
are processed strictly in declared order and each at most once.
"""

from __future__ import annotations

import logging
import time

from provisioner.adapters.base import InstallContext
from provisioner.adapters.registry import AdapterRegistry
from provisioner.core.context import SystemContext
from provisioner.core.engine.preconditions import check_preconditions
from provisioner.core.errors import ConfigMissing, InstallError
from provisioner.core.models.entry import DesiredEntry, DesiredStateSpec, Settings
from provisioner.core.models.outcome import InstallOutcome, OutcomeStatus, RunSummary
from provisioner.core.observability.report import NullReportSink, ReportSink

logger = logging.getLogger(__name__)


class Reconciler:
    """Walks a desired state and closes the gap against the real machine.

    Args:
        registry: Kind → adapter binding (frozen before the run).
        system: Read-only machine context.
        sink: Receives each outcome as soon as it is recorded.
        dry_run: Check presence only; report missing entries as skipped.
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        system: SystemContext,
        sink: ReportSink | None = None,
        dry_run: bool = False,
    ) -> None:
        self._registry = registry
        self._system = system
        self._sink = sink or NullReportSink()
        self._dry_run = dry_run

    def reconcile(self, spec: DesiredStateSpec) -> RunSummary:
        """Reconcile every entry of ``spec``.

        Raises:
            PreconditionError: Before any entry is touched.
        """
        check_preconditions(self._system, spec.settings)
        self._registry.freeze()

        summary = RunSummary(dry_run=self._dry_run)
        entries = spec.ordered()
        logger.info("Reconciling %d entries", len(entries))

        for entry in entries:
            start = time.monotonic()
            try:
                status, detail = self._process(entry, spec.settings, summary)
                outcome = self._record(summary, entry, status, detail, start)
                if status == OutcomeStatus.FAILED and entry.critical:
                    summary.fatal_encountered = True
                    logger.error("Prerequisite %s failed; its dependents will be skipped", entry.key)
                self._sink.emit(outcome)
            except KeyboardInterrupt:
                summary.interrupted = True
                logger.warning("Interrupted while processing %s", entry.key)
                # An entry interrupted while being reported keeps its outcome
                if summary.outcome_for(entry.key) is None:
                    outcome = self._record(summary, entry, OutcomeStatus.FAILED, "interrupted", start)
                    self._sink.emit(outcome)
                break

        summary.finish()
        logger.info(
            "Reconcile finished: %d satisfied, %d installed, %d failed, %d skipped",
            summary.satisfied,
            summary.installed,
            summary.failed,
            summary.skipped,
        )
        return summary

    def _process(
        self,
        entry: DesiredEntry,
        settings: Settings,
        summary: RunSummary,
    ) -> tuple[OutcomeStatus, str | None]:
        # ── Dependencies ─────────────────────────────────────────
        for dep in entry.requires:
            dep_outcome = summary.outcome_for(dep)
            if dep_outcome is not None and dep_outcome.status.present:
                continue
            if self._dry_run and dep_outcome is not None and dep_outcome.status == OutcomeStatus.SKIPPED:
                return OutcomeStatus.SKIPPED, f"[dry-run] waits on {dep}"
            dep_status = dep_outcome.status.value if dep_outcome else "not processed"
            return OutcomeStatus.SKIPPED, f"requires {dep} ({dep_status})"

        # ── Adapter ──────────────────────────────────────────────
        adapter = self._registry.get(entry.kind)
        if adapter is None:
            return OutcomeStatus.FAILED, f"No adapter bound for kind '{entry.kind.value}'"

        context = InstallContext(
            entry=entry,
            system=self._system,
            settings=settings,
            dry_run=self._dry_run,
        )

        # ── Presence ─────────────────────────────────────────────
        try:
            if adapter.check_presence(context):
                return OutcomeStatus.SATISFIED, None
        except ConfigMissing as e:
            return OutcomeStatus.CONFIG_MISSING, str(e)
        except InstallError as e:
            return OutcomeStatus.FAILED, f"Presence check failed: {e.reason}"
        except Exception as e:
            logger.exception("Adapter %s raised during presence check", adapter.name)
            return OutcomeStatus.FAILED, f"Unexpected error: {e}"

        if self._dry_run:
            return OutcomeStatus.SKIPPED, "[dry-run] would install"

        # ── Install ──────────────────────────────────────────────
        try:
            detail = adapter.install_item(context)
        except InstallError as e:
            return OutcomeStatus.FAILED, e.reason
        except ConfigMissing as e:
            return OutcomeStatus.CONFIG_MISSING, str(e)
        except Exception as e:
            logger.exception("Adapter %s raised during install", adapter.name)
            return OutcomeStatus.FAILED, f"Unexpected error: {e}"
        return OutcomeStatus.INSTALLED, detail

    def _record(
        self,
        summary: RunSummary,
        entry: DesiredEntry,
        status: OutcomeStatus,
        detail: str | None,
        start: float,
    ) -> InstallOutcome:
        outcome = InstallOutcome(
            entry=entry,
            status=status,
            detail=detail,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        summary.record(outcome)
        return outcome


def reconcile(
    spec: DesiredStateSpec,
    registry: AdapterRegistry,
    system: SystemContext,
    sink: ReportSink | None = None,
    dry_run: bool = False,
) -> RunSummary:
    """Convenience wrapper around ``Reconciler(...).reconcile(spec)``."""
    return Reconciler(registry, system, sink=sink, dry_run=dry_run).reconcile(spec)
