"""
Report sinks — where per-entry outcomes are rendered as they happen.

A sink must never break a run: ``emit`` swallows rendering errors
after logging them at debug level.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable

import click

from provisioner.core.models.outcome import InstallOutcome, OutcomeStatus

logger = logging.getLogger(__name__)

# status → (marker, colour)
STATUS_STYLE: dict[OutcomeStatus, tuple[str, str]] = {
    OutcomeStatus.SATISFIED: ("✓", "green"),
    OutcomeStatus.INSTALLED: ("⬇", "cyan"),
    OutcomeStatus.FAILED: ("✗", "red"),
    OutcomeStatus.SKIPPED: ("⊘", "yellow"),
    OutcomeStatus.CONFIG_MISSING: ("⚠", "yellow"),
}

STATUS_LABEL: dict[OutcomeStatus, str] = {
    OutcomeStatus.SATISFIED: "already installed",
    OutcomeStatus.INSTALLED: "installed",
    OutcomeStatus.FAILED: "failed",
    OutcomeStatus.SKIPPED: "skipped",
    OutcomeStatus.CONFIG_MISSING: "config missing",
}


class ReportSink(ABC):
    """Base sink.  Subclasses implement ``_render``."""

    def emit(self, outcome: InstallOutcome) -> None:
        try:
            self._render(outcome)
        except Exception as e:
            logger.debug("Report sink %s failed to render %s: %s",
                         self.__class__.__name__, outcome.key, e)

    @abstractmethod
    def _render(self, outcome: InstallOutcome) -> None:
        """Write one outcome.  May raise; ``emit`` contains it."""


class LoggingReportSink(ReportSink):
    """Leveled log line per outcome."""

    _LEVELS = {
        OutcomeStatus.SATISFIED: logging.INFO,
        OutcomeStatus.INSTALLED: logging.INFO,
        OutcomeStatus.FAILED: logging.ERROR,
        OutcomeStatus.SKIPPED: logging.WARNING,
        OutcomeStatus.CONFIG_MISSING: logging.WARNING,
    }

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logging.getLogger("provisioner.report")

    def _render(self, outcome: InstallOutcome) -> None:
        marker, _ = STATUS_STYLE[outcome.status]
        self._log.log(
            self._LEVELS[outcome.status],
            "%s %s %s%s",
            marker,
            outcome.key,
            STATUS_LABEL[outcome.status],
            f": {outcome.detail}" if outcome.detail else "",
        )


class ConsoleReportSink(ReportSink):
    """Coloured terminal line per outcome."""

    def __init__(self, verbose: bool = False) -> None:
        self._verbose = verbose

    def _render(self, outcome: InstallOutcome) -> None:
        marker, color = STATUS_STYLE[outcome.status]
        entry = outcome.entry
        click.secho(f"   {marker} {entry.label}", fg=color, nl=False)
        click.echo(f"  [{entry.kind.value}] {STATUS_LABEL[outcome.status]}", nl=False)
        timing = f" ({outcome.duration_ms}ms)" if outcome.duration_ms else ""
        click.echo(timing)
        show_detail = outcome.status in (
            OutcomeStatus.FAILED,
            OutcomeStatus.SKIPPED,
            OutcomeStatus.CONFIG_MISSING,
        )
        if outcome.detail and (show_detail or self._verbose):
            for line in outcome.detail.split("\n")[:5]:
                click.echo(f"     │ {line}")


class CollectingReportSink(ReportSink):
    """Keeps every outcome in memory."""

    def __init__(self) -> None:
        self.outcomes: list[InstallOutcome] = []

    def _render(self, outcome: InstallOutcome) -> None:
        self.outcomes.append(outcome)

    def statuses(self) -> list[OutcomeStatus]:
        return [o.status for o in self.outcomes]


class MultiReportSink(ReportSink):
    """Fan an outcome out to several sinks; one failing does not stop the rest."""

    def __init__(self, sinks: Iterable[ReportSink]) -> None:
        self._sinks = list(sinks)

    def _render(self, outcome: InstallOutcome) -> None:
        for sink in self._sinks:
            sink.emit(outcome)


class NullReportSink(ReportSink):
    def _render(self, outcome: InstallOutcome) -> None:
        pass
