"""
Apply use case — provision the workstation from its desired state.

The full vertical slice: resolve and load the desired-state file,
snapshot the machine, bind adapters, reconcile, and optionally append
the run to the audit ledger.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from provisioner.adapters.registry import AdapterRegistry, default_registry
from provisioner.adapters.shell.command import CommandRunner
from provisioner.core.config.loader import load_spec, resolve_config_path
from provisioner.core.context import SystemContext
from provisioner.core.engine.reconciler import Reconciler
from provisioner.core.errors import ConfigError, PreconditionError
from provisioner.core.models.entry import DesiredStateSpec
from provisioner.core.models.outcome import EXIT_CONFIG, RunSummary
from provisioner.core.observability.report import ReportSink
from provisioner.core.persistence.audit import AuditEntry, AuditWriter
from provisioner.core.reliability.retry import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    """Result of one provisioning run."""

    run_id: str = ""
    config_path: Path | None = None
    spec: DesiredStateSpec | None = None
    summary: RunSummary | None = None
    error: str | None = None        # configuration problem; nothing ran

    def exit_code(self, strict: bool = False) -> int:
        if self.error or self.summary is None:
            return EXIT_CONFIG
        return self.summary.exit_code(strict=strict)

    def to_dict(self) -> dict:
        result: dict = {"run_id": self.run_id}
        if self.config_path:
            result["config_path"] = str(self.config_path)
        if self.error:
            result["error"] = self.error
            return result
        if self.summary:
            result["summary"] = self.summary.to_dict()
        return result


def generate_run_id() -> str:
    """Generate a unique run ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"run-{now}-{short}"


def build_registry(
    system: SystemContext,
    spec: DesiredStateSpec,
    mock_mode: bool = False,
) -> AdapterRegistry:
    """Bind the production adapters, or a simulated machine in mock mode."""
    if mock_mode:
        from provisioner.adapters.mock import MockInstaller

        registry = AdapterRegistry()
        registry.bind_all(MockInstaller(adapter_name="mock"))
        return registry.freeze()

    settings = spec.settings
    runner = CommandRunner(
        system=system,
        timeout=settings.command_timeout,
        retry=RetryPolicy.from_settings(
            settings.retries, settings.retry_delay, settings.retry_max_delay
        ),
    )
    return default_registry(runner)


def run_apply(
    config_path: Path | None = None,
    dry_run: bool = False,
    mock_mode: bool = False,
    system: SystemContext | None = None,
    registry: AdapterRegistry | None = None,
    sink: ReportSink | None = None,
    audit_path: Path | None = None,
) -> ApplyResult:
    """Reconcile the machine against its desired state.

    Args:
        config_path: Optional explicit path to workstation.yml.
        dry_run: Check presence only, install nothing.
        mock_mode: Use a simulated machine instead of real installers.
        system: Machine context (default: detected from the process).
        registry: Optional pre-configured adapter registry.
        sink: Receives each outcome as it is recorded.
        audit_path: Append the run summary to this NDJSON ledger.

    Returns:
        ApplyResult; ``error`` is set only for configuration problems.
    """
    result = ApplyResult(run_id=generate_run_id())

    # ── Load desired state ───────────────────────────────────────
    try:
        system = system or SystemContext.detect()
        result.config_path = resolve_config_path(config_path, home=system.home)
        result.spec = load_spec(result.config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    spec = result.spec

    # ── Reconcile ────────────────────────────────────────────────
    if registry is None:
        registry = build_registry(system, spec, mock_mode=mock_mode)

    reconciler = Reconciler(registry, system, sink=sink, dry_run=dry_run)
    try:
        result.summary = reconciler.reconcile(spec)
    except PreconditionError as e:
        logger.error("Precondition failed: %s", e)
        summary = RunSummary(precondition_error=str(e), dry_run=dry_run)
        summary.finish()
        result.summary = summary

    # ── Audit ────────────────────────────────────────────────────
    if audit_path is not None:
        AuditWriter(audit_path).write(
            AuditEntry.from_summary(
                result.summary,
                run_id=result.run_id,
                config_path=str(result.config_path),
            )
        )

    return result
