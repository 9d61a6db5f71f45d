"""
Tests for observability — report sinks and logging setup.
"""

import logging
from pathlib import Path

import pytest

from provisioner.core.models.entry import DesiredEntry, EntryKind
from provisioner.core.models.outcome import InstallOutcome, OutcomeStatus
from provisioner.core.observability.logging_config import _parse_level, setup_logging
from provisioner.core.observability.report import (
    CollectingReportSink,
    ConsoleReportSink,
    LoggingReportSink,
    MultiReportSink,
    ReportSink,
)


def _outcome(status: OutcomeStatus, detail: str | None = None, **entry) -> InstallOutcome:
    fields = {"kind": EntryKind.CLI, "id": "fzf", **entry}
    return InstallOutcome(entry=DesiredEntry(**fields), status=status, detail=detail)


class _Exploding(ReportSink):
    def _render(self, outcome):
        raise RuntimeError("terminal gone")


# ── Sinks ────────────────────────────────────────────────────────────


class TestConsoleReportSink:
    def test_satisfied_line(self, capsys):
        ConsoleReportSink().emit(_outcome(OutcomeStatus.SATISFIED))
        out = capsys.readouterr().out
        assert "✓ fzf" in out
        assert "[cli] already installed" in out

    def test_uses_label(self, capsys):
        ConsoleReportSink().emit(
            _outcome(OutcomeStatus.INSTALLED, id="xcodesorg/made/xcodes", args={"label": "xcodes"})
        )
        out = capsys.readouterr().out
        assert "⬇ xcodes" in out
        assert "xcodesorg" not in out

    def test_failure_detail_shown(self, capsys):
        ConsoleReportSink().emit(_outcome(OutcomeStatus.FAILED, "brew exited with code 1"))
        out = capsys.readouterr().out
        assert "✗ fzf" in out
        assert "brew exited with code 1" in out

    def test_install_detail_only_when_verbose(self, capsys):
        outcome = _outcome(OutcomeStatus.INSTALLED, "brew formula fzf installed")
        ConsoleReportSink().emit(outcome)
        assert "brew formula" not in capsys.readouterr().out
        ConsoleReportSink(verbose=True).emit(outcome)
        assert "brew formula fzf installed" in capsys.readouterr().out


class TestLoggingReportSink:
    def test_levels_follow_status(self, caplog):
        caplog.set_level(logging.DEBUG, logger="provisioner.report")
        sink = LoggingReportSink()
        sink.emit(_outcome(OutcomeStatus.INSTALLED))
        sink.emit(_outcome(OutcomeStatus.FAILED, "boom", id="bat"))
        sink.emit(_outcome(OutcomeStatus.SKIPPED, "requires cli:asdf (failed)", id="eza"))
        levels = [r.levelno for r in caplog.records if r.name == "provisioner.report"]
        assert levels == [logging.INFO, logging.ERROR, logging.WARNING]
        assert "cli:bat failed: boom" in caplog.text


class TestSinkIsolation:
    def test_base_sink_is_abstract(self):
        with pytest.raises(TypeError):
            ReportSink()

    def test_emit_swallows_render_errors(self):
        _Exploding().emit(_outcome(OutcomeStatus.INSTALLED))

    def test_multi_sink_continues_past_broken_sink(self):
        collected = CollectingReportSink()
        MultiReportSink([_Exploding(), collected]).emit(_outcome(OutcomeStatus.FAILED))
        assert collected.statuses() == [OutcomeStatus.FAILED]


# ── Logging setup ────────────────────────────────────────────────────


class TestSetupLogging:
    def test_level_applied(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_report_logger_filtered_from_console(self):
        setup_logging("WARNING")
        console = logging.getLogger().handlers[0]
        record = logging.LogRecord("provisioner.report", logging.ERROR, "", 0, "x", None, None)
        assert not console.filter(record)
        other = logging.LogRecord("provisioner.core", logging.ERROR, "", 0, "x", None, None)
        assert console.filter(other)

    def test_debug_keeps_report_lines(self):
        setup_logging("DEBUG")
        console = logging.getLogger().handlers[0]
        record = logging.LogRecord("provisioner.report", logging.INFO, "", 0, "x", None, None)
        assert console.filter(record)

    def test_file_handler_with_own_level(self, tmp_path: Path):
        log_file = tmp_path / "provisioner.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        logging.getLogger("provisioner.test").debug("written to file only")
        for handler in root.handlers:
            handler.flush()
        assert "written to file only" in log_file.read_text()
        for handler in root.handlers:
            if isinstance(handler, logging.FileHandler):
                handler.close()

    def test_parse_level(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level("nonsense") == logging.WARNING
        assert _parse_level(None) == logging.WARNING
