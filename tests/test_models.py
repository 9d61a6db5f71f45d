"""
Tests for domain models — desired entries, spec validation, outcomes.
"""

import pytest
from pydantic import ValidationError

from provisioner.core.models.entry import DesiredEntry, DesiredStateSpec, EntryKind, Settings
from provisioner.core.models.outcome import (
    EXIT_FATAL,
    EXIT_INTERRUPTED,
    EXIT_OK,
    EXIT_PRECONDITION,
    InstallOutcome,
    OutcomeStatus,
    RunSummary,
)

# ── DesiredEntry ─────────────────────────────────────────────────────


class TestDesiredEntry:
    def test_key(self):
        entry = DesiredEntry(kind=EntryKind.CLI, id="ripgrep")
        assert entry.key == "cli:ripgrep"
        assert str(entry) == "cli:ripgrep"

    def test_kind_from_string(self):
        entry = DesiredEntry.model_validate({"kind": "plugin", "id": "nodejs"})
        assert entry.kind == EntryKind.PLUGIN

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            DesiredEntry.model_validate({"kind": "snap", "id": "x"})

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            DesiredEntry(kind=EntryKind.CLI, id="")

    def test_label_defaults_to_id(self):
        assert DesiredEntry(kind=EntryKind.CLI, id="fzf").label == "fzf"
        labelled = DesiredEntry(
            kind=EntryKind.CLI, id="xcodesorg/made/xcodes", args={"label": "xcodes"}
        )
        assert labelled.label == "xcodes"

    def test_frozen(self):
        entry = DesiredEntry(kind=EntryKind.CLI, id="fzf")
        with pytest.raises(ValidationError):
            entry.id = "bat"


# ── DesiredStateSpec ─────────────────────────────────────────────────


class TestDesiredStateSpec:
    def test_duplicate_id_within_kind_fails_at_construction(self):
        with pytest.raises(ValidationError, match="Duplicate entries"):
            DesiredStateSpec(
                entries=[
                    DesiredEntry(kind=EntryKind.CLI, id="ripgrep"),
                    DesiredEntry(kind=EntryKind.CLI, id="ripgrep"),
                ]
            )

    def test_same_id_in_different_kinds_allowed(self):
        spec = DesiredStateSpec(
            entries=[
                DesiredEntry(kind=EntryKind.CLI, id="asdf"),
                DesiredEntry(kind=EntryKind.STANDALONE, id="asdf"),
            ]
        )
        assert len(spec.entries) == 2

    def test_unknown_requirement(self):
        with pytest.raises(ValidationError, match="unknown entry"):
            DesiredStateSpec(
                entries=[DesiredEntry(kind=EntryKind.PLUGIN, id="python", requires=("cli:asdf",))]
            )

    def test_forward_requirement_rejected(self):
        with pytest.raises(ValidationError, match="processed after"):
            DesiredStateSpec.model_validate(
                {
                    "entries": [
                        {"kind": "plugin", "id": "python", "requires": ["cli:asdf"]},
                        {"kind": "cli", "id": "asdf"},
                    ]
                }
            )

    def test_self_requirement_rejected(self):
        with pytest.raises(ValidationError, match="requires itself"):
            DesiredStateSpec(
                entries=[DesiredEntry(kind=EntryKind.CLI, id="asdf", requires=("cli:asdf",))]
            )

    def test_declaration_position_becomes_order(self):
        spec = DesiredStateSpec.model_validate(
            {"entries": [{"kind": "cli", "id": "b"}, {"kind": "cli", "id": "a"}]}
        )
        assert [e.id for e in spec.ordered()] == ["b", "a"]
        assert [e.order for e in spec.ordered()] == [0, 1]

    def test_explicit_order_wins(self):
        spec = DesiredStateSpec.model_validate(
            {
                "entries": [
                    {"kind": "cli", "id": "late", "order": 10},
                    {"kind": "cli", "id": "early", "order": -1},
                ]
            }
        )
        assert [e.id for e in spec.ordered()] == ["early", "late"]

    def test_requirement_checked_against_processing_order(self):
        # Declared first, but ordered after its dependency.
        spec = DesiredStateSpec.model_validate(
            {
                "entries": [
                    {"kind": "plugin", "id": "python", "order": 5, "requires": ["cli:asdf"]},
                    {"kind": "cli", "id": "asdf", "order": 1},
                ]
            }
        )
        assert [e.key for e in spec.ordered()] == ["cli:asdf", "plugin:python"]

    def test_get_and_by_kind(self):
        spec = DesiredStateSpec(
            entries=[
                DesiredEntry(kind=EntryKind.CLI, id="fzf"),
                DesiredEntry(kind=EntryKind.CASK, id="iterm2"),
            ]
        )
        assert spec.get("cask:iterm2").id == "iterm2"
        assert spec.get("cask:nope") is None
        assert [e.id for e in spec.by_kind(EntryKind.CLI)] == ["fzf"]

    def test_dependents_are_transitive(self):
        spec = DesiredStateSpec.model_validate(
            {
                "entries": [
                    {"kind": "standalone", "id": "homebrew"},
                    {"kind": "cli", "id": "asdf", "requires": ["standalone:homebrew"]},
                    {"kind": "plugin", "id": "python", "requires": ["cli:asdf"]},
                    {"kind": "cli", "id": "fzf"},
                ]
            }
        )
        keys = [e.key for e in spec.dependents_of("standalone:homebrew")]
        assert keys == ["cli:asdf", "plugin:python"]

    def test_settings_defaults(self):
        settings = Settings()
        assert settings.target_os == "Darwin"
        assert settings.required_tools == ["curl"]
        assert settings.retries == 0
        assert settings.command_timeout is None

    def test_negative_retries_rejected(self):
        with pytest.raises(ValidationError):
            Settings(retries=-1)


# ── Outcomes and summary ─────────────────────────────────────────────


def _outcome(entry_id: str, status: OutcomeStatus, critical: bool = False) -> InstallOutcome:
    return InstallOutcome(
        entry=DesiredEntry(kind=EntryKind.CLI, id=entry_id, critical=critical),
        status=status,
    )


class TestRunSummary:
    def test_record_and_lookup(self):
        summary = RunSummary()
        summary.record(_outcome("fzf", OutcomeStatus.INSTALLED))
        assert summary.outcome_for("cli:fzf").status == OutcomeStatus.INSTALLED
        assert summary.total == 1

    def test_entry_recorded_once(self):
        summary = RunSummary()
        summary.record(_outcome("fzf", OutcomeStatus.INSTALLED))
        with pytest.raises(ValueError, match="already recorded"):
            summary.record(_outcome("fzf", OutcomeStatus.FAILED))

    def test_outcomes_are_read_only(self):
        summary = RunSummary(outcomes=[_outcome("fzf", OutcomeStatus.INSTALLED)])
        summary.record(_outcome("bat", OutcomeStatus.INSTALLED))
        assert isinstance(summary.outcomes, tuple)
        assert [o.entry.id for o in summary.outcomes] == ["fzf", "bat"]

    def test_outcome_is_immutable(self):
        outcome = _outcome("fzf", OutcomeStatus.INSTALLED)
        with pytest.raises(ValidationError):
            outcome.status = OutcomeStatus.FAILED

    def test_counts(self):
        summary = RunSummary()
        summary.record(_outcome("a", OutcomeStatus.SATISFIED))
        summary.record(_outcome("b", OutcomeStatus.INSTALLED))
        summary.record(_outcome("c", OutcomeStatus.FAILED))
        summary.record(_outcome("d", OutcomeStatus.SKIPPED))
        counts = summary.counts()
        assert counts == {
            "satisfied": 1,
            "installed": 1,
            "failed": 1,
            "skipped": 1,
            "config_missing": 0,
        }

    def test_index_rebuilt_from_constructor(self):
        summary = RunSummary(outcomes=[_outcome("a", OutcomeStatus.SATISFIED)])
        assert summary.outcome_for("cli:a") is not None

    def test_status_and_exit_codes(self):
        summary = RunSummary()
        assert summary.status == "ok"
        assert summary.exit_code() == EXIT_OK

        summary.record(_outcome("c", OutcomeStatus.FAILED))
        assert summary.status == "partial"
        assert summary.exit_code() == EXIT_OK
        assert summary.exit_code(strict=True) == EXIT_FATAL

        summary.fatal_encountered = True
        assert summary.status == "failed"
        assert summary.exit_code() == EXIT_FATAL

    def test_precondition_exit_code(self):
        summary = RunSummary(precondition_error="wrong OS")
        assert not summary.ok
        assert summary.exit_code() == EXIT_PRECONDITION

    def test_interrupted_exit_code(self):
        summary = RunSummary(interrupted=True)
        assert summary.exit_code() == EXIT_INTERRUPTED

    def test_present_statuses(self):
        assert OutcomeStatus.SATISFIED.present
        assert OutcomeStatus.INSTALLED.present
        assert not OutcomeStatus.FAILED.present
        assert not OutcomeStatus.SKIPPED.present
        assert not OutcomeStatus.CONFIG_MISSING.present

    def test_to_dict(self):
        summary = RunSummary()
        summary.record(_outcome("fzf", OutcomeStatus.INSTALLED))
        summary.finish()
        d = summary.to_dict()
        assert d["status"] == "ok"
        assert d["total"] == 1
        assert d["ended_at"]
        assert d["outcomes"][0] == {
            "kind": "cli",
            "id": "fzf",
            "status": "installed",
            "detail": None,
            "duration_ms": 0,
            "critical": False,
        }
