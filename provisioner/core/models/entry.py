"""
Desired-state models — what the workstation should have installed.

A ``DesiredStateSpec`` is an ordered list of ``DesiredEntry`` items plus
run-wide ``Settings``.  It is built once (from YAML or in code) and
validated at construction: duplicate ids within a kind and broken
dependency edges are rejected here, never discovered mid-run.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EntryKind(StrEnum):
    """Category of an entry; each kind is bound to exactly one adapter."""

    CASK = "cask"               # GUI application bundle
    CLI = "cli"                 # command-line package
    FONT = "font"
    PLUGIN = "plugin"           # version-manager plugin
    STANDALONE = "standalone"   # single tool with its own bootstrap
    VERSIONS = "versions"       # declared runtime versions


class Settings(BaseModel):
    """Run-wide knobs shared by the preconditions and every adapter."""

    target_os: str = "Darwin"
    required_tools: list[str] = Field(default_factory=lambda: ["curl"])
    retries: int = Field(default=0, ge=0)
    retry_delay: float = Field(default=2.0, ge=0)
    retry_max_delay: float = Field(default=30.0, ge=0)
    command_timeout: int | None = Field(default=None, gt=0)
    update_package_manager: bool = True


class DesiredEntry(BaseModel):
    """One declared item: a package, plugin, font, tool or version set."""

    model_config = ConfigDict(frozen=True)

    kind: EntryKind
    id: str = Field(min_length=1)
    source_ref: str | None = None       # plugin repo URL, install script, tap
    args: dict[str, Any] = Field(default_factory=dict)
    order: int = 0
    requires: tuple[str, ...] = ()      # keys of prerequisite entries
    critical: bool = False              # failure halts dependents + run is fatal

    @property
    def key(self) -> str:
        """Reference used by other entries' ``requires``."""
        return f"{self.kind.value}:{self.id}"

    @property
    def label(self) -> str:
        return self.args.get("label") or self.id

    def __str__(self) -> str:
        return self.key


class DesiredStateSpec(BaseModel):
    """The full desired state, validated for uniqueness and edge sanity."""

    model_config = ConfigDict(frozen=True)

    version: int = 1
    settings: Settings = Field(default_factory=Settings)
    entries: tuple[DesiredEntry, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _number_entries(cls, data: Any) -> Any:
        # Entries without an explicit order take their declaration position.
        if not isinstance(data, dict):
            return data
        raw = data.get("entries")
        if not raw:
            return data
        numbered = []
        for position, item in enumerate(raw):
            if isinstance(item, dict) and item.get("order") is None:
                item = {**item, "order": position}
            numbered.append(item)
        return {**data, "entries": numbered}

    @model_validator(mode="after")
    def _check_entries(self) -> DesiredStateSpec:
        seen: set[str] = set()
        dupes: list[str] = []
        for entry in self.entries:
            if entry.key in seen:
                dupes.append(entry.key)
            seen.add(entry.key)
        if dupes:
            raise ValueError(
                f"Duplicate entries (id must be unique within kind): "
                f"{', '.join(sorted(set(dupes)))}"
            )

        processed: set[str] = set()
        for entry in self.ordered():
            for dep in entry.requires:
                if dep == entry.key:
                    raise ValueError(f"Entry '{entry.key}' requires itself")
                if dep not in seen:
                    raise ValueError(
                        f"Entry '{entry.key}' requires unknown entry '{dep}'"
                    )
                if dep not in processed:
                    raise ValueError(
                        f"Entry '{entry.key}' requires '{dep}', "
                        "which is processed after it"
                    )
            processed.add(entry.key)
        return self

    def ordered(self) -> list[DesiredEntry]:
        """Entries in processing order (ascending ``order``, stable)."""
        return sorted(self.entries, key=lambda e: e.order)

    def get(self, key: str) -> DesiredEntry | None:
        """Look up an entry by its ``kind:id`` key."""
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None

    def by_kind(self, kind: EntryKind) -> list[DesiredEntry]:
        return [e for e in self.ordered() if e.kind == kind]

    def dependents_of(self, key: str) -> list[DesiredEntry]:
        """Entries that directly or transitively require ``key``."""
        blocked = {key}
        result = []
        for entry in self.ordered():
            if blocked.intersection(entry.requires):
                blocked.add(entry.key)
                result.append(entry)
        return result
