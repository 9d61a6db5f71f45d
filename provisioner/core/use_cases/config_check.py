"""
Config check use case — validate workstation.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from provisioner.core.config.loader import load_spec, resolve_config_path
from provisioner.core.errors import ConfigError
from provisioner.core.models.entry import DesiredStateSpec, EntryKind


@dataclass
class ConfigCheckResult:
    """Result of desired-state validation."""

    valid: bool = False
    spec: DesiredStateSpec | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        kinds: dict[str, int] = {}
        if self.spec:
            for entry in self.spec.entries:
                kinds[entry.kind.value] = kinds.get(entry.kind.value, 0) + 1
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "entry_count": len(self.spec.entries) if self.spec else 0,
            "kinds": kinds,
        }


def check_config(config_path: Path | None = None, home: Path | None = None) -> ConfigCheckResult:
    """Validate the desired state and report issues.

    Structural problems (duplicates, broken ``requires``) are errors;
    entries that look incomplete are warnings.
    """
    result = ConfigCheckResult()

    try:
        result.config_path = resolve_config_path(config_path, home=home)
        spec = load_spec(result.config_path)
        result.spec = spec
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    if not spec.entries:
        result.warnings.append("No entries defined. Nothing will be provisioned.")

    for entry in spec.entries:
        if entry.kind == EntryKind.STANDALONE:
            if not entry.source_ref and not entry.args.get("formula"):
                result.warnings.append(
                    f"'{entry.key}' has no source_ref or formula; it can only be checked"
                )
        if entry.kind in (EntryKind.PLUGIN, EntryKind.VERSIONS) and not entry.requires:
            result.warnings.append(
                f"'{entry.key}' does not require the version manager entry"
            )

    critical_dependents = {
        e.key: len(spec.dependents_of(e.key)) for e in spec.entries if e.critical
    }
    for key, count in critical_dependents.items():
        if count == 0:
            result.warnings.append(f"Critical entry '{key}' has no dependents")

    result.valid = not result.errors
    return result
