"""
Configuration loader — reads workstation.yml into a DesiredStateSpec.

This is the primary entry point for loading the desired state.
It reads YAML, validates against Pydantic schemas, and returns a
typed, already-validated spec.

Lookup order when no explicit path is given:
    PROVISIONER_CONFIG env var → workstation.yml walking up from cwd →
    ~/.config/provisioner/workstation.yml → packaged default
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from provisioner.core.data import default_config_path
from provisioner.core.errors import ConfigError
from provisioner.core.models.entry import DesiredStateSpec

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "workstation.yml"
CONFIG_ENV_VAR = "PROVISIONER_CONFIG"
USER_CONFIG_DIR = Path(".config") / "provisioner"

__all__ = [
    "CONFIG_FILE",
    "ConfigError",
    "find_config_file",
    "load_spec",
    "parse_spec",
    "resolve_config_path",
]


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for workstation.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to workstation.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def resolve_config_path(
    explicit: Path | None = None,
    home: Path | None = None,
    start_dir: Path | None = None,
) -> Path:
    """Pick the desired-state file to use for this run."""
    if explicit is not None:
        return explicit

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()

    found = find_config_file(start_dir)
    if found is not None:
        return found

    user_file = (home or Path.home()) / USER_CONFIG_DIR / CONFIG_FILE
    if user_file.is_file():
        return user_file

    logger.debug("No %s found, using packaged default", CONFIG_FILE)
    return default_config_path()


def parse_spec(data: object, source: str = "<memory>") -> DesiredStateSpec:
    """Validate already-parsed YAML data.

    Raises:
        ConfigError: Wrong shape, duplicate entries or broken dependencies.
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {source}, got {type(data).__name__}")

    try:
        return DesiredStateSpec.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid desired state in {source}: {e}") from e


def load_spec(path: Path | None = None) -> DesiredStateSpec:
    """Load and validate the desired state.

    Args:
        path: Explicit path to workstation.yml. If None, resolves one.

    Returns:
        Validated DesiredStateSpec.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = resolve_config_path()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading desired state from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    spec = parse_spec(data, source=str(path))
    logger.info("Loaded %d entries from %s", len(spec.entries), path)
    return spec
