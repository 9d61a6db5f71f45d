"""
Packaged data files.

``default_workstation.yml`` is the built-in desired state used when no
workstation.yml is found: Homebrew, iTerm2, the Fira Code fonts, the
everyday CLI tools, xcodes, Starship, Oh My Zsh, asdf with its plugins,
and the versions pinned in ``~/.tool-versions``.
"""

from __future__ import annotations

from pathlib import Path

_DATA_DIR = Path(__file__).parent

DEFAULT_CONFIG_NAME = "default_workstation.yml"


def default_config_path() -> Path:
    """Path to the packaged default desired state."""
    return _DATA_DIR / DEFAULT_CONFIG_NAME
