"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path

import pytest

from provisioner.core.context import SystemContext
from tests.simulated_machine import FakeRunner, make_system


@pytest.fixture
def darwin(tmp_path: Path) -> SystemContext:
    """A simulated Mac with curl, brew and asdf on PATH."""
    return make_system(tmp_path, tools=("curl", "brew", "asdf"))


@pytest.fixture
def bare_darwin(tmp_path: Path) -> SystemContext:
    """A fresh Mac: only curl."""
    return make_system(tmp_path, tools=("curl",))


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """``setup_logging`` replaces the root handlers; put them back."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
