"""
Tests for the system context and preconditions.
"""

from pathlib import Path

import pytest

from provisioner.core.context import HOMEBREW_BIN_DIRS, SystemContext
from provisioner.core.engine.preconditions import check_preconditions
from provisioner.core.errors import PreconditionError
from provisioner.core.models.entry import Settings
from tests.simulated_machine import add_tool, make_system


class TestSystemContext:
    def test_detect_adds_homebrew_dirs(self):
        system = SystemContext.detect()
        for d in HOMEBREW_BIN_DIRS:
            assert d in system.path_dirs
        assert system.home == Path.home()

    def test_which_uses_context_path(self, tmp_path: Path):
        system = make_system(tmp_path, tools=("curl",))
        assert system.which("curl") == str(tmp_path / "bin" / "curl")
        assert system.which("brew") is None

    def test_tool_installed_mid_run_is_found(self, tmp_path: Path):
        system = make_system(tmp_path, tools=())
        assert system.which("brew") is None
        add_tool(tmp_path / "bin", "brew")
        assert system.which("brew") is not None

    def test_empty_path_finds_nothing(self, tmp_path: Path):
        system = SystemContext(os_name="Darwin", home=tmp_path)
        assert system.which("sh") is None

    def test_expand_against_context_home(self, tmp_path: Path):
        system = make_system(tmp_path)
        assert system.expand("~/.tool-versions") == system.home / ".tool-versions"
        assert system.expand("~") == system.home
        assert system.expand("/etc/hosts") == Path("/etc/hosts")

    def test_child_env(self, tmp_path: Path):
        system = make_system(tmp_path)
        env = system.child_env({"NONINTERACTIVE": "1"})
        assert env["PATH"] == str(tmp_path / "bin")
        assert env["HOME"] == str(system.home)
        assert env["NONINTERACTIVE"] == "1"
        assert env["LANG"] == "C"
        assert "NONINTERACTIVE" not in system.env

    def test_apple_silicon(self, tmp_path: Path):
        assert make_system(tmp_path, machine="arm64").is_apple_silicon
        assert not make_system(tmp_path, machine="x86_64").is_apple_silicon

    def test_frozen(self, tmp_path: Path):
        system = make_system(tmp_path)
        with pytest.raises(ValueError):
            system.os_name = "Linux"


class TestPreconditions:
    def test_darwin_with_curl_passes(self, bare_darwin):
        check_preconditions(bare_darwin, Settings())

    def test_os_comparison_ignores_case(self, tmp_path: Path):
        system = make_system(tmp_path, os_name="darwin")
        check_preconditions(system, Settings())

    def test_wrong_os(self, tmp_path: Path):
        system = make_system(tmp_path, os_name="Linux")
        with pytest.raises(PreconditionError, match="targets Darwin only"):
            check_preconditions(system, Settings())

    def test_missing_tools_listed(self, tmp_path: Path):
        system = make_system(tmp_path, tools=())
        with pytest.raises(PreconditionError, match="curl, git"):
            check_preconditions(system, Settings(required_tools=["curl", "git"]))
