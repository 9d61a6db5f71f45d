"""
System context — the read-only view of the machine being provisioned.

Captured ONCE at startup by whichever entry point launches the run:

    - CLI:    main.py → SystemContext.detect()
    - Tests:  SystemContext(os_name="Darwin", home=tmp_path, ...)

Nothing downstream reads ``os.environ``, ``platform`` or ``Path.home()``
directly; adapters and preconditions go through this object so tests
can hand in a fake machine.
"""

from __future__ import annotations

import os
import platform
import shutil
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

# Where Homebrew lands on Apple Silicon and Intel Macs.  Searched after
# PATH so a Homebrew installed earlier in the same run is found.
HOMEBREW_BIN_DIRS = ("/opt/homebrew/bin", "/usr/local/bin")


class SystemContext(BaseModel):
    """Immutable snapshot of OS identity and environment."""

    model_config = ConfigDict(frozen=True)

    os_name: str                     # platform.system(), e.g. "Darwin"
    machine: str = ""                # platform.machine(), e.g. "arm64"
    home: Path
    path_dirs: tuple[str, ...] = ()
    env: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def detect(cls) -> SystemContext:
        """Build a context from the running process."""
        path = os.environ.get("PATH", "")
        dirs = [d for d in path.split(os.pathsep) if d]
        for extra in HOMEBREW_BIN_DIRS:
            if extra not in dirs:
                dirs.append(extra)
        return cls(
            os_name=platform.system(),
            machine=platform.machine(),
            home=Path.home(),
            path_dirs=tuple(dirs),
            env=dict(os.environ),
        )

    @property
    def is_apple_silicon(self) -> bool:
        return self.os_name == "Darwin" and self.machine == "arm64"

    @property
    def search_path(self) -> str:
        """PATH string handed to child processes."""
        return os.pathsep.join(self.path_dirs)

    def which(self, name: str) -> str | None:
        """Locate an executable on the context's search path."""
        if not self.path_dirs:
            return None
        return shutil.which(name, path=self.search_path)

    def expand(self, path: str | Path) -> Path:
        """Expand ``~`` against the context's home, not the process's."""
        text = str(path)
        if text == "~" or text.startswith("~/"):
            return self.home / text[2:]
        return Path(text)

    def child_env(self, overrides: dict[str, str] | None = None) -> dict[str, str]:
        """Environment for a child process: ambient env + search path + overrides."""
        env = dict(self.env)
        env["PATH"] = self.search_path
        env.setdefault("HOME", str(self.home))
        if overrides:
            env.update(overrides)
        return env
