"""
Preconditions — checks that must pass before anything is mutated.
"""

from __future__ import annotations

import logging

from provisioner.core.context import SystemContext
from provisioner.core.errors import PreconditionError
from provisioner.core.models.entry import Settings

logger = logging.getLogger(__name__)


def check_preconditions(system: SystemContext, settings: Settings) -> None:
    """Abort the run when the machine is not a valid target.

    Raises:
        PreconditionError: Wrong OS, or a required tool is missing.
    """
    if system.os_name.lower() != settings.target_os.lower():
        raise PreconditionError(
            f"This provisioner targets {settings.target_os} only "
            f"(running on {system.os_name or 'unknown OS'})"
        )

    missing = [tool for tool in settings.required_tools if system.which(tool) is None]
    if missing:
        raise PreconditionError(f"Required tools not found on PATH: {', '.join(missing)}")

    logger.debug("Preconditions passed (%s %s)", system.os_name, system.machine)
