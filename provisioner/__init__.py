"""Workstation provisioner — idempotent macOS development setup."""

__version__ = "0.1.0"
