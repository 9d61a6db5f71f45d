"""
Workstation provisioner — CLI entrypoint.

Usage:
    provisioner                 # same as `provisioner apply`
    provisioner apply --dry-run
    provisioner plan
    provisioner config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from provisioner import __version__
from provisioner.core.observability.logging_config import setup_logging


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="provisioner")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to workstation.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Workstation provisioner — install what's missing, leave the rest alone."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("PROVISIONER_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("PROVISIONER_LOG_FILE"),
        log_file_level=os.environ.get("PROVISIONER_LOG_FILE_LEVEL"),
    )

    if ctx.invoked_subcommand is None:
        ctx.invoke(apply)


def _audit_path(option: str | None) -> Path | None:
    value = option or os.environ.get("PROVISIONER_AUDIT_FILE")
    return Path(value).expanduser() if value else None


def _run(
    ctx: click.Context,
    *,
    dry_run: bool,
    mock: bool,
    strict: bool,
    as_json: bool,
    audit_file: str | None,
) -> None:
    from provisioner.core.observability.report import (
        ConsoleReportSink,
        LoggingReportSink,
        MultiReportSink,
    )
    from provisioner.core.use_cases.apply import run_apply

    quiet = ctx.obj.get("quiet", False)
    sinks = [LoggingReportSink()]
    if not as_json and not quiet:
        sinks.append(ConsoleReportSink(verbose=ctx.obj.get("verbose", False)))

    if not as_json and not quiet:
        mode_label = "[dry-run] " if dry_run else "[mock] " if mock else ""
        click.secho(f"\n🚀 {mode_label}Provisioning workstation", fg="cyan", bold=True)
        click.echo()

    result = run_apply(
        config_path=ctx.obj.get("config_path"),
        dry_run=dry_run,
        mock_mode=mock,
        sink=MultiReportSink(sinks),
        audit_path=_audit_path(audit_file),
    )
    code = result.exit_code(strict=strict)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(code)

    summary = result.summary
    assert summary is not None  # guaranteed after error check above

    if summary.precondition_error:
        click.secho(f"❌ {summary.precondition_error}", fg="red", err=True)
        sys.exit(code)

    if not quiet:
        click.echo()
        status_color = {"ok": "green", "partial": "yellow", "failed": "red"}.get(
            summary.status, "white"
        )
        click.secho(
            f"   Result: {summary.satisfied} already installed, "
            f"{summary.installed} installed, {summary.failed} failed, "
            f"{summary.skipped} skipped",
            fg=status_color,
            bold=True,
        )
        if summary.interrupted:
            click.secho("   Interrupted — completed entries were kept.", fg="yellow")
        elif summary.fatal_encountered:
            click.secho("   A prerequisite failed; dependent entries were skipped.", fg="red")
        elif summary.status == "ok" and not dry_run:
            click.secho("   ✅ Workstation is up to date.", fg="green")
        click.echo()

    sys.exit(code)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--dry-run", is_flag=True, help="Check presence only, install nothing.")
@click.option("--mock", is_flag=True, help="Use a simulated machine (no real installs).")
@click.option("--strict", is_flag=True, help="Exit non-zero on any failed entry.")
@click.option("--audit-file", default=None, help="Append the run summary to this NDJSON file.")
@click.pass_context
def apply(
    ctx: click.Context,
    as_json: bool = False,
    dry_run: bool = False,
    mock: bool = False,
    strict: bool = False,
    audit_file: str | None = None,
) -> None:
    """Install every missing entry of the desired state.

    Examples:

        provisioner apply

        provisioner apply --dry-run

        provisioner -c ~/dotfiles/workstation.yml apply --strict
    """
    _run(ctx, dry_run=dry_run, mock=mock, strict=strict, as_json=as_json, audit_file=audit_file)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(ctx: click.Context, as_json: bool) -> None:
    """Show what apply would install (presence checks only)."""
    _run(ctx, dry_run=True, mock=False, strict=False, as_json=as_json, audit_file=None)


@cli.group()
def config() -> None:
    """Desired-state configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate workstation.yml."""
    from provisioner.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.spec is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   File: {result.config_path}")
        click.echo(f"   Entries: {len(result.spec.entries)}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
