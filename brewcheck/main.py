"""
brewcheck — CLI entrypoint.

Usage:
    python -m brewcheck.main --help
    python -m brewcheck.main validate Formula/
    python -m brewcheck.main formula show Formula/tool.rb
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from brewcheck import __version__
from brewcheck.core.models import CheckSettings
from brewcheck.core.observability.logging_config import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="brewcheck")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to brewcheck.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """brewcheck — validate package formula records."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    configure_logging(debug=debug, verbose=verbose, quiet=quiet)


def load_cli_settings(ctx: click.Context) -> CheckSettings:
    """Load settings for a command, exiting 1 on a bad config file."""
    from brewcheck.core.config.loader import ConfigError, load_settings

    try:
        return load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--strict", is_flag=True, help="Treat warnings as failures.")
@click.pass_context
def validate(ctx: click.Context, paths: tuple[Path, ...], as_json: bool, strict: bool) -> None:
    """Validate formula records (.rb, .yml, .yaml, .json).

    Directories are searched for record files.  Exits 1 if any record
    is not valid.

    Examples:

        brewcheck validate Formula/

        brewcheck validate Formula/tool.rb records/tool.yml --strict
    """
    from brewcheck.core.use_cases.validate import validate_paths

    settings = load_cli_settings(ctx)
    if strict:
        settings = settings.model_copy(update={"strict": True})

    result = validate_paths(list(paths), settings=settings)

    # No records is a failure in either output mode
    found = bool(result.reports)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if found and result.valid else 1)

    if not found:
        click.secho("⚠️  No formula records found", fg="yellow")
        sys.exit(1)

    quiet = ctx.obj.get("quiet", False)

    for report in result.reports:
        label = report.path
        if report.formula and report.formula.class_name:
            version = f" v{report.formula.version}" if report.formula.version else ""
            label = f"{report.path} ({report.formula.class_name}{version})"

        if report.valid:
            if quiet and not report.issues:
                continue
            click.secho("✅ ", fg="green", nl=False)
        else:
            click.secho("❌ ", fg="red", nl=False)
        click.echo(label)

        for issue in report.errors:
            click.secho("   ✗ ", fg="red", nl=False)
            click.echo(str(issue))
        for issue in report.warnings:
            click.secho("   ⚠ ", fg="yellow", nl=False)
            click.echo(str(issue))

    click.echo()
    color = "green" if result.valid else "red"
    click.secho(
        f"   Result: {result.total - result.failed}/{result.total} valid",
        fg=color,
        bold=True,
    )

    if not result.valid:
        sys.exit(1)


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address.")
@click.option("--port", "-p", default=8000, type=int, help="Port number.")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Start the validation web API."""
    from brewcheck.ui.web.server import create_app, run_server

    settings = load_cli_settings(ctx)
    app = create_app(settings=settings)
    debug = ctx.obj.get("debug", False)

    click.echo()
    click.secho("⚡ brewcheck — Web API", bold=True)
    click.echo(f"   Endpoint: http://{host}:{port}/api/formulas/validate")
    if debug:
        click.secho("   Logging: DEBUG (all output)", fg="yellow")
    click.echo()

    run_server(app, host=host, port=port, debug=debug)


# ── Register sub-command groups from brewcheck/ui/cli/ ──────────

from brewcheck.ui.cli.formula import formula

cli.add_command(formula)


if __name__ == "__main__":
    cli()
