"""
CLI commands for inspecting formula records.

Thin wrappers over ``brewcheck.core.parsers`` and ``brewcheck.core.models``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click
import yaml


@click.group()
def formula() -> None:
    """Formula — show parsed records, list checks."""


@formula.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def show(path: Path, as_json: bool) -> None:
    """Print a formula file as a key-value record."""
    from brewcheck.core.parsers.errors import FormulaLoadError
    from brewcheck.core.parsers.record_loader import load_record

    try:
        record = load_record(path)
    except FormulaLoadError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    data = record.to_dict()
    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), nl=False)


@formula.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def checks(as_json: bool) -> None:
    """List the issue kinds the validator reports."""
    from brewcheck.core.models import KIND_DESCRIPTIONS, default_severity

    rows = [
        {
            "kind": kind.value,
            "severity": default_severity(kind),
            "description": desc,
        }
        for kind, desc in KIND_DESCRIPTIONS.items()
    ]

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    click.secho("🔎 Checks:", fg="cyan", bold=True)
    for row in rows:
        color = "yellow" if row["severity"] == "warning" else "red"
        click.echo(f"   {row['kind']:<24}", nl=False)
        click.secho(f"{row['severity']:<9}", fg=color, nl=False)
        click.echo(row["description"])
    click.echo()
