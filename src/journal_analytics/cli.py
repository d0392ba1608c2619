"""CLI entry point for the journal analytics engine."""

from __future__ import annotations

import csv
import json
from datetime import datetime
from pathlib import Path
from typing import Any

import click

from .core.errors import AnalyticsError, InputError


def read_trade_file(path: str | Path) -> list[dict[str, Any]]:
    """Read raw trade rows from a JSON or CSV file.

    JSON may be an array of objects or an object with a ``trades``
    array.  CSV blank cells are read as missing values.  Anything else
    raises :class:`InputError`.
    """
    path = Path(path)
    if not path.is_file():
        raise InputError(f"Trade file not found: {path}")

    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise InputError(f"Cannot read {path}: {exc}") from exc

    if path.suffix.lower() == ".csv":
        reader = csv.DictReader(text.splitlines())
        return [
            {k: (v if v != "" else None) for k, v in row.items() if k is not None}
            for row in reader
        ]

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InputError(f"Invalid JSON in {path}: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("trades")
    if not isinstance(data, list):
        raise InputError(f"{path} must contain a JSON array of trades")
    return data


@click.group()
def main() -> None:
    """Trading journal behavior and risk analytics."""


@main.command()
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--as-of", default=None, help="Report instant (ISO-8601); defaults to now")
@click.option("--account-size", default=None, type=float, help="Account size for drawdown % and sizing")
@click.option("--entry", "reference_entry", default=None, type=float, help="Reference entry price")
@click.option("--stop", "reference_stop", default=None, type=float, help="Reference stop price")
@click.option("--config", default=None, help="Config file path (TOML)")
@click.option(
    "--log-format", type=click.Choice(["json", "console"]), default=None, help="Log renderer"
)
@click.option("--summary", "summary_only", is_flag=True, help="Print display summary only")
def analyze(
    path: str,
    as_of: str | None,
    account_size: float | None,
    reference_entry: float | None,
    reference_stop: float | None,
    config: str | None,
    log_format: str | None,
    summary_only: bool,
) -> None:
    """Analyze a JSON or CSV trade file and print the report as JSON."""
    from .analysis.reporter import AnalyticsEngine
    from .core.config import load_settings
    from .observability import setup_logging

    try:
        settings = load_settings(config_path=config)
        setup_logging(
            level=settings.observability.log_level,
            format=log_format or settings.observability.log_format,
        )
        rows = read_trade_file(path)
        as_of_dt = _parse_as_of(as_of)
        report = AnalyticsEngine(settings).analyze(
            rows,
            as_of=as_of_dt,
            account_size=account_size,
            reference_entry=reference_entry,
            reference_stop=reference_stop,
        )
    except AnalyticsError as exc:
        raise click.ClickException(str(exc)) from exc

    payload = report.summary() if summary_only else report.to_dict()
    click.echo(json.dumps(payload, indent=2, allow_nan=False))


def _parse_as_of(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise InputError(f"Invalid --as-of timestamp: {value!r}") from exc
