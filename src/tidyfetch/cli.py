"""Click-based CLI for tidyfetch.

Thin wrapper around ``Retriever.fetch``. Diagnostics raised during a fetch
are collected and printed to stderr after the result.
"""

from __future__ import annotations

import contextlib
import json
import logging
import math
import sys
import warnings
from datetime import date, datetime
from typing import Any

import click
import pandas as pd
from rich.console import Console
from rich.table import Table

console = Console(stderr=True)

_NOISY_LOGGERS = ("yfinance", "httpx", "urllib3")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_config(ctx: click.Context):
    """Load config lazily, caching on first call."""
    if "config" not in ctx.obj:
        from tidyfetch.core import load_config

        ctx.obj["config"] = load_config(config_path=ctx.obj.get("config_path"))
    return ctx.obj["config"]


def _retriever(ctx: click.Context):
    """Use an injected Retriever if present, else own one for this command."""
    if "retriever" in ctx.obj:
        return contextlib.nullcontext(ctx.obj["retriever"])
    from tidyfetch.dispatch import Retriever

    return Retriever(_load_config(ctx))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _summarize(value: Any) -> str:
    """One-line text for a table cell, nested tables included."""
    from tidyfetch.core import Failure

    if isinstance(value, pd.DataFrame):
        return f"<{len(value)} rows x {value.shape[1]} cols>"
    if isinstance(value, Failure):
        return f"<failed: {value.reason}>"
    if _is_missing(value):
        return ""
    if isinstance(value, float):
        return f"{value:,.4f}".rstrip("0").rstrip(".")
    return str(value)


def _jsonable(value: Any) -> Any:
    """Convert a cell to JSON-safe data, recursing into nested tables."""
    from tidyfetch.core import Failure

    if isinstance(value, pd.DataFrame):
        return [
            {str(k): _jsonable(v) for k, v in row.items()}
            for row in value.to_dict(orient="records")
        ]
    if isinstance(value, Failure):
        return {"error": type(value.error).__name__, "reason": value.reason}
    if _is_missing(value):
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if hasattr(value, "item"):
        return value.item()
    return value


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    envvar="TIDYFETCH_CONFIG",
    default=None,
    help="Path to tidyfetch.yml config file.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output.",
)
@click.version_option(package_name="tidyfetch")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """tidyfetch: tidy financial data from many sources."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose)


# ---------------------------------------------------------------------------
# options
# ---------------------------------------------------------------------------


@cli.command()
def options() -> None:
    """List the valid data categories."""
    from tidyfetch.core import get_options

    for name in get_options():
        click.echo(name)


# ---------------------------------------------------------------------------
# get
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("symbols", nargs=-1, required=True)
@click.option(
    "--get",
    "-g",
    "categories",
    multiple=True,
    default=("stock.prices",),
    show_default=True,
    help="Data category. Repeat for a compound request.",
)
@click.option(
    "--from",
    "start",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Window start (YYYY-MM-DD).",
)
@click.option(
    "--to",
    "end",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Window end (YYYY-MM-DD). Default: today.",
)
@click.option(
    "--keep-failures",
    is_flag=True,
    default=False,
    help="Keep failed symbols in batch output instead of removing them.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "csv", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@click.pass_context
def get(
    ctx: click.Context,
    symbols: tuple[str, ...],
    categories: tuple[str, ...],
    start: datetime | None,
    end: datetime | None,
    keep_failures: bool,
    output_format: str,
) -> None:
    """Retrieve CATEGORY data for one or more SYMBOLS."""
    from tidyfetch.core import ArgumentError, Failure

    fetch_options: dict[str, Any] = {}
    if start is not None:
        fetch_options["from"] = start.date()
    if end is not None:
        fetch_options["to"] = end.date()

    x: str | list[str] = symbols[0] if len(symbols) == 1 else list(symbols)
    get_arg: str | list[str] = categories[0] if len(categories) == 1 else list(categories)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            with _retriever(ctx) as retriever:
                result = retriever.fetch(
                    x, get_arg, complete_cases=not keep_failures, **fetch_options
                )
        except ArgumentError as e:
            raise click.UsageError(str(e)) from e

    for w in caught:
        console.print(f"[yellow]{w.message}[/yellow]")

    if isinstance(result, Failure):
        console.print(f"[red]No data: {result.reason}[/red]")
        ctx.exit(1)

    if output_format == "json":
        _output_json(result)
    elif output_format == "csv":
        _output_csv(result)
    else:
        _output_table(result)


def _output_table(frame: pd.DataFrame) -> None:
    """Render a result as a Rich table."""
    table = Table(title=f"{len(frame)} rows")
    for column in frame.columns:
        numeric = pd.api.types.is_numeric_dtype(frame[column])
        table.add_column(str(column), justify="right" if numeric else "left")
    for row in frame.itertuples(index=False):
        table.add_row(*(_summarize(v) for v in row))
    Console().print(table)


def _output_csv(frame: pd.DataFrame) -> None:
    """Write a result as CSV to stdout; nested cells are summarized."""
    flat = frame.copy()
    for column in flat.columns:
        if flat[column].dtype == object:
            flat[column] = [
                _summarize(v) if isinstance(v, pd.DataFrame) or not isinstance(v, str) else v
                for v in flat[column]
            ]
    click.echo(flat.to_csv(index=False), nl=False)


def _output_json(frame: pd.DataFrame) -> None:
    """Write a result as JSON records to stdout."""
    output = _jsonable(frame)
    click.echo(json.dumps(output, indent=2, default=str))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
