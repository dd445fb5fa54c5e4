"""Output formatting helpers for CLI commands."""

from __future__ import annotations

import json
import sys
from typing import Any, NoReturn

import rich_click as click


def print_table(headers: list[str], rows: list[list[str]]) -> None:
    """Print rows as left-aligned columns under a header line.

    Column widths fit the widest cell. The last column is not padded.
    """
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row[: len(headers)]):
            widths[i] = max(widths[i], len(cell))

    def fmt(cells: list[str]) -> str:
        padded = list(cells) + [""] * (len(headers) - len(cells))
        parts = [cell.ljust(width) for cell, width in zip(padded[:-1], widths[:-1])]
        return " ".join([*parts, padded[len(headers) - 1]]).rstrip()

    click.echo(fmt(headers))
    click.echo("-" * (sum(widths) + len(widths) - 1))
    for row in rows:
        click.echo(fmt(row))


def output_json(data: Any, indent: int = 2) -> None:
    """Output data as formatted JSON."""
    click.echo(json.dumps(data, indent=indent, sort_keys=True))


def error_exit(message: str, code: int = 1) -> NoReturn:
    """Print error message and exit with code."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)
