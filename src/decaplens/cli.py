# src/decaplens/cli.py
"""
decaplens Command Line Interface (CLI).

This module implements the terminal interface using `typer` and `rich`. It
reads a persisted project history (see :mod:`decaplens.repository.store`),
replays it through the decapsulation tracker and renders the result.

Usage
-----
    # Report decapsulated fields for the history stored in ./.decaplens
    $ decaplens report

    # Stop the replay after transaction "42" and emit JSON
    $ decaplens report --until 42 --json

    # List the stored transactions
    $ decaplens log --store path/to/.decaplens
"""

from __future__ import annotations

import json
import traceback
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from decaplens.analysis.tracker import replay
from decaplens.core.errors import DecaplensError, RepositoryNotFoundError
from decaplens.report import render_console, to_payload
from decaplens.repository.store import PersistentRepository, Repository

# Make `.env` overrides (DECAPLENS_STORE_DIR, LOG_LEVEL) visible to settings.
load_dotenv()

app = typer.Typer(
    help="decaplens: find fields that gained public accessors over a project's history.",
    rich_markup_mode="markdown",
)
console = Console()

StoreOption = Annotated[
    Path | None,
    typer.Option(
        "--store",
        "-s",
        file_okay=False,
        help="Directory holding the persisted history (default: DECAPLENS_STORE_DIR).",
    ),
]


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _load_repository(store: Path | None, verbose: bool = False) -> Repository:
    """Helper: Load the persisted history, exiting with code 1 on failure."""
    try:
        return PersistentRepository(store).load()
    except RepositoryNotFoundError as e:
        console.print(f"[bold red]Repository was not persisted![/bold red] {e}")
        raise typer.Exit(code=1) from e
    except DecaplensError as e:
        console.print(f"[bold red]Invalid history:[/bold red] {e}")
        if verbose:
            traceback.print_exc()
        raise typer.Exit(code=1) from e


def _format_date(millis: int) -> str:
    return datetime.fromtimestamp(millis / 1000, tz=UTC).strftime("%Y-%m-%d %H:%M:%S")


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def report(
    store: StoreOption = None,
    until: Annotated[
        str | None,
        typer.Option(
            "--until",
            "-u",
            help="Stop the replay right after the transaction with this id.",
        ),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the result as JSON instead of text."),
    ] = False,
    include_all: Annotated[
        bool,
        typer.Option("--all", "-a", help="Also list tracked fields without accessors."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show full error tracebacks for debugging."),
    ] = False,
) -> None:
    """
    Replay the persisted history and report decapsulated fields.

    A field is decapsulated when a getter, setter or `is` accessor for it was
    added in a transaction after the one that added the field.
    """
    repository = _load_repository(store, verbose)
    if until is not None and all(t.id != until for t in repository):
        console.print(
            f"[bold red]Unknown transaction id:[/bold red] {until!r} is not in the history"
        )
        raise typer.Exit(code=1)

    try:
        tracker = replay(repository, until=until)
    except DecaplensError as e:
        console.print(f"\n[bold red]Analysis Error:[/bold red] {e}")
        if verbose:
            traceback.print_exc()
        raise typer.Exit(code=1) from e

    records = dict(tracker.records)
    if as_json:
        typer.echo(json.dumps(to_payload(records, include_all=include_all), indent=2))
        return

    console.print(
        Panel.fit(
            f"[bold cyan]decaplens[/bold cyan]\n"
            f"Replayed [u]{tracker.transactions_processed}[/u] of {len(repository)} transaction(s)",
            border_style="cyan",
        )
    )
    render_console(records, console, include_all=include_all)


@app.command()  # type: ignore[misc]
def log(store: StoreOption = None) -> None:
    """List the transactions of the persisted history in commit order."""
    repository = _load_repository(store)

    table = Table(title="History", header_style="bold cyan")
    table.add_column("Id")
    table.add_column("Date (UTC)")
    table.add_column("Author")
    table.add_column("Added", justify="right")
    table.add_column("Removed", justify="right")
    table.add_column("Edited", justify="right")

    for transaction in repository:
        counts = transaction.edit_counts()
        table.add_row(
            transaction.id,
            _format_date(transaction.date),
            transaction.author,
            str(counts["added"]),
            str(counts["removed"]),
            str(counts["edited"]),
        )
    console.print(table)


if __name__ == "__main__":
    app()
