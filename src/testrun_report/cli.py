"""Command line entry point: replay a recorded event log into a report."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from .config import ReporterOptions
from .errors import ReporterError
from .replay import replay
from .reporter import JsonReporter

app = typer.Typer(help="Build JSON test-run reports from lifecycle events")
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main() -> None:
    """Test-run report tools."""


@app.command("replay")
def replay_command(
    events: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON-lines event log"),
    file_name: Optional[str] = typer.Option(None, "--file-name", help="Report file name"),
    file_path: Optional[Path] = typer.Option(None, "--file-path", help="Report directory"),
    hierarchy: Optional[str] = typer.Option(None, "--hierarchy", help="'true' keeps suite nesting"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Replay EVENTS through the JSON reporter and write the report."""
    _configure_logging(verbose)
    reporter = JsonReporter(ReporterOptions(file_name=file_name, file_path=file_path, hierarchy=hierarchy))
    try:
        path = replay(events, reporter)
    except ReporterError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc
    if reporter.written:
        console.print(f"[green]Report written:[/green] {path}")
    else:
        console.print(f"[yellow]No report written:[/yellow] no 'end' event in {events}")


if __name__ == "__main__":
    app()
