#!/usr/bin/env python
"""Command line interface for pydatasource."""

import logging

import typer
from rich.logging import RichHandler

from pydatasource.cli.commands import get, include, list_sources

app = typer.Typer(help="Resolve template datasources from the command line")

app.add_typer(get.app, name="get")
app.add_typer(include.app, name="include")
app.add_typer(list_sources.app, name="list")


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logs"),
):
    """Fetch, decode and inspect datasources."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True)],
    )


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
