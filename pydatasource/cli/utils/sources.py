"""Shared helpers for the pydatasource CLI commands."""

import json
from typing import Any, List, Optional

import typer
from rich.console import Console

from pydatasource import Datasources, RenderContext, ResolverOptions
from pydatasource.config import build_sources

console = Console()

DatasourceOption = typer.Option(
    None, "--datasource", "-d", help="Datasource as alias=url (repeatable)"
)
HeaderOption = typer.Option(
    None, "--header", "-H", help="Request header as 'alias=Name: value' (repeatable)"
)
ConfigOption = typer.Option(None, "--config", "-c", help="JSON file of datasources")


def open_datasources(
    datasource: Optional[List[str]],
    header: Optional[List[str]],
    config: Optional[str],
) -> Datasources:
    """Build a render-scoped registry from command line arguments."""
    sources = build_sources(datasource or [], header or [], config_path=config)
    return Datasources(
        RenderContext(), sources, options=ResolverOptions.from_env()
    )


def print_value(value: Any) -> None:
    """Structured values as JSON, text verbatim, bytes raw."""
    if isinstance(value, (dict, list)):
        console.print_json(json.dumps(value, default=str))
    elif isinstance(value, bytes):
        typer.echo(value, nl=False)
    else:
        typer.echo(value)
