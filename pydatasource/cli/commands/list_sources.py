"""List command: show the defined datasources."""

from typing import List, Optional

import typer
from rich.table import Table

from pydatasource.cli.utils import sources
from pydatasource.config import build_sources
from pydatasource.exceptions import DatasourceError

app = typer.Typer(help="List defined datasources")


@app.callback(invoke_without_command=True)
def main(
    datasource: Optional[List[str]] = sources.DatasourceOption,
    header: Optional[List[str]] = sources.HeaderOption,
    config: Optional[str] = sources.ConfigOption,
):
    """List every alias with its URL and header names."""
    try:
        defs = build_sources(datasource or [], header or [], config_path=config)
    except DatasourceError as e:
        sources.console.print(f"[bold red]Error:[/bold red] {str(e)}")
        raise typer.Exit(1)

    if not defs:
        sources.console.print("No datasources defined")
        return

    table = Table("Alias", "URL", "Headers")
    for d in sorted(defs, key=lambda d: d.alias):
        table.add_row(d.alias, d.uri, ", ".join(d.headers))
    sources.console.print(table)
