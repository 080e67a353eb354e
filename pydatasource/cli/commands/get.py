"""Get command: resolve a datasource and print its decoded value."""

from typing import List, Optional

import typer

from pydatasource.cli.utils import sources
from pydatasource.exceptions import DatasourceError

app = typer.Typer(help="Fetch and decode a datasource")


@app.callback(invoke_without_command=True)
def main(
    target: str = typer.Argument(..., help="Alias or URL of the datasource"),
    datasource: Optional[List[str]] = sources.DatasourceOption,
    header: Optional[List[str]] = sources.HeaderOption,
    config: Optional[str] = sources.ConfigOption,
):
    """Fetch TARGET and print it decoded by content type."""
    try:
        with sources.open_datasources(datasource, header, config) as ds:
            value = ds.datasource(target)
    except DatasourceError as e:
        sources.console.print(f"[bold red]Error:[/bold red] {str(e)}")
        raise typer.Exit(1)
    sources.print_value(value)
