"""Include command: print a datasource body without decoding it."""

from typing import List, Optional

import typer

from pydatasource.cli.utils import sources
from pydatasource.exceptions import DatasourceError

app = typer.Typer(help="Fetch a datasource as raw text")


@app.callback(invoke_without_command=True)
def main(
    target: str = typer.Argument(..., help="Alias or URL of the datasource"),
    datasource: Optional[List[str]] = sources.DatasourceOption,
    header: Optional[List[str]] = sources.HeaderOption,
    config: Optional[str] = sources.ConfigOption,
):
    """Fetch TARGET and print the body as-is."""
    try:
        with sources.open_datasources(datasource, header, config) as ds:
            text = ds.include(target)
    except DatasourceError as e:
        sources.console.print(f"[bold red]Error:[/bold red] {str(e)}")
        raise typer.Exit(1)
    typer.echo(text, nl=False)
