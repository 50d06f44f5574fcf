"""CLI command for searching the knowledge base."""

import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from config.settings import get_settings
from kbsearch.errors import QueryValidationError, RetrievalError
from kbsearch.factory import build_search_engine
from kbsearch.retrieval.fragment import deep_link

console = Console()
app = typer.Typer()


@app.command()
def search(
    query: Annotated[
        str,
        typer.Argument(help="Free-text search query"),
    ],
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Maximum number of articles"),
    ] = 10,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
):
    """Search articles and print the best-matching passage of each."""
    if verbose:
        logging.basicConfig(level=logging.INFO)
    else:
        logging.basicConfig(level=logging.WARNING)

    settings = get_settings()
    try:
        engine = build_search_engine(settings)
    except ValueError as e:
        console.print(f"[bold red]{e}[/bold red]")
        raise typer.Exit(1)

    try:
        with console.status("[bold green]Searching..."):
            results = engine.retrieve(query, limit)
    except QueryValidationError as e:
        console.print(f"[bold red]{e}[/bold red]")
        raise typer.Exit(2)
    except RetrievalError as e:
        console.print(f"[bold red]Search failed:[/bold red] {e.details}")
        raise typer.Exit(1)
    finally:
        engine.document_store.close()

    if not results:
        console.print("No matching articles.")
        return

    table = Table(title=f"Results for {query!r}")
    table.add_column("Score", justify="right", style="cyan")
    table.add_column("Article", style="bold")
    table.add_column("Excerpt")
    table.add_column("Link", style="dim")
    for result in results:
        table.add_row(
            f"{result.similarity:.2f}",
            result.title,
            result.matching_excerpt,
            deep_link(result.mdx_path, result.fragment),
        )
    console.print(table)
