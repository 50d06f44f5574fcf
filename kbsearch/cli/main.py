"""kbsearch CLI entry point."""

import typer

from kbsearch.cli.index import index
from kbsearch.cli.search import search
from kbsearch.cli.serve import serve

app = typer.Typer(
    name="kbsearch",
    help="Knowledge base chunk indexing and semantic search with deep links to the matching passage.",
)

app.command(name="index")(index)
app.command(name="search")(search)
app.command(name="serve")(serve)


if __name__ == "__main__":
    app()
