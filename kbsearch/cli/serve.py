"""CLI command for running the search API."""

import logging
from typing import Annotated

import typer
import uvicorn

from kbsearch.api.server import create_app

app = typer.Typer()


@app.command()
def serve(
    host: Annotated[
        str,
        typer.Option("--host", help="Interface to bind"),
    ] = "127.0.0.1",
    port: Annotated[
        int,
        typer.Option("--port", "-p", help="Port to listen on"),
    ] = 8000,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
):
    """Run the search API server."""
    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING)
    uvicorn.run(create_app(), host=host, port=port)
