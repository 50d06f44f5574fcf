"""CLI command for indexing article chunks."""

import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from config.settings import get_settings
from kbsearch.factory import build_indexing_job

console = Console()
app = typer.Typer()


@app.command()
def index(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
):
    """Segment, embed and index every knowledge base article."""
    if verbose:
        logging.basicConfig(level=logging.INFO)
    else:
        logging.basicConfig(level=logging.WARNING)

    settings = get_settings()
    try:
        job = build_indexing_job(settings)
    except ValueError as e:
        console.print(f"[bold red]{e}[/bold red]")
        raise typer.Exit(1)

    console.print("[bold]Knowledge Base Indexing[/bold]")
    console.print(f"Database: {settings.kb_database_url}")
    console.print(f"Chunk index: {settings.chroma_path} ({settings.kb_chroma_collection})")
    console.print(f"Chunk size: {settings.kb_min_words}-{settings.kb_max_words} words")
    console.print()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Indexing articles...", total=None)

        def on_document(doc, chunk_count):
            label = f"{chunk_count} chunks" if chunk_count else "skipped"
            progress.update(task, advance=1, description=f"{doc.title[:50]} → {label}")

        try:
            summary = job.run(progress=on_document)
        finally:
            job.document_store.close()
        progress.update(task, description="Indexing articles...", completed=True)

    console.print()
    console.print("[bold green]Indexing complete![/bold green]")
    console.print(f"  Articles processed: {summary.documents_processed}")
    console.print(f"  Chunks indexed: {summary.chunks_indexed}")
    console.print(f"  Articles skipped: {summary.documents_skipped}")
    for skipped in summary.skipped:
        console.print(f"    [yellow]{skipped.document_id}[/yellow]: {skipped.reason}")
    console.print(f"  Deleted articles cleaned up: {len(summary.documents_removed)}")
    for failure in summary.prune_failures:
        console.print(f"    [yellow]{failure.document_id}[/yellow]: old chunks kept ({failure.reason})")
    console.print(f"  Duration: {summary.duration_seconds:.1f}s")
