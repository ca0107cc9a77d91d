"""
Command-line interface for docqa.

Commands:
    ask      - Index text files and answer a question about them
    split    - Show how a file would be chunked
    serve    - Start the FastAPI server
    check    - Check that the generation endpoint responds
    version  - Show version information
"""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="docqa",
    help="Question answering grounded in your own documents",
    add_completion=False,
)
console = Console()


def _read_document(path: Path) -> str:
    """Read a text file, replacing undecodable bytes."""
    return path.read_text(encoding="utf-8", errors="replace")


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to ask"),
    documents: list[Path] = typer.Option(
        ...,
        "--doc",
        "-d",
        exists=True,
        dir_okay=False,
        readable=True,
        help="Text file to index (repeat for several files)",
    ),
    top_k: int = typer.Option(None, "--top-k", "-k", min=1, help="Chunks used for the answer"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show retrieved chunks"),
) -> None:
    """Index the given files, then answer a question about them."""
    from docqa.config import settings
    from docqa.logging_config import configure_logging
    from docqa.pipeline.models import Document
    from docqa.retrieval.resources import get_registry

    configure_logging("DEBUG" if verbose else settings.log_level)
    registry = get_registry()

    async def _run():
        entries = await registry.upload_many(
            Document.create(name=path.name, raw_content=_read_document(path))
            for path in documents
        )
        result = await registry.orchestrator.answer(question, top_k)
        return entries, result

    console.print(f"[blue]Question:[/blue] {question}\n")

    with console.status("[bold green]Indexing and answering..."):
        entries, result = asyncio.run(_run())

    for entry in entries:
        if entry.state == "indexed":
            console.print(f"[green]  ✓ {entry.document.name}: {entry.chunk_count} chunks[/green]")
        else:
            console.print(f"[red]  ✗ {entry.document.name}: {entry.error}[/red]")
    console.print()

    console.print("[green]Answer:[/green]")
    console.print(result.message, markup=False)
    console.print()

    if verbose and result.retrieved:
        table = Table(title="Retrieved chunks")
        table.add_column("Rank", style="cyan")
        table.add_column("Document", style="green")
        table.add_column("Chunk", style="green")
        table.add_column("Similarity", style="magenta")

        for rank, (chunk, score) in enumerate(result.retrieved, start=1):
            table.add_row(str(rank), chunk.document_name, str(chunk.sequence_index), f"{score:.3f}")

        console.print(table)

    if result.status != "answered":
        raise typer.Exit(1)


@app.command()
def split(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Text file to chunk"),
    chunk_size: int = typer.Option(None, help="Window size in characters"),
    overlap: int = typer.Option(None, help="Overlap in characters"),
) -> None:
    """Show how a file would be chunked, without calling any service."""
    from docqa.config import settings
    from docqa.retrieval.chunker import split_text

    size = chunk_size or settings.chunk_size
    chunk_overlap = overlap if overlap is not None else settings.chunk_overlap

    try:
        chunks = split_text(_read_document(path), size, chunk_overlap)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"{path.name}: {len(chunks)} chunks")
    table.add_column("#", style="cyan")
    table.add_column("Length", style="magenta")
    table.add_column("Preview", style="green")

    for i, chunk in enumerate(chunks):
        preview = chunk[:60].replace("\n", " ")
        table.add_row(str(i), str(len(chunk)), preview)

    console.print(table)


@app.command()
def serve(
    host: str = typer.Option(None, help="Host to bind"),
    port: int = typer.Option(None, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
) -> None:
    """Start the FastAPI server."""
    import uvicorn

    from docqa.config import settings

    host = host or settings.api_host
    port = port or settings.api_port

    console.print(f"[green]Starting docqa server on {host}:{port}[/green]")

    uvicorn.run(
        "docqa.api.main:app",
        host=host,
        port=port,
        reload=reload,
        workers=1,  # The index lives in process memory
    )


@app.command()
def check(
    timeout: float = typer.Option(30.0, help="Health check timeout in seconds"),
) -> None:
    """Check that the generation endpoint responds."""
    from docqa.llm.chat_completions import ChatCompletionsLLM

    client = ChatCompletionsLLM()
    healthy, message = asyncio.run(client.health_check(timeout=timeout))

    if healthy:
        console.print(f"[green]✓ {message}[/green]")
    else:
        console.print(f"[red]✗ {message}[/red]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from docqa import __version__

    console.print(f"docqa v{__version__}")


if __name__ == "__main__":
    app()
