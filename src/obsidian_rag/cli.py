"""Command line interface for obsidian-rag."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, TypeVar

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from obsidian_rag.config import DEFAULT_CONFIG_PATH, load_config, write_default_config
from obsidian_rag.errors import ObsidianRagError
from obsidian_rag.index.vault import VaultService
from obsidian_rag.models import ChunkOptions
from obsidian_rag.result import Err, Result

T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(help="obsidian-rag - keyword search and chunking over an Obsidian vault")

VaultOption = typer.Option(None, "--vault", help="Vault directory (overrides config)")
ConfigOption = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="JSON config file")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Verbose logging")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _fail(error: ObsidianRagError) -> typer.Exit:
    err_console.print(f"[red]{escape(f'[{error.code}] {error}')}[/red]")
    return typer.Exit(code=1)


def _build_service(vault: Optional[Path], config: Path, verbose: bool) -> VaultService:
    _setup_logging(verbose)
    try:
        settings = load_config(config, vault_path=vault, require_vault=True)
        return VaultService.from_config(settings)
    except ObsidianRagError as exc:
        raise _fail(exc) from exc


def _unwrap(result: Result[T, ObsidianRagError]) -> T:
    if isinstance(result, Err):
        raise _fail(result.error)
    return result.value


@app.command()
def search(
    query: str = typer.Argument(..., help="Text to look for"),
    limit: Optional[int] = typer.Option(None, help="Maximum number of results"),
    vault: Optional[Path] = VaultOption,
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Rank notes containing QUERY in title, body or tags."""
    service = _build_service(vault, config, verbose)
    results = _unwrap(service.search_vault(query, limit))
    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Note")
    table.add_column("Title")
    table.add_column("Matched")
    for result in results:
        table.add_row(
            str(result.score), result.path, result.title, ", ".join(result.matched_fields)
        )
    console.print(table)


@app.command()
def show(
    path: str = typer.Argument(..., help="Vault-relative note path, e.g. projects/alpha.md"),
    vault: Optional[Path] = VaultOption,
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Print one note with its tags and links."""
    service = _build_service(vault, config, verbose)
    note = _unwrap(service.get_note(path))
    if note is None:
        console.print(f"[yellow]Note not found: {path}[/yellow]")
        raise typer.Exit(code=1)

    console.print(f"[bold]{escape(note.title)}[/bold] ({escape(note.path)})")
    console.print(f"Modified: {note.modified_at.isoformat()}")
    if note.tags:
        console.print("Tags: " + ", ".join(f"#{tag}" for tag in note.tags))
    if note.links:
        console.print("Links: " + ", ".join(note.links))
    console.print()
    console.print(note.content, markup=False, highlight=False)


@app.command("list")
def list_notes(
    folder: Optional[str] = typer.Argument(None, help="Only notes under this folder"),
    vault: Optional[Path] = VaultOption,
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """List notes, newest first."""
    service = _build_service(vault, config, verbose)
    notes = _unwrap(service.list_notes(folder))
    if not notes:
        console.print("[yellow]No notes found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Note")
    table.add_column("Title")
    table.add_column("Modified")
    for note in notes:
        table.add_row(note.path, note.title, note.modified_at.strftime("%Y-%m-%d %H:%M"))
    console.print(table)


@app.command()
def tags(
    vault: Optional[Path] = VaultOption,
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Show every tag with the number of notes using it."""
    service = _build_service(vault, config, verbose)
    counts = _unwrap(service.get_tags())
    if not counts:
        console.print("[yellow]No tags found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Tag")
    table.add_column("Notes")
    for tag, count in counts.items():
        table.add_row(f"#{tag}", str(count))
    console.print(table)


@app.command()
def recent(
    limit: int = typer.Option(10, help="Number of notes to show"),
    vault: Optional[Path] = VaultOption,
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Show the most recently modified notes."""
    service = _build_service(vault, config, verbose)
    notes = _unwrap(service.recent_notes(limit))
    for note in notes:
        console.print(f"{note.modified_at.strftime('%Y-%m-%d %H:%M')}  {note.path}  {note.title}")
    if not notes:
        console.print("[yellow]No notes found.[/yellow]")


@app.command()
def chunk(
    path: str = typer.Argument(..., help="Vault-relative note path"),
    max_chunk_size: Optional[int] = typer.Option(None, help="Chunk size in characters"),
    overlap_size: Optional[int] = typer.Option(None, help="Chunk overlap in characters"),
    min_chunk_size: Optional[int] = typer.Option(None, help="Minimum chunk size"),
    no_headers: bool = typer.Option(False, "--no-headers", help="Ignore markdown headings"),
    vault: Optional[Path] = VaultOption,
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Show how a note would be split for embedding."""
    service = _build_service(vault, config, verbose)
    defaults = service.chunker.options
    try:
        options = ChunkOptions(
            max_chunk_size=max_chunk_size or defaults.max_chunk_size,
            overlap_size=defaults.overlap_size if overlap_size is None else overlap_size,
            min_chunk_size=defaults.min_chunk_size if min_chunk_size is None else min_chunk_size,
            respect_headers=defaults.respect_headers and not no_headers,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    chunks = _unwrap(service.chunk_note(path, options))
    if chunks is None:
        console.print(f"[yellow]Note not found: {path}[/yellow]")
        raise typer.Exit(code=1)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#")
    table.add_column("Section")
    table.add_column("Lines")
    table.add_column("Chars")
    table.add_column("Snippet")
    for item in chunks:
        meta = item.metadata
        snippet = item.content.replace("\n", " ")
        table.add_row(
            str(meta.chunk_index),
            meta.header_context or "",
            f"{meta.start_line}-{meta.end_line}",
            str(len(item.content)),
            snippet[:80],
        )
    console.print(table)
    console.print(f"{len(chunks)} chunks")


@app.command("init-config")
def init_config(
    path: Path = typer.Argument(DEFAULT_CONFIG_PATH, help="Where to write the config file"),
) -> None:
    """Write a default config file."""
    if write_default_config(path):
        console.print(f"Created [bold]{path}[/bold]")
    else:
        console.print(f"[yellow]{path} already exists, left unchanged.[/yellow]")


if __name__ == "__main__":  # pragma: no cover
    app()
