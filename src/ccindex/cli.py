"""Command line interface for ccindex."""

from __future__ import annotations

import logging
import shutil
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from ccindex.clearcase.repository import ClearCaseRepository
from ccindex.clearcase.vobs import VobRegistry
from ccindex.config import AppConfig
from ccindex.errors import ClearCaseError
from ccindex.repository import detect_kind
from ccindex.web.app import app as web_app


console = Console()
app = typer.Typer(help="ccindex - ClearCase history, annotations and revisions for indexers")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _open(repo: Optional[Path], cleartool: Optional[str], verbose: bool, **kwargs) -> ClearCaseRepository:
    config = AppConfig(cleartool=cleartool, verbose=verbose, **kwargs)
    directory = config.resolve_repo_path(repo)
    if not directory.is_dir():
        raise typer.BadParameter(f"Repository not found: {directory}")
    handle = config.make_handle(directory)
    return ClearCaseRepository(
        handle,
        registry=VobRegistry(handle.command),
        history_events=config.history_events,
        annotate_malformed=config.annotate_malformed,
    )


def _fail(exc: ClearCaseError) -> NoReturn:
    console.print(f"[red]{exc}[/red]")
    raise typer.Exit(code=1)


@app.command()
def detect(
    paths: List[Path] = typer.Argument(..., help="Paths to check.", resolve_path=True),
    cleartool: Optional[str] = typer.Option(None, "--cleartool", help="cleartool executable"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Report which paths belong to a ClearCase view."""
    _setup_logging(verbose)
    config = AppConfig(cleartool=cleartool, verbose=verbose)
    registry = VobRegistry(config.make_resolver())

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Path")
    table.add_column("Repository", no_wrap=True)
    for path in paths:
        kind = detect_kind(path, config, registry=registry)
        table.add_row(str(path), kind.value if kind else "-")
    console.print(table)


@app.command()
def vobs(
    cleartool: Optional[str] = typer.Option(None, "--cleartool", help="cleartool executable"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """List the VOB roots known to the client."""
    _setup_logging(verbose)
    registry = VobRegistry(AppConfig(cleartool=cleartool).make_resolver())
    found = sorted(registry.get_all_vobs())
    if not found:
        console.print("[yellow]No VOBs found.[/yellow]")
        return
    for vob in found:
        console.print(vob)


@app.command()
def history(
    path: Path = typer.Argument(..., help="File or directory.", resolve_path=True),
    repo: Path = typer.Option(None, "--repo", help="Repository root"),
    cleartool: Optional[str] = typer.Option(None, "--cleartool", help="cleartool executable"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show the version history of a file or directory."""
    _setup_logging(verbose)
    repository = _open(repo, cleartool, verbose)
    try:
        entries = repository.get_history(path)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except ClearCaseError as exc:
        _fail(exc)

    if not len(entries):
        console.print("[yellow]No history found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Date")
    table.add_column("Author")
    table.add_column("Revision")
    table.add_column("Message")
    for entry in entries:
        table.add_row(
            entry.date.strftime("%Y-%m-%d %H:%M:%S"),
            entry.author,
            entry.revision,
            entry.message.replace("\n", " ")[:180],
        )
    console.print(table)


@app.command()
def annotate(
    file: Path = typer.Argument(..., help="File to annotate.", resolve_path=True),
    rev: Optional[str] = typer.Option(None, "--rev", help="Version to annotate"),
    repo: Path = typer.Option(None, "--repo", help="Repository root"),
    strict: bool = typer.Option(False, "--strict", help="Fail on malformed output lines"),
    cleartool: Optional[str] = typer.Option(None, "--cleartool", help="cleartool executable"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show who last changed each line of a file."""
    _setup_logging(verbose)
    repository = _open(
        repo, cleartool, verbose, annotate_malformed="fail" if strict else "skip"
    )
    try:
        annotation = repository.annotate(file, rev)
    except ClearCaseError as exc:
        _fail(exc)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Line")
    table.add_column("Author")
    table.add_column("Revision")
    for number, line in enumerate(annotation.lines, start=1):
        table.add_row(str(number), line.author, line.revision)
    console.print(table)


@app.command()
def get(
    file: Path = typer.Argument(..., help="File to retrieve.", resolve_path=True),
    revision: str = typer.Argument(..., help="Version, e.g. /main/3"),
    repo: Path = typer.Option(None, "--repo", help="Repository root"),
    output: Path = typer.Option(None, "--output", "-o", help="Write to this file instead of stdout"),
    cleartool: Optional[str] = typer.Option(None, "--cleartool", help="cleartool executable"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Print the content of a file at a given version."""
    _setup_logging(verbose)
    repository = _open(repo, cleartool, verbose)
    try:
        blob = repository.get_revision(file, revision)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if blob is None:
        console.print(f"[red]Could not get {file}@@{revision}[/red]")
        raise typer.Exit(code=1)

    with blob:
        if output is not None:
            with output.open("wb") as handle:
                shutil.copyfileobj(blob, handle)
            console.print(f"Wrote {file.name}@@{revision} to [bold]{output}[/bold]")
        else:
            shutil.copyfileobj(blob, sys.stdout.buffer)
            sys.stdout.buffer.flush()


@app.command()
def update(
    repo: Path = typer.Option(None, "--repo", help="Repository root"),
    cleartool: Optional[str] = typer.Option(None, "--cleartool", help="cleartool executable"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Refresh a snapshot view (dynamic views are left alone)."""
    _setup_logging(verbose)
    repository = _open(repo, cleartool, verbose)
    try:
        ok = repository.update()
    except ClearCaseError as exc:
        _fail(exc)

    if not ok:
        console.print("[yellow]View update did not fully succeed.[/yellow]")
        raise typer.Exit(code=1)
    console.print(f"View at [bold]{repository.directory}[/bold] is up to date.")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    repo: Path = typer.Option(None, "--repo", help="Default repository root"),
) -> None:
    """Start the HTTP API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    config = AppConfig()
    resolved_repo = config.resolve_repo_path(repo)
    if not resolved_repo.is_dir():
        console.print("[yellow]Warning: repository not found, requests must name one.[/yellow]")
    web_app.state.default_repo = resolved_repo

    console.print(f"Starting web interface on http://{host}:{port} (repository: {resolved_repo})")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
