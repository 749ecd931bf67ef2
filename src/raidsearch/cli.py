"""Command-line interface for the RAiD search project."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Optional

import httpx
import structlog
import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from raidsearch.errors import CriteriaValidationError
from raidsearch.log import configure_logging
from raidsearch.models import SearchCriteria
from raidsearch.services import (
    ArtifactURLSet,
    BatchDownloader,
    DirectorySink,
    DownloadReport,
    EndpointOutcome,
    Operator,
    RecordView,
    ResultProjector,
    build_orchestrator,
    render_results_html,
)
from raidsearch.services.session import SEARCH_ERROR_MESSAGE
from raidsearch.settings import Settings, get_settings

console = Console()
app = typer.Typer(help="RAiD search – federated catalogue search")
logger = structlog.get_logger(__name__)

_ANCHOR = re.compile(r"</?a\b[^>]*>")
_MARK = re.compile(r"(<mark>.*?</mark>)")


@app.callback()
def main() -> None:
    """Configure logging before any command runs."""
    configure_logging(get_settings().log_level)


def _fragment_text(fragment: str) -> Text:
    """Turn an HTML fragment into Rich text, showing highlights in reverse video."""
    text = Text()
    for piece in _MARK.split(_ANCHOR.sub("", fragment)):
        if piece.startswith("<mark>") and piece.endswith("</mark>"):
            text.append(piece[len("<mark>") : -len("</mark>")], style="reverse")
        elif piece:
            text.append(piece)
    return text


def _print_views(views: list[RecordView]) -> None:
    table = Table(title=f"RAiD Search Results ({len(views)})", show_lines=True)
    table.add_column("Title", overflow="fold")
    table.add_column("RAiD")
    table.add_column("Creators", overflow="fold")
    table.add_column("Related Identifiers", overflow="fold")
    table.add_column("Organisations", overflow="fold")
    table.add_column("Description", overflow="fold")
    for view in views:
        table.add_row(
            _fragment_text(view.title_line),
            _fragment_text(view.identifier_link),
            _fragment_text(view.creator_links),
            _fragment_text(view.related_links),
            _fragment_text(view.organisation_links),
            _fragment_text(view.description),
        )
    console.print(table)


def _print_failures(outcomes: list[EndpointOutcome]) -> None:
    for outcome in outcomes:
        if not outcome.ok:
            console.print(f"[yellow]{outcome.endpoint} failed:[/yellow] {outcome.error}")


def _print_download_report(report: DownloadReport) -> None:
    console.print(f"[green]Saved {len(report.saved)} artifact(s)[/green]")
    for failure in report.failed:
        console.print(f"[red]{failure.url}[/red] – {failure.reason}")


def _build_downloader(
    client: httpx.AsyncClient, settings: Settings, output: Path
) -> BatchDownloader:
    return BatchDownloader(
        client,
        DirectorySink(output),
        pacing_delay=settings.pacing_delay,
        cleanup_delay=settings.cleanup_delay,
        timeout=settings.request_timeout * 2,
    )


@app.command()
def search(
    title: str = typer.Option("", "--title", help="Substring matched in titles"),
    description: str = typer.Option("", "--description", help="Substring matched in descriptions"),
    creator: str = typer.Option("", "--creator", help="Exact creator name"),
    related: str = typer.Option("", "--related", help="Exact related identifier"),
    organisation: str = typer.Option("", "--organisation", help="Exact organisation identifier"),
    operator: str = typer.Option("AND", "--operator", "-o", help="Combine terms with AND or OR"),
    download: Optional[Path] = typer.Option(
        None, "--download", help="Download every result's artifact into this directory"
    ),
    html: Optional[Path] = typer.Option(None, "--html", help="Write the rendered results as HTML"),
) -> None:
    """Search the RAiD catalogue across every configured endpoint."""

    criteria = SearchCriteria(
        title=title,
        description=description,
        creator=creator,
        related=related,
        organisation=organisation,
    )
    try:
        op = Operator.parse(operator)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    async def collect(
        client: httpx.AsyncClient, settings: Settings, artifacts: ArtifactURLSet
    ) -> list[RecordView]:
        outcomes = await build_orchestrator(client, settings).search_detailed(criteria, op)
        _print_failures(outcomes)
        records = [record for outcome in outcomes for record in outcome.records]
        views = ResultProjector(settings, artifacts).project(records, criteria)
        if html:
            html.parent.mkdir(parents=True, exist_ok=True)
            html.write_text(render_results_html(views), encoding="utf-8")
            console.print(f"[green]Wrote[/green] {html}")
        return views

    async def runner() -> None:
        settings = get_settings()
        artifacts = ArtifactURLSet()
        async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
            try:
                views = await collect(client, settings, artifacts)
            except CriteriaValidationError as exc:
                console.print("[red]Please enter at least one search term.[/red]")
                raise typer.Exit(code=1) from exc
            except Exception as exc:  # noqa: BLE001 - reported as one generic message
                logger.exception("cli.search_failed")
                console.print(f"[red]{SEARCH_ERROR_MESSAGE}[/red]")
                raise typer.Exit(code=1) from exc
            if not views:
                console.print("[yellow]No results found.")
                return
            _print_views(views)
            if download:
                downloader = _build_downloader(client, settings, download)
                report = await downloader.download(artifacts.snapshot())
                _print_download_report(report)

    asyncio.run(runner())


@app.command("download")
def download_urls(
    urls: list[str] = typer.Argument(..., help="Artifact URLs to download"),
    output: Optional[Path] = typer.Option(None, "--output", help="Target directory"),
) -> None:
    """Download artifact URLs sequentially with rate-limit pacing."""

    async def runner() -> None:
        settings = get_settings()
        target = output or settings.download_dir
        async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
            downloader = _build_downloader(client, settings, target)
            report = await downloader.download(ArtifactURLSet(urls).snapshot())
        _print_download_report(report)

    asyncio.run(runner())


@app.command()
def config(
    json_output: bool = typer.Option(False, "--json", help="Output settings as JSON"),
) -> None:
    """Display the resolved settings."""
    settings = get_settings()
    if json_output:
        typer.echo(settings.model_dump_json(indent=2))
        return
    table = Table(title="RAiD Search Settings")
    table.add_column("Key")
    table.add_column("Value", overflow="fold")
    for key, value in settings.model_dump().items():
        table.add_row(key, str(value))
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
) -> None:
    """Launch the search web page."""
    import uvicorn

    uvicorn.run(
        "raidsearch.web.app:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )
