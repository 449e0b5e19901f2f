"""Run a search from the command line."""

import asyncio
import json
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from graypaper_search import db
from graypaper_search.cli.app import app
from graypaper_search.config import ConfigManager, GraypaperSearchConfig
from graypaper_search.repository.domains import DOMAINS, UnknownDomainError
from graypaper_search.repository.embedding_provider_factory import create_embedding_provider
from graypaper_search.repository.graypaper_repository import GraypaperRepository
from graypaper_search.repository.search_repository import SearchRepository
from graypaper_search.schemas.search import SearchMode, SearchRequest, SearchResultPage
from graypaper_search.services.search_service import SearchService
from graypaper_search.services.similarity_fallback import QueryEmbedder

console = Console()

# Columns shown in the table view, per domain (JSON keys)
TABLE_COLUMNS = {
    "messages": ("timestamp", "sender", "content"),
    "graypaper": ("id", "title", "text"),
    "pages": ("site", "title", "url"),
    "discords": ("timestamp", "sender", "content"),
}


async def run_search(
    app_config: GraypaperSearchConfig, domain: str, request: SearchRequest
) -> SearchResultPage:
    """Build the service stack for one query and run it."""
    try:
        _, session_maker = await db.get_or_create_db(app_config)
        service = SearchService(
            search_repository=SearchRepository(session_maker),
            graypaper_repository=GraypaperRepository(session_maker),
            embedder=QueryEmbedder(
                create_embedding_provider(app_config),
                timeout=app_config.semantic_embedding_timeout,
            ),
            distance_threshold=app_config.semantic_distance_threshold,
        )
        return await service.search(domain, request)
    finally:
        await db.shutdown_db()


def _truncate(value, width: int = 80) -> str:
    text = "" if value is None else str(value).replace("\n", " ")
    return text if len(text) <= width else text[: width - 1] + "…"


def render_table(domain: str, page: SearchResultPage) -> Table:
    payload = page.to_response()
    table = Table(
        title=f"{domain}: page {payload['page']} ({len(payload['results'])} of {payload['total']})"
    )
    table.add_column("score", justify="right", style="cyan")
    columns = TABLE_COLUMNS[domain]
    for column in columns:
        table.add_column(column)
    for row in payload["results"]:
        score = row.get("score")
        table.add_row(
            f"{score:.3f}" if score is not None else "",
            *[_truncate(row.get(column)) for column in columns],
        )
    return table


@app.command()
def search(
    domain: str = typer.Argument(..., help=f"Content domain: {', '.join(DOMAINS)}"),
    query: str = typer.Argument(..., help="Search text, may include from:/since_gp:/before:/after:"),
    mode: SearchMode = typer.Option(SearchMode.STRICT, "--mode", "-m", help="Search mode"),
    page: int = typer.Option(1, "--page", help="1-based page number"),
    page_size: int = typer.Option(10, "--page-size", help="Results per page"),
    sender: Optional[str] = typer.Option(None, "--from", help="Sender prefix filter"),
    since_gp: Optional[str] = typer.Option(None, "--since-gp", help="Graypaper version"),
    before: Optional[str] = typer.Option(None, "--before", help="Upper date bound"),
    after: Optional[str] = typer.Option(None, "--after", help="Lower date bound"),
    channel: Optional[str] = typer.Option(None, "--channel", help="Channel or room id"),
    site: Optional[str] = typer.Option(None, "--site", help="Site filter for pages"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON response"),
) -> None:
    """Search one content domain and print the ranked results."""
    try:
        request = SearchRequest(
            q=query,
            page=page,
            page_size=page_size,
            search_mode=mode,
            filter_from=sender,
            filter_since_gp=since_gp,
            filter_before=before,
            filter_after=after,
            channel_id=channel,
            site=site,
        )
    except ValidationError as exc:
        console.print(f"[red]Invalid search parameters:[/red] {exc.error_count()} error(s)")
        for error in exc.errors():
            console.print(f"  {'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}")
        raise typer.Exit(1)

    try:
        result = asyncio.run(run_search(ConfigManager().config, domain, request))
    except UnknownDomainError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(result.to_response(), indent=2))
        return

    if result.error:
        console.print(f"[yellow]{result.error}[/yellow]")
    console.print(render_table(domain, result))
