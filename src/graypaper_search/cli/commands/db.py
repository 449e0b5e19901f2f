"""Database management commands."""

import asyncio
from typing import Optional

import typer
from loguru import logger
from rich.console import Console

from graypaper_search import db
from graypaper_search.cli.app import app
from graypaper_search.config import ConfigManager

console = Console()

db_app = typer.Typer(help="Manage the search database")
app.add_typer(db_app, name="db")


async def _init_schema(database_url: str) -> None:
    app_config = ConfigManager().config.model_copy(update={"database_url": database_url})
    try:
        await db.get_or_create_db(app_config, create_tables=True)
    finally:
        await db.shutdown_db()


@db_app.command("init")
def init(
    database_url: Optional[str] = typer.Option(
        None, "--database-url", help="Database URL (defaults to the configured one)"
    ),
) -> None:
    """Create the content tables if they don't exist."""
    url = database_url or ConfigManager().config.database_url
    logger.info("Initializing database schema")
    asyncio.run(_init_schema(url))
    console.print("[green]Database tables ready[/green]")
