"""Run the HTTP API."""

from typing import Optional

import typer
import uvicorn
from loguru import logger

from graypaper_search.cli.app import app
from graypaper_search.config import ConfigManager


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:  # pragma: no cover
    """Start the search API server."""
    config = ConfigManager().config
    host = host or config.api_host
    port = port or config.api_port
    logger.info(f"Starting API on {host}:{port}")
    uvicorn.run(
        "graypaper_search.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=config.log_level.lower(),
    )
