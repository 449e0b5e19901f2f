from typing import Optional

import typer

from graypaper_search.config import init_cli_logging


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:  # pragma: no cover
        import graypaper_search
        from graypaper_search.config import ConfigManager

        config = ConfigManager().config
        typer.echo(f"graypaper-search version: {graypaper_search.__version__}")
        typer.echo(f"Database backend: {config.database_backend.value}")
        raise typer.Exit()


app = typer.Typer(name="graypaper-search")


@app.callback()
def app_callback(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """graypaper-search - search the Graypaper knowledge base."""
    if not version and ctx.invoked_subcommand is not None:
        init_cli_logging()
