"""Main CLI entry point for graypaper-search."""  # pragma: no cover

from graypaper_search.cli.app import app  # pragma: no cover

# Register commands
from graypaper_search.cli.commands import db, search, serve  # noqa: F401  # pragma: no cover

if __name__ == "__main__":  # pragma: no cover
    app()
