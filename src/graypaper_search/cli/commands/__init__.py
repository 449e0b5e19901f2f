"""CLI commands for graypaper-search."""

from . import db, search, serve

__all__ = ["db", "search", "serve"]
