"""Command line interface for graypaper-search."""
