"""graypaper-search HTTP API."""
