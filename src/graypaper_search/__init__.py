"""graypaper-search - knowledge-base search over JAM chat, Graypaper sections and docs."""

__version__ = "0.4.0"
