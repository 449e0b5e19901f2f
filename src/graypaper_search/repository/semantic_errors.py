"""Typed errors for semantic search configuration and dependency failures."""


class SemanticDependenciesMissingError(RuntimeError):
    """Raised when a semantic search dependency is unavailable or misconfigured."""
