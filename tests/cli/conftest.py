import pytest


@pytest.fixture(autouse=True)
def cli_env(monkeypatch, tmp_path):
    """Keep CLI runs in the test environment, away from the user's data directory."""
    monkeypatch.setenv("GRAYPAPER_SEARCH_ENV", "test")
    monkeypatch.setenv("GRAYPAPER_SEARCH_HOME", str(tmp_path))
    monkeypatch.setenv("GRAYPAPER_SEARCH_SEMANTIC_SEARCH_ENABLED", "false")
    monkeypatch.delenv("GRAYPAPER_SEARCH_DATABASE_URL", raising=False)


@pytest.fixture(autouse=True)
def quiet_cli_logging(monkeypatch):
    """Loguru sinks would otherwise point at CliRunner's short-lived streams."""
    monkeypatch.setattr("graypaper_search.cli.app.init_cli_logging", lambda: None)
