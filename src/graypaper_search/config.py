"""Configuration management for graypaper-search."""

import json
import os
from enum import Enum
from functools import cached_property
from pathlib import Path
from typing import Annotated, List, Literal, Optional

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from graypaper_search.utils import setup_logging

DATA_DIR_NAME = ".graypaper-search"
LOG_FILE_NAME = "graypaper-search.log"

Environment = Literal["test", "dev", "user"]


class DatabaseBackend(str, Enum):
    """Supported database backends."""

    SQLITE = "sqlite"
    POSTGRES = "postgres"


def default_data_dir() -> Path:
    """Directory for the local database and log files.

    GRAYPAPER_SEARCH_HOME overrides the default of ~/.graypaper-search.
    """
    home = os.getenv("GRAYPAPER_SEARCH_HOME")
    if home:
        return Path(home)
    return Path.home() / DATA_DIR_NAME


class GraypaperSearchConfig(BaseSettings):
    """Settings for the search API, CLI and semantic retrieval."""

    env: Environment = Field(default="dev", description="Environment name")

    database_url: str = Field(
        default_factory=lambda: f"sqlite+aiosqlite:///{default_data_dir() / 'search.db'}",
        description="SQLAlchemy async database URL (sqlite+aiosqlite or postgresql+asyncpg)",
    )

    semantic_search_enabled: bool = Field(
        default=True,
        description="Allow semantic mode to embed queries. When disabled, semantic requests run lexically.",
    )
    semantic_embedding_provider: str = Field(
        default="openai",
        description="Embedding provider used for semantic query vectors.",
    )
    semantic_embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model identifier. Must match the model used to embed stored rows.",
    )
    semantic_embedding_dimensions: int = Field(
        default=1536,
        gt=0,
        description="Embedding vector dimensions. Must match the stored embedding columns.",
    )
    semantic_embedding_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait for the embedding provider before falling back to lexical search.",
    )
    semantic_distance_threshold: float = Field(
        default=0.8,
        ge=0.0,
        le=2.0,
        description="Maximum cosine distance for a row to count as a semantic match.",
    )

    cors_origins: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["*"])
    api_host: str = "0.0.0.0"
    api_port: int = 3000

    log_level: str = "INFO"
    log_to_file: bool = False

    model_config = SettingsConfigDict(
        env_prefix="GRAYPAPER_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, value):
        """Accept a JSON list or a semicolon separated string from the environment."""
        if isinstance(value, str):
            if value.strip().startswith("["):
                return json.loads(value)
            return [origin.strip() for origin in value.split(";") if origin.strip()]
        return value

    @property
    def database_backend(self) -> DatabaseBackend:
        scheme = self.database_url.split(":", 1)[0].lower()
        if scheme.startswith("postgres"):
            return DatabaseBackend.POSTGRES
        if scheme.startswith("sqlite"):
            return DatabaseBackend.SQLITE
        raise ValueError(f"Unsupported database URL scheme: {scheme}")

    @property
    def data_dir(self) -> Path:
        return default_data_dir()


class ConfigManager:
    """Loads and caches the application configuration."""

    def __init__(self, config: Optional[GraypaperSearchConfig] = None) -> None:
        self._config = config

    @cached_property
    def config(self) -> GraypaperSearchConfig:
        if self._config is not None:
            return self._config
        config = GraypaperSearchConfig()
        logger.debug(f"Loaded config: env={config.env} backend={config.database_backend.value}")
        return config

    @property
    def data_dir(self) -> Path:
        return self.config.data_dir


def init_api_logging() -> None:  # pragma: no cover
    """Initialize logging for the API server.

    The API logs to stderr; a file sink is added when log_to_file is set.
    """
    config = ConfigManager().config
    setup_logging(
        env=config.env,
        home_dir=config.data_dir,
        log_file=LOG_FILE_NAME if config.log_to_file else None,
        log_level=config.log_level,
        console=True,
    )


def init_cli_logging() -> None:  # pragma: no cover
    """Initialize logging for CLI commands.

    CLI output goes through rich, so loguru only writes to the log file.
    """
    config = ConfigManager().config
    setup_logging(
        env=config.env,
        home_dir=config.data_dir,
        log_file=LOG_FILE_NAME,
        log_level=config.log_level,
        console=False,
    )
