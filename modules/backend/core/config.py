"""
Configuration Management.

Two sources, nothing hardcoded:

    config/.env                 secrets (DB_PASSWORD, NOTE_ENCRYPTION_KEY,
                                REDIS_PASSWORD), read by pydantic-settings
    config/settings/*.yaml      everything else, one file per section,
                                each validated by its schema in config_schema

Both are located through the .project_root marker, so entry points work
from any subdirectory of the checkout.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any
from urllib.parse import quote

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

from modules.backend.core.config_schema import (
    ApplicationSchema,
    DatabaseSchema,
    LoggingSchema,
    NotesSchema,
)

PROJECT_MARKER = ".project_root"

# section name -> (schema, file under config/settings/)
SETTINGS_FILES: dict[str, tuple[type[BaseModel], str]] = {
    "application": (ApplicationSchema, "application.yaml"),
    "database": (DatabaseSchema, "database.yaml"),
    "logging": (LoggingSchema, "logging.yaml"),
    "notes": (NotesSchema, "notes.yaml"),
}


def find_project_root(start: Path | None = None) -> Path:
    """Walk up from start (default: cwd) to the directory holding .project_root."""
    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / PROJECT_MARKER).exists():
            return candidate
    raise RuntimeError("Project root not found. Ensure .project_root file exists.")


def validate_project_root() -> Path:
    """
    Validate that the project root can be found.

    Raises SystemExit with a clear message if .project_root is not found.
    Use this in entry scripts before any configuration loading.
    """
    try:
        return find_project_root()
    except RuntimeError as e:
        raise SystemExit(f"Error: {e}") from e


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Load a YAML file from config/settings/, returning {} for an empty file."""
    config_path = find_project_root() / "config" / "settings" / filename

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    """Secrets loaded from config/.env or the environment."""

    db_password: str
    note_encryption_key: str = Field(min_length=1)
    redis_password: str = ""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def _load_section(name: str) -> BaseModel:
    schema_cls, filename = SETTINGS_FILES[name]
    raw = load_yaml_config(filename)
    try:
        return schema_cls(**raw)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {filename}:\n{e}") from e


class AppConfig:
    """
    Validated YAML configuration.

    Every file in SETTINGS_FILES is loaded and validated up front, so a bad
    value fails at startup rather than on first use.
    """

    def __init__(self) -> None:
        self._sections = {name: _load_section(name) for name in SETTINGS_FILES}

    def sections(self) -> dict[str, BaseModel]:
        """All sections keyed by name, in SETTINGS_FILES order."""
        return dict(self._sections)

    @property
    def application(self) -> ApplicationSchema:
        return self._sections["application"]

    @property
    def database(self) -> DatabaseSchema:
        return self._sections["database"]

    @property
    def logging(self) -> LoggingSchema:
        return self._sections["logging"]

    @property
    def notes(self) -> NotesSchema:
        return self._sections["notes"]


@lru_cache
def get_settings() -> Settings:
    """Get cached secrets instance. Resolves .env path from project root."""
    env_path = find_project_root() / "config" / ".env"
    return Settings(_env_file=str(env_path))


@lru_cache
def get_app_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig()


def get_database_url(async_driver: bool = True) -> str:
    """
    Build the PostgreSQL URL from database.yaml and DB_PASSWORD.

    The password is escaped, so secrets containing '@', ':' or '/' are safe.

    Args:
        async_driver: asyncpg URL for the app if True, plain driver for tooling if False
    """
    db = get_app_config().database
    url = URL.create(
        drivername="postgresql+asyncpg" if async_driver else "postgresql",
        username=db.user,
        password=get_settings().db_password,
        host=db.host,
        port=db.port,
        database=db.name,
    )
    return url.render_as_string(hide_password=False)


def get_redis_url() -> str:
    """Build the Redis URL from database.yaml and REDIS_PASSWORD."""
    redis = get_app_config().database.redis
    password = quote(get_settings().redis_password, safe="")
    return f"redis://:{password}@{redis.host}:{redis.port}/{redis.db}"
