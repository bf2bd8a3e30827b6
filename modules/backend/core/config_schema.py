"""
Configuration Schemas.

Pydantic models defining the expected structure of each YAML config file.
Used by AppConfig to validate configuration at load time. If a YAML file
has missing keys, wrong types, or unknown fields, a clear ValidationError
is raised at startup instead of a cryptic KeyError deep in application code.

Each top-level class corresponds to one file in config/settings/:
    ApplicationSchema  → application.yaml
    DatabaseSchema     → database.yaml
    LoggingSchema      → logging.yaml
    NotesSchema        → notes.yaml
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, PositiveInt

Port = Annotated[int, Field(ge=1, le=65535)]
UrlPath = Annotated[str, Field(pattern=r"^/")]


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class ServerSchema(_StrictBase):
    host: str
    port: Port


class CorsSchema(_StrictBase):
    origins: list[str]


class TimeoutsSchema(_StrictBase):
    """Seconds."""

    database: PositiveInt
    ready_check: PositiveInt


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: Literal["development", "staging", "production"]
    debug: bool
    api_prefix: UrlPath
    docs_enabled: bool
    server: ServerSchema
    cors: CorsSchema
    timeouts: TimeoutsSchema


# =============================================================================
# database.yaml
# =============================================================================


class BrokerSchema(_StrictBase):
    queue_name: str = Field(min_length=1)
    result_expiry_seconds: PositiveInt


class RedisSchema(_StrictBase):
    host: str
    port: Port
    db: NonNegativeInt
    broker: BrokerSchema


class DatabaseSchema(_StrictBase):
    host: str
    port: Port
    name: str
    user: str
    pool_size: PositiveInt
    max_overflow: NonNegativeInt
    pool_timeout: PositiveInt
    pool_recycle: int = Field(ge=-1)  # -1 disables recycling
    echo: bool
    redis: RedisSchema


# =============================================================================
# logging.yaml
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: PositiveInt
    backup_count: NonNegativeInt


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    format: Literal["json", "console"]
    handlers: HandlersSchema


# =============================================================================
# notes.yaml
# =============================================================================


class UrlCodeSchema(_StrictBase):
    length: int = Field(ge=4, le=10)
    max_attempts: int = Field(ge=1)
    insert_attempts: int = Field(ge=1)


class PurgeSchema(_StrictBase):
    runner: Literal["in_process", "taskiq", "disabled"]
    interval_minutes: int = Field(ge=1, le=59)


class NotesSchema(_StrictBase):
    share_base_url: str = Field(min_length=1)
    enforce_read_only: bool
    decrypt_failure_marker: str = Field(min_length=1)
    url_code: UrlCodeSchema
    purge: PurgeSchema
