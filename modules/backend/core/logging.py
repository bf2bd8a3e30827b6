"""
Centralized Logging Configuration.

Every module logs through structlog loggers obtained from get_logger().
Handlers and levels come from config/settings/logging.yaml (validated by
LoggingSchema); setup_logging() arguments override individual values.

JSON records carry:
    timestamp, level, logger, event, func_name, lineno
    source      - origin context (web, api, tasks, cli, internal)
    request_id  - bound by RequestContextMiddleware during HTTP requests

Note bodies must never reach the logs. Any field named in REDACTED_FIELDS,
top-level or inside an ``extra`` mapping, is replaced before rendering.

Usage:
    from modules.backend.core.logging import get_logger, setup_logging

    setup_logging()                      # from logging.yaml
    setup_logging(level="DEBUG", format_type="console")

    logger = get_logger(__name__)
    logger.info("Note created", extra={"url_code": "aB3dE5fG"})

    log_with_source(logger, "tasks", "info", "Purge finished", deleted=3)

Log File:
    logs/system.jsonl (rotating), filter by the 'source' field
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

from modules.backend.core.config import find_project_root, get_app_config
from modules.backend.core.config_schema import FileHandlerSchema, LoggingSchema

VALID_SOURCES = frozenset({
    "web",
    "api",
    "tasks",
    "cli",
    "internal",
    "unknown",
})
"""Recognized log source values. Callers set source explicitly."""

REDACTED_FIELDS = frozenset({"content", "plaintext"})
REDACTED_VALUE = "[redacted]"

# Raised to WARNING regardless of the configured level
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "taskiq")


def _load_logging_config() -> LoggingSchema:
    """Return the validated logging.yaml section of the app config."""
    return get_app_config().logging


def _resolve_log_path(configured_path: str) -> Path:
    """Resolve the log file path relative to project root."""
    return find_project_root() / configured_path


def redact_note_content(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """structlog processor that masks note bodies in log records."""
    for key in REDACTED_FIELDS & event_dict.keys():
        event_dict[key] = REDACTED_VALUE

    extra = event_dict.get("extra")
    if isinstance(extra, dict) and REDACTED_FIELDS & extra.keys():
        event_dict["extra"] = {
            k: REDACTED_VALUE if k in REDACTED_FIELDS else v
            for k, v in extra.items()
        }
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
        redact_note_content,
    ]


def _formatter(renderer: Processor, pre_chain: list[Processor]) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=pre_chain,
    )


def _file_handler(file_config: FileHandlerSchema, formatter: logging.Formatter) -> logging.Handler:
    log_path = _resolve_log_path(file_config.path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=str(log_path),
        maxBytes=file_config.max_bytes,
        backupCount=file_config.backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
    enable_console: bool | None = None,
    enable_file_logging: bool | None = None,
) -> None:
    """
    Configure structured logging for the application.

    Replaces any handlers already installed on the root logger, so calling
    it again (e.g. from the app lifespan after run.py) is safe.

    Args:
        level: Log level name. Overrides logging.yaml.
        format_type: 'json' or 'console' for the console handler. Overrides logging.yaml.
        enable_console: Whether to log to stdout. Overrides logging.yaml.
        enable_file_logging: Whether to write the JSONL file. Overrides logging.yaml.
    """
    config = _load_logging_config()
    handlers = config.handlers

    level = level or config.level
    format_type = format_type or config.format
    if enable_console is None:
        enable_console = handlers.console.enabled
    if enable_file_logging is None:
        enable_file_logging = handlers.file.enabled

    processors = _shared_processors()
    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    json_formatter = _formatter(structlog.processors.JSONRenderer(), processors)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        if format_type == "console":
            console_handler.setFormatter(
                _formatter(structlog.dev.ConsoleRenderer(colors=True), processors)
            )
        else:
            console_handler.setFormatter(json_formatter)
        root_logger.addHandler(console_handler)

    if enable_file_logging:
        root_logger.addHandler(_file_handler(handlers.file, json_formatter))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """Get a structlog logger, typically for __name__."""
    return structlog.get_logger(name)


def log_with_source(logger: Any, source: str, level: str, message: str, **kwargs: Any) -> None:
    """
    Log a message with an explicit source.

    Used outside HTTP requests, where no middleware binds a source
    (purge runs, CLI commands).

    Raises:
        AttributeError: If level is not a valid log level
    """
    log_method = getattr(logger, level.lower())
    log_method(message, source=source, **kwargs)
