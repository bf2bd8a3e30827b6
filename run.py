#!/usr/bin/env python3
"""
Notes service launcher.

    python run.py --action server --reload --verbose
    python run.py --action purge
    python run.py --action migrate --revision head
    python run.py --action worker | scheduler
    python run.py --action config
    python run.py --action test --test-type unit
"""

import asyncio
import subprocess
import sys
from pathlib import Path

import click

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from modules.backend.core.logging import get_logger, setup_logging

ALEMBIC_INI = PROJECT_ROOT / "modules" / "backend" / "migrations" / "alembic.ini"

ACTIONS = {
    "server": "Start the development server",
    "purge": "Delete expired notes once",
    "migrate": "Apply database migrations",
    "worker": "Start the Taskiq worker",
    "scheduler": "Start the Taskiq scheduler",
    "config": "Display configuration",
    "test": "Run test suite",
    "info": "Show this information",
}

TASKIQ_TARGETS = {
    "worker": "modules.backend.tasks.broker:broker",
    "scheduler": "modules.backend.tasks.broker:scheduler",
}

TEST_PATHS = {"all": "tests/", "unit": "tests/unit", "integration": "tests/integration"}


def fail(message: str, exit_code: int = 1) -> None:
    click.secho(message, fg="red", err=True)
    sys.exit(exit_code)


def validate_project_root() -> Path:
    """Exit unless the .project_root marker sits next to this script."""
    if not (PROJECT_ROOT / ".project_root").exists():
        fail("Error: .project_root not found. Run from project root.")
    return PROJECT_ROOT


def _log_level(verbose: bool, debug: bool) -> str:
    if debug:
        return "DEBUG"
    return "INFO" if verbose else "WARNING"


@click.command()
@click.option("--action", type=click.Choice(list(ACTIONS)), default="info", help="Action to perform.")
@click.option("--verbose", "-v", is_flag=True, help="Log at INFO level.")
@click.option("--debug", "-d", is_flag=True, help="Log at DEBUG level.")
@click.option("--host", default=None, help="Bind address for the server (default from application.yaml).")
@click.option("--port", type=int, default=None, help="Port for the server (default from application.yaml).")
@click.option("--reload", is_flag=True, help="Restart the server on code changes.")
@click.option("--revision", default="head", help="Alembic revision to upgrade to.")
@click.option("--test-type", type=click.Choice(list(TEST_PATHS)), default="all", help="Which tests to run.")
def main(
    action: str,
    verbose: bool,
    debug: bool,
    host: str | None,
    port: int | None,
    reload: bool,
    revision: str,
    test_type: str,
) -> None:
    """
    Notes Application Entry Point.

    Serves the notes API, purges expired notes, migrates the database,
    runs the Taskiq worker or scheduler, and shows configuration.
    """
    validate_project_root()

    log_level = _log_level(verbose, debug)
    setup_logging(level=log_level, format_type="console")
    logger = get_logger(__name__)
    logger.debug("Dispatching action", extra={"action": action, "log_level": log_level})

    if action == "server":
        run_server(logger, host, port, reload)
    elif action == "purge":
        run_purge(logger)
    elif action == "migrate":
        run_migrations(logger, revision)
    elif action in TASKIQ_TARGETS:
        run_taskiq(logger, action)
    elif action == "config":
        show_config(logger)
    elif action == "test":
        run_tests(logger, test_type)
    else:
        show_info(logger)


def _run_subprocess(logger, cmd: list[str], description: str) -> None:
    """Run a child process in the project root; its non-zero exit code becomes ours."""
    logger.info(description, extra={"cmd": " ".join(cmd)})
    try:
        subprocess.run(cmd, check=True, cwd=PROJECT_ROOT)
    except KeyboardInterrupt:
        logger.info("Stopped", extra={"description": description})
    except subprocess.CalledProcessError as e:
        logger.error("Command failed", extra={"description": description, "exit_code": e.returncode})
        sys.exit(e.returncode)


def run_server(logger, host: str | None, port: int | None, reload: bool) -> None:
    from modules.backend.core.config import get_app_config

    server = get_app_config().application.server
    bind_host = host or server.host
    bind_port = port or server.port

    cmd = [sys.executable, "-m", "uvicorn", "modules.backend.main:app",
           "--host", bind_host, "--port", str(bind_port)]
    if reload:
        cmd.append("--reload")

    click.echo(f"Serving notes API on http://{bind_host}:{bind_port} (Ctrl+C to stop)\n")
    _run_subprocess(logger, cmd, "Starting server")


def run_purge(logger) -> None:
    """One purge pass outside the API process, e.g. from cron."""
    from modules.backend.core.database import dispose_engine
    from modules.backend.tasks.scheduled import purge_expired_notes

    async def _purge_once() -> dict:
        try:
            return await purge_expired_notes()
        finally:
            await dispose_engine()

    try:
        result = asyncio.run(_purge_once())
    except Exception as e:
        logger.error("Purge failed", extra={"error": str(e)})
        fail(f"Purge failed: {e}")

    click.echo(f"Deleted {result['deleted_count']} expired note(s)")


def run_migrations(logger, revision: str) -> None:
    if not ALEMBIC_INI.exists():
        fail(f"Error: {ALEMBIC_INI} not found")

    _run_subprocess(
        logger,
        [sys.executable, "-m", "alembic", "-c", str(ALEMBIC_INI), "upgrade", revision],
        "Applying migrations",
    )
    click.secho(f"Database upgraded to {revision}", fg="green")


def run_taskiq(logger, action: str) -> None:
    """Start the Taskiq worker or scheduler that executes the periodic purge."""
    from modules.backend.core.config import get_app_config

    runner = get_app_config().notes.purge.runner
    if runner != "taskiq":
        click.secho(
            f"Warning: notes.yaml purge.runner is {runner!r}; the {action} "
            "only fires purges when it is 'taskiq'.",
            fg="yellow",
        )

    _run_subprocess(
        logger,
        [sys.executable, "-m", "taskiq", action, TASKIQ_TARGETS[action]],
        f"Starting taskiq {action}",
    )


def _echo_mapping(values: dict, indent: int = 2) -> None:
    pad = " " * indent
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"{pad}{key}:")
            _echo_mapping(value, indent + 2)
        else:
            click.echo(f"{pad}{key}: {value}")


def show_config(logger) -> None:
    """Print every YAML settings section as loaded and validated."""
    from modules.backend.core.config import get_app_config

    try:
        sections = get_app_config().sections()
    except Exception as e:
        logger.error("Failed to load configuration", extra={"error": str(e)})
        fail(f"Error loading configuration: {e}")

    click.echo("Application Configuration:\n")
    for name, section in sections.items():
        click.echo(f"{name.title()} Settings (from YAML):")
        click.echo("-" * 40)
        _echo_mapping(section.model_dump())
        click.echo()


def run_tests(logger, test_type: str) -> None:
    cmd = [sys.executable, "-m", "pytest", TEST_PATHS[test_type], "-v"]
    logger.info("Running tests", extra={"type": test_type})
    click.echo(f"Running: {' '.join(cmd)}\n")

    try:
        result = subprocess.run(cmd)
    except FileNotFoundError:
        fail("pytest not found. Install with: pip install -e '.[test]'")
    sys.exit(result.returncode)


def show_info(logger) -> None:
    click.echo("Ephemeral Notes")
    click.echo("=" * 40)

    try:
        from modules.backend.core.config import get_app_config

        settings = get_app_config().application
    except Exception as e:
        logger.warning("Could not load configuration", extra={"error": str(e)})
        click.echo("Configuration not available (check config/settings/)")
    else:
        click.echo(f"Name: {settings.name}")
        click.echo(f"Version: {settings.version}")
        click.echo(f"Description: {settings.description}")

    click.echo("\nAvailable Actions:")
    for name, description in ACTIONS.items():
        click.echo(f"  --action {name:<12} {description}")
    click.echo("\nLogging Options:")
    click.echo("  --verbose, -v        Enable INFO level logging")
    click.echo("  --debug, -d          Enable DEBUG level logging")


if __name__ == "__main__":
    main()
