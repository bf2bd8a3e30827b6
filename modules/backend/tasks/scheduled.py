"""
Scheduled Background Tasks.

Tasks that run on a schedule. The task functions are plain async functions
so they can be driven two ways, selected by notes.yaml purge.runner:

    in_process - PurgeRunner (modules.backend.tasks.runner) calls them from
                 the API process, started and stopped by the app lifespan
    taskiq     - register_scheduled_tasks() wraps them with broker.task and
                 a cron schedule read by TaskiqScheduler via LabelScheduleSource

Cron Format:
    ┌───────────── minute (0-59)
    │ ┌───────────── hour (0-23)
    │ │ ┌───────────── day of month (1-31)
    │ │ │ ┌───────────── month (1-12)
    │ │ │ │ ┌───────────── day of week (0-6, Sun=0)
    │ │ │ │ │
    * * * * *

Usage:
    # Direct call (no broker required)
    from modules.backend.tasks.scheduled import purge_expired_notes
    result = await purge_expired_notes()

    # Start scheduler (taskiq runner)
    taskiq scheduler modules.backend.tasks.broker:scheduler
"""

from datetime import datetime
from typing import Any

from modules.backend.core.config import get_app_config
from modules.backend.core.database import session_scope
from modules.backend.core.dependencies import create_note_service
from modules.backend.core.logging import get_logger
from modules.backend.core.utils import utc_now

logger = get_logger(__name__)


# =============================================================================
# Scheduled Task Functions
# =============================================================================


async def purge_expired_notes(now: datetime | None = None) -> dict[str, Any]:
    """
    Delete every note whose expiration time has passed.

    Runs in its own session and transaction, independent of any request.
    Idempotent: a run with nothing expired deletes nothing.

    Args:
        now: Cutoff timestamp (naive UTC), defaults to the current time

    Returns:
        Purge statistics
    """
    cutoff = now or utc_now()

    async with session_scope() as session:
        deleted_count = await create_note_service(session).purge_expired(cutoff)

    result = {
        "status": "completed",
        "deleted_count": deleted_count,
        "cutoff": cutoff.isoformat(),
        "completed_at": utc_now().isoformat(),
    }

    logger.debug("Expired note purge completed", extra=result)
    return result


# =============================================================================
# Schedule Configuration
# =============================================================================


def interval_to_cron(interval_minutes: int) -> str:
    """Build a cron expression firing every interval_minutes minutes."""
    if not 1 <= interval_minutes <= 59:
        raise ValueError(f"interval_minutes must be between 1 and 59, got {interval_minutes}")
    return f"*/{interval_minutes} * * * *"


SCHEDULED_TASKS = {
    "purge_expired_notes": {
        "function": purge_expired_notes,
        "retry_on_error": False,  # the next tick retries
        "description": "Delete notes whose expiration has passed",
    },
}


def register_scheduled_tasks(broker: Any = None) -> dict[str, Any]:
    """
    Register scheduled task functions with the Taskiq broker.

    Wraps the plain async functions with broker.task decorators including
    a cron schedule derived from notes.yaml purge.interval_minutes.

    Args:
        broker: Broker to register with, defaults to the shared broker

    Returns:
        Dict mapping task names to registered task objects
    """
    if broker is None:
        from modules.backend.tasks.broker import get_broker

        broker = get_broker()

    cron = interval_to_cron(get_app_config().notes.purge.interval_minutes)
    registered = {}

    for task_name, config in SCHEDULED_TASKS.items():
        registered[task_name] = broker.task(
            task_name=task_name,
            schedule=[{"cron": cron}],
            retry_on_error=config["retry_on_error"],
        )(config["function"])

    logger.info(
        "Scheduled tasks registered",
        extra={
            "task_count": len(registered),
            "tasks": list(registered.keys()),
            "cron": cron,
        },
    )

    return registered
