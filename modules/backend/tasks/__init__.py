"""
Background Tasks Package.

Expired-note purging, driven by one of two runners selected by
notes.yaml purge.runner:

1. in_process (default) - PurgeRunner, an asyncio task owned by the API lifespan
2. taskiq - cron schedule on a Redis-backed Taskiq broker

Usage (in-process):
    from modules.backend.tasks import PurgeRunner

    runner = PurgeRunner(interval_seconds=900)
    runner.start()
    await runner.stop()

Usage (with Redis):
    taskiq worker modules.backend.tasks.broker:broker
    taskiq scheduler modules.backend.tasks.broker:scheduler

Usage (without a runner - testing):
    from modules.backend.tasks.scheduled import purge_expired_notes

    result = await purge_expired_notes()

Important:
    Run only ONE scheduler instance to avoid duplicate task execution.
"""

from modules.backend.tasks.broker import get_broker, get_scheduler
from modules.backend.tasks.runner import PurgeRunner
from modules.backend.tasks.scheduled import (
    SCHEDULED_TASKS,
    interval_to_cron,
    purge_expired_notes,
    register_scheduled_tasks,
)

__all__ = [
    "PurgeRunner",
    "SCHEDULED_TASKS",
    "get_broker",
    "get_scheduler",
    "interval_to_cron",
    "purge_expired_notes",
    "register_scheduled_tasks",
]
