"""
Taskiq Broker and Scheduler.

Used only when notes.yaml sets purge.runner to "taskiq". The broker is a
Redis list queue (settings from database.yaml, REDIS_PASSWORD from
config/.env); the scheduler reads the cron labels that
register_scheduled_tasks() attaches to the purge task.

Both are built lazily, so importing this module needs neither Redis nor
the secrets.

Usage:
    taskiq worker modules.backend.tasks.broker:broker
    taskiq scheduler modules.backend.tasks.broker:scheduler

Run exactly one scheduler process; each one fires every schedule.
"""

from typing import TYPE_CHECKING

from modules.backend.core.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from taskiq import TaskiqScheduler
    from taskiq_redis import ListQueueBroker

_broker: "ListQueueBroker | None" = None
_scheduler: "TaskiqScheduler | None" = None


def create_broker() -> "ListQueueBroker":
    """Build the Redis-backed broker with a result backend."""
    from taskiq_redis import ListQueueBroker, RedisAsyncResultBackend

    from modules.backend.core.config import get_app_config, get_redis_url

    redis_url = get_redis_url()
    broker_config = get_app_config().database.redis.broker

    broker = ListQueueBroker(
        url=redis_url,
        queue_name=broker_config.queue_name,
    ).with_result_backend(
        RedisAsyncResultBackend(
            redis_url=redis_url,
            result_ex_time=broker_config.result_expiry_seconds,
        )
    )

    logger.debug(
        "Taskiq broker configured",
        extra={
            "queue_name": broker_config.queue_name,
            "result_expiry": broker_config.result_expiry_seconds,
        },
    )
    return broker


def get_broker() -> "ListQueueBroker":
    """Get the shared broker, registering the scheduled tasks on first use."""
    global _broker
    if _broker is None:
        from taskiq import TaskiqEvents

        from modules.backend.core.database import dispose_engine
        from modules.backend.tasks.scheduled import register_scheduled_tasks

        _broker = create_broker()
        register_scheduled_tasks(_broker)

        @_broker.on_event(TaskiqEvents.WORKER_STARTUP)
        async def on_startup() -> None:
            logger.info("Taskiq worker starting up")

        @_broker.on_event(TaskiqEvents.WORKER_SHUTDOWN)
        async def on_shutdown() -> None:
            await dispose_engine()
            logger.info("Taskiq worker shutting down")

    return _broker


def get_scheduler() -> "TaskiqScheduler":
    """Get the shared scheduler, reading schedules from task labels."""
    global _scheduler
    if _scheduler is None:
        from taskiq import TaskiqScheduler
        from taskiq.schedule_sources import LabelScheduleSource

        broker = get_broker()
        _scheduler = TaskiqScheduler(broker=broker, sources=[LabelScheduleSource(broker)])

        logger.info(
            "Taskiq scheduler configured",
            extra={"task_count": len(broker.get_all_tasks())},
        )
    return _scheduler


def __getattr__(name: str):
    """Resolve `broker` and `scheduler` lazily for the taskiq CLI."""
    if name == "broker":
        return get_broker()
    if name == "scheduler":
        return get_scheduler()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
