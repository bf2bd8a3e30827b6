"""
In-Process Purge Runner.

Recurring asyncio task that purges expired notes from inside the API
process. Owned by the application lifespan: started at startup, stopped
at shutdown. Used when notes.yaml sets purge.runner to "in_process".

A failing run is logged and the next tick tries again; failures never
propagate out of the loop, so request handling is unaffected.

Usage:
    runner = PurgeRunner(interval_seconds=900)
    runner.start()
    ...
    await runner.stop()
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from modules.backend.core.logging import get_logger, log_with_source
from modules.backend.tasks.scheduled import purge_expired_notes

logger = get_logger(__name__)


class PurgeRunner:
    """Runs a purge callable every interval_seconds until stopped."""

    def __init__(
        self,
        interval_seconds: float,
        purge: Callable[[], Awaitable[dict[str, Any]]] = purge_expired_notes,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = interval_seconds
        self._purge = purge
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        """Whether the recurring task is active."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the recurring task on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="note-purge-runner")
        logger.info("Purge runner started", extra={"interval_seconds": self.interval_seconds})

    async def stop(self) -> None:
        """Cancel the recurring task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Purge runner stopped")

    async def run_once(self) -> dict[str, Any] | None:
        """
        Run a single purge, logging instead of raising on failure.

        Returns:
            The purge result, or None if the run failed
        """
        try:
            result = await self._purge()
        except Exception as e:
            log_with_source(
                logger, "tasks", "error",
                "Purge run failed, retrying next tick",
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        if result.get("deleted_count", 0) > 0:
            log_with_source(
                logger, "tasks", "info",
                "Purge run deleted expired notes",
                deleted_count=result["deleted_count"],
            )
        return result

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()
