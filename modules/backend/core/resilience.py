"""
Resilience Infrastructure.

Structured logging for retried operations. Used with tenacity wherever an
operation is retried, so retry events can be filtered in the logs:

    jq 'select(.resilience_event != null)' logs/system.jsonl

Usage:
    from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt
    from modules.backend.core.resilience import retry_logger

    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(3),
        retry=retry_if_exception_type(UrlCodeCollisionError),
        before_sleep=retry_logger("create_note"),
    ):
        with attempt:
            await insert()

A decorated function names itself; AsyncRetrying loops have no function,
so retry_logger() supplies the operation name.
"""

from functools import partial
from typing import Any, Callable

from modules.backend.core.logging import get_logger

logger = get_logger(__name__)


def log_retry(retry_state: Any, operation: str | None = None) -> None:
    """Tenacity before_sleep callback that emits structured retry events.

    Pass this as `before_sleep=log_retry` in an @retry decorator; use
    retry_logger() for AsyncRetrying loops.

    Args:
        retry_state: tenacity.RetryCallState instance
        operation: Name to log, overriding the retried function's name
    """
    duration_ms = None
    if retry_state.outcome_timestamp and retry_state.start_time:
        duration_ms = round(
            (retry_state.outcome_timestamp - retry_state.start_time) * 1000
        )

    error = None
    if retry_state.outcome and retry_state.outcome.failed:
        error = str(retry_state.outcome.exception())

    fn_name = operation or getattr(retry_state.fn, "__name__", None) or "operation"

    logger.warning(
        f"Retrying {fn_name} (attempt {retry_state.attempt_number})",
        extra={
            "resilience_event": "retry_attempt",
            "operation": fn_name,
            "attempt": retry_state.attempt_number,
            "duration_ms": duration_ms,
            "error": error,
        },
    )


def retry_logger(operation: str) -> Callable[[Any], None]:
    """before_sleep callback that logs retries under a fixed operation name."""
    return partial(log_retry, operation=operation)
