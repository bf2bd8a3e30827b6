"""
Base Service.

Services hold the business rules and sit between the API and the
repositories. They receive a session but never commit it.

Usage:
    class NoteService(BaseService):
        def __init__(self, session: AsyncSession, ...) -> None:
            super().__init__(session)
            self.repo = NoteRepository(session)

        async def purge_expired(self) -> int:
            return await self._execute_db_operation(
                "purge_expired", self.repo.delete_expired_before(utc_now())
            )
"""

from collections.abc import Awaitable
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.core.exceptions import (
    ApplicationError,
    ConflictError,
    DatabaseError,
    ValidationError,
)
from modules.backend.core.logging import get_logger

T = TypeVar("T")

UNIQUE_VIOLATION_MARKERS = ("unique", "duplicate")


class BaseService:
    """Session holder with database error translation and logging helpers."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._logger = get_logger(self.__class__.__module__)

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def _execute_db_operation(self, operation: str, coro: Awaitable[T]) -> T:
        """
        Await a database call, translating SQLAlchemy errors.

        ApplicationError raised inside the awaitable passes through as is.

        Raises:
            ConflictError: On a unique constraint violation
            DatabaseError: On any other database failure
        """
        try:
            return await coro
        except SQLAlchemyError as e:
            raise self._translate_db_error(operation, e) from e

    def _translate_db_error(self, operation: str, error: SQLAlchemyError) -> ApplicationError:
        context = {"operation": operation, "error": str(error)}

        if isinstance(error, IntegrityError):
            self._logger.warning("Database integrity error", extra=context)
            message = str(error).lower()
            if any(marker in message for marker in UNIQUE_VIOLATION_MARKERS):
                return ConflictError("Resource already exists")
            return DatabaseError(f"Database constraint violation: {operation}")

        self._logger.error("Database error", extra=context)
        return DatabaseError(f"Database operation failed: {operation}")

    def _validate_range(
        self,
        value: int,
        field_name: str,
        min_value: int,
        max_value: int,
        error_cls: type[ValidationError] = ValidationError,
    ) -> None:
        """Raise error_cls unless min_value <= value <= max_value."""
        if not min_value <= value <= max_value:
            raise error_cls(
                f"{field_name} must be between {min_value} and {max_value}",
                details={field_name: f"Allowed range is {min_value}-{max_value}, got {value}"},
            )

    def _log_operation(self, operation: str, **context: Any) -> None:
        """Log a completed operation at info level, tagged with the service name."""
        self._logger.info(
            operation,
            extra={"service": self.__class__.__name__, **context},
        )
