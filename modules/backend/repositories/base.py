"""
Base Repository.

Generic persistence for one model class. Repositories flush but never
commit; the session owner (request dependency or purge task) decides the
transaction outcome.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Persistence operations shared by all repositories.

        class NoteRepository(BaseRepository[Note]):
            model = Note
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, **kwargs: Any) -> ModelType:
        """Insert a row and return it with store-assigned defaults loaded."""
        return await self.save(self.model(**kwargs))

    async def save(self, instance: ModelType) -> ModelType:
        """
        Flush pending changes for an instance and reload it.

        The reload picks up onupdate values such as updated_at. Constraint
        violations surface here as IntegrityError.
        """
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance
