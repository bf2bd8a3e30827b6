"""
Note Repository.

Data access layer for notes. Handles all database operations
for the Note model.
"""

from datetime import datetime

from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.models.note import Note
from modules.backend.repositories.base import BaseRepository


class NoteRepository(BaseRepository[Note]):
    """
    Repository for Note model.

    Notes are looked up by their public URL code, never by internal ID.
    Expiration is not filtered here; callers decide what an expired row means.
    """

    model = Note

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def find_by_code(
        self,
        url_code: str,
        for_update: bool = False,
    ) -> Note | None:
        """
        Get a note by its URL code.

        Args:
            url_code: Public note identifier
            for_update: Lock the row until the transaction ends
                (ignored by databases without row locks, e.g. SQLite)

        Returns:
            Note if found, None otherwise
        """
        query = select(Note).where(Note.url_code == url_code)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def exists_by_code(self, url_code: str) -> bool:
        """Check whether any note, expired or not, holds the URL code."""
        result = await self.session.execute(
            select(exists().where(Note.url_code == url_code))
        )
        return bool(result.scalar())

    async def delete_expired_before(self, cutoff: datetime) -> int:
        """
        Delete every note whose expiration is strictly before the cutoff.

        Runs as a single bulk DELETE statement.

        Args:
            cutoff: Naive UTC timestamp

        Returns:
            Number of deleted notes
        """
        result = await self.session.execute(
            delete(Note)
            .where(Note.expires_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
