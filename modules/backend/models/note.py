"""
Note Model.

Database model for ephemeral notes. Content is stored encrypted; the
public URL code is the only identifier ever handed to clients.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from modules.backend.core.utils import utc_now
from modules.backend.models.base import Base, TimestampMixin, UUIDMixin


class Note(UUIDMixin, TimestampMixin, Base):
    """
    Note database model.

    A note is addressed by url_code and lives until expires_at. After that
    it is treated as gone by every read path and is eventually deleted by
    the purge sweep. expires_at and the editing flags are fixed at creation.
    """

    __tablename__ = "notes"
    __table_args__ = (
        UniqueConstraint("url_code", name="uq_notes_url_code"),
    )

    url_code: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        index=True,
    )
    is_read_only: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
    )
    is_partial_editing_only: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
    )

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check whether the note has reached its expiration time."""
        return (now or utc_now()) >= self.expires_at

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, url_code={self.url_code!r}, expires_at={self.expires_at})>"
