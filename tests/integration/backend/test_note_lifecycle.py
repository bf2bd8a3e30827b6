"""
Integration Tests for the Note Lifecycle.

Runs NoteService and NoteRepository against the test database:
creation, reads, updates, expiration, and purge.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.core.exceptions import (
    ExpiredError,
    NotFoundError,
    ReadOnlyNoteError,
)
from modules.backend.core.security import ContentCipher
from modules.backend.core.utils import utc_now
from modules.backend.models.note import Note
from modules.backend.repositories.note import NoteRepository
from modules.backend.schemas.note import NoteCreate, NoteUpdate
from modules.backend.services.note import NoteService


async def insert_note(
    session: AsyncSession,
    cipher: ContentCipher,
    url_code: str,
    expires_in: timedelta,
    content: str = "<p>hello</p>",
    **flags,
) -> Note:
    """Insert a note row directly, bypassing the service."""
    now = utc_now()
    return await NoteRepository(session).create(
        url_code=url_code,
        content=cipher.encrypt(content),
        created_at=now - timedelta(hours=2),
        updated_at=now - timedelta(hours=2),
        expires_at=now + expires_in,
        is_read_only=flags.get("is_read_only", False),
        is_partial_editing_only=flags.get("is_partial_editing_only", False),
    )


class TestNoteRepository:
    """Tests for NoteRepository queries."""

    async def test_find_by_code(self, db_session: AsyncSession, cipher: ContentCipher):
        """Should find a note by its code and return None for others."""
        await insert_note(db_session, cipher, "fInDmE01", timedelta(hours=1))
        repo = NoteRepository(db_session)

        found = await repo.find_by_code("fInDmE01")
        missing = await repo.find_by_code("nOpE0000")

        assert found is not None
        assert found.url_code == "fInDmE01"
        assert missing is None

    async def test_find_by_code_is_case_sensitive(
        self,
        db_session: AsyncSession,
        cipher: ContentCipher,
    ):
        """Should treat codes differing only in case as distinct."""
        await insert_note(db_session, cipher, "CaSe0001", timedelta(hours=1))

        assert await NoteRepository(db_session).find_by_code("case0001") is None

    async def test_exists_by_code_includes_expired(
        self,
        db_session: AsyncSession,
        cipher: ContentCipher,
    ):
        """Should report codes held by expired notes as taken."""
        await insert_note(db_session, cipher, "eXpIrEd1", -timedelta(hours=1))
        repo = NoteRepository(db_session)

        assert await repo.exists_by_code("eXpIrEd1") is True
        assert await repo.exists_by_code("fReE0001") is False

    async def test_delete_expired_before(self, db_session: AsyncSession, cipher: ContentCipher):
        """Should delete only notes expiring strictly before the cutoff."""
        await insert_note(db_session, cipher, "gOnE0001", -timedelta(hours=2))
        await insert_note(db_session, cipher, "gOnE0002", -timedelta(minutes=5))
        await insert_note(db_session, cipher, "sTaY0001", timedelta(hours=2))
        repo = NoteRepository(db_session)

        deleted = await repo.delete_expired_before(utc_now())

        assert deleted == 2
        assert await repo.exists_by_code("gOnE0001") is False
        assert await repo.exists_by_code("gOnE0002") is False
        assert await repo.exists_by_code("sTaY0001") is True


class TestNoteServiceLifecycle:
    """Tests for NoteService against the database."""

    async def test_create_then_get(self, note_service: NoteService):
        """Should read back the created note with its flags."""
        created = await note_service.create_note(
            NoteCreate(
                content="<p>secret plan</p>",
                duration_in_hours=48,
                is_read_only=True,
                is_partial_editing_only=False,
            )
        )

        note = await note_service.get_note(created.url_code)

        assert note.content == "<p>secret plan</p>"
        assert note.is_read_only is True
        assert note.is_partial_editing_only is False
        assert note.expires_at == created.expires_at
        assert note.expires_at - note.created_at == timedelta(hours=48)

    async def test_create_retries_when_code_is_taken_after_check(
        self, note_service: NoteService, db_session: AsyncSession, cipher: ContentCipher
    ):
        """A code claimed between the existence check and the insert should be replaced."""
        await insert_note(db_session, cipher, "AAAAAAAA", timedelta(hours=1), content="<p>first</p>")
        draws = iter("A" * 8 + "B" * 8)

        with patch.object(note_service.codes, "_choice", lambda alphabet: next(draws)), \
             patch.object(note_service.codes.repo, "exists_by_code", AsyncMock(return_value=False)):
            created = await note_service.create_note(
                NoteCreate(
                    content="<p>second</p>",
                    duration_in_hours=1,
                    is_read_only=False,
                    is_partial_editing_only=False,
                )
            )

        assert created.url_code == "BBBBBBBB"
        assert (await note_service.get_note("AAAAAAAA")).content == "<p>first</p>"
        assert (await note_service.get_note("BBBBBBBB")).content == "<p>second</p>"

    async def test_created_codes_are_distinct(self, note_service: NoteService):
        """Should give every note its own code."""
        data = NoteCreate(
            content="x",
            duration_in_hours=1,
            is_read_only=False,
            is_partial_editing_only=False,
        )

        codes = {(await note_service.create_note(data)).url_code for _ in range(5)}

        assert len(codes) == 5

    async def test_expired_note_is_not_readable(
        self,
        note_service: NoteService,
        db_session: AsyncSession,
        cipher: ContentCipher,
    ):
        """Should raise ExpiredError for a stored note past expiration."""
        await insert_note(db_session, cipher, "oLd00001", -timedelta(seconds=1))

        with pytest.raises(ExpiredError):
            await note_service.get_note("oLd00001")

    async def test_note_expires_at_exact_boundary(self, note_service: NoteService):
        """Should treat a note as expired once now reaches expires_at."""
        created = await note_service.create_note(
            NoteCreate(
                content="x",
                duration_in_hours=1,
                is_read_only=False,
                is_partial_editing_only=False,
            )
        )

        with patch("modules.backend.services.note.utc_now", return_value=created.expires_at):
            with pytest.raises(ExpiredError):
                await note_service.get_note(created.url_code)

    async def test_expired_note_is_not_updatable(
        self,
        note_service: NoteService,
        db_session: AsyncSession,
        cipher: ContentCipher,
    ):
        """Should raise ExpiredError when updating an expired note."""
        await insert_note(db_session, cipher, "oLd00002", -timedelta(minutes=1))

        with pytest.raises(ExpiredError):
            await note_service.update_note("oLd00002", NoteUpdate(content="new"))

    async def test_update_refreshes_updated_at_only(
        self,
        note_service: NoteService,
        db_session: AsyncSession,
        cipher: ContentCipher,
    ):
        """Should change content and updated_at but not expiry or flags."""
        original = await insert_note(
            db_session, cipher, "eDiT0001", timedelta(hours=5),
            is_partial_editing_only=True,
        )
        expires_at = original.expires_at
        created_at = original.created_at

        updated = await note_service.update_note("eDiT0001", NoteUpdate(content="<b>v2</b>"))

        assert updated.content == "<b>v2</b>"
        assert updated.updated_at > created_at
        assert updated.created_at == created_at
        assert updated.expires_at == expires_at
        assert updated.is_partial_editing_only is True

    async def test_read_only_note_rejects_update(
        self,
        note_service: NoteService,
        db_session: AsyncSession,
        cipher: ContentCipher,
    ):
        """Should raise ReadOnlyNoteError and keep the stored content."""
        await insert_note(
            db_session, cipher, "rEaD0001", timedelta(hours=1),
            content="keep me", is_read_only=True,
        )

        with pytest.raises(ReadOnlyNoteError):
            await note_service.update_note("rEaD0001", NoteUpdate(content="changed"))

        note = await note_service.get_note("rEaD0001")
        assert note.content == "keep me"

    async def test_purge_removes_expired_notes(
        self,
        note_service: NoteService,
        db_session: AsyncSession,
        cipher: ContentCipher,
    ):
        """Should delete expired notes so they are no longer found."""
        await insert_note(db_session, cipher, "pUrGe001", -timedelta(hours=1))
        await insert_note(db_session, cipher, "aLiVe001", timedelta(hours=1))

        deleted = await note_service.purge_expired()

        assert deleted == 1
        with pytest.raises(NotFoundError):
            await note_service.get_note("pUrGe001")
        assert (await note_service.get_note("aLiVe001")).content == "<p>hello</p>"

    async def test_purge_is_idempotent(
        self,
        note_service: NoteService,
        db_session: AsyncSession,
        cipher: ContentCipher,
    ):
        """Should delete nothing on a second run."""
        await insert_note(db_session, cipher, "pUrGe002", -timedelta(hours=1))

        first = await note_service.purge_expired()
        second = await note_service.purge_expired()

        assert first == 1
        assert second == 0
