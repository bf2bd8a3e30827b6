"""
Note Service.

Business logic layer for ephemeral notes. Orchestrates sanitization,
encryption, URL code allocation, and the note repository, and enforces
the expiration rules.

A note is Active until expires_at, then Expired (still stored, but every
read and update path treats it as gone), then Purged once the sweep
deletes it. Only purge_expired() ever deletes rows.
"""

from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import AsyncRetrying, RetryError, retry_if_exception_type, stop_after_attempt

from modules.backend.core.config_schema import NotesSchema
from modules.backend.core.exceptions import (
    CodeSpaceExhaustedError,
    CryptoError,
    ExpiredError,
    InvalidContentError,
    NotFoundError,
    ReadOnlyNoteError,
    UrlCodeCollisionError,
)
from modules.backend.core.resilience import retry_logger
from modules.backend.core.sanitizer import is_blank, sanitize
from modules.backend.core.security import ContentCipher
from modules.backend.core.utils import utc_now
from modules.backend.models.note import Note
from modules.backend.repositories.note import NoteRepository
from modules.backend.schemas.note import (
    CreateNoteResponse,
    NoteCreate,
    NoteResponse,
    NoteUpdate,
)
from modules.backend.services.base import BaseService
from modules.backend.services.url_code import UrlCodeGenerator

MIN_DURATION_HOURS = 1
MAX_DURATION_HOURS = 730


class NoteService(BaseService):
    """
    Service for the note lifecycle.

    Handles note creation, reads, content updates, and the purge of
    expired notes.
    """

    def __init__(
        self,
        session: AsyncSession,
        cipher: ContentCipher,
        config: NotesSchema,
    ) -> None:
        super().__init__(session)
        self.repo = NoteRepository(session)
        self.cipher = cipher
        self.config = config
        self.codes = UrlCodeGenerator(
            self.repo,
            length=config.url_code.length,
            max_attempts=config.url_code.max_attempts,
        )

    async def create_note(self, data: NoteCreate) -> CreateNoteResponse:
        """
        Create a new note.

        Args:
            data: Note creation data

        Returns:
            URL code, share link, and expiration of the new note

        Raises:
            InvalidContentError: If the duration is out of range or the
                content is blank after sanitization
            CryptoError: If the content cannot be encrypted
            CodeSpaceExhaustedError: If no unused URL code could be allocated
        """
        self._validate_range(
            data.duration_in_hours,
            "duration_in_hours",
            MIN_DURATION_HOURS,
            MAX_DURATION_HOURS,
            error_cls=InvalidContentError,
        )
        encrypted = self._encrypt(self._sanitize_and_validate(data.content))

        now = utc_now()
        expires_at = now + timedelta(hours=data.duration_in_hours)

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.config.url_code.insert_attempts),
                retry=retry_if_exception_type(UrlCodeCollisionError),
                before_sleep=retry_logger("create_note"),
            ):
                with attempt:
                    note = await self._execute_db_operation(
                        "create_note",
                        self._insert_note(
                            content=encrypted,
                            created_at=now,
                            updated_at=now,
                            expires_at=expires_at,
                            is_read_only=data.is_read_only,
                            is_partial_editing_only=data.is_partial_editing_only,
                        ),
                    )
        except RetryError as e:
            raise CodeSpaceExhaustedError(
                "URL code collided with concurrent writers on every insert attempt"
            ) from e

        self._log_operation(
            "Note created",
            url_code=note.url_code,
            duration_in_hours=data.duration_in_hours,
            is_read_only=note.is_read_only,
        )

        return CreateNoteResponse(
            url_code=note.url_code,
            share_url=self.build_share_url(note.url_code),
            expires_at=note.expires_at,
        )

    async def get_note(self, url_code: str) -> NoteResponse:
        """
        Get a note by URL code.

        Args:
            url_code: Public note identifier

        Returns:
            Decrypted view of the note

        Raises:
            NotFoundError: If no note holds the code
            ExpiredError: If the note has expired
        """
        note = await self._get_live_note(url_code)
        return self._to_response(note)

    async def update_note(self, url_code: str, data: NoteUpdate) -> NoteResponse:
        """
        Replace the content of a note.

        The row is locked for the rest of the transaction, so concurrent
        editors of the same note serialize; the last writer wins.

        Args:
            url_code: Public note identifier
            data: New content

        Returns:
            Decrypted view of the updated note

        Raises:
            NotFoundError: If no note holds the code
            ExpiredError: If the note has expired
            ReadOnlyNoteError: If the note is read-only and enforcement is on
            InvalidContentError: If the content is blank after sanitization
            CryptoError: If the content cannot be encrypted
        """
        note = await self._get_live_note(url_code, for_update=True)

        if note.is_read_only and self.config.enforce_read_only:
            raise ReadOnlyNoteError(f"Note {url_code} is read-only")

        note.content = self._encrypt(self._sanitize_and_validate(data.content))
        note = await self._execute_db_operation("update_note", self.repo.save(note))

        self._log_operation("Note updated", url_code=url_code)
        return self._to_response(note)

    async def purge_expired(self, now: datetime | None = None) -> int:
        """
        Delete every note that expired before now.

        Safe to call repeatedly; a call with nothing to delete is a no-op.

        Args:
            now: Cutoff timestamp (naive UTC), defaults to the current time

        Returns:
            Number of deleted notes
        """
        cutoff = now or utc_now()
        count = await self._execute_db_operation(
            "purge_expired",
            self.repo.delete_expired_before(cutoff),
        )
        if count > 0:
            self._log_operation("Deleted expired notes", count=count)
        return count

    def build_share_url(self, url_code: str) -> str:
        """Build the link a note is shared under."""
        return f"{self.config.share_base_url.rstrip('/')}/{url_code}"

    async def _insert_note(self, **fields) -> Note:
        """Insert a note under a freshly generated code inside a savepoint."""
        url_code = await self.codes.generate_unique_code()
        try:
            async with self.session.begin_nested():
                return await self.repo.create(url_code=url_code, **fields)
        except IntegrityError as e:
            if "url_code" in str(e).lower():
                raise UrlCodeCollisionError(f"URL code {url_code} taken concurrently") from e
            raise

    async def _get_live_note(self, url_code: str, for_update: bool = False) -> Note:
        note = await self.repo.find_by_code(url_code, for_update=for_update)
        if note is None:
            raise NotFoundError(f"Note not found with URL code: {url_code}")
        if note.is_expired(utc_now()):
            raise ExpiredError("Note has expired")
        return note

    def _sanitize_and_validate(self, content: str | None) -> str:
        sanitized = sanitize(content)
        if is_blank(sanitized):
            raise InvalidContentError("Content cannot be empty")
        return sanitized

    def _encrypt(self, content: str) -> str:
        try:
            return self.cipher.encrypt(content)
        except CryptoError:
            self._logger.error("Encryption failed", extra={"service": self.__class__.__name__})
            raise

    def _to_response(self, note: Note) -> NoteResponse:
        """
        Build the public view of a note.

        Content that cannot be decrypted is replaced by the configured
        marker and flagged with decryption_failed instead of failing the
        request.
        """
        decryption_failed = False
        try:
            content = self.cipher.decrypt(note.content)
        except CryptoError as e:
            self._logger.error(
                "Decryption failed",
                extra={"url_code": note.url_code, "error": e.message},
            )
            content = self.config.decrypt_failure_marker
            decryption_failed = True

        return NoteResponse(
            url_code=note.url_code,
            content=content,
            expires_at=note.expires_at,
            created_at=note.created_at,
            updated_at=note.updated_at,
            is_read_only=note.is_read_only,
            is_partial_editing_only=note.is_partial_editing_only,
            decryption_failed=decryption_failed,
        )
