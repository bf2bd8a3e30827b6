"""
FastAPI Dependencies.

Shared dependencies for request handling.
"""

import uuid
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.core.config import get_app_config
from modules.backend.core.database import get_db_session
from modules.backend.core.security import ContentCipher, get_content_cipher
from modules.backend.services.note import NoteService

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


def get_request_id(request: Request) -> str:
    """
    The request ID assigned by RequestContextMiddleware.

    Falls back to the header, then a fresh UUID, when the middleware is
    not installed (bare routers in tests).
    """
    state_id = getattr(request.state, "request_id", None)
    return state_id or request.headers.get("x-request-id") or str(uuid.uuid4())


RequestId = Annotated[str, Depends(get_request_id)]


def create_note_service(
    session: AsyncSession,
    cipher: ContentCipher | None = None,
) -> NoteService:
    """Build a NoteService from the configured cipher and notes settings."""
    return NoteService(
        session,
        cipher=cipher or get_content_cipher(),
        config=get_app_config().notes,
    )


async def get_note_service(
    db: DbSession,
    cipher: Annotated[ContentCipher, Depends(get_content_cipher)],
) -> NoteService:
    """Provide a NoteService bound to the request's database session."""
    return create_note_service(db, cipher)


NoteServiceDep = Annotated[NoteService, Depends(get_note_service)]
