"""
Integration Test Fixtures.

The real application and services, wired to the test database session
from the root conftest.py and to the fixed-key test cipher.
"""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient, Response
from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.core.config_schema import NotesSchema
from modules.backend.core.database import get_db_session
from modules.backend.core.security import ContentCipher, get_content_cipher
from modules.backend.services.note import NoteService


@pytest.fixture
def note_service(db_session: AsyncSession, cipher: ContentCipher, notes_config: NotesSchema) -> NoteService:
    return NoteService(db_session, cipher=cipher, config=notes_config)


@pytest.fixture
async def client(db_session: AsyncSession, cipher: ContentCipher) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client for the app, sharing the test session.

        async def test_get(client):
            response = await client.get("/api/v1/notes/aB3dE5fG")
    """
    from modules.backend.main import create_app

    async def _session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app = create_app()
    app.dependency_overrides[get_db_session] = _session
    app.dependency_overrides[get_content_cipher] = lambda: cipher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _describe(response: Response) -> str:
    return f"{response.status_code}: {response.text}"


class ApiAssertions:
    """Checks for the ApiResponse / ErrorResponse envelopes."""

    @staticmethod
    def assert_success(response: Response, expected_status: int = 200) -> dict[str, Any]:
        assert response.status_code == expected_status, _describe(response)
        body = response.json()
        assert body["success"] is True, body
        return body

    @staticmethod
    def assert_error(
        response: Response,
        expected_status: int,
        expected_code: str | None = None,
    ) -> dict[str, Any]:
        assert response.status_code == expected_status, _describe(response)
        body = response.json()
        assert body["success"] is False, body
        assert body["error"] is not None, body
        if expected_code is not None:
            assert body["error"]["code"] == expected_code, body["error"]
        return body

    @classmethod
    def assert_validation_error(cls, response: Response, field: str | None = None) -> dict[str, Any]:
        """Request shape errors: 422 with one entry per offending field."""
        body = cls.assert_error(response, 422, "VAL_REQUEST_INVALID")
        if field is not None:
            fields = [e["field"] for e in body["error"]["details"]["validation_errors"]]
            assert any(field in f for f in fields), fields
        return body


@pytest.fixture
def api() -> ApiAssertions:
    return ApiAssertions()
