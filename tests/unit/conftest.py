"""
Unit Test Fixtures.

Everything outside the unit under test is mocked; nothing here opens a
database connection.
"""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from modules.backend.models.note import Note


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """
    AsyncSession stand-in.

    add() is synchronous and begin_nested() returns an async context
    manager, as on the real session.
    """
    session = AsyncMock()
    session.add = MagicMock()

    savepoint = MagicMock()
    savepoint.__aenter__ = AsyncMock(return_value=savepoint)
    savepoint.__aexit__ = AsyncMock(return_value=False)
    session.begin_nested = MagicMock(return_value=savepoint)
    return session


@pytest.fixture
def make_note():
    """
    Build detached Note rows with sensible defaults.

        note = make_note(content=cipher.encrypt("<p>hi</p>"), is_read_only=True)
    """
    created = datetime(2026, 1, 1, 12, 0, 0)

    def _make(**overrides) -> Note:
        return Note(
            **{
                "id": "note-1",
                "url_code": "aB3dE5fG",
                "content": "",
                "created_at": created,
                "updated_at": created,
                "expires_at": datetime(2099, 1, 1, 12, 0, 0),
                "is_read_only": False,
                "is_partial_editing_only": False,
                **overrides,
            }
        )

    return _make
