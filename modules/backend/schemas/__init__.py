# Pydantic schemas package
from modules.backend.schemas.base import (
    ApiResponse,
    ErrorDetail,
    ErrorResponse,
    ResponseMetadata,
)
from modules.backend.schemas.note import (
    CreateNoteResponse,
    NoteCreate,
    NoteResponse,
    NoteUpdate,
)

__all__ = [
    "ApiResponse",
    "CreateNoteResponse",
    "ErrorDetail",
    "ErrorResponse",
    "NoteCreate",
    "NoteResponse",
    "NoteUpdate",
    "ResponseMetadata",
]
