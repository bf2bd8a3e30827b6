"""
Notes API Endpoints.

REST API endpoints for ephemeral notes. Notes are addressed by their
public URL code.
"""

from typing import Annotated

from fastapi import APIRouter, Path

from modules.backend.core.dependencies import NoteServiceDep, RequestId
from modules.backend.schemas.base import ApiResponse
from modules.backend.schemas.note import (
    CreateNoteResponse,
    NoteCreate,
    NoteResponse,
    NoteUpdate,
)

router = APIRouter()

UrlCode = Annotated[
    str,
    Path(min_length=1, max_length=10, description="Public note identifier"),
]


@router.post(
    "",
    response_model=ApiResponse[CreateNoteResponse],
    status_code=201,
    summary="Create a note",
    description="Create an encrypted note that expires after the given number of hours.",
)
async def create_note(
    data: NoteCreate,
    service: NoteServiceDep,
    request_id: RequestId,
) -> ApiResponse[CreateNoteResponse]:
    """Create a new note."""
    created = await service.create_note(data)
    return ApiResponse.of(created, request_id)


@router.get(
    "/{url_code}",
    response_model=ApiResponse[NoteResponse],
    summary="Get a note",
    description="Get a note by URL code. Expired notes are reported as gone.",
)
async def get_note(
    service: NoteServiceDep,
    request_id: RequestId,
    url_code: UrlCode,
) -> ApiResponse[NoteResponse]:
    """Get a note by URL code."""
    note = await service.get_note(url_code)
    return ApiResponse.of(note, request_id)


@router.put(
    "/{url_code}",
    response_model=ApiResponse[NoteResponse],
    summary="Update a note",
    description="Replace the content of a note. Expiration and flags are unchanged.",
)
async def update_note(
    data: NoteUpdate,
    service: NoteServiceDep,
    request_id: RequestId,
    url_code: UrlCode,
) -> ApiResponse[NoteResponse]:
    """Update a note."""
    note = await service.update_note(url_code, data)
    return ApiResponse.of(note, request_id)
