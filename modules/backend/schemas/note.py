"""
Note Schemas.

Pydantic schemas for note API request/response validation.

Field names are snake_case in Python and camelCase on the wire
(urlCode, durationInHours, ...). Requests are accepted in either form.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _NoteSchema(BaseModel):
    """Base for note schemas with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class NoteCreate(_NoteSchema):
    """
    Schema for creating a new note.

    The duration range and blank content are checked by the service, which
    reports them as InvalidContentError rather than as a request shape error.
    """

    content: str = Field(
        ...,
        description="Note content (HTML); disallowed markup is stripped",
        examples=["<p>Meet at <b>noon</b></p>"],
    )
    duration_in_hours: int = Field(
        ...,
        description="Hours until the note expires (1-730)",
        examples=[24],
    )
    is_read_only: bool = Field(
        ...,
        description="Reject later edits to the note",
    )
    is_partial_editing_only: bool = Field(
        ...,
        description="Allow only constrained edits to the note",
    )


class NoteUpdate(_NoteSchema):
    """Schema for replacing the content of an existing note."""

    content: str = Field(
        ...,
        description="New note content (HTML)",
    )


class CreateNoteResponse(_NoteSchema):
    """Schema returned when a note is created."""

    url_code: str = Field(description="Public note identifier")
    share_url: str = Field(description="Link that resolves to the note")
    expires_at: datetime = Field(description="Expiration timestamp (UTC)")


class NoteResponse(_NoteSchema):
    """Schema for a note in API responses."""

    url_code: str = Field(description="Public note identifier")
    content: str = Field(description="Decrypted note content")
    expires_at: datetime = Field(description="Expiration timestamp (UTC)")
    created_at: datetime = Field(description="Creation timestamp (UTC)")
    updated_at: datetime = Field(description="Last update timestamp (UTC)")
    is_read_only: bool = Field(description="Whether edits are rejected")
    is_partial_editing_only: bool = Field(description="Whether only constrained edits are allowed")
    decryption_failed: bool = Field(
        default=False,
        description="True when stored content could not be decrypted; content holds a marker",
    )
