"""
Note Schemas

Pydantic models for the notes API request/response cycle and for the
records persisted in the blob store.

Wire format is camelCase (``imageDataUrl``, ``createdAt``); Python code uses
snake_case attributes. ``StoredNote`` is the only model carrying the edit
token and is never returned by the API.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing to camelCase while accepting either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _coerce_text(value: Any) -> str | None:
    """Loosely coerce JSON scalars to text; ``None`` passes through."""
    if value is None or isinstance(value, str):
        return value
    return str(value)


# ---------------------------------------------------------------------------
# Note records
# ---------------------------------------------------------------------------


class NoteView(CamelModel):
    """
    Sanitized note representation (edit token stripped).

    This is the only note shape that crosses the HTTP boundary.
    """

    id: str
    content: str = ""
    image_data_url: str | None = None
    created_at: int = Field(ge=0, description="Creation time, epoch milliseconds")
    updated_at: int = Field(ge=0, description="Last update time, epoch milliseconds")


class StoredNote(NoteView):
    """Note record as persisted under ``note:<id>``, including its edit token."""

    edit_token: str

    def sanitized(self) -> NoteView:
        """Return the public view of this note."""
        return NoteView.model_validate(self.model_dump(exclude={"edit_token"}))


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class NotePayload(CamelModel):
    """Body for POST: ``{content?, imageDataUrl?}``."""

    content: str | None = None
    image_data_url: str | None = None

    @field_validator("content", mode="before")
    @classmethod
    def _to_text(cls, value: Any) -> str | None:
        return _coerce_text(value)

    @field_validator("image_data_url", mode="before")
    @classmethod
    def _image_to_text(cls, value: Any) -> str | None:
        # Falsy values (false, 0, "") mean "no image"
        return _coerce_text(value) if value else None


class NoteMutation(NotePayload):
    """Body for PUT/DELETE: ``{id, token, content?, imageDataUrl?}``."""

    id: str | None = None
    token: str | None = None

    @field_validator("id", "token", mode="before")
    @classmethod
    def _credentials_to_text(cls, value: Any) -> str | None:
        return _coerce_text(value)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class CreateNoteResponse(BaseModel):
    """POST response; ``token`` is returned exactly once, to the creator."""

    ok: bool = True
    note: NoteView
    token: str


class UpdateNoteResponse(BaseModel):
    """PUT response."""

    ok: bool = True
    note: NoteView


class DeleteNoteResponse(BaseModel):
    """DELETE response (same body whether or not the note existed)."""

    ok: bool = True


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    error: str
