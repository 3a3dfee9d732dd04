"""Schemas package - re-exports note models for convenient imports."""

from shared_notes.schemas.notes import (
    CreateNoteResponse,
    DeleteNoteResponse,
    ErrorResponse,
    NoteMutation,
    NotePayload,
    NoteView,
    StoredNote,
    UpdateNoteResponse,
)

__all__ = [
    "CreateNoteResponse",
    "DeleteNoteResponse",
    "ErrorResponse",
    "NoteMutation",
    "NotePayload",
    "NoteView",
    "StoredNote",
    "UpdateNoteResponse",
]
