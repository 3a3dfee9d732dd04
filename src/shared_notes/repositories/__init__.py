"""Repositories package."""

from shared_notes.repositories.notes import INDEX_KEY, NOTE_PREFIX, NoteRepository

__all__ = [
    "INDEX_KEY",
    "NOTE_PREFIX",
    "NoteRepository",
]
