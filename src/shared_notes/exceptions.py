"""
Shared Notes Exceptions

Domain errors raised by the note repository and the client sync layer.

Server-side errors carry the HTTP status code the API layer maps them to,
and a human-readable message that is safe to return to callers.
"""

from __future__ import annotations


class NoteError(Exception):
    """
    Base exception for note repository failures.

    Attributes:
        message: Human-readable message returned in the ``error`` field.
        status_code: HTTP status the API layer responds with.
    """

    status_code: int = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NoteValidationError(NoteError):
    """Note payload failed validation (always client-correctable)."""

    status_code = 400


class EmptyNoteError(NoteValidationError):
    """Neither text content nor an image was supplied."""

    def __init__(self) -> None:
        super().__init__("Empty note.")


class ContentTooLongError(NoteValidationError):
    """Trimmed text content exceeds the configured character limit."""

    def __init__(self, max_chars: int) -> None:
        super().__init__(f"Note is too long (max {max_chars} chars).")
        self.max_chars = max_chars


class ImageTooLargeError(NoteValidationError):
    """Image data URL exceeds the configured character limit."""

    def __init__(self, max_chars: int) -> None:
        super().__init__("Image is too large. Please upload a smaller image.")
        self.max_chars = max_chars


class MissingCredentialsError(NoteValidationError):
    """A mutation request omitted the note id or the edit token."""

    def __init__(self) -> None:
        super().__init__("Missing id/token.")


class NoteNotFoundError(NoteError):
    """No note record exists for the requested id."""

    status_code = 404

    def __init__(self, note_id: str) -> None:
        super().__init__("Note not found.")
        self.note_id = note_id


class NoteForbiddenError(NoteError):
    """The supplied edit token does not match the note's token."""

    status_code = 403

    def __init__(self, note_id: str) -> None:
        super().__init__("Forbidden.")
        self.note_id = note_id


# ---------------------------------------------------------------------------
# Client-side errors
# ---------------------------------------------------------------------------


class NotesClientError(Exception):
    """Base exception for failures surfaced by the client sync layer."""


class NotesNetworkError(NotesClientError):
    """The notes API could not be reached."""


class NotesTimeoutError(NotesNetworkError):
    """The request exceeded the client timeout and was cancelled."""


class NotesApiError(NotesClientError):
    """
    The notes API answered with a non-2xx status.

    Attributes:
        status_code: HTTP status returned by the server.
        message: Server-provided ``error`` message, or a generic fallback.
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)
