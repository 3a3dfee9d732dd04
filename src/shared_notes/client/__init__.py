"""Client package - sync layer, local storage and UI session state."""

from shared_notes.client.session import NotesSession, format_timestamp
from shared_notes.client.storage import LocalStorage
from shared_notes.client.sync import ClientNote, NotesClient, SyncMode

__all__ = [
    "ClientNote",
    "LocalStorage",
    "NotesClient",
    "NotesSession",
    "SyncMode",
    "format_timestamp",
]
