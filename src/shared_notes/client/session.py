"""
Notes Session State

Explicit state object for note UIs: the current note list, the note being
edited, and a human-readable sync status. Presentation code renders from a
NotesSession instead of ambient module globals, and the periodic refresh
loop lives here so it can honour the "editing" flag.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime

from shared_notes.client.sync import ClientNote, NotesClient
from shared_notes.core.config import settings
from shared_notes.exceptions import EmptyNoteError, NotesClientError

logger = logging.getLogger(__name__)


def format_timestamp(timestamp_ms: int) -> str:
    """Format an epoch-milliseconds timestamp as readable local time."""
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


@dataclass
class NotesSession:
    """
    UI-facing state over a NotesClient.

    Attributes:
        client: Sync layer used for all reads and writes.
        notes: Last list shown to the user.
        editing_note_id: Note currently open in the editor, if any.
        editing_image: Image of the note being edited, kept unless replaced or cleared.
        status: Sync status line ("Synced (3)", "Saving…", ...).
    """

    client: NotesClient
    notes: list[ClientNote] = field(default_factory=list)
    editing_note_id: str | None = None
    editing_image: str | None = None
    status: str = "Idle"

    @property
    def is_editing(self) -> bool:
        return self.editing_note_id is not None

    async def refresh(self, force: bool = False) -> bool:
        """
        Re-fetch the list unless an edit is in progress.

        Returns:
            True if the list was refreshed, False if skipped.
        """
        if self.is_editing and not force:
            return False
        if force:
            self.status = "Syncing…"
        self.notes = await self.client.get_all_notes()
        self.status = f"Synced ({len(self.notes)})"
        return True

    def begin_edit(self, note_id: str) -> ClientNote | None:
        """Open ``note_id`` for editing; refused for notes this client does not own."""
        if not self.client.can_edit(note_id):
            return None
        note = next((n for n in self.notes if n.id == note_id), None)
        if note is not None:
            self.editing_note_id = note_id
            self.editing_image = note.image_data_url
        return note

    def cancel_edit(self) -> None:
        self.editing_note_id = None
        self.editing_image = None

    async def save(
        self,
        content: str | None,
        image_data_url: str | None = None,
        *,
        clear_image: bool = False,
    ) -> ClientNote | None:
        """
        Create a note, or update the one being edited.

        When editing, the note's current image is kept unless a new one is
        given or ``clear_image`` is set.

        Returns:
            The saved note, or None if the client refused (no edit token).

        Raises:
            EmptyNoteError: Neither text nor image supplied.
            NotesClientError: The write failed; status is set to offline.
        """
        text = (content or "").strip()
        if self.editing_note_id and not image_data_url and not clear_image:
            image_data_url = self.editing_image
        if not text and not image_data_url:
            raise EmptyNoteError()

        self.status = "Saving…"
        try:
            if self.editing_note_id:
                note = await self.client.update_note(self.editing_note_id, text, image_data_url)
                if note is not None:
                    self.cancel_edit()
            else:
                note = await self.client.create_note(text, image_data_url)
        except NotesClientError:
            self.status = "Offline (showing cached notes)"
            raise

        await self.refresh(force=True)
        return note

    async def remove(self, note_id: str) -> bool:
        """
        Delete a note this client owns and refresh the list.

        Raises:
            NotesClientError: The delete failed; status is set to offline.
        """
        if not self.client.can_edit(note_id):
            return False

        self.status = "Deleting…"
        try:
            deleted = await self.client.delete_note(note_id)
        except NotesClientError:
            self.status = "Offline (cached)"
            raise
        if not deleted:
            return False

        if self.editing_note_id == note_id:
            self.cancel_edit()
        await self.refresh(force=True)
        return True

    async def auto_refresh(
        self,
        interval: float | None = None,
        stop_event: asyncio.Event | None = None,
    ) -> None:
        """
        Refresh periodically until ``stop_event`` is set (or the task is cancelled).

        Ticks are skipped while a note is being edited.
        """
        interval = interval or settings.REFRESH_INTERVAL
        stop_event = stop_event or asyncio.Event()
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                refreshed = await self.refresh(force=False)
                if not refreshed:
                    logger.debug("Auto-refresh skipped while editing %s", self.editing_note_id)
