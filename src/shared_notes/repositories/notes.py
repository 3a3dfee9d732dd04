"""
Note Repository

Maps note CRUD operations onto blob store keys and owns consistency between
the recency index and individual note records.

Store layout:
    note:<id>      One StoredNote record per note (includes the edit token).
    notes:index    Ordered list of note ids, most-recent-first, capped.

Consistency:
    The note write and the index write are two independent store operations.
    A crash between them, or two concurrent writers racing on the index, can
    drop or resurrect an index entry. Last write wins on the index value.
"""

from __future__ import annotations

import asyncio
import hmac
import logging
import secrets
import time
import uuid
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from shared_notes.core.config import settings
from shared_notes.exceptions import (
    ContentTooLongError,
    EmptyNoteError,
    ImageTooLargeError,
    NoteForbiddenError,
    NoteNotFoundError,
)
from shared_notes.schemas.notes import NoteView, StoredNote
from shared_notes.storage.blob_store import BlobStore

logger = logging.getLogger(__name__)

INDEX_KEY = "notes:index"
NOTE_PREFIX = "note:"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def note_key(note_id: str) -> str:
    return f"{NOTE_PREFIX}{note_id}"


class NoteRepository:
    """
    Token-gated note CRUD over a BlobStore.

    The repository is the only component writing to the store. Ownership is a
    capability: whoever presents the note's edit token may update or delete
    it.

    Usage::

        repo = NoteRepository(MemoryBlobStore())
        note, token = await repo.create("hello", None)
        await repo.update(note.id, token, "bye", None)
        await repo.delete(note.id, token)
    """

    def __init__(
        self,
        store: BlobStore,
        *,
        max_content_chars: int | None = None,
        max_image_chars: int | None = None,
        max_notes: int | None = None,
        list_limit: int | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self.max_content_chars = max_content_chars or settings.MAX_CONTENT_CHARS
        self.max_image_chars = max_image_chars or settings.MAX_IMAGE_DATAURL_CHARS
        self.max_notes = max_notes or settings.MAX_NOTES
        self.list_limit = list_limit or settings.LIST_LIMIT
        self._clock = clock

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list(self, limit: int | None = None) -> list[NoteView]:
        """
        List the most recent notes in index order.

        Ids whose record is missing or unreadable are skipped silently.

        Args:
            limit: Page size (defaults to the configured list limit).
        """
        ids = (await self.read_index())[: limit or self.list_limit]
        records = await asyncio.gather(*(self._load(note_id) for note_id in ids))
        return [record.sanitized() for record in records if record is not None]

    async def get(self, note_id: str) -> NoteView:
        """
        Fetch one note directly by id, whether or not it is still indexed.

        Raises:
            NoteNotFoundError: If no record exists.
        """
        record = await self._load(note_id)
        if record is None:
            raise NoteNotFoundError(note_id)
        return record.sanitized()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(
        self, content: str | None, image_data_url: str | None
    ) -> tuple[NoteView, str]:
        """
        Validate and persist a new note, then push it onto the index.

        Returns:
            The sanitized note and the raw edit token. The token is not
            retrievable through any other operation.

        Raises:
            NoteValidationError: Empty note, content too long, or image too large.
        """
        text, image = self._validate(content, image_data_url)

        now = self._clock()
        record = StoredNote(
            id=str(uuid.uuid4()),
            content=text,
            image_data_url=image,
            created_at=now,
            updated_at=now,
            edit_token=secrets.token_hex(16),
        )
        await self._save(record)
        await self.push_to_index(record.id)

        logger.info("Note created: %s (chars=%d, image=%s)", record.id, len(text), image is not None)
        return record.sanitized(), record.edit_token

    async def update(
        self,
        note_id: str,
        token: str,
        content: str | None,
        image_data_url: str | None,
    ) -> NoteView:
        """
        Replace a note's content and image.

        ``id``, ``createdAt`` and the edit token are preserved; ``updatedAt``
        moves strictly forward.

        Raises:
            NoteNotFoundError: If no record exists.
            NoteForbiddenError: If ``token`` does not match.
            NoteValidationError: If the new payload is invalid.
        """
        record = await self._load(note_id)
        if record is None:
            raise NoteNotFoundError(note_id)
        self._authorize(record, token)

        text, image = self._validate(content, image_data_url)
        updated = record.model_copy(
            update={
                "content": text,
                "image_data_url": image,
                "updated_at": max(self._clock(), record.updated_at + 1),
            }
        )
        await self._save(updated)

        logger.info("Note updated: %s", note_id)
        return updated.sanitized()

    async def delete(self, note_id: str, token: str) -> None:
        """
        Delete a note and prune it from the index.

        Deleting an unknown id succeeds without error.

        Raises:
            NoteForbiddenError: If the note exists and ``token`` does not match.
        """
        record = await self._load(note_id)
        if record is None:
            logger.debug("Delete of unknown note %s treated as done", note_id)
            return
        self._authorize(record, token)

        await self._store.delete(note_key(note_id))
        await self.remove_from_index(note_id)
        logger.info("Note deleted: %s", note_id)

    # ------------------------------------------------------------------
    # Recency index
    # ------------------------------------------------------------------

    async def read_index(self) -> list[str]:
        """Current index; a missing or malformed value reads as empty."""
        raw = await self._store.get(INDEX_KEY)
        if not isinstance(raw, list):
            if raw is not None:
                logger.warning("Recency index is malformed (%s), treating as empty", type(raw).__name__)
            return []
        return [note_id for note_id in raw if isinstance(note_id, str)]

    async def push_to_index(self, note_id: str) -> list[str]:
        """Move ``note_id`` to the front of the index and truncate to the cap."""
        index = await self.read_index()
        new_index = [note_id, *(x for x in index if x != note_id)][: self.max_notes]
        await self._store.set(INDEX_KEY, new_index)
        return new_index

    async def remove_from_index(self, note_id: str) -> list[str]:
        """Filter ``note_id`` out of the index."""
        index = await self.read_index()
        new_index = [x for x in index if x != note_id]
        await self._store.set(INDEX_KEY, new_index)
        return new_index

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _validate(
        self, content: str | None, image_data_url: str | None
    ) -> tuple[str, str | None]:
        """Normalize a payload: trimmed text, image or None."""
        text = (content or "").strip()
        image = image_data_url or None

        if not text and not image:
            raise EmptyNoteError()
        if len(text) > self.max_content_chars:
            raise ContentTooLongError(self.max_content_chars)
        if image and len(image) > self.max_image_chars:
            raise ImageTooLargeError(self.max_image_chars)
        return text, image

    @staticmethod
    def _authorize(record: StoredNote, token: str) -> None:
        if not hmac.compare_digest(record.edit_token.encode(), (token or "").encode()):
            logger.warning("Rejected edit token for note %s", record.id)
            raise NoteForbiddenError(record.id)

    async def _load(self, note_id: str) -> StoredNote | None:
        raw: Any = await self._store.get(note_key(note_id))
        if raw is None:
            return None
        try:
            return StoredNote.model_validate(raw)
        except ValidationError:
            logger.warning("Skipping unreadable note record %s", note_id)
            return None

    async def _save(self, record: StoredNote) -> None:
        await self._store.set(note_key(record.id), record.model_dump(by_alias=True))
