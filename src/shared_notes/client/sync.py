"""
Notes Client Sync Layer

Async CRUD interface over the shared notes API for UIs and the CLI.

Design:
    - Async HTTP calls via httpx, each bounded by a timeout (12 s default).
    - Graceful degradation on reads: get_all_notes() falls back to the last
      cached list instead of raising.
    - Ownership is a local token map: only notes created by this client
      (and therefore holding a token) can be updated or deleted.
    - Write failures follow the configured SyncMode, never a mix of both.
"""

from __future__ import annotations

import asyncio
import json
import logging
import secrets
import time
from enum import Enum
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError

from shared_notes.client.storage import LocalStorage
from shared_notes.core.config import settings
from shared_notes.exceptions import (
    ContentTooLongError,
    EmptyNoteError,
    ImageTooLargeError,
    NotesApiError,
    NotesClientError,
    NotesNetworkError,
    NotesTimeoutError,
)
from shared_notes.schemas.notes import NoteView

logger = logging.getLogger(__name__)

CACHE_KEY = "simple-notes-app-cache-notes"
TOKENS_KEY = "simple-notes-app-edit-tokens"
LOCAL_NOTES_KEY = "simple-notes-app-local-notes"

LOCAL_ID_PREFIX = "local_"


class SyncMode(str, Enum):
    """
    Client behaviour when a write cannot reach the server.

    SHARED: failures raise to the caller.
    LOCAL_FALLBACK: an offline create becomes a device-local note, flagged
        ``local=True``. Local notes never reach the server.
    """

    SHARED = "shared"
    LOCAL_FALLBACK = "local-fallback"


class ClientNote(NoteView):
    """A note as seen by the client; ``local`` marks device-only notes."""

    local: bool = False


class NotesClient:
    """
    Async notes API client with local cache and edit-token map.

    Usage::

        client = NotesClient("http://localhost:8000/api/notes", LocalStorage(".state"))
        notes = await client.get_all_notes()
        note = await client.create_note("hello")
        if client.can_edit(note.id):
            await client.update_note(note.id, "bye")
    """

    def __init__(
        self,
        api_url: str | None = None,
        storage: LocalStorage | None = None,
        *,
        timeout: float | None = None,
        mode: SyncMode | str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_url: Notes endpoint URL (default from config).
            storage: Local persistence (default: CLIENT_STATE_DIR).
            timeout: Per-request timeout in seconds (default from config).
            mode: Write failure policy (default from config).
            transport: Custom httpx transport, e.g. ``httpx.MockTransport``.
        """
        self._api_url = api_url or settings.API_URL
        self.storage = storage or LocalStorage(Path(settings.CLIENT_STATE_DIR).expanduser())
        self._timeout = timeout or settings.CLIENT_TIMEOUT
        self.mode = SyncMode(mode or settings.SYNC_MODE)
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_all_notes(self) -> list[ClientNote]:
        """
        Fetch the shared list, refreshing the local cache.

        On any failure (network, timeout, non-2xx, unexpected payload) the
        last cached list is returned instead; this method never raises.
        """
        try:
            data = await self._request("GET")
            if not isinstance(data, list):
                raise NotesApiError(200, "Unexpected list payload")
            notes = [ClientNote.model_validate(item) for item in data]
        except (NotesClientError, ValidationError) as e:
            logger.warning("Falling back to cached notes: %s", e)
            return self._with_local(self._cached_notes())

        self.storage.save(CACHE_KEY, [note.model_dump(by_alias=True) for note in notes])
        return self._with_local(notes)

    async def create_note(
        self, content: str | None, image_data_url: str | None = None
    ) -> ClientNote | None:
        """
        Create a shared note and remember its edit token.

        Returns:
            The created note, or None if the server reply lacked note/token.

        Raises:
            NotesApiError: Server rejected the note (e.g. 400 validation).
            NotesNetworkError: Server unreachable (SHARED mode only).
        """
        payload = {"content": content or "", "imageDataUrl": image_data_url or None}
        try:
            data = await self._request("POST", payload)
        except NotesNetworkError as e:
            if self.mode is not SyncMode.LOCAL_FALLBACK:
                raise
            logger.warning("Shared API unavailable, writing local note: %s", e)
            return self._create_local(content, image_data_url)

        if not isinstance(data, dict) or not data.get("note") or not data.get("token"):
            return None
        note = ClientNote.model_validate(data["note"])
        self._set_token(note.id, str(data["token"]))
        return note

    async def update_note(
        self, note_id: str, content: str | None, image_data_url: str | None = None
    ) -> ClientNote | None:
        """
        Update a note this client owns.

        Returns:
            The updated note, or None without any network call when this
            client holds no token for ``note_id``.
        """
        if self._is_local(note_id):
            return self._update_local(note_id, content, image_data_url)

        token = self._get_token(note_id)
        if not token:
            return None

        payload = {
            "id": note_id,
            "token": token,
            "content": content or "",
            "imageDataUrl": image_data_url or None,
        }
        data = await self._request("PUT", payload)
        if isinstance(data, dict) and data.get("note"):
            return ClientNote.model_validate(data["note"])
        return None

    async def delete_note(self, note_id: str) -> bool:
        """
        Delete a note this client owns.

        Returns:
            True once the server confirms; False without a network call when
            no token is held, or if the server reply was not ``{ok: true}``.
        """
        if self._is_local(note_id):
            return self._delete_local(note_id)

        token = self._get_token(note_id)
        if not token:
            return False

        data = await self._request("DELETE", {"id": note_id, "token": token})
        if isinstance(data, dict) and data.get("ok"):
            self._delete_token(note_id)
            return True
        return False

    def can_edit(self, note_id: str) -> bool:
        """True iff this client holds an edit token (or owns the local note)."""
        return bool(self._get_token(note_id)) or self._is_local(note_id)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _request(self, method: str, payload: dict[str, Any] | None = None) -> Any:
        """
        Send one JSON request and decode the reply.

        The timeout bounds the whole exchange (connect, send, receive), not
        each network step separately.

        Raises:
            NotesTimeoutError: Timeout elapsed; the request was cancelled.
            NotesNetworkError: Transport-level failure.
            NotesApiError: Non-2xx status or undecodable body.
        """
        try:
            async with asyncio.timeout(self._timeout):
                async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                    response = await client.request(method, self._api_url, json=payload)
        except (TimeoutError, httpx.TimeoutException) as e:
            raise NotesTimeoutError(f"{method} timed out after {self._timeout}s") from e
        except httpx.TransportError as e:
            raise NotesNetworkError(f"{method} failed: {type(e).__name__}: {e}") from e

        try:
            data = response.json() if response.content else None
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise NotesApiError(response.status_code, "Invalid response from server") from e

        if not response.is_success:
            message = data.get("error") if isinstance(data, dict) else None
            raise NotesApiError(
                response.status_code, message or f"Request failed ({response.status_code})"
            )
        return data

    # ------------------------------------------------------------------
    # Token map
    # ------------------------------------------------------------------

    def _tokens(self) -> dict[str, str]:
        tokens = self.storage.load(TOKENS_KEY, {})
        return tokens if isinstance(tokens, dict) else {}

    def _get_token(self, note_id: str) -> str | None:
        return self._tokens().get(note_id) or None

    def _set_token(self, note_id: str, token: str) -> None:
        tokens = self._tokens()
        tokens[note_id] = token
        self.storage.save(TOKENS_KEY, tokens)

    def _delete_token(self, note_id: str) -> None:
        tokens = self._tokens()
        tokens.pop(note_id, None)
        self.storage.save(TOKENS_KEY, tokens)

    # ------------------------------------------------------------------
    # Cache and local notes
    # ------------------------------------------------------------------

    def _load_notes(self, key: str) -> list[ClientNote]:
        raw = self.storage.load(key, [])
        if not isinstance(raw, list):
            return []
        notes: list[ClientNote] = []
        for item in raw:
            try:
                notes.append(ClientNote.model_validate(item))
            except ValidationError:
                logger.warning("Skipping unreadable note in local entry '%s'", key)
        return notes

    def _cached_notes(self) -> list[ClientNote]:
        return self._load_notes(CACHE_KEY)

    def _local_notes(self) -> list[ClientNote]:
        if self.mode is not SyncMode.LOCAL_FALLBACK:
            return []
        return self._load_notes(LOCAL_NOTES_KEY)

    def _save_local_notes(self, notes: list[ClientNote]) -> None:
        self.storage.save(LOCAL_NOTES_KEY, [note.model_dump(by_alias=True) for note in notes])

    def _with_local(self, notes: list[ClientNote]) -> list[ClientNote]:
        return [*self._local_notes(), *notes]

    def _is_local(self, note_id: str) -> bool:
        return note_id.startswith(LOCAL_ID_PREFIX) and any(
            note.id == note_id for note in self._local_notes()
        )

    @staticmethod
    def _validate_local(
        content: str | None, image_data_url: str | None
    ) -> tuple[str, str | None]:
        """Apply the server's payload rules to a device-local note."""
        text = (content or "").strip()
        image = image_data_url or None
        if not text and not image:
            raise EmptyNoteError()
        if len(text) > settings.MAX_CONTENT_CHARS:
            raise ContentTooLongError(settings.MAX_CONTENT_CHARS)
        if image and len(image) > settings.MAX_IMAGE_DATAURL_CHARS:
            raise ImageTooLargeError(settings.MAX_IMAGE_DATAURL_CHARS)
        return text, image

    def _create_local(self, content: str | None, image_data_url: str | None) -> ClientNote:
        text, image = self._validate_local(content, image_data_url)
        now = int(time.time() * 1000)
        note = ClientNote(
            id=f"{LOCAL_ID_PREFIX}{now}_{secrets.token_hex(4)}",
            content=text,
            image_data_url=image,
            created_at=now,
            updated_at=now,
            local=True,
        )
        self._save_local_notes([note, *self._local_notes()])
        return note

    def _update_local(
        self, note_id: str, content: str | None, image_data_url: str | None
    ) -> ClientNote | None:
        text, image = self._validate_local(content, image_data_url)
        notes = self._local_notes()
        for i, note in enumerate(notes):
            if note.id == note_id:
                notes[i] = note.model_copy(
                    update={
                        "content": text,
                        "image_data_url": image,
                        "updated_at": max(int(time.time() * 1000), note.updated_at + 1),
                    }
                )
                self._save_local_notes(notes)
                return notes[i]
        return None

    def _delete_local(self, note_id: str) -> bool:
        notes = self._local_notes()
        remaining = [note for note in notes if note.id != note_id]
        if len(remaining) == len(notes):
            return False
        self._save_local_notes(remaining)
        return True
