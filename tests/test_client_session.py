"""
Notes Session Tests

Verifies the UI state object: refresh gating while editing, save/remove
flows, status lines and the periodic auto-refresh loop.
"""

from __future__ import annotations

import asyncio
from datetime import datetime

import httpx
import pytest

from shared_notes.client.session import NotesSession, format_timestamp
from shared_notes.client.storage import LocalStorage
from shared_notes.client.sync import NotesClient, SyncMode
from shared_notes.exceptions import EmptyNoteError, NotesNetworkError
from shared_notes.main import app
from shared_notes.storage.blob_store import MemoryBlobStore

API_URL = "http://testserver/api/notes"


@pytest.fixture
def session(override_store: MemoryBlobStore, local_storage: LocalStorage) -> NotesSession:
    """Session over a client wired into the ASGI app."""
    client = NotesClient(
        API_URL, local_storage, mode=SyncMode.SHARED, transport=httpx.ASGITransport(app=app)
    )
    return NotesSession(client)


class CountingClient(NotesClient):
    """NotesClient stub counting list fetches, never touching the network."""

    def __init__(self, storage: LocalStorage) -> None:
        super().__init__(API_URL, storage, transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[])))
        self.fetches = 0

    async def get_all_notes(self):
        self.fetches += 1
        return []


# ---------------------------------------------------------------------------
# Save / edit / remove
# ---------------------------------------------------------------------------


class TestSessionFlows:
    """Create, edit and delete through the session."""

    @pytest.mark.asyncio
    async def test_save_creates_and_refreshes(self, session: NotesSession) -> None:
        note = await session.save("hello")

        assert note is not None
        assert [n.id for n in session.notes] == [note.id]
        assert session.status == "Synced (1)"

    @pytest.mark.asyncio
    async def test_save_rejects_empty_input(self, session: NotesSession) -> None:
        with pytest.raises(EmptyNoteError):
            await session.save("   ", None)

    @pytest.mark.asyncio
    async def test_edit_flow_updates_note(self, session: NotesSession) -> None:
        note = await session.save("draft")

        assert session.begin_edit(note.id) is not None
        assert session.is_editing

        updated = await session.save("final")

        assert updated.id == note.id
        assert updated.content == "final"
        assert not session.is_editing
        assert session.notes[0].content == "final"

    @pytest.mark.asyncio
    async def test_edit_keeps_attached_image(self, session: NotesSession) -> None:
        image = "data:image/png;base64,AAAA"
        note = await session.save("caption", image)

        session.begin_edit(note.id)
        updated = await session.save("new caption")

        assert updated.image_data_url == image
        assert not session.is_editing

    @pytest.mark.asyncio
    async def test_edit_can_clear_image(self, session: NotesSession) -> None:
        note = await session.save("caption", "data:image/png;base64,AAAA")

        session.begin_edit(note.id)
        updated = await session.save("caption", clear_image=True)

        assert updated.image_data_url is None

    @pytest.mark.asyncio
    async def test_begin_edit_refused_without_token(self, session: NotesSession) -> None:
        note = await session.save("mine")
        session.client.storage.remove("simple-notes-app-edit-tokens")

        assert session.begin_edit(note.id) is None
        assert not session.is_editing

    @pytest.mark.asyncio
    async def test_remove_clears_editor(self, session: NotesSession) -> None:
        note = await session.save("bye")
        session.begin_edit(note.id)

        assert await session.remove(note.id) is True

        assert session.notes == []
        assert not session.is_editing

    @pytest.mark.asyncio
    async def test_remove_refused_without_token(self, session: NotesSession) -> None:
        assert await session.remove("not-mine") is False

    @pytest.mark.asyncio
    async def test_failed_save_sets_offline_status(self, local_storage: LocalStorage) -> None:
        def offline(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("offline", request=request)

        client = NotesClient(API_URL, local_storage, transport=httpx.MockTransport(offline))
        session = NotesSession(client)

        with pytest.raises(NotesNetworkError):
            await session.save("hello")
        assert session.status.startswith("Offline")


# ---------------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------------


class TestRefresh:
    """Refresh gating and the background loop."""

    @pytest.mark.asyncio
    async def test_refresh_skipped_while_editing(self, local_storage: LocalStorage) -> None:
        client = CountingClient(local_storage)
        session = NotesSession(client, editing_note_id="n1")

        assert await session.refresh() is False
        assert client.fetches == 0

        assert await session.refresh(force=True) is True
        assert client.fetches == 1

    @pytest.mark.asyncio
    async def test_auto_refresh_ticks_until_stopped(self, local_storage: LocalStorage) -> None:
        client = CountingClient(local_storage)
        session = NotesSession(client)
        stop = asyncio.Event()

        task = asyncio.create_task(session.auto_refresh(interval=0.01, stop_event=stop))
        await asyncio.sleep(0.1)
        stop.set()
        await asyncio.wait_for(task, timeout=1)

        assert client.fetches >= 2

    @pytest.mark.asyncio
    async def test_auto_refresh_pauses_while_editing(self, local_storage: LocalStorage) -> None:
        client = CountingClient(local_storage)
        session = NotesSession(client, editing_note_id="n1")
        stop = asyncio.Event()

        task = asyncio.create_task(session.auto_refresh(interval=0.01, stop_event=stop))
        await asyncio.sleep(0.05)
        stop.set()
        await asyncio.wait_for(task, timeout=1)

        assert client.fetches == 0


def test_format_timestamp() -> None:
    ts = 1_700_000_000_000
    expected = datetime.fromtimestamp(ts / 1000).strftime("%Y-%m-%d %H:%M:%S")

    assert format_timestamp(ts) == expected
