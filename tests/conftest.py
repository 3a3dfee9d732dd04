"""
Pytest Configuration and Fixtures

Shared fixtures for repository, API and client tests. Everything runs
in-process against MemoryBlobStore — no Redis or network required.
"""

import os

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Test environment defaults — MUST be before any shared_notes imports.
#
# 1. Load .env first so local overrides are visible.
# 2. setdefault fills in anything still missing so the app boots on the
#    in-memory store instead of trying to reach Redis.
# ---------------------------------------------------------------------------
load_dotenv()  # .env → os.environ (no-op if file is missing)

_test_env = {
    "STORE_BACKEND": "memory",
    "LOG_LEVEL": "WARNING",
    "SYNC_MODE": "shared",
}
for _key, _value in _test_env.items():
    os.environ.setdefault(_key, _value)

# ---------------------------------------------------------------------------
# Imports (safe now that env vars are set)
# ---------------------------------------------------------------------------
from collections.abc import Callable, Generator  # noqa: E402
from pathlib import Path  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from shared_notes.api.v1.notes import get_store  # noqa: E402
from shared_notes.client.storage import LocalStorage  # noqa: E402
from shared_notes.main import app  # noqa: E402
from shared_notes.repositories.notes import NoteRepository  # noqa: E402
from shared_notes.storage.blob_store import MemoryBlobStore  # noqa: E402

API_PATH = "/api/notes"
API_URL = f"http://testserver{API_PATH}"


class FakeClock:
    """Deterministic millisecond clock advancing on every read."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def store() -> MemoryBlobStore:
    """Fresh in-memory blob store."""
    return MemoryBlobStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_repo(store: MemoryBlobStore, clock: FakeClock) -> Callable[..., NoteRepository]:
    """Factory for repositories over the shared test store, with custom limits."""

    def _make(**kwargs) -> NoteRepository:
        kwargs.setdefault("clock", clock)
        return NoteRepository(store, **kwargs)

    return _make


@pytest.fixture
def repo(make_repo: Callable[..., NoteRepository]) -> NoteRepository:
    """Repository with the default limits (2000 / 350000 / 500 / 50)."""
    return make_repo()


@pytest.fixture
def override_store(store: MemoryBlobStore) -> Generator[MemoryBlobStore, None, None]:
    """Route the app's store dependency to the test store."""
    app.dependency_overrides[get_store] = lambda: store
    yield store
    app.dependency_overrides.clear()


@pytest.fixture
def api_client(override_store: MemoryBlobStore) -> Generator[TestClient, None, None]:
    """
    TestClient bound to the app (lifespan included).

    The lifespan opens its own memory store; requests use ``override_store``.
    """
    with TestClient(app) as client:
        yield client


@pytest.fixture
def local_storage(tmp_path: Path) -> LocalStorage:
    """Client-side storage isolated per test."""
    return LocalStorage(tmp_path / "state")
