"""
Client Local Storage

Best-effort JSON key/value persistence for the client: one file per key in a
state directory. Mirrors browser localStorage semantics: unreadable entries
load as the caller's default and failed writes are logged, not raised.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def _atomic_write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)
        f.flush()
        os.fsync(f.fileno())
    tmp_path.replace(path)


class LocalStorage:
    """
    Directory-backed key/value store for client state.

    Usage::

        storage = LocalStorage(Path("~/.shared-notes").expanduser())
        storage.save("simple-notes-app-edit-tokens", {"abc": "token"})
        tokens = storage.load("simple-notes-app-edit-tokens", {})
    """

    def __init__(self, base_dir: Path | str) -> None:
        self.base_dir = Path(base_dir)

    def _path(self, key: str) -> Path:
        return self.base_dir / f"{_UNSAFE_CHARS.sub('_', key)}.json"

    def load(self, key: str, default: Any) -> Any:
        """Decoded value for ``key``, or ``default`` if missing or unreadable."""
        path = self._path(key)
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return default
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable local entry '%s': %s", key, e)
            return default

    def save(self, key: str, value: Any) -> None:
        """Persist ``value`` under ``key``; write failures are logged and ignored."""
        try:
            _atomic_write_json(self._path(key), value)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Could not save local entry '%s': %s", key, e)

    def remove(self, key: str) -> None:
        """Drop ``key`` if present."""
        self._path(key).unlink(missing_ok=True)
