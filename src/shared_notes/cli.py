"""
Shared Notes Command Line

Thin terminal front end over the client sync layer, plus a ``serve``
command running the API with uvicorn.

Usage:
    $ shared-notes serve --port 8000
    $ shared-notes list
    $ shared-notes add "Buy milk" --image photo.png
    $ shared-notes edit <id> "Buy oat milk"
    $ shared-notes edit <id> --clear-image
    $ shared-notes delete <id>
"""

from __future__ import annotations

import argparse
import asyncio
import base64
import mimetypes
from collections.abc import Sequence
from pathlib import Path

from shared_notes.client.session import NotesSession, format_timestamp
from shared_notes.client.storage import LocalStorage
from shared_notes.client.sync import ClientNote, NotesClient, SyncMode
from shared_notes.core.config import settings
from shared_notes.core.logging import setup_logging
from shared_notes.exceptions import NotesClientError, NoteValidationError

# Keep images small-ish: huge data URLs are slow and hit server limits
MAX_IMAGE_BYTES = 250 * 1024


def read_image_data_url(path: Path) -> str:
    """
    Encode an image file as a ``data:<mime>;base64,...`` URL.

    Raises:
        ValueError: Not an image, or larger than MAX_IMAGE_BYTES.
    """
    mime, _ = mimetypes.guess_type(path.name)
    if not mime or not mime.startswith("image/"):
        raise ValueError(f"Please choose an image file (got '{path.name}').")
    raw = path.read_bytes()
    if len(raw) > MAX_IMAGE_BYTES:
        raise ValueError("Image is too large. Please choose an image smaller than ~250KB.")
    return f"data:{mime};base64,{base64.b64encode(raw).decode('ascii')}"


def render_note(note: ClientNote, editable: bool) -> str:
    """One note as terminal text; ``*`` marks notes this client may edit."""
    marker = "*" if editable else " "
    meta = f"Created: {format_timestamp(note.created_at)}"
    if note.updated_at > note.created_at:
        meta += f" | Updated: {format_timestamp(note.updated_at)}"
    lines = [f"{marker} [{note.id}]{' (local)' if note.local else ''} {meta}"]
    if note.content:
        lines.append(f"    {note.content}")
    if note.image_data_url:
        lines.append(f"    <image {len(note.image_data_url)} chars>")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shared-notes", description="Shared notes client and server")
    parser.add_argument("--api-url", default=settings.API_URL, help="Notes endpoint URL")
    parser.add_argument("--state-dir", default=settings.CLIENT_STATE_DIR, help="Local cache/token directory")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in SyncMode],
        default=settings.SYNC_MODE,
        help="Write failure policy",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the notes API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)

    sub.add_parser("list", help="List latest notes")

    add = sub.add_parser("add", help="Create a note")
    add.add_argument("content", nargs="?", default="")
    add.add_argument("--image", type=Path, help="Attach an image file")

    edit = sub.add_parser("edit", help="Update a note you created")
    edit.add_argument("id")
    edit.add_argument("content", nargs="?", default=None, help="New text (default: keep current)")
    image_group = edit.add_mutually_exclusive_group()
    image_group.add_argument("--image", type=Path, help="Replace the image")
    image_group.add_argument("--clear-image", action="store_true", help="Remove the current image")

    delete = sub.add_parser("delete", help="Delete a note you created")
    delete.add_argument("id")
    return parser


async def run_command(args: argparse.Namespace, client: NotesClient) -> int:
    """Execute one client subcommand; returns the process exit code."""
    session = NotesSession(client)

    if args.command == "list":
        await session.refresh(force=True)
        if not session.notes:
            print("No notes yet. Add your first note!")
        for note in session.notes:
            print(render_note(note, client.can_edit(note.id)))
        print(f"Sync: {session.status}")
        return 0

    image = read_image_data_url(args.image) if getattr(args, "image", None) else None

    if args.command == "add":
        note = await session.save(args.content, image)
        if note is None:
            print("Failed to create note.")
            return 1
        print(render_note(note, True))
        return 0

    if args.command == "edit":
        await session.refresh(force=True)
        current = session.begin_edit(args.id)
        if current is None:
            print("You can only edit notes created on this device.")
            return 1
        content = current.content if args.content is None else args.content
        note = await session.save(content, image, clear_image=args.clear_image)
        if note is None:
            print("You can only edit notes created on this device.")
            return 1
        print(render_note(note, True))
        return 0

    if args.command == "delete":
        if not await session.remove(args.id):
            print("Delete failed (maybe you do not own this note).")
            return 1
        print(f"Deleted {args.id}")
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.command == "serve":
        import uvicorn

        uvicorn.run("shared_notes.main:app", host=args.host, port=args.port)
        return 0

    client = NotesClient(
        args.api_url,
        LocalStorage(Path(args.state_dir).expanduser()),
        mode=args.mode,
    )
    try:
        return asyncio.run(run_command(args, client))
    except (NotesClientError, NoteValidationError, ValueError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
