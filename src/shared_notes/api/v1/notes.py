"""
Notes API Router

Method-based dispatch on a single resource path. The note id and edit token
always travel in the JSON body, never in the URL.

Endpoints (same path):
    GET     — list latest notes
    POST    — create note, returns {ok, note, token}
    PUT     — update note (requires token)
    DELETE  — delete note (requires token, idempotent)
    OPTIONS — empty 204 for preflight compatibility
"""

from __future__ import annotations

import json
import logging
from typing import Any, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from shared_notes.exceptions import MissingCredentialsError, NoteError
from shared_notes.repositories.notes import NoteRepository
from shared_notes.schemas.notes import (
    CreateNoteResponse,
    DeleteNoteResponse,
    ErrorResponse,
    NoteMutation,
    NotePayload,
    NoteView,
    UpdateNoteResponse,
)
from shared_notes.storage.blob_store import BlobStore

logger = logging.getLogger(__name__)

router = APIRouter()

_ERRORS: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Validation failed"},
}


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_store(request: Request) -> BlobStore:
    """FastAPI dependency — the blob store opened by the app lifespan."""
    return request.app.state.store


def get_repository(store: BlobStore = Depends(get_store)) -> NoteRepository:
    """FastAPI dependency — a NoteRepository bound to the app's store."""
    return NoteRepository(store)


async def read_json(request: Request) -> dict[str, Any]:
    """
    Parse the request body leniently.

    Missing, malformed or non-object bodies read as ``{}`` so validation
    falls through to the normal "empty note" / "missing id/token" paths.
    """
    raw = await request.body()
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError):
        logger.debug("Ignoring malformed JSON body on %s", request.method)
        return {}
    return data if isinstance(data, dict) else {}


def _raise_http(exc: NoteError) -> NoReturn:
    raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc


def _credentials(body: NoteMutation) -> tuple[str, str]:
    if not body.id or not body.token:
        raise MissingCredentialsError()
    return body.id, body.token


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("", response_model=list[NoteView], summary="List latest notes")
async def list_notes(repo: NoteRepository = Depends(get_repository)) -> list[NoteView]:
    """Most-recent-first page of sanitized notes (never includes tokens)."""
    return await repo.list()


@router.post("", response_model=CreateNoteResponse, responses=_ERRORS, summary="Create a note")
async def create_note(
    request: Request,
    repo: NoteRepository = Depends(get_repository),
) -> CreateNoteResponse:
    """
    Create a note from ``{content?, imageDataUrl?}``.

    The edit token in the response is the only copy the caller will ever
    receive; it is required for later updates and deletes.
    """
    body = NotePayload.model_validate(await read_json(request))
    try:
        note, token = await repo.create(body.content, body.image_data_url)
    except NoteError as e:
        _raise_http(e)
    return CreateNoteResponse(note=note, token=token)


@router.put(
    "",
    response_model=UpdateNoteResponse,
    responses={
        **_ERRORS,
        403: {"model": ErrorResponse, "description": "Edit token mismatch"},
        404: {"model": ErrorResponse, "description": "Unknown note id"},
    },
    summary="Update a note",
)
async def update_note(
    request: Request,
    repo: NoteRepository = Depends(get_repository),
) -> UpdateNoteResponse:
    """Replace content/image of ``{id, token, content?, imageDataUrl?}``."""
    body = NoteMutation.model_validate(await read_json(request))
    try:
        note_id, token = _credentials(body)
        note = await repo.update(note_id, token, body.content, body.image_data_url)
    except NoteError as e:
        _raise_http(e)
    return UpdateNoteResponse(note=note)


@router.delete(
    "",
    response_model=DeleteNoteResponse,
    responses={
        **_ERRORS,
        403: {"model": ErrorResponse, "description": "Edit token mismatch"},
    },
    summary="Delete a note",
)
async def delete_note(
    request: Request,
    repo: NoteRepository = Depends(get_repository),
) -> DeleteNoteResponse:
    """Delete ``{id, token}``. Unknown ids succeed (idempotent)."""
    body = NoteMutation.model_validate(await read_json(request))
    try:
        note_id, token = _credentials(body)
        await repo.delete(note_id, token)
    except NoteError as e:
        _raise_http(e)
    return DeleteNoteResponse()


@router.options("", status_code=status.HTTP_204_NO_CONTENT, include_in_schema=False)
async def preflight() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT)
