"""
Jotter Backend — Notes Route Handlers
=======================================

What:  CRUD + search endpoints for notes.
How:   Extracts path/query/body data, delegates to NoteService, wraps the
       result in a response envelope. Errors raised by the service are
       turned into `{success: false, error}` responses by the global
       handlers in main.py.

Endpoints:
    GET    /notes            list (optional ?search=)     200
    POST   /notes            create                       201
    GET    /notes/{id}       detail                       200
    PUT    /notes/{id}       partial update               200
    DELETE /notes/{id}       hard delete                  200
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from jotter.database import get_db_session
from jotter.schemas.note import (
    Envelope,
    ErrorEnvelope,
    MessageEnvelope,
    NoteCreate,
    NoteOut,
    NoteUpdate,
)
from jotter.services.note_service import note_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notes", tags=["Notes"])

_BAD_ID = {400: {"description": "Invalid note ID format", "model": ErrorEnvelope}}
_NOT_FOUND = {404: {"description": "Note not found", "model": ErrorEnvelope}}
_SERVER_ERROR = {500: {"description": "Server error", "model": ErrorEnvelope}}


@router.get(
    "",
    response_model=Envelope[List[NoteOut]],
    responses={**_SERVER_ERROR},
    summary="List notes, newest first, or search them",
    description=(
        "Returns every note ordered by creation time (newest first). With `search`, "
        "returns only notes whose subject, subheader, or bullet points match any word "
        "of the search string, most relevant first."
    ),
)
async def list_notes(
    search: Optional[str] = Query(
        default=None,
        description="Full-text search over subject, subheader, and bullet points",
    ),
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[List[NoteOut]]:
    notes = await note_service.list_notes(db=db, search=search)
    return Envelope[List[NoteOut]](data=notes)


@router.post(
    "",
    status_code=201,
    response_model=Envelope[NoteOut],
    responses={
        400: {"description": "Invalid note payload", "model": ErrorEnvelope},
        **_SERVER_ERROR,
    },
    summary="Create a note",
)
async def create_note(
    payload: NoteCreate,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[NoteOut]:
    """
    Create a note from `{subject, subHeader?, content}`.

    A bare string `content` is accepted and stored as a single bullet point.
    """
    note = await note_service.create_note(db=db, payload=payload)
    return Envelope[NoteOut](data=note)


@router.get(
    "/{note_id}",
    response_model=Envelope[NoteOut],
    responses={**_BAD_ID, **_NOT_FOUND, **_SERVER_ERROR},
    summary="Get a single note by ID",
)
async def get_note(
    note_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[NoteOut]:
    # note_id is a plain string so a malformed id reaches the service and
    # becomes a 400 envelope instead of FastAPI's 422.
    note = await note_service.get_note(db=db, note_id=note_id)
    return Envelope[NoteOut](data=note)


@router.put(
    "/{note_id}",
    response_model=Envelope[NoteOut],
    responses={**_BAD_ID, **_NOT_FOUND, **_SERVER_ERROR},
    summary="Update some or all fields of a note",
    description=(
        "Fields omitted from the body keep their stored values. The merged note must "
        "satisfy the same rules as on creation."
    ),
)
async def update_note(
    note_id: str,
    payload: Optional[NoteUpdate] = None,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[NoteOut]:
    # A missing body is an empty update, so an unknown id still gives 404
    changes = payload.changes() if payload is not None else {}
    note = await note_service.update_note(db=db, note_id=note_id, changes=changes)
    return Envelope[NoteOut](data=note)


@router.delete(
    "/{note_id}",
    response_model=MessageEnvelope,
    responses={**_BAD_ID, **_NOT_FOUND, **_SERVER_ERROR},
    summary="Delete a note permanently",
)
async def delete_note(
    note_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> MessageEnvelope:
    await note_service.delete_note(db=db, note_id=note_id)
    return MessageEnvelope(message="Note deleted successfully")
