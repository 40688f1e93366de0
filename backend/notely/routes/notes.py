"""
Notely Backend - Notes Route Handlers
======================================

What:  CRUD endpoints for notes under /api/notes.
How:   Validates path/body, delegates to NoteService, wraps the result in the
       {"data", "message"} envelope.
Who:   Called by the browser client.

Route Inventory:
    GET    /api/notes          list all notes (newest first)
    GET    /api/notes/{id}     single note
    POST   /api/notes          create (201)
    PUT    /api/notes/{id}     partial update
    DELETE /api/notes/{id}     delete
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from notely.database import get_db_session
from notely.schemas.note import (
    ErrorResponse,
    MessageResponse,
    NoteCreate,
    NoteEnvelope,
    NoteListEnvelope,
    NoteUpdate,
)
from notely.services.note_service import note_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notes", tags=["Notes"])

_COMMON_ERRORS = {
    429: {"description": "Rate limit exceeded"},
    500: {"description": "Server error", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=NoteListEnvelope,
    responses=_COMMON_ERRORS,
    summary="List all notes",
)
async def list_notes(db: AsyncSession = Depends(get_db_session)) -> NoteListEnvelope:
    notes = await note_service.list_notes(db)
    return NoteListEnvelope(data=notes, message="Notes fetched successfully.")


@router.get(
    "/{note_id}",
    response_model=NoteEnvelope,
    responses={404: {"description": "Note not found", "model": ErrorResponse}, **_COMMON_ERRORS},
    summary="Get a single note by ID",
)
async def get_note(
    note_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> NoteEnvelope:
    """
    Args:
        note_id: UUID path parameter. Malformed IDs are rejected with 400
                 by the request validation handler.
    """
    note = await note_service.get_note(db=db, note_id=note_id)
    return NoteEnvelope(data=note, message="Note fetched successfully.")


@router.post(
    "",
    status_code=201,
    response_model=NoteEnvelope,
    responses={400: {"description": "Invalid note", "model": ErrorResponse}, **_COMMON_ERRORS},
    summary="Create a note",
)
async def create_note(
    payload: NoteCreate,
    db: AsyncSession = Depends(get_db_session),
) -> NoteEnvelope:
    note = await note_service.create_note(db=db, payload=payload)
    return NoteEnvelope(data=note, message="Note created successfully.")


@router.put(
    "/{note_id}",
    response_model=NoteEnvelope,
    responses={
        400: {"description": "Invalid update", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
        **_COMMON_ERRORS,
    },
    summary="Update a note's title and/or content",
)
async def update_note(
    note_id: UUID,
    payload: NoteUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> NoteEnvelope:
    note = await note_service.update_note(db=db, note_id=note_id, payload=payload)
    return NoteEnvelope(data=note, message="Note updated successfully.")


@router.delete(
    "/{note_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Note not found", "model": ErrorResponse}, **_COMMON_ERRORS},
    summary="Delete a note",
)
async def delete_note(
    note_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await note_service.delete_note(db=db, note_id=note_id)
    return MessageResponse(message="Note deleted successfully.")
