"""
Notely Backend - Note Service
==============================

What:  CRUD operations for notes, independent of HTTP concerns.
How:   Runs SQLAlchemy statements on the session it is given and converts
       ORM rows into response schemas.
Who:   Called by the notes route handlers.

Error Handling:
    Missing rows become NotFoundError. Any other failure is logged with
    context and wrapped in DatabaseError so driver details never reach the
    client. Our own exceptions pass through untouched.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from notely.exceptions import NotelyError, NotFoundError, DatabaseError, ValidationError
from notely.models.note import Note
from notely.schemas.note import NoteCreate, NoteResponse, NoteUpdate

logger = logging.getLogger(__name__)


class NoteService:
    """
    Business logic layer for note operations.

    The service holds no state; every call receives its session.
    """

    async def list_notes(self, db: AsyncSession) -> List[NoteResponse]:
        """Return every note, newest first."""
        try:
            result = await db.execute(select(Note).order_by(desc(Note.created_at)))
            notes = result.scalars().all()
            return [NoteResponse.model_validate(note) for note in notes]
        except Exception as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

    async def get_note(self, db: AsyncSession, note_id: UUID) -> NoteResponse:
        """
        Retrieve a single note by ID.

        Raises:
            NotFoundError: Note with given ID does not exist (→ 404)
            DatabaseError: Query execution failed (→ 500)
        """
        note = await self._load(db, note_id, action="fetching")
        return NoteResponse.model_validate(note)

    async def create_note(self, db: AsyncSession, payload: NoteCreate) -> NoteResponse:
        """
        Insert a new note.

        flush() assigns the primary key and defaults without committing;
        the session dependency commits after the response is built.
        """
        try:
            note = Note(title=payload.title, content=payload.content)
            db.add(note)
            await db.flush()
            logger.info("Note created: %s", note.id)
            return NoteResponse.model_validate(note)
        except Exception as e:
            logger.error("Database error creating note: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the note. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

    async def update_note(
        self, db: AsyncSession, note_id: UUID, payload: NoteUpdate
    ) -> NoteResponse:
        """
        Apply a partial update: only fields present in the payload change.

        Raises:
            ValidationError: Neither title nor content was provided (→ 400)
            NotFoundError: Note with given ID does not exist (→ 404)
        """
        changes = payload.model_dump(exclude_none=True)
        if not changes:
            raise ValidationError(
                message="At least one of 'title' or 'content' must be provided.",
                field="body",
            )

        note = await self._load(db, note_id, action="updating")
        try:
            for field, value in changes.items():
                setattr(note, field, value)
            await db.flush()
            await db.refresh(note)
            logger.info("Note updated: %s (%s)", note_id, ", ".join(sorted(changes)))
            return NoteResponse.model_validate(note)
        except Exception as e:
            logger.error("Database error updating note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not update the note. Please try again.",
                context={"note_id": str(note_id)},
            ) from e

    async def delete_note(self, db: AsyncSession, note_id: UUID) -> None:
        """
        Remove a note permanently.

        Raises:
            NotFoundError: Note with given ID does not exist (→ 404)
        """
        note = await self._load(db, note_id, action="deleting")
        try:
            await db.delete(note)
            await db.flush()
            logger.info("Note deleted: %s", note_id)
        except Exception as e:
            logger.error("Database error deleting note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not delete the note. Please try again.",
                context={"note_id": str(note_id)},
            ) from e

    async def _load(self, db: AsyncSession, note_id: UUID, action: str) -> Note:
        try:
            result = await db.execute(select(Note).where(Note.id == note_id))
            note = result.scalar_one_or_none()
        except NotelyError:
            raise
        except Exception as e:
            logger.error("Database error %s note %s: %s", action, note_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the note. Please try again.",
                context={"note_id": str(note_id)},
            ) from e

        if note is None:
            raise NotFoundError(resource="note", resource_id=str(note_id))
        return note


note_service = NoteService()
