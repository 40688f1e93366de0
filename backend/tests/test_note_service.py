"""
Notely Backend - Note Service Unit Tests
=========================================

What:  Tests for NoteService CRUD logic.
How:   Uses the mock DB session from conftest.py (no real database).

What we test:
    ✅ list / get / create / update / delete happy paths
    ✅ Missing note raises NotFoundError
    ✅ Empty update raises ValidationError before touching the database
    ✅ Driver failures are wrapped in DatabaseError
"""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

from notely.exceptions import DatabaseError, NotFoundError, ValidationError
from notely.schemas.note import NoteCreate, NoteUpdate
from notely.services.note_service import NoteService


def _scalar_result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _scalars_result(values):
    result = MagicMock()
    result.scalars.return_value.all.return_value = values
    return result


class TestNoteServiceRead:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_list_notes(self, mock_db_session, sample_note):
        mock_db_session.execute.return_value = _scalars_result([sample_note])

        notes = await self.service.list_notes(mock_db_session)

        assert len(notes) == 1
        assert notes[0].id == sample_note.id
        assert notes[0].title == "Groceries"

    @pytest.mark.asyncio
    async def test_list_notes_empty(self, mock_db_session):
        mock_db_session.execute.return_value = _scalars_result([])
        assert await self.service.list_notes(mock_db_session) == []

    @pytest.mark.asyncio
    async def test_list_notes_db_failure(self, mock_db_session):
        mock_db_session.execute.side_effect = RuntimeError("connection reset")

        with pytest.raises(DatabaseError):
            await self.service.list_notes(mock_db_session)

    @pytest.mark.asyncio
    async def test_get_note_found(self, mock_db_session, sample_note):
        mock_db_session.execute.return_value = _scalar_result(sample_note)

        note = await self.service.get_note(mock_db_session, sample_note.id)

        assert note.content == "Milk, eggs, coffee"

    @pytest.mark.asyncio
    async def test_get_note_not_found(self, mock_db_session):
        mock_db_session.execute.return_value = _scalar_result(None)
        missing_id = uuid4()

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_note(mock_db_session, missing_id)

        assert str(missing_id) in exc_info.value.message

    @pytest.mark.asyncio
    async def test_get_note_db_failure(self, mock_db_session):
        mock_db_session.execute.side_effect = RuntimeError("boom")

        with pytest.raises(DatabaseError) as exc_info:
            await self.service.get_note(mock_db_session, uuid4())

        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestNoteServiceWrite:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_create_note(self, mock_db_session):
        now = datetime.now(timezone.utc)

        def _assign_defaults(note):
            # What flush() would do against a real database
            note.id = uuid4()
            note.created_at = now
            note.updated_at = now

        mock_db_session.add.side_effect = _assign_defaults

        note = await self.service.create_note(
            mock_db_session, NoteCreate(title="  Shopping  ", content=" Bread ")
        )

        assert note.title == "Shopping"
        assert note.content == "Bread"
        mock_db_session.add.assert_called_once()
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_note_db_failure(self, mock_db_session):
        mock_db_session.flush.side_effect = RuntimeError("unique violation")

        with pytest.raises(DatabaseError):
            await self.service.create_note(
                mock_db_session, NoteCreate(title="Shopping", content="Bread")
            )

    @pytest.mark.asyncio
    async def test_update_note_partial(self, mock_db_session, sample_note):
        mock_db_session.execute.return_value = _scalar_result(sample_note)

        note = await self.service.update_note(
            mock_db_session, sample_note.id, NoteUpdate(title="Weekly shop")
        )

        assert note.title == "Weekly shop"
        assert note.content == "Milk, eggs, coffee"
        mock_db_session.flush.assert_awaited_once()
        mock_db_session.refresh.assert_awaited_once_with(sample_note)

    @pytest.mark.asyncio
    async def test_update_note_requires_a_field(self, mock_db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.update_note(mock_db_session, uuid4(), NoteUpdate())

        assert exc_info.value.field == "body"
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_note_not_found(self, mock_db_session):
        mock_db_session.execute.return_value = _scalar_result(None)

        with pytest.raises(NotFoundError):
            await self.service.update_note(
                mock_db_session, uuid4(), NoteUpdate(content="New body")
            )

    @pytest.mark.asyncio
    async def test_delete_note(self, mock_db_session, sample_note):
        mock_db_session.execute.return_value = _scalar_result(sample_note)

        await self.service.delete_note(mock_db_session, sample_note.id)

        mock_db_session.delete.assert_awaited_once_with(sample_note)
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_note_not_found(self, mock_db_session):
        mock_db_session.execute.return_value = _scalar_result(None)

        with pytest.raises(NotFoundError):
            await self.service.delete_note(mock_db_session, uuid4())

        mock_db_session.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_note_db_failure(self, mock_db_session, sample_note):
        mock_db_session.execute.return_value = _scalar_result(sample_note)
        mock_db_session.delete = AsyncMock(side_effect=RuntimeError("lock timeout"))

        with pytest.raises(DatabaseError):
            await self.service.delete_note(mock_db_session, sample_note.id)
