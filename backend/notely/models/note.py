"""
Notely Backend - Note SQLAlchemy Model
=======================================

What:  ORM model representing the `notes` table in PostgreSQL.
Who:   Used by NoteService for CRUD operations and by Alembic for schema management.

Table Design:
    - UUID primary key: non-sequential, generated server-side or in Python
    - title: VARCHAR(100), the API enforces 3-100 characters after trimming
    - content: TEXT, non-empty after trimming
    - created_at / updated_at: UTC with timezone; updated_at moves on every write

    Index on created_at DESC serves the default listing (newest first).
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID, TIMESTAMP

from notely.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A single user note.

    Lifecycle:
        1. Created by POST /api/notes
        2. Title and/or content replaced by PUT /api/notes/{id}
        3. Removed by DELETE /api/notes/{id} (hard delete)
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
        comment="Unique note identifier",
    )

    title: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Note title, 3-100 characters",
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Note body, never empty",
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this note was created (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this note was last modified (UTC)",
    )

    __table_args__ = (
        Index("idx_notes_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title='{self.title}')>"
