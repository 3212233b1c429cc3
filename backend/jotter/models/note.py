"""
Jotter Backend — Note SQLAlchemy Model
========================================

What:  ORM model representing the `notes` table.
How:   Inherits from the shared DeclarativeBase; Alembic reads this for migrations.
Who:   Used by NoteService for CRUD and search, and by Alembic.

Table Design:
    - id:          UUID primary key, generated in Python (uuid4) at creation
    - subject:     VARCHAR(100), required
    - sub_header:  VARCHAR(150), empty string when not supplied
    - content:     ordered bullet points as a JSON array (JSONB on PostgreSQL)
    - created_at:  set once at creation (UTC)
    - updated_at:  refreshed on every successful update (UTC)

Indexes:
    idx_notes_created_at   created_at DESC, for the default list order
    idx_notes_search       GIN over the weighted tsvector (PostgreSQL only)
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import JSON, DateTime, Index, String, Uuid, column
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from jotter.database import Base
from jotter.search import NOTE_SEARCH_INDEX, search_document

SUBJECT_MAX_LENGTH = 100
SUB_HEADER_MAX_LENGTH = 150


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A note: subject, optional subheader, and an ordered list of bullet points.

    Lifecycle:
        1. Created by NoteService.create_note (id and timestamps assigned there)
        2. Updated in place by NoteService.update_note (updated_at refreshed)
        3. Hard-deleted by NoteService.delete_note
    """

    __tablename__ = "notes"
    __table_args__ = (
        # Bound to the table here: the expression's first column is the
        # regconfig literal, so SQLAlchemy cannot infer the table from it.
        Index(
            NOTE_SEARCH_INDEX.name,
            search_document({f.column: column(f.column) for f in NOTE_SEARCH_INDEX.fields}),
            postgresql_using="gin",
        ).ddl_if(dialect="postgresql"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique note identifier",
    )

    subject: Mapped[str] = mapped_column(
        String(SUBJECT_MAX_LENGTH),
        nullable=False,
        comment="Note title",
    )

    sub_header: Mapped[str] = mapped_column(
        String(SUB_HEADER_MAX_LENGTH),
        nullable=False,
        default="",
        comment="Optional subtitle; empty string when absent",
    )

    # Order of the list is the order of the bullet points
    content: Mapped[List[str]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        comment="Bullet points, in display order",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        comment="When this note was created (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        comment="When this note was last modified (UTC)",
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, subject='{self.subject}', created_at='{self.created_at}')>"


# ── Indexes ───────────────────────────────────────────────────────────────
Index("idx_notes_created_at", Note.created_at.desc())
