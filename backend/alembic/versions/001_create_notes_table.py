"""Create notes table

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the `notes` table with its list-order index and, on
       PostgreSQL, the weighted full-text GIN index used by note search.

Rollback: downgrade() drops the table entirely (destructive, all data is lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from jotter.search import NOTE_SEARCH_INDEX, search_document

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "notes",
        sa.Column(
            "id",
            sa.Uuid(as_uuid=True),
            nullable=False,
            comment="Unique note identifier",
        ),
        sa.Column(
            "subject",
            sa.String(100),
            nullable=False,
            comment="Note title",
        ),
        sa.Column(
            "sub_header",
            sa.String(150),
            nullable=False,
            server_default=sa.text("''"),
            comment="Optional subtitle; empty string when absent",
        ),
        sa.Column(
            "content",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
            comment="Bullet points, in display order",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this note was created (UTC)",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this note was last modified (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index(
        "idx_notes_created_at",
        "notes",
        [sa.text("created_at DESC")],
    )

    if op.get_bind().dialect.name == "postgresql":
        columns = {
            "subject": sa.column("subject", sa.String),
            "sub_header": sa.column("sub_header", sa.String),
            "content": sa.column("content", postgresql.JSONB),
        }
        op.create_index(
            NOTE_SEARCH_INDEX.name,
            "notes",
            [search_document(columns)],
            postgresql_using="gin",
        )


def downgrade() -> None:
    """Drop the notes table and its indexes. All note data is lost."""
    if op.get_bind().dialect.name == "postgresql":
        op.drop_index(NOTE_SEARCH_INDEX.name, table_name="notes")
    op.drop_index("idx_notes_created_at", table_name="notes")
    op.drop_table("notes")
