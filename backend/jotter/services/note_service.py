"""
Jotter Backend — Note Service (Business Logic)
================================================

What:  List, search, get, create, update, and delete notes.
How:   Each method takes the request's AsyncSession, validates identifiers and
       payloads BEFORE touching the store, runs one statement (or one locked
       read-modify-write), and returns NoteOut models.
Who:   Called by the route handlers in jotter.routes.notes.

Error Translation:
    malformed id            → InvalidIdentifierError   (no query issued)
    payload rule violated   → ValidationError          (no query issued)
    no row for a valid id   → NotFoundError
    SQLAlchemy / driver     → StoreError with an operation-level message;
                              the original error is logged, not returned

Design Decision:
    NoteService is stateless: it receives the db session for each call.
    Writes are flushed here and committed by get_db_session() when the
    route returns.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jotter.exceptions import InvalidIdentifierError, NotFoundError, StoreError
from jotter.models.note import Note, utcnow
from jotter.schemas.note import NoteFields, NoteOut, validate_note
from jotter.search import build_search, tokenize

logger = logging.getLogger(__name__)


def parse_note_id(note_id: str) -> uuid.UUID:
    """
    Parse a note id, raising InvalidIdentifierError if it is not a UUID.

    Accepts any form uuid.UUID understands (hyphenated, bare hex, braces, urn:uuid:).
    """
    if isinstance(note_id, uuid.UUID):
        return note_id
    try:
        return uuid.UUID(str(note_id).strip())
    except (ValueError, AttributeError, TypeError):
        raise InvalidIdentifierError(identifier=str(note_id))


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _search_columns() -> dict:
    return {"subject": Note.subject, "sub_header": Note.sub_header, "content": Note.content}


class NoteService:
    """
    Business logic layer for note operations.

    Responsibilities:
        - list_notes():  all notes newest first, or ranked search results
        - get_note():    single note by id
        - create_note(): validated insert with server-assigned id/timestamps
        - update_note(): locked shallow merge + re-validation
        - delete_note(): hard delete
    """

    async def list_notes(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
    ) -> List[NoteOut]:
        """
        List notes, optionally filtered and ranked by a full-text search.

        Without a search term (None, "" or whitespace) every note is returned,
        ordered by created_at DESC. With a term, only matching notes are
        returned, ordered by relevance (subject 10, subheader 5, content 1),
        then created_at DESC.

        Raises:
            StoreError: Query execution failed (→ 500)
        """
        query = select(Note)

        if search is not None and search.strip():
            terms = tokenize(search)
            if not terms:
                logger.debug("Search %r has no word tokens; nothing can match", search)
                return []
            dialect = db.get_bind().dialect.name
            condition, rank = build_search(_search_columns(), terms, dialect)
            query = query.where(condition).order_by(desc(rank), desc(Note.created_at))
        else:
            query = query.order_by(desc(Note.created_at))

        try:
            result = await db.execute(query)
            notes = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise StoreError(
                message="Failed to fetch notes",
                context={"error_type": type(e).__name__, "search": search},
            ) from e

        return [NoteOut.model_validate(note) for note in notes]

    async def get_note(self, db: AsyncSession, note_id: str) -> NoteOut:
        """
        Retrieve a single note by id.

        Raises:
            InvalidIdentifierError: id is not a UUID (→ 400, no query issued)
            NotFoundError: no note with that id (→ 404)
            StoreError: query execution failed (→ 500)
        """
        note = await self._load(db, parse_note_id(note_id), "Failed to fetch note")
        return NoteOut.model_validate(note)

    async def create_note(self, db: AsyncSession, payload: Any) -> NoteOut:
        """
        Create a note from a validated record or a raw mapping.

        A mapping goes through validate_note() first, so scalar content is
        coerced and every rule is checked before the insert.

        Raises:
            ValidationError: payload breaks a note rule (→ 400)
            StoreError: insert failed (→ 500)
        """
        fields = payload if isinstance(payload, NoteFields) else validate_note(payload)

        now = utcnow()
        note = Note(
            id=uuid.uuid4(),
            subject=fields.subject,
            sub_header=fields.sub_header,
            content=list(fields.content),
            created_at=now,
            updated_at=now,
        )
        try:
            db.add(note)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating note: %s", str(e), exc_info=True)
            raise StoreError(
                message="Failed to create note",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Note created: %s (%d bullet points)", note.id, len(note.content))
        return NoteOut.model_validate(note)

    async def update_note(
        self,
        db: AsyncSession,
        note_id: str,
        changes: Mapping[str, Any],
    ) -> NoteOut:
        """
        Apply a partial update to a note.

        How:
            1. Parse the id (InvalidIdentifierError before any query)
            2. Load the row with SELECT ... FOR UPDATE where supported
            3. Shallow-merge `changes` over the stored subject/sub_header/content
            4. Re-validate the merged record with the create rules
            5. Write the fields and refresh updated_at

        Args:
            changes: Fields to replace, keyed by attribute name (subject,
                     sub_header, content) or JSON name (subHeader). Other
                     keys are ignored.

        Raises:
            InvalidIdentifierError, NotFoundError, ValidationError, StoreError
        """
        parsed_id = parse_note_id(note_id)
        note = await self._load(db, parsed_id, "Failed to update note", for_update=True)

        merged = {
            "subject": note.subject,
            "sub_header": note.sub_header,
            "content": note.content,
        }
        for key, value in changes.items():
            attr = "sub_header" if key == "subHeader" else key
            if attr in merged:
                merged[attr] = value

        fields = validate_note(merged)

        previous = _as_utc(note.updated_at)
        note.subject = fields.subject
        note.sub_header = fields.sub_header
        note.content = list(fields.content)
        note.updated_at = max(utcnow(), previous)

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating note %s: %s", parsed_id, str(e), exc_info=True)
            raise StoreError(
                message="Failed to update note",
                context={"note_id": str(parsed_id), "error_type": type(e).__name__},
            ) from e

        logger.info("Note updated: %s (fields: %s)", parsed_id, ", ".join(sorted(changes)) or "none")
        return NoteOut.model_validate(note)

    async def delete_note(self, db: AsyncSession, note_id: str) -> None:
        """
        Hard-delete a note.

        Raises:
            InvalidIdentifierError, NotFoundError, StoreError
        """
        parsed_id = parse_note_id(note_id)
        note = await self._load(db, parsed_id, "Failed to delete note")
        try:
            await db.delete(note)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting note %s: %s", parsed_id, str(e), exc_info=True)
            raise StoreError(
                message="Failed to delete note",
                context={"note_id": str(parsed_id), "error_type": type(e).__name__},
            ) from e

        logger.info("Note deleted: %s", parsed_id)

    async def _load(
        self,
        db: AsyncSession,
        note_id: uuid.UUID,
        failure_message: str,
        for_update: bool = False,
    ) -> Note:
        query = select(Note).where(Note.id == note_id)
        if for_update:
            query = query.with_for_update()
        try:
            result = await db.execute(query)
            note = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching note %s: %s", note_id, str(e))
            raise StoreError(
                message=failure_message,
                context={"note_id": str(note_id), "error_type": type(e).__name__},
            ) from e

        if note is None:
            raise NotFoundError(resource="Note", resource_id=str(note_id))
        return note


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
