"""
Jotter Backend — Note Service Unit Tests
==========================================

What:  Tests for NoteService (list, search, get, create, update, delete).
How:   Store-backed tests use the in-memory SQLite session; identifier checks
       use a mock session to prove no query is issued.
"""

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from jotter.exceptions import (
    InvalidIdentifierError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from jotter.models.note import Note
from jotter.services.note_service import NoteService, parse_note_id


async def _insert(db_session, subject, content, sub_header="", created_at=None):
    created_at = created_at or datetime.now(timezone.utc)
    note = Note(
        id=uuid.uuid4(),
        subject=subject,
        sub_header=sub_header,
        content=content,
        created_at=created_at,
        updated_at=created_at,
    )
    db_session.add(note)
    await db_session.flush()
    return note


class TestParseNoteId:

    def test_accepts_hyphenated_uuid(self):
        value = uuid.uuid4()
        assert parse_note_id(str(value)) == value

    def test_accepts_bare_hex(self):
        value = uuid.uuid4()
        assert parse_note_id(value.hex) == value

    @pytest.mark.parametrize("bad", ["", "123", "not-a-uuid", "65f1c2e9a1b2c3d4e5f6a7b8"])
    def test_rejects_malformed(self, bad):
        with pytest.raises(InvalidIdentifierError):
            parse_note_id(bad)


class TestNoteServiceCreate:
    """Tests for create_note."""

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_timestamps(self, db_session):
        result = await self.service.create_note(
            db_session, {"subject": "Groceries", "content": ["Milk", "Eggs"]}
        )

        assert uuid.UUID(result.id)
        assert result.subject == "Groceries"
        assert result.sub_header == ""
        assert result.content == ["Milk", "Eggs"]
        assert result.created_at == result.updated_at
        assert result.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_create_preserves_bullet_order(self, db_session):
        bullets = ["third", "first", "second", "  indented"]
        result = await self.service.create_note(
            db_session, {"subject": "Order", "content": bullets}
        )
        assert result.content == bullets

    @pytest.mark.asyncio
    async def test_create_coerces_scalar_content(self, db_session):
        result = await self.service.create_note(
            db_session, {"subject": "Legacy", "content": "single line"}
        )
        assert result.content == ["single line"]

    @pytest.mark.asyncio
    async def test_create_empty_content_rejected_before_store(self, mock_db_session):
        with pytest.raises(ValidationError, match="At least one bullet point"):
            await self.service.create_note(
                mock_db_session, {"subject": "Empty", "content": []}
            )
        mock_db_session.add.assert_not_called()
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_missing_subject_rejected(self, mock_db_session):
        with pytest.raises(ValidationError, match="Subject is required"):
            await self.service.create_note(mock_db_session, {"content": ["x"]})

    @pytest.mark.asyncio
    async def test_create_store_failure_wrapped(self, mock_db_session):
        mock_db_session.flush = AsyncMock(
            side_effect=OperationalError("INSERT", {}, Exception("disk I/O error"))
        )
        with pytest.raises(StoreError) as exc_info:
            await self.service.create_note(
                mock_db_session, {"subject": "S", "content": ["x"]}
            )
        assert exc_info.value.message == "Failed to create note"
        assert "disk I/O" not in exc_info.value.message


class TestNoteServiceGet:
    """Tests for get_note retrieval."""

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_get_note_found(self, db_session):
        note = await _insert(db_session, "Found", ["a", "b"], sub_header="sub")

        result = await self.service.get_note(db_session, str(note.id))

        assert result.id == str(note.id)
        assert result.subject == "Found"
        assert result.sub_header == "sub"
        assert result.content == ["a", "b"]

    @pytest.mark.asyncio
    async def test_get_note_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_note(db_session, str(uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_get_legacy_scalar_content_returned_as_list(self, db_session):
        note = await _insert(db_session, "Legacy", "one bullet")

        result = await self.service.get_note(db_session, str(note.id))

        assert result.content == ["one bullet"]


class TestMalformedIdentifiers:
    """Malformed ids fail before any store access."""

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_get(self, mock_db_session):
        with pytest.raises(InvalidIdentifierError):
            await self.service.get_note(mock_db_session, "not-a-uuid")
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update(self, mock_db_session):
        with pytest.raises(InvalidIdentifierError):
            await self.service.update_note(mock_db_session, "42", {"subject": "x"})
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete(self, mock_db_session):
        with pytest.raises(InvalidIdentifierError):
            await self.service.delete_note(mock_db_session, "zzz")
        mock_db_session.execute.assert_not_awaited()
        mock_db_session.delete.assert_not_awaited()


class TestNoteServiceUpdate:
    """Tests for update_note."""

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, db_session):
        created = await self.service.create_note(
            db_session,
            {"subject": "Trip", "subHeader": "Packing", "content": ["Socks"]},
        )

        result = await self.service.update_note(
            db_session, created.id, {"content": ["Socks", "Charger"]}
        )

        assert result.subject == "Trip"
        assert result.sub_header == "Packing"
        assert result.content == ["Socks", "Charger"]
        assert result.created_at == created.created_at
        assert result.updated_at >= created.updated_at

    @pytest.mark.asyncio
    async def test_update_accepts_camel_case_sub_header(self, db_session):
        created = await self.service.create_note(db_session, {"subject": "S", "content": ["x"]})

        result = await self.service.update_note(db_session, created.id, {"subHeader": "New"})

        assert result.sub_header == "New"

    @pytest.mark.asyncio
    async def test_update_coerces_scalar_content(self, db_session):
        created = await self.service.create_note(db_session, {"subject": "S", "content": ["x"]})

        result = await self.service.update_note(db_session, created.id, {"content": "only"})

        assert result.content == ["only"]

    @pytest.mark.asyncio
    async def test_update_ignores_unknown_fields(self, db_session):
        created = await self.service.create_note(db_session, {"subject": "S", "content": ["x"]})

        result = await self.service.update_note(
            db_session, created.id, {"id": str(uuid.uuid4()), "createdAt": "2000-01-01"}
        )

        assert result.id == created.id
        assert result.created_at == created.created_at

    @pytest.mark.asyncio
    async def test_update_revalidates_merged_note(self, db_session):
        created = await self.service.create_note(db_session, {"subject": "S", "content": ["x"]})

        with pytest.raises(ValidationError, match="At least one bullet point"):
            await self.service.update_note(db_session, created.id, {"content": []})
        with pytest.raises(ValidationError, match="Subject cannot exceed"):
            await self.service.update_note(db_session, created.id, {"subject": "x" * 101})

        unchanged = await self.service.get_note(db_session, created.id)
        assert unchanged.content == ["x"]
        assert unchanged.subject == "S"

    @pytest.mark.asyncio
    async def test_update_never_moves_updated_at_backwards(self, db_session):
        future = datetime.now(timezone.utc) + timedelta(days=1)
        note = await _insert(db_session, "Clock skew", ["x"], created_at=future)

        result = await self.service.update_note(db_session, str(note.id), {"subject": "Fixed"})

        assert result.updated_at >= future

    @pytest.mark.asyncio
    async def test_update_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.update_note(db_session, str(uuid.uuid4()), {"subject": "x"})


class TestNoteServiceDelete:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_delete_then_get_not_found(self, db_session):
        created = await self.service.create_note(db_session, {"subject": "Bye", "content": ["x"]})

        await self.service.delete_note(db_session, created.id)

        with pytest.raises(NotFoundError):
            await self.service.get_note(db_session, created.id)
        with pytest.raises(NotFoundError):
            await self.service.delete_note(db_session, created.id)


class TestNoteServiceList:
    """Tests for list_notes, with and without search."""

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_list_notes_empty(self, db_session):
        assert await self.service.list_notes(db_session) == []

    @pytest.mark.asyncio
    async def test_list_newest_first(self, db_session):
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        await _insert(db_session, "middle", ["x"], created_at=base + timedelta(hours=1))
        await _insert(db_session, "oldest", ["x"], created_at=base)
        await _insert(db_session, "newest", ["x"], created_at=base + timedelta(hours=2))

        result = await self.service.list_notes(db_session)

        assert [n.subject for n in result] == ["newest", "middle", "oldest"]

    @pytest.mark.asyncio
    async def test_blank_search_lists_everything(self, db_session):
        await _insert(db_session, "one", ["x"])
        await _insert(db_session, "two", ["y"])

        assert len(await self.service.list_notes(db_session, search="   ")) == 2
        assert len(await self.service.list_notes(db_session, search="")) == 2

    @pytest.mark.asyncio
    async def test_search_matches_any_field_case_insensitively(self, db_session):
        await _insert(db_session, "Weekly GROCERIES", ["Milk"])
        await _insert(db_session, "Errands", ["Buy groceries"], sub_header="")
        await _insert(db_session, "Plans", ["x"], sub_header="groceries run")
        await _insert(db_session, "Unrelated", ["Call mom"])

        result = await self.service.list_notes(db_session, search="Groceries")

        assert sorted(n.subject for n in result) == ["Errands", "Plans", "Weekly GROCERIES"]

    @pytest.mark.asyncio
    async def test_search_ranks_subject_above_content(self, db_session):
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        await _insert(db_session, "Python tips", ["indentation"], created_at=base)
        await _insert(db_session, "Misc", ["a python snippet"], created_at=base + timedelta(hours=1))
        await _insert(db_session, "Reading", ["x"], sub_header="Python books",
                      created_at=base + timedelta(hours=2))

        result = await self.service.list_notes(db_session, search="python")

        assert [n.subject for n in result] == ["Python tips", "Reading", "Misc"]

    @pytest.mark.asyncio
    async def test_search_any_term_matches(self, db_session):
        await _insert(db_session, "Milk", ["x"])
        await _insert(db_session, "Bread", ["y"])
        await _insert(db_session, "Cheese", ["z"])

        result = await self.service.list_notes(db_session, search="milk bread")

        assert sorted(n.subject for n in result) == ["Bread", "Milk"]

    @pytest.mark.asyncio
    async def test_search_without_matches_returns_empty(self, db_session):
        await _insert(db_session, "Milk", ["x"])

        assert await self.service.list_notes(db_session, search="zebra") == []
        assert await self.service.list_notes(db_session, search="!!!") == []

    @pytest.mark.asyncio
    async def test_search_treats_like_wildcards_literally(self, db_session):
        await _insert(db_session, "snake_case names", ["x"])
        await _insert(db_session, "snakeXcase", ["y"])

        result = await self.service.list_notes(db_session, search="snake_case")

        assert [n.subject for n in result] == ["snake_case names"]

    @pytest.mark.asyncio
    async def test_search_folds_non_ascii_case(self, db_session):
        await _insert(db_session, "Über Reise", ["x"])
        await _insert(db_session, "School", ["ÉCOLE notes"])
        await _insert(db_session, "Other", ["y"])

        uber = await self.service.list_notes(db_session, search="über")
        ecole = await self.service.list_notes(db_session, search="école")

        assert [n.subject for n in uber] == ["Über Reise"]
        assert [n.subject for n in ecole] == ["School"]

    @pytest.mark.asyncio
    async def test_search_matches_bullet_text_not_json_escapes(self, db_session):
        await _insert(db_session, "Tabs", ["col\tname"])
        await _insert(db_session, "Quotes", ['say "hi"'])

        assert await self.service.list_notes(db_session, search="tname") == []
        assert [n.subject for n in await self.service.list_notes(db_session, search="name")] == ["Tabs"]
        assert [n.subject for n in await self.service.list_notes(db_session, search="hi")] == ["Quotes"]

    @pytest.mark.asyncio
    async def test_list_store_failure_wrapped(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("connection reset"))
        )

        with pytest.raises(StoreError, match="Failed to fetch notes"):
            await self.service.list_notes(mock_db_session)
