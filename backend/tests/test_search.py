"""
Jotter Backend — Search Index Tests
=====================================

What:  Tests for tokenization, index weights, and the SQL rendered for
       PostgreSQL and for SQLite.
"""

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.schema import CreateIndex

from jotter.models.note import Note
from jotter.search import NOTE_SEARCH_INDEX, build_search, casefold_text, tokenize

COLUMNS = {"subject": Note.subject, "sub_header": Note.sub_header, "content": Note.content}


def _compile(condition, rank, dialect):
    stmt = select(Note).where(condition).order_by(rank.desc())
    return str(stmt.compile(dialect=dialect))


class TestTokenize:

    def test_lowercases_and_splits(self):
        assert tokenize("Milk, EGGS and bread!") == ["milk", "eggs", "and", "bread"]

    def test_deduplicates_in_order(self):
        assert tokenize("a b A c b") == ["a", "b", "c"]

    def test_punctuation_only(self):
        assert tokenize("?! -- ...") == []

    def test_unicode_words(self):
        assert tokenize("Crème brûlée") == ["crème", "brûlée"]


class TestIndexConfiguration:

    def test_field_weights(self):
        weights = {f.column: f.weight for f in NOTE_SEARCH_INDEX.fields}
        assert weights == {"subject": 10, "sub_header": 5, "content": 1}

    def test_rank_weights_scaled_in_postgres_order(self):
        # {D, C, B, A}: content, unused, sub_header, subject
        assert NOTE_SEARCH_INDEX.rank_weights() == [0.1, 0.2, 0.5, 1.0]


class TestPostgresRendering:

    def test_query_uses_weighted_tsvector_and_ts_rank(self):
        condition, rank = build_search(COLUMNS, ["milk", "eggs"], "postgresql")
        sql = _compile(condition, rank, postgresql.dialect())

        assert "setweight(to_tsvector('english'::regconfig, notes.subject), 'A')" in sql
        assert "setweight(to_tsvector('english'::regconfig, notes.sub_header), 'B')" in sql
        assert "setweight(to_tsvector('english'::regconfig, notes.content), 'D')" in sql
        assert sql.count("plainto_tsquery") >= 2
        assert "@@" in sql
        assert "ts_rank('{0.1,0.2,0.5,1.0}'::float4[]" in sql

    def test_gin_index_bound_to_notes_table(self):
        names = {i.name for i in Note.__table__.indexes}
        assert names == {"idx_notes_created_at", NOTE_SEARCH_INDEX.name}

    def test_gin_index_matches_query_expression(self):
        index = next(i for i in Note.__table__.indexes if i.name == NOTE_SEARCH_INDEX.name)
        ddl = str(CreateIndex(index).compile(dialect=postgresql.dialect()))

        assert "USING gin" in ddl
        assert "setweight(to_tsvector('english'::regconfig, subject), 'A')" in ddl


class TestSqliteRendering:

    def test_sqlite_uses_casefold_like_scoring(self):
        condition, rank = build_search(COLUMNS, ["milk"], "sqlite")
        sql = _compile(condition, rank, sqlite.dialect())

        assert "casefold(notes.subject)" in sql
        assert "LIKE" in sql
        assert "CASE WHEN" in sql
        assert "tsvector" not in sql

    def test_content_matched_per_element(self):
        condition, rank = build_search(COLUMNS, ["milk"], "sqlite")
        sql = _compile(condition, rank, sqlite.dialect())

        assert "EXISTS (SELECT" in sql
        assert "json_each(notes.content)" in sql
        assert "CAST(notes.content" not in sql

    def test_casefold_function_body(self):
        assert casefold_text("ÉCOLE Straße") == "école strasse"
        assert casefold_text(None) is None

    def test_empty_terms_rejected(self):
        with pytest.raises(ValueError):
            build_search(COLUMNS, [], "sqlite")

    def test_unsupported_dialect_rejected(self):
        with pytest.raises(ValueError, match="mysql"):
            build_search(COLUMNS, ["milk"], "mysql")
