"""
Jotter Backend — Full-Text Search Index Configuration
=======================================================

What:  The weighted search index over a note's subject, subheader, and
       bullet points, and the SQL expressions that query it.
How:   NOTE_SEARCH_INDEX is a plain value describing the index. Two
       renderings read from it:

       PostgreSQL:
           setweight(to_tsvector('english', subject),    'A') ||
           setweight(to_tsvector('english', sub_header), 'B') ||
           setweight(to_tsvector('english', content),    'D')
           matched with `@@` against OR-ed plainto_tsquery terms, ranked by
           ts_rank with weights {D, C, B, A} scaled from 10/5/1.
           The same expression backs the GIN index, so it is built from
           literals only (bound parameters would stop the planner matching it).

       SQLite (tests and local development):
           score = Σ per term, per field: weight if casefold(field) contains term
           List fields are matched element by element through json_each(), so
           JSON escapes in the stored text never match. casefold() is the
           Python str.casefold registered on every SQLite connection by
           jotter.database.build_engine (SQLite's own lower() is ASCII-only).
           Notes with score 0 are excluded.

       Any other dialect raises ValueError.

Search semantics:
    The search string is split into lowercase word tokens. A note matches if
    ANY token matches. A string with no word tokens matches nothing.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Sequence, Tuple

from sqlalchemy import String, case, exists, func, literal_column, or_
from sqlalchemy.dialects.postgresql import TSVECTOR
from sqlalchemy.sql.elements import ColumnElement

_TOKEN_PATTERN = re.compile(r"\w+", re.UNICODE)

# ts_rank weight slots, in the order PostgreSQL expects them
_RANK_LABELS = ("D", "C", "B", "A")
_DEFAULT_RANK_WEIGHTS = {"D": 0.1, "C": 0.2, "B": 0.4, "A": 1.0}


@dataclass(frozen=True)
class SearchField:
    """One indexed column: its attribute name, relative weight, and tsvector label."""
    column: str
    weight: int
    label: str
    # JSON array of strings rather than a text column
    is_list: bool = False


@dataclass(frozen=True)
class SearchIndex:
    name: str
    language: str
    fields: Tuple[SearchField, ...]

    @property
    def max_weight(self) -> int:
        return max(f.weight for f in self.fields)

    def rank_weights(self) -> List[float]:
        """
        Weights for ts_rank in {D, C, B, A} order.

        Used labels get weight / max_weight (so 10/5/1 → 1.0/0.5/0.1);
        unused labels keep PostgreSQL's defaults.
        """
        by_label = {f.label: f.weight / self.max_weight for f in self.fields}
        return [by_label.get(label, _DEFAULT_RANK_WEIGHTS[label]) for label in _RANK_LABELS]


NOTE_SEARCH_INDEX = SearchIndex(
    name="idx_notes_search",
    language="english",
    fields=(
        SearchField(column="subject", weight=10, label="A"),
        SearchField(column="sub_header", weight=5, label="B"),
        SearchField(column="content", weight=1, label="D", is_list=True),
    ),
)


def tokenize(search: str) -> List[str]:
    """Split a search string into unique lowercase word tokens, keeping order."""
    seen: List[str] = []
    for token in _TOKEN_PATTERN.findall(search.lower()):
        if token not in seen:
            seen.append(token)
    return seen


# ══════════════════════════════════════════════════════════════════════════
# PostgreSQL rendering
# ══════════════════════════════════════════════════════════════════════════

def _regconfig(index: SearchIndex) -> ColumnElement:
    return literal_column(f"'{index.language}'::regconfig")


def search_document(
    columns: Mapping[str, ColumnElement],
    index: SearchIndex = NOTE_SEARCH_INDEX,
) -> ColumnElement:
    """
    The weighted tsvector over the indexed columns.

    Args:
        columns: Maps each SearchField.column to the column expression to use
                 (e.g. {"subject": Note.subject, ...}).
    """
    document = None
    for field in index.fields:
        part = func.setweight(
            func.to_tsvector(_regconfig(index), columns[field.column], type_=TSVECTOR),
            literal_column(f"'{field.label}'"),
            type_=TSVECTOR,
        )
        document = part if document is None else document.op("||")(part)
    return document


def _postgres_search(
    columns: Mapping[str, ColumnElement],
    terms: Sequence[str],
    index: SearchIndex,
) -> Tuple[ColumnElement, ColumnElement]:
    query = None
    for term in terms:
        part = func.plainto_tsquery(_regconfig(index), term)
        query = part if query is None else query.op("||")(part)

    document = search_document(columns, index)
    weights = ",".join(str(w) for w in index.rank_weights())
    condition = document.op("@@")(query)
    rank = func.ts_rank(literal_column(f"'{{{weights}}}'::float4[]"), document, query)
    return condition, rank


# ══════════════════════════════════════════════════════════════════════════
# SQLite rendering
# ══════════════════════════════════════════════════════════════════════════

# Name of the SQL function registered on SQLite connections
CASEFOLD_FUNCTION = "casefold"


def casefold_text(value: Any) -> Any:
    """Body of the SQLite casefold() function: str.casefold, other values unchanged."""
    return value.casefold() if isinstance(value, str) else value


def _casefold(expr: ColumnElement) -> ColumnElement:
    return getattr(func, CASEFOLD_FUNCTION)(expr, type_=String)


def _sqlite_match(column: ColumnElement, term: str, is_list: bool) -> ColumnElement:
    if not is_list:
        return _casefold(column).contains(term, autoescape=True)
    elements = func.json_each(column).table_valued("value")
    return (
        exists()
        .select_from(elements)
        .where(_casefold(elements.c.value).contains(term, autoescape=True))
    )


def _sqlite_search(
    columns: Mapping[str, ColumnElement],
    terms: Sequence[str],
    index: SearchIndex,
) -> Tuple[ColumnElement, ColumnElement]:
    matches = []
    scores = []
    for field in index.fields:
        for term in terms:
            hit = _sqlite_match(columns[field.column], term.casefold(), field.is_list)
            matches.append(hit)
            scores.append(case((hit, field.weight), else_=0))

    rank = scores[0]
    for score in scores[1:]:
        rank = rank + score
    return or_(*matches), rank


def build_search(
    columns: Mapping[str, ColumnElement],
    terms: Sequence[str],
    dialect_name: str,
    index: SearchIndex = NOTE_SEARCH_INDEX,
) -> Tuple[ColumnElement, ColumnElement]:
    """
    Build the (match condition, rank expression) pair for the given dialect.

    Args:
        columns: Column expressions keyed by SearchField.column.
        terms: Non-empty list of tokens from tokenize().
        dialect_name: `session.get_bind().dialect.name`.

    Returns:
        A WHERE condition selecting matching notes and an expression to
        ORDER BY (descending) for relevance.

    Raises:
        ValueError: `terms` is empty or the dialect has no search rendering.
    """
    if not terms:
        raise ValueError("build_search requires at least one search term")
    if dialect_name == "postgresql":
        return _postgres_search(columns, terms, index)
    if dialect_name == "sqlite":
        return _sqlite_search(columns, terms, index)
    raise ValueError(f"Full-text search is not supported on the {dialect_name!r} dialect")
