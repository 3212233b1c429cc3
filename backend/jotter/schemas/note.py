"""
Jotter Backend — Pydantic Request/Response Schemas
====================================================

What:  The note record type, its validation rules, and the API contract.
How:   FastAPI validates request bodies against NoteCreate / NoteUpdate,
       NoteService re-validates merged updates with validate_note(), and
       NoteOut reshapes ORM rows for transport. JSON keys are camelCase
       (subHeader, createdAt, updatedAt); Python attributes are snake_case.

Contents:
    normalize_content()   legacy scalar content → one-element list
    NoteFields            validated note record (used for create and merged updates)
    validate_note()       NoteFields.model_validate, raising our ValidationError
    NoteUpdate            partial update body
    NoteOut               transport shape of a stored note
    Envelope[T]           {success, data} wrapper
    MessageEnvelope       {success, message} wrapper
    ErrorEnvelope         {success: false, error, requestId}
    HealthResponse        GET /health body
"""

from datetime import datetime, timezone
from typing import Any, Generic, List, Mapping, Optional, Sequence, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from jotter.exceptions import ValidationError
from jotter.models.note import SUB_HEADER_MAX_LENGTH, SUBJECT_MAX_LENGTH

T = TypeVar("T")


def normalize_content(value: Any) -> Any:
    """
    Coerce a single scalar content value into a one-element list.

    Older clients sent `content` as one string. Lists and tuples pass through
    as lists; None passes through so "missing" stays distinguishable.
    """
    if value is None or isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return [value]


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Note record and validation
# ══════════════════════════════════════════════════════════════════════════


class NoteFields(_CamelModel):
    """
    The user-editable part of a note, validated.

    Rules:
        subject:    trimmed, 1-100 characters
        sub_header: trimmed, at most 150 characters, "" when absent or null
        content:    list of strings, at least one, none blank; order kept
    """

    # validate_default: a missing subject/content still reaches the
    # "before" validators below and gets a readable message.
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        validate_default=True,
        json_schema_extra={
            "example": {
                "subject": "Groceries",
                "subHeader": "Saturday market",
                "content": ["Milk", "Eggs"],
            }
        },
    )

    subject: str = Field(default=None, description="Note title (max 100 characters)")
    sub_header: str = Field(default="", description="Optional subtitle (max 150 characters)")
    content: List[str] = Field(default=None, description="Bullet points, in order (at least one)")

    @field_validator("subject", mode="before")
    @classmethod
    def validate_subject(cls, v: Any) -> str:
        v = _strip(v)
        if v is None or v == "":
            raise ValueError("Subject is required")
        if not isinstance(v, str):
            raise ValueError("Subject must be a string")
        if len(v) > SUBJECT_MAX_LENGTH:
            raise ValueError(f"Subject cannot exceed {SUBJECT_MAX_LENGTH} characters")
        return v

    @field_validator("sub_header", mode="before")
    @classmethod
    def validate_sub_header(cls, v: Any) -> str:
        v = _strip(v)
        if v is None:
            return ""
        if not isinstance(v, str):
            raise ValueError("Subheader must be a string")
        if len(v) > SUB_HEADER_MAX_LENGTH:
            raise ValueError(f"Subheader cannot exceed {SUB_HEADER_MAX_LENGTH} characters")
        return v

    @field_validator("content", mode="before")
    @classmethod
    def validate_content(cls, v: Any) -> List[str]:
        v = normalize_content(v)
        if v is None:
            raise ValueError("Content is required")
        if not v:
            raise ValueError("At least one bullet point is required")
        if not all(isinstance(item, str) for item in v):
            raise ValueError("Content must be a list of strings")
        if any(not item.strip() for item in v):
            raise ValueError("Bullet points cannot be empty")
        return v


# Request body for POST /notes
NoteCreate = NoteFields


def first_error_message(errors: Sequence[Mapping[str, Any]]) -> Tuple[str, Optional[str]]:
    """Readable message and field name for the first pydantic error in `errors`."""
    if not errors:
        return "Validation failed", None
    error = errors[0]
    message = str(error.get("msg", "Validation failed"))
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    loc = error.get("loc") or ()
    field = str(loc[0]) if loc else None
    return message, field


def validate_note(data: Mapping[str, Any]) -> NoteFields:
    """
    Validate a note payload (snake_case or camelCase keys).

    Raises:
        ValidationError: with the first rule violated as the message.
    """
    try:
        return NoteFields.model_validate(dict(data))
    except PydanticValidationError as e:
        message, field = first_error_message(e.errors())
        raise ValidationError(message=message, field=field) from e


class NoteUpdate(_CamelModel):
    """
    Partial update body for PUT /notes/{id}.

    Only fields present in the body are merged. Values are not checked here;
    the merged record goes through validate_note().
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    subject: Any = None
    sub_header: Any = None
    content: Any = None

    def changes(self) -> dict:
        """Fields the client actually sent, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteOut(_CamelModel):
    """
    Transport representation of a stored note.

    The primary key becomes a string `id`; content is always a list and
    subHeader always a string, whatever shape the stored row has.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: str = Field(description="Unique note identifier")
    subject: str
    sub_header: str = ""
    content: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("sub_header", mode="before")
    @classmethod
    def default_sub_header(cls, v: Any) -> str:
        return v or ""

    @field_validator("content", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> List[str]:
        v = normalize_content(v)
        return v if v is not None else []

    @field_validator("created_at", "updated_at", mode="after")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # SQLite hands back naive datetimes; everything we store is UTC.
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class Envelope(_CamelModel, Generic[T]):
    """Standard success wrapper: {"success": true, "data": ...}."""
    success: bool = True
    data: T


class MessageEnvelope(_CamelModel):
    success: bool = True
    message: str


class ErrorEnvelope(_CamelModel):
    """
    Standard failure wrapper.

    Example:
        {"success": false, "error": "Invalid note ID format", "requestId": "1a2b3c4d"}
    """
    success: bool = False
    error: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(_CamelModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
