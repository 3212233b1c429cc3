"""
Jotter Backend — Application Package Initializer
==================================================

What: Marks the `jotter` directory as a Python package.
Who:  Imported by uvicorn (`jotter.main:app`), Alembic, and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, envelopes
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Validation, store calls
    ├─────────────────────────────────────┤
    │   Models, Schemas, Search (Data)    │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
