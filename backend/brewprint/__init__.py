"""
Brewprint Backend — Application Package Initializer
====================================================

What: Marks the `brewprint` directory as a Python package.
Who:  Imported by uvicorn (`brewprint.main:app`), pytest, and every module
      inside the package.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (versioning, snapshots)   │  ← Business rules
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │     RecordStore (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Services never touch SQLAlchemy directly; they talk to the RecordStore
    contract, which lets the tests swap in an in-memory store.
"""

__version__ = "1.0.0"
