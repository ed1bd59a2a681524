"""
AskBoard Backend: Application Package Initializer
==================================================

What: Marks the `askboard` directory as a Python package.
Who:  Imported by uvicorn (askboard.main:app), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Ownership, merge, embedded docs
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Answers and comments are not separate tables. They live as embedded
    documents (JSON) inside the row of the question they belong to.
"""

__version__ = "1.0.0"
