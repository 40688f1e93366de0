"""
Notely Backend - Application Package Initializer
=================================================

What:  Marks the `notely` directory as a Python package.
Who:   Used by uvicorn (notely.main:app), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │   Admission Control (Middleware)    │  ← distributed + local rate limits
    ├─────────────────────────────────────┤
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← note CRUD, limiters, stores
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
