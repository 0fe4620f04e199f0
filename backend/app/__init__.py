"""
JunkHub Backend — Application Package
=======================================

Layered like this:

    ┌─────────────────────────────────────┐
    │     Routes (API Layer)              │  ← HTTP concerns, auth gates
    ├─────────────────────────────────────┤
    │     Services (Business Logic)       │  ← stock, ownership, fan-out
    ├─────────────────────────────────────┤
    │     Models & Schemas (Data)         │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │     Database (Persistence)          │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
