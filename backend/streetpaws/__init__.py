"""
StreetPaws Backend — Application Package
==========================================

What: Stray-animal registry: animal records, vaccinations, photo uploads,
      QR identity tags, a helpline directory and an offline caching client.
Who:  Imported by uvicorn (streetpaws.main:app), Alembic and pytest.

Architecture Note:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Rules, photo checks, QR tags
    ├─────────────────────────────────────┤
    │   Storage (Memory | SQLAlchemy)     │  ← One interface, two backends
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘

    streetpaws.offline sits on the client side of the HTTP boundary: an
    httpx transport that caches responses from this service for offline use.
"""

__version__ = "1.0.0"
