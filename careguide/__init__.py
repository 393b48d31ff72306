"""
Care Guide Notes API — Application Package
============================================

Backend for the Care Guide note-taking app: accounts and roles, personal
notes, a community post feed, and list endpoints that accept a uniform
filter / search / sort / fields / page / limit query string.

Layers:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services + QueryBuilder (Logic)   │  ← ownership, roles, listing
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
