"""
Services module - persistence core.

Modules:
- store: tabular store contract and backends (Google Sheets, in-memory)
- mapping: record <-> row conversion
- mutation: positional row mutation
- entities: client and workout lifecycle
- workout_defaults: prefill values from previous sessions
"""
from app.services.entities import EntityService
from app.services.store import GoogleSheetsStore, InMemoryStore, TabularStore, build_store

__all__ = [
    "EntityService",
    "GoogleSheetsStore",
    "InMemoryStore",
    "TabularStore",
    "build_store",
]
