"""
Tabular store backends.
"""
from app.core.config import Settings
from app.services.store.base import TabularStore, headers_match
from app.services.store.google_sheets import GoogleSheetsStore
from app.services.store.memory import InMemoryStore


def build_store(settings: Settings) -> TabularStore:
    """Create the store selected by STORE_BACKEND."""
    backend = settings.STORE_BACKEND.lower()
    if backend == "memory":
        return InMemoryStore()
    if backend == "google":
        return GoogleSheetsStore(
            spreadsheet_id=settings.GOOGLE_SHEETS_SPREADSHEET_ID,
            service_account_key=settings.GOOGLE_SHEETS_SERVICE_ACCOUNT_KEY,
        )
    raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND}")


__all__ = [
    "TabularStore",
    "GoogleSheetsStore",
    "InMemoryStore",
    "build_store",
    "headers_match",
]
