"""
Persistence error taxonomy.

Each error carries a stable ``code`` so the HTTP layer can map failures by
type instead of matching message text.
"""
from typing import List, Optional


class PersistenceError(Exception):
    """Base class for all persistence-layer failures."""

    code = "persistence_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {"error": self.message, "code": self.code}


class NotFoundError(PersistenceError):
    """An entity id is absent from its table at mutation time."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: str, available_ids: Optional[List[str]] = None):
        self.entity = entity
        self.entity_id = entity_id
        self.available_ids = list(available_ids or [])
        listing = ", ".join(self.available_ids) if self.available_ids else "none"
        super().__init__(
            f'{entity} with ID "{entity_id}" not found. '
            f"Available {entity.lower()} IDs: {listing}"
        )


class EmptyUpdateError(PersistenceError):
    """A workout update resolved to zero storable set rows."""

    code = "empty_update"

    def __init__(self, workout_id: str):
        self.workout_id = workout_id
        super().__init__(f"Cannot update workout {workout_id}: No exercises/sets provided")


class TableNotFoundError(PersistenceError):
    """The named table does not exist in the backing spreadsheet."""

    code = "table_not_found"

    def __init__(self, table: str, available: Optional[List[str]] = None):
        self.table = table
        self.available = list(available or [])
        listing = ", ".join(self.available) if self.available else "none"
        super().__init__(
            f'Sheet "{table}" not found. Available sheets: {listing}. '
            f'Please create a sheet tab named "{table}" in your Google Sheet.'
        )


class RangeMismatchError(PersistenceError):
    """Row count or width does not fit the target range."""

    code = "range_mismatch"


class StoreError(PersistenceError):
    """Any other failure reported by the tabular store backend."""

    code = "store_error"


class MalformedRecordError(PersistenceError):
    """A stored row holds a structured cell that cannot be parsed."""

    code = "malformed_record"


class CredentialsError(PersistenceError):
    """Service account credentials are missing or unreadable."""

    code = "credentials_error"
