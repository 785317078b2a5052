"""
Client records.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class Client:
    """A trainer's client, stored as one row in the Clients sheet."""

    client_id: str
    name: str = ""
    email: str = ""
    phone: str = ""
    notes: str = ""
    created_at: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "clientId": self.client_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "notes": self.notes,
            "createdAt": self.created_at,
        }


@dataclass
class ClientPatch:
    """
    Partial client update. ``None`` means "keep the stored value".

    ``client_id`` and ``created_at`` are accepted so callers can pass whole
    records back, but they never override the stored values.
    """

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    client_id: Optional[str] = None
    created_at: Optional[str] = None

    def apply(self, existing: Client) -> Client:
        """Merge this patch over an existing client."""
        return Client(
            client_id=existing.client_id,
            name=self.name if self.name is not None else existing.name,
            email=self.email if self.email is not None else existing.email,
            phone=self.phone if self.phone is not None else existing.phone,
            notes=self.notes if self.notes is not None else existing.notes,
            created_at=existing.created_at,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientPatch":
        return cls(
            name=data.get("name"),
            email=data.get("email"),
            phone=data.get("phone"),
            notes=data.get("notes"),
            client_id=data.get("clientId"),
            created_at=data.get("createdAt"),
        )
