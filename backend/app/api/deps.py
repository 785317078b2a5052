"""
Shared API dependencies.
"""
from fastapi import Request

from app.services.entities import EntityService


def get_entity_service(request: Request) -> EntityService:
    """Entity service bound to the application's store session."""
    return request.app.state.service
