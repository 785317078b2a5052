"""
Clients API endpoints.
"""
import re
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import AfterValidator, BaseModel, Field

from app.api.deps import get_entity_service
from app.api.workouts import Number, WorkoutResponse
from app.core.logging import get_logger
from app.models.client import Client, ClientPatch
from app.services.entities import EntityService
from app.services.workout_defaults import get_default_reps_and_weight

logger = get_logger(__name__)
router = APIRouter()

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PHONE_DIGITS = 7


def _check_name(value: str) -> str:
    if not value.strip():
        raise ValueError("Name is required")
    if len(value.strip()) < 2:
        raise ValueError("Name must be at least 2 characters")
    return value


def _check_email(value: str) -> str:
    if value.strip() and not EMAIL_PATTERN.match(value.strip()):
        raise ValueError("Invalid email format")
    return value


def _check_phone(value: str) -> str:
    if value.strip() and len(re.sub(r"\D", "", value)) < MIN_PHONE_DIGITS:
        raise ValueError(f"Phone number must contain at least {MIN_PHONE_DIGITS} digits")
    return value


# ========================================
# Request/Response Schemas
# ========================================

ClientName = Annotated[str, AfterValidator(_check_name)]
Email = Annotated[str, AfterValidator(_check_email)]
Phone = Annotated[str, AfterValidator(_check_phone)]


class CreateClientRequest(BaseModel):
    """Request to create a new client."""
    name: ClientName = Field(..., description="Client name")
    email: Email = Field("", description="Email address")
    phone: Phone = Field("", description="Phone number")
    notes: str = Field("", description="Free-form notes")


class UpdateClientRequest(BaseModel):
    """Request to update a client. Omitted fields keep their stored values."""
    name: Optional[ClientName] = None
    email: Optional[Email] = None
    phone: Optional[Phone] = None
    notes: Optional[str] = None
    # Accepted but never applied
    clientId: Optional[str] = None
    createdAt: Optional[str] = None

    def to_patch(self) -> ClientPatch:
        return ClientPatch.from_dict(self.model_dump(exclude_unset=True))


class ClientResponse(BaseModel):
    """Client response."""
    clientId: str
    name: str
    email: str
    phone: str
    notes: str
    createdAt: str

    @classmethod
    def from_client(cls, client: Client) -> "ClientResponse":
        return cls(**client.to_dict())


class ExerciseDefaultsResponse(BaseModel):
    """Prefill values for a new set."""
    reps: int
    weight: Number


# ========================================
# API Endpoints
# ========================================

@router.get("", response_model=list[ClientResponse])
async def list_clients(
    service: EntityService = Depends(get_entity_service),
):
    """
    Get all clients.
    """
    clients = await service.get_all_clients()
    return [ClientResponse.from_client(client) for client in clients]


@router.post("", response_model=ClientResponse, status_code=201)
async def create_client(
    request: CreateClientRequest,
    service: EntityService = Depends(get_entity_service),
):
    """
    Create a new client.
    """
    client = await service.create_client(
        name=request.name.strip(),
        email=request.email.strip(),
        phone=request.phone.strip(),
        notes=request.notes,
    )
    return ClientResponse.from_client(client)


@router.get(
    "/{client_id}/workouts",
    response_model=list[WorkoutResponse],
    response_model_exclude_none=True,
)
async def list_client_workouts(
    client_id: str,
    service: EntityService = Depends(get_entity_service),
):
    """
    Get all workouts of a client.
    """
    workouts = await service.get_workouts_by_client_id(client_id)
    return [WorkoutResponse.from_workout(workout) for workout in workouts]


@router.get("/{client_id}/exercise-defaults", response_model=ExerciseDefaultsResponse)
async def exercise_defaults(
    client_id: str,
    exercise_name: str = Query(..., alias="exerciseName", min_length=1),
    service: EntityService = Depends(get_entity_service),
):
    """
    Reps and weight to prefill for an exercise, from the client's last session.
    """
    return await get_default_reps_and_weight(service, client_id, exercise_name)


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: str,
    service: EntityService = Depends(get_entity_service),
):
    """
    Get a specific client by ID.
    """
    return ClientResponse.from_client(await service.get_client(client_id))


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: str,
    request: UpdateClientRequest,
    service: EntityService = Depends(get_entity_service),
):
    """
    Update a client.
    """
    logger.info("Updating client", client_id=client_id)
    client = await service.update_client(client_id, request.to_patch())
    return ClientResponse.from_client(client)


@router.delete("/{client_id}", status_code=204)
async def delete_client(
    client_id: str,
    delete_workouts: bool = Query(False, alias="deleteWorkouts"),
    service: EntityService = Depends(get_entity_service),
):
    """
    Delete a client. With ``deleteWorkouts=true`` their workouts go too.
    """
    logger.info("Deleting client", client_id=client_id, delete_workouts=delete_workouts)
    await service.delete_client(client_id, cascade=delete_workouts)
    return Response(status_code=204)
