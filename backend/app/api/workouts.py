"""
Workouts API endpoints.
"""
from datetime import date as date_type, datetime
from typing import Annotated, List, Optional, Union

from fastapi import APIRouter, Depends, Response
from pydantic import AfterValidator, BaseModel, Field

from app.api.deps import get_entity_service
from app.core.logging import get_logger
from app.models.workout import Workout, WorkoutPatch
from app.services.entities import EntityService

logger = get_logger(__name__)
router = APIRouter()

Number = Union[int, float]


def _check_required(value: str) -> str:
    if not value.strip():
        raise ValueError("Value is required")
    return value


def _check_iso_date(value: str) -> str:
    text = value.strip()
    try:
        date_type.fromisoformat(text)
    except ValueError:
        try:
            datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError("Invalid date format") from None
    return text


RequiredText = Annotated[str, AfterValidator(_check_required)]
IsoDate = Annotated[str, AfterValidator(_check_iso_date)]


# ========================================
# Request/Response Schemas
# ========================================

class SetSchema(BaseModel):
    """One set of an exercise."""
    reps: int = Field(..., ge=1, description="Repetitions")
    weight: float = Field(..., ge=0, description="Load")
    notes: Optional[str] = None


class ExerciseSchema(BaseModel):
    """An exercise with its sets."""
    exerciseName: RequiredText
    sets: List[SetSchema] = Field(..., min_length=1)


class CreateWorkoutRequest(BaseModel):
    """Request to log a workout. ``date`` defaults to today."""
    clientId: RequiredText
    date: Optional[IsoDate] = None
    exercises: List[ExerciseSchema] = Field(..., min_length=1)
    notes: str = ""


class UpdateWorkoutRequest(BaseModel):
    """Request to update a workout. Omitted fields keep their stored values."""
    clientId: Optional[RequiredText] = None
    date: Optional[IsoDate] = None
    exercises: Optional[Annotated[List[ExerciseSchema], Field(min_length=1)]] = None
    notes: Optional[str] = None
    # Accepted but never applied
    workoutId: Optional[str] = None
    createdAt: Optional[str] = None

    def to_patch(self) -> WorkoutPatch:
        return WorkoutPatch.from_dict(self.model_dump(exclude_none=True))


class SetResponse(BaseModel):
    reps: int
    weight: Number
    notes: Optional[str] = None


class ExerciseResponse(BaseModel):
    exerciseName: str
    sets: List[SetResponse]


class WorkoutResponse(BaseModel):
    """Workout response."""
    workoutId: str
    clientId: str
    date: str
    exercises: List[ExerciseResponse]
    notes: str
    createdAt: str

    @classmethod
    def from_workout(cls, workout: Workout) -> "WorkoutResponse":
        return cls.model_validate(workout.to_dict())


# ========================================
# API Endpoints
# ========================================

@router.post("", response_model=WorkoutResponse, status_code=201, response_model_exclude_none=True)
async def create_workout(
    request: CreateWorkoutRequest,
    service: EntityService = Depends(get_entity_service),
):
    """
    Log a workout. Exercise names are stored in canonical form.
    """
    patch = WorkoutPatch.from_dict(request.model_dump())
    workout = await service.create_workout(
        client_id=request.clientId.strip(),
        date=request.date,
        exercises=patch.exercises,
        notes=request.notes,
    )
    return WorkoutResponse.from_workout(workout)


@router.put("/{workout_id}", response_model=WorkoutResponse, response_model_exclude_none=True)
async def update_workout(
    workout_id: str,
    request: UpdateWorkoutRequest,
    service: EntityService = Depends(get_entity_service),
):
    """
    Update a workout. Its sets may grow or shrink.
    """
    logger.info("Updating workout", workout_id=workout_id)
    workout = await service.update_workout(workout_id, request.to_patch())
    return WorkoutResponse.from_workout(workout)


@router.delete("/{workout_id}", status_code=204)
async def delete_workout(
    workout_id: str,
    service: EntityService = Depends(get_entity_service),
):
    """
    Delete a workout and all of its set rows.
    """
    logger.info("Deleting workout", workout_id=workout_id)
    await service.delete_workout(workout_id)
    return Response(status_code=204)
