from app.models.client import Client, ClientPatch
from app.models.workout import Exercise, Workout, WorkoutPatch, WorkoutSet, WorkoutSetRow

__all__ = [
    "Client",
    "ClientPatch",
    "Exercise",
    "Workout",
    "WorkoutPatch",
    "WorkoutSet",
    "WorkoutSetRow",
]
