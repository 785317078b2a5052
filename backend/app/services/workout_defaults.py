"""
Workout defaults - prefill reps and weight from a client's previous sessions.
"""
from typing import Any, Dict, Optional

from app.core.logging import get_logger
from app.services.entities import EntityService
from app.services.exercise_names import normalize_exercise_name

logger = get_logger(__name__)

DEFAULT_REPS = 6
DEFAULT_WEIGHT = 0


async def get_last_set_for_exercise(
    service: EntityService,
    client_id: str,
    exercise_name: str,
) -> Optional[Dict[str, Any]]:
    """
    Find the most recent set a client did for an exercise.

    Workouts are scanned newest date first; within the first workout that
    contains the exercise, the last set is returned.

    Returns:
        ``{"reps", "weight", "date"}`` or None if the exercise was never logged
    """
    target = normalize_exercise_name(exercise_name)
    if not target:
        return None

    workouts = await service.get_workouts_by_client_id(client_id)
    for workout in sorted(workouts, key=lambda w: w.date, reverse=True):
        for exercise in workout.exercises:
            if normalize_exercise_name(exercise.exercise_name) == target and exercise.sets:
                last_set = exercise.sets[-1]
                return {
                    "reps": last_set.reps,
                    "weight": last_set.weight,
                    "date": workout.date,
                }
    return None


async def get_default_reps_and_weight(
    service: EntityService,
    client_id: str,
    exercise_name: str,
) -> Dict[str, Any]:
    """Reps and weight to prefill: the last logged set, else 6 reps at 0."""
    last_set = await get_last_set_for_exercise(service, client_id, exercise_name)
    if last_set is None:
        logger.debug("No previous set", client_id=client_id, exercise_name=exercise_name)
        return {"reps": DEFAULT_REPS, "weight": DEFAULT_WEIGHT}
    return {
        "reps": last_set["reps"] or DEFAULT_REPS,
        "weight": last_set["weight"] or DEFAULT_WEIGHT,
    }
