"""
Record <-> row mapping for the Clients and Workouts sheets.

Clients sheet: one row per client
    clientId, name, email, phone, notes, createdAt

Workouts sheet: one row per set of one exercise in one workout
    workoutId, clientId, date, exerciseName, setNumber, reps, weight, volume, notes, createdAt

Rows sharing a workoutId form one workout. Workout-level fields are taken
from the first row of the group; exercises keep first-seen order and sets
keep row order.

Nothing here raises on malformed input: bad cells fall back to defaults.
"""
import json
import re
from typing import Any, Dict, List, Optional, Sequence

from app.core.errors import MalformedRecordError
from app.core.logging import get_logger
from app.models.client import Client
from app.models.workout import Exercise, Workout, WorkoutSet, WorkoutSetRow
from app.services.exercise_names import normalize_exercise_name

logger = get_logger(__name__)

CLIENTS_SHEET = "Clients"
WORKOUTS_SHEET = "Workouts"

CLIENT_HEADERS = ["clientId", "name", "email", "phone", "notes", "createdAt"]
WORKOUT_HEADERS = [
    "workoutId",
    "clientId",
    "date",
    "exerciseName",
    "setNumber",
    "reps",
    "weight",
    "volume",
    "notes",
    "createdAt",
]

# Column positions
CLIENT_ID_COLUMN = 0
WORKOUT_ID_COLUMN = 0
WORKOUT_CLIENT_ID_COLUMN = 1
# Legacy rows kept the whole exercises array as JSON in this column
LEGACY_EXERCISES_COLUMN = 3
LEGACY_ROW_WIDTH = 6

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def _cell(row: Sequence[Any], index: int) -> str:
    if index >= len(row) or row[index] is None:
        return ""
    return str(row[index])


def parse_int(value: Any, default: int) -> int:
    """Leading-integer parse: "5" -> 5, "5.9" -> 5, "abc" -> default."""
    match = _INT_PREFIX.match(str(value)) if value is not None else None
    return int(match.group(1)) if match else default


def parse_number(value: Any, default: float) -> float:
    """Leading-number parse; integral results come back as int."""
    match = _FLOAT_PREFIX.match(str(value)) if value is not None else None
    if not match:
        return default
    number = float(match.group(1))
    return int(number) if number.is_integer() else number


# ========================================
# Clients
# ========================================

def client_to_row(client: Client) -> List[str]:
    """Convert a client to ``[clientId, name, email, phone, notes, createdAt]``."""
    return [
        client.client_id or "",
        client.name or "",
        client.email or "",
        client.phone or "",
        client.notes or "",
        client.created_at or "",
    ]


def row_to_client(row: Sequence[Any]) -> Optional[Client]:
    """Convert a Clients row to a client; an empty row gives None."""
    if not row:
        return None
    return Client(
        client_id=_cell(row, 0),
        name=_cell(row, 1),
        email=_cell(row, 2),
        phone=_cell(row, 3),
        notes=_cell(row, 4),
        created_at=_cell(row, 5),
    )


def rows_to_clients(rows: Sequence[Sequence[Any]], header_row_index: int = 0) -> List[Client]:
    """Convert sheet rows to clients, skipping the header and rows without an ID."""
    if not rows:
        return []
    clients = (row_to_client(row) for row in rows[header_row_index + 1:])
    return [client for client in clients if client is not None and client.client_id]


# ========================================
# Workouts
# ========================================

def workout_to_rows(workout: Workout) -> List[List[Any]]:
    """
    Flatten a workout into one row per set.

    ``setNumber`` restarts at 1 for each exercise. A set's own notes win
    over the workout notes. A workout without sets produces no rows.
    """
    rows = []
    for exercise in workout.exercises:
        for set_number, workout_set in enumerate(exercise.sets, start=1):
            rows.append([
                workout.workout_id or "",
                workout.client_id or "",
                workout.date or "",
                exercise.exercise_name or "",
                set_number,
                workout_set.reps,
                workout_set.weight,
                workout_set.volume,
                workout_set.notes or workout.notes or "",
                workout.created_at or "",
            ])
    return rows


def row_to_workout_set(row: Sequence[Any]) -> WorkoutSetRow:
    """Parse one Workouts row. Unparseable numbers fall back to defaults."""
    return WorkoutSetRow(
        workout_id=_cell(row, 0),
        client_id=_cell(row, 1),
        date=_cell(row, 2),
        exercise_name=_cell(row, 3),
        set_number=parse_int(_cell(row, 4), 1),
        reps=parse_int(_cell(row, 5), 0),
        weight=parse_number(_cell(row, 6), 0),
        volume=parse_number(_cell(row, 7), 0),
        notes=_cell(row, 8),
        created_at=_cell(row, 9),
    )


def is_legacy_row(row: Sequence[Any]) -> bool:
    """
    Legacy rows hold a JSON array where the exercise name now lives.

    Set rows always carry setNumber, reps, weight and volume, so they are
    wider than a legacy row even when the exercise name starts with "[".
    """
    if len(row) > LEGACY_ROW_WIDTH:
        return False
    return _cell(row, LEGACY_EXERCISES_COLUMN).lstrip().startswith("[")


def parse_legacy_exercises(value: str) -> List[Exercise]:
    """
    Parse a legacy JSON exercises cell.

    Raises:
        MalformedRecordError: If the cell is not a JSON list of exercises
    """
    try:
        data = json.loads(value)
    except json.JSONDecodeError as e:
        raise MalformedRecordError(f"Failed to parse exercises JSON: {e}") from e
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise MalformedRecordError("Exercises JSON must be a list of objects")

    exercises = []
    for item in data:
        sets = item.get("sets") or []
        if not isinstance(sets, list) or not all(isinstance(s, dict) for s in sets):
            raise MalformedRecordError("Exercise sets must be a list of objects")
        exercises.append(Exercise(
            exercise_name=str(item.get("exerciseName") or ""),
            sets=[
                WorkoutSet(
                    reps=parse_int(s.get("reps"), 0),
                    weight=parse_number(s.get("weight"), 0),
                    notes=s.get("notes"),
                )
                for s in sets
            ],
        ))
    return exercises


def legacy_row_to_workout(row: Sequence[Any]) -> Workout:
    """Read a legacy ``[workoutId, clientId, date, exercisesJSON, notes, createdAt]`` row."""
    try:
        exercises = parse_legacy_exercises(_cell(row, LEGACY_EXERCISES_COLUMN))
    except MalformedRecordError as e:
        logger.warning(
            "Malformed workout row, using empty exercises",
            workout_id=_cell(row, 0),
            code=e.code,
            error=e.message,
        )
        exercises = []
    return Workout(
        workout_id=_cell(row, 0),
        client_id=_cell(row, 1),
        date=_cell(row, 2),
        exercises=exercises,
        notes=_cell(row, 4),
        created_at=_cell(row, 5),
    )


class _WorkoutGroup:
    """Accumulates the rows of one workout while keeping first-seen order."""

    def __init__(self, workout: Workout):
        self.workout = workout
        self._exercises: Dict[str, Exercise] = {}
        for exercise in workout.exercises:
            self._exercises.setdefault(normalize_exercise_name(exercise.exercise_name), exercise)

    def exercise(self, name: str) -> Exercise:
        key = normalize_exercise_name(name)
        exercise = self._exercises.get(key)
        if exercise is None:
            exercise = Exercise(exercise_name=name)
            self._exercises[key] = exercise
            self.workout.exercises.append(exercise)
        return exercise

    def add_set_row(self, set_row: WorkoutSetRow) -> None:
        notes = set_row.notes if set_row.notes and set_row.notes != self.workout.notes else None
        self.exercise(set_row.exercise_name).sets.append(
            WorkoutSet(reps=set_row.reps, weight=set_row.weight, notes=notes)
        )

    def add_legacy(self, legacy: Workout) -> None:
        for exercise in legacy.exercises:
            self.exercise(exercise.exercise_name).sets.extend(exercise.sets)


def rows_to_workouts(rows: Sequence[Sequence[Any]], header_row_index: int = 0) -> List[Workout]:
    """
    Group Workouts rows into workouts.

    Args:
        rows: Sheet rows including the header
        header_row_index: Index of the header row

    Returns:
        Workouts in order of first appearance
    """
    if not rows:
        return []

    groups: Dict[str, _WorkoutGroup] = {}
    for row in rows[header_row_index + 1:]:
        if not row:
            continue

        if is_legacy_row(row):
            legacy = legacy_row_to_workout(row)
            if not legacy.workout_id:
                continue
            if legacy.workout_id in groups:
                groups[legacy.workout_id].add_legacy(legacy)
            else:
                groups[legacy.workout_id] = _WorkoutGroup(legacy)
            continue

        set_row = row_to_workout_set(row)
        if not set_row.workout_id:
            continue
        group = groups.get(set_row.workout_id)
        if group is None:
            group = _WorkoutGroup(Workout(
                workout_id=set_row.workout_id,
                client_id=set_row.client_id,
                date=set_row.date,
                exercises=[],
                notes=set_row.notes,
                created_at=set_row.created_at,
            ))
            groups[set_row.workout_id] = group
        group.add_set_row(set_row)

    return [group.workout for group in groups.values()]
