"""
Workout records.

A workout holds exercises, each with ordered sets. In the Workouts sheet it
is flattened to one row per set (see ``app.services.mapping``).
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class WorkoutSet:
    """A single set of an exercise."""

    reps: int
    weight: float
    notes: Optional[str] = None

    @property
    def volume(self) -> float:
        return self.reps * self.weight

    def to_dict(self) -> dict:
        data: Dict[str, Any] = {"reps": self.reps, "weight": self.weight}
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkoutSet":
        return cls(
            reps=data.get("reps", 0),
            weight=data.get("weight", 0),
            notes=data.get("notes"),
        )


@dataclass
class Exercise:
    """An exercise performed in a workout."""

    exercise_name: str
    sets: List[WorkoutSet] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "exerciseName": self.exercise_name,
            "sets": [s.to_dict() for s in self.sets],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Exercise":
        return cls(
            exercise_name=data.get("exerciseName") or "",
            sets=[WorkoutSet.from_dict(s) for s in data.get("sets") or []],
        )


@dataclass
class Workout:
    """A logged training session for one client."""

    workout_id: str
    client_id: str
    date: str
    exercises: List[Exercise] = field(default_factory=list)
    notes: str = ""
    created_at: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "workoutId": self.workout_id,
            "clientId": self.client_id,
            "date": self.date,
            "exercises": [e.to_dict() for e in self.exercises],
            "notes": self.notes,
            "createdAt": self.created_at,
        }


@dataclass
class WorkoutPatch:
    """
    Partial workout update. ``None`` means "keep the stored value".

    ``workout_id`` and ``created_at`` never override the stored values.
    """

    client_id: Optional[str] = None
    date: Optional[str] = None
    exercises: Optional[List[Exercise]] = None
    notes: Optional[str] = None
    workout_id: Optional[str] = None
    created_at: Optional[str] = None

    def apply(self, existing: Workout) -> Workout:
        """Merge this patch over an existing workout."""
        return Workout(
            workout_id=existing.workout_id,
            client_id=self.client_id if self.client_id is not None else existing.client_id,
            date=self.date if self.date is not None else existing.date,
            exercises=self.exercises if self.exercises is not None else existing.exercises,
            notes=self.notes if self.notes is not None else existing.notes,
            created_at=existing.created_at,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkoutPatch":
        exercises = data.get("exercises")
        return cls(
            client_id=data.get("clientId"),
            date=data.get("date"),
            exercises=[Exercise.from_dict(e) for e in exercises] if exercises is not None else None,
            notes=data.get("notes"),
            workout_id=data.get("workoutId"),
            created_at=data.get("createdAt"),
        )


@dataclass
class WorkoutSetRow:
    """One parsed row of the Workouts sheet."""

    workout_id: str
    client_id: str = ""
    date: str = ""
    exercise_name: str = ""
    set_number: int = 1
    reps: int = 0
    weight: float = 0
    volume: float = 0
    notes: str = ""
    created_at: str = ""
