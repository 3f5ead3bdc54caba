"""Plain data records for workouts, exercises and sets.

All records serialise to JSON-friendly dictionaries via ``to_dict`` and are
rebuilt with ``from_dict``.  Loading is lenient: missing optional keys fall
back to their defaults so drafts written by older versions still open.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field

FREE_WEIGHT = "Free Weight"
CABLE = "Cable"
MACHINE = "Machine"
BODYWEIGHT = "Bodyweight"
CARDIO = "Cardio"
OTHER = "Other"

CATEGORIES = (FREE_WEIGHT, CABLE, MACHINE, BODYWEIGHT, CARDIO, OTHER)

# Characters a numeric field never accepts (sign and exponent notation)
_REJECTED_INPUT = set("-+eE")


def generate_id() -> str:
    """Return a short opaque identifier."""

    return uuid.uuid4().hex[:9]


def parse_numeric_input(text) -> int | float:
    """Convert user input for a numeric set field.

    Empty input means ``0``.  Signs and exponent notation are rejected with
    :class:`ValueError` before anything reaches session state.
    """

    if text is None:
        return 0
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        if not math.isfinite(text):
            raise ValueError(f"Invalid numeric input: {text!r}")
        if text < 0:
            raise ValueError(f"Negative value not allowed: {text}")
        return text
    raw = str(text).strip()
    if not raw:
        return 0
    if _REJECTED_INPUT & set(raw):
        raise ValueError(f"Invalid numeric input: {raw!r}")
    value = float(raw)
    if not math.isfinite(value):
        raise ValueError(f"Invalid numeric input: {raw!r}")
    return int(value) if value.is_integer() else value


def _number(value) -> int | float:
    if value is None:
        return 0
    return value


@dataclass
class ExerciseSet:
    id: str = field(default_factory=generate_id)
    weight: int | float = 0
    reps: int = 0
    reps_left: int = 0
    reps_right: int = 0
    distance: int | float = 0
    time: int | float = 0
    completed: bool = False
    rpe: int | None = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "weight": self.weight,
            "reps": self.reps,
            "reps_left": self.reps_left,
            "reps_right": self.reps_right,
            "distance": self.distance,
            "time": self.time,
            "completed": self.completed,
        }
        if self.rpe is not None:
            data["rpe"] = self.rpe
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ExerciseSet":
        return cls(
            id=data.get("id") or generate_id(),
            weight=_number(data.get("weight")),
            reps=_number(data.get("reps")),
            reps_left=_number(data.get("reps_left")),
            reps_right=_number(data.get("reps_right")),
            distance=_number(data.get("distance")),
            time=_number(data.get("time")),
            completed=bool(data.get("completed", False)),
            rpe=data.get("rpe"),
        )

    def copy_values(self) -> "ExerciseSet":
        """Return a new incomplete set carrying this set's numbers."""

        return ExerciseSet(
            weight=self.weight,
            reps=self.reps,
            reps_left=self.reps_left,
            reps_right=self.reps_right,
            distance=self.distance,
            time=self.time,
        )


@dataclass
class Exercise:
    name: str
    id: str = field(default_factory=generate_id)
    category: str | None = None
    is_unilateral: bool = False
    notes: str | None = None
    sets: list[ExerciseSet] = field(default_factory=list)

    @property
    def is_cardio(self) -> bool:
        return self.category == CARDIO

    def matches(self, name: str) -> bool:
        """Return ``True`` if ``name`` refers to this exercise."""

        return self.name.strip().lower() == name.strip().lower()

    def find_set(self, set_id: str) -> ExerciseSet:
        for ex_set in self.sets:
            if ex_set.id == set_id:
                return ex_set
        raise KeyError(f"Unknown set '{set_id}' for exercise '{self.name}'")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "is_unilateral": self.is_unilateral,
            "notes": self.notes,
            "sets": [s.to_dict() for s in self.sets],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Exercise":
        return cls(
            id=data.get("id") or generate_id(),
            name=data.get("name") or "",
            category=data.get("category"),
            is_unilateral=bool(data.get("is_unilateral", False)),
            notes=data.get("notes"),
            sets=[ExerciseSet.from_dict(s) for s in data.get("sets") or []],
        )


@dataclass
class WorkoutSession:
    id: str
    name: str
    start_time: float
    end_time: float | None = None
    exercises: list[Exercise] = field(default_factory=list)
    notes: str | None = None

    def find_exercise(self, name: str) -> Exercise | None:
        """Return the first exercise matching ``name`` case-insensitively."""

        for exercise in self.exercises:
            if exercise.matches(name):
                return exercise
        return None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "exercises": [e.to_dict() for e in self.exercises],
        }
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutSession":
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            start_time=data.get("start_time") or 0,
            end_time=data.get("end_time"),
            exercises=[Exercise.from_dict(e) for e in data.get("exercises") or []],
            notes=data.get("notes"),
        )


@dataclass
class KnownExercise:
    """An exercise name seen in history, used for search and autocomplete."""

    name: str
    category: str | None = None
    is_unilateral: bool = False
