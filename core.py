from __future__ import annotations

from pathlib import Path

from backend import DEFAULT_DB_PATH, DEFAULT_REST_DURATION
from backend.models import CATEGORIES, WorkoutSession
from backend.presets import (
    DEFAULT_SETS_PER_EXERCISE,
    parse_workout_from_ai,
    plan_to_template,
    preset_to_template,
    presets_for_goal,
)
from backend.storage import KeyValueStore, WorkoutStorage
from backend.workout_session import ActiveWorkout

__all__ = [
    "CATEGORIES",
    "DEFAULT_DB_PATH",
    "DEFAULT_REST_DURATION",
    "DEFAULT_SETS_PER_EXERCISE",
    "ActiveWorkout",
    "WorkoutSession",
    "open_storage",
    "start_workout",
    "template_from_preset",
    "template_from_ai_reply",
]


def open_storage(db_path: Path = DEFAULT_DB_PATH) -> WorkoutStorage:
    """Return a :class:`WorkoutStorage` backed by the database at ``db_path``."""

    return WorkoutStorage(KeyValueStore(db_path))


def start_workout(
    user_id: str,
    edit_workout_id: str | None = None,
    template: dict | None = None,
    db_path: Path = DEFAULT_DB_PATH,
    **kwargs,
) -> ActiveWorkout:
    """Open the active workout screen's session for ``user_id``.

    Extra keyword arguments are passed to :class:`ActiveWorkout`.
    """

    storage = kwargs.pop("storage", None) or open_storage(db_path)
    return ActiveWorkout(user_id, storage, edit_workout_id, template, **kwargs)


def template_from_preset(goal: str | None, name: str) -> dict | None:
    """Return the import template for the preset called ``name``."""

    for preset in presets_for_goal(goal):
        if preset["name"] == name:
            return preset_to_template(preset)
    return None


def template_from_ai_reply(text: str) -> dict | None:
    """Return an import template for the plan in an assistant reply."""

    plan = parse_workout_from_ai(text)
    if plan is None:
        return None
    return plan_to_template(plan)
