"""Built-in workout presets and AI plan import.

Both sources are turned into the same import template understood by
:class:`backend.workout_session.ActiveWorkout`::

    {"name": str,
     "exercises": [{"name": str, "category": str, "is_unilateral": bool,
                    "notes": str | None, "sets": <number_of_sets>}, ...]}
"""

from __future__ import annotations

import json
import logging
import re

from backend.models import BODYWEIGHT, CABLE, CARDIO, FREE_WEIGHT

# Sets given to an AI suggested exercise that does not specify a count
DEFAULT_SETS_PER_EXERCISE = 3

DEFAULT_AI_WORKOUT_NAME = "AI Generated Workout"

# Presets grouped by training goal.  ``reps`` is minutes or seconds for
# timed exercises, as described in ``notes``.
PRESET_WORKOUTS: dict[str, list[dict]] = {
    "Strength": [
        {
            "name": "Full Body Power",
            "description": "Compound movements to build raw strength.",
            "exercises": [
                {"name": "Barbell Squat", "sets": 5, "reps": 5, "category": FREE_WEIGHT},
                {"name": "Bench Press", "sets": 5, "reps": 5, "category": FREE_WEIGHT},
                {"name": "Deadlift", "sets": 3, "reps": 5, "category": FREE_WEIGHT},
                {"name": "Overhead Press", "sets": 3, "reps": 8, "category": FREE_WEIGHT},
            ],
        },
        {
            "name": "Upper Body Strength",
            "description": "Focus on pushing and pulling strength.",
            "exercises": [
                {"name": "Bench Press", "sets": 4, "reps": 6, "category": FREE_WEIGHT},
                {"name": "Bent Over Row", "sets": 4, "reps": 6, "category": FREE_WEIGHT},
                {"name": "Pull Ups", "sets": 3, "reps": 8, "category": BODYWEIGHT},
                {"name": "Dumbbell Shoulder Press", "sets": 3, "reps": 8, "category": FREE_WEIGHT},
            ],
        },
    ],
    "Endurance": [
        {
            "name": "High Intensity Circuit",
            "description": "Keep the heart rate up with minimal rest.",
            "exercises": [
                {"name": "Jump Squats", "sets": 4, "reps": 20, "category": BODYWEIGHT},
                {"name": "Push Ups", "sets": 4, "reps": 15, "category": BODYWEIGHT},
                {"name": "Mountain Climbers", "sets": 4, "reps": 30, "category": CARDIO},
                {"name": "Burpees", "sets": 3, "reps": 12, "category": BODYWEIGHT},
            ],
        },
        {
            "name": "Cardio & Core",
            "description": "Running mixed with core stability.",
            "exercises": [
                {"name": "Running (Treadmill)", "sets": 1, "reps": 20, "category": CARDIO,
                 "notes": "20 minutes steady pace"},
                {"name": "Plank", "sets": 3, "reps": 60, "category": BODYWEIGHT, "notes": "60 seconds"},
                {"name": "Russian Twists", "sets": 3, "reps": 20, "category": BODYWEIGHT},
            ],
        },
    ],
    "Aesthetics": [
        {
            "name": "Push Hypertrophy",
            "description": "Chest, shoulders, and triceps focus.",
            "exercises": [
                {"name": "Incline Dumbbell Press", "sets": 4, "reps": 10, "category": FREE_WEIGHT},
                {"name": "Lateral Raises", "sets": 4, "reps": 15, "category": FREE_WEIGHT},
                {"name": "Tricep Pushdowns", "sets": 3, "reps": 12, "category": CABLE},
                {"name": "Cable Flys", "sets": 3, "reps": 15, "category": CABLE},
            ],
        },
        {
            "name": "Pull Hypertrophy",
            "description": "Back and biceps focus.",
            "exercises": [
                {"name": "Lat Pulldown", "sets": 4, "reps": 12, "category": CABLE},
                {"name": "Seated Cable Row", "sets": 4, "reps": 12, "category": CABLE},
                {"name": "Face Pulls", "sets": 3, "reps": 15, "category": CABLE},
                {"name": "Barbell Curls", "sets": 3, "reps": 10, "category": FREE_WEIGHT},
            ],
        },
    ],
    "Overall": [
        {
            "name": "Balanced Full Body",
            "description": "A mix of strength and conditioning.",
            "exercises": [
                {"name": "Goblet Squat", "sets": 3, "reps": 12, "category": FREE_WEIGHT},
                {"name": "Push Ups", "sets": 3, "reps": 15, "category": BODYWEIGHT},
                {"name": "Dumbbell Rows", "sets": 3, "reps": 12, "category": FREE_WEIGHT,
                 "is_unilateral": True},
                {"name": "Plank", "sets": 3, "reps": 45, "category": BODYWEIGHT, "notes": "45 seconds"},
            ],
        },
    ],
}


def presets_for_goal(goal: str | None) -> list[dict]:
    """Return presets matching ``goal`` followed by the general ones."""

    overall = PRESET_WORKOUTS["Overall"]
    if not goal or goal == "Overall":
        return list(overall)
    return PRESET_WORKOUTS.get(goal, []) + overall


def preset_to_template(preset: dict) -> dict:
    """Convert an entry of :data:`PRESET_WORKOUTS` to an import template."""

    return {
        "name": preset["name"],
        "exercises": [
            {
                "name": ex["name"],
                "category": ex.get("category", FREE_WEIGHT),
                "is_unilateral": bool(ex.get("is_unilateral", False)),
                "notes": ex.get("notes"),
                "sets": ex.get("sets", DEFAULT_SETS_PER_EXERCISE),
            }
            for ex in preset.get("exercises", [])
        ],
    }


def plan_to_template(plan: dict) -> dict | None:
    """Convert a parsed AI workout plan to an import template.

    Returns ``None`` when the plan has no exercise list.
    """

    exercises = plan.get("exercises") if isinstance(plan, dict) else None
    if not isinstance(exercises, list):
        return None
    result = []
    for ex in exercises:
        if not isinstance(ex, dict) or not ex.get("name"):
            continue
        suggestion = ex.get("suggestedWeight")
        result.append(
            {
                "name": str(ex["name"]),
                "category": ex.get("category") or FREE_WEIGHT,
                "is_unilateral": bool(ex.get("isUnilateral", False)),
                "notes": f"Suggestion: {suggestion}" if suggestion else None,
                "sets": int(ex.get("sets") or DEFAULT_SETS_PER_EXERCISE),
            }
        )
    return {
        "name": plan.get("workoutName") or DEFAULT_AI_WORKOUT_NAME,
        "exercises": result,
    }


_CODE_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
_TRAILING_COMMA_OBJ = re.compile(r",\s*}")
_TRAILING_COMMA_LIST = re.compile(r",\s*]")


def parse_workout_from_ai(text: str) -> dict | None:
    """Extract the JSON workout plan embedded in an assistant reply.

    A fenced code block is preferred; otherwise the outermost pair of
    braces is used.  Trailing commas are removed on a second attempt.
    Returns ``None`` if no plan can be parsed.
    """

    if not text:
        return None
    content = None
    match = _CODE_BLOCK.search(text)
    if match and match.group(1):
        content = match.group(1)
    else:
        start = text.find("{")
        end = text.rfind("}")
        if start != -1 and end > start:
            content = text[start : end + 1]
    if not content:
        return None

    try:
        return json.loads(content)
    except ValueError:
        logging.warning("Initial workout JSON parse failed, retrying after cleanup")
    cleaned = _TRAILING_COMMA_LIST.sub("]", _TRAILING_COMMA_OBJ.sub("}", content))
    try:
        return json.loads(cleaned)
    except ValueError:
        logging.exception("Failed to parse workout JSON from assistant reply")
        return None
