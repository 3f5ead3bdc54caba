"""Read-only views over a user's workout history.

These helpers supply the "ghost" values shown while logging a set (what
was done last time), the last/PR summary of an exercise, per-workout
progress points for charts, the weekly volume trend and the known-exercise
list used for search.
Nothing here writes to storage.
"""

from __future__ import annotations

from dataclasses import dataclass
import datetime
import time

from backend.models import Exercise, ExerciseSet, KnownExercise, WorkoutSession
from backend.storage import WorkoutStorage

NOT_AVAILABLE = "N/A"


@dataclass
class HistoryPoint:
    """Best performance of one exercise within a single workout."""

    date: float
    max_weight: int | float  # distance for cardio
    volume: int | float
    best_set: ExerciseSet


def format_number(value) -> str:
    """Render ``value`` without a trailing ``.0`` for whole numbers."""

    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def _strength_text(weight, reps) -> str:
    return f"{format_number(weight)}lbs x {format_number(reps)}"


def _cardio_text(distance, minutes) -> str:
    return f"{format_number(distance)}mi / {format_number(minutes)}m"


def _workouts_with(workouts: list[WorkoutSession], name: str) -> list[tuple[WorkoutSession, Exercise]]:
    """Return ``(workout, exercise)`` pairs containing ``name``, newest first."""

    pairs = []
    for workout in sorted(workouts, key=lambda w: w.start_time, reverse=True):
        exercise = workout.find_exercise(name)
        if exercise is not None:
            pairs.append((workout, exercise))
    return pairs


def last_sets_for(
    storage: WorkoutStorage,
    user_id: str,
    name: str,
    exclude_workout_id: str | None = None,
) -> list[ExerciseSet] | None:
    """Return the sets logged for ``name`` in the most recent workout.

    ``exclude_workout_id`` keeps a workout being edited from suggesting its
    own values.  ``None`` is returned when the exercise was never logged.
    """

    if not user_id or not name or not name.strip():
        return None
    workouts = storage.get_workouts(user_id)
    if exclude_workout_id:
        workouts = [w for w in workouts if w.id != exclude_workout_id]
    pairs = _workouts_with(workouts, name)
    if not pairs:
        return None
    return pairs[0][1].sets


def _effective_reps(ex_set: ExerciseSet, unilateral: bool):
    if unilateral:
        return ex_set.reps_left or ex_set.reps
    return ex_set.reps


def stats_for(storage: WorkoutStorage, user_id: str, name: str) -> dict | None:
    """Return ``{"last": ..., "pr": ...}`` display strings for ``name``.

    ``last`` describes the best completed set of the most recent workout
    containing the exercise.  ``pr`` is the heaviest completed set ever
    logged (longest distance for cardio), ties going to the higher rep
    count.  Either value is ``"N/A"`` when nothing qualifies.  ``None`` is
    returned when the exercise never appears in history.
    """

    if not user_id or not name or not name.strip():
        return None
    pairs = _workouts_with(storage.get_workouts(user_id), name)
    if not pairs:
        return None

    last_exercise = pairs[0][1]
    is_cardio = last_exercise.is_cardio
    unilateral = last_exercise.is_unilateral

    last = NOT_AVAILABLE
    completed = [s for s in last_exercise.sets if s.completed]
    if completed:
        best = completed[0]
        for current in completed[1:]:
            if is_cardio:
                if (current.distance or 0) > (best.distance or 0):
                    best = current
            elif current.weight > best.weight or (
                current.weight == best.weight
                and _effective_reps(current, unilateral) > _effective_reps(best, unilateral)
            ):
                best = current
        if is_cardio:
            last = _cardio_text(best.distance or 0, best.time or 0)
        else:
            last = _strength_text(best.weight, _effective_reps(best, unilateral))

    pr = NOT_AVAILABLE
    if is_cardio:
        max_distance = 0
        associated_time = 0
        for _, exercise in pairs:
            for s in exercise.sets:
                if s.completed and (s.distance or 0) > max_distance:
                    max_distance = s.distance
                    associated_time = s.time or 0
        if max_distance > 0:
            pr = _cardio_text(max_distance, associated_time)
    else:
        max_weight = 0
        max_weight_reps = 0
        for _, exercise in pairs:
            for s in exercise.sets:
                if not s.completed or s.weight <= 0:
                    continue
                reps = s.reps_left or s.reps
                if s.weight > max_weight:
                    max_weight = s.weight
                    max_weight_reps = reps
                elif s.weight == max_weight and reps > max_weight_reps:
                    max_weight_reps = reps
        if max_weight > 0:
            pr = _strength_text(max_weight, max_weight_reps)

    return {"last": last, "pr": pr}


def exercise_history(storage: WorkoutStorage, user_id: str, name: str) -> list[HistoryPoint]:
    """Return one progress point per workout containing ``name``, oldest first.

    Strength volume is the sum of ``weight * reps`` over completed sets
    (left plus right reps for unilateral exercises); cardio volume is the
    total distance.  Workouts without a positive best value are skipped.
    """

    if not user_id or not name or not name.strip():
        return []
    points: list[HistoryPoint] = []
    for workout in storage.get_workouts(user_id):
        exercise = workout.find_exercise(name)
        if exercise is None or not exercise.sets:
            continue
        max_value = 0
        best_set = exercise.sets[0]
        volume = 0
        for s in exercise.sets:
            if not s.completed:
                continue
            if exercise.is_cardio:
                distance = s.distance or 0
                volume += distance
                if distance > max_value:
                    max_value = distance
                    best_set = s
            else:
                if exercise.is_unilateral:
                    reps = (s.reps_left or 0) + (s.reps_right or 0)
                else:
                    reps = s.reps
                volume += s.weight * reps
                if s.weight > max_value:
                    max_value = s.weight
                    best_set = s
        if max_value > 0:
            points.append(HistoryPoint(workout.start_time, max_value, volume, best_set))
    points.sort(key=lambda p: p.date)
    return points


@dataclass
class DailyVolume:
    """Strength volume lifted on one calendar day."""

    day: datetime.date
    label: str
    volume: int | float


def weekly_volume(
    storage: WorkoutStorage, user_id: str, now: float | None = None, days: int = 7
) -> list[DailyVolume]:
    """Return the daily strength volume of the last ``days`` days, oldest first.

    Today is the last entry.  Volume sums ``weight * reps`` over completed
    sets of non-cardio exercises (left plus right reps when unilateral).
    Days without workouts are present with a volume of 0.
    """

    now = time.time() if now is None else now
    today = datetime.date.fromtimestamp(now)
    totals = {today - datetime.timedelta(days=offset): 0 for offset in range(days - 1, -1, -1)}
    for workout in storage.get_workouts(user_id):
        day = datetime.date.fromtimestamp(workout.start_time)
        if day not in totals:
            continue
        for exercise in workout.exercises:
            if exercise.is_cardio:
                continue
            for s in exercise.sets:
                if not s.completed:
                    continue
                if exercise.is_unilateral:
                    reps = (s.reps_left or 0) + (s.reps_right or 0)
                else:
                    reps = s.reps
                totals[day] += s.weight * reps
    return [DailyVolume(day, day.strftime("%a"), volume) for day, volume in totals.items()]


def known_exercises(storage: WorkoutStorage, user_id: str) -> list[KnownExercise]:
    """Return every exercise name in history that is not hidden."""

    if not user_id:
        return []
    hidden = {h.lower() for h in storage.get_hidden_exercises(user_id)}
    seen: dict[str, KnownExercise] = {}
    for workout in storage.get_workouts(user_id):
        for exercise in workout.exercises:
            clean = (exercise.name or "").strip()
            if not clean:
                continue
            lower = clean.lower()
            if lower in hidden or lower in seen:
                continue
            seen[lower] = KnownExercise(clean, exercise.category, exercise.is_unilateral)
    return sorted(seen.values(), key=lambda k: k.name.lower())


def exercise_suggestions(known: list[KnownExercise], text: str, limit: int = 5) -> list[str]:
    """Return up to ``limit`` names containing ``text`` other than ``text`` itself."""

    if not text or not text.strip():
        return []
    lower = text.lower()
    names = [
        k.name
        for k in known
        if lower in k.name.lower() and k.name.lower() != lower
    ]
    return names[:limit]


def search_known_exercises(known: list[KnownExercise], query: str) -> list[KnownExercise]:
    lower = (query or "").lower()
    return [k for k in known if lower in k.name.lower()]


def ghost_autofill(exercise: Exercise, current: ExerciseSet, ghost: ExerciseSet | None) -> dict:
    """Return field values to copy from ``ghost`` when completing ``current``.

    Only fields still at zero are filled.  Cardio exercises take distance
    and time; others take weight and reps (left/right for unilateral).
    """

    if ghost is None:
        return {}
    if exercise.is_cardio:
        fields = ("distance", "time")
    elif exercise.is_unilateral:
        fields = ("weight", "reps_left", "reps_right")
    else:
        fields = ("weight", "reps")
    updates = {}
    for name in fields:
        if not getattr(current, name) and getattr(ghost, name):
            updates[name] = getattr(ghost, name)
    return updates


def recent_workouts_context(storage: WorkoutStorage, user_id: str, limit: int = 5) -> str:
    """Return a plain-text digest of the latest workouts for the AI coach."""

    workouts = storage.get_workouts(user_id)[:limit]
    if not workouts:
        return "No previous workout history."

    lines = ["RECENT WORKOUT HISTORY:"]
    for workout in workouts:
        day = time.strftime("%Y-%m-%d", time.localtime(workout.start_time))
        lines.append("")
        lines.append(f"Workout: {workout.name} ({day})")
        for ex in workout.exercises:
            completed = [s for s in ex.sets if s.completed]
            if not completed:
                detail = "No sets completed."
            elif ex.is_cardio:
                detail = ", ".join(
                    f"{format_number(s.distance)}mi/{format_number(s.time)}m"
                    for s in completed
                )
            elif ex.is_unilateral:
                detail = ", ".join(
                    f"{format_number(s.weight)}lbs x (L:{s.reps_left} R:{s.reps_right})"
                    for s in completed
                )
            else:
                detail = ", ".join(
                    f"{format_number(s.weight)}lbs x {s.reps}" for s in completed
                )
            lines.append(f"  - {ex.name} ({ex.category or 'Free Weight'}): {detail}")
    return "\n".join(lines)
