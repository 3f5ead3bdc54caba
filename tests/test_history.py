import datetime

from backend import history
from backend.models import CARDIO, Exercise, ExerciseSet

USER = "user-1"


def test_stats_for_strength(storage, history_workout):
    storage.save_workout(
        USER,
        history_workout("old", 100, "Squat", [{"weight": 120, "reps": 5}, {"weight": 100, "reps": 8}]),
    )
    storage.save_workout(
        USER,
        history_workout(
            "new",
            200,
            "squat",
            [
                {"weight": 100, "reps": 5},
                {"weight": 110, "reps": 3},
                {"weight": 110, "reps": 4},
                {"weight": 200, "reps": 1, "completed": False},
            ],
        ),
    )
    stats = history.stats_for(storage, USER, "Squat")
    assert stats == {"last": "110lbs x 4", "pr": "120lbs x 5"}


def test_pr_tie_on_weight_goes_to_more_reps(storage, history_workout):
    storage.save_workout(
        USER,
        history_workout("a", 100, "Bench", [{"weight": 100, "reps": 5}, {"weight": 120, "reps": 3}, {"weight": 120, "reps": 5}]),
    )
    assert history.stats_for(storage, USER, "Bench") == {"last": "120lbs x 5", "pr": "120lbs x 5"}

    storage.save_workout(USER, history_workout("b", 200, "Bench", [{"weight": 120, "reps": 2}]))
    assert history.stats_for(storage, USER, "Bench") == {"last": "120lbs x 2", "pr": "120lbs x 5"}


def test_stats_for_cardio(storage, history_workout):
    storage.save_workout(
        USER,
        history_workout("r1", 100, "Run", [{"distance": 3.1, "time": 25}], category=CARDIO),
    )
    storage.save_workout(
        USER,
        history_workout("r2", 200, "Run", [{"distance": 2.0, "time": 15}], category=CARDIO),
    )
    assert history.stats_for(storage, USER, "Run") == {"last": "2mi / 15m", "pr": "3.1mi / 25m"}


def test_stats_for_unknown_or_incomplete(storage, history_workout):
    assert history.stats_for(storage, USER, "Squat") is None
    storage.save_workout(USER, history_workout("a", 1, "Squat", [{"weight": 100, "reps": 5, "completed": False}]))
    assert history.stats_for(storage, USER, "Squat") == {"last": "N/A", "pr": "N/A"}


def test_last_sets_excludes_workout_being_edited(storage, history_workout):
    storage.save_workout(USER, history_workout("a", 100, "Squat", [{"weight": 100, "reps": 5}]))
    storage.save_workout(USER, history_workout("b", 200, "Squat", [{"weight": 150, "reps": 3}]))
    assert history.last_sets_for(storage, USER, "Squat")[0].weight == 150
    assert history.last_sets_for(storage, USER, "Squat", exclude_workout_id="b")[0].weight == 100
    assert history.last_sets_for(storage, USER, "Deadlift") is None
    assert history.last_sets_for(storage, USER, "  ") is None


def test_exercise_history_unilateral_volume(storage, history_workout):
    storage.save_workout(
        USER,
        history_workout(
            "a",
            100,
            "Dumbbell Row",
            [{"weight": 40, "reps_left": 10, "reps_right": 10}],
            unilateral=True,
        ),
    )
    storage.save_workout(USER, history_workout("b", 50, "Dumbbell Row", [{"weight": 0, "reps": 10}]))
    points = history.exercise_history(storage, USER, "dumbbell row")
    assert len(points) == 1
    assert points[0].max_weight == 40
    assert points[0].volume == 800


def test_exercise_history_is_oldest_first(storage, history_workout):
    storage.save_workout(USER, history_workout("a", 300, "Squat", [{"weight": 100, "reps": 5}]))
    storage.save_workout(USER, history_workout("b", 100, "Squat", [{"weight": 90, "reps": 5}]))
    assert [p.date for p in history.exercise_history(storage, USER, "Squat")] == [100, 300]


def test_known_exercises_and_suggestions(storage, history_workout):
    storage.save_workout(USER, history_workout("a", 1, "Bench Press", [{}]))
    storage.save_workout(USER, history_workout("b", 2, "Incline Bench Press", [{}]))
    storage.save_workout(USER, history_workout("c", 3, "bench press", [{}]))
    storage.save_workout(USER, history_workout("d", 4, "Squat", [{}]))
    storage.hide_exercise_name(USER, "Squat")

    known = history.known_exercises(storage, USER)
    assert [k.name.lower() for k in known] == ["bench press", "incline bench press"]
    assert history.exercise_suggestions(known, "bench press") == ["Incline Bench Press"]
    assert history.exercise_suggestions(known, "") == []
    assert len(history.search_known_exercises(known, "")) == 2


def test_ghost_autofill_only_fills_zero_fields():
    exercise = Exercise(name="Squat")
    current = ExerciseSet(weight=0, reps=8)
    ghost = ExerciseSet(weight=135, reps=5)
    assert history.ghost_autofill(exercise, current, ghost) == {"weight": 135}
    assert history.ghost_autofill(exercise, current, None) == {}

    unilateral = Exercise(name="Row", is_unilateral=True)
    ghost = ExerciseSet(weight=40, reps_left=10, reps_right=9)
    assert history.ghost_autofill(unilateral, ExerciseSet(), ghost) == {
        "weight": 40,
        "reps_left": 10,
        "reps_right": 9,
    }

    cardio = Exercise(name="Run", category=CARDIO)
    ghost = ExerciseSet(distance=3, time=25, weight=10)
    assert history.ghost_autofill(cardio, ExerciseSet(), ghost) == {"distance": 3, "time": 25}


def test_recent_workouts_context(storage, history_workout):
    assert history.recent_workouts_context(storage, USER) == "No previous workout history."
    storage.save_workout(USER, history_workout("a", 1, "Squat", [{"weight": 100, "reps": 5}]))
    text = history.recent_workouts_context(storage, USER)
    assert "Squat (Free Weight): 100lbs x 5" in text


def test_weekly_volume(storage, history_workout):
    now = datetime.datetime(2024, 3, 10, 18, 0).timestamp()
    day = 86400
    storage.save_workout(
        USER,
        history_workout("today", now - 3600, "Squat", [{"weight": 100, "reps": 5}, {"weight": 200, "reps": 5, "completed": False}]),
    )
    storage.save_workout(USER, history_workout("run", now - 1800, "Run", [{"distance": 3, "time": 25}], category=CARDIO))
    storage.save_workout(
        USER,
        history_workout("row", now - 2 * day, "Row", [{"weight": 40, "reps_left": 10, "reps_right": 10}], unilateral=True),
    )
    storage.save_workout(USER, history_workout("old", now - 8 * day, "Squat", [{"weight": 300, "reps": 5}]))

    points = history.weekly_volume(storage, USER, now=now)
    assert len(points) == 7
    assert points[-1].day == datetime.date(2024, 3, 10)
    assert points[-1].label == "Sun"
    assert points[0].day == datetime.date(2024, 3, 4)
    assert [p.volume for p in points] == [0, 0, 0, 0, 800, 0, 500]
    assert history.weekly_volume(storage, "", now=now)[-1].volume == 0
