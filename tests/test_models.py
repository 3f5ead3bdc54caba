import pytest

from backend.models import (
    CARDIO,
    Exercise,
    ExerciseSet,
    WorkoutSession,
    parse_numeric_input,
)


@pytest.mark.parametrize(
    "text, expected",
    [(None, 0), ("", 0), ("  ", 0), ("135", 135), ("2.5", 2.5), ("10.0", 10), (7, 7)],
)
def test_parse_numeric_input_accepts(text, expected):
    value = parse_numeric_input(text)
    assert value == expected
    assert type(value) is type(expected)


@pytest.mark.parametrize(
    "text", ["-5", "+5", "1e3", "2E1", "abc", "inf", "nan", -1, float("nan"), float("inf")]
)
def test_parse_numeric_input_rejects(text):
    with pytest.raises(ValueError):
        parse_numeric_input(text)


def test_copy_values_creates_fresh_incomplete_set():
    original = ExerciseSet(weight=100, reps=5, completed=True)
    copied = original.copy_values()
    assert copied.id != original.id
    assert (copied.weight, copied.reps) == (100, 5)
    assert copied.completed is False


def test_workout_from_dict_fills_missing_fields():
    workout = WorkoutSession.from_dict(
        {
            "id": "w1",
            "name": "Legs",
            "start_time": 10,
            "exercises": [{"id": "e1", "name": "Squat", "sets": [{"id": "s1", "weight": 100}]}],
        }
    )
    ex_set = workout.exercises[0].sets[0]
    assert ex_set.reps == 0
    assert ex_set.reps_left == 0
    assert ex_set.completed is False
    assert workout.end_time is None
    assert WorkoutSession.from_dict(workout.to_dict()) == workout


def test_exercise_matching_is_trimmed_and_case_insensitive():
    workout = WorkoutSession(
        id="w1",
        name="Legs",
        start_time=0,
        exercises=[Exercise(name=" Back Squat ")],
    )
    assert workout.find_exercise("back squat") is workout.exercises[0]
    assert workout.find_exercise("Front Squat") is None


def test_find_set_unknown_id():
    exercise = Exercise(name="Row", category=CARDIO, sets=[ExerciseSet(id="a")])
    assert exercise.is_cardio
    assert exercise.find_set("a").id == "a"
    with pytest.raises(KeyError):
        exercise.find_set("missing")
