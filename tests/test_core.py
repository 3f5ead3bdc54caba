import core
from backend.storage import WorkoutStorage

USER = "user-1"


def test_open_storage_creates_database(tmp_path):
    db_path = tmp_path / "nested" / "ironlog.db"
    storage = core.open_storage(db_path)
    assert isinstance(storage, WorkoutStorage)
    assert db_path.exists()


def test_start_workout_from_preset(storage, clock, sound):
    template = core.template_from_preset("Strength", "Full Body Power")
    workout = core.start_workout(USER, template=template, storage=storage, clock=clock, sound=sound)
    assert workout.workout_name == "Full Body Power"
    assert [len(e.sets) for e in workout.exercises] == [5, 5, 3, 3]
    assert core.template_from_preset("Strength", "Missing") is None


def test_start_workout_from_ai_reply(tmp_path, clock, sound):
    reply = '```json\n{"workoutName": "Quick Pump", "exercises": [{"name": "Curl", "sets": 2}]}\n```'
    template = core.template_from_ai_reply(reply)
    workout = core.start_workout(USER, template=template, db_path=tmp_path / "db.sqlite", clock=clock, sound=sound)
    assert workout.workout_name == "Quick Pump"
    assert len(workout.exercises[0].sets) == 2
    assert core.template_from_ai_reply("nothing to see") is None
