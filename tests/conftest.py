import os
from pathlib import Path
import sys
import time

import pytest

# Kivy parses sys.argv and writes logs on import unless told otherwise.
os.environ.setdefault("KIVY_NO_ARGS", "1")
os.environ.setdefault("KIVY_NO_CONSOLELOG", "1")
os.environ.setdefault("KIVY_NO_FILELOG", "1")
os.environ.setdefault("KIVY_LOG_MODE", "PYTHON")

sys.path.append(str(Path(__file__).resolve().parents[1]))

from backend.models import Exercise, ExerciseSet, WorkoutSession  # noqa: E402
from backend.storage import KeyValueStore, WorkoutStorage  # noqa: E402

USER = "user-1"
START = 1_700_000_000.0


class FakeEvent:
    """Scheduled callback returned by :class:`FakeClock`."""

    def __init__(self, clock, callback, timeout, repeat):
        self.clock = clock
        self.callback = callback
        self.timeout = timeout
        self.repeat = repeat
        self.due = clock.now + timeout
        self.cancelled = False

    def cancel(self):
        self.cancelled = True
        if self in self.clock.events:
            self.clock.events.remove(self)


class FakeClock:
    """Deterministic stand-in for ``kivy.clock.Clock``.

    ``time.time`` is patched to return :attr:`now` so wall-clock reads and
    scheduled callbacks agree.
    """

    def __init__(self, now=START):
        self.now = now
        self.events = []

    def schedule_once(self, callback, timeout=0):
        event = FakeEvent(self, callback, timeout, repeat=False)
        self.events.append(event)
        return event

    def schedule_interval(self, callback, timeout):
        event = FakeEvent(self, callback, timeout, repeat=True)
        self.events.append(event)
        return event

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [e for e in self.events if e.due <= target]
            if not due:
                break
            event = min(due, key=lambda e: e.due)
            dt = event.timeout
            self.now = event.due
            if event.repeat:
                event.due += event.timeout
            else:
                self.events.remove(event)
            event.callback(dt)
        self.now = target


class FakeSound:
    def __init__(self):
        self.played = 0

    def play_rest_complete(self):
        self.played += 1


@pytest.fixture
def store(tmp_path: Path) -> KeyValueStore:
    return KeyValueStore(tmp_path / "ironlog.db")


@pytest.fixture
def storage(store) -> WorkoutStorage:
    return WorkoutStorage(store)


@pytest.fixture
def clock(monkeypatch) -> FakeClock:
    fake = FakeClock()
    monkeypatch.setattr(time, "time", lambda: fake.now)
    return fake


@pytest.fixture
def sound() -> FakeSound:
    return FakeSound()


@pytest.fixture
def make_workout(storage, clock, sound):
    """Return a factory opening an ``ActiveWorkout`` for :data:`USER`."""

    from backend.workout_session import ActiveWorkout

    def factory(edit_workout_id=None, template=None, **kwargs):
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("sound", sound)
        return ActiveWorkout(USER, storage, edit_workout_id, template, **kwargs)

    return factory


@pytest.fixture
def history_workout():
    """Return a builder for finished single-exercise workouts.

    ``sets`` holds ``ExerciseSet`` keyword dictionaries; they default to
    completed.
    """

    def build(workout_id, start_time, exercise_name, sets, category=None, unilateral=False):
        ex_sets = [ExerciseSet(**{"completed": True, **s}) for s in sets]
        exercise = Exercise(
            name=exercise_name,
            category=category,
            is_unilateral=unilateral,
            sets=ex_sets,
        )
        return WorkoutSession(
            id=workout_id,
            name=f"Workout {workout_id}",
            start_time=start_time,
            end_time=start_time + 3600,
            exercises=[exercise],
        )

    return build
