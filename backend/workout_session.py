from __future__ import annotations

import copy
import logging
import time
from typing import Callable

from kivy.clock import Clock

from backend import HIDDEN_UNDO_WINDOW, TIMER_TICK_INTERVAL
from backend import history
from backend.draft import DraftManager, WorkoutDraft
from backend.elapsed_timer import ElapsedTimer, format_time
from backend.models import (
    CATEGORIES,
    Exercise,
    ExerciseSet,
    WorkoutSession,
    generate_id,
    parse_numeric_input,
)
from backend.presets import DEFAULT_SETS_PER_EXERCISE
from backend.rest_timer import RestTimer
from backend.storage import WorkoutStorage

MODE_DRAFT = "draft"
MODE_EDIT = "edit"
MODE_TEMPLATE = "template"
MODE_NEW = "new"

DEFAULT_WORKOUT_NAME = "New Workout"
CANCEL_PROMPT = "Are you sure you want to cancel? This workout will be lost."


def _exercise_from_template(item: dict) -> Exercise:
    """Build an exercise from an import template entry.

    ``sets`` is normally a count that expands into empty sets; a list of
    set mappings is accepted as-is.
    """

    sets = item.get("sets")
    if isinstance(sets, list):
        ex_sets = [ExerciseSet.from_dict(s) for s in sets]
    else:
        ex_sets = [ExerciseSet() for _ in range(int(sets or DEFAULT_SETS_PER_EXERCISE))]
    return Exercise(
        name=item.get("name") or "",
        category=item.get("category"),
        is_unilateral=bool(item.get("is_unilateral", False)),
        notes=item.get("notes"),
        sets=ex_sets,
    )


class ActiveWorkout:
    """The workout currently being logged.

    Owns the exercise list and coordinates the elapsed-time tracker, the
    rest timer and the draft autosave.  The initial state is chosen once,
    in priority order: a draft belonging to ``edit_workout_id``, the stored
    workout being edited, ``imported_template``, or a blank workout.

    ``confirm`` receives a prompt and returns ``True`` to allow cancelling.
    ``clock`` defaults to the Kivy clock; periodic work (the workout clock,
    the rest countdown) and delayed work (autosave, undo window) are
    scheduled on it.
    """

    def __init__(
        self,
        user_id: str,
        storage: WorkoutStorage,
        edit_workout_id: str | None = None,
        imported_template: dict | None = None,
        *,
        on_finish: Callable[[], None] | None = None,
        on_cancel: Callable[[], None] | None = None,
        confirm: Callable[[str], bool] | None = None,
        clock=Clock,
        sound=None,
        now: float | None = None,
    ) -> None:
        self.user_id = user_id
        self.storage = storage
        self.edit_workout_id = edit_workout_id
        self.on_finish = on_finish
        self.on_cancel = on_cancel
        self.confirm = confirm
        self.clock = clock
        self._sound = sound

        self.workout_name = DEFAULT_WORKOUT_NAME
        self.exercises: list[Exercise] = []
        self.exercises_expanded: dict[str, bool] = {}
        self.notes_expanded: dict[str, bool] = {}
        self.timer = ElapsedTimer()
        self.timer_display = 0
        self.rest_timer = RestTimer(
            storage.get_rest_timer_preference(user_id),
            on_complete=self._play_rest_complete,
        )

        # per exercise id caches of history lookups
        self.stats: dict[str, dict | None] = {}
        self.last_session_sets: dict[str, list[ExerciseSet] | None] = {}

        self.known = history.known_exercises(storage, user_id)
        self.just_hidden: str | None = None
        self.focused_exercise: str | None = None
        self.closed = False

        self._timer_event = None
        self._rest_event = None
        self._hidden_event = None

        self.drafts = DraftManager(storage, user_id, self.to_draft, clock=clock)

        now = time.time() if now is None else now
        self.mode = self._mount(imported_template, now)
        for exercise in self.exercises:
            self.refresh_exercise_data(exercise.id)
        self._sync_timer_event()
        self._sync_rest_event()
        self.refresh_timer_display(now)
        self._changed()

    # ------------------------------------------------------------------
    # Mounting
    # ------------------------------------------------------------------

    def _mount(self, template: dict | None, now: float) -> str:
        draft = self.drafts.load_relevant(self.edit_workout_id)
        if draft is not None:
            self._restore_draft(draft, now)
            return MODE_DRAFT

        if self.edit_workout_id:
            existing = self.storage.get_workout_by_id(self.user_id, self.edit_workout_id)
            if existing is not None:
                self._load_existing(existing)
                return MODE_EDIT
            logging.warning(
                "Workout %s not found, starting a new one", self.edit_workout_id
            )
        elif template:
            self._load_template(template, now)
            return MODE_TEMPLATE

        self.workout_name = "Workout " + time.strftime("%Y-%m-%d", time.localtime(now))
        self.timer.start_time = now
        return MODE_NEW

    def _restore_draft(self, draft: WorkoutDraft, now: float) -> None:
        self.workout_name = draft.workout_name
        self.exercises = draft.exercises
        self.exercises_expanded = draft.exercises_expanded
        self.notes_expanded = draft.notes_expanded
        self.timer = ElapsedTimer.from_draft_fields(draft.timer_fields())
        self.rest_timer.restore(draft.rest_timer, now)

    def _load_existing(self, workout: WorkoutSession) -> None:
        self.workout_name = workout.name
        self.exercises = workout.exercises
        self._expand_all()
        # Timer shows the recorded duration, paused.
        self.timer.start_time = workout.start_time
        self.timer.has_started = True
        self.timer.is_running = False
        self.timer.paused_at = workout.end_time
        self.timer.total_paused = 0.0

    def _load_template(self, template: dict, now: float) -> None:
        if template.get("name"):
            self.workout_name = template["name"]
        self.exercises = [
            _exercise_from_template(item) for item in template.get("exercises") or []
        ]
        self._expand_all()
        self.timer.start(now)

    def _expand_all(self) -> None:
        self.exercises_expanded = {e.id: True for e in self.exercises}
        self.notes_expanded = {e.id: True for e in self.exercises if e.notes}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _find(self, exercise_id: str) -> Exercise:
        for exercise in self.exercises:
            if exercise.id == exercise_id:
                return exercise
        raise KeyError(f"Unknown exercise '{exercise_id}'")

    def _changed(self) -> None:
        """Schedule a draft save for the new state."""

        if not self.closed:
            self.drafts.schedule()

    def refresh_exercise_data(self, exercise_id: str) -> None:
        """Reload last-session sets and stats for the exercise's name."""

        exercise = self._find(exercise_id)
        self.stats[exercise_id] = history.stats_for(
            self.storage, self.user_id, exercise.name
        )
        self.last_session_sets[exercise_id] = history.last_sets_for(
            self.storage, self.user_id, exercise.name, self.edit_workout_id
        )

    def ghost_set(self, exercise_id: str, index: int) -> ExerciseSet | None:
        """Return the set at ``index`` from the exercise's previous session."""

        sets = self.last_session_sets.get(exercise_id)
        if sets and 0 <= index < len(sets):
            return sets[index]
        return None

    # ------------------------------------------------------------------
    # Workout and exercise edits
    # ------------------------------------------------------------------

    def rename(self, name: str) -> None:
        self.workout_name = name
        self._changed()

    def add_exercise(
        self,
        name: str,
        category: str | None = None,
        unilateral: bool = False,
        now: float | None = None,
    ) -> Exercise:
        """Append an exercise with a single empty set.

        Adding the first exercise starts the workout clock.
        """

        if category is not None and category not in CATEGORIES:
            raise ValueError(f"Unknown exercise category '{category}'")
        if not self.timer.has_started:
            self.timer.start(now)
            self._sync_timer_event()
            self.refresh_timer_display(now)
        exercise = Exercise(
            name=name,
            category=category,
            is_unilateral=unilateral,
            sets=[ExerciseSet()],
        )
        self.exercises.append(exercise)
        self.exercises_expanded[exercise.id] = True
        self.refresh_exercise_data(exercise.id)
        self._changed()
        return exercise

    def update_exercise_name(self, exercise_id: str, name: str) -> None:
        self._find(exercise_id).name = name
        self.refresh_exercise_data(exercise_id)
        self._changed()

    def update_exercise_notes(self, exercise_id: str, notes: str) -> None:
        self._find(exercise_id).notes = notes
        self._changed()

    def remove_exercise(self, exercise_id: str) -> None:
        self.exercises = [e for e in self.exercises if e.id != exercise_id]
        for cache in (
            self.exercises_expanded,
            self.notes_expanded,
            self.stats,
            self.last_session_sets,
        ):
            cache.pop(exercise_id, None)
        self._changed()

    def add_set(self, exercise_id: str) -> ExerciseSet:
        """Append a set to the exercise.

        The new set copies the previous one, unless last session has a set
        at the same position; then it starts empty so that set shows as the
        suggestion instead.
        """

        exercise = self._find(exercise_id)
        previous = exercise.sets[-1] if exercise.sets else None
        ghost = self.ghost_set(exercise_id, len(exercise.sets))
        if ghost is not None or previous is None:
            new_set = ExerciseSet()
        else:
            new_set = previous.copy_values()
        exercise.sets.append(new_set)
        self._changed()
        return new_set

    def remove_last_set(self, exercise_id: str) -> bool:
        """Drop the last set.  An exercise always keeps at least one."""

        exercise = self._find(exercise_id)
        if len(exercise.sets) <= 1:
            return False
        exercise.sets.pop()
        self._changed()
        return True

    def _set_field(self, exercise_id: str, set_id: str, field: str, value) -> None:
        ex_set = self._find(exercise_id).find_set(set_id)
        setattr(ex_set, field, parse_numeric_input(value))
        self._changed()

    def set_weight(self, exercise_id: str, set_id: str, value) -> None:
        self._set_field(exercise_id, set_id, "weight", value)

    def set_reps(self, exercise_id: str, set_id: str, value) -> None:
        self._set_field(exercise_id, set_id, "reps", value)

    def set_reps_left(self, exercise_id: str, set_id: str, value) -> None:
        self._set_field(exercise_id, set_id, "reps_left", value)

    def set_reps_right(self, exercise_id: str, set_id: str, value) -> None:
        self._set_field(exercise_id, set_id, "reps_right", value)

    def set_distance(self, exercise_id: str, set_id: str, value) -> None:
        self._set_field(exercise_id, set_id, "distance", value)

    def set_time(self, exercise_id: str, set_id: str, value) -> None:
        self._set_field(exercise_id, set_id, "time", value)

    def toggle_set_complete(self, exercise_id: str, set_id: str, index: int) -> ExerciseSet:
        """Mark a set done, or undo that.

        Completing a set fills fields still at zero from the same set of
        the previous session and restarts the rest timer.  Unchecking only
        clears the flag; a running rest timer keeps going.
        """

        exercise = self._find(exercise_id)
        ex_set = exercise.find_set(set_id)
        if not ex_set.completed:
            updates = history.ghost_autofill(exercise, ex_set, self.ghost_set(exercise_id, index))
            for name, value in updates.items():
                setattr(ex_set, name, value)
            ex_set.completed = True
            self.rest_timer.trigger()
            self._sync_rest_event()
        else:
            ex_set.completed = False
        self._changed()
        return ex_set

    def toggle_expanded(self, exercise_id: str) -> None:
        self.exercises_expanded[exercise_id] = not self.exercises_expanded.get(exercise_id, False)
        self._changed()

    def toggle_notes(self, exercise_id: str) -> None:
        self.notes_expanded[exercise_id] = not self.notes_expanded.get(exercise_id, False)
        self._changed()

    # ------------------------------------------------------------------
    # Workout clock
    # ------------------------------------------------------------------

    def toggle_timer(self, now: float | None = None) -> None:
        self.timer.toggle(now)
        self._sync_timer_event()
        self.refresh_timer_display(now)
        self._changed()

    def elapsed_seconds(self, now: float | None = None) -> int:
        return self.timer.elapsed_seconds(now)

    def refresh_timer_display(self, now: float | None = None) -> int:
        self.timer_display = self.timer.elapsed_seconds(now)
        return self.timer_display

    @property
    def timer_text(self) -> str:
        return format_time(self.timer_display)

    def _on_timer_tick(self, dt) -> None:
        self.refresh_timer_display()

    def _sync_timer_event(self) -> None:
        running = self.timer.is_running and not self.closed
        if running and self._timer_event is None:
            self._timer_event = self.clock.schedule_interval(
                self._on_timer_tick, TIMER_TICK_INTERVAL
            )
        elif not running and self._timer_event is not None:
            self._timer_event.cancel()
            self._timer_event = None

    # ------------------------------------------------------------------
    # Rest timer
    # ------------------------------------------------------------------

    @property
    def rest_active(self) -> bool:
        return self.rest_timer.active

    @property
    def rest_seconds_left(self) -> int:
        return self.rest_timer.seconds_left

    @property
    def default_rest_duration(self) -> int:
        return self.rest_timer.default_duration

    def adjust_rest(self, delta: int) -> int:
        """Change the rest duration by ``delta`` seconds and remember it."""

        duration = self.rest_timer.adjust(delta)
        self.storage.save_rest_timer_preference(self.user_id, duration)
        self._sync_rest_event()
        self._changed()
        return duration

    def skip_rest(self) -> None:
        self.rest_timer.skip()
        self._sync_rest_event()
        self._changed()

    def _on_rest_tick(self, dt) -> None:
        self.rest_timer.tick()
        if not self.rest_timer.active:
            self._sync_rest_event()
            self._changed()

    def _sync_rest_event(self) -> None:
        active = self.rest_timer.active and not self.closed
        if active and self._rest_event is None:
            self._rest_event = self.clock.schedule_interval(
                self._on_rest_tick, TIMER_TICK_INTERVAL
            )
        elif not active and self._rest_event is not None:
            self._rest_event.cancel()
            self._rest_event = None

    def _play_rest_complete(self) -> None:
        if self._sound is None:
            # Audio is optional; the sound system is only loaded on demand.
            from assets.sounds import SoundSystem

            self._sound = SoundSystem(self.storage, self.user_id)
        self._sound.play_rest_complete()

    # ------------------------------------------------------------------
    # Exercise search and history
    # ------------------------------------------------------------------

    def suggestions(self, text: str) -> list[str]:
        return history.exercise_suggestions(self.known, text)

    def search(self, query: str):
        return history.search_known_exercises(self.known, query)

    def hide_suggestion(self, name: str) -> None:
        """Hide ``name`` from suggestions; :meth:`undo_hide` reverts it briefly."""

        self.storage.hide_exercise_name(self.user_id, name)
        self.known = history.known_exercises(self.storage, self.user_id)
        self.just_hidden = name
        if self._hidden_event is not None:
            self._hidden_event.cancel()
        self._hidden_event = self.clock.schedule_once(
            lambda dt: self._expire_hidden(name), HIDDEN_UNDO_WINDOW
        )

    def _expire_hidden(self, name: str) -> None:
        if self.just_hidden == name:
            self.just_hidden = None
        self._hidden_event = None

    def undo_hide(self) -> bool:
        if not self.just_hidden:
            return False
        self.storage.unhide_exercise_name(self.user_id, self.just_hidden)
        self.known = history.known_exercises(self.storage, self.user_id)
        self.just_hidden = None
        if self._hidden_event is not None:
            self._hidden_event.cancel()
            self._hidden_event = None
        return True

    def exercise_history(self, name: str) -> list[history.HistoryPoint]:
        return history.exercise_history(self.storage, self.user_id, name)

    def focus_exercise(self, name: str | None) -> list[history.HistoryPoint]:
        """Select the exercise shown in the history panel."""

        self.focused_exercise = name or None
        if not self.focused_exercise:
            return []
        return self.exercise_history(self.focused_exercise)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_draft(self, now: float | None = None) -> WorkoutDraft:
        fields = self.timer.to_draft_fields()
        return WorkoutDraft(
            edit_workout_id=self.edit_workout_id,
            workout_name=self.workout_name,
            exercises=self.exercises,
            notes_expanded=self.notes_expanded,
            exercises_expanded=self.exercises_expanded,
            rest_timer=self.rest_timer.snapshot(now),
            **fields,
        )

    def _close(self) -> None:
        self.closed = True
        self._sync_timer_event()
        self._sync_rest_event()
        if self._hidden_event is not None:
            self._hidden_event.cancel()
            self._hidden_event = None
        self.drafts.discard()

    def finish(self, now: float | None = None) -> WorkoutSession | None:
        """Save the workout and close the session.

        Editing keeps the original id; a new workout gets a fresh one.  The
        draft and the assistant's chat history are cleared.  Returns
        ``None`` if the session was already finished or cancelled.
        """

        if self.closed:
            return None
        now = time.time() if now is None else now
        workout = WorkoutSession(
            id=self.edit_workout_id or generate_id(),
            name=self.workout_name,
            start_time=self.timer.start_time,
            end_time=now,
            exercises=copy.deepcopy(self.exercises),
        )
        self.storage.save_workout(self.user_id, workout)
        self._close()
        logging.info("Saved workout %s (%s)", workout.id, workout.name)
        if self.on_finish is not None:
            self.on_finish()
        return workout

    def cancel(self, confirmed: bool = False) -> bool:
        """Discard the workout after confirmation.

        Without ``confirmed`` the ``confirm`` callback is asked; when it is
        missing or declines nothing changes and ``False`` is returned.
        """

        if self.closed:
            return False
        if not confirmed:
            if self.confirm is None or not self.confirm(CANCEL_PROMPT):
                return False
        self._close()
        self.exercises = []
        self.exercises_expanded = {}
        self.notes_expanded = {}
        if self.on_cancel is not None:
            self.on_cancel()
        return True

    def summary(self, now: float | None = None) -> str:
        """Return a formatted text summary of the workout."""

        now = time.time() if now is None else now
        lines = [f"Workout: {self.workout_name}"]
        if self.timer.has_started:
            start = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(self.timer.start_time))
            lines.append(f"Start: {start}")
        lines.append(f"Duration: {format_time(self.elapsed_seconds(now))}")
        for ex in self.exercises:
            lines.append(f"\n{ex.name}")
            for idx, s in enumerate(ex.sets, 1):
                if ex.is_cardio:
                    values = f"{history.format_number(s.distance)}mi / {history.format_number(s.time)}m"
                elif ex.is_unilateral:
                    values = f"{history.format_number(s.weight)}lbs x L{s.reps_left} R{s.reps_right}"
                else:
                    values = f"{history.format_number(s.weight)}lbs x {s.reps}"
                mark = " (done)" if s.completed else ""
                lines.append(f"  Set {idx}: {values}{mark}")
        return "\n".join(lines)
