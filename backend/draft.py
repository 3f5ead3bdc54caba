"""Autosaved snapshot of the workout currently being logged.

At most one draft exists per user.  :class:`DraftManager` writes it after a
quiet period following the last change and decides on startup whether the
stored draft belongs to the workout being opened.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Callable

from kivy.clock import Clock

from backend import DRAFT_SAVE_DELAY
from backend.models import Exercise
from backend.rest_timer import RestTimerState
from backend.storage import WorkoutStorage


@dataclass
class WorkoutDraft:
    edit_workout_id: str | None
    workout_name: str
    start_time: float
    has_started: bool
    exercises: list[Exercise] = field(default_factory=list)
    timer_paused: bool = True
    timer_paused_at: float | None = None
    total_paused_time: float = 0.0
    notes_expanded: dict[str, bool] = field(default_factory=dict)
    exercises_expanded: dict[str, bool] = field(default_factory=dict)
    rest_timer: RestTimerState | None = None

    def to_dict(self) -> dict:
        return {
            "edit_workout_id": self.edit_workout_id,
            "workout_name": self.workout_name,
            "start_time": self.start_time,
            "has_started": self.has_started,
            "exercises": [e.to_dict() for e in self.exercises],
            "timer_paused": self.timer_paused,
            "timer_paused_at": self.timer_paused_at,
            "total_paused_time": self.total_paused_time,
            "notes_expanded": dict(self.notes_expanded),
            "exercises_expanded": dict(self.exercises_expanded),
            "rest_timer": self.rest_timer.to_dict() if self.rest_timer else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutDraft":
        rest = data.get("rest_timer")
        return cls(
            edit_workout_id=data.get("edit_workout_id"),
            workout_name=data.get("workout_name") or "",
            start_time=data.get("start_time") or 0,
            has_started=bool(data.get("has_started", True)),
            exercises=[Exercise.from_dict(e) for e in data.get("exercises") or []],
            timer_paused=bool(data.get("timer_paused", True)),
            timer_paused_at=data.get("timer_paused_at"),
            total_paused_time=data.get("total_paused_time") or 0.0,
            notes_expanded=dict(data.get("notes_expanded") or {}),
            exercises_expanded=dict(data.get("exercises_expanded") or {}),
            rest_timer=RestTimerState.from_dict(rest) if rest else None,
        )

    def timer_fields(self) -> dict:
        """Return the fields needed to rebuild the elapsed-time tracker."""

        return {
            "start_time": self.start_time,
            "has_started": self.has_started,
            "timer_paused": self.timer_paused,
            "timer_paused_at": self.timer_paused_at,
            "total_paused_time": self.total_paused_time,
        }


class DraftManager:
    """Debounced writer and loader for a user's :class:`WorkoutDraft`.

    ``snapshot`` is called when a scheduled save fires, so a burst of edits
    results in a single write of the final state.
    """

    def __init__(
        self,
        storage: WorkoutStorage,
        user_id: str,
        snapshot: Callable[[], WorkoutDraft],
        delay: float = DRAFT_SAVE_DELAY,
        clock=Clock,
    ) -> None:
        self.storage = storage
        self.user_id = user_id
        self.snapshot = snapshot
        self.delay = delay
        self.clock = clock
        self._event = None

    @property
    def pending(self) -> bool:
        return self._event is not None

    def schedule(self) -> None:
        """Restart the quiet period before the next save."""

        self.cancel_pending()
        self._event = self.clock.schedule_once(self._on_timeout, self.delay)

    def cancel_pending(self) -> None:
        if self._event is not None:
            self._event.cancel()
            self._event = None

    def _on_timeout(self, dt) -> None:
        self._event = None
        self.flush()

    def flush(self) -> None:
        """Write the current snapshot immediately."""

        self.cancel_pending()
        try:
            self.storage.save_draft(self.user_id, self.snapshot().to_dict())
        except Exception:
            logging.exception("Failed to autosave workout draft")

    def load_relevant(self, edit_workout_id: str | None) -> WorkoutDraft | None:
        """Return the stored draft if it belongs to ``edit_workout_id``.

        A draft for another workout is left in storage untouched; the next
        autosave of the current workout replaces it.
        """

        raw = self.storage.get_draft(self.user_id)
        if not raw or raw.get("edit_workout_id") != edit_workout_id:
            return None
        try:
            return WorkoutDraft.from_dict(raw)
        except (TypeError, ValueError, AttributeError):
            logging.exception("Discarding unreadable workout draft")
            return None

    def discard(self) -> None:
        """Drop the draft along with the assistant's chat history."""

        self.cancel_pending()
        self.storage.clear_draft(self.user_id)
        self.storage.clear_chat_history(self.user_id)
