"""Durable per-user storage for workouts, drafts and preferences.

Everything the app keeps lives in a single key-value table inside a SQLite
database.  Values are JSON text.  :class:`WorkoutStorage` layers the
per-user records on top of it.  A record that cannot be read or parsed is
logged and treated as absent so a corrupt entry never blocks a workout.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from backend import DEFAULT_DB_PATH, DEFAULT_REST_DURATION
from backend.models import WorkoutSession


def _workouts_key(user_id: str) -> str:
    return f"workouts_{user_id}"


def _hidden_key(user_id: str) -> str:
    return f"hidden_exercises_{user_id}"


def _draft_key(user_id: str) -> str:
    return f"workout_draft_{user_id}"


def _chat_key(user_id: str) -> str:
    return f"chat_history_{user_id}"


def _rest_pref_key(user_id: str) -> str:
    return f"rest_pref_{user_id}"


def _sound_pref_key(user_id: str) -> str:
    return f"sound_pref_{user_id}"


# Rest-complete chime playback, per user
DEFAULT_SOUND_PREFERENCE = {"sound_on": True, "sound_level": 1.0}


class KeyValueStore:
    """String key/value table stored in ``db_path``."""

    def __init__(self, db_path: Path = DEFAULT_DB_PATH) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with sqlite3.connect(str(self.db_path)) as conn:
            conn.execute(
                "CREATE TABLE IF NOT EXISTS kv_store (key TEXT PRIMARY KEY, value TEXT NOT NULL)"
            )

    def get(self, key: str) -> str | None:
        with sqlite3.connect(str(self.db_path)) as conn:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with sqlite3.connect(str(self.db_path)) as conn:
            conn.execute(
                "INSERT INTO kv_store (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )

    def remove(self, key: str) -> None:
        with sqlite3.connect(str(self.db_path)) as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))


class WorkoutStorage:
    """Per-user records kept in a :class:`KeyValueStore`.

    An empty ``user_id`` reads as empty and silently ignores writes.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _read_json(self, key: str, default: Any) -> Any:
        try:
            text = self.store.get(key)
            if text is None:
                return default
            return json.loads(text)
        except (sqlite3.Error, ValueError):
            logging.exception("Failed to load %s", key)
            return default

    def _write_json(self, key: str, value: Any) -> None:
        self.store.set(key, json.dumps(value))

    # ------------------------------------------------------------------
    # Workouts
    # ------------------------------------------------------------------

    def get_workouts(self, user_id: str) -> list[WorkoutSession]:
        """Return all stored workouts, newest saved first."""

        if not user_id:
            return []
        raw = self._read_json(_workouts_key(user_id), [])
        if not isinstance(raw, list):
            logging.warning("Ignoring malformed workout list for %s", user_id)
            return []
        workouts: list[WorkoutSession] = []
        for item in raw:
            try:
                workouts.append(WorkoutSession.from_dict(item))
            except (KeyError, TypeError, AttributeError):
                logging.exception("Skipping unreadable workout record")
        return workouts

    def save_workout(self, user_id: str, workout: WorkoutSession) -> None:
        """Insert or replace ``workout``.

        New workouts are placed at the front of the list.  Any hidden
        exercise name that appears in ``workout`` is made visible again.
        """

        if not user_id:
            return
        workouts = self.get_workouts(user_id)
        for idx, existing in enumerate(workouts):
            if existing.id == workout.id:
                workouts[idx] = workout
                break
        else:
            workouts.insert(0, workout)
        self._write_json(_workouts_key(user_id), [w.to_dict() for w in workouts])

        hidden = self.get_hidden_exercises(user_id)
        if not hidden:
            return
        used = {e.name.strip().lower() for e in workout.exercises if e.name}
        remaining = [h for h in hidden if h.strip().lower() not in used]
        if len(remaining) != len(hidden):
            self._write_json(_hidden_key(user_id), remaining)

    def delete_workout(self, user_id: str, workout_id: str) -> None:
        if not user_id:
            return
        workouts = [w for w in self.get_workouts(user_id) if w.id != workout_id]
        self._write_json(_workouts_key(user_id), [w.to_dict() for w in workouts])

    def get_workout_by_id(self, user_id: str, workout_id: str) -> WorkoutSession | None:
        for workout in self.get_workouts(user_id):
            if workout.id == workout_id:
                return workout
        return None

    # ------------------------------------------------------------------
    # Hidden exercise names
    # ------------------------------------------------------------------

    def get_hidden_exercises(self, user_id: str) -> list[str]:
        if not user_id:
            return []
        hidden = self._read_json(_hidden_key(user_id), [])
        if not isinstance(hidden, list):
            return []
        return [str(h) for h in hidden]

    def hide_exercise_name(self, user_id: str, name: str) -> None:
        if not user_id or not name:
            return
        hidden = self.get_hidden_exercises(user_id)
        if name not in hidden:
            hidden.append(name)
            self._write_json(_hidden_key(user_id), hidden)

    def unhide_exercise_name(self, user_id: str, name: str) -> None:
        if not user_id or not name:
            return
        hidden = [h for h in self.get_hidden_exercises(user_id) if h != name]
        self._write_json(_hidden_key(user_id), hidden)

    # ------------------------------------------------------------------
    # Draft of the in-progress workout
    # ------------------------------------------------------------------

    def get_draft(self, user_id: str) -> dict | None:
        """Return the raw draft mapping for ``user_id`` if one exists."""

        if not user_id:
            return None
        draft = self._read_json(_draft_key(user_id), None)
        if draft is not None and not isinstance(draft, dict):
            logging.warning("Ignoring malformed draft for %s", user_id)
            return None
        return draft

    def save_draft(self, user_id: str, draft: dict) -> None:
        if not user_id:
            return
        self._write_json(_draft_key(user_id), draft)

    def clear_draft(self, user_id: str) -> None:
        if not user_id:
            return
        self.store.remove(_draft_key(user_id))

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def get_rest_timer_preference(self, user_id: str) -> int:
        if not user_id:
            return DEFAULT_REST_DURATION
        value = self._read_json(_rest_pref_key(user_id), None)
        if value is None:
            return DEFAULT_REST_DURATION
        try:
            return int(value)
        except (TypeError, ValueError):
            logging.warning("Invalid rest timer preference %r", value)
            return DEFAULT_REST_DURATION

    def save_rest_timer_preference(self, user_id: str, seconds: int) -> None:
        if not user_id:
            return
        self._write_json(_rest_pref_key(user_id), int(seconds))

    def get_sound_preference(self, user_id: str) -> dict:
        """Return ``{"sound_on": bool, "sound_level": float}`` for ``user_id``.

        Missing or invalid entries fall back to
        :data:`DEFAULT_SOUND_PREFERENCE`; the level is clamped to 0..1.
        """

        prefs = dict(DEFAULT_SOUND_PREFERENCE)
        if not user_id:
            return prefs
        stored = self._read_json(_sound_pref_key(user_id), None)
        if not isinstance(stored, dict):
            return prefs
        if isinstance(stored.get("sound_on"), bool):
            prefs["sound_on"] = stored["sound_on"]
        level = stored.get("sound_level")
        if isinstance(level, (int, float)) and not isinstance(level, bool):
            prefs["sound_level"] = min(1.0, max(0.0, float(level)))
        return prefs

    def save_sound_preference(
        self, user_id: str, sound_on: bool | None = None, sound_level: float | None = None
    ) -> None:
        """Update the given sound preferences, keeping the others."""

        if not user_id:
            return
        prefs = self.get_sound_preference(user_id)
        if sound_on is not None:
            prefs["sound_on"] = bool(sound_on)
        if sound_level is not None:
            prefs["sound_level"] = min(1.0, max(0.0, float(sound_level)))
        self._write_json(_sound_pref_key(user_id), prefs)

    # ------------------------------------------------------------------
    # AI chat history
    # ------------------------------------------------------------------

    def get_chat_history(self, user_id: str) -> list[dict]:
        if not user_id:
            return []
        messages = self._read_json(_chat_key(user_id), [])
        return messages if isinstance(messages, list) else []

    def save_chat_history(self, user_id: str, messages: list[dict]) -> None:
        if not user_id:
            return
        self._write_json(_chat_key(user_id), messages)

    def clear_chat_history(self, user_id: str) -> None:
        if not user_id:
            return
        self.store.remove(_chat_key(user_id))
