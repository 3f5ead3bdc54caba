"""Countdown shown between sets."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
import time
from typing import Callable

from backend import DEFAULT_REST_DURATION


@dataclass
class RestTimerState:
    """Rest timer as stored in a workout draft.

    ``end_time`` is authoritative; ``time_left`` is only a display cache.
    """

    is_active: bool
    time_left: int
    duration: int
    end_time: float | None

    def to_dict(self) -> dict:
        return {
            "is_active": self.is_active,
            "time_left": self.time_left,
            "duration": self.duration,
            "end_time": self.end_time,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RestTimerState":
        duration = data.get("duration")
        return cls(
            is_active=bool(data.get("is_active", False)),
            time_left=int(data.get("time_left") or 0),
            duration=DEFAULT_REST_DURATION if duration is None else int(duration),
            end_time=data.get("end_time"),
        )


class RestTimer:
    """Rest countdown restarted each time a set is completed.

    ``tick`` is called once per second by the owner.  When the countdown
    reaches zero the timer deactivates and ``on_complete`` is invoked; a
    failure there is logged and ignored.
    """

    def __init__(
        self,
        default_duration: int = DEFAULT_REST_DURATION,
        on_complete: Callable[[], None] | None = None,
    ) -> None:
        self.default_duration = default_duration
        self.on_complete = on_complete
        self.active = False
        self.seconds_left = 0

    def trigger(self) -> None:
        """(Re)start the countdown from the default duration."""

        self.seconds_left = self.default_duration
        self.active = True

    def tick(self) -> None:
        if not self.active:
            return
        if self.seconds_left > 0:
            self.seconds_left -= 1
        if self.seconds_left <= 0:
            self._finish()

    def _finish(self) -> None:
        self.active = False
        self.seconds_left = 0
        if self.on_complete is None:
            return
        try:
            self.on_complete()
        except Exception:
            logging.exception("Rest timer notification failed")

    def adjust(self, delta: int) -> int:
        """Shift the default duration (and a running countdown) by ``delta``.

        Returns the new default so the caller can persist it.
        """

        self.default_duration = max(0, self.default_duration + delta)
        if self.active:
            self.seconds_left = max(0, self.seconds_left + delta)
        return self.default_duration

    def skip(self) -> None:
        """Stop the countdown immediately without notifying."""

        self.active = False

    # --------------------------------------------------------------
    # Draft persistence
    # --------------------------------------------------------------

    def snapshot(self, now: float | None = None) -> RestTimerState | None:
        if not self.active:
            return None
        now = time.time() if now is None else now
        return RestTimerState(
            is_active=True,
            time_left=self.seconds_left,
            duration=self.default_duration,
            end_time=now + self.seconds_left,
        )

    def restore(self, state: RestTimerState | None, now: float | None = None) -> bool:
        """Resume a countdown saved with :meth:`snapshot`.

        Returns ``True`` if the timer is running again.  Countdowns that
        expired while the app was closed stay inactive and never notify.
        """

        if state is None or not state.is_active or state.end_time is None:
            return False
        now = time.time() if now is None else now
        remaining = math.ceil(state.end_time - now)
        if remaining <= 0:
            return False
        self.seconds_left = remaining
        self.active = True
        return True
