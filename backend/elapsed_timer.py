"""Total-duration clock for an in-progress workout."""

from __future__ import annotations

import time


def format_time(seconds: int) -> str:
    """Return ``seconds`` as ``m:ss``."""

    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"


class ElapsedTimer:
    """Track workout duration across pause/resume cycles.

    Only absolute timestamps are stored, so the value is recomputed from
    the wall clock on every read and stays correct after missed ticks or a
    restart of the app.
    """

    def __init__(self) -> None:
        self.start_time: float = time.time()
        self.has_started = False
        self.is_running = False
        self.paused_at: float | None = None
        self.total_paused = 0.0

    def start(self, now: float | None = None) -> None:
        """Begin timing.  Ignored once the workout has started."""

        if self.has_started:
            return
        self.start_time = time.time() if now is None else now
        self.has_started = True
        self.is_running = True
        self.paused_at = None
        self.total_paused = 0.0

    def toggle(self, now: float | None = None) -> None:
        """Start, pause or resume depending on the current state."""

        now = time.time() if now is None else now
        if not self.has_started:
            self.start(now)
            return
        if self.is_running:
            self.is_running = False
            self.paused_at = now
        else:
            if self.paused_at is not None:
                self.total_paused += now - self.paused_at
            self.paused_at = None
            self.is_running = True

    def elapsed_seconds(self, now: float | None = None) -> int:
        if not self.has_started:
            return 0
        now = time.time() if now is None else now
        reference = now
        if not self.is_running and self.paused_at is not None:
            reference = self.paused_at
        return max(0, int(reference - self.start_time - self.total_paused))

    # --------------------------------------------------------------
    # Draft persistence
    # --------------------------------------------------------------

    def to_draft_fields(self) -> dict:
        return {
            "start_time": self.start_time,
            "has_started": self.has_started,
            "timer_paused": not self.is_running,
            "timer_paused_at": self.paused_at,
            "total_paused_time": self.total_paused,
        }

    @classmethod
    def from_draft_fields(cls, data: dict) -> "ElapsedTimer":
        timer = cls()
        timer.start_time = data.get("start_time") or time.time()
        timer.has_started = bool(data.get("has_started", True))
        timer.is_running = not data.get("timer_paused", True)
        timer.paused_at = data.get("timer_paused_at")
        timer.total_paused = data.get("total_paused_time") or 0.0
        return timer
