"""Shared constants and globals for backend modules."""

from __future__ import annotations

from pathlib import Path

# Default values used throughout the application
DEFAULT_REST_DURATION = 90

# Quiet period before an in-progress workout is written to its draft
DRAFT_SAVE_DELAY = 1.0

# Seconds during which hiding an exercise suggestion can be undone
HIDDEN_UNDO_WINDOW = 5.0

# Refresh interval for the workout clock and the rest countdown
TIMER_TICK_INTERVAL = 1.0

# Path to the key-value database holding all user data
DEFAULT_DB_PATH = (
    Path(__file__).resolve().parent.parent / "data" / "ironlog.db"
)

__all__ = [
    "DEFAULT_REST_DURATION",
    "DRAFT_SAVE_DELAY",
    "HIDDEN_UNDO_WINDOW",
    "TIMER_TICK_INTERVAL",
    "DEFAULT_DB_PATH",
]
