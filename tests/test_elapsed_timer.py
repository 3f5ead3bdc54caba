import pytest

from backend.elapsed_timer import ElapsedTimer, format_time


@pytest.mark.parametrize("seconds, text", [(0, "0:00"), (59, "0:59"), (61, "1:01"), (3600, "60:00"), (-4, "0:00")])
def test_format_time(seconds, text):
    assert format_time(seconds) == text


def test_not_started_reads_zero():
    timer = ElapsedTimer()
    assert timer.elapsed_seconds(now=10_000) == 0


def test_pause_and_resume_exclude_paused_time():
    timer = ElapsedTimer()
    timer.start(now=1000)
    assert timer.elapsed_seconds(now=1030) == 30

    timer.toggle(now=1030)
    assert not timer.is_running
    assert timer.elapsed_seconds(now=1100) == 30

    timer.toggle(now=1100)
    assert timer.total_paused == 70
    assert timer.elapsed_seconds(now=1110) == 40


def test_start_is_ignored_once_started():
    timer = ElapsedTimer()
    timer.start(now=1000)
    timer.start(now=2000)
    assert timer.start_time == 1000


def test_toggle_starts_a_fresh_timer():
    timer = ElapsedTimer()
    timer.toggle(now=500)
    assert timer.has_started and timer.is_running
    assert timer.elapsed_seconds(now=505) == 5


def test_elapsed_never_negative():
    timer = ElapsedTimer()
    timer.start(now=1000)
    assert timer.elapsed_seconds(now=900) == 0


def test_draft_fields_restore_paused_timer():
    timer = ElapsedTimer()
    timer.start(now=1000)
    timer.toggle(now=1060)
    restored = ElapsedTimer.from_draft_fields(timer.to_draft_fields())
    # Time spent closed while paused is not counted.
    assert restored.elapsed_seconds(now=5000) == 60

    restored.toggle(now=5000)
    assert restored.elapsed_seconds(now=5010) == 70
