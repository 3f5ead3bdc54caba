import wave

import pytest

pytest.importorskip("kivy.core.audio")

from assets import sounds  # noqa: E402

USER = "user-1"


class DummySound:
    def __init__(self):
        self.volume = None
        self.plays = 0

    def stop(self):
        pass

    def play(self):
        self.plays += 1


def test_write_rest_chime(tmp_path):
    path = sounds.write_rest_chime(tmp_path / "chime.wav", duration=0.1)
    with wave.open(str(path), "rb") as fh:
        assert fh.getnchannels() == 1
        assert fh.getsampwidth() == 2
        assert fh.getnframes() == int(sounds.SAMPLE_RATE * 0.1)


def test_play_honours_user_preferences(storage, monkeypatch):
    system = sounds.SoundSystem(storage, USER)
    dummy = DummySound()
    monkeypatch.setattr(system, "_load", lambda name: dummy)

    storage.save_sound_preference(USER, sound_level=0.5)
    system.play_rest_complete()
    assert dummy.plays == 1
    assert dummy.volume == 0.5

    storage.save_sound_preference(USER, sound_on=False)
    system.play_rest_complete()
    assert dummy.plays == 1


def test_play_without_storage_uses_defaults(monkeypatch):
    system = sounds.SoundSystem()
    dummy = DummySound()
    monkeypatch.setattr(system, "_load", lambda name: dummy)
    system.play("rest_done")
    assert dummy.plays == 1
    assert dummy.volume == 1.0
