from pathlib import Path
import math
import struct
import wave

from kivy.core.audio import SoundLoader

from backend.storage import DEFAULT_SOUND_PREFERENCE, WorkoutStorage

SAMPLE_RATE = 22050


def write_rest_chime(path: Path, duration: float = 0.5) -> Path:
    """Write the rest-complete chime to ``path`` as a mono 16-bit WAV.

    The tone sweeps exponentially from 880 Hz down to 440 Hz while its
    gain fades from 0.1 to 0.01.
    """

    frames = int(SAMPLE_RATE * duration)
    data = bytearray()
    phase = 0.0
    for i in range(frames):
        progress = i / frames
        freq = 880.0 * (440.0 / 880.0) ** progress
        gain = 0.1 * (0.01 / 0.1) ** progress
        phase += 2 * math.pi * freq / SAMPLE_RATE
        data += struct.pack("<h", int(gain * math.sin(phase) * 32767))
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as fh:
        fh.setnchannels(1)
        fh.setsampwidth(2)
        fh.setframerate(SAMPLE_RATE)
        fh.writeframes(bytes(data))
    return path


class SoundSystem:
    """Manage playback of workout sounds.

    Sounds are loaded lazily from the ``assets/sounds`` directory.  The
    rest chime is synthesised on first use when its file is missing.
    Playback honours the user's ``sound_on`` and ``sound_level``
    preferences; without a storage the defaults apply.
    """

    def __init__(self, storage: WorkoutStorage | None = None, user_id: str = ""):
        self.storage = storage
        self.user_id = user_id
        self._base = Path(__file__).resolve().parent
        self._cache: dict[str, object] = {}

    def _load(self, name: str):
        snd = self._cache.get(name)
        if snd is None:
            path = self._base / f"{name}.wav"
            if name == "rest_done" and not path.exists():
                write_rest_chime(path)
            snd = SoundLoader.load(str(path))
            self._cache[name] = snd
        return snd

    def preferences(self) -> dict:
        if self.storage is None:
            return dict(DEFAULT_SOUND_PREFERENCE)
        return self.storage.get_sound_preference(self.user_id)

    def play(self, name: str) -> None:
        """Play a named sound if available."""
        prefs = self.preferences()
        if not prefs["sound_on"]:
            return
        snd = self._load(name)
        if snd:
            snd.volume = prefs["sound_level"]
            snd.stop()
            snd.play()

    def play_rest_complete(self) -> None:
        self.play("rest_done")
