import tempfile
import threading
import time
from pathlib import Path

import pytest

from lrctunes.audio import AudioSink, Source
from lrctunes.core import PlaybackCore
from lrctunes.library import TrackLibrary
from lrctunes.logging_config import DecodeError, SeekError


class FakeSink(AudioSink):
    """In-memory sink that records every call."""

    def __init__(self):
        self.calls = []
        self.source = None
        self.paused = False
        self.position = 0.0
        self.volume = None
        self.finished = False
        self.seek_fails = False

    def append(self, source):
        self.calls.append("append")
        self.source = source
        self.position = 0.0
        self.finished = False

    def play(self):
        self.calls.append("play")
        self.paused = False

    def pause(self):
        self.calls.append("pause")
        self.paused = True

    def stop(self):
        self.calls.append("stop")
        self.source = None

    def clear(self):
        self.calls.append("clear")
        self.source = None
        self.position = 0.0
        self.paused = True

    def get_pos(self):
        return self.position

    def set_volume(self, volume):
        self.calls.append("set_volume")
        self.volume = volume

    def try_seek(self, position):
        self.calls.append(f"seek:{position}")
        if self.seek_fails or self.source is None:
            raise SeekError("cannot seek")
        self.position = float(position)

    def is_paused(self):
        return self.paused

    def is_empty(self):
        return self.source is None or self.finished


class FakeDecoder:
    """Decoder returning fixed durations; paths listed in `broken` fail."""

    def __init__(self, duration=10.0):
        self.duration = duration
        self.broken = set()
        self.decoded = []

    def __call__(self, path):
        self.decoded.append(Path(path).name)
        if Path(path).name in self.broken:
            raise DecodeError(f"Cannot decode {Path(path).name}")
        return Source(Path(path), self.duration)


class FakeTerminal:
    """Terminal replacement that replays scripted keys and records frames."""

    def __init__(self, keys=(), key_delay=0.02):
        self.keys = list(keys)
        self.key_delay = key_delay
        self.frames = []
        self.enter_count = 0
        self.restore_count = 0
        self.clear_count = 0
        self._lock = threading.Lock()

    def enter(self):
        self.enter_count += 1

    def restore(self):
        self.restore_count += 1

    def write_frame(self, lines):
        with self._lock:
            self.frames.append(list(lines))

    def clear_screen(self):
        self.clear_count += 1

    def poll_key(self, timeout):
        time.sleep(self.key_delay)
        with self._lock:
            if self.keys:
                return self.keys.pop(0)
        return None


@pytest.fixture
def temp_music_dir():
    """Create a temporary music directory with test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        music_dir = Path(tmpdir) / "music"
        music_dir.mkdir()

        (music_dir / "subdir").mkdir()

        (music_dir / "b_track.mp3").touch()
        (music_dir / "a_track.FLAC").touch()
        (music_dir / "notes.txt").touch()
        (music_dir / "cover.jpg").touch()

        (music_dir / "subdir" / "nested.ogg").touch()

        yield music_dir


@pytest.fixture
def make_library(tmp_path):
    """Build a TrackLibrary of `count` fake tracks."""
    def _make(count):
        paths = []
        for i in range(1, count + 1):
            path = tmp_path / f"track{i:02d}.mp3"
            path.touch()
            paths.append(path)
        return TrackLibrary(tmp_path, paths)
    return _make


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def decoder():
    return FakeDecoder()


@pytest.fixture
def no_tags(monkeypatch):
    """Make tag probing find nothing so tests only see sidecar files."""
    from lrctunes import lyrics
    monkeypatch.setattr(lyrics, "MutagenFile", lambda *args, **kwargs: None)


@pytest.fixture
def core(sink, decoder, no_tags):
    return PlaybackCore(sink, decoder=decoder)
