"""
Audio processing module for lrctunes.

``decode`` probes a file and returns a ``Source``; a sink plays sources.
``ProcessSink`` drives an external player process (ffplay or mpg123):
one process per source, stopped/continued for pause, respawned at an
offset to seek.
"""
import os
import shutil
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from mutagen import File as MutagenFile
from mutagen import MutagenError

from lrctunes.logging_config import get_logger, AudioPlayerError, DecodeError, SeekError

logger = get_logger('audio')

SUPPORTED_PLAYERS = ("ffplay", "mpg123")

# mpg123 frame math: 1152 samples per frame at 44.1 kHz
MPG123_FRAMES_PER_SECOND = 44100 / 1152
MPG123_UNITY_SCALE = 32768


@dataclass(frozen=True)
class Source:
    """A decoded audio file ready to be appended to a sink.

    Attributes:
        path: Path to the audio file
        total_duration: Length in seconds, or None if the container does not say
    """
    path: Path
    total_duration: Optional[float] = None


def decode(path: Union[Path, str]) -> Source:
    """Open and probe an audio file.

    Raises:
        DecodeError: if the file cannot be opened or is not a known audio format
    """
    audio_path = Path(path)
    try:
        audio = MutagenFile(audio_path)
    except (MutagenError, OSError) as e:
        raise DecodeError(f"Cannot decode {audio_path.name}: {e}") from e

    if audio is None:
        raise DecodeError(f"Unsupported audio format: {audio_path.name}")

    length = getattr(getattr(audio, "info", None), "length", None)
    total = float(length) if length and length > 0 else None
    return Source(audio_path, total)


class AudioSink:
    """Base class for audio sinks.

    A sink holds at most one source. ``clear`` drops it and leaves the sink
    paused; ``append`` starts it at once unless the sink is paused.
    """

    def append(self, source: Source) -> None:
        raise NotImplementedError("Subclasses must implement append()")

    def play(self) -> None:
        raise NotImplementedError("Subclasses must implement play()")

    def pause(self) -> None:
        raise NotImplementedError("Subclasses must implement pause()")

    def stop(self) -> None:
        raise NotImplementedError("Subclasses must implement stop()")

    def clear(self) -> None:
        raise NotImplementedError("Subclasses must implement clear()")

    def get_pos(self) -> float:
        raise NotImplementedError("Subclasses must implement get_pos()")

    def set_volume(self, volume: float) -> None:
        raise NotImplementedError("Subclasses must implement set_volume()")

    def try_seek(self, position: float) -> None:
        raise NotImplementedError("Subclasses must implement try_seek()")

    def is_paused(self) -> bool:
        raise NotImplementedError("Subclasses must implement is_paused()")

    def is_empty(self) -> bool:
        raise NotImplementedError("Subclasses must implement is_empty()")


def _find_command(cmd: str) -> Optional[str]:
    return shutil.which(cmd)


def detect_available_player(preferred: str = "auto") -> str:
    """Detect an available player executable.

    Args:
        preferred: "auto" or one of SUPPORTED_PLAYERS

    Raises:
        AudioPlayerError: if no supported player is installed
    """
    candidates = SUPPORTED_PLAYERS if preferred == "auto" else (preferred,)
    for player in candidates:
        if player not in SUPPORTED_PLAYERS:
            raise AudioPlayerError(f"Unsupported audio player: {player}")
        if _find_command(player):
            return player

    raise AudioPlayerError(f"No supported audio player found (tried {', '.join(candidates)})")


def build_command(player: str, path: Path, start_pos: int = 0, volume: float = 1.0) -> List[str]:
    """Build the command line that plays `path` from `start_pos` seconds.

    Raises:
        DecodeError: if `player` cannot handle the file type
    """
    if player == "ffplay":
        cmd = ["ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet",
               "-volume", str(int(round(volume * 100)))]
        if start_pos > 0:
            cmd.extend(["-ss", str(start_pos)])
        cmd.append(str(path))
        return cmd

    if player == "mpg123":
        if path.suffix.lower() != ".mp3":
            raise DecodeError(f"mpg123 cannot play {path.suffix} files: {path.name}")
        cmd = ["mpg123", "-q", "--no-control",
               "-f", str(int(volume * MPG123_UNITY_SCALE))]
        if start_pos > 0:
            frame_skip = int(start_pos * MPG123_FRAMES_PER_SECOND)
            cmd.extend(["-k", str(max(1, frame_skip))])
        cmd.append(str(path))
        return cmd

    raise AudioPlayerError(f"Unsupported audio player: {player}")


class ProcessSink(AudioSink):
    """Sink backed by an external player process."""

    def __init__(self, player: str = "auto"):
        self.player = detect_available_player(player)
        self.process: Optional[subprocess.Popen] = None
        self.source: Optional[Source] = None
        self.volume = 1.0
        self.paused = False
        # Position bookkeeping: offset of the running segment and when it started
        self._offset = 0.0
        self._started_at: Optional[float] = None
        logger.info(f"Using {self.player} for playback")

    # -- process control --

    def _spawn(self) -> None:
        """Start the player process for the current source at the current offset."""
        cmd = build_command(self.player, self.source.path, int(self._offset), self.volume)
        try:
            self.process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                preexec_fn=os.setsid,
            )
        except (subprocess.SubprocessError, OSError) as e:
            logger.error(f"Failed to start {self.player}: {e}")
            raise AudioPlayerError(f"Failed to start audio player: {e}") from e

        self._started_at = time.monotonic()
        logger.debug(f"Started {self.player} ({self.process.pid}) at {int(self._offset)}s: {self.source.path}")

    def _kill(self) -> None:
        """Terminate the player process, escalating to SIGKILL."""
        process = self.process
        self.process = None
        self._started_at = None
        if process is None or process.poll() is not None:
            return

        try:
            pgid = os.getpgid(process.pid)
            # A stopped process never acts on SIGTERM
            os.killpg(pgid, signal.SIGCONT)
            os.killpg(pgid, signal.SIGTERM)
            process.wait(timeout=1.0)
        except (ProcessLookupError, PermissionError) as e:
            logger.warning(f"Process termination error: {e}")
        except subprocess.TimeoutExpired:
            try:
                os.killpg(os.getpgid(process.pid), signal.SIGKILL)
                logger.warning(f"Force killed audio process: {process.pid}")
                process.wait(timeout=0.5)
            except (ProcessLookupError, PermissionError, subprocess.TimeoutExpired) as e:
                logger.warning(f"Force kill failed: {e}")

    def _signal(self, sig: int) -> None:
        if self.process and self.process.poll() is None:
            try:
                os.killpg(os.getpgid(self.process.pid), sig)
            except (ProcessLookupError, PermissionError) as e:
                logger.warning(f"Failed to signal audio process: {e}")

    def _running(self) -> bool:
        return self.process is not None and self.process.poll() is None

    # -- sink interface --

    def append(self, source: Source) -> None:
        self._kill()
        self.source = source
        self._offset = 0.0
        if not self.paused:
            self._spawn()

    def play(self) -> None:
        if not self.paused:
            return
        self.paused = False
        if self.source is None:
            return
        if self.process is None:
            self._spawn()
        else:
            self._signal(signal.SIGCONT)
            self._started_at = time.monotonic()

    def pause(self) -> None:
        if self.paused:
            return
        self._offset = self.get_pos()
        self._started_at = None
        self.paused = True
        self._signal(signal.SIGSTOP)

    def stop(self) -> None:
        self._kill()
        self.source = None
        self._offset = 0.0
        logger.info("Audio playback stopped")

    def clear(self) -> None:
        self._kill()
        self.source = None
        self._offset = 0.0
        self.paused = True

    def get_pos(self) -> float:
        if self.source is None:
            return 0.0
        position = self._offset
        if self._started_at is not None and not self.paused:
            position += time.monotonic() - self._started_at
        total = self.source.total_duration
        if total is not None:
            position = min(position, total)
        return position

    def set_volume(self, volume: float) -> None:
        # Takes effect when the next process starts
        self.volume = max(0.0, volume)

    def try_seek(self, position: float) -> None:
        if self.source is None:
            raise SeekError("Nothing to seek in")
        total = self.source.total_duration
        if position < 0 or (total is not None and position >= total):
            raise SeekError(f"Seek target {position}s outside 0-{total}s")

        self._offset = float(int(position))
        if self.process is not None:
            self._kill()
            if not self.paused:
                self._spawn()

    def is_paused(self) -> bool:
        return self.paused

    def is_empty(self) -> bool:
        if self.source is None:
            return True
        if self.process is None:
            # Nothing was started for an unpaused source: the player failed to launch
            return not self.paused
        return self.process.poll() is not None
