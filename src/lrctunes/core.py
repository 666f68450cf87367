"""
Playback core for lrctunes.

``PlaybackCore`` owns the current track index, the sink and the cached
duration/lyrics of the current track. It is not thread-safe: the
controller serializes every call through one lock.
"""
from pathlib import Path
from typing import Callable, Optional

from lrctunes.audio import AudioSink, Source, decode
from lrctunes.library import TrackLibrary
from lrctunes.logging_config import get_logger, SeekError
from lrctunes.lyrics import active_lyric, load_lyrics
from lrctunes.state import PlaybackState, PlayerSnapshot, format_duration

logger = get_logger('core')

SEEK_SECONDS: int = 5
DEFAULT_VOLUME: float = 1.0


class PlaybackCore:
    """Playlist position plus transport control over one sink."""

    def __init__(
        self,
        sink: AudioSink,
        decoder: Callable[[Path], Source] = decode,
        volume: float = DEFAULT_VOLUME,
        seek_seconds: int = SEEK_SECONDS,
    ) -> None:
        self.sink = sink
        self.decoder = decoder
        self.volume = volume
        self.seek_seconds = seek_seconds
        self.library: Optional[TrackLibrary] = None
        self.state = PlaybackState()

    @property
    def track_count(self) -> int:
        return len(self.library) if self.library else 0

    def initial(self, library: TrackLibrary) -> None:
        """Load a library and start its first track."""
        self.library = library
        self.state.track_count = len(library)
        self.state.current_index = 1
        if not library:
            logger.info("Library is empty, nothing to play")
            return
        self.playback()

    def playback(self) -> None:
        """(Re)start the track at the current index from the beginning.

        Raises:
            InvalidIndexError: if the current index has no library entry
            DecodeError: if the track cannot be decoded
        """
        if not self.library:
            return

        self.hold_state_clear()
        path = self.library.path_for(self.state.current_index)
        self.state.display_name = path.stem
        self.state.message = ""

        self.state.lyrics = None
        self.state.lyrics = load_lyrics(path)

        source = self.decoder(path)
        total = int(source.total_duration or 0)
        self.state.total_seconds = total
        self.state.total_time = format_duration(total)

        self.sink.set_volume(self.volume)
        self.sink.append(source)
        logger.info(f"Playing {self.state.current_index}/{self.track_count}: {path.name}")

    def hold_state_clear(self) -> None:
        """Empty the sink without changing whether it is playing or paused."""
        if not self.sink.is_paused():
            self.sink.clear()
            self.sink.play()
        else:
            self.sink.clear()

    def switch(self, is_next: bool) -> None:
        """Move the current index one step with wraparound. Does not reload audio."""
        total = self.track_count
        if not total:
            return
        if is_next:
            self.state.current_index = 1 if self.state.current_index >= total else self.state.current_index + 1
        else:
            self.state.current_index = total if self.state.current_index <= 1 else self.state.current_index - 1

    def seek(self, target: int) -> None:
        """Replay the current track and move to `target` seconds."""
        if not self.library:
            return
        self.playback()
        try:
            self.sink.try_seek(target)
        except SeekError as e:
            logger.debug(f"Seek to {target}s ignored: {e}")

    def forward(self) -> None:
        target = int(self.get_pos()) + self.seek_seconds
        total = self.state.total_seconds
        if total and target >= total:
            target = total - 1
        self.seek(target)

    def backward(self) -> None:
        target = max(0, int(self.get_pos()) - self.seek_seconds)
        self.seek(target)

    def is_empty(self) -> bool:
        """True once the current track has played out."""
        if not self.library:
            return False
        return self.sink.is_empty()

    def is_paused(self) -> bool:
        return self.sink.is_paused()

    def toggle_pause(self) -> None:
        if not self.library:
            return
        if self.sink.is_paused():
            self.sink.play()
        else:
            self.sink.pause()

    def play(self) -> None:
        self.sink.play()

    def pause(self) -> None:
        self.sink.pause()

    def stop(self) -> None:
        self.sink.stop()

    def get_pos(self) -> float:
        return self.sink.get_pos()

    def exit(self) -> None:
        self.state.should_exit = True

    def is_exit(self) -> bool:
        return self.state.should_exit

    def report(self, message: str) -> None:
        """Record a non-fatal problem for the renderer."""
        self.state.message = message

    def snapshot(self) -> PlayerSnapshot:
        position = self.get_pos()
        return PlayerSnapshot(
            current_index=self.state.current_index,
            track_count=self.track_count,
            display_name=self.state.display_name,
            position=int(position),
            total_seconds=self.state.total_seconds,
            total_time=self.state.total_time,
            paused=self.sink.is_paused(),
            lyric=active_lyric(self.state.lyrics, position),
            message=self.state.message,
            should_exit=self.state.should_exit,
        )
