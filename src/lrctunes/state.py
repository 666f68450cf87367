"""
State records for lrctunes.
"""
from dataclasses import dataclass
from typing import List, Optional

from lrctunes.lyrics import LyricLine


def format_duration(seconds: float) -> str:
    """Format duration in MM:SS format.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string
    """
    seconds = max(0, int(seconds))
    mins = seconds // 60
    secs = seconds % 60
    return f"{mins:02d}:{secs:02d}"


@dataclass
class PlaybackState:
    """Mutable fields of the playback core."""
    current_index: int = 1
    track_count: int = 0
    total_seconds: int = 0
    total_time: str = "00:00"
    display_name: str = ""
    lyrics: Optional[List[LyricLine]] = None
    message: str = ""
    should_exit: bool = False


@dataclass(frozen=True)
class PlayerSnapshot:
    """Read-only view of the player handed to the renderer."""
    current_index: int
    track_count: int
    display_name: str
    position: int
    total_seconds: int
    total_time: str
    paused: bool
    lyric: str
    message: str
    should_exit: bool

    @property
    def position_time(self) -> str:
        return format_duration(self.position)
