"""
Frame rendering for lrctunes.

``render`` turns a ``PlayerSnapshot`` into the lines of one frame;
``draw`` writes them through the terminal.
"""
import re
import shutil
import unicodedata
from functools import lru_cache
from typing import Dict, List, Optional

from lrctunes.state import PlayerSnapshot

COLOR_MAP: Dict[str, str] = {
    "blue": "\033[34m",
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "bold": "\033[1m",
    "reset": "\033[0m",
}

PROGRESS_WIDTH: int = 35
KEY_HINTS = "[Space] play/pause | [←/→] seek | [↑/↓] prev/next | [c] clear | [Esc] quit"

ANSI_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")
ELLIPSIS = "..."


@lru_cache(maxsize=4096)
def _cell_width(ch: str) -> int:
    if unicodedata.category(ch) in ("Mn", "Me", "Cf"):
        return 0
    return 2 if unicodedata.east_asian_width(ch) in ("F", "W") else 1


def display_width(text: str) -> int:
    """Terminal cells taken by `text`, ignoring ANSI escapes."""
    return sum(_cell_width(ch) for ch in ANSI_RE.sub("", text))


def clip(text: str, width: int) -> str:
    """Cut plain `text` to `width` cells, marking the cut with an ellipsis."""
    if display_width(text) <= width:
        return text
    room = width - len(ELLIPSIS)
    if room <= 0:
        return ELLIPSIS[:max(0, width)]

    out = []
    used = 0
    for ch in text:
        used += _cell_width(ch)
        if used > room:
            break
        out.append(ch)
    return "".join(out) + ELLIPSIS


def _paint(text: str, color: str, use_colors: bool) -> str:
    if not use_colors or not text:
        return text
    return f"{COLOR_MAP[color]}{text}{COLOR_MAP['reset']}"


def progress_bar(position: int, total: int, width: int = PROGRESS_WIDTH, use_colors: bool = True) -> str:
    """Draw ``<>###-----<>`` with `width` cells between the markers."""
    filled = 0
    if total > 0:
        filled = min(width, max(0, position) * width // total)
    done = _paint("#" * filled, "blue", use_colors)
    return f"<>{done}{'-' * (width - filled)}<>"


def render(
    snapshot: PlayerSnapshot,
    use_colors: bool = True,
    progress_width: int = PROGRESS_WIDTH,
    max_width: Optional[int] = None,
) -> List[str]:
    """Build the frame lines: track info, progress bar, lyric, status message."""
    max_width = max_width or 80

    index = _paint(str(snapshot.current_index), "blue", use_colors)
    count = _paint(str(snapshot.track_count), "yellow", use_colors)
    now = _paint(snapshot.position_time, "blue", use_colors)
    total = _paint(snapshot.total_time, "green", use_colors)
    state_icon = "⏸" if snapshot.paused else "▶"

    fixed = display_width(f"📀 {snapshot.current_index}/{snapshot.track_count} 🎧  ⏳ "
                          f"{snapshot.position_time}/{snapshot.total_time} {state_icon}")
    name = clip(snapshot.display_name, max(8, max_width - fixed))
    info = f"📀 {index}/{count} 🎧 {_paint(name, 'blue', use_colors)} ⏳ {now}/{total} {state_icon}"

    bar = progress_bar(snapshot.position, snapshot.total_seconds, progress_width, use_colors)

    lyric = clip(snapshot.lyric, max(8, max_width - 3))
    if use_colors and lyric:
        lyric = f"{COLOR_MAP['cyan']}{COLOR_MAP['bold']}{lyric}{COLOR_MAP['reset']}"

    message = _paint(clip(snapshot.message, max_width), "yellow", use_colors)

    return [info, bar, f"🎤 {lyric}", message]


def draw(terminal, snapshot: PlayerSnapshot, use_colors: bool = True, progress_width: int = PROGRESS_WIDTH) -> None:
    """Render `snapshot` and write it as one frame."""
    columns = shutil.get_terminal_size().columns
    terminal.write_frame(render(snapshot, use_colors, progress_width, max(20, columns - 1)))
