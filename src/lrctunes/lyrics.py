"""
Lyrics loading and LRC parsing for lrctunes.

Lyrics come from the audio file's own tags or from a sidecar ``.lrc`` file
next to it. Parsed lyrics are ``LyricLine`` tuples sorted by offset.
"""
import re
from bisect import bisect_right
from pathlib import Path
from typing import Any, List, NamedTuple, Optional, Sequence, Union

from mutagen import File as MutagenFile
from mutagen import MutagenError

from lrctunes.logging_config import get_logger, LyricsNotFoundError

logger = get_logger('lyrics')

# [mm:ss.cc] (centiseconds) or [mm:ss:mmm] / [mm:ss.mmm] (milliseconds)
TIMESTAMP_RE = re.compile(r"\[(\d{2}):(\d{2})[.:](\d{2,3})\]")

# Vorbis comment / APEv2 / MP4 keys that hold lyrics, most specific first.
LYRICS_TAG_KEYS = ("LYRICS", "UNSYNCEDLYRICS", "\xa9lyr", "----:com.apple.iTunes:LYRICS")
ID3_LYRICS_DESCS = ("LYRICS", "UNSYNCEDLYRICS")


class LyricLine(NamedTuple):
    """One timed lyric line."""
    offset_ms: int
    text: str


def _first_text(value: Any) -> Optional[str]:
    """Normalize a tag value (list, bytes, frame text) to a stripped string or None."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    text = str(value).strip()
    return text or None


def _embedded_lyrics(path: Path) -> Optional[str]:
    """Read a lyrics tag from the audio container, if it has one."""
    try:
        audio = MutagenFile(path)
    except (MutagenError, OSError) as e:
        logger.debug(f"Cannot probe tags of {path}: {e}")
        return None

    tags = getattr(audio, "tags", None) if audio is not None else None
    if not tags:
        return None

    # ID3 keeps lyrics in frames rather than plain keys
    if hasattr(tags, "getall"):
        for frame in tags.getall("USLT"):
            text = _first_text(frame.text)
            if text:
                return text
        for frame in tags.getall("TXXX"):
            if frame.desc.upper() in ID3_LYRICS_DESCS:
                text = _first_text(frame.text)
                if text:
                    return text
        return None

    for key in LYRICS_TAG_KEYS:
        try:
            value = tags.get(key)
        except (KeyError, ValueError):
            continue
        text = _first_text(value)
        if text:
            return text
    return None


def _sidecar_path(path: Path) -> Path:
    return path.with_suffix(".lrc")


def extract(path: Union[Path, str]) -> str:
    """Get the raw lyric text for an audio file.

    Embedded tags win over a sidecar ``.lrc`` file.

    Args:
        path: Path to the audio file

    Returns:
        Raw lyric text

    Raises:
        LyricsNotFoundError: if neither source has lyrics
    """
    audio_path = Path(path)

    embedded = _embedded_lyrics(audio_path)
    if embedded:
        logger.debug(f"Using embedded lyrics for {audio_path.name}")
        return embedded

    lrc_path = _sidecar_path(audio_path)
    if not lrc_path.is_file():
        raise LyricsNotFoundError(f"No lyrics found for {audio_path.name}")

    try:
        with open(lrc_path, "r", encoding="utf-8", errors="replace") as f:
            text = f.read()
    except OSError as e:
        raise LyricsNotFoundError(f"Cannot read {lrc_path}: {e}") from e

    logger.debug(f"Using sidecar lyrics {lrc_path.name}")
    return text


def _timestamp_to_ms(minutes: str, seconds: str, fraction: str) -> int:
    millis = int(fraction) * 10 if len(fraction) == 2 else int(fraction)
    return (int(minutes) * 60 + int(seconds)) * 1000 + millis


def parse(text: str) -> List[LyricLine]:
    """Parse LRC text into lyric lines sorted by offset.

    A line may carry several timestamps; each one yields an entry with the
    text that follows the last ``]``. Lines without a timestamp (``[ar: ...]``
    and friends) and lines with no text are skipped.
    """
    lines: List[LyricLine] = []
    if not text:
        return lines

    for raw_line in text.splitlines():
        offsets = [
            _timestamp_to_ms(*match.groups())
            for match in TIMESTAMP_RE.finditer(raw_line)
        ]
        if not offsets:
            continue

        lyric = raw_line[raw_line.rfind("]") + 1:].strip()
        if not lyric:
            continue

        for offset in offsets:
            lines.append(LyricLine(offset, lyric))

    lines.sort(key=lambda line: line.offset_ms)
    return lines


def load_lyrics(path: Union[Path, str]) -> Optional[List[LyricLine]]:
    """Extract and parse the lyrics of a track.

    Returns:
        Sorted lyric lines, or None when the track has no usable lyrics
    """
    try:
        raw = extract(path)
    except LyricsNotFoundError as e:
        logger.debug(str(e))
        return None

    parsed = parse(raw)
    return parsed or None


def active_lyric(lyrics: Optional[Sequence[LyricLine]], position: float) -> str:
    """Return the lyric to show at `position` seconds.

    That is the last line whose offset is <= position, or "" before the
    first line and when there are no lyrics.
    """
    if not lyrics:
        return ""
    index = bisect_right(lyrics, int(position * 1000), key=lambda line: line.offset_ms)
    if index == 0:
        return ""
    return lyrics[index - 1].text
