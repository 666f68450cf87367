"""
Audio library indexing for lrctunes.
"""
import os
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Set, Union

from lrctunes.logging_config import get_logger, InvalidIndexError, LibraryError

logger = get_logger('library')

# Audio file extensions
AUDIO_EXTENSIONS: Set[str] = {".mp3", ".m4a", ".flac", ".aac", ".wav", ".ogg", ".ape"}


class TrackLibrary(Mapping[int, Path]):
    """Read-only mapping of track index (starting at 1) to audio file path.

    Attributes:
        root: Directory the library was built from
    """

    __slots__ = ('root', '_tracks')

    def __init__(self, root: Union[Path, str], paths: List[Path]) -> None:
        self.root: Path = root if isinstance(root, Path) else Path(root)
        self._tracks: Dict[int, Path] = {
            index: path for index, path in enumerate(paths, start=1)
        }

    def __getitem__(self, index: int) -> Path:
        return self._tracks[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self._tracks)

    def __len__(self) -> int:
        return len(self._tracks)

    def __repr__(self) -> str:
        return f"TrackLibrary(root={str(self.root)!r}, tracks={len(self)})"

    def path_for(self, index: int) -> Path:
        """Resolve a track index to its path.

        Raises:
            InvalidIndexError: if the index has no entry
        """
        try:
            return self._tracks[index]
        except KeyError:
            raise InvalidIndexError(
                f"Invalid track index {index} (library has {len(self)} tracks)"
            ) from None


def is_audio_file(path: Union[Path, str]) -> bool:
    """Check whether a path has one of the supported audio extensions."""
    return Path(path).suffix.lower() in AUDIO_EXTENSIONS


def _scan(path: Path, tracks: List[Path]) -> None:
    """Append audio files below `path` to `tracks`, directories first, sorted by name."""
    dirs = []
    files = []

    with os.scandir(path) as entries:
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    dirs.append(entry.name)
                elif entry.is_file() and is_audio_file(entry.name):
                    files.append(entry.name)
            except OSError:
                continue

    dirs.sort()
    files.sort()

    for name in dirs:
        sub = path / name
        try:
            _scan(sub, tracks)
        except OSError as e:
            logger.warning(f"Skipping unreadable directory {sub}: {e}")

    for name in files:
        tracks.append(path / name)


def load(root: Union[Path, str]) -> TrackLibrary:
    """Recursively index the audio files below `root`.

    Args:
        root: Music directory

    Returns:
        TrackLibrary, empty if no audio files were found

    Raises:
        LibraryError: if `root` itself cannot be traversed
    """
    root_path = Path(root).expanduser()
    tracks: List[Path] = []

    try:
        _scan(root_path, tracks)
    except OSError as e:
        raise LibraryError(f"Cannot read music directory {root_path}: {e}") from e

    if tracks:
        logger.info(f"Indexed {len(tracks)} tracks under {root_path}")
    else:
        logger.info(f"No audio files found under {root_path}")

    return TrackLibrary(root_path, tracks)
