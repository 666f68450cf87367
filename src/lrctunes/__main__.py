"""
lrctunes entry point.
"""
import sys
from pathlib import Path
from typing import List, Optional

from lrctunes import __description__, __version__
from lrctunes.audio import ProcessSink
from lrctunes.config import load_config
from lrctunes.controller import App
from lrctunes.core import PlaybackCore
from lrctunes.library import load
from lrctunes.logging_config import get_logger, setup_logging, DecodeError, LrcTunesError
from lrctunes.terminal import Terminal
from lrctunes.ui import KEY_HINTS

logger = get_logger('main')

USAGE = """Usage:
  lrctunes                # Play the music directory from the config file
  lrctunes -d <directory> # Play <directory>
  lrctunes --version      # Show version info
  lrctunes --help         # Show this help"""


def _directory_arg(argv: List[str]) -> Optional[str]:
    for flag in ("-d", "--dir"):
        if flag in argv:
            index = argv.index(flag)
            if index + 1 < len(argv):
                return argv[index + 1]
            return ""
    for arg in argv:
        if arg.startswith("--dir="):
            return arg.split("=", 1)[1]
    return None


def run(directory: Path, config) -> int:
    """Index `directory` and play it until the user quits."""
    library = load(directory)
    print(f"\n  Found {len(library)} audio files in {directory}")
    if not library:
        print("  Nothing to play.")
        return 1
    print(f"  {KEY_HINTS}\n")

    core = PlaybackCore(ProcessSink(config.audio_player), volume=config.volume,
                        seek_seconds=config.seek_seconds)
    try:
        core.initial(library)
    except DecodeError as e:
        logger.warning(str(e))
        core.report(str(e))

    App(core, Terminal(), config).run()
    print("\n  Bye!")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the music player."""
    argv = sys.argv[1:] if argv is None else argv

    if "--version" in argv or "-v" in argv:
        print(f"lrctunes {__version__}")
        print(__description__)
        return 0
    if "--help" in argv or "-h" in argv:
        print(f"lrctunes {__version__}")
        print("")
        print(USAGE)
        return 0

    config = load_config()
    setup_logging(config.log_level, config.get_log_file_path())

    dir_arg = _directory_arg(argv)
    if dir_arg == "":
        print("Error: -d/--dir needs a directory")
        return 2
    directory = Path(dir_arg).expanduser() if dir_arg else config.get_music_directory_path()
    if not directory.is_dir():
        print(f"Error: Not a directory: {directory}")
        return 2

    if not sys.stdin.isatty():
        print("Error: Must run in interactive terminal")
        return 2

    try:
        return run(directory, config)
    except LrcTunesError as e:
        logger.debug("Fatal error", exc_info=True)
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
