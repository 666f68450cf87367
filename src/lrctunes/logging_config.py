"""
Logging configuration for lrctunes.
"""
import logging
import sys
from pathlib import Path
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """Colored log formatter for terminal output."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'        # Reset
    }

    def format(self, record):
        color = self.COLORS.get(record.levelname, '')
        reset = self.COLORS['RESET']
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{reset}"
        return super().format(record)


def setup_logging(level: str = "WARNING", log_file: Optional[Path] = None) -> None:
    """Setup logging configuration for lrctunes.

    The console handler writes to stderr: stdout belongs to the player frame.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
    """
    logger = logging.getLogger('lrctunes')
    logger.setLevel(logging.DEBUG if log_file else getattr(logging, level.upper()))
    logger.propagate = False

    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_formatter = ColoredFormatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a specific module.

    Args:
        name: Module name

    Returns:
        Logger instance
    """
    return logging.getLogger(f'lrctunes.{name}')


# Custom exceptions for better error handling
class LrcTunesError(Exception):
    """Base exception for lrctunes."""
    pass


class LibraryError(LrcTunesError, OSError):
    """The music directory could not be traversed."""
    pass


class DecodeError(LrcTunesError):
    """An audio file could not be opened or decoded."""
    pass


class InvalidIndexError(LrcTunesError):
    """A track index has no library entry."""
    pass


class LyricsNotFoundError(LrcTunesError):
    """No embedded or sidecar lyrics for a track."""
    pass


class SeekError(LrcTunesError):
    """The sink refused to move to a position."""
    pass


class AudioPlayerError(LrcTunesError):
    """Audio playback related errors."""
    pass


class TerminalError(LrcTunesError):
    """Terminal setup or restore errors."""
    pass


class ConfigurationError(LrcTunesError):
    """Configuration related errors."""
    pass


class PlayerError(LrcTunesError):
    """Playback loop errors."""
    pass
