"""
lrctunes - Terminal music player with synchronized lyrics.
"""

__version__ = "1.0.0"
__author__ = "lrctunes Team"
__description__ = "A terminal music player that plays a directory and shows synchronized LRC lyrics."

from lrctunes.audio import AudioSink, ProcessSink, Source, decode, detect_available_player
from lrctunes.config import AppConfig, ConfigManager, load_config
from lrctunes.controller import App, Operation, dispatch, key_to_operation
from lrctunes.core import PlaybackCore
from lrctunes.library import TrackLibrary, load
from lrctunes.lyrics import LyricLine, active_lyric, extract, load_lyrics, parse

__all__ = [
    # Audio
    'AudioSink',
    'ProcessSink',
    'Source',
    'decode',
    'detect_available_player',

    # Config
    'AppConfig',
    'ConfigManager',
    'load_config',

    # Library
    'TrackLibrary',
    'load',

    # Lyrics
    'LyricLine',
    'active_lyric',
    'extract',
    'load_lyrics',
    'parse',

    # Playback
    'PlaybackCore',
    'App',
    'Operation',
    'dispatch',
    'key_to_operation',
]
