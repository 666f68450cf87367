import logging

import pytest

from lrctunes import __version__
from lrctunes.__main__ import _directory_arg, main, run
from lrctunes.config import AppConfig
from lrctunes.logging_config import ColoredFormatter, get_logger, setup_logging


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep main() away from the user's real config file."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    yield
    logging.getLogger('lrctunes').handlers.clear()


class TestMain:
    """Tests for the command line entry point."""

    def test_version(self, capsys):
        assert main(["--version"]) == 0
        assert __version__ in capsys.readouterr().out

    def test_help(self, capsys):
        assert main(["-h"]) == 0
        assert "Usage:" in capsys.readouterr().out

    def test_missing_directory(self, tmp_path, capsys):
        assert main(["-d", str(tmp_path / "nope")]) == 2
        assert "Not a directory" in capsys.readouterr().out

    def test_dir_flag_without_value(self, capsys):
        assert main(["--dir"]) == 2

    def test_directory_arg(self):
        assert _directory_arg(["-d", "/music"]) == "/music"
        assert _directory_arg(["--dir", "/music"]) == "/music"
        assert _directory_arg(["--dir=/srv/music"]) == "/srv/music"
        assert _directory_arg([]) is None

    def test_run_empty_directory(self, tmp_path, capsys):
        """Test that an empty library exits without starting playback."""
        assert run(tmp_path, AppConfig()) == 1

        out = capsys.readouterr().out
        assert "Found 0 audio files" in out
        assert "Nothing to play." in out


class TestLogging:
    """Tests for logging setup."""

    def test_setup_logging_console_only(self):
        setup_logging("INFO")

        logger = logging.getLogger('lrctunes')
        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.INFO
        assert isinstance(logger.handlers[0].formatter, ColoredFormatter)

    def test_setup_logging_with_file(self, tmp_path):
        log_file = tmp_path / "lrctunes.log"
        setup_logging("WARNING", log_file)

        get_logger('test').debug("written to file only")
        for handler in logging.getLogger('lrctunes').handlers:
            handler.flush()

        assert "written to file only" in log_file.read_text()

    def test_colored_formatter_leaves_record_alone(self):
        record = logging.LogRecord("lrctunes.x", logging.WARNING, __file__, 1, "msg", None, None)

        ColoredFormatter('%(levelname)s %(message)s').format(record)

        assert record.levelname == "WARNING"
