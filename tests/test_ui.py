import io
import os

import pytest

from lrctunes import ui
from lrctunes.state import PlayerSnapshot, format_duration
from lrctunes.terminal import Terminal, CLEAR_TO_EOL, RESTORE_CURSOR


def make_snapshot(**overrides):
    values = dict(
        current_index=2,
        track_count=12,
        display_name="Song Title",
        position=65,
        total_seconds=200,
        total_time="03:20",
        paused=False,
        lyric="hello there",
        message="",
        should_exit=False,
    )
    values.update(overrides)
    return PlayerSnapshot(**values)


class TestFormatDuration:
    """Tests for format_duration()."""

    def test_format_duration(self):
        assert format_duration(0) == "00:00"
        assert format_duration(65) == "01:05"
        assert format_duration(59.9) == "00:59"
        assert format_duration(3600) == "60:00"

    def test_format_negative(self):
        assert format_duration(-3) == "00:00"


class TestProgressBar:
    """Tests for progress_bar()."""

    def test_empty(self):
        assert ui.progress_bar(0, 100, 10, use_colors=False) == "<>----------<>"

    def test_half(self):
        assert ui.progress_bar(50, 100, 10, use_colors=False) == "<>#####-----<>"

    def test_full(self):
        """Test that the bar never overflows its width."""
        assert ui.progress_bar(150, 100, 10, use_colors=False) == "<>##########<>"

    def test_unknown_total(self):
        assert ui.progress_bar(30, 0, 10, use_colors=False) == "<>----------<>"

    def test_default_width(self):
        bar = ui.progress_bar(0, 10, use_colors=False)

        assert len(bar) == ui.PROGRESS_WIDTH + 4

    def test_colored(self):
        bar = ui.progress_bar(5, 10, 10)

        assert ui.COLOR_MAP["blue"] in bar
        assert ui.ANSI_RE.sub("", bar) == "<>#####-----<>"


class TestRender:
    """Tests for render()."""

    def test_render_lines(self):
        """Test the four frame lines without colors."""
        lines = ui.render(make_snapshot(), use_colors=False, progress_width=10)

        assert lines[0] == "📀 2/12 🎧 Song Title ⏳ 01:05/03:20 ▶"
        assert lines[1] == "<>###-------<>"
        assert lines[2] == "🎤 hello there"
        assert lines[3] == ""

    def test_render_paused(self):
        lines = ui.render(make_snapshot(paused=True), use_colors=False)

        assert lines[0].endswith("⏸")

    def test_render_no_lyric(self):
        lines = ui.render(make_snapshot(lyric=""), use_colors=False)

        assert lines[2] == "🎤 "

    def test_render_message(self):
        lines = ui.render(make_snapshot(message="Cannot decode x.mp3"), use_colors=False)

        assert lines[3] == "Cannot decode x.mp3"

    def test_render_colors(self):
        lines = ui.render(make_snapshot())

        assert ui.COLOR_MAP["reset"] in lines[0]
        assert ui.ANSI_RE.sub("", lines[0]) == "📀 2/12 🎧 Song Title ⏳ 01:05/03:20 ▶"

    def test_render_truncates_long_name(self):
        """Test that a long track name is cut to fit the width."""
        snap = make_snapshot(display_name="x" * 200)

        lines = ui.render(snap, use_colors=False, max_width=60)

        assert "..." in lines[0]
        assert ui.display_width(lines[0]) <= 60

    def test_draw_writes_frame(self):
        class Recorder:
            def __init__(self):
                self.frames = []

            def write_frame(self, lines):
                self.frames.append(lines)

        terminal = Recorder()

        ui.draw(terminal, make_snapshot(), use_colors=False)

        assert len(terminal.frames) == 1
        assert len(terminal.frames[0]) == 4


class TestDisplayWidth:
    """Tests for display width helpers."""

    def test_ascii(self):
        assert ui.display_width("abc") == 3

    def test_wide_characters(self):
        assert ui.display_width("日本") == 4

    def test_ignores_ansi(self):
        assert ui.display_width("\033[34mabc\033[0m") == 3

    def test_clip(self):
        assert ui.clip("abcdefghij", 6) == "abc..."
        assert ui.clip("abc", 6) == "abc"
        assert ui.clip("abc", 0) == ""

    def test_clip_wide(self):
        """Test that a wide character is never split."""
        assert ui.clip("日本語テキスト", 7) == "日本..."


class TestTerminal:
    """Tests for Terminal output and key decoding."""

    @pytest.fixture
    def pipe_terminal(self):
        read_fd, write_fd = os.pipe()
        terminal = Terminal(stdout=io.StringIO())
        terminal._fd = read_fd
        yield terminal, write_fd
        os.close(read_fd)
        os.close(write_fd)

    def test_write_frame(self):
        out = io.StringIO()
        terminal = Terminal(stdout=out)

        terminal.write_frame(["one", "two"])

        text = out.getvalue()
        assert text.startswith(RESTORE_CURSOR)
        assert f"one{CLEAR_TO_EOL}\r\n" in text
        assert f"two{CLEAR_TO_EOL}\r\n" in text

    def test_enter_requires_tty(self):
        from lrctunes.logging_config import TerminalError
        terminal = Terminal(stdin=io.StringIO(), stdout=io.StringIO())

        with pytest.raises(TerminalError):
            terminal.enter()

    def test_restore_without_enter(self):
        out = io.StringIO()
        terminal = Terminal(stdout=out)

        terminal.restore()

        assert out.getvalue() == ""

    def test_poll_timeout(self, pipe_terminal):
        terminal, _ = pipe_terminal

        assert terminal.poll_key(0.01) is None

    @pytest.mark.parametrize("data,key", [
        (b" ", "space"),
        (b"c", "c"),
        (b"\n", "enter"),
        (b"\x1b[A", "up"),
        (b"\x1b[B", "down"),
        (b"\x1b[C", "right"),
        (b"\x1b[D", "left"),
        (b"\x1bOA", "up"),
        (b"\x1b", "esc"),
    ])
    def test_poll_key(self, pipe_terminal, data, key):
        terminal, write_fd = pipe_terminal
        os.write(write_fd, data)

        assert terminal.poll_key(0.1) == key
