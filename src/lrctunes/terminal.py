"""
Terminal control for lrctunes: cbreak mode, cursor handling, key polling.
"""
import os
import select
import sys
import termios
import threading
import tty
from typing import List, Optional, TextIO

from lrctunes.logging_config import get_logger, TerminalError

logger = get_logger('terminal')

# ANSI sequences
HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"
SAVE_CURSOR = "\0337"
RESTORE_CURSOR = "\0338"
CLEAR_TO_EOL = "\033[K"
CLEAR_SCREEN = "\033[2J\033[H"

# Time to wait for the rest of an escape sequence before treating ESC as a key
ESCAPE_TIMEOUT = 0.03

ESCAPE_SEQUENCES = {
    "[A": "up",
    "[B": "down",
    "[C": "right",
    "[D": "left",
    "OA": "up",
    "OB": "down",
    "OC": "right",
    "OD": "left",
}


class Terminal:
    """The controlling terminal.

    Key names returned by ``poll_key``: "up", "down", "left", "right",
    "esc", "space", "enter", or the typed character.
    """

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self._fd: Optional[int] = None
        self._saved_attrs: Optional[List] = None
        self._active = False
        self._out_lock = threading.Lock()

    def enter(self) -> None:
        """Switch to cbreak mode, hide the cursor and anchor the frame here."""
        if not self.stdin.isatty():
            raise TerminalError("Must run in an interactive terminal")
        try:
            self._fd = self.stdin.fileno()
            self._saved_attrs = termios.tcgetattr(self._fd)
            tty.setcbreak(self._fd)
        except (termios.error, OSError) as e:
            raise TerminalError(f"Cannot configure terminal: {e}") from e
        self._active = True
        self.write(HIDE_CURSOR + SAVE_CURSOR)

    def restore(self) -> None:
        """Undo ``enter``. Safe to call more than once; only the first call acts."""
        if not self._active:
            return
        self._active = False
        self.write(RESTORE_CURSOR + SHOW_CURSOR)
        try:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attrs)
        except (termios.error, OSError) as e:
            logger.error(f"Failed to restore terminal settings: {e}")

    def write(self, text: str) -> None:
        with self._out_lock:
            self.stdout.write(text)
            self.stdout.flush()

    def write_frame(self, lines: List[str]) -> None:
        """Redraw the frame at the saved anchor, clearing each line's remainder."""
        body = "".join(f"{line}{CLEAR_TO_EOL}\r\n" for line in lines)
        self.write(RESTORE_CURSOR + CLEAR_TO_EOL + body + CLEAR_TO_EOL)

    def clear_screen(self) -> None:
        """Wipe the screen and move the frame anchor to the top-left corner."""
        self.write(CLEAR_SCREEN + SAVE_CURSOR)

    def _readable(self, timeout: float) -> bool:
        try:
            return bool(select.select([self._fd], [], [], timeout)[0])
        except (OSError, ValueError):
            return False

    def _read_char(self) -> str:
        data = os.read(self._fd, 1)
        if not data:
            return ""
        return data.decode("utf-8", errors="replace")

    def poll_key(self, timeout: float) -> Optional[str]:
        """Wait up to `timeout` seconds for a key press.

        Returns:
            Key name, or None if nothing was pressed
        """
        if self._fd is None or not self._readable(timeout):
            return None

        ch = self._read_char()
        if not ch:
            return None

        if ch == "\033":
            seq = ""
            while len(seq) < 2 and self._readable(ESCAPE_TIMEOUT):
                seq += self._read_char()
            if not seq:
                return "esc"
            return ESCAPE_SEQUENCES.get(seq)

        if ch == " ":
            return "space"
        if ch in ("\r", "\n"):
            return "enter"
        return ch
