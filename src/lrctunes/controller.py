"""
Control loops for lrctunes.

Three loops share one ``PlaybackCore`` behind one lock:

- main loop (calling thread): advances to the next track when the current
  one has played out
- UI loop: snapshots the core and draws a frame, both under the lock, so
  no frame is drawn once Exit has stopped the sink
- input loop: turns key presses into ``Operation``s and applies them

No loop holds the lock while sleeping or polling for input. Every loop
stops once the core's exit flag is set.
"""
import threading
import time
from enum import Enum
from typing import Callable, Dict, List, Optional

from lrctunes import ui
from lrctunes.config import AppConfig
from lrctunes.core import PlaybackCore
from lrctunes.logging_config import get_logger, DecodeError, PlayerError

logger = get_logger('controller')


class Operation(Enum):
    """User intents the input loop can apply to the core."""
    TOGGLE_PAUSE = "toggle_pause"
    NEXT = "next"
    PREV = "prev"
    SEEK_FORWARD = "seek_forward"
    SEEK_BACKWARD = "seek_backward"
    EXIT = "exit"
    CLEAR_DISPLAY = "clear_display"


KEY_BINDINGS: Dict[str, Operation] = {
    "space": Operation.TOGGLE_PAUSE,
    "left": Operation.SEEK_BACKWARD,
    "right": Operation.SEEK_FORWARD,
    "up": Operation.PREV,
    "down": Operation.NEXT,
    "esc": Operation.EXIT,
    "q": Operation.EXIT,
    "c": Operation.CLEAR_DISPLAY,
}


def key_to_operation(key: Optional[str]) -> Optional[Operation]:
    """Map a key name from ``Terminal.poll_key`` to an operation, if bound."""
    if key is None:
        return None
    return KEY_BINDINGS.get(key)


def dispatch(core: PlaybackCore, op: Operation, terminal=None) -> None:
    """Apply `op` to `core`. The caller must hold the core lock.

    A track that fails to decode is reported on the core rather than
    raised; the sink is then empty and the main loop moves on.
    """
    logger.debug(f"Operation: {op.value}")
    try:
        if op is Operation.TOGGLE_PAUSE:
            core.toggle_pause()
        elif op is Operation.NEXT:
            core.switch(True)
            core.playback()
        elif op is Operation.PREV:
            core.switch(False)
            core.playback()
        elif op is Operation.SEEK_FORWARD:
            core.forward()
        elif op is Operation.SEEK_BACKWARD:
            core.backward()
        elif op is Operation.EXIT:
            core.stop()
            core.exit()
        elif op is Operation.CLEAR_DISPLAY:
            if terminal is not None:
                terminal.clear_screen()
    except DecodeError as e:
        logger.warning(str(e))
        core.report(str(e))


class App:
    """Runs the player loops until the core's exit flag is set."""

    def __init__(self, core: PlaybackCore, terminal, config: Optional[AppConfig] = None):
        self.core = core
        self.terminal = terminal
        self.config = config or AppConfig()
        self.lock = threading.Lock()
        self.errors: List[BaseException] = []
        self._decode_failures = 0

    def is_exit(self) -> bool:
        with self.lock:
            return self.core.is_exit()

    def _fail(self, name: str, error: BaseException) -> None:
        """Record a fatal loop error and shut the player down."""
        logger.error(f"{name} loop failed: {error}", exc_info=error)
        self.errors.append(error)
        with self.lock:
            self.core.stop()
            self.core.exit()

    def _guarded(self, name: str, loop: Callable[[], None]) -> Callable[[], None]:
        def runner() -> None:
            try:
                loop()
            except Exception as e:
                self._fail(name, e)
            logger.debug(f"{name} loop finished")
        return runner

    # -- loops --

    def advance_once(self) -> None:
        """One main-loop tick: start the next track if the current one ended."""
        with self.lock:
            if self.core.is_exit() or not self.core.is_empty():
                return
            self.core.switch(True)
            try:
                self.core.playback()
            except DecodeError as e:
                self._decode_failures += 1
                logger.warning(str(e))
                self.core.report(str(e))
                if self._decode_failures >= max(1, self.core.track_count):
                    raise PlayerError("No playable tracks in library") from e
            else:
                self._decode_failures = 0

    def main_loop(self) -> None:
        while not self.is_exit():
            self.advance_once()
            time.sleep(self.config.main_tick)

    def ui_loop(self) -> None:
        while True:
            with self.lock:
                snapshot = self.core.snapshot()
                if snapshot.should_exit:
                    break
                ui.draw(self.terminal, snapshot, self.config.use_colors, self.config.progress_width)
            time.sleep(self.config.ui_tick)

    def input_loop(self) -> None:
        while not self.is_exit():
            op = key_to_operation(self.terminal.poll_key(self.config.input_poll))
            if op is None:
                continue
            with self.lock:
                dispatch(self.core, op, self.terminal)

    # -- lifecycle --

    def run(self) -> None:
        """Run all loops, then stop the sink and restore the terminal.

        Raises:
            The first error that stopped a loop, after teardown
        """
        self.terminal.enter()
        try:
            threads = [
                threading.Thread(target=self._guarded("ui", self.ui_loop), name="ui", daemon=True),
                threading.Thread(target=self._guarded("input", self.input_loop), name="input", daemon=True),
            ]
            for thread in threads:
                thread.start()

            try:
                self._guarded("main", self.main_loop)()
            except KeyboardInterrupt:
                logger.info("Interrupted, shutting down")
                with self.lock:
                    dispatch(self.core, Operation.EXIT)

            for thread in threads:
                thread.join()
        finally:
            with self.lock:
                self.core.stop()
            self.terminal.restore()

        if self.errors:
            raise self.errors[0]
