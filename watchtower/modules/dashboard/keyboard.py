from __future__ import annotations

import logging
import os
import select
import sys
import termios
import threading
import tty
from typing import Callable, Optional

logger = logging.getLogger(__name__)

ESCAPE_SEQUENCES = {
    "[A": "up",
    "[B": "down",
    "[C": "right",
    "[D": "left",
    "[Z": "shift+tab",
    "[5~": "pgup",
    "[6~": "pgdown",
}
SINGLE_KEYS = {
    "\r": "enter",
    "\n": "enter",
    "\t": "tab",
    "\x03": "ctrl+c",
    "\x7f": "backspace",
    "\b": "backspace",
}
LINE_COMMANDS = {"": "enter"}
POLL_SECONDS = 0.2
# Remote terminals can split an escape sequence across reads.
ESCAPE_TIMEOUT_SECONDS = 0.05


def decode_escape(sequence: str) -> str:
    return ESCAPE_SEQUENCES.get(sequence, "esc")


class KeyboardReader:
    """Reads keys from stdin on a daemon thread and hands key names to *on_key*.

    *on_key* is called from the reader thread; callers marshal it onto their loop.
    """

    def __init__(self, on_key: Callable[[str], None]) -> None:
        self.on_key = on_key
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="watchtower-keys", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1)
            self._thread = None

    def _run(self) -> None:
        if not sys.stdin.isatty():
            self._read_lines()
            return
        fd = sys.stdin.fileno()
        try:
            old_settings = termios.tcgetattr(fd)
        except termios.error as exc:
            logger.info("stdin is not a terminal (%s); using line input", exc)
            self._read_lines()
            return
        try:
            tty.setcbreak(fd)
            self._read_keys(fd)
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)

    def _read_keys(self, fd: int) -> None:
        while not self._stop.is_set():
            ready, _, _ = select.select([fd], [], [], POLL_SECONDS)
            if not ready:
                continue
            key = os.read(fd, 1).decode("utf-8", errors="ignore")
            if not key:
                continue
            if key == "\x1b":
                self.on_key(decode_escape(self._read_sequence(fd)))
                continue
            self.on_key(SINGLE_KEYS.get(key, key))

    def _read_sequence(self, fd: int) -> str:
        sequence = ""
        while select.select([fd], [], [], ESCAPE_TIMEOUT_SECONDS)[0]:
            sequence += os.read(fd, 1).decode("utf-8", errors="ignore")
            if not sequence:
                continue
            if sequence[-1].isalpha() or sequence.endswith("~") or len(sequence) >= 6:
                break
        return sequence

    def _read_lines(self) -> None:
        while not self._stop.is_set():
            line = sys.stdin.readline()
            if line == "":
                if self._stop.wait(POLL_SECONDS):
                    break
                continue
            command = line.strip()
            self.on_key(LINE_COMMANDS.get(command, command[:1]))
