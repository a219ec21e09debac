"""Local terminal primitive: raw input mode and key polling.

POSIX terminals are switched with termios and polled with select. Windows
consoles are read through msvcrt, which already delivers keys unbuffered.
"""
from __future__ import annotations

import io
import logging
import os
import select
import sys
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, Optional, TextIO

from ..models import KeyCode, KeyEvent
from .keys import decode_key

logger = logging.getLogger(__name__)

IS_WINDOWS = sys.platform == "win32"

READ_SIZE = 64


class Terminal(ABC):
    """Source of local key events."""

    @abstractmethod
    def is_interactive(self) -> bool:
        """Whether input comes from a real terminal."""
        pass

    @abstractmethod
    def raw_mode(self):
        """Context manager that switches the terminal to raw input.

        Yields True when raw mode is active and False when it could not be
        configured. The previous mode is restored on exit.
        """
        pass

    @abstractmethod
    def poll_key(self, timeout: float) -> Optional[KeyEvent]:
        """Wait up to ``timeout`` seconds for a key press."""
        pass


class PosixTerminal(Terminal):

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream or sys.stdin
        self._pending = bytearray()

    def is_interactive(self) -> bool:
        try:
            return self._stream.isatty()
        except (AttributeError, ValueError):
            return False

    @contextmanager
    def raw_mode(self) -> Iterator[bool]:
        import termios
        import tty

        saved = None
        try:
            fd = self._stream.fileno()
            attrs = termios.tcgetattr(fd)
            tty.setraw(fd)
            saved = attrs
        except (termios.error, OSError, ValueError, io.UnsupportedOperation) as e:
            logger.warning(f"Could not configure raw mode: {e}; continuing in line mode")

        if saved is None:
            yield False
            return

        try:
            yield True
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, saved)

    def poll_key(self, timeout: float) -> Optional[KeyEvent]:
        if not self._pending:
            fd = self._stream.fileno()
            ready, _, _ = select.select([fd], [], [], timeout)
            if not ready:
                return None
            self._pending.extend(os.read(fd, READ_SIZE))

        event, consumed = decode_key(bytes(self._pending))
        if consumed == 0:
            # Incomplete UTF-8 character, wait for the rest
            more, _, _ = select.select([self._stream.fileno()], [], [], timeout)
            if more:
                self._pending.extend(os.read(self._stream.fileno(), READ_SIZE))
                event, consumed = decode_key(bytes(self._pending))
            if consumed == 0:
                self._pending.clear()
                return None
        del self._pending[:consumed]
        return event


# Extended scan codes delivered after a 0x00/0xE0 prefix
_WINDOWS_KEYS = {
    "H": KeyEvent(KeyCode.UP),
    "P": KeyEvent(KeyCode.DOWN),
    "M": KeyEvent(KeyCode.RIGHT),
    "K": KeyEvent(KeyCode.LEFT),
    "t": KeyEvent(KeyCode.RIGHT, ctrl=True),
    "s": KeyEvent(KeyCode.LEFT, ctrl=True),
    "G": KeyEvent(KeyCode.HOME),
    "O": KeyEvent(KeyCode.END),
    "S": KeyEvent(KeyCode.DELETE),
}


class WindowsTerminal(Terminal):

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream or sys.stdin

    def is_interactive(self) -> bool:
        try:
            return self._stream.isatty()
        except (AttributeError, ValueError):
            return False

    @contextmanager
    def raw_mode(self) -> Iterator[bool]:
        # msvcrt reads bypass line buffering already
        yield True

    def poll_key(self, timeout: float) -> Optional[KeyEvent]:
        import msvcrt
        import time

        deadline = time.monotonic() + timeout
        while not msvcrt.kbhit():
            if time.monotonic() >= deadline:
                return None
            time.sleep(0.001)

        char = msvcrt.getwch()
        if char in ("\x00", "\xe0"):
            return _WINDOWS_KEYS.get(msvcrt.getwch())
        event, _ = decode_key(char.encode("utf-8"))
        return event


def create_terminal(stream: Optional[TextIO] = None) -> Terminal:
    """Terminal implementation for the current platform."""
    if IS_WINDOWS:
        return WindowsTerminal(stream)
    return PosixTerminal(stream)
