"""Live pass-through between the local console and the device.

Two run modes:

- Script mode (stdin is not a terminal): device output goes straight to the
  output stream, input lines are forwarded with a carriage return.
- Interactive mode: the terminal is switched to raw input and every key press
  is translated and forwarded. Ctrl+X leaves.

Both modes run in one thread and service the device and the local input on
every loop iteration.
"""
from __future__ import annotations

import io
import logging
import os
import select
import sys
import time
from typing import TYPE_CHECKING, BinaryIO, List, Optional, TextIO, Tuple

from ..protocol import constants as c
from ..transport.base import TransportPort
from .keys import is_exit_key, translate_key
from .terminal import Terminal, create_terminal

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)

NORMALIZE_SETTLE = 0.1  # seconds
KEY_POLL_TIMEOUT = 0.005
INPUT_POLL_TIMEOUT = 0.005
INPUT_READ_SIZE = 1024
SCRIPT_DRAIN_QUIET = 0.5


class InteractiveBridge:
    """Duplexes the device's byte stream with the local console."""

    def __init__(self,
                 session: Session,
                 terminal: Optional[Terminal] = None,
                 output: Optional[BinaryIO] = None,
                 input_stream: Optional[TextIO] = None):
        """Initialize bridge.

        Args:
            session: Session owning the transport
            terminal: Key source for interactive mode (default: platform terminal)
            output: Binary stream for device output (default: stdout)
            input_stream: Line source for script mode (default: stdin)
        """
        self._session = session
        self._input = input_stream or sys.stdin
        self._terminal = terminal or create_terminal(self._input)
        self._output = output or sys.stdout.buffer
        self._pending = bytearray()

    def run(self) -> None:
        """Pick the run mode from the terminal and run until done."""
        if self._terminal.is_interactive():
            self.run_interactive()
        else:
            self.run_script()

    def run_script(self) -> None:
        """Forward input lines until EOF, then drain device output."""
        with self._session.exclusive() as transport:
            transport.write(c.CTRL_C)
            time.sleep(NORMALIZE_SETTLE)
            self._drain(transport)

            at_eof = False
            last_activity = time.monotonic()

            while True:
                data = transport.read()
                if data:
                    self._display(data)
                    last_activity = time.monotonic()

                if at_eof:
                    if time.monotonic() - last_activity >= SCRIPT_DRAIN_QUIET:
                        break
                    continue

                lines, at_eof = self._read_lines()
                for line in lines:
                    transport.write(line.rstrip(b"\r\n") + c.LINE_TERMINATOR)
                if at_eof:
                    last_activity = time.monotonic()

    def run_interactive(self) -> None:
        """Run the key-forwarding loop until Ctrl+X.

        The terminal mode is restored on every exit path.
        """
        with self._session.exclusive() as transport:
            # Leave any running program and any raw REPL behind
            transport.write(c.CTRL_C)
            time.sleep(NORMALIZE_SETTLE)
            transport.write(c.CTRL_B)
            time.sleep(NORMALIZE_SETTLE)
            self._drain(transport)

            self._notice("Connected to device. Press Ctrl+X to exit.\n")

            with self._terminal.raw_mode():
                try:
                    self._key_loop(transport)
                finally:
                    self._notice("\r\nExiting REPL...\r\n")

    def _key_loop(self, transport: TransportPort) -> None:
        while True:
            data = transport.read()
            if data:
                self._display(data)

            event = self._terminal.poll_key(KEY_POLL_TIMEOUT)
            if event is None:
                continue
            if is_exit_key(event):
                logger.debug("Exit key pressed")
                return

            payload = translate_key(event)
            if payload:
                transport.write(payload)

    def _drain(self, transport: TransportPort) -> None:
        data = transport.read()
        if data:
            self._display(data)

    def _display(self, data: bytes) -> None:
        self._output.write(data)
        self._output.flush()

    def _notice(self, text: str) -> None:
        self._display(text.encode("utf-8"))

    def _read_lines(self) -> Tuple[List[bytes], bool]:
        """Complete input lines that are ready now, and whether input ended.

        Reads the file descriptor directly so a partial line never blocks the
        loop. A partial line left at end of input is returned as a last line.
        """
        try:
            fd = self._input.fileno()
        except (AttributeError, ValueError, io.UnsupportedOperation):
            # In-memory stream: readline never blocks
            line = self._input.readline()
            if not line:
                return [], True
            return [line.encode("utf-8")], False

        try:
            ready, _, _ = select.select([fd], [], [], INPUT_POLL_TIMEOUT)
        except (ValueError, OSError):
            # Windows pipes are not selectable
            ready = [fd]
        if not ready:
            return [], False

        chunk = os.read(fd, INPUT_READ_SIZE)
        if not chunk:
            rest = bytes(self._pending)
            self._pending.clear()
            return ([rest] if rest else []), True

        self._pending.extend(chunk)
        lines = []
        while True:
            end = self._pending.find(b"\n")
            if end == -1:
                break
            lines.append(bytes(self._pending[:end + 1]))
            del self._pending[:end + 1]
        return lines, False
