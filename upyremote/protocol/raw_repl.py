"""Raw REPL state machine.

MicroPython's raw REPL turns off echo and frames command output with control
bytes. A command round trip goes through these states::

    IDLE -> INTERRUPTING -> ENTERING_RAW -> AWAITING_CONFIRM -> READY
         -> EXECUTING -> AWAITING_RESULT -> EXITING -> IDLE

``raw_mode()`` pairs every entry with an exit, whatever happens in between.
"""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Iterator

from ..errors import TransportError
from ..models import DeviceMode
from ..transport.buffer import FrameReader
from . import constants as c

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)


class ReplState(Enum):
    IDLE = "idle"
    INTERRUPTING = "interrupting"
    ENTERING_RAW = "entering_raw"
    AWAITING_CONFIRM = "awaiting_confirm"
    READY = "ready"
    EXECUTING = "executing"
    AWAITING_RESULT = "awaiting_result"
    EXITING = "exiting"


class RawReplSession:
    """Drives one device in and out of raw REPL mode.

    Only valid for INTERPRETER_RAW devices; the mode is checked before any
    byte is written.
    """

    def __init__(self, session: Session, exec_timeout: float = c.EXEC_TIMEOUT):
        """Initialize raw REPL driver.

        Args:
            session: Session owning the transport
            exec_timeout: Seconds to wait for the result terminator
        """
        self._session = session
        self._exec_timeout = exec_timeout
        self._state = ReplState.IDLE
        self._banner_confirmed = False
        self._completed = False

    @property
    def state(self) -> ReplState:
        return self._state

    @property
    def banner_confirmed(self) -> bool:
        """Whether the last entry saw the raw REPL banner."""
        return self._banner_confirmed

    @property
    def completed(self) -> bool:
        """Whether the last command delivered its result terminator."""
        return self._completed

    @contextmanager
    def raw_mode(self) -> Iterator[RawReplSession]:
        """Enter raw REPL for the duration of the block.

        Raises:
            ModeMismatch: if the device is not an INTERPRETER_RAW device
        """
        self._session.require_mode(DeviceMode.INTERPRETER_RAW, "raw REPL")
        with self._session.exclusive():
            try:
                self.enter()
                yield self
            except BaseException:
                self.exit(suppress_errors=True)
                raise
            self.exit()

    def enter(self) -> None:
        """Interrupt any running program and switch to raw REPL."""
        transport = self._session.transport

        self._set_state(ReplState.INTERRUPTING)
        transport.reset_input()
        transport.write(c.INTERRUPT)
        time.sleep(c.INTERRUPT_SETTLE)

        self._set_state(ReplState.ENTERING_RAW)
        transport.write(c.CTRL_A)
        time.sleep(c.ENTER_SETTLE)

        reader = FrameReader(transport)
        found = reader.read_until(c.PRIMARY_PROMPT, c.BANNER_TIMEOUT)

        self._set_state(ReplState.AWAITING_CONFIRM)
        text = reader.text()
        self._banner_confirmed = found and any(m in text for m in c.RAW_BANNER_MARKERS)

        if not self._banner_confirmed:
            # Retry once, then trust the device without checking again.
            logger.debug("Raw REPL banner not seen, resending enter byte")
            transport.write(c.CTRL_A)
            time.sleep(c.ENTER_RETRY_SETTLE)

        self._set_state(ReplState.READY)

    def execute(self, code: str) -> bytes:
        """Send ``code`` and collect everything up to the result terminator.

        Returns:
            The captured bytes. When the terminator never arrives the bytes
            read before the timeout are returned and ``completed`` is False.
        """
        transport = self._session.transport

        self._set_state(ReplState.EXECUTING)
        data = code.encode("utf-8")
        for offset in range(0, len(data), c.CODE_CHUNK_SIZE):
            transport.write(data[offset:offset + c.CODE_CHUNK_SIZE])
            time.sleep(c.CODE_CHUNK_DELAY)
        transport.write(c.CTRL_D)

        self._set_state(ReplState.AWAITING_RESULT)
        reader = FrameReader(transport)
        self._completed = reader.read_until(c.RESULT_TERMINATOR, self._exec_timeout)
        if not self._completed:
            logger.warning(f"No result terminator within {self._exec_timeout}s")
        return reader.data

    def exit(self, suppress_errors: bool = False) -> None:
        """Leave raw REPL. Always ends in IDLE.

        Args:
            suppress_errors: Log a TransportError from the exit byte instead
                of raising it
        """
        self._set_state(ReplState.EXITING)
        try:
            self._session.transport.write(c.CTRL_B)
            time.sleep(c.EXIT_SETTLE)
        except TransportError as e:
            if not suppress_errors:
                raise
            logger.warning(f"Could not leave raw REPL: {e}")
        finally:
            self._set_state(ReplState.IDLE)

    def _set_state(self, state: ReplState) -> None:
        logger.debug(f"Raw REPL {self._state.value} -> {state.value}")
        self._state = state
