"""Dialect classification for a freshly opened port."""
from __future__ import annotations

import logging

from ..models import DeviceMode
from ..transport.base import TransportPort
from ..transport.buffer import FrameReader
from . import constants as c

logger = logging.getLogger(__name__)


class ModeDetector:
    """Queries the device and classifies its command dialect.

    A MicroPython device answers a bare line terminator with ``>>>``. A upyOS
    device answers with its ``$:`` prompt and must also echo the query
    command's output before it counts as a shell.
    """

    def __init__(self,
                 window: float = c.DETECT_WINDOW,
                 query_window: float = c.QUERY_WINDOW):
        """Initialize detector.

        Args:
            window: Seconds to collect the reply to the line terminator
            query_window: Seconds to collect the reply to the shell query
        """
        self._window = window
        self._query_window = query_window

    def detect(self, transport: TransportPort) -> DeviceMode:
        """Classify the device behind ``transport``."""
        mode = self._classify(transport)
        logger.info(f"Detected device mode: {mode}")
        return mode

    def _classify(self, transport: TransportPort) -> DeviceMode:
        transport.reset_input()
        transport.write(c.LINE_TERMINATOR)

        reader = FrameReader(transport)
        text = reader.collect(self._window).decode("utf-8", errors="replace")

        if c.PRIMARY_PROMPT.decode() in text:
            return DeviceMode.INTERPRETER_RAW

        if not c.has_shell_prompt(text):
            logger.debug(f"No prompt in query reply: {text!r}")
            return DeviceMode.UNKNOWN

        transport.write(c.SHELL_QUERY_COMMAND.encode() + c.LINE_TERMINATOR)
        reader.clear()
        reply = reader.collect(self._query_window).decode("utf-8", errors="replace")

        if any(line.strip() == c.SHELL_QUERY_REPLY for line in reply.splitlines()):
            return DeviceMode.SHELL

        logger.warning(
            "Device shows a shell prompt but did not answer the query; "
            "commands will be restricted"
        )
        return DeviceMode.UNKNOWN
