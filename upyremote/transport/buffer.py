"""Frame reader for the transport layer.

Accumulates transport bytes in a growable buffer and waits for a byte
sequence to show up anywhere in it.
"""
from __future__ import annotations

import logging
import time

from ..errors import TransportTimeout
from .base import TransportPort

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 1024  # bytes
RETRY_DELAY = 0.01  # seconds


class FrameReader:
    """Cumulative byte buffer fed from a transport.

    The needle is searched in the whole buffer after every read, so a needle
    split across two reads is still found. The buffer keeps growing until
    ``clear`` is called.
    """

    def __init__(self, transport: TransportPort, chunk_size: int = READ_CHUNK_SIZE):
        """Initialize reader.

        Args:
            transport: Port to read from
            chunk_size: Maximum bytes per read
        """
        self._transport = transport
        self._chunk_size = chunk_size
        self._buffer = bytearray()

    def read_until(self, needle: bytes, timeout: float) -> bool:
        """Read until ``needle`` is in the buffer or ``timeout`` elapses.

        Args:
            needle: Byte sequence to wait for
            timeout: Budget in seconds

        Returns:
            True if the needle was found, False if the budget ran out.

        Raises:
            TransportError: on a fatal transport failure
        """
        start = time.monotonic()

        while True:
            if time.monotonic() - start > timeout:
                logger.debug(f"Timed out after {timeout}s waiting for {needle!r}")
                return False

            try:
                chunk = self._transport.read(self._chunk_size)
            except TransportTimeout:
                time.sleep(RETRY_DELAY)
                continue

            if chunk:
                self._buffer.extend(chunk)
                if needle in self._buffer:
                    return True

    def read_available(self) -> bytes:
        """Do a single bounded read and append it to the buffer.

        Returns:
            The bytes read, possibly empty.
        """
        try:
            chunk = self._transport.read(self._chunk_size)
        except TransportTimeout:
            return b""
        self._buffer.extend(chunk)
        return chunk

    def collect(self, duration: float) -> bytes:
        """Read everything that arrives during ``duration`` seconds."""
        deadline = time.monotonic() + duration
        while time.monotonic() < deadline:
            if not self.read_available():
                time.sleep(RETRY_DELAY)
        return bytes(self._buffer)

    @property
    def data(self) -> bytes:
        """Everything captured so far."""
        return bytes(self._buffer)

    def text(self) -> str:
        """Captured bytes decoded as UTF-8, undecodable bytes replaced."""
        return self._buffer.decode("utf-8", errors="replace")

    @property
    def size(self) -> int:
        return len(self._buffer)

    def clear(self) -> None:
        self._buffer.clear()
