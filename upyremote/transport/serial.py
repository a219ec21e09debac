"""Serial transport implementation using pyserial.

Opens the port 8N1 without flow control. The read timeout doubles as the poll
interval: every ``read`` waits at most that long for bytes, which keeps every
wait in the protocol layer bounded.
"""
from __future__ import annotations

import logging
from typing import Optional

import serial

from ..errors import TransportError
from .base import TransportPort

logger = logging.getLogger(__name__)

DEFAULT_BAUD = 115200
POLL_TIMEOUT = 0.01  # seconds
READ_CHUNK_SIZE = 1024  # bytes


class SerialPort(TransportPort):
    """Serial link to a MicroPython or upyOS board.

    Example:
        >>> port = SerialPort("/dev/ttyUSB0")
        >>> with port:
        ...     port.write(b"\\r")
        ...     port.read()
    """

    def __init__(self,
                 port: str,
                 baudrate: int = DEFAULT_BAUD,
                 timeout: float = POLL_TIMEOUT):
        """Initialize serial port.

        Args:
            port: Serial port path (e.g., '/dev/ttyUSB0' or 'COM3')
            baudrate: Serial baud rate (default 115200)
            timeout: Read poll timeout in seconds
        """
        self._port = port
        self._baudrate = baudrate
        self._timeout = timeout
        self._serial: Optional[serial.Serial] = None

    @property
    def name(self) -> str:
        return self._port

    def open(self) -> None:
        """Open the serial port."""
        if self._serial is not None:
            logger.warning("Already open")
            return

        try:
            self._serial = serial.Serial(
                port=self._port,
                baudrate=self._baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                xonxoff=False,
                rtscts=False,
                timeout=self._timeout,
            )
        except (serial.SerialException, ValueError) as e:
            raise TransportError(f"Could not open port {self._port}: {e}") from e

        logger.debug(f"Opened {self._port} @ {self._baudrate} baud")

    def close(self) -> None:
        """Close the serial port."""
        if self._serial is None:
            return

        try:
            self._serial.close()
        except serial.SerialException as e:
            logger.error(f"Error closing serial port: {e}")
        finally:
            self._serial = None

        logger.debug(f"Closed {self._port}")

    def is_open(self) -> bool:
        return self._serial is not None

    def read(self, size: int = READ_CHUNK_SIZE) -> bytes:
        port = self._require_open()
        try:
            return port.read(size)
        except serial.SerialException as e:
            raise TransportError(f"Serial read error: {e}") from e

    def write(self, data: bytes) -> None:
        port = self._require_open()
        try:
            port.write(data)
            port.flush()
        except serial.SerialException as e:
            raise TransportError(f"Serial write error: {e}") from e

    def flush(self) -> None:
        port = self._require_open()
        try:
            port.flush()
        except serial.SerialException as e:
            raise TransportError(f"Serial flush error: {e}") from e

    def reset_input(self) -> None:
        port = self._require_open()
        try:
            port.reset_input_buffer()
        except serial.SerialException as e:
            raise TransportError(f"Serial reset error: {e}") from e

    def set_dtr(self, active: bool) -> None:
        self._require_open().dtr = active

    def set_rts(self, active: bool) -> None:
        self._require_open().rts = active

    def _require_open(self) -> serial.Serial:
        if self._serial is None:
            raise TransportError(f"Port {self._port} is not open")
        return self._serial
