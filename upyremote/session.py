"""Device session: exclusive owner of one transport and the detected mode.

Every protocol component receives the Session by reference instead of
reaching for global state. The mode is queried once when the session starts
and is read-only afterwards; probing again needs an explicit call to
``redetect_mode``.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from .errors import ModeMismatch
from .models import DeviceMode
from .protocol.detector import ModeDetector
from .transport.base import TransportPort

logger = logging.getLogger(__name__)


class Session:
    """Owns one TransportPort for its whole lifetime.

    Example:
        >>> with Session(SerialPort("/dev/ttyUSB0")) as session:
        ...     session.detect_mode()
        <DeviceMode.INTERPRETER_RAW: 'interpreter_raw'>
    """

    def __init__(self, transport: TransportPort, detector: Optional[ModeDetector] = None):
        """Initialize session.

        Args:
            transport: Port this session owns exclusively
            detector: Mode detector, or None for the default query
        """
        self._transport = transport
        self._detector = detector or ModeDetector()
        self._mode = DeviceMode.UNKNOWN
        self._mode_detected = False
        self._lock = threading.RLock()

    @property
    def transport(self) -> TransportPort:
        return self._transport

    @property
    def mode(self) -> DeviceMode:
        """Detected dialect; UNKNOWN until detection ran."""
        return self._mode

    @property
    def mode_detected(self) -> bool:
        return self._mode_detected

    def open(self) -> None:
        if not self._transport.is_open():
            self._transport.open()

    def close(self) -> None:
        self._transport.close()

    def detect_mode(self) -> DeviceMode:
        """Query the device once and fix the mode for this session.

        Later calls return the mode found by the first one without any I/O.
        """
        if self._mode_detected:
            return self._mode
        return self._query()

    def redetect_mode(self) -> DeviceMode:
        """Query the device again and replace the fixed mode."""
        logger.debug(f"Re-detecting device mode (was {self._mode})")
        return self._query()

    def require_mode(self, required: DeviceMode, operation: str) -> None:
        """Check a mode precondition before any I/O.

        Raises:
            ModeMismatch: if the session mode is not ``required``
        """
        if self._mode is not required:
            raise ModeMismatch(required, self._mode, operation)

    @contextmanager
    def exclusive(self) -> Iterator[TransportPort]:
        """Hold the transport for one exchange.

        Re-entrant for the owning thread so nested protocol steps can share a
        single exchange.
        """
        with self._lock:
            yield self._transport

    def _query(self) -> DeviceMode:
        with self.exclusive() as transport:
            self._mode = self._detector.detect(transport)
        self._mode_detected = True
        return self._mode

    def __enter__(self) -> Session:
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
