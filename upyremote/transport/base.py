"""Abstract base class for the byte-stream transport.

The TransportPort interface is the only way the protocol layer touches the
device. Implementations can be a serial port, a test double, or anything else
that moves bytes and exposes the two modem control lines.

Key principles:
- Bounded reads: ``read`` returns ``b""`` when nothing arrived in time
- Fatal failures raise TransportError
- Exclusively owned by one Session at a time
"""
from __future__ import annotations

from abc import ABC, abstractmethod


class TransportPort(ABC):
    """Abstract byte-level port to the device."""

    @abstractmethod
    def open(self) -> None:
        """Open the port.

        Raises:
            TransportError: if the port cannot be opened
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the port.

        Should be safe to call multiple times.
        """
        pass

    @abstractmethod
    def is_open(self) -> bool:
        """Check if the port is currently open."""
        pass

    @abstractmethod
    def read(self, size: int = 1024) -> bytes:
        """Read up to ``size`` bytes.

        Waits at most the port's poll timeout and returns ``b""`` when nothing
        arrived. Implementations may raise TransportTimeout instead; readers
        treat both the same way.

        Raises:
            TransportError: on any other read failure
        """
        pass

    @abstractmethod
    def write(self, data: bytes) -> None:
        """Write all of ``data`` and flush it to the device.

        Raises:
            TransportError: on write failure
        """
        pass

    @abstractmethod
    def reset_input(self) -> None:
        """Discard any stale bytes waiting in the input buffer."""
        pass

    @abstractmethod
    def set_dtr(self, active: bool) -> None:
        """Drive the DTR control line."""
        pass

    @abstractmethod
    def set_rts(self, active: bool) -> None:
        """Drive the RTS control line."""
        pass

    def flush(self) -> None:
        """Block until written data has left the host. No-op by default."""
        pass

    def __enter__(self) -> TransportPort:
        """Context manager support - open on enter."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager support - close on exit."""
        self.close()
