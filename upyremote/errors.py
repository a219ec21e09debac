"""Exception hierarchy for upyremote.

Every error raised by the library derives from UpyRemoteError so the command
line front end can report it without a traceback.
"""
from __future__ import annotations

from typing import Optional

from .models import DeviceMode


class UpyRemoteError(Exception):
    """Base class for all upyremote errors."""
    pass


class TransportError(UpyRemoteError):
    """Raised when the port cannot be opened, read or written."""
    pass


class TransportTimeout(UpyRemoteError):
    """Raised by a transport when a read timed out.

    Not fatal: readers sleep briefly and poll again.
    """
    pass


class ProtocolTimeout(UpyRemoteError):
    """Raised when a bounded protocol wait ran out and the caller must abort."""
    pass


class ModeMismatch(UpyRemoteError):
    """Raised before any I/O when an operation does not fit the device mode."""

    def __init__(self, required: DeviceMode, actual: DeviceMode, operation: str = "operation"):
        super().__init__(
            f"'{operation}' requires a {required} device, but the device is in {actual} mode"
        )
        self.required = required
        self.actual = actual
        self.operation = operation


class RemoteError(UpyRemoteError):
    """Raised when the device reported an error in its own output."""

    def __init__(self, message: str, detail: Optional[str] = None):
        if detail:
            message = f"{message}: {detail.strip()}"
        super().__init__(message)
        self.detail = detail


class ProtectedFileError(RemoteError):
    """Raised when the shell refused to overwrite a protected file."""
    pass


class TransferTooLarge(UpyRemoteError):
    """Raised when a payload exceeds the transfer method's ceiling."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"File is {size} bytes, the limit is {limit} bytes")
        self.size = size
        self.limit = limit


class EncodingError(UpyRemoteError):
    """Raised when content cannot be carried by the selected text channel."""
    pass


class PortNotFoundError(UpyRemoteError):
    """Raised when no matching serial port could be found."""
    pass


class MultiplePortsError(UpyRemoteError):
    """Raised when more than one matching serial port is found."""
    def __init__(self, message, ports):
        super().__init__(message)
        self.ports = ports  # list[PortInfo]
