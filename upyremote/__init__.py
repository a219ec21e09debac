"""upyremote - remote control for MicroPython and upyOS boards over a serial link."""

__version__ = "0.1.0"

from .models import (
    DeviceMode,
    TransferMethod,
    CommandResult,
    TransferDescriptor,
    KeyCode,
    KeyEvent,
)
from .errors import (
    UpyRemoteError,
    TransportError,
    TransportTimeout,
    ProtocolTimeout,
    ModeMismatch,
    RemoteError,
    ProtectedFileError,
    TransferTooLarge,
    EncodingError,
)
from .transport import TransportPort, SerialPort
from .session import Session
from .device import Device

__all__ = [
    "DeviceMode",
    "TransferMethod",
    "CommandResult",
    "TransferDescriptor",
    "KeyCode",
    "KeyEvent",
    "UpyRemoteError",
    "TransportError",
    "TransportTimeout",
    "ProtocolTimeout",
    "ModeMismatch",
    "RemoteError",
    "ProtectedFileError",
    "TransferTooLarge",
    "EncodingError",
    "TransportPort",
    "SerialPort",
    "Session",
    "Device",
]
