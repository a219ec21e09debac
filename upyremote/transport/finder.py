from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from serial.tools import list_ports

from ..errors import MultiplePortsError, PortNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortInfo:
    """
    Representation of one serial port as seen by pyserial.

    Attributes:
        port: Port name to open with pyserial (e.g. 'COM3', '/dev/ttyUSB0').
        vid: USB Vendor ID (integer) or None for non-USB ports.
        pid: USB Product ID (integer) or None for non-USB ports.
        description: Human readable description from the OS.
        hwid: Raw hardware ID string from pyserial (for debugging).
    """
    port: str
    vid: Optional[int]
    pid: Optional[int]
    description: str
    hwid: str

    @property
    def is_usb(self) -> bool:
        return self.vid is not None


def _port_to_info(port) -> PortInfo:
    """Convert pyserial's ListPortInfo to PortInfo."""
    return PortInfo(
        port=port.device,
        vid=port.vid,
        pid=port.pid,
        description=port.description or "",
        hwid=port.hwid,
    )


def find_ports(*, matcher: Optional[Callable[[PortInfo], bool]] = None) -> List[PortInfo]:
    """
    Find serial ports on this machine.

    Args:
        matcher: Optional predicate; by default every USB serial port matches.

    Returns:
        List of PortInfo objects.
    """
    if matcher is None:
        matcher = lambda info: info.is_usb  # noqa: E731
    return [info for info in map(_port_to_info, list_ports.comports()) if matcher(info)]


def find_single_port(*, matcher: Optional[Callable[[PortInfo], bool]] = None) -> PortInfo:
    """
    Find exactly one serial port.

    Behaviour:
        - 0 matches  -> PortNotFoundError
        - 1 match    -> return it
        - >1 matches -> log error and raise MultiplePortsError
    """
    matches = find_ports(matcher=matcher)

    if not matches:
        raise PortNotFoundError("No USB serial port found")

    if len(matches) > 1:
        logger.error(
            "Multiple serial ports found; refusing to choose automatically. "
            "Ports: %s",
            [m.port for m in matches],
        )
        raise MultiplePortsError(
            f"Multiple serial ports found ({len(matches)} ports), pass --port",
            ports=matches,
        )

    return matches[0]
