"""Transport layer for talking to the device."""

from .base import TransportPort
from .buffer import FrameReader
from .serial import SerialPort, DEFAULT_BAUD
from .finder import PortInfo, find_ports, find_single_port

__all__ = [
    "TransportPort",
    "FrameReader",
    "SerialPort",
    "DEFAULT_BAUD",
    "PortInfo",
    "find_ports",
    "find_single_port",
]
