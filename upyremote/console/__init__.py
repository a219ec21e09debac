"""Console layer: live pass-through between the local terminal and the device."""

from .bridge import InteractiveBridge
from .keys import EXIT_KEY, decode_key, is_exit_key, translate_key
from .terminal import PosixTerminal, Terminal, WindowsTerminal, create_terminal

__all__ = [
    "InteractiveBridge",
    "EXIT_KEY",
    "decode_key",
    "is_exit_key",
    "translate_key",
    "Terminal",
    "PosixTerminal",
    "WindowsTerminal",
    "create_terminal",
]
