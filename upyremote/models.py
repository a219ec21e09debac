"""Immutable data models for device sessions, command results and transfers.

All models are frozen dataclasses or enums. They are the contract between the
protocol layer, the device facade and the command-line front end.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class DeviceMode(Enum):
    """Command dialect spoken by the remote device.

    Determined once per session by probing and fixed afterwards.
    """
    INTERPRETER_RAW = "interpreter_raw"  # MicroPython, raw REPL capable
    SHELL = "shell"                      # upyOS line-oriented shell
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


class TransferMethod(Enum):
    """How file bytes travel through the text-safe channel."""
    RAW_REPL = "raw_repl"  # base64 inside a raw REPL program
    SHELL = "shell"        # plain text lines through the shell upload command


@dataclass(frozen=True)
class CommandResult:
    """Result of one raw REPL command.

    Attributes:
        output: Normal output between the success token and the first
            terminator, trimmed. Equals ``raw`` when no framing was found.
        raw: Complete captured text, including any exception segment
        framed: Whether the success token and a terminator were found
        completed: Whether the result terminator arrived before the timeout
    """
    output: str
    raw: str
    framed: bool = True
    completed: bool = True

    def __str__(self) -> str:
        return self.output


@dataclass(frozen=True)
class TransferDescriptor:
    """Description of a completed file transfer.

    Attributes:
        local_path: Path on this machine
        remote_path: Path on the device
        size: Number of payload bytes moved
        method: Strategy used, derived from the device mode
    """
    local_path: Path
    remote_path: str
    size: int
    method: TransferMethod


class KeyCode(Enum):
    """Keys the interactive bridge knows how to forward."""
    CHAR = "char"
    ENTER = "enter"
    BACKSPACE = "backspace"
    TAB = "tab"
    ESC = "esc"
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    HOME = "home"
    END = "end"
    DELETE = "delete"


@dataclass(frozen=True)
class KeyEvent:
    """A single local key press.

    Attributes:
        code: Key identifier
        char: The character for ``KeyCode.CHAR`` events, else None
        ctrl: Whether the Control modifier was held
    """
    code: KeyCode
    char: Optional[str] = None
    ctrl: bool = False

    @classmethod
    def character(cls, char: str, ctrl: bool = False) -> KeyEvent:
        return cls(code=KeyCode.CHAR, char=char, ctrl=ctrl)
