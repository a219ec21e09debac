"""Key table for the interactive bridge.

Translates local key events into the bytes a MicroPython or upyOS line editor
expects, and decodes raw terminal input back into key events.
"""
from __future__ import annotations

from typing import Dict, Optional, Tuple

from ..models import KeyCode, KeyEvent

ESC = b"\x1b"

# Key that ends the interactive session (Ctrl+X)
EXIT_KEY = KeyEvent.character("x", ctrl=True)

KEY_BYTES: Dict[Tuple[KeyCode, bool], bytes] = {
    (KeyCode.ENTER, False): b"\r",
    (KeyCode.BACKSPACE, False): b"\x7f",
    (KeyCode.TAB, False): b"\t",
    (KeyCode.ESC, False): ESC,
    (KeyCode.UP, False): b"\x1b[A",
    (KeyCode.DOWN, False): b"\x1b[B",
    (KeyCode.RIGHT, False): b"\x1b[C",
    (KeyCode.LEFT, False): b"\x1b[D",
    (KeyCode.RIGHT, True): b"\x1b[1;5C",  # jump word forward
    (KeyCode.LEFT, True): b"\x1b[1;5D",   # jump word backward
    (KeyCode.HOME, False): b"\x1b[H",
    (KeyCode.END, False): b"\x1b[F",
    (KeyCode.DELETE, False): b"\x1b[3~",
}

# Escape sequences sent by common terminals, longest first
ESCAPE_SEQUENCES: Dict[bytes, KeyEvent] = {
    b"\x1b[1;5C": KeyEvent(KeyCode.RIGHT, ctrl=True),
    b"\x1b[1;5D": KeyEvent(KeyCode.LEFT, ctrl=True),
    b"\x1b[1~": KeyEvent(KeyCode.HOME),
    b"\x1b[3~": KeyEvent(KeyCode.DELETE),
    b"\x1b[4~": KeyEvent(KeyCode.END),
    b"\x1b[A": KeyEvent(KeyCode.UP),
    b"\x1b[B": KeyEvent(KeyCode.DOWN),
    b"\x1b[C": KeyEvent(KeyCode.RIGHT),
    b"\x1b[D": KeyEvent(KeyCode.LEFT),
    b"\x1b[H": KeyEvent(KeyCode.HOME),
    b"\x1b[F": KeyEvent(KeyCode.END),
    b"\x1bOA": KeyEvent(KeyCode.UP),
    b"\x1bOB": KeyEvent(KeyCode.DOWN),
    b"\x1bOC": KeyEvent(KeyCode.RIGHT),
    b"\x1bOD": KeyEvent(KeyCode.LEFT),
    b"\x1bOH": KeyEvent(KeyCode.HOME),
    b"\x1bOF": KeyEvent(KeyCode.END),
}


def is_exit_key(event: KeyEvent) -> bool:
    return (event.code is KeyCode.CHAR and event.ctrl
            and event.char is not None and event.char.lower() == EXIT_KEY.char)


def translate_key(event: KeyEvent) -> bytes:
    """Map a key event to the bytes sent to the device.

    Returns:
        The bytes to write, or ``b""`` for keys with no mapping.
    """
    if event.code is KeyCode.CHAR:
        if not event.char:
            return b""
        if event.ctrl and event.char.isascii():
            return bytes([ord(event.char) & 0x1F])
        return event.char.encode("utf-8")

    payload = KEY_BYTES.get((event.code, event.ctrl))
    if payload is None:
        # Unmapped modifier combinations fall back to the plain key
        payload = KEY_BYTES.get((event.code, False), b"")
    return payload


def _utf8_length(first: int) -> int:
    if first & 0b1000_0000 == 0:
        return 1
    if first & 0b1110_0000 == 0b1100_0000:
        return 2
    if first & 0b1111_0000 == 0b1110_0000:
        return 3
    if first & 0b1111_1000 == 0b1111_0000:
        return 4
    return 1


def decode_key(data: bytes) -> Tuple[Optional[KeyEvent], int]:
    """Decode the first key in raw terminal input.

    Returns:
        ``(event, consumed)``. ``event`` is None when the bytes do not form a
        known key (they are still consumed) or when ``data`` is empty or holds
        an incomplete UTF-8 character (``consumed`` is 0 then).
    """
    if not data:
        return None, 0

    first = data[0]

    if first == 0x1B:
        for sequence, event in ESCAPE_SEQUENCES.items():
            if data.startswith(sequence):
                return event, len(sequence)
        if data[1:2] == b"[":
            # Unknown CSI sequence: skip through its final byte
            for index in range(2, len(data)):
                if 0x40 <= data[index] <= 0x7E:
                    return None, index + 1
            return None, len(data)
        return KeyEvent(KeyCode.ESC), 1

    if first in (0x0D, 0x0A):
        return KeyEvent(KeyCode.ENTER), 1
    if first in (0x7F, 0x08):
        return KeyEvent(KeyCode.BACKSPACE), 1
    if first == 0x09:
        return KeyEvent(KeyCode.TAB), 1
    if first < 0x20:
        return KeyEvent.character(chr(first | 0x60) if first else "@", ctrl=True), 1

    length = _utf8_length(first)
    if len(data) < length:
        return None, 0
    char = data[:length].decode("utf-8", errors="replace")
    return KeyEvent.character(char), length
