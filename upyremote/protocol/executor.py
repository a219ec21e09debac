"""Command execution through the raw REPL.

The raw REPL answers a command with::

    OK<normal output>\\x04<exception output>\\x04>

The executor returns the normal output segment. The exception segment stays
inside ``CommandResult.raw``.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from ..errors import RemoteError
from ..models import CommandResult, DeviceMode
from . import constants as c
from .raw_repl import RawReplSession

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)

LIST_FILES_TEMPLATE = """import os
try:
    for f in os.listdir({path!r}):
        print(f)
except OSError as e:
    print("Error:", e)"""


def parse_output(raw: str, completed: bool = True) -> CommandResult:
    """Extract the normal output segment from a raw REPL reply.

    Falls back to the whole text when the success token or the terminator
    after it is missing.
    """
    start = raw.find(c.SUCCESS_TOKEN)
    if start != -1:
        rest = raw[start + len(c.SUCCESS_TOKEN):]
        end = rest.find(c.CTRL_D.decode())
        if end != -1:
            return CommandResult(output=rest[:end].strip(), raw=raw, completed=completed)

    return CommandResult(output=raw, raw=raw, framed=False, completed=completed)


class CommandExecutor:
    """Runs code snippets on an INTERPRETER_RAW device."""

    def __init__(self, session: Session, repl: Optional[RawReplSession] = None):
        """Initialize executor.

        Args:
            session: Session owning the transport
            repl: Raw REPL driver, or None to create one
        """
        self._session = session
        self._repl = repl or RawReplSession(session)

    @property
    def repl(self) -> RawReplSession:
        return self._repl

    def execute(self, code: str) -> CommandResult:
        """Run ``code`` in the raw REPL and return its output.

        Raises:
            ModeMismatch: if the device is not an INTERPRETER_RAW device
            TransportError: on a fatal transport failure
        """
        self._session.require_mode(DeviceMode.INTERPRETER_RAW, "exec")

        with self._repl.raw_mode() as repl:
            captured = repl.execute(code)
            completed = repl.completed

        result = parse_output(captured.decode("utf-8", errors="replace"), completed)
        if not result.framed:
            logger.debug("Reply had no OK framing, returning it verbatim")
        return result

    def list_files(self, path: str = "/") -> List[str]:
        """List the names in a directory on the device.

        Raises:
            RemoteError: if the device could not list the directory
        """
        result = self.execute(LIST_FILES_TEMPLATE.format(path=path))

        names = []
        for line in result.output.splitlines():
            line = line.strip()
            if not line:
                continue
            if line.startswith("Error:"):
                raise RemoteError(f"Could not list '{path}'", line)
            names.append(line)
        return names
