"""File transfer through a text-safe channel.

Two strategies, selected by the device mode:

- RawReplTransfer: base64 payload inside a raw REPL program (MicroPython)
- ShellTransfer: plain text lines through the upyOS ``upload`` command

There is no fallback from one strategy to the other.
"""
from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..errors import (
    EncodingError,
    ProtectedFileError,
    ProtocolTimeout,
    RemoteError,
    TransferTooLarge,
)
from ..models import DeviceMode, TransferDescriptor, TransferMethod
from ..transport.buffer import FrameReader
from . import codec
from . import constants as c
from .executor import CommandExecutor
from .send import send_string

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)

PUSH_TEMPLATE = """import ubinascii
data = ubinascii.a2b_base64('{payload}')
with open({path!r}, 'wb') as f:
    f.write(data)
print('OK')"""

PULL_TEMPLATE = """import ubinascii
try:
    with open({path!r}, 'rb') as f:
        data = f.read()
        print(ubinascii.b2a_base64(data).decode().strip())
except OSError as e:
    print('Error:', e)"""


def method_for_mode(mode: DeviceMode) -> TransferMethod:
    """Pick the transfer method for a device mode."""
    if mode is DeviceMode.INTERPRETER_RAW:
        return TransferMethod.RAW_REPL
    elif mode is DeviceMode.SHELL:
        return TransferMethod.SHELL
    elif mode is DeviceMode.UNKNOWN:
        return TransferMethod.RAW_REPL
    raise ValueError(f"Unhandled device mode: {mode}")


class TransferStrategy(ABC):
    """Moves file bytes between this machine and the device."""

    @abstractmethod
    def push(self, content: bytes, remote_path: str) -> None:
        """Write ``content`` to ``remote_path`` on the device."""
        pass

    @abstractmethod
    def pull(self, remote_path: str) -> bytes:
        """Read ``remote_path`` from the device."""
        pass

    @property
    @abstractmethod
    def method(self) -> TransferMethod:
        pass


class RawReplTransfer(TransferStrategy):
    """Base64 transfer through raw REPL programs."""

    def __init__(self, executor: CommandExecutor):
        self._executor = executor

    @property
    def method(self) -> TransferMethod:
        return TransferMethod.RAW_REPL

    def push(self, content: bytes, remote_path: str) -> None:
        if len(content) > c.LARGE_FILE_THRESHOLD:
            logger.info(f"Large file ({len(content)} bytes), sending it as a single payload")

        program = PUSH_TEMPLATE.format(payload=codec.encode(content), path=remote_path)
        result = self._executor.execute(program)

        if not result.framed or not result.completed:
            raise RemoteError(f"Upload to '{remote_path}' did not finish", result.raw)
        if c.SUCCESS_TOKEN not in result.output:
            raise RemoteError(f"Error uploading file to '{remote_path}'", result.raw)

    def pull(self, remote_path: str) -> bytes:
        result = self._executor.execute(PULL_TEMPLATE.format(path=remote_path))

        if "Error:" in result.output:
            raise RemoteError(f"Error reading remote file '{remote_path}'", result.output)
        if not result.framed:
            raise RemoteError(f"Could not read file '{remote_path}'", result.raw)

        payload = "".join(
            line.strip() for line in result.output.splitlines()
            if line.strip() and c.PRIMARY_PROMPT.decode() not in line
        )
        return codec.decode(payload)


class ShellTransfer(TransferStrategy):
    """Line-by-line text transfer through the upyOS shell."""

    def __init__(self, session: Session, max_upload: int = c.SHELL_MAX_UPLOAD):
        """Initialize shell transfer.

        Args:
            session: Session owning the transport
            max_upload: Largest payload accepted by ``push``, in bytes
        """
        self._session = session
        self._max_upload = max_upload

    @property
    def method(self) -> TransferMethod:
        return TransferMethod.SHELL

    def push(self, content: bytes, remote_path: str) -> None:
        if len(content) > self._max_upload:
            raise TransferTooLarge(len(content), self._max_upload)
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(f"Shell transfer needs UTF-8 text: {e}") from e

        with self._session.exclusive() as transport:
            transport.reset_input()
            transport.write(f"{c.SHELL_UPLOAD_COMMAND} {remote_path}".encode("utf-8") + c.LINE_TERMINATOR)

            reader = FrameReader(transport)
            acknowledged = reader.read_until(c.SHELL_LINE_PROMPT, c.SHELL_ACK_TIMEOUT)
            self._check_protected(reader.text(), remote_path)
            if not acknowledged:
                raise ProtocolTimeout(f"Shell did not start the upload of '{remote_path}'")

            for index, line in enumerate(text.splitlines()):
                if index:
                    reader.clear()
                    reader.read_until(c.SHELL_LINE_PROMPT, c.SHELL_LINE_TIMEOUT)
                transport.write(line.encode("utf-8") + c.LINE_TERMINATOR)

            reader.clear()
            transport.write(c.CTRL_D)
            if not reader.read_until(c.SHELL_PROMPT_SUFFIX.encode(), c.SHELL_DONE_TIMEOUT):
                logger.warning("Shell prompt did not come back after the upload")
            self._check_protected(reader.text(), remote_path)

    def pull(self, remote_path: str) -> bytes:
        output = send_string(self._session, f"{c.SHELL_CAT_COMMAND} {remote_path}")
        lines = output.splitlines(keepends=True)
        return "".join(lines[1:-1]).encode("utf-8")

    @staticmethod
    def _check_protected(text: str, remote_path: str) -> None:
        for line in text.splitlines():
            if c.PROTECTED_FILE_ERROR in line.lower():
                raise ProtectedFileError(f"Refused to write '{remote_path}'", line)


class FileTransferCodec:
    """Selects the transfer strategy for the session's mode and runs it."""

    def __init__(self, session: Session, executor: Optional[CommandExecutor] = None):
        self._session = session
        self._raw = RawReplTransfer(executor or CommandExecutor(session))
        self._shell = ShellTransfer(session)

    def strategy(self) -> TransferStrategy:
        method = method_for_mode(self._session.mode)
        if method is TransferMethod.RAW_REPL:
            return self._raw
        return self._shell

    def put(self, local_path: Path, remote_path: str) -> TransferDescriptor:
        """Upload a local file.

        Raises:
            OSError: if the local file cannot be read
            ModeMismatch: if the device mode does not support the transfer
            RemoteError: if the device reported a failure
        """
        local_path = Path(local_path)
        content = local_path.read_bytes()
        strategy = self.strategy()

        started = time.monotonic()
        strategy.push(content, remote_path)
        logger.debug(f"Pushed {len(content)} bytes in {time.monotonic() - started:.2f}s")

        return TransferDescriptor(local_path, remote_path, len(content), strategy.method)

    def get(self, remote_path: str, local_path: Path) -> TransferDescriptor:
        """Download a remote file.

        Raises:
            ModeMismatch: if the device mode does not support the transfer
            RemoteError: if the device reported a failure
            OSError: if the local file cannot be written
        """
        local_path = Path(local_path)
        strategy = self.strategy()

        content = strategy.pull(remote_path)
        local_path.write_bytes(content)

        return TransferDescriptor(local_path, remote_path, len(content), strategy.method)
