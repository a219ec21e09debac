"""Device abstraction layer.

Composes the session, the protocol components and the console bridge into
the operations the command line exposes.
"""
from __future__ import annotations

import logging
import time
from pathlib import Path, PurePosixPath
from typing import List, Optional

from .console.bridge import InteractiveBridge
from .models import CommandResult, DeviceMode, TransferDescriptor
from .protocol import constants as c
from .protocol.executor import CommandExecutor
from .protocol.send import send_string
from .protocol.transfer import FileTransferCodec
from .session import Session
from .transport.base import TransportPort

logger = logging.getLogger(__name__)


class Device:
    """High-level interface to a MicroPython or upyOS board.

    This class acts as a facade, managing:
    1. The session that owns the transport and the detected mode
    2. Command execution and file transfer for scripted operations
    3. The interactive bridge for live pass-through

    Example:
        >>> with Device(SerialPort("/dev/ttyUSB0")) as device:
        ...     device.list_files("/")
        ['boot.py', 'main.py']
    """

    def __init__(self, transport: TransportPort, detect: bool = True):
        """Initialize Device.

        Args:
            transport: Port to the board; owned by this device from now on
            detect: Query the device mode when the device is opened
        """
        self._session = Session(transport)
        self._executor = CommandExecutor(self._session)
        self._transfer = FileTransferCodec(self._session, self._executor)
        self._detect = detect

    @property
    def session(self) -> Session:
        return self._session

    @property
    def mode(self) -> DeviceMode:
        return self._session.mode

    def open(self) -> None:
        """Open the transport and fix the device mode."""
        self._session.open()
        if self._detect:
            try:
                self._session.detect_mode()
            except Exception:
                self._session.close()
                raise

    def close(self) -> None:
        self._session.close()

    # --- Scripted operations ---

    def exec(self, code: str) -> CommandResult:
        """Run a code snippet in the raw REPL."""
        return self._executor.execute(code)

    def run_file(self, path: Path) -> CommandResult:
        """Run a local script on the device.

        Raises:
            OSError: if the script cannot be read
        """
        return self._executor.execute(Path(path).read_text(encoding="utf-8"))

    def list_files(self, path: str = "/") -> List[str]:
        """List a directory on the device.

        MicroPython devices list through the raw REPL, upyOS devices through
        the shell's own ``ls``.
        """
        if self._session.mode is DeviceMode.SHELL:
            output = send_string(self._session, f"ls {path}")
            return [name for line in output.splitlines()[1:-1] for name in line.split()]
        return self._executor.list_files(path)

    def put_file(self, source: Path, dest: Optional[str] = None) -> TransferDescriptor:
        """Upload a file; ``dest`` defaults to the source's file name."""
        source = Path(source)
        if dest is None:
            dest = source.name or "file.py"
        return self._transfer.put(source, dest)

    def get_file(self, source: str, dest: Optional[Path] = None) -> TransferDescriptor:
        """Download a file; ``dest`` defaults to the source's file name."""
        if dest is None:
            dest = Path(PurePosixPath(source).name or "download.py")
        return self._transfer.get(source, dest)

    def send(self, data: str, timeout: Optional[float] = None) -> str:
        """Send a line and collect the reply (any mode)."""
        return send_string(self._session, data, timeout)

    # --- Resets ---

    def soft_reset(self) -> None:
        """Ctrl-D soft reset of the interpreter."""
        with self._session.exclusive() as transport:
            transport.write(c.CTRL_D)
            time.sleep(c.SOFT_RESET_SETTLE)
        logger.info("Soft reset performed")

    def hard_reset(self) -> None:
        """Pulse DTR/RTS to reset boards wired like the ESP32 dev kits."""
        with self._session.exclusive() as transport:
            logger.info("Performing hard reset (DTR/RTS)...")
            transport.set_dtr(True)
            transport.set_rts(False)
            time.sleep(c.HARD_RESET_PULSE)
            transport.set_dtr(False)
            transport.set_rts(True)
            time.sleep(c.HARD_RESET_PULSE)
            transport.set_rts(False)
            time.sleep(c.HARD_RESET_SETTLE)
        logger.info("Hard reset performed")

    # --- Live pass-through ---

    def connect(self, bridge: Optional[InteractiveBridge] = None) -> None:
        """Open the interactive REPL bridge. Works with either dialect."""
        if self._session.mode_detected and self._session.mode is DeviceMode.UNKNOWN:
            logger.warning("Device mode is unknown; bridging raw bytes anyway")
        (bridge or InteractiveBridge(self._session)).run()

    def __enter__(self) -> Device:
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
