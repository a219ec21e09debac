"""Protocol layer: raw REPL framing, dialect detection and file transfer."""

from .detector import ModeDetector
from .raw_repl import RawReplSession, ReplState
from .executor import CommandExecutor, parse_output
from .send import send_string
from .transfer import (
    FileTransferCodec,
    RawReplTransfer,
    ShellTransfer,
    TransferStrategy,
    method_for_mode,
)

__all__ = [
    "ModeDetector",
    "RawReplSession",
    "ReplState",
    "CommandExecutor",
    "parse_output",
    "send_string",
    "FileTransferCodec",
    "RawReplTransfer",
    "ShellTransfer",
    "TransferStrategy",
    "method_for_mode",
]
