"""Command-line front end for upyremote."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .device import Device
from .errors import ModeMismatch, PortNotFoundError, UpyRemoteError
from .transport.finder import find_single_port
from .transport.serial import DEFAULT_BAUD, SerialPort

logger = logging.getLogger("upyremote")

FALLBACK_PORT = "/dev/ttyUSB0"


def default_port() -> str:
    """Port from $UPYREMOTE_PORT, else the only USB serial port, else ttyUSB0."""
    env_port = os.environ.get("UPYREMOTE_PORT")
    if env_port:
        return env_port
    try:
        return find_single_port().port
    except PortNotFoundError:
        return FALLBACK_PORT


def default_baud() -> int:
    return int(os.environ.get("UPYREMOTE_BAUD", DEFAULT_BAUD))


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-p", "--port", default=None,
                        help="Serial port (e.g. /dev/ttyUSB0 or COM3); auto-detected when omitted")
    common.add_argument("-b", "--baud", type=int, default=None,
                        help=f"Baud rate (default: {DEFAULT_BAUD})")
    common.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    ap = argparse.ArgumentParser(prog="upyremote",
                                 description="CLI tool for interacting with MicroPython and upyOS devices")
    ap.add_argument("--version", action="version", version=f"upyremote {__version__}")
    sub = ap.add_subparsers(dest="cmd", required=True)

    sub.add_parser("connect", parents=[common], help="Open an interactive REPL")

    p_ls = sub.add_parser("ls", parents=[common], help="List files on the device")
    p_ls.add_argument("path", nargs="?", default="/")

    p_put = sub.add_parser("put", parents=[common], help="Upload a file to the device")
    p_put.add_argument("source", type=Path)
    p_put.add_argument("dest", nargs="?")

    p_get = sub.add_parser("get", parents=[common], help="Download a file from the device")
    p_get.add_argument("source")
    p_get.add_argument("dest", nargs="?", type=Path)

    p_exec = sub.add_parser("exec", parents=[common], help="Execute a command on the device")
    p_exec.add_argument("command")

    p_reset = sub.add_parser("reset", parents=[common], help="Reset the device")
    p_reset.add_argument("-H", "--hard", action="store_true", help="Hard reset via DTR/RTS")

    p_run = sub.add_parser("run", parents=[common], help="Run a local Python file on the device")
    p_run.add_argument("file", type=Path)

    p_send = sub.add_parser("send", parents=[common], help="Send a string and print the reply")
    p_send.add_argument("data")
    p_send.add_argument("-t", "--timeout", type=float, default=None,
                        help="Seconds to collect the reply (default: until a prompt appears)")

    return ap


def dispatch(args: argparse.Namespace, device: Device) -> None:
    if args.cmd == "connect":
        device.connect()
    elif args.cmd == "ls":
        print(f"Files in '{args.path}'")
        for name in device.list_files(args.path):
            print(f"  {name}")
    elif args.cmd == "put":
        done = device.put_file(args.source, args.dest)
        print(f"File '{done.local_path}' uploaded to '{done.remote_path}' ({done.size} bytes)")
    elif args.cmd == "get":
        done = device.get_file(args.source, args.dest)
        print(f"File '{done.remote_path}' downloaded to '{done.local_path}' ({done.size} bytes)")
    elif args.cmd == "exec":
        print(device.exec(args.command).output)
    elif args.cmd == "reset":
        if args.hard:
            device.hard_reset()
        else:
            device.soft_reset()
    elif args.cmd == "run":
        print(device.run_file(args.file).output)
    elif args.cmd == "send":
        print(device.send(args.data, args.timeout), end="")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        port = args.port or default_port()
        baud = args.baud or default_baud()
        # A hard reset works on any board and must not talk to it first
        detect = not (args.cmd == "reset" and args.hard)

        with Device(SerialPort(port, baudrate=baud), detect=detect) as device:
            dispatch(args, device)
    except ModeMismatch as e:
        logger.error(str(e))
        return 2
    except UpyRemoteError as e:
        logger.error(str(e))
        return 1
    except OSError as e:
        logger.error(f"{e.strerror or e}: {e.filename}" if e.filename else str(e))
        return 1
    except KeyboardInterrupt:
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
