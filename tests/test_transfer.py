"""Unit tests for file transfer strategies."""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from upyremote.errors import (
    EncodingError,
    ModeMismatch,
    ProtectedFileError,
    ProtocolTimeout,
    RemoteError,
    TransferTooLarge,
)
from upyremote.models import DeviceMode, TransferMethod
from upyremote.protocol import codec, constants
from upyremote.protocol.executor import CommandExecutor
from upyremote.protocol.raw_repl import RawReplSession
from upyremote.protocol.transfer import (
    FileTransferCodec,
    RawReplTransfer,
    ShellTransfer,
    method_for_mode,
)

from fake_device import FakeTransport, detected_session, raw_repl_device


class TransferTestCase(unittest.TestCase):

    def setUp(self):
        patcher = patch("upyremote.protocol.raw_repl.time")
        patcher.start()
        self.addCleanup(patcher.stop)

        for name, value in (("BANNER_TIMEOUT", 0.05),
                            ("SHELL_ACK_TIMEOUT", 0.05),
                            ("SHELL_LINE_TIMEOUT", 0.05),
                            ("SHELL_DONE_TIMEOUT", 0.05)):
            const_patcher = patch.object(constants, name, value)
            const_patcher.start()
            self.addCleanup(const_patcher.stop)

        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.tmp = Path(tmp.name)


class TestMethodForMode(unittest.TestCase):

    def test_every_mode_has_a_method(self):
        self.assertEqual(method_for_mode(DeviceMode.INTERPRETER_RAW), TransferMethod.RAW_REPL)
        self.assertEqual(method_for_mode(DeviceMode.SHELL), TransferMethod.SHELL)
        self.assertEqual(method_for_mode(DeviceMode.UNKNOWN), TransferMethod.RAW_REPL)


class TestRawReplTransfer(TransferTestCase):
    """Base64 transfer through raw REPL programs."""

    def make_transfer(self, transport):
        session = detected_session(transport, DeviceMode.INTERPRETER_RAW)
        return RawReplTransfer(CommandExecutor(session))

    def test_push_sends_base64_program(self):
        transport = raw_repl_device().on(b"\x04", b"OKOK\r\n\x04\x04>")
        transfer = self.make_transfer(transport)

        transfer.push(b"print('hi')\n", "/main.py")

        self.assertIn(codec.encode(b"print('hi')\n").encode(), transport.sent)
        self.assertIn(b"open('/main.py', 'wb')", transport.sent)

    def test_large_push_is_a_single_command(self):
        """Content over the large file threshold still goes in one execute."""
        transport = raw_repl_device().on(b"\x04", b"OKOK\r\n\x04\x04>")
        transfer = self.make_transfer(transport)

        with self.assertLogs("upyremote.protocol.transfer", level="INFO"):
            transfer.push(bytes(range(256)) * 48, "/big.bin")

        self.assertEqual(transport.writes.count(b"\x04"), 1)
        self.assertEqual(transport.writes.count(b"\x01"), 1)

    def test_push_without_ok_fails(self):
        transport = raw_repl_device().on(
            b"\x04", b"OK\x04Traceback (most recent call last):\r\nOSError: 28\r\n\x04>")
        transfer = self.make_transfer(transport)

        with self.assertRaises(RemoteError) as ctx:
            transfer.push(b"data", "/full.txt")

        self.assertIn("OSError: 28", ctx.exception.detail)

    def test_push_without_terminator_fails(self):
        """A bare acknowledgement with no result terminator is not an upload."""
        transport = raw_repl_device().on(b"\x04", b"OK")
        session = detected_session(transport, DeviceMode.INTERPRETER_RAW)
        executor = CommandExecutor(session, RawReplSession(session, exec_timeout=0.05))
        transfer = RawReplTransfer(executor)

        with self.assertRaises(RemoteError) as ctx:
            transfer.push(b"data", "/x.txt")

        self.assertIn("did not finish", str(ctx.exception))
        self.assertEqual(transport.writes[-1], b"\x02")

    def test_pull_decodes_payload(self):
        transport = raw_repl_device().on(b"\x04", b"OKaGVsbG8=\r\n\x04\x04>")
        transfer = self.make_transfer(transport)

        self.assertEqual(transfer.pull("/hello.txt"), b"hello")

    def test_pull_keeps_lines_containing_ok(self):
        """Payload characters that spell OK are data, not framing."""
        transport = raw_repl_device().on(b"\x04", b"OKOKOK\r\n\x04\x04>")
        transfer = self.make_transfer(transport)

        self.assertEqual(transfer.pull("/ok.bin"), codec.decode("OKOK"))

    def test_pull_empty_file(self):
        transport = raw_repl_device().on(b"\x04", b"OK\r\n\x04\x04>")
        transfer = self.make_transfer(transport)

        self.assertEqual(transfer.pull("/empty.txt"), b"")

    def test_pull_missing_file(self):
        transport = raw_repl_device().on(b"\x04", b"OKError: [Errno 2] ENOENT\r\n\x04\x04>")
        transfer = self.make_transfer(transport)

        with self.assertRaises(RemoteError):
            transfer.pull("/missing.txt")

    def test_pull_unframed_reply(self):
        transport = raw_repl_device()
        session = detected_session(transport, DeviceMode.INTERPRETER_RAW)
        executor = CommandExecutor(session, RawReplSession(session, exec_timeout=0.05))
        transfer = RawReplTransfer(executor)

        with self.assertRaises(RemoteError):
            transfer.pull("/slow.txt")


class TestShellTransfer(TransferTestCase):
    """Line-by-line transfer through the upyOS shell."""

    def shell_device(self, path="/main.py"):
        return FakeTransport().on(f"upload {path}\r".encode(), f"upload {path}\r\n".encode(), b">")

    def test_push_writes_lines(self):
        transport = (self.shell_device()
                     .on(b"a = 1\r", b"a = 1\r\n>")
                     .on(b"b = 2\r", b"b = 2\r\n>")
                     .on(b"\x04", b"\r\n/ $: "))
        session = detected_session(transport, DeviceMode.SHELL)

        ShellTransfer(session).push(b"a = 1\nb = 2\n", "/main.py")

        self.assertEqual(transport.writes, [b"upload /main.py\r", b"a = 1\r", b"b = 2\r", b"\x04"])

    def test_push_too_large(self):
        transport = FakeTransport()
        session = detected_session(transport, DeviceMode.SHELL)

        with self.assertRaises(TransferTooLarge) as ctx:
            ShellTransfer(session).push(b"x" * (20 * 1024 + 1), "/big.py")

        self.assertEqual(ctx.exception.limit, 20480)
        self.assertEqual(transport.writes, [])

    def test_push_at_limit_allowed(self):
        transport = self.shell_device("/full.py").on(b"\x04", b"/ $: ")
        session = detected_session(transport, DeviceMode.SHELL)

        ShellTransfer(session, max_upload=10).push(b"x" * 10, "/full.py")

        self.assertEqual(transport.writes[-1], b"\x04")

    def test_push_non_utf8(self):
        transport = FakeTransport()
        session = detected_session(transport, DeviceMode.SHELL)

        with self.assertRaises(EncodingError):
            ShellTransfer(session).push(b"\xff\xfe", "/bin.dat")

        self.assertEqual(transport.writes, [])

    def test_push_protected_file(self):
        transport = FakeTransport().on(
            b"upload /boot.py\r", b"Error: Cannot overwrite protected file\r\n/ $: ")
        session = detected_session(transport, DeviceMode.SHELL)

        with self.assertRaises(ProtectedFileError) as ctx:
            ShellTransfer(session).push(b"x = 1\n", "/boot.py")

        self.assertEqual(ctx.exception.detail, "Error: Cannot overwrite protected file")
        self.assertEqual(transport.writes, [b"upload /boot.py\r"])

    def test_push_protected_after_content(self):
        transport = self.shell_device("/boot.py").on(
            b"\x04", b"cannot overwrite protected file\r\n/ $: ")
        session = detected_session(transport, DeviceMode.SHELL)

        with self.assertRaises(ProtectedFileError):
            ShellTransfer(session).push(b"x = 1\n", "/boot.py")

    def test_push_without_ack(self):
        transport = FakeTransport()
        session = detected_session(transport, DeviceMode.SHELL)

        with self.assertRaises(ProtocolTimeout):
            ShellTransfer(session).push(b"x = 1\n", "/main.py")

    def test_pull_strips_echo_and_prompt(self):
        transport = FakeTransport().on(b"\r", b"cat /main.py\r\nprint(1)\r\nprint(2)\r\n/ $: ")
        session = detected_session(transport, DeviceMode.SHELL)

        content = ShellTransfer(session).pull("/main.py")

        self.assertEqual(content, b"print(1)\r\nprint(2)\r\n")
        self.assertEqual(transport.writes[0], b"cat /main.py")


class TestFileTransferCodec(TransferTestCase):
    """Strategy selection and local file handling."""

    def test_put_raw(self):
        local = self.tmp / "main.py"
        local.write_bytes(b"print('hi')\n")
        transport = raw_repl_device().on(b"\x04", b"OKOK\r\n\x04\x04>")
        session = detected_session(transport, DeviceMode.INTERPRETER_RAW)

        descriptor = FileTransferCodec(session).put(local, "/main.py")

        self.assertEqual(descriptor.method, TransferMethod.RAW_REPL)
        self.assertEqual(descriptor.size, 12)
        self.assertEqual(descriptor.remote_path, "/main.py")

    def test_get_shell(self):
        local = self.tmp / "out.py"
        transport = FakeTransport().on(b"\r", b"cat /out.py\r\nx = 1\n/ $: ")
        session = detected_session(transport, DeviceMode.SHELL)

        descriptor = FileTransferCodec(session).get("/out.py", local)

        self.assertEqual(descriptor.method, TransferMethod.SHELL)
        self.assertEqual(local.read_bytes(), b"x = 1\n")

    def test_unknown_mode_rejected_without_io(self):
        local = self.tmp / "main.py"
        local.write_bytes(b"x = 1\n")
        transport = FakeTransport()
        session = detected_session(transport, DeviceMode.UNKNOWN)

        with self.assertRaises(ModeMismatch):
            FileTransferCodec(session).put(local, "/main.py")

        self.assertEqual(transport.writes, [])

    def test_missing_local_file(self):
        transport = FakeTransport()
        session = detected_session(transport, DeviceMode.INTERPRETER_RAW)

        with self.assertRaises(OSError):
            FileTransferCodec(session).put(self.tmp / "nope.py", "/nope.py")

        self.assertEqual(transport.writes, [])


if __name__ == '__main__':
    unittest.main()
