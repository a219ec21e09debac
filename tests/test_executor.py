"""Unit tests for CommandExecutor and raw REPL output parsing."""

import unittest
from unittest.mock import patch

from upyremote.errors import ModeMismatch, RemoteError
from upyremote.models import DeviceMode
from upyremote.protocol import constants
from upyremote.protocol.executor import CommandExecutor, parse_output
from upyremote.protocol.raw_repl import RawReplSession

from fake_device import FakeTransport, detected_session, raw_repl_device


class TestParseOutput(unittest.TestCase):
    """Extraction of the normal output segment."""

    def test_normal_segment(self):
        result = parse_output("OKhello\r\n\x04\x04>")

        self.assertEqual(result.output, "hello")
        self.assertTrue(result.framed)

    def test_exception_segment_kept_in_raw(self):
        """Only the normal output is returned; the traceback stays in raw."""
        raw = "OK\x04Traceback (most recent call last):\r\nNameError: x\r\n\x04>"
        result = parse_output(raw)

        self.assertEqual(result.output, "")
        self.assertIn("NameError", result.raw)

    def test_missing_token_falls_back_to_full_text(self):
        result = parse_output("garbage\x04>")

        self.assertEqual(result.output, "garbage\x04>")
        self.assertFalse(result.framed)

    def test_missing_terminator_falls_back_to_full_text(self):
        result = parse_output("OKpartial", completed=False)

        self.assertEqual(result.output, "OKpartial")
        self.assertFalse(result.framed)
        self.assertFalse(result.completed)

    def test_first_terminator_after_token(self):
        """A terminator before the token does not end the segment."""
        result = parse_output("\x04junkOKvalue\x04\x04>")

        self.assertEqual(result.output, "value")


class ExecutorTestCase(unittest.TestCase):

    def setUp(self):
        patcher = patch("upyremote.protocol.raw_repl.time")
        patcher.start()
        self.addCleanup(patcher.stop)

        banner_patcher = patch.object(constants, "BANNER_TIMEOUT", 0.05)
        banner_patcher.start()
        self.addCleanup(banner_patcher.stop)

    def make_executor(self, transport, mode=DeviceMode.INTERPRETER_RAW, exec_timeout=5.0):
        session = detected_session(transport, mode)
        return CommandExecutor(session, RawReplSession(session, exec_timeout=exec_timeout))


class TestExecute(ExecutorTestCase):
    """Command round trips."""

    def test_output_after_success_token(self):
        """print('OK') output is separated from the protocol's own OK."""
        transport = raw_repl_device().on(b"\x04", b"OKhello\x04\x04>")
        executor = self.make_executor(transport)

        result = executor.execute("print('OK')")

        self.assertEqual(result.output, "hello")
        self.assertTrue(result.completed)

    def test_unicode_output(self):
        transport = raw_repl_device().on(b"\x04", "OKgrüße\r\n\x04\x04>".encode("utf-8"))
        executor = self.make_executor(transport)

        self.assertEqual(executor.execute("print('grüße')").output, "grüße")

    def test_timeout_returns_partial_output(self):
        """A command that never finishes returns what arrived, unframed."""
        transport = raw_repl_device().on(b"\x04", b"OKstill running")
        executor = self.make_executor(transport, exec_timeout=0.05)

        result = executor.execute("while True: print('still running')")

        self.assertFalse(result.completed)
        self.assertFalse(result.framed)
        self.assertIn("still running", result.output)
        self.assertEqual(transport.writes[-1], b"\x02")

    def test_shell_device_rejected(self):
        transport = FakeTransport()
        executor = self.make_executor(transport, mode=DeviceMode.SHELL)

        with self.assertRaises(ModeMismatch) as ctx:
            executor.execute("print(1)")

        self.assertEqual(ctx.exception.operation, "exec")
        self.assertEqual(transport.writes, [])


class TestListFiles(ExecutorTestCase):
    """Directory listing."""

    def test_names(self):
        transport = raw_repl_device().on(b"\x04", b"OKboot.py\r\nmain.py\r\nlib\r\n\x04\x04>")
        executor = self.make_executor(transport)

        self.assertEqual(executor.list_files("/"), ["boot.py", "main.py", "lib"])

    def test_path_is_quoted_in_program(self):
        transport = raw_repl_device().on(b"\x04", b"OK\x04\x04>")
        executor = self.make_executor(transport)

        executor.list_files("/lib")

        self.assertIn(b"os.listdir('/lib')", transport.sent)

    def test_empty_directory(self):
        transport = raw_repl_device().on(b"\x04", b"OK\r\n\x04\x04>")
        executor = self.make_executor(transport)

        self.assertEqual(executor.list_files("/empty"), [])

    def test_device_error(self):
        transport = raw_repl_device().on(
            b"\x04", b"OKError: [Errno 2] ENOENT\r\n\x04\x04>")
        executor = self.make_executor(transport)

        with self.assertRaises(RemoteError) as ctx:
            executor.list_files("/missing")

        self.assertIn("ENOENT", str(ctx.exception))


if __name__ == '__main__':
    unittest.main()
