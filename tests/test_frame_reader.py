"""Unit tests for FrameReader."""

import time
import unittest
from unittest.mock import MagicMock, patch

from upyremote.errors import TransportError, TransportTimeout
from upyremote.transport.buffer import FrameReader

from fake_device import FakeTransport


class TestReadUntil(unittest.TestCase):
    """Needle search across reads."""

    def test_needle_in_single_read(self):
        """Needle inside one chunk is found."""
        transport = FakeTransport().feed(b"abc OK def")
        reader = FrameReader(transport)

        self.assertTrue(reader.read_until(b"OK", 1.0))
        self.assertEqual(reader.data, b"abc OK def")

    def test_needle_split_across_reads(self):
        """'O' then 'K' in consecutive reads is still found."""
        transport = FakeTransport().feed(b"O", b"K")
        reader = FrameReader(transport)

        start = time.monotonic()
        self.assertTrue(reader.read_until(b"OK", 2.0))
        self.assertLess(time.monotonic() - start, 1.0)
        self.assertEqual(reader.data, b"OK")

    def test_timeout_returns_false(self):
        """Missing needle reports False once the budget is spent."""
        transport = FakeTransport().feed(b"nothing here")
        reader = FrameReader(transport)

        start = time.monotonic()
        self.assertFalse(reader.read_until(b"OK", 0.05))
        self.assertGreaterEqual(time.monotonic() - start, 0.05)
        self.assertEqual(reader.data, b"nothing here")

    def test_cumulative_buffer(self):
        """A second wait still sees bytes from the first."""
        transport = FakeTransport().feed(b"first>", b"second")
        reader = FrameReader(transport)

        self.assertTrue(reader.read_until(b">", 1.0))
        self.assertTrue(reader.read_until(b"first>second", 1.0))

    def test_timeout_error_is_retried(self):
        """TransportTimeout sleeps briefly and polls again."""
        transport = MagicMock()
        transport.read.side_effect = [TransportTimeout(), b"O", TransportTimeout(), b"K"]
        reader = FrameReader(transport)

        with patch("upyremote.transport.buffer.time.sleep") as mock_sleep:
            self.assertTrue(reader.read_until(b"OK", 5.0))

        self.assertEqual(mock_sleep.call_count, 2)

    def test_fatal_error_propagates(self):
        """Any other transport error ends the wait immediately."""
        transport = MagicMock()
        transport.read.side_effect = TransportError("unplugged")
        reader = FrameReader(transport)

        with self.assertRaises(TransportError):
            reader.read_until(b"OK", 5.0)


class TestBufferAccess(unittest.TestCase):

    def test_text_replaces_invalid_utf8(self):
        transport = FakeTransport().feed(b"ok \xff")
        reader = FrameReader(transport)
        reader.read_available()

        self.assertEqual(reader.text(), "ok \ufffd")

    def test_clear(self):
        transport = FakeTransport().feed(b"data")
        reader = FrameReader(transport)
        reader.read_available()
        reader.clear()

        self.assertEqual(reader.size, 0)

    def test_collect_reads_for_window(self):
        """collect() gathers every chunk that arrives in the window."""
        transport = FakeTransport().feed(b"a", b"b", b"c")
        reader = FrameReader(transport)

        self.assertEqual(reader.collect(0.05), b"abc")


if __name__ == '__main__':
    unittest.main()
