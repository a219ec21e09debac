"""Generic send-and-collect for callers that do not use raw REPL framing."""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Optional

from ..transport.buffer import FrameReader
from . import constants as c

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)

PROMPTS = (c.SHELL_PROMPT, c.PRIMARY_PROMPT)


def send_string(session: Session, text: str, timeout: Optional[float] = None) -> str:
    """Send a line of text and collect the device's reply.

    With ``timeout`` unset the reply ends at the first prompt of either
    dialect, or after DEFAULT_SEND_TIMEOUT. With an explicit ``timeout`` the
    reply ends when the budget runs out or when the line goes quiet after the
    first bytes arrived.

    Args:
        session: Session owning the transport
        text: Text to send; a line terminator is added when missing
        timeout: Seconds to collect for, or None to wait for a prompt

    Returns:
        The captured reply, decoded as UTF-8.
    """
    wait_for_prompt = timeout is None
    budget = c.DEFAULT_SEND_TIMEOUT if timeout is None else timeout

    with session.exclusive() as transport:
        transport.reset_input()
        transport.write(text.encode("utf-8"))
        if not text.endswith(("\n", "\r")):
            transport.write(c.LINE_TERMINATOR)

        reader = FrameReader(transport)
        start = time.monotonic()

        while time.monotonic() - start < budget:
            if reader.read_available():
                if wait_for_prompt and any(p in reader.data for p in PROMPTS):
                    time.sleep(c.SEND_GRACE)
                    reader.read_available()
                    break
                continue

            if reader.size and not wait_for_prompt:
                time.sleep(c.SEND_GRACE)
                if reader.read_available():
                    continue
                break

            time.sleep(c.POLL_INTERVAL)
        else:
            logger.debug(f"send_string stopped after {budget}s")

    return reader.text()
