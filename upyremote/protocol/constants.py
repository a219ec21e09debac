"""Wire-level constants for the MicroPython raw REPL and the upyOS shell.

Timings are in seconds and were tuned against real device latency.
"""

# Control bytes
CTRL_A = b"\x01"  # enter raw REPL
CTRL_B = b"\x02"  # exit raw REPL
CTRL_C = b"\x03"  # interrupt
CTRL_D = b"\x04"  # execute / EOF / soft reset

INTERRUPT = CTRL_C * 2
LINE_TERMINATOR = b"\r"

# MicroPython
PRIMARY_PROMPT = b">>>"
RAW_BANNER_MARKERS = ("raw REPL", "CTRL-B")
SUCCESS_TOKEN = "OK"
RESULT_TERMINATOR = CTRL_D + b">"

# upyOS shell
SHELL_PROMPT_MARKER = "/ $:"
SHELL_PROMPT_SUFFIX = "$:"
SHELL_PROMPT = b" $: "
SHELL_LINE_PROMPT = b">"
SHELL_QUERY_COMMAND = "echo upyOS"
SHELL_QUERY_REPLY = "upyOS"
SHELL_UPLOAD_COMMAND = "upload"
SHELL_CAT_COMMAND = "cat"
PROTECTED_FILE_ERROR = "cannot overwrite protected file"

# Raw REPL timings
INTERRUPT_SETTLE = 0.2
ENTER_SETTLE = 0.2
BANNER_TIMEOUT = 1.0
ENTER_RETRY_SETTLE = 0.5
EXEC_TIMEOUT = 5.0
EXIT_SETTLE = 0.2

# Code upload pacing
CODE_CHUNK_SIZE = 256
CODE_CHUNK_DELAY = 0.05

# Mode detection windows
DETECT_WINDOW = 1.0
QUERY_WINDOW = 0.5

# send_string
DEFAULT_SEND_TIMEOUT = 30.0
SEND_GRACE = 0.1

# Shell transfer
SHELL_MAX_UPLOAD = 20 * 1024
SHELL_ACK_TIMEOUT = 2.0
SHELL_LINE_TIMEOUT = 0.5
SHELL_DONE_TIMEOUT = 5.0

# Raw transfer
LARGE_FILE_THRESHOLD = 10000

# Resets
SOFT_RESET_SETTLE = 1.0
HARD_RESET_PULSE = 0.1
HARD_RESET_SETTLE = 1.0

POLL_INTERVAL = 0.01


def has_shell_prompt(text: str) -> bool:
    """Whether ``text`` shows the upyOS prompt."""
    return SHELL_PROMPT_MARKER in text or text.rstrip().endswith(SHELL_PROMPT_SUFFIX)
