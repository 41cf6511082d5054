"""Signal handling for the treecopy CLI.

SIGINT asks a running backup to stop before the next file; files already copied
stay in place. SIGPIPE marks the log stream as closed.
"""

import atexit
import os
import signal
import sys
from threading import Event
from types import FrameType
from typing import Optional


class SignalHandler:
    """Records interruption signals as events.

    The ``sigint_received`` event doubles as the cancellation event handed to the copy
    executor. After the first signal of each kind the original handler is restored, so
    a second Ctrl+C terminates the process immediately.

    Attributes:
        sigpipe_received: Set when a SIGPIPE signal is received.
        sigint_received: Set when a SIGINT signal is received.
        original_sigpipe_handler: Handler that was installed for SIGPIPE before setup.
        original_sigint_handler: Handler that was installed for SIGINT before setup.
    """

    def __init__(self) -> None:
        self.sigpipe_received = Event()
        self.sigint_received = Event()
        self.original_sigpipe_handler = signal.getsignal(signal.SIGPIPE)
        self.original_sigint_handler = signal.getsignal(signal.SIGINT)

    def handle_sigpipe(self, signum: int, frame: Optional[FrameType]) -> None:
        self.sigpipe_received.set()
        signal.signal(signal.SIGPIPE, self.original_sigpipe_handler)

    def handle_sigint(self, signum: int, frame: Optional[FrameType]) -> None:
        self.sigint_received.set()
        signal.signal(signal.SIGINT, self.original_sigint_handler)


# Process-wide instance owned by the CLI
signal_handler = SignalHandler()


def setup_signal_handling() -> None:
    """Install the SIGPIPE and SIGINT handlers."""
    signal.signal(signal.SIGPIPE, signal_handler.handle_sigpipe)
    signal.signal(signal.SIGINT, signal_handler.handle_sigint)


def cleanup() -> None:
    """Silence stdout at exit after a broken pipe, so shutdown does not print tracebacks."""
    if signal_handler.sigpipe_received.is_set():
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())


atexit.register(cleanup)
