"""SIGINT/SIGTERM handling for the orchestration run loop."""

from __future__ import annotations

import signal
import threading
from contextlib import AbstractContextManager
from types import FrameType
from typing import Any, Callable, Optional

from sto_common.errors import RunInterrupted

EXIT_CODES = {
    signal.SIGINT: 130,
    signal.SIGTERM: 143,
}


def exit_code_for_signal(signum: int) -> int:
    return EXIT_CODES.get(signum, 128 + int(signum))


class TerminationSignalHandler(AbstractContextManager["TerminationSignalHandler"]):
    """Turn SIGINT/SIGTERM into a RunInterrupted exception inside the run loop.

    The exception unwinds whatever the main thread is blocked on (typically a
    child process wait) so the caller can finalize state and pick the exit code.
    """

    def __init__(self, on_signal: Optional[Callable[[int], None]] = None) -> None:
        self._on_signal = on_signal
        self._prev_handlers: dict[int, Any] = {}
        self.received: int | None = None

    def __enter__(self) -> "TerminationSignalHandler":
        if threading.current_thread() is not threading.main_thread():
            return self
        for sig in EXIT_CODES:
            self._prev_handlers[sig] = signal.getsignal(sig)
            signal.signal(sig, self._handle_signal)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        for sig, handler in self._prev_handlers.items():
            signal.signal(sig, handler)
        self._prev_handlers.clear()

    def _handle_signal(self, signum: int, frame: FrameType | None) -> None:
        if self.received is not None:
            # Already unwinding; ignore repeated presses.
            return
        self.received = signum
        if self._on_signal is not None:
            self._on_signal(signum)
        raise RunInterrupted(signum, exit_code_for_signal(signum))
