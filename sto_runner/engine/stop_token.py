"""Stop token helpers for cooperative, between-step cancellation."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from sto_common.persistence import PersistOutcome

logger = logging.getLogger(__name__)


class CancelSource(Protocol):
    """Anything that can report and clear an external cancellation request."""

    def is_set(self) -> bool: ...

    def clear(self) -> PersistOutcome: ...


class StopToken:
    """
    Lightweight cooperative stop controller.

    It can be tripped programmatically via `request_stop()` or by an external
    cancel source (the cancel flag file). The run loop calls `should_stop()`
    before starting each step; nothing is preempted mid-step.
    """

    def __init__(
        self,
        source: Optional[CancelSource] = None,
        on_stop: Optional[Callable[[], None]] = None,
    ) -> None:
        self.source = source
        self._on_stop = on_stop
        self._stop_requested = False

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def request_stop(self) -> None:
        """Mark the token as stopped and trigger callback once."""
        if self._stop_requested:
            return
        self._stop_requested = True
        if self._on_stop:
            self._on_stop()

    def should_stop(self) -> bool:
        """Return True when stop was requested or the cancel source is set."""
        if self._stop_requested:
            return True
        if self.source is not None and self.source.is_set():
            self.request_stop()
            return True
        return False

    def acknowledge(self) -> None:
        """Consume the external request so the next run starts clean."""
        if self.source is None:
            return
        self.source.clear().log_if_failed(logger)

    def discard_stale(self) -> bool:
        """Remove a request left over from a previous run; True if one existed."""
        if self.source is None or not self.source.is_set():
            return False
        logger.warning("Removing stale cancel request left by a previous run")
        self.acknowledge()
        return True
