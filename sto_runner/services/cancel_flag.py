"""Cancel flag file written by the stop tool and honoured between steps."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from sto_common.persistence import PersistOutcome, remove_file, write_json

logger = logging.getLogger(__name__)


class CancelFlag:
    """Presence of the file means a cancellation was requested."""

    def __init__(self, path: Path, clock: Callable[[], float] = time.time) -> None:
        self.path = path
        self._clock = clock

    def is_set(self) -> bool:
        try:
            return self.path.exists()
        except OSError:
            return False

    def request(self) -> PersistOutcome:
        """Write the flag with an epoch-millis timestamp."""
        payload = {"cancelRequestedAt": int(self._clock() * 1000)}
        outcome = write_json(self.path, payload)
        outcome.log_if_failed(logger)
        return outcome

    def clear(self) -> PersistOutcome:
        outcome = remove_file(self.path)
        outcome.log_if_failed(logger)
        return outcome
