"""Persistence of the spec that failed the previous run."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from sto_common.errors import PersistenceError
from sto_common.persistence import PersistOutcome, read_json, write_json

logger = logging.getLogger(__name__)


class LastFailedTracker:
    """Load and save the ordered, deduplicated list of last-failed specs."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> list[str]:
        """Return the persisted specs, or an empty list on any error."""
        try:
            data = read_json(self.path)
        except FileNotFoundError:
            return []
        except PersistenceError as exc:
            logger.debug("Ignoring unreadable last-failed file %s: %s", self.path, exc)
            return []
        if not isinstance(data, list):
            logger.debug("Ignoring malformed last-failed file %s", self.path)
            return []
        return _dedupe(item for item in data if isinstance(item, str) and item)

    def save(self, spec_paths: Iterable[str]) -> PersistOutcome:
        """Overwrite the list; failures are logged and returned, never raised."""
        outcome = write_json(self.path, _dedupe(spec_paths))
        outcome.log_if_failed(logger)
        return outcome

    def clear(self) -> PersistOutcome:
        return self.save([])


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered
