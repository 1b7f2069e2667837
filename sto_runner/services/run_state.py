"""Run state JSON file consumed by dashboards and the stop tool."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from pydantic import ValidationError

from sto_common.errors import PersistenceError
from sto_common.persistence import PersistOutcome, read_json, remove_file, write_json
from sto_runner.models.state import RunState

logger = logging.getLogger(__name__)


class RunStateStore:
    """Single-writer store for the run state document.

    Patches merge over the current document and never drop existing keys.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> dict[str, Any]:
        """Return the raw document; missing or unparsable files read as {}."""
        try:
            data = read_json(self.path)
        except FileNotFoundError:
            return {}
        except PersistenceError as exc:
            logger.debug("Treating unreadable run state as empty: %s", exc)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> RunState | None:
        """Return the parsed run state, or None when absent or invalid."""
        data = self.read()
        if not data:
            return None
        try:
            return RunState.model_validate(data)
        except ValidationError:
            logger.debug("Run state at %s does not match the schema", self.path)
            return None

    def write_initial(self, state: RunState) -> PersistOutcome:
        outcome = write_json(self.path, state.to_document())
        outcome.log_if_failed(logger)
        return outcome

    def patch(self, partial: Mapping[str, Any]) -> PersistOutcome:
        merged = self.read()
        merged.update(partial)
        outcome = write_json(self.path, merged)
        outcome.log_if_failed(logger)
        return outcome

    def clear(self) -> PersistOutcome:
        outcome = remove_file(self.path)
        outcome.log_if_failed(logger)
        return outcome
