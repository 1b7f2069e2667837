"""Best-effort JSON file helpers shared by the orchestration state stores."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sto_common.errors import PersistenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersistOutcome:
    """Result of a best-effort write; failures are reported, never raised."""

    ok: bool
    path: Path
    error: PersistenceError | None = None

    def log_if_failed(self, log: logging.Logger | None = None) -> None:
        """Emit a warning for a failed write."""
        if self.ok:
            return
        (log or logger).warning("Could not persist %s: %s", self.path, self.error)


def read_json(path: Path) -> Any:
    """Return the parsed JSON document at ``path``; raise PersistenceError."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise
    except (OSError, ValueError) as exc:
        raise PersistenceError(
            "Failed to read JSON file", context={"path": path}, cause=exc
        ) from exc


def write_json(path: Path, payload: Any) -> PersistOutcome:
    """Write ``payload`` via a sibling temp file and an atomic rename."""
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        os.replace(tmp_path, path)
    except (OSError, TypeError, ValueError) as exc:
        return PersistOutcome(
            ok=False,
            path=path,
            error=PersistenceError(
                "Failed to write JSON file", context={"path": path}, cause=exc
            ),
        )
    return PersistOutcome(ok=True, path=path)


def remove_file(path: Path) -> PersistOutcome:
    """Delete ``path``; a missing file counts as success."""
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        return PersistOutcome(
            ok=False,
            path=path,
            error=PersistenceError(
                "Failed to remove file", context={"path": path}, cause=exc
            ),
        )
    return PersistOutcome(ok=True, path=path)
