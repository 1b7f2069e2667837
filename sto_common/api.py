"""Public API surface for sto_common."""

from sto_common.errors import STOError
from sto_common.logging import configure_logging
from sto_common.persistence import PersistOutcome

__all__ = ["configure_logging", "PersistOutcome", "STOError"]
