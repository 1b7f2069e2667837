"""Shared helpers for selective-test-orchestrator."""

from sto_common.api import PersistOutcome, STOError, configure_logging

__all__ = ["configure_logging", "PersistOutcome", "STOError"]
