"""Cooperative stop helper: ask an active run to stop after its current step."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from sto_runner.models.config import OrchestratorConfig
from sto_runner.services.cancel_flag import CancelFlag
from sto_runner.services.run_state import RunStateStore

logger = logging.getLogger(__name__)


class StopStatus(str, Enum):
    REQUESTED = "requested"
    NO_ACTIVE_RUN = "no_active_run"
    FAILED = "failed"


@dataclass(frozen=True)
class StopRequest:
    status: StopStatus
    message: str


def request_stop(config: OrchestratorConfig) -> StopRequest:
    """Write the cancel flag when a run is in progress.

    The orchestrator process is never signalled directly; it notices the flag
    before starting its next step.
    """
    store = RunStateStore(config.state_file)
    if not store.exists():
        return StopRequest(
            StopStatus.NO_ACTIVE_RUN,
            "No active test orchestration run found (no state file).",
        )
    state = store.load()
    if state is None or state.finished:
        return StopRequest(
            StopStatus.NO_ACTIVE_RUN,
            "No active test orchestration run found (last run already concluded).",
        )

    outcome = CancelFlag(config.cancel_file).request()
    if not outcome.ok:
        return StopRequest(
            StopStatus.FAILED, f"Failed to write cancel flag file: {outcome.error}"
        )
    logger.info("Cancel flag written to %s", config.cancel_file)
    return StopRequest(
        StopStatus.REQUESTED,
        "Cancel flag written. The orchestration will stop after the current step and print a summary.",
    )
