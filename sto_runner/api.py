"""Public API surface for sto_runner."""

from sto_runner.catalog import default_catalog, load_catalog
from sto_runner.engine.orchestrator import (
    EXIT_CANCELLED,
    EXIT_FAILURE,
    EXIT_SUCCESS,
    EXIT_TERMINATED,
    RunOutcome,
    RunStatus,
    TestOrchestrator,
)
from sto_runner.engine.process import ProcessRunner, StepResult
from sto_runner.engine.reporting import NullReporter, RunReporter
from sto_runner.engine.stop_token import StopToken
from sto_runner.models.config import OrchestratorConfig
from sto_runner.models.state import RunState
from sto_runner.models.step import Step
from sto_runner.services.cancel_flag import CancelFlag
from sto_runner.services.environment import EnvironmentLifecycle
from sto_runner.services.last_failed import LastFailedTracker
from sto_runner.services.run_state import RunStateStore
from sto_runner.stop import StopRequest, StopStatus, request_stop

__all__ = [
    "CancelFlag",
    "EXIT_CANCELLED",
    "EXIT_FAILURE",
    "EXIT_SUCCESS",
    "EXIT_TERMINATED",
    "EnvironmentLifecycle",
    "LastFailedTracker",
    "NullReporter",
    "OrchestratorConfig",
    "ProcessRunner",
    "RunOutcome",
    "RunReporter",
    "RunState",
    "RunStateStore",
    "RunStatus",
    "Step",
    "StepResult",
    "StopRequest",
    "StopStatus",
    "StopToken",
    "TestOrchestrator",
    "default_catalog",
    "load_catalog",
    "request_stop",
]
