"""Data models for the orchestration runner."""

from sto_runner.models.config import OrchestratorConfig
from sto_runner.models.state import RunState, state_patch
from sto_runner.models.step import Step, load_catalog_file

__all__ = ["OrchestratorConfig", "RunState", "Step", "load_catalog_file", "state_patch"]
