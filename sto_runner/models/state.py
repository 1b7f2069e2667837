"""Run state schema shared with external readers (dashboards, stop tool)."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RunState(BaseModel):
    """Machine-readable progress of an orchestration run.

    Serialized with camelCase keys; the on-disk document is the contract
    consumed by tooling outside this package.
    """

    pid: int = Field(description="Process id of the orchestrator")
    started_at: str = Field(description="ISO-8601 UTC start timestamp")
    mode: str = Field(description="Selection mode of the run")
    total_available_steps: int = Field(ge=0)
    selected_steps_count: int = Field(ge=0)
    step_names: List[str] = Field(default_factory=list)
    completed_step_names: List[str] = Field(default_factory=list)
    last_started_step_name: Optional[str] = None
    finished: bool = False
    cancelled: bool = False
    failed: bool = False
    error_message: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    @property
    def remaining_step_names(self) -> list[str]:
        return self.step_names[len(self.completed_step_names):]


def state_patch(**fields: Any) -> dict[str, Any]:
    """Build a partial run-state document from snake_case field names."""
    unknown = set(fields) - set(RunState.model_fields)
    if unknown:
        raise KeyError(f"Unknown run state fields: {sorted(unknown)}")
    return {to_camel(key): value for key, value in fields.items()}
