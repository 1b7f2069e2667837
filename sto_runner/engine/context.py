"""RunContext: the owned, per-run accumulator threaded through the run loop."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sto_runner.models.state import RunState, state_patch
from sto_runner.models.step import Step
from sto_selection.selector import SelectionResult


@dataclass
class RunContext:
    """Progress of a single orchestration run."""

    selection: SelectionResult
    pid: int = field(default_factory=os.getpid)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    started_monotonic: float = field(default_factory=time.monotonic)
    completed: list[str] = field(default_factory=list)
    last_started: str | None = None
    failed_step: Step | None = None
    error_message: str | None = None

    @property
    def steps(self) -> tuple[Step, ...]:
        return self.selection.steps

    @property
    def step_names(self) -> list[str]:
        return [step.name for step in self.steps]

    @property
    def remaining(self) -> list[str]:
        # Steps complete strictly in order, so completed is always a prefix.
        return self.step_names[len(self.completed):]

    @property
    def elapsed_seconds(self) -> float:
        return time.monotonic() - self.started_monotonic

    def initial_state(self) -> RunState:
        info = self.selection.info
        return RunState(
            pid=self.pid,
            started_at=self.started_at.isoformat(),
            mode=info.mode.value,
            total_available_steps=info.total_steps,
            selected_steps_count=info.selected_count,
            step_names=self.step_names,
        )

    def mark_started(self, step: Step) -> dict[str, Any]:
        self.last_started = step.name
        return state_patch(last_started_step_name=step.name)

    def mark_completed(self, step: Step) -> dict[str, Any]:
        self.completed.append(step.name)
        return state_patch(completed_step_names=list(self.completed))

    def mark_finished(self) -> dict[str, Any]:
        return state_patch(finished=True)

    def mark_failed(self, message: str, step: Step | None = None) -> dict[str, Any]:
        self.failed_step = step
        self.error_message = message
        return state_patch(finished=True, failed=True, error_message=message)

    def mark_cancelled(self, message: str | None = None) -> dict[str, Any]:
        self.error_message = message
        return state_patch(finished=True, cancelled=True, error_message=message)
