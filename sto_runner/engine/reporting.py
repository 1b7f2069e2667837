"""Callbacks the run loop uses to surface progress to a user interface."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from sto_runner.engine.orchestrator import RunOutcome
    from sto_runner.models.step import Step
    from sto_selection.selector import SelectionResult


class RunReporter(Protocol):
    def selection_made(self, selection: "SelectionResult") -> None: ...

    def step_started(self, index: int, total: int, step: "Step") -> None: ...

    def step_finished(self, index: int, total: int, step: "Step", duration: float) -> None: ...

    def run_finished(self, outcome: "RunOutcome") -> None: ...


class NullReporter:
    """Reporter that discards all output."""

    def selection_made(self, selection: "SelectionResult") -> None:
        pass

    def step_started(self, index: int, total: int, step: "Step") -> None:
        pass

    def step_finished(self, index: int, total: int, step: "Step", duration: float) -> None:
        pass

    def run_finished(self, outcome: "RunOutcome") -> None:
        pass
