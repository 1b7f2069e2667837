"""
Test orchestration run loop.

Loads the catalog, selects the steps worth running for the current change,
prepares the target service and runs the selected steps strictly in catalog
order, stopping at the first failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Sequence

from sto_common.errors import (
    RunInterrupted,
    ServiceUnavailableError,
    StepExecutionError,
)
from sto_runner.catalog import load_catalog
from sto_runner.engine.context import RunContext
from sto_runner.engine.interrupts import TerminationSignalHandler
from sto_runner.engine.process import ProcessRunner
from sto_runner.engine.reporting import NullReporter, RunReporter
from sto_runner.engine.stop_token import StopToken
from sto_runner.models.config import RETRY_LAST_FAILED_ENV, OrchestratorConfig
from sto_runner.models.step import Step
from sto_runner.services.cancel_flag import CancelFlag
from sto_runner.services.environment import EnvironmentLifecycle
from sto_runner.services.last_failed import LastFailedTracker
from sto_runner.services.run_state import RunStateStore
from sto_selection.changes import ChangeDetector
from sto_selection.selector import SelectionMode, SelectionResult, select_steps_for_run
from sto_selection.spec_index import get_spec_path_from_step

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 130
EXIT_TERMINATED = 143


class RunStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    INTERRUPTED = "interrupted"


@dataclass(frozen=True)
class RunOutcome:
    """Terminal result of an orchestration run."""

    status: RunStatus
    exit_code: int
    selection: SelectionResult
    completed: tuple[str, ...] = ()
    remaining: tuple[str, ...] = ()
    failed_step: str | None = None
    error_message: str | None = None
    duration_seconds: float = 0.0
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.status == RunStatus.PASSED


class TestOrchestrator:
    """Select, then run steps serially with fail-fast semantics."""

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        config: OrchestratorConfig,
        *,
        catalog: Sequence[Step] | None = None,
        change_detector: ChangeDetector | None = None,
        last_failed: LastFailedTracker | None = None,
        state_store: RunStateStore | None = None,
        stop_token: StopToken | None = None,
        environment: EnvironmentLifecycle | None = None,
        process_runner: ProcessRunner | None = None,
        reporter: RunReporter | None = None,
        handle_signals: bool = True,
        changed_files: Sequence[str] | None = None,
    ) -> None:
        self.config = config
        self._catalog = list(catalog) if catalog is not None else None
        self.change_detector = change_detector or ChangeDetector(
            config.project_root,
            config.base_ref,
            ignored_files=config.ignored_changed_files,
        )
        self.last_failed = last_failed or LastFailedTracker(config.last_failed_file)
        self.state_store = state_store or RunStateStore(config.state_file)
        self.stop_token = stop_token or StopToken(CancelFlag(config.cancel_file))
        self.environment = environment or EnvironmentLifecycle(config)
        self.process_runner = process_runner or ProcessRunner(
            runner_names=config.browser_runner_names,
            stop_grace_seconds=config.child_stop_grace_seconds,
        )
        self.reporter: RunReporter = reporter or NullReporter()
        self._handle_signals = handle_signals
        self._changed_files = list(changed_files) if changed_files is not None else None

    @property
    def catalog(self) -> list[Step]:
        if self._catalog is None:
            self._catalog = load_catalog(self.config)
        return self._catalog

    def detect_changes(self) -> list[str]:
        if self._changed_files is not None:
            return list(self._changed_files)
        if self.config.full_run:
            return []
        return self.change_detector.detect()

    def select(self) -> SelectionResult:
        """Compute the selection for the current change without running it."""
        changed = self.detect_changes()
        last_failed = self.last_failed.load()
        selection = select_steps_for_run(
            self.catalog,
            changed_files=changed,
            last_failed_specs=last_failed,
            smoke_spec_paths=self.config.smoke_specs,
            full=self.config.full_run,
            keywords=self.config.impact_keywords,
            test_root=self.config.test_root,
            spec_suffix=self.config.spec_suffix,
        )
        info = selection.info
        logger.info(
            "Selected %d/%d steps (mode=%s, changed=%d, last_failed=%d, impacted=%d, "
            "smoke=%d, ci=%s)",
            info.selected_count,
            info.total_steps,
            info.mode.value,
            info.changed_files_count,
            info.last_failed_count,
            info.impacted_count,
            info.smoke_count,
            self.config.ci,
        )
        return selection

    def step_env(self, selection: SelectionResult) -> dict[str, str]:
        """Environment overrides passed to every spawned step."""
        env: dict[str, str] = {}
        if self.config.retry_last_failed and selection.mode == SelectionMode.LAST_FAILED_ONLY:
            env[RETRY_LAST_FAILED_ENV] = "1"
        return env

    def run(self) -> RunOutcome:
        """Execute the orchestration and return its terminal outcome."""
        selection = self.select()
        self.reporter.selection_made(selection)
        context = RunContext(selection=selection)

        if not selection.steps:
            logger.warning("Catalog is empty; nothing to run")
            outcome = self._outcome(context, RunStatus.PASSED, EXIT_SUCCESS)
            self.reporter.run_finished(outcome)
            return outcome

        self.stop_token.discard_stale()
        self.state_store.write_initial(context.initial_state())

        if self._handle_signals:
            with TerminationSignalHandler():
                outcome = self._execute(context)
        else:
            outcome = self._execute(context)

        self.reporter.run_finished(outcome)
        return outcome

    def _execute(self, context: RunContext) -> RunOutcome:
        outcome: RunOutcome | None = None
        interrupt: RunInterrupted | None = None
        try:
            outcome = self._run_steps(context)
        except RunInterrupted as exc:
            interrupt = exc
        try:
            self.environment.stop_service()
        except RunInterrupted as exc:
            interrupt = interrupt or exc
        if interrupt is not None:
            return self._finish_interrupted(context, interrupt, previous=outcome)
        return outcome

    def _run_steps(self, context: RunContext) -> RunOutcome:
        env = self.step_env(context.selection)
        steps = context.steps
        current: Step | None = None
        try:
            self.environment.prepare()
            for index, step in enumerate(steps):
                if self.stop_token.should_stop():
                    return self._finish_cancelled(context)
                current = step
                self.state_store.patch(context.mark_started(step))
                self.reporter.step_started(index, len(steps), step)
                result = self.process_runner.run_step(step, index, len(steps), env)
                self.state_store.patch(context.mark_completed(step))
                self.reporter.step_finished(index, len(steps), result.step, result.duration_seconds)
        except StepExecutionError as exc:
            return self._finish_step_failure(context, current, exc)
        except ServiceUnavailableError as exc:
            return self._finish_service_failure(context, exc)
        return self._finish_success(context)

    def _outcome(
        self,
        context: RunContext,
        status: RunStatus,
        exit_code: int,
        details: Mapping[str, Any] | None = None,
    ) -> RunOutcome:
        return RunOutcome(
            status=status,
            exit_code=exit_code,
            selection=context.selection,
            completed=tuple(context.completed),
            remaining=tuple(context.remaining),
            failed_step=context.failed_step.name if context.failed_step else None,
            error_message=context.error_message,
            duration_seconds=context.elapsed_seconds,
            details=dict(details or {}),
        )

    def _finish_success(self, context: RunContext) -> RunOutcome:
        self.state_store.patch(context.mark_finished())
        self.state_store.clear()
        self.last_failed.clear()
        logger.info("All %d selected steps passed", len(context.completed))
        return self._outcome(context, RunStatus.PASSED, EXIT_SUCCESS)

    def _finish_step_failure(
        self,
        context: RunContext,
        failed: Step | None,
        error: StepExecutionError,
    ) -> RunOutcome:
        self.state_store.patch(context.mark_failed(str(error), failed))
        spec = None
        if failed is not None:
            spec = get_spec_path_from_step(
                failed, self.config.test_root, self.config.spec_suffix
            )
        if spec:
            self.last_failed.save([spec])
        else:
            logger.info("Failing step %s has no spec; last-failed list unchanged", error.step_name)
        return self._outcome(context, RunStatus.FAILED, EXIT_FAILURE, error.to_dict())

    def _finish_service_failure(
        self, context: RunContext, error: ServiceUnavailableError
    ) -> RunOutcome:
        logger.error("Run failed before the first step: %s", error)
        self.state_store.patch(context.mark_failed(str(error)))
        return self._outcome(context, RunStatus.FAILED, EXIT_FAILURE, error.to_dict())

    def _finish_cancelled(self, context: RunContext) -> RunOutcome:
        logger.warning("Cancel requested; stopping before %s", context.remaining[0])
        self.state_store.patch(context.mark_cancelled("Cancelled by stop request"))
        self.stop_token.acknowledge()
        return self._outcome(context, RunStatus.CANCELLED, EXIT_CANCELLED)

    def _finish_interrupted(
        self,
        context: RunContext,
        interrupt: RunInterrupted,
        previous: RunOutcome | None = None,
    ) -> RunOutcome:
        """Map a signal to its exit code.

        A signal that lands after a terminal outcome was already recorded
        (for example during service teardown) keeps that run state as is.
        """
        logger.warning("Run interrupted by signal %s", interrupt.signum)
        if previous is None:
            self.state_store.patch(context.mark_cancelled(str(interrupt)))
        status = RunStatus.CANCELLED if interrupt.exit_code == EXIT_CANCELLED else RunStatus.INTERRUPTED
        details: dict[str, Any] = {"signum": interrupt.signum}
        if previous is not None:
            details["previous_status"] = previous.status.value
        return self._outcome(context, status, interrupt.exit_code, details)
