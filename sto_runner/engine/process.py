"""
Executor for a single catalog step as a child process.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Mapping, Sequence

from sto_common.config.env import parse_bool_env
from sto_common.errors import RunInterrupted, StepExecutionError
from sto_runner.models.config import RETRY_LAST_FAILED_ENV
from sto_runner.models.step import Step

logger = logging.getLogger(__name__)

LAST_FAILED_FLAG = "--last-failed"
PASS_WITH_NO_TESTS_FLAG = "--pass-with-no-tests"
BANNER_WIDTH = 60


@dataclass(frozen=True)
class StepResult:
    """Outcome summary for a successful step.

    ``step`` carries the arguments as actually spawned, retry flags included.
    """

    step: Step
    duration_seconds: float


def targets_browser_runner(step: Step, runner_names: Sequence[str] = ("playwright",)) -> bool:
    """Return True when the step invokes the browser-test runner."""
    names = {name.lower() for name in runner_names}
    if Path(step.command).stem.lower() in names:
        return True
    return bool(step.args) and step.args[0].lower() in names


def resolve_step_args(
    step: Step,
    env: Mapping[str, str],
    runner_names: Sequence[str] = ("playwright",),
) -> tuple[str, ...]:
    """Return the step arguments, retargeted to last-failed cases when requested."""
    if not parse_bool_env(env.get(RETRY_LAST_FAILED_ENV)):
        return step.args
    if not targets_browser_runner(step, runner_names):
        return step.args
    if LAST_FAILED_FLAG in step.args:
        return step.args
    return (*step.args, LAST_FAILED_FLAG, PASS_WITH_NO_TESTS_FLAG)


class ProcessRunner:
    """Run steps one at a time with inherited standard streams."""

    def __init__(
        self,
        *,
        runner_names: Sequence[str] = ("playwright",),
        stop_grace_seconds: float = 5.0,
        spawn: Callable[..., subprocess.Popen] = subprocess.Popen,
        base_env: Mapping[str, str] | None = None,
    ) -> None:
        self._runner_names = tuple(runner_names)
        self._stop_grace_seconds = stop_grace_seconds
        self._spawn = spawn
        self._base_env = base_env
        self._active: subprocess.Popen | None = None

    @property
    def active_process(self) -> subprocess.Popen | None:
        return self._active

    def run_step(
        self,
        step: Step,
        step_index: int,
        total_steps: int,
        env_overrides: Mapping[str, str] | None = None,
    ) -> StepResult:
        """
        Spawn the step and block until it exits.

        Args:
            step: Catalog step to execute
            step_index: Zero-based position within the selected steps
            total_steps: Number of selected steps

        Returns:
            StepResult for a zero exit status

        Raises:
            StepExecutionError: on a non-zero exit or when the spawn fails
        """
        env = dict(os.environ if self._base_env is None else self._base_env)
        env.update(env_overrides or {})
        resolved = replace(step, args=resolve_step_args(step, env, self._runner_names))
        label = f"Step {step_index + 1}/{total_steps}"

        logger.info("=" * BANNER_WIDTH)
        logger.info("%s: %s", label, step.name)
        logger.info("Command: %s", resolved.command_line)
        logger.info("Working Directory: %s", step.working_dir)
        logger.info("=" * BANNER_WIDTH)

        executable = shutil.which(step.command) or step.command
        started = time.monotonic()
        try:
            proc = self._spawn([executable, *resolved.args], cwd=step.working_dir, env=env)
        except OSError as exc:
            logger.error("%s (%s) failed to start: %s", label, step.name, exc)
            raise StepExecutionError(
                f"Step {step.name} failed to start: {exc}",
                context={"step": step.name, "reason": str(exc)},
                cause=exc,
            ) from exc

        self._active = proc
        try:
            exit_code = proc.wait()
        except RunInterrupted as exc:
            logger.warning("%s (%s) interrupted by signal %s", label, step.name, exc.signum)
            self.stop_active(exc.signum)
            raise
        finally:
            self._active = None

        duration = time.monotonic() - started
        if exit_code != 0:
            logger.error(
                "FAILED: %s (%s) exited with code %s after %.1fs",
                label,
                step.name,
                exit_code,
                duration,
            )
            raise StepExecutionError(
                f"Step {step.name} failed with exit code {exit_code}",
                context={"step": step.name, "exit_code": exit_code},
            )

        logger.info("%s (%s) completed successfully in %.1fs", label, step.name, duration)
        return StepResult(step=resolved, duration_seconds=duration)

    def stop_active(self, signum: int) -> None:
        """Forward a signal to the in-flight child and reap it."""
        proc = self._active
        if proc is None or proc.poll() is not None:
            return
        try:
            proc.send_signal(signum)
            proc.wait(timeout=self._stop_grace_seconds)
        except subprocess.TimeoutExpired:
            logger.warning("Child pid %s ignored signal %s; killing it", proc.pid, signum)
            proc.kill()
            proc.wait()
        except OSError as exc:
            logger.debug("Failed to signal child pid %s: %s", proc.pid, exc)
