import signal
import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from sto_common.errors import RunInterrupted, StepExecutionError
from sto_runner.engine.process import ProcessRunner, resolve_step_args, targets_browser_runner
from sto_runner.models.step import Step

pytestmark = pytest.mark.unit_runner

BROWSER = Step(
    name="Run A",
    command="npx",
    args=("playwright", "test", "tests/a.spec.js"),
    working_dir=Path("/repo"),
)
INSTALL = Step(name="Install", command="npm", args=("install",), working_dir=Path("/repo"))


def _proc(returncode: int = 0) -> MagicMock:
    proc = MagicMock()
    proc.wait.return_value = returncode
    proc.poll.return_value = None
    proc.pid = 1234
    return proc


def test_targets_browser_runner() -> None:
    assert targets_browser_runner(BROWSER)
    assert targets_browser_runner(Step(name="direct", command="/usr/bin/playwright", args=("test",)))
    assert not targets_browser_runner(INSTALL)


def test_resolve_step_args_appends_last_failed_flags() -> None:
    args = resolve_step_args(BROWSER, {"STO_RETRY_LAST_FAILED": "1"})
    assert args == ("playwright", "test", "tests/a.spec.js", "--last-failed", "--pass-with-no-tests")


def test_resolve_step_args_untouched_without_flag_or_runner() -> None:
    assert resolve_step_args(BROWSER, {}) == BROWSER.args
    assert resolve_step_args(BROWSER, {"STO_RETRY_LAST_FAILED": "0"}) == BROWSER.args
    assert resolve_step_args(INSTALL, {"STO_RETRY_LAST_FAILED": "1"}) == INSTALL.args


def test_resolve_step_args_does_not_duplicate_last_failed() -> None:
    step = Step(name="lf", command="npx", args=("playwright", "test", "--last-failed"))
    assert resolve_step_args(step, {"STO_RETRY_LAST_FAILED": "1"}) == step.args


def test_run_step_spawns_with_cwd_and_merged_env() -> None:
    spawn = MagicMock(return_value=_proc(0))
    runner = ProcessRunner(spawn=spawn, base_env={"PATH": "/bin", "KEEP": "1"})

    result = runner.run_step(BROWSER, 0, 3, {"STO_RETRY_LAST_FAILED": "1"})

    cmd = spawn.call_args.args[0]
    kwargs = spawn.call_args.kwargs
    assert cmd[1:] == ["playwright", "test", "tests/a.spec.js", "--last-failed", "--pass-with-no-tests"]
    assert kwargs["cwd"] == Path("/repo")
    assert kwargs["env"]["KEEP"] == "1"
    assert kwargs["env"]["STO_RETRY_LAST_FAILED"] == "1"
    assert result.step.name == "Run A"
    assert result.step.command_line == (
        "npx playwright test tests/a.spec.js --last-failed --pass-with-no-tests"
    )
    assert BROWSER.args == ("playwright", "test", "tests/a.spec.js")
    assert runner.active_process is None


def test_run_step_non_zero_exit_raises_with_context() -> None:
    runner = ProcessRunner(spawn=MagicMock(return_value=_proc(2)), base_env={})

    with pytest.raises(StepExecutionError) as excinfo:
        runner.run_step(INSTALL, 1, 3)

    assert excinfo.value.step_name == "Install"
    assert excinfo.value.exit_code == 2


def test_run_step_spawn_error_raises() -> None:
    runner = ProcessRunner(spawn=MagicMock(side_effect=FileNotFoundError("npm")), base_env={})

    with pytest.raises(StepExecutionError) as excinfo:
        runner.run_step(INSTALL, 0, 1)

    assert excinfo.value.step_name == "Install"
    assert "npm" in excinfo.value.context["reason"]


def test_run_step_logs_banner(caplog) -> None:
    runner = ProcessRunner(spawn=MagicMock(return_value=_proc(0)), base_env={})
    with caplog.at_level("INFO", logger="sto_runner.engine.process"):
        runner.run_step(BROWSER, 1, 4)
    text = caplog.text
    assert "Step 2/4: Run A" in text
    assert "Command: npx playwright test tests/a.spec.js" in text
    assert "Working Directory: /repo" in text


def test_interrupt_forwards_signal_to_child() -> None:
    proc = _proc()
    proc.wait.side_effect = [RunInterrupted(signal.SIGINT, 130), 0]
    runner = ProcessRunner(spawn=MagicMock(return_value=proc), base_env={}, stop_grace_seconds=3)

    with pytest.raises(RunInterrupted):
        runner.run_step(BROWSER, 0, 1)

    proc.send_signal.assert_called_once_with(signal.SIGINT)
    assert proc.wait.call_args.kwargs == {"timeout": 3}
    assert runner.active_process is None


def test_stop_active_kills_after_grace_period() -> None:
    proc = _proc()
    proc.wait.side_effect = [
        RunInterrupted(signal.SIGTERM, 143),
        subprocess.TimeoutExpired(cmd="npx", timeout=1),
        0,
    ]
    runner = ProcessRunner(spawn=MagicMock(return_value=proc), base_env={}, stop_grace_seconds=1)

    with pytest.raises(RunInterrupted):
        runner.run_step(BROWSER, 0, 1)

    proc.kill.assert_called_once()
