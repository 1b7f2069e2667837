"""CLI tests for the sto typer app."""

import importlib
import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from sto_runner.engine.orchestrator import RunOutcome, RunStatus
from sto_selection.selector import select_steps_for_run

cli_main = importlib.import_module("sto_ui.cli.main")

pytestmark = pytest.mark.unit_ui

runner = CliRunner()

CATALOG = [
    {"name": "Install", "command": "npm", "args": ["install"]},
    {"name": "A", "command": "npx", "args": ["playwright", "test", "tests/a.spec.js"]},
    {"name": "B", "command": "npx", "args": ["playwright", "test", "tests/b.spec.js"]},
]


@pytest.fixture(autouse=True)
def _isolate(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_main, "configure_logging", lambda **kwargs: None)
    for name in ("STO_FULL_RUN", "STO_BASE_REF", "STO_CATALOG_FILE", "BASE_URL", "PORT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "catalog.json").write_text(json.dumps(CATALOG))
    return tmp_path


def _state_file(root: Path) -> Path:
    return root / "scripts" / "test-orchestration-state.json"


def test_no_args_shows_help() -> None:
    result = runner.invoke(cli_main.app, [])
    assert "select" in result.output


def test_select_json_with_changed_files(project: Path) -> None:
    result = runner.invoke(
        cli_main.app,
        [
            "-C",
            str(project),
            "select",
            "--catalog",
            "catalog.json",
            "--changed",
            "tests/b.spec.js",
            "--json",
        ],
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["mode"] == "impacted-only"
    assert payload["steps"] == ["B"]
    assert payload["total_steps"] == 3


@pytest.mark.parametrize(("ci_value", "expected"), [("1", True), ("", False)])
def test_select_json_reports_ci_marker(project: Path, ci_value: str, expected: bool) -> None:
    result = runner.invoke(
        cli_main.app,
        ["-C", str(project), "select", "--catalog", "catalog.json", "--changed", "tests/a.spec.js", "--json"],
        env={"CI": ci_value},
    )
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["ci"] is expected


def test_select_table_output(project: Path) -> None:
    result = runner.invoke(
        cli_main.app,
        ["-C", str(project), "select", "--catalog", "catalog.json", "--full"],
    )
    assert result.exit_code == 0, result.output
    assert "full" in result.output
    assert "Install" in result.output


def test_select_invalid_catalog_exits_with_usage_code(project: Path) -> None:
    (project / "bad.json").write_text("{}")
    result = runner.invoke(
        cli_main.app,
        ["-C", str(project), "select", "--catalog", "bad.json", "--full"],
    )
    assert result.exit_code == 2


def test_run_propagates_outcome_exit_code(project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    captured = {}

    class FakeOrchestrator:
        def __init__(self, config, **kwargs):
            captured["config"] = config
            self.reporter = kwargs["reporter"]

        def run(self):
            return RunOutcome(
                status=RunStatus.CANCELLED,
                exit_code=130,
                selection=select_steps_for_run([]),
            )

    monkeypatch.setattr(cli_main, "TestOrchestrator", FakeOrchestrator)
    result = runner.invoke(
        cli_main.app,
        ["-C", str(project), "run", "--full", "--skip-service", "--base-ref", "HEAD~1"],
    )

    assert result.exit_code == 130
    config = captured["config"]
    assert config.full_run is True
    assert config.skip_service is True
    assert config.base_ref == "HEAD~1"
    assert config.project_root == project


def test_stop_without_active_run(project: Path) -> None:
    result = runner.invoke(cli_main.app, ["-C", str(project), "stop"])
    assert result.exit_code == 0
    assert "No active test orchestration run" in result.output
    assert not (project / "scripts" / "test-orchestration-cancel.json").exists()


def test_stop_and_status_for_active_run(project: Path) -> None:
    state_file = _state_file(project)
    state_file.parent.mkdir(parents=True)
    state_file.write_text(
        json.dumps(
            {
                "pid": 99,
                "startedAt": "2024-01-01T00:00:00+00:00",
                "mode": "impacted-only",
                "totalAvailableSteps": 3,
                "selectedStepsCount": 2,
                "stepNames": ["A", "B"],
                "completedStepNames": ["A"],
                "lastStartedStepName": "B",
                "finished": False,
            }
        )
    )

    stop = runner.invoke(cli_main.app, ["-C", str(project), "stop"])
    assert stop.exit_code == 0
    assert "Cancel flag written" in stop.output
    assert (project / "scripts" / "test-orchestration-cancel.json").exists()

    status = runner.invoke(cli_main.app, ["-C", str(project), "status", "--clear"])
    assert status.exit_code == 0, status.output
    assert "impacted-only" in status.output
    assert "running" in status.output
    assert not state_file.exists()


def test_status_without_state(project: Path) -> None:
    result = runner.invoke(cli_main.app, ["-C", str(project), "status"])
    assert result.exit_code == 0
    assert "No run state found" in result.output


def test_main_invokes_app(monkeypatch: pytest.MonkeyPatch) -> None:
    fake_app = MagicMock()
    monkeypatch.setattr(cli_main, "app", fake_app)
    cli_main.main()
    fake_app.assert_called_once_with()
