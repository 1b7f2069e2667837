"""Tests for the run state store, the cancel flag and the last-failed tracker."""

import json
from pathlib import Path

import pytest

from sto_runner.models.state import RunState
from sto_runner.services.cancel_flag import CancelFlag
from sto_runner.services.last_failed import LastFailedTracker
from sto_runner.services.run_state import RunStateStore

pytestmark = pytest.mark.unit_runner


def _state() -> RunState:
    return RunState(
        pid=7,
        started_at="2024-01-01T00:00:00+00:00",
        mode="full",
        total_available_steps=2,
        selected_steps_count=2,
        step_names=["A", "B"],
    )


def test_last_failed_round_trip_dedupes(tmp_path: Path) -> None:
    tracker = LastFailedTracker(tmp_path / "last-failed.json")
    assert tracker.save(["tests/a.spec.js", "tests/a.spec.js", "tests/b.spec.js"]).ok
    assert tracker.load() == ["tests/a.spec.js", "tests/b.spec.js"]


def test_last_failed_load_never_raises(tmp_path: Path) -> None:
    path = tmp_path / "last-failed.json"
    tracker = LastFailedTracker(path)
    assert tracker.load() == []

    path.write_text("{broken")
    assert tracker.load() == []

    path.write_text(json.dumps({"not": "a list"}))
    assert tracker.load() == []

    path.write_text(json.dumps(["tests/a.spec.js", 3, None, ""]))
    assert tracker.load() == ["tests/a.spec.js"]


def test_last_failed_clear_writes_empty_list(tmp_path: Path) -> None:
    path = tmp_path / "last-failed.json"
    tracker = LastFailedTracker(path)
    tracker.save(["tests/a.spec.js"])
    tracker.clear()
    assert json.loads(path.read_text()) == []


def test_last_failed_save_failure_is_reported(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    outcome = LastFailedTracker(blocker / "last-failed.json").save(["tests/a.spec.js"])
    assert not outcome.ok


def test_run_state_patch_merges_without_dropping_keys(tmp_path: Path) -> None:
    store = RunStateStore(tmp_path / "state.json")
    store.write_initial(_state())
    store.patch({"lastStartedStepName": "A"})
    store.patch({"completedStepNames": ["A"]})

    doc = store.read()
    assert doc["lastStartedStepName"] == "A"
    assert doc["completedStepNames"] == ["A"]
    assert doc["stepNames"] == ["A", "B"]
    assert store.load().remaining_step_names == ["B"]


def test_run_state_patch_treats_unparsable_file_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text("garbage")
    store = RunStateStore(path)
    store.patch({"finished": True})
    assert json.loads(path.read_text()) == {"finished": True}
    assert store.load() is None


def test_run_state_clear(tmp_path: Path) -> None:
    store = RunStateStore(tmp_path / "state.json")
    store.write_initial(_state())
    assert store.exists()
    assert store.clear().ok
    assert not store.exists()
    assert store.read() == {}


def test_cancel_flag_request_and_clear(tmp_path: Path) -> None:
    flag = CancelFlag(tmp_path / "cancel.json", clock=lambda: 1700000000.5)
    assert not flag.is_set()

    assert flag.request().ok
    assert flag.is_set()
    assert json.loads(flag.path.read_text()) == {"cancelRequestedAt": 1700000000500}

    flag.clear()
    assert not flag.is_set()
