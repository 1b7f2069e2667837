"""Tests for shared error helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from sto_common.errors import (
    ConfigurationError,
    RunInterrupted,
    StepExecutionError,
)

pytestmark = pytest.mark.unit_common


def test_to_dict_normalizes_context() -> None:
    err = StepExecutionError(
        "boom",
        context={
            "path": Path("/tmp/test"),
            "exit_code": 3,
            "nested": {"value": Path("nested")},
            "items": [Path("a"), "b"],
        },
    )
    payload = err.to_dict()
    assert payload["type"] == "StepExecutionError"
    assert payload["message"] == "boom"
    assert payload["context"]["path"].endswith("test")
    assert payload["context"]["exit_code"] == 3
    assert payload["context"]["nested"]["value"] == "nested"
    assert payload["context"]["items"][0] == "a"


def test_step_execution_error_exposes_step_and_exit_code() -> None:
    err = StepExecutionError("failed", context={"step": "Run A", "exit_code": 2})
    assert err.step_name == "Run A"
    assert err.exit_code == 2


def test_cause_is_chained() -> None:
    cause = ValueError("bad")
    err = ConfigurationError("invalid", context={"key": "x"}, cause=cause)
    assert err.__cause__ is cause
    assert err.error_type == "ConfigurationError"


def test_run_interrupted_carries_signal_and_exit_code() -> None:
    err = RunInterrupted(15, 143)
    assert err.signum == 15
    assert err.exit_code == 143
    assert err.context == {"signum": 15, "exit_code": 143}
