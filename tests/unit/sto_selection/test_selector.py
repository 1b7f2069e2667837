from pathlib import Path

import pytest

from sto_runner.models.step import Step
from sto_selection.selector import SelectionMode, select_steps_for_run

pytestmark = pytest.mark.unit_selection


def _step(name: str, spec: str | None = None) -> Step:
    args = ("playwright", "test", spec) if spec else ("install",)
    return Step(name=name, command="npx", args=args, working_dir=Path("/repo"))


A = _step("A", "tests/a.spec.js")
B = _step("B", "tests/b.spec.js")
CATALOG = [A, B]


def _names(result) -> list[str]:
    return [step.name for step in result.steps]


def test_changed_spec_selects_impacted_only() -> None:
    result = select_steps_for_run(CATALOG, changed_files=["tests/a.spec.js"])
    assert _names(result) == ["A"]
    assert result.mode == SelectionMode.IMPACTED_ONLY
    assert result.info.impacted_count == 1


def test_last_failed_only() -> None:
    result = select_steps_for_run(CATALOG, last_failed_specs=["tests/b.spec.js"])
    assert _names(result) == ["B"]
    assert result.mode == SelectionMode.LAST_FAILED_ONLY
    assert result.info.last_failed_count == 1


def test_full_override_returns_catalog() -> None:
    result = select_steps_for_run(
        CATALOG,
        changed_files=["tests/a.spec.js"],
        last_failed_specs=["tests/b.spec.js"],
        full=True,
    )
    assert _names(result) == ["A", "B"]
    assert result.mode == SelectionMode.FULL
    assert result.info.selected_count == result.info.total_steps == 2


def test_smoke_used_when_no_other_signal() -> None:
    result = select_steps_for_run(
        CATALOG, changed_files=["unrelated.txt"], smoke_spec_paths=["tests/a.spec.js"]
    )
    assert _names(result) == ["A"]
    assert result.mode == SelectionMode.SMOKE_ONLY
    assert result.info.smoke_count == 1
    assert result.info.changed_files_count == 1


def test_no_inputs_falls_back_to_full_catalog() -> None:
    result = select_steps_for_run(CATALOG)
    assert _names(result) == ["A", "B"]
    assert result.mode == SelectionMode.FALLBACK_FULL


def test_empty_catalog() -> None:
    result = select_steps_for_run([], changed_files=["x.js"])
    assert result.steps == ()
    assert result.mode == SelectionMode.EMPTY
    assert result.info.total_steps == 0
    assert result.info.selected_count == 0


def test_last_failed_and_impacted_keep_catalog_order() -> None:
    catalog = [
        _step("install"),
        _step("C", "tests/c.spec.js"),
        _step("A", "tests/a.spec.js"),
        _step("B", "tests/b.spec.js"),
    ]
    result = select_steps_for_run(
        catalog,
        changed_files=["tests/a.spec.js"],
        last_failed_specs=["tests/b.spec.js"],
    )
    assert _names(result) == ["A", "B"]
    assert result.mode == SelectionMode.LAST_FAILED_AND_IMPACTED


def test_impacted_excludes_last_failed_specs() -> None:
    result = select_steps_for_run(
        CATALOG,
        changed_files=["tests/a.spec.js"],
        last_failed_specs=["tests/a.spec.js"],
    )
    assert _names(result) == ["A"]
    assert result.mode == SelectionMode.LAST_FAILED_ONLY
    assert result.info.impacted_count == 0


def test_unknown_last_failed_and_smoke_specs_are_ignored() -> None:
    result = select_steps_for_run(
        CATALOG,
        last_failed_specs=["tests/gone.spec.js"],
        smoke_spec_paths=["tests/also-gone.spec.js"],
    )
    assert _names(result) == ["A", "B"]
    assert result.mode == SelectionMode.FALLBACK_FULL
    assert result.info.last_failed_count == 0


def test_smoke_ignored_when_impacted_found() -> None:
    result = select_steps_for_run(
        CATALOG,
        changed_files=["tests/b.spec.js"],
        smoke_spec_paths=["tests/a.spec.js"],
    )
    assert _names(result) == ["B"]
    assert result.info.smoke_count == 0


def test_duplicate_spec_selects_first_position_only() -> None:
    catalog = [A, B, _step("A retry", "tests/a.spec.js")]
    result = select_steps_for_run(catalog, changed_files=["tests/a.spec.js"])
    assert _names(result) == ["A"]


def test_selection_is_deterministic() -> None:
    catalog = [_step(f"S{i}", f"tests/export-{i}.spec.js") for i in range(10)]
    kwargs = dict(
        changed_files=["src/export-helpers.js", "tests/export-3.spec.js"],
        last_failed_specs=["tests/export-7.spec.js"],
        smoke_spec_paths=["tests/export-0.spec.js"],
    )
    first = select_steps_for_run(catalog, **kwargs)
    for _ in range(5):
        assert select_steps_for_run(catalog, **kwargs) == first


def test_selection_is_subsequence_of_catalog() -> None:
    catalog = [_step(f"S{i}", f"tests/s{i}-module.spec.js") for i in range(6)]
    result = select_steps_for_run(
        catalog,
        changed_files=["tests/s4-module.spec.js", "tests/s1-module.spec.js"],
        last_failed_specs=["tests/s5-module.spec.js", "tests/s0-module.spec.js"],
    )
    positions = [catalog.index(step) for step in result.steps]
    assert positions == sorted(positions)
    assert _names(result) == ["S0", "S1", "S4", "S5"]


def test_info_to_dict_uses_mode_value() -> None:
    payload = select_steps_for_run(CATALOG).info.to_dict()
    assert payload["mode"] == "fallback-full"
    assert payload["total_steps"] == 2
