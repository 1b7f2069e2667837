"""Deterministic selection of the steps to execute for a change.

Given the ordered catalog, the changed files, the specs that failed last
time and a smoke pack, return an ordered subset of steps plus metadata that
explains why those steps were picked.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Iterable, Sequence

from sto_runner.models.config import DEFAULT_IMPACT_KEYWORDS
from sto_runner.models.step import Step
from sto_selection.impact import derive_impacted_specs
from sto_selection.spec_index import (
    DEFAULT_SPEC_SUFFIX,
    DEFAULT_TEST_ROOT,
    SpecIndex,
    build_spec_index,
    normalize_path,
)


class SelectionMode(str, Enum):
    """Why a selection contains the steps it does."""

    FULL = "full"
    LAST_FAILED_AND_IMPACTED = "last-failed-and-impacted"
    LAST_FAILED_ONLY = "last-failed-only"
    IMPACTED_ONLY = "impacted-only"
    SMOKE_ONLY = "smoke-only"
    FALLBACK_FULL = "fallback-full"
    EMPTY = "empty"


@dataclass(frozen=True)
class SelectionInfo:
    mode: SelectionMode
    total_steps: int
    selected_count: int
    last_failed_count: int
    impacted_count: int
    smoke_count: int
    changed_files_count: int

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["mode"] = self.mode.value
        return payload


@dataclass(frozen=True)
class SelectionResult:
    steps: tuple[Step, ...]
    info: SelectionInfo
    last_failed_specs: tuple[str, ...] = ()
    impacted_specs: tuple[str, ...] = ()
    smoke_specs: tuple[str, ...] = ()

    @property
    def mode(self) -> SelectionMode:
        return self.info.mode


def _ordered_known(specs: Iterable[str], index: SpecIndex) -> list[str]:
    """Keep known specs, first occurrence wins, input order preserved."""
    seen: set[str] = set()
    ordered: list[str] = []
    for raw in specs:
        spec = normalize_path(raw)
        if spec in index and spec not in seen:
            seen.add(spec)
            ordered.append(spec)
    return ordered


def _collect_positions(
    spec_paths: Iterable[str],
    index: SpecIndex,
    selected: list[int],
    seen: set[int],
) -> None:
    # One step per spec: the first catalog position that invokes it.
    for spec_path in spec_paths:
        position = index.first_position(spec_path)
        if position is None or position in seen:
            continue
        seen.add(position)
        selected.append(position)


def _derive_mode(
    fell_back: bool,
    last_failed: Sequence[str],
    impacted: Sequence[str],
    smoke_used: bool,
) -> SelectionMode:
    if fell_back:
        return SelectionMode.FALLBACK_FULL
    if last_failed and impacted:
        return SelectionMode.LAST_FAILED_AND_IMPACTED
    if last_failed:
        return SelectionMode.LAST_FAILED_ONLY
    if impacted:
        return SelectionMode.IMPACTED_ONLY
    if smoke_used:
        return SelectionMode.SMOKE_ONLY
    return SelectionMode.FALLBACK_FULL


def select_steps_for_run(
    steps: Sequence[Step],
    changed_files: Sequence[str] = (),
    last_failed_specs: Sequence[str] = (),
    smoke_spec_paths: Sequence[str] = (),
    full: bool = False,
    *,
    keywords: Sequence[str] = DEFAULT_IMPACT_KEYWORDS,
    test_root: str = DEFAULT_TEST_ROOT,
    spec_suffix: str = DEFAULT_SPEC_SUFFIX,
) -> SelectionResult:
    """Return the ordered subset of ``steps`` to run.

    Priority is last-failed specs, then impacted specs, then the smoke pack
    when nothing else matched. When no heuristic yields a step the whole
    catalog is returned. Selected steps always keep catalog order.
    """
    catalog = tuple(steps)
    changed = list(changed_files or ())
    total = len(catalog)

    if total == 0:
        return SelectionResult(
            steps=(),
            info=SelectionInfo(
                mode=SelectionMode.EMPTY,
                total_steps=0,
                selected_count=0,
                last_failed_count=0,
                impacted_count=0,
                smoke_count=0,
                changed_files_count=len(changed),
            ),
        )

    if full:
        return SelectionResult(
            steps=catalog,
            info=SelectionInfo(
                mode=SelectionMode.FULL,
                total_steps=total,
                selected_count=total,
                last_failed_count=0,
                impacted_count=total,
                smoke_count=0,
                changed_files_count=len(changed),
            ),
        )

    index = build_spec_index(catalog, test_root, spec_suffix)

    last_failed = _ordered_known(last_failed_specs or (), index)
    last_failed_set = set(last_failed)
    impacted_raw = derive_impacted_specs(changed, index.all_spec_paths, keywords)
    # Iterate in catalog spec order so the result never depends on set ordering.
    impacted = [
        spec
        for spec in index.all_spec_paths
        if spec in impacted_raw and spec not in last_failed_set
    ]
    smoke = _ordered_known(smoke_spec_paths or (), index)

    selected: list[int] = []
    seen: set[int] = set()
    _collect_positions(last_failed, index, selected, seen)
    _collect_positions(impacted, index, selected, seen)

    smoke_used: list[str] = []
    if not selected and smoke:
        smoke_used = smoke
        _collect_positions(smoke, index, selected, seen)

    fell_back = not selected
    if fell_back:
        chosen = catalog
    else:
        chosen = tuple(catalog[position] for position in sorted(selected))

    return SelectionResult(
        steps=chosen,
        info=SelectionInfo(
            mode=_derive_mode(fell_back, last_failed, impacted, bool(smoke_used)),
            total_steps=total,
            selected_count=len(chosen),
            last_failed_count=len(last_failed),
            impacted_count=len(impacted),
            smoke_count=len(smoke_used),
            changed_files_count=len(changed),
        ),
        last_failed_specs=tuple(last_failed),
        impacted_specs=tuple(impacted),
        smoke_specs=tuple(smoke_used),
    )
