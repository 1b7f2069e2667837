"""Change-aware step selection for selective-test-orchestrator."""

from sto_selection.api import (
    ChangeDetector,
    SelectionInfo,
    SelectionMode,
    SelectionResult,
    SpecIndex,
    build_spec_index,
    derive_impacted_specs,
    get_spec_path_from_step,
    select_steps_for_run,
)

__all__ = [
    "ChangeDetector",
    "SelectionInfo",
    "SelectionMode",
    "SelectionResult",
    "SpecIndex",
    "build_spec_index",
    "derive_impacted_specs",
    "get_spec_path_from_step",
    "select_steps_for_run",
]
