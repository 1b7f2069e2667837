"""Public API surface for sto_selection."""

from sto_selection.changes import ChangeDetector
from sto_selection.impact import derive_impacted_specs
from sto_selection.selector import (
    SelectionInfo,
    SelectionMode,
    SelectionResult,
    select_steps_for_run,
)
from sto_selection.spec_index import SpecIndex, build_spec_index, get_spec_path_from_step

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
