"""Presenter for step selections."""

from __future__ import annotations

from typing import List, Tuple

from rich.table import Table

from sto_selection.selector import SelectionResult
from sto_selection.spec_index import get_spec_path_from_step
from sto_ui.theme import RICH_BORDER_STYLE, mode_text


def _reason(spec: str | None, selection: SelectionResult) -> str:
    if spec is None:
        return "catalog"
    if spec in selection.last_failed_specs:
        return "last-failed"
    if spec in selection.impacted_specs:
        return "impacted"
    if spec in selection.smoke_specs:
        return "smoke"
    return "catalog"


def build_selection_summary(
    selection: SelectionResult,
) -> Tuple[List[str], List[List[str]]]:
    """Return columns and rows describing each selected step and why it was picked."""
    columns = ["#", "Step", "Spec", "Reason"]
    rows: List[List[str]] = []
    for position, step in enumerate(selection.steps, start=1):
        spec = get_spec_path_from_step(step)
        rows.append([str(position), step.name, spec or "-", _reason(spec, selection)])
    return columns, rows


def build_selection_counts(selection: SelectionResult) -> List[Tuple[str, str]]:
    info = selection.info
    return [
        ("Mode", info.mode.value),
        ("Selected", f"{info.selected_count}/{info.total_steps}"),
        ("Changed files", str(info.changed_files_count)),
        ("Last failed", str(info.last_failed_count)),
        ("Impacted", str(info.impacted_count)),
        ("Smoke", str(info.smoke_count)),
    ]


def build_selection_table(selection: SelectionResult) -> Table:
    columns, rows = build_selection_summary(selection)
    table = Table(
        title=f"Selected Steps ({mode_text(selection.info.mode.value)})",
        border_style=RICH_BORDER_STYLE,
        header_style="bold magenta",
    )
    for column in columns:
        table.add_column(column, justify="right" if column == "#" else "left")
    for row in rows:
        table.add_row(*row)
    return table
