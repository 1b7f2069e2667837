"""Presenter for the end-of-run summary."""

from __future__ import annotations

from typing import List, Tuple

from rich.table import Table

from sto_runner.engine.orchestrator import RunOutcome
from sto_runner.models.state import RunState
from sto_ui.theme import RICH_BORDER_STYLE, status_text


def build_outcome_summary(outcome: RunOutcome) -> Tuple[List[str], List[List[str]]]:
    """Return one row per selected step with its terminal status."""
    columns = ["Step", "Status"]
    rows: List[List[str]] = [[name, "passed"] for name in outcome.completed]
    for name in outcome.remaining:
        status = "failed" if name == outcome.failed_step else "pending"
        rows.append([name, status])
    return columns, rows


def build_outcome_table(outcome: RunOutcome) -> Table:
    columns, rows = build_outcome_summary(outcome)
    table = Table(
        title=f"Test Orchestration: {status_text(outcome.status.value)}",
        border_style=RICH_BORDER_STYLE,
        header_style="bold magenta",
    )
    for column in columns:
        table.add_column(column)
    for name, status in rows:
        table.add_row(name, status_text(status))
    table.caption = (
        f"{len(outcome.completed)} completed, {len(outcome.remaining)} remaining, "
        f"exit code {outcome.exit_code}, {outcome.duration_seconds:.1f}s"
    )
    return table


def build_state_rows(state: RunState) -> List[Tuple[str, str]]:
    """Key/value rows describing a persisted run state."""
    if state.cancelled:
        status = "cancelled"
    elif state.failed:
        status = "failed"
    elif state.finished:
        status = "passed"
    else:
        status = "running"
    rows = [
        ("Status", status),
        ("PID", str(state.pid)),
        ("Started", state.started_at),
        ("Mode", state.mode),
        ("Selected", f"{state.selected_steps_count}/{state.total_available_steps}"),
        ("Completed", str(len(state.completed_step_names))),
        ("Last started", state.last_started_step_name or "-"),
    ]
    if state.error_message:
        rows.append(("Error", state.error_message))
    return rows


def build_state_table(state: RunState) -> Table:
    table = Table(title="Run State", border_style=RICH_BORDER_STYLE, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in build_state_rows(state):
        table.add_row(key, status_text(value) if key == "Status" else value)
    remaining = state.remaining_step_names
    if remaining:
        table.add_row("Remaining", "\n".join(remaining))
    return table
