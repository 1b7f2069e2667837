"""Rich-based console output used by the CLI."""

from __future__ import annotations

import sys
from typing import IO

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from sto_runner.engine.orchestrator import RunOutcome, RunStatus
from sto_runner.models.step import Step
from sto_selection.selector import SelectionResult
from sto_ui.presenters.selection import build_selection_counts, build_selection_table
from sto_ui.presenters.summary import build_outcome_table
from sto_ui.theme import mode_text, presenter_message

THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "red",
        "success": "green",
        "accent": "#3ea6ff",
    }
)


def make_console(stream: IO[str] | None = None) -> Console:
    return Console(
        theme=THEME,
        file=stream or sys.stdout,
        highlight=False,
        soft_wrap=True,
    )


class ConsolePresenter:
    """Leveled one-line messages."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def info(self, message: str) -> None:
        self.console.print(presenter_message("info", message))

    def warning(self, message: str) -> None:
        self.console.print(presenter_message("warning", message))

    def error(self, message: str) -> None:
        self.console.print(presenter_message("error", message))

    def success(self, message: str) -> None:
        self.console.print(presenter_message("success", message))


class ConsoleReporter:
    """Print selection, per-step rules and the final summary."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or make_console()
        self.present = ConsolePresenter(self.console)

    def show_selection(self, selection: SelectionResult) -> None:
        counts = Table.grid(padding=(0, 2))
        counts.add_column(style="cyan")
        counts.add_column()
        for key, value in build_selection_counts(selection):
            counts.add_row(key, mode_text(value) if key == "Mode" else value)
        self.console.print(counts)
        if selection.steps:
            self.console.print(build_selection_table(selection))

    def selection_made(self, selection: SelectionResult) -> None:
        self.show_selection(selection)

    def step_started(self, index: int, total: int, step: Step) -> None:
        self.console.rule(f"[b]Step {index + 1}/{total}: {step.name}[/b]", style="accent")

    def step_finished(self, index: int, total: int, step: Step, duration: float) -> None:
        self.present.success(f"{step.name} passed in {duration:.1f}s")

    def run_finished(self, outcome: RunOutcome) -> None:
        if not outcome.selection.steps:
            self.present.warning("No steps to run.")
            return
        self.console.print(build_outcome_table(outcome))
        if outcome.status == RunStatus.PASSED:
            self.present.success("All selected steps passed.")
        elif outcome.status == RunStatus.FAILED:
            self.present.error(outcome.error_message or "Run failed.")
        else:
            self.present.warning(
                f"Run stopped ({outcome.status.value}); "
                f"{len(outcome.remaining)} step(s) not completed."
            )
