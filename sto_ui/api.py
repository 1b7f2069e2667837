"""Public API surface for sto_ui."""

from sto_ui.cli.main import app, main
from sto_ui.console import ConsoleReporter, make_console
from sto_ui.presenters.selection import build_selection_summary, build_selection_table
from sto_ui.presenters.summary import build_outcome_summary, build_state_rows

__all__ = [
    "ConsoleReporter",
    "app",
    "build_outcome_summary",
    "build_selection_summary",
    "build_selection_table",
    "build_state_rows",
    "main",
    "make_console",
]
