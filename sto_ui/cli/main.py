"""
Command-line interface for the selective test orchestrator.

Runs the selected test steps for the current change, previews the selection,
and inspects or stops an in-progress run.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError

from sto_common.errors import ConfigurationError, STOError
from sto_common.logging import configure_logging
from sto_runner.engine.orchestrator import TestOrchestrator
from sto_runner.models.config import OrchestratorConfig
from sto_runner.services.run_state import RunStateStore
from sto_runner.stop import StopStatus, request_stop
from sto_ui.console import ConsoleReporter, make_console
from sto_ui.presenters.summary import build_state_table

EXIT_USAGE = 2


@dataclass
class CLIContext:
    project_root: Optional[Path] = None


ctx_store = CLIContext()

app = typer.Typer(
    help="Run only the test steps affected by the current change, in catalog order.",
    no_args_is_help=True,
)


@app.callback(invoke_without_command=True)
def entry(
    ctx: typer.Context,
    project_root: Optional[Path] = typer.Option(
        None,
        "--project-root",
        "-C",
        help="Repository root; defaults to the current directory.",
    ),
) -> None:
    """Global entry point configuring logging and the project root."""
    configure_logging(force=True)
    ctx_store.project_root = project_root
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _load_config(reporter: ConsoleReporter, **overrides: object) -> OrchestratorConfig:
    try:
        return OrchestratorConfig.from_env(project_root=ctx_store.project_root, **overrides)
    except ValidationError as exc:
        reporter.present.error(f"Invalid configuration: {exc}")
        raise typer.Exit(EXIT_USAGE) from exc


@app.command("run")
def run(
    full: bool = typer.Option(
        False, "--full", help="Run the whole catalog, bypassing selection."
    ),
    base_ref: Optional[str] = typer.Option(
        None, "--base-ref", help="Git ref the change is computed against."
    ),
    skip_service: bool = typer.Option(
        False, "--skip-service", help="Never start the target service."
    ),
    catalog: Optional[Path] = typer.Option(
        None, "--catalog", help="JSON catalog replacing the built-in step list."
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable verbose debug logging."),
) -> None:
    """Select and run test steps; the exit code reflects the run outcome."""
    if debug:
        configure_logging(debug=True, force=True)
    reporter = ConsoleReporter(make_console())
    config = _load_config(
        reporter,
        full_run=True if full else None,
        base_ref=base_ref,
        skip_service=True if skip_service else None,
        catalog_file=catalog,
    )
    orchestrator = TestOrchestrator(config, reporter=reporter)
    try:
        outcome = orchestrator.run()
    except ConfigurationError as exc:
        reporter.present.error(str(exc))
        raise typer.Exit(EXIT_USAGE) from exc
    except STOError as exc:
        reporter.present.error(str(exc))
        raise typer.Exit(1) from exc
    raise typer.Exit(outcome.exit_code)


@app.command("select")
def select(
    full: bool = typer.Option(False, "--full", help="Select the whole catalog."),
    base_ref: Optional[str] = typer.Option(
        None, "--base-ref", help="Git ref the change is computed against."
    ),
    changed: Optional[List[str]] = typer.Option(
        None,
        "--changed",
        help="Changed file path; repeat to pass several. Skips git detection.",
    ),
    catalog: Optional[Path] = typer.Option(
        None, "--catalog", help="JSON catalog replacing the built-in step list."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the selection as JSON."),
) -> None:
    """Show which steps a run would execute, without running anything."""
    reporter = ConsoleReporter(make_console())
    config = _load_config(
        reporter,
        full_run=True if full else None,
        base_ref=base_ref,
        catalog_file=catalog,
    )
    orchestrator = TestOrchestrator(
        config,
        reporter=reporter,
        handle_signals=False,
        changed_files=changed or None,
    )
    try:
        selection = orchestrator.select()
    except ConfigurationError as exc:
        reporter.present.error(str(exc))
        raise typer.Exit(EXIT_USAGE) from exc

    if as_json:
        payload = selection.info.to_dict()
        payload["ci"] = config.ci
        payload["steps"] = [step.name for step in selection.steps]
        typer.echo(json.dumps(payload, indent=2))
        return
    reporter.show_selection(selection)


@app.command("stop")
def stop() -> None:
    """Ask an active run to stop after its current step."""
    reporter = ConsoleReporter(make_console())
    config = _load_config(reporter)
    result = request_stop(config)
    if result.status == StopStatus.FAILED:
        reporter.present.error(result.message)
        raise typer.Exit(1)
    if result.status == StopStatus.NO_ACTIVE_RUN:
        reporter.present.info(result.message)
        return
    reporter.present.success(result.message)


@app.command("status")
def status(
    clear: bool = typer.Option(
        False, "--clear", help="Delete the run state after printing it."
    ),
) -> None:
    """Print the state of the current or last unfinished run."""
    reporter = ConsoleReporter(make_console())
    config = _load_config(reporter)
    store = RunStateStore(config.state_file)
    state = store.load()
    if state is None:
        reporter.present.info("No run state found.")
        return
    reporter.console.print(build_state_table(state))
    if clear:
        outcome = store.clear()
        if not outcome.ok:
            reporter.present.error(f"Failed to remove {config.state_file}: {outcome.error}")
            raise typer.Exit(1)
        reporter.present.success(f"Removed {config.state_file}")


def main() -> None:
    """Console script entrypoint (Typer app)."""
    app()


if __name__ == "__main__":
    main()
