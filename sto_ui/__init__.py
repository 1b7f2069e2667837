"""Terminal interface (typer CLI and rich output) for the test orchestrator."""
