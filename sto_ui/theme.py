from __future__ import annotations

RICH_ACCENT = "blue"
RICH_BORDER_STYLE = RICH_ACCENT

RICH_STATUS_COLORS: dict[str, str] = {
    "failed": "red",
    "cancelled": "yellow",
    "interrupted": "yellow",
    "running": "yellow",
    "passed": "green",
    "done": "green",
    "pending": "dim",
    "skipped": "dim",
}

RICH_MODE_COLORS: dict[str, str] = {
    "full": "cyan",
    "last-failed-and-impacted": "magenta",
    "last-failed-only": "magenta",
    "impacted-only": "green",
    "smoke-only": "yellow",
    "fallback-full": "cyan",
    "empty": "dim",
}

PRESENTER_TEMPLATES: dict[str, str] = {
    "info": "[blue]ℹ[/blue] {message}",
    "warning": "[yellow]⚠ {message}[/yellow]",
    "error": "[red]✖ {message}[/red]",
    "success": "[green]✔ {message}[/green]",
}


def status_text(status: str) -> str:
    color = RICH_STATUS_COLORS.get(status)
    if not color:
        return status
    return f"[{color}]{status}[/{color}]"


def mode_text(mode: str) -> str:
    color = RICH_MODE_COLORS.get(mode)
    if not color:
        return mode
    return f"[{color}]{mode}[/{color}]"


def presenter_message(level: str, message: str) -> str:
    template = PRESENTER_TEMPLATES.get(level, "{message}")
    return template.format(message=message)
