"""Shared error taxonomy for selective-test-orchestrator."""

from __future__ import annotations

from typing import Any, Mapping


def _normalize_context_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return normalize_context(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_context_value(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def normalize_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """Return a JSON-friendly copy of an error context mapping."""
    return {key: _normalize_context_value(val) for key, val in context.items()}


class STOError(Exception):
    """Base error type for typed failure handling."""

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.context = normalize_context(context or {})
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.error_type, "message": str(self), "context": self.context}


class StepExecutionError(STOError):
    """A step exited non-zero or could not be spawned."""

    @property
    def step_name(self) -> str | None:
        return self.context.get("step")

    @property
    def exit_code(self) -> int | None:
        return self.context.get("exit_code")


class ServiceUnavailableError(STOError):
    """The managed target service could not be reached before running steps."""


class PersistenceError(STOError):
    """Failure reading or writing an orchestration state file."""


class ConfigurationError(STOError):
    """Failure due to invalid configuration or catalog input."""


class RunInterrupted(STOError):
    """Raised from a signal handler to unwind the run loop."""

    def __init__(self, signum: int, exit_code: int) -> None:
        super().__init__(
            f"Run interrupted by signal {signum}",
            context={"signum": signum, "exit_code": exit_code},
        )
        self.signum = signum
        self.exit_code = exit_code

