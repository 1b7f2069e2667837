"""Step definitions and catalog file loading."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sto_common.errors import ConfigurationError


@dataclass(frozen=True)
class Step:
    """One named, independently invocable unit of the test catalog."""

    name: str
    command: str
    args: tuple[str, ...] = field(default_factory=tuple)
    working_dir: Path = field(default_factory=Path.cwd)

    def __post_init__(self) -> None:
        # Accept any sequence for args but store an immutable tuple.
        object.__setattr__(self, "args", tuple(self.args))
        object.__setattr__(self, "working_dir", Path(self.working_dir))

    @property
    def command_line(self) -> str:
        return " ".join([self.command, *self.args])


class StepEntry(BaseModel):
    """Serialized catalog entry as stored in a catalog JSON file."""

    name: str = Field(description="Display name of the step")
    command: str = Field(description="Executable to spawn")
    args: list[str] = Field(default_factory=list, description="Argument vector")
    working_dir: str | None = Field(
        default=None,
        alias="workingDir",
        description="Working directory; relative paths resolve against the project root",
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("name", "command")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must be non-empty")
        return value

    def to_step(self, project_root: Path) -> Step:
        working_dir = project_root
        if self.working_dir:
            candidate = Path(self.working_dir)
            working_dir = candidate if candidate.is_absolute() else project_root / candidate
        return Step(
            name=self.name,
            command=self.command,
            args=tuple(self.args),
            working_dir=working_dir,
        )


def parse_catalog(entries: Sequence[Any], project_root: Path) -> list[Step]:
    """Validate raw catalog entries and build Step objects in order."""
    steps: list[Step] = []
    for position, raw in enumerate(entries):
        try:
            entry = StepEntry.model_validate(raw)
        except ValidationError as exc:
            raise ConfigurationError(
                "Invalid catalog entry",
                context={"position": position, "errors": exc.errors(include_url=False)},
                cause=exc,
            ) from exc
        steps.append(entry.to_step(project_root))
    return steps


def load_catalog_file(path: Path, project_root: Path) -> list[Step]:
    """Load an ordered step catalog from a JSON array file."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigurationError(
            "Unable to read catalog file", context={"path": path}, cause=exc
        ) from exc
    if not isinstance(raw, list):
        raise ConfigurationError(
            "Catalog file must contain a JSON array", context={"path": path}
        )
    return parse_catalog(raw, project_root)
