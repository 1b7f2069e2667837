"""Map catalog steps to the spec file each one targets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from sto_runner.models.step import Step

DEFAULT_TEST_ROOT = "tests/"
DEFAULT_SPEC_SUFFIX = ".spec.js"


def normalize_path(path: str) -> str:
    """Normalise path separators to forward slashes."""
    return path.replace("\\", "/")


def is_spec_path(
    path: str,
    test_root: str = DEFAULT_TEST_ROOT,
    spec_suffix: str = DEFAULT_SPEC_SUFFIX,
) -> bool:
    normalized = normalize_path(path)
    return normalized.startswith(test_root) and normalized.endswith(spec_suffix)


def get_spec_path_from_step(
    step: Step,
    test_root: str = DEFAULT_TEST_ROOT,
    spec_suffix: str = DEFAULT_SPEC_SUFFIX,
) -> str | None:
    """Return the single spec argument of ``step``, or None.

    Steps with no spec argument, or with several, have no associated spec.
    """
    matches = [
        normalize_path(arg)
        for arg in step.args
        if isinstance(arg, str) and is_spec_path(arg, test_root, spec_suffix)
    ]
    if len(matches) != 1:
        return None
    return matches[0]


@dataclass(frozen=True)
class SpecIndex:
    """Spec path -> catalog positions, ordered by first encounter."""

    spec_to_positions: dict[str, tuple[int, ...]] = field(default_factory=dict)
    all_spec_paths: tuple[str, ...] = ()

    def __contains__(self, spec_path: object) -> bool:
        return spec_path in self.spec_to_positions

    def first_position(self, spec_path: str) -> int | None:
        positions = self.spec_to_positions.get(spec_path)
        if not positions:
            return None
        return positions[0]


def build_spec_index(
    steps: Sequence[Step],
    test_root: str = DEFAULT_TEST_ROOT,
    spec_suffix: str = DEFAULT_SPEC_SUFFIX,
) -> SpecIndex:
    """Build the spec index for a catalog. Pure; no side effects."""
    positions: dict[str, list[int]] = {}
    ordered: list[str] = []
    for position, step in enumerate(steps):
        spec_path = get_spec_path_from_step(step, test_root, spec_suffix)
        if spec_path is None:
            continue
        if spec_path not in positions:
            positions[spec_path] = []
            ordered.append(spec_path)
        positions[spec_path].append(position)
    return SpecIndex(
        spec_to_positions={spec: tuple(pos) for spec, pos in positions.items()},
        all_spec_paths=tuple(ordered),
    )
