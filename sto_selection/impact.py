"""Heuristic mapping from changed files to impacted spec files.

Matching is name based only: a changed spec file maps to itself, any other
file maps to every spec whose file name shares a domain keyword or contains
one of the changed file's name tokens.
"""

from __future__ import annotations

import posixpath
import re
from typing import Iterable, Sequence

from sto_runner.models.config import DEFAULT_IMPACT_KEYWORDS
from sto_selection.spec_index import normalize_path

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")
MIN_TOKEN_LENGTH = 3


def tokenize_filename(filename: str) -> list[str]:
    """Split a lowercase file name into alphanumeric tokens of length >= 3."""
    return [
        token
        for token in _TOKEN_SPLIT.split(filename.lower())
        if len(token) >= MIN_TOKEN_LENGTH
    ]


def derive_impacted_specs(
    changed_files: Iterable[str],
    all_spec_paths: Sequence[str],
    keywords: Sequence[str] = DEFAULT_IMPACT_KEYWORDS,
) -> set[str]:
    """Return the spec paths judged relevant to ``changed_files``.

    An empty change list impacts nothing.
    """
    impacted: set[str] = set()
    known_specs = set(all_spec_paths)
    spec_bases = [
        (spec_path, posixpath.basename(spec_path).lower()) for spec_path in all_spec_paths
    ]

    for raw_changed in changed_files:
        if not isinstance(raw_changed, str) or not raw_changed.strip():
            continue
        changed = normalize_path(raw_changed.strip())

        if changed in known_specs:
            impacted.add(changed)
            continue

        changed_base = posixpath.basename(changed).lower()
        tokens = tokenize_filename(changed_base)
        if not tokens:
            continue
        changed_keywords = [kw for kw in keywords if kw in changed_base]

        for spec_path, spec_base in spec_bases:
            strong = any(kw in spec_base for kw in changed_keywords)
            if strong or any(token in spec_base for token in tokens):
                impacted.add(spec_path)

    return impacted
