"""Changed-file detection through git.

Failures here never abort a run: a broken diff falls back to the working
tree status, and a broken status yields no signal at all.
"""

from __future__ import annotations

import logging
import posixpath
import subprocess
from pathlib import Path
from typing import Callable, Sequence

from sto_runner.models.config import DEFAULT_IGNORED_CHANGED_FILES

logger = logging.getLogger(__name__)

CommandRunner = Callable[..., subprocess.CompletedProcess]


def parse_diff_output(output: str) -> list[str]:
    """Return the non-blank, trimmed lines of ``git diff --name-only``."""
    return [line.strip() for line in output.splitlines() if line.strip()]


def parse_status_output(output: str) -> list[str]:
    """Return paths from ``git status --porcelain`` output.

    Renames (``R  old -> new``) report the new path.
    """
    paths: list[str] = []
    for line in output.splitlines():
        if len(line) < 4 or not line.strip():
            continue
        path = line[3:].strip()
        if " -> " in path:
            path = path.split(" -> ", 1)[1].strip()
        path = path.strip('"')
        if path:
            paths.append(path)
    return paths


class ChangeDetector:
    """Resolve the files changed relative to a base reference."""

    def __init__(
        self,
        project_root: Path,
        base_ref: str = "origin/main",
        *,
        ignored_files: Sequence[str] = DEFAULT_IGNORED_CHANGED_FILES,
        runner: CommandRunner = subprocess.run,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.project_root = project_root
        self.base_ref = base_ref
        self._ignored = {name.lower() for name in ignored_files}
        self._runner = runner
        self._timeout = timeout_seconds

    def detect(self) -> list[str]:
        """Return changed paths; an empty list means no signal."""
        diff = self._git("diff", "--name-only", self.base_ref)
        if diff is not None:
            return self._filter(parse_diff_output(diff))

        logger.info(
            "git diff against %s unavailable; falling back to working tree status",
            self.base_ref,
        )
        status = self._git("status", "--porcelain")
        if status is not None:
            return self._filter(parse_status_output(status))

        logger.warning("Unable to detect changed files; continuing without change signal")
        return []

    def _filter(self, paths: list[str]) -> list[str]:
        return [
            path
            for path in paths
            if posixpath.basename(path.replace("\\", "/")).lower() not in self._ignored
        ]

    def _git(self, *args: str) -> str | None:
        cmd = ["git", *args]
        try:
            completed = self._runner(
                cmd,
                cwd=self.project_root,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("Command %s failed to run: %s", " ".join(cmd), exc)
            return None
        if completed.returncode != 0:
            logger.debug(
                "Command %s exited with %s: %s",
                " ".join(cmd),
                completed.returncode,
                (completed.stderr or "").strip(),
            )
            return None
        return completed.stdout or ""
