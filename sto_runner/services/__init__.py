"""File-backed and environment services used by the orchestration engine."""
