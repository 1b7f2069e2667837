"""Orchestrator configuration (canonical runner definition)."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Mapping, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator, model_validator

from sto_common.config.env import (
    parse_bool_env,
    parse_float_env,
    parse_int_env,
    parse_list_env,
)

DEFAULT_STATE_DIR = "scripts"
DEFAULT_STATE_FILE = "test-orchestration-state.json"
DEFAULT_CANCEL_FILE = "test-orchestration-cancel.json"
DEFAULT_LAST_FAILED_FILE = "test-orchestration-last-failed.json"

DEFAULT_IMPACT_KEYWORDS = [
    "preview",
    "current",
    "sprint",
    "leadership",
    "export",
    "excel",
    "csv",
    "feedback",
    "api",
    "e2e",
    "mobile",
    "responsive",
    "navigation",
    "quarters",
    "ssot",
    "trust",
    "velocity",
]

DEFAULT_SMOKE_SPECS = [
    "tests/Jira-Reporting-App-API-Integration-Tests.spec.js",
    "tests/Jira-Reporting-App-E2E-User-Journey-Tests.spec.js",
]

DEFAULT_IGNORED_CHANGED_FILES = [
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "npm-shrinkwrap.json",
]

RETRY_LAST_FAILED_ENV = "STO_RETRY_LAST_FAILED"


class OrchestratorConfig(BaseModel):
    """Settings for a selective orchestration run."""

    project_root: Path = Field(default_factory=Path.cwd, description="Repository root")
    state_file: Optional[Path] = Field(default=None, description="Run state JSON path")
    cancel_file: Optional[Path] = Field(default=None, description="Cancel flag JSON path")
    last_failed_file: Optional[Path] = Field(
        default=None, description="Last-failed spec list JSON path"
    )
    catalog_file: Optional[Path] = Field(
        default=None, description="Optional JSON catalog replacing the built-in one"
    )

    full_run: bool = Field(default=False, description="Bypass selection and run every step")
    retry_last_failed: bool = Field(
        default=True,
        description="Retarget browser-test steps to previously failed cases",
    )
    base_ref: str = Field(default="origin/main", description="Base ref for change detection")
    ci: bool = Field(default=False, description="Running under a CI system")

    skip_service: bool = Field(default=False, description="Never start the target service")
    base_url: str = Field(default="http://localhost:3000", description="Target service URL")
    port: Optional[int] = Field(default=None, gt=0, lt=65536, description="Target service port")
    service_command: List[str] = Field(
        default_factory=lambda: ["npm", "run", "start"],
        description="Command that starts the target service",
    )
    service_warmup_seconds: float = Field(default=5.0, ge=0)
    service_stop_grace_seconds: float = Field(default=5.0, ge=0)
    probe_timeout_seconds: float = Field(default=1.0, gt=0)

    cache_clear_path: str = Field(default="/api/test/clear-cache")
    prime_attempts: int = Field(default=3, ge=1)
    prime_timeout_seconds: float = Field(default=5.0, gt=0)
    prime_backoff_seconds: float = Field(default=1.0, ge=0)

    test_root: str = Field(default="tests/", description="Prefix of spec file arguments")
    spec_suffix: str = Field(default=".spec.js", description="Suffix of spec file arguments")
    smoke_specs: List[str] = Field(default_factory=lambda: list(DEFAULT_SMOKE_SPECS))
    impact_keywords: List[str] = Field(default_factory=lambda: list(DEFAULT_IMPACT_KEYWORDS))
    ignored_changed_files: List[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORED_CHANGED_FILES)
    )
    browser_runner_names: List[str] = Field(default_factory=lambda: ["playwright"])
    child_stop_grace_seconds: float = Field(default=5.0, ge=0)

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(f"base_url must be an http(s) URL, got: {value}")
        return value.rstrip("/")

    @field_validator("impact_keywords")
    @classmethod
    def _lowercase_keywords(cls, value: List[str]) -> List[str]:
        return [kw.lower() for kw in value if kw.strip()]

    @model_validator(mode="after")
    def _resolve_paths(self) -> "OrchestratorConfig":
        state_dir = self.project_root / DEFAULT_STATE_DIR
        if self.state_file is None:
            self.state_file = state_dir / DEFAULT_STATE_FILE
        if self.cancel_file is None:
            self.cancel_file = state_dir / DEFAULT_CANCEL_FILE
        if self.last_failed_file is None:
            self.last_failed_file = state_dir / DEFAULT_LAST_FAILED_FILE
        if self.catalog_file is not None and not self.catalog_file.is_absolute():
            self.catalog_file = self.project_root / self.catalog_file
        if self.port is None:
            parsed = urlparse(self.base_url)
            self.port = parsed.port or (443 if parsed.scheme == "https" else 80)
        return self

    @property
    def service_host(self) -> str:
        return urlparse(self.base_url).hostname or "localhost"

    @property
    def cache_clear_url(self) -> str:
        return f"{self.base_url}{self.cache_clear_path}"

    @classmethod
    def from_env(
        cls,
        project_root: Path | None = None,
        environ: Mapping[str, str] | None = None,
        **overrides: object,
    ) -> "OrchestratorConfig":
        """Build a config from environment variables plus explicit overrides."""
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        if project_root is not None:
            values["project_root"] = project_root

        if parse_bool_env(env.get("STO_FULL_RUN")):
            values["full_run"] = True
        if parse_bool_env(env.get("STO_NO_RETRY_LAST_FAILED")):
            values["retry_last_failed"] = False
        if env.get("STO_BASE_REF"):
            values["base_ref"] = env["STO_BASE_REF"]
        if parse_bool_env(env.get("SKIP_WEBSERVER")):
            values["skip_service"] = True
        if env.get("BASE_URL"):
            values["base_url"] = env["BASE_URL"]
        port = parse_int_env(env.get("PORT"))
        if port is not None:
            values["port"] = port
        if parse_bool_env(env.get("CI")):
            values["ci"] = True
        warmup = parse_float_env(env.get("STO_SERVICE_WARMUP_SECONDS"))
        if warmup is not None:
            values["service_warmup_seconds"] = warmup
        if env.get("STO_CATALOG_FILE"):
            values["catalog_file"] = Path(env["STO_CATALOG_FILE"])
        smoke = parse_list_env(env.get("STO_SMOKE_SPECS"))
        if smoke:
            values["smoke_specs"] = smoke

        values.update({key: val for key, val in overrides.items() if val is not None})
        return cls.model_validate(values)
