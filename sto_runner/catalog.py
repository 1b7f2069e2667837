"""Built-in ordered step catalog for the reporting app test suite."""

from __future__ import annotations

import logging
from pathlib import Path

from sto_runner.models.config import OrchestratorConfig
from sto_runner.models.step import Step, load_catalog_file

logger = logging.getLogger(__name__)

PLAYWRIGHT_FLAGS = ("--reporter=list", "--headed", "--max-failures=1", "--workers=1")

# (display name, spec file) in execution order.
_BROWSER_SPECS: list[tuple[str, str]] = [
    ("Run Four Projects Q4 Data Validation Test", "Jira-Reporting-App-Four-Projects-Q4-Data-Validation-Tests"),
    ("Run API Integration Tests", "Jira-Reporting-App-API-Integration-Tests"),
    ("Run Server Errors and Export Validation Tests", "Jira-Reporting-App-Server-Errors-And-Export-Validation-Tests"),
    ("Run UX Trust and Export Validation Tests", "Jira-Reporting-App-UX-Trust-And-Export-Validation-Tests"),
    ("Run Login Security Deploy Validation Tests", "VodaAgileBoard-Login-Security-Deploy-Validation-Tests"),
    ("Run E2E User Journey Tests", "Jira-Reporting-App-E2E-User-Journey-Tests"),
    ("Run UX Reliability Tests", "Jira-Reporting-App-UX-Reliability-Fixes-Tests"),
    ("Run UX Critical Fixes Tests", "Jira-Reporting-App-UX-Critical-Fixes-Tests"),
    ("Run UX Improvements Customer Simplicity Trust Validation Tests", "Jira-Reporting-App-UX-Improvements-Customer-Simplicity-Trust-Validation-Tests"),
    ("Run Customer Simplicity Trust Phase2 Validation Tests", "Jira-Reporting-App-Customer-Simplicity-Trust-Phase2-Validation-Tests"),
    ("Run UX Outcome-First Validation Tests", "Jira-Reporting-App-UX-Outcome-First-Validation-Tests"),
    ("Run UX Outcome-First No-Click-Hidden Validation Tests", "Jira-Reporting-App-UX-Outcome-First-No-Click-Hidden-Validation-Tests"),
    ("Run UX SoC Duplication Refactor Validation Tests", "Jira-Reporting-App-UX-SoC-Duplication-Refactor-Validation-Tests"),
    ("Run UX Customer Simplicity Trust Full Validation Tests", "Jira-Reporting-App-UX-Customer-Simplicity-Trust-Full-Validation-Tests"),
    ("Run Feedback & Date Display Tests", "Jira-Reporting-App-Feedback-UX-Tests"),
    ("Run CSV Export Fallback Test", "Jira-Reporting-App-CSV-Export-Fallback"),
    ("Run Date Window Ordering Test", "Jira-Reporting-App-DateWindow-Ordering"),
    ("Run Throughput Merge Test", "Jira-Reporting-App-Throughput-Merge"),
    ("Run Epic Key Link Tests", "Jira-Reporting-App-EpicKeyLinks"),
    ("Run Preview Retry Test", "Jira-Reporting-App-Preview-Retry"),
    ("Run Preview Timeout and Error UI Validation Tests", "Jira-Reporting-App-Preview-Timeout-Error-UI-Validation-Tests"),
    ("Run Server Feedback Endpoint Test", "Server-Feedback-Endpoint"),
    ("Run Column Titles & Tooltips Tests", "Jira-Reporting-App-Column-Tooltip-Tests"),
    ("Run Validation Plan Tests", "Jira-Reporting-App-Validation-Plan-Tests"),
    ("Run Excel Export Tests", "Jira-Reporting-App-Excel-Export-Tests"),
    ("Run Refactor SSOT Validation Tests", "Jira-Reporting-App-Refactor-SSOT-Validation-Tests"),
    ("Run Boards Summary Filters Export Validation Tests", "Jira-Reporting-App-Boards-Summary-Filters-Export-Validation-Tests"),
    ("Run Current Sprint and Leadership View Tests", "Jira-Reporting-App-Current-Sprint-Leadership-View-Tests"),
    ("Run Current Sprint UX and SSOT Validation Tests", "Jira-Reporting-App-Current-Sprint-UX-SSOT-Validation-Tests"),
    ("Run Cross-Page Persistence Validation Tests", "Jira-Reporting-App-Cross-Page-Persistence-Validation-Tests"),
    ("Run Linkification and Empty-state UI Validation Tests", "Jira-Reporting-App-Linkification-EmptyState-UI-Validation-Tests"),
    ("Run Vodacom Quarters SSOT Sprint Order Validation Tests", "Jira-Reporting-App-Vodacom-Quarters-SSOT-Sprint-Order-Validation-Tests"),
    ("Run Mobile Responsive UX Validation Tests", "Jira-Reporting-App-Mobile-Responsive-UX-Validation-Tests"),
    ("Run General Performance Quarters UI Validation Tests", "Jira-Reporting-App-General-Performance-Quarters-UI-Validation-Tests"),
]


def browser_step(name: str, spec_path: str, project_root: Path) -> Step:
    """Build a Playwright step targeting a single spec file."""
    return Step(
        name=name,
        command="npx",
        args=("playwright", "test", spec_path, *PLAYWRIGHT_FLAGS),
        working_dir=project_root,
    )


def default_catalog(project_root: Path) -> list[Step]:
    """Return the built-in ordered catalog rooted at ``project_root``."""
    steps = [Step(name="Install Dependencies", command="npm", args=("install",), working_dir=project_root)]
    steps.extend(
        browser_step(name, f"tests/{spec}.spec.js", project_root)
        for name, spec in _BROWSER_SPECS
    )
    return steps


def load_catalog(config: OrchestratorConfig) -> list[Step]:
    """Return the configured catalog: a JSON catalog file or the built-in list."""
    if config.catalog_file is not None:
        steps = load_catalog_file(config.catalog_file, config.project_root)
        logger.info("Loaded %d steps from %s", len(steps), config.catalog_file)
        return steps
    return default_catalog(config.project_root)
