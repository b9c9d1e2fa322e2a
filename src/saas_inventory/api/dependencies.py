"""FastAPI dependency providers.

All shared resources (config, table manager, orchestrator) are attached to
app.state at startup and retrieved here via Request injection.
"""

from __future__ import annotations

from fastapi import Request

from saas_inventory.classification.manager import ClassificationTableManager
from saas_inventory.connectors.browser import InMemoryReportSource
from saas_inventory.orchestrator import ScanOrchestrator
from saas_inventory.subjects import SubjectDirectory


def get_orchestrator(request: Request) -> ScanOrchestrator:
    return request.app.state.orchestrator  # type: ignore[no-any-return]


def get_table_manager(request: Request) -> ClassificationTableManager:
    return request.app.state.table_manager  # type: ignore[no-any-return]


def get_subjects(request: Request) -> SubjectDirectory:
    return request.app.state.subjects  # type: ignore[no-any-return]


def get_report_source(request: Request) -> InMemoryReportSource:
    return request.app.state.browser_reports  # type: ignore[no-any-return]
