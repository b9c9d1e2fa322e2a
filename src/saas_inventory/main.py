"""FastAPI application factory with lifespan startup/shutdown."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from saas_inventory.api.routes import classification, health, ingest, scans
from saas_inventory.classification.manager import ClassificationTableManager
from saas_inventory.config import load_config
from saas_inventory.connectors.browser import BrowserConnector, InMemoryReportSource
from saas_inventory.connectors.workspace import StubWorkspaceClient, WorkspaceConnector
from saas_inventory.orchestrator import ScanOrchestrator
from saas_inventory.subjects import InMemorySubjectDirectory, Subject


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create shared resources on startup; close them on shutdown."""
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    config = load_config()

    table_manager = ClassificationTableManager(config.classification)
    table_manager.load_sync()
    await table_manager.start_refresh_loop()

    # Stub subject wiring: replace with the real credential/connection store.
    browser_reports = InMemoryReportSource()
    subjects = InMemorySubjectDirectory(
        [
            Subject(
                subject_id="default_org",
                connectors=[
                    WorkspaceConnector(StubWorkspaceClient()),
                    BrowserConnector(browser_reports),
                ],
            )
        ]
    )

    orchestrator = ScanOrchestrator(subjects, table_manager, config)

    # Attach to app.state so dependency providers can access them
    app.state.config = config
    app.state.table_manager = table_manager
    app.state.browser_reports = browser_reports
    app.state.subjects = subjects
    app.state.orchestrator = orchestrator

    yield

    await table_manager.stop()


def create_app() -> FastAPI:
    app = FastAPI(
        title="SaaS Inventory Scanner",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(health.router)
    app.include_router(scans.router)
    app.include_router(ingest.router)
    app.include_router(classification.router)
    return app


app = create_app()
