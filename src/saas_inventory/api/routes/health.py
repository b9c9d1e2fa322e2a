"""GET /health — liveness check."""

from __future__ import annotations

from fastapi import APIRouter, Request

from saas_inventory.errors import ConfigurationError

router = APIRouter()


@router.get("/health")
async def health(request: Request) -> dict:  # type: ignore[type-arg]
    try:
        request.app.state.table_manager.current
        table_status = "loaded"
    except ConfigurationError:
        table_status = "unavailable"

    return {"status": "ok", "classification_table": table_status}
