"""Scan routes — POST /scans/{subject_id}, GET /scans/{subject_id}/status."""

from __future__ import annotations

import math

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from saas_inventory.api.dependencies import get_orchestrator
from saas_inventory.errors import (
    InvalidScanRequest,
    InventoryError,
    ScanCooldown,
    ScanInProgress,
    SubjectNotFound,
    SystemBusy,
)
from saas_inventory.models.scan import ScanProgress, ScanResult, ScanType
from saas_inventory.orchestrator import ScanOrchestrator

router = APIRouter()

_STATUS_BY_ERROR: list[tuple[type[InventoryError], int]] = [
    (SubjectNotFound, 404),
    (ScanInProgress, 409),
    (ScanCooldown, 429),
    (SystemBusy, 503),
    (InvalidScanRequest, 422),
]


class ScanRequest(BaseModel):
    scan_type: ScanType = "comprehensive"
    sources: list[str] | None = None


def _to_http(exc: InventoryError) -> HTTPException:
    status = next((code for kind, code in _STATUS_BY_ERROR if isinstance(exc, kind)), 500)
    headers = None
    if isinstance(exc, ScanCooldown):
        headers = {"Retry-After": str(math.ceil(exc.retry_after))}
    return HTTPException(
        status_code=status,
        detail={"error": exc.code, "message": str(exc)},
        headers=headers,
    )


@router.post("/scans/{subject_id}", response_model=ScanResult)
async def request_scan(
    subject_id: str,
    body: ScanRequest,
    orchestrator: ScanOrchestrator = Depends(get_orchestrator),
) -> ScanResult:
    """Run a scan for the subject and return its result."""
    try:
        return await orchestrator.request_scan(
            subject_id, scan_type=body.scan_type, sources=body.sources
        )
    except InventoryError as exc:
        raise _to_http(exc) from exc


@router.get("/scans/{subject_id}/status", response_model=ScanProgress)
def scan_status(
    subject_id: str,
    orchestrator: ScanOrchestrator = Depends(get_orchestrator),
) -> ScanProgress:
    try:
        return orchestrator.get_status(subject_id)
    except SubjectNotFound as exc:
        raise _to_http(exc) from exc
