"""POST /ingest/browser-report/{subject_id} — receive a browser extension report."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from saas_inventory.api.dependencies import get_report_source, get_subjects
from saas_inventory.connectors.browser import BrowserReport, InMemoryReportSource
from saas_inventory.subjects import SubjectDirectory

router = APIRouter()


class IngestResponse(BaseModel):
    subject_id: str
    visited_hosts: int
    cookies: int
    script_urls: int
    oauth_buttons: int


@router.post("/ingest/browser-report/{subject_id}", response_model=IngestResponse)
async def ingest_browser_report(
    subject_id: str,
    report: BrowserReport,
    subjects: SubjectDirectory = Depends(get_subjects),
    reports: InMemoryReportSource = Depends(get_report_source),
) -> IngestResponse:
    """Store the latest report; the browser connector reads it on the next scan."""
    if subjects.get(subject_id) is None:
        raise HTTPException(
            status_code=404,
            detail={"error": "SUBJECT_NOT_FOUND", "message": f"Unknown subject: {subject_id}"},
        )
    reports.submit(subject_id, report)
    return IngestResponse(
        subject_id=subject_id,
        visited_hosts=len(report.visited_hosts),
        cookies=len(report.cookies),
        script_urls=len(report.script_urls),
        oauth_buttons=len(report.oauth_buttons),
    )
