"""GET /classification/status — report current classification table state."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from saas_inventory.api.dependencies import get_table_manager
from saas_inventory.classification.manager import ClassificationTableManager

router = APIRouter()


class ClassificationStatus(BaseModel):
    known_domain_count: int
    critical_domain_count: int
    high_domain_count: int
    medium_domain_count: int
    breached_domain_count: int


@router.get("/classification/status", response_model=ClassificationStatus)
def classification_status(
    manager: ClassificationTableManager = Depends(get_table_manager),
) -> ClassificationStatus:
    """Return item counts from the current classification table snapshot."""
    table = manager.current
    return ClassificationStatus(
        known_domain_count=table.domain_count,
        critical_domain_count=len(table.critical.domains),
        high_domain_count=len(table.high.domains),
        medium_domain_count=len(table.medium.domains),
        breached_domain_count=len(table.breached),
    )
