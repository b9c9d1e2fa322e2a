"""Scan models — request types, progress, dimension scores and the final ScanResult."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from saas_inventory.models.application import Inventory


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


ScanType = Literal["quick", "comprehensive", "compliance", "custom"]
ScanStatus = Literal["idle", "running", "completed", "failed"]
ScanStage = Literal["pending", "collect", "classify", "merge", "score", "recommend", "done"]
Grade = Literal["A+", "A", "A-", "B+", "B", "B-", "C+", "C", "C-", "D", "F"]


class DimensionScores(BaseModel):
    """The four organization-level sub-scores, each in [0, 100]."""

    model_config = ConfigDict(frozen=True)

    oauth_risk: float = Field(ge=0.0, le=100.0)
    data_exposure: float = Field(ge=0.0, le=100.0)
    compliance: float = Field(ge=0.0, le=100.0)
    access_control: float = Field(ge=0.0, le=100.0)

    def as_dict(self) -> dict[str, float]:
        return {
            "oauth_risk": self.oauth_risk,
            "data_exposure": self.data_exposure,
            "compliance": self.compliance,
            "access_control": self.access_control,
        }


class AppScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    domain: str
    score: int = Field(ge=0, le=100)


class ScanResult(BaseModel):
    """The sole externally consumed output of an orchestrated scan.

    Created once per scan and never mutated; a new scan produces a new result.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    subject_id: str
    scan_type: ScanType
    scope_description: str
    inventory: Inventory
    app_scores: tuple[AppScore, ...] = ()  # domain-ordered, one per application
    dimension_scores: DimensionScores
    composite_score: float = Field(ge=0.0, le=100.0)
    grade: Grade
    recommendations: tuple[str, ...] = ()
    critical_findings: tuple[str, ...] = ()
    sources_scanned: frozenset[str] = frozenset()
    partial_failures: frozenset[str] = frozenset()
    timestamp: datetime = Field(default_factory=_utcnow)


class ScanProgress(BaseModel):
    """Point-in-time view of a subject's scan state."""

    subject_id: str
    status: ScanStatus
    stage: ScanStage
    percent: int = Field(ge=0, le=100)
    last_outcome: Literal["completed", "failed"] | None = None
    last_finished_at: datetime | None = None
    cooldown_remaining_seconds: float = 0.0
