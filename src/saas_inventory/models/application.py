"""Application and Inventory models — the deduplicated output of one scan.

One Application exists per normalized domain. ``permissions``,
``data_types`` and ``source_ids`` are the union of every contributing
observation; ``last_observed_at`` is the maximum timestamp seen.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

Category = Literal[
    "productivity",
    "communication",
    "development",
    "marketing",
    "finance",
    "hr",
    "security",
    "other",
]
RiskLevel = Literal["low", "medium", "high", "critical"]
PasswordStrength = Literal["weak", "medium", "strong", "unknown"]
ComplianceFramework = Literal["GDPR", "CCPA", "HIPAA", "SOX"]


class Application(BaseModel):
    """A canonical third-party application, keyed by domain."""

    model_config = ConfigDict(frozen=True)

    domain: str
    display_name: str
    category: Category = "other"
    risk_level: RiskLevel = "low"
    permissions: frozenset[str] = frozenset()
    data_types: frozenset[str] = frozenset()
    sensitivity_tags: frozenset[str] = frozenset()  # financial / personal / medical / legal
    has_known_breach: bool = False
    shares_data_with_third_parties: bool = False
    has_dpa: bool = False  # data processing agreement on file
    business_critical: bool = False
    compliance_impact: frozenset[ComplianceFramework] = frozenset({"GDPR"})
    password_strength_estimate: PasswordStrength = "unknown"
    last_observed_at: datetime
    source_ids: frozenset[str] = Field(min_length=1)

    @property
    def is_clean(self) -> bool:
        """Neither breached nor sharing data with third parties."""
        return not (self.has_known_breach or self.shares_data_with_third_parties)

    @property
    def is_high_risk(self) -> bool:
        return self.risk_level in ("high", "critical")


class Inventory(BaseModel):
    """Immutable, domain-ordered set of Applications produced by one scan."""

    model_config = ConfigDict(frozen=True)

    applications: tuple[Application, ...] = ()

    @model_validator(mode="after")
    def _ordered_by_domain(self) -> Inventory:
        domains = [app.domain for app in self.applications]
        if domains != sorted(domains):
            raise ValueError("applications must be ordered by domain")
        if len(domains) != len(set(domains)):
            raise ValueError("applications must have unique domains")
        return self

    def __len__(self) -> int:
        return len(self.applications)

    def domains(self) -> list[str]:
        return [app.domain for app in self.applications]
