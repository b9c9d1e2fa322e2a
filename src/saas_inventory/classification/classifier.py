"""Classifier — pure mapping from a domain's merged signals to category and risk.

Three escalating tiers, first match wins:

    critical  domain or any permission in the critical tier
    high      domain or any permission in the high tier
    medium    domain in the medium tier, or more permissions than the threshold
    low       everything else

Presence in a higher tier always wins regardless of permission count. The
classifier has no state; the same inputs and table always give the same
Classification.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from saas_inventory.classification.table import ClassificationTable
from saas_inventory.models.application import Category, RiskLevel


@dataclass(frozen=True)
class Classification:
    category: Category
    risk_level: RiskLevel
    sensitivity_tags: frozenset[str]


def classify(
    domain: str,
    permissions: Iterable[str],
    data_types: Iterable[str],
    table: ClassificationTable,
) -> Classification:
    """Classify one domain from its merged permission and data-type sets."""
    permissions = frozenset(permissions)
    return Classification(
        category=table.category(domain),
        risk_level=_risk_level(domain, permissions, table),
        sensitivity_tags=table.sensitivity_tags(data_types),
    )


def _risk_level(
    domain: str, permissions: frozenset[str], table: ClassificationTable
) -> RiskLevel:
    if table.critical.matches(domain, permissions):
        return "critical"
    if table.high.matches(domain, permissions):
        return "high"
    if table.medium.matches(domain, permissions) or (
        len(permissions) > table.medium_permission_threshold
    ):
        return "medium"
    return "low"
