"""Recommendation and critical-finding generation.

Rules run in a fixed priority order; each contributes at most one string and
only when its count is non-zero. A fixed tail of general best practices is
always appended, so output is stable for a given inventory.
"""

from __future__ import annotations

from collections.abc import Callable, Collection
from dataclasses import dataclass
from datetime import datetime

from saas_inventory.config import ScoringConfig
from saas_inventory.models.application import Application, Inventory
from saas_inventory.scoring.dimensions import inactive_applications

BEST_PRACTICES: tuple[str, ...] = (
    "Deploy organization-wide SSO and MFA policies",
    "Establish regular vendor risk assessment process",
    "Create incident response plan for third-party breaches",
)


def _lacks_dpa(app: Application) -> bool:
    return app.shares_data_with_third_parties and not app.has_dpa


@dataclass(frozen=True)
class Rule:
    name: str
    matches: Callable[[Application], bool]
    message: Callable[[int], str]


RULES: tuple[Rule, ...] = (
    Rule(
        "breached",
        lambda app: app.has_known_breach,
        lambda n: f"Immediately review {n} applications with known data breaches",
    ),
    Rule(
        "weak_passwords",
        lambda app: app.password_strength_estimate == "weak",
        lambda n: f"Enforce strong password policy for {n} accounts",
    ),
    Rule(
        "high_risk",
        lambda app: app.is_high_risk,
        lambda n: f"Conduct security review for {n} high-risk applications",
    ),
    Rule(
        "missing_dpa",
        _lacks_dpa,
        lambda n: f"Establish Data Processing Agreements with {n} vendors",
    ),
)

# Runs after the inactive-accounts rule.
BUSINESS_CRITICAL = Rule(
    "business_critical",
    lambda app: app.business_critical,
    lambda n: f"Implement enhanced monitoring for {n} business-critical applications",
)


def generate_recommendations(
    inventory: Inventory,
    config: ScoringConfig,
    as_of: datetime,
    partial_failures: Collection[str] = (),
) -> list[str]:
    """Return recommendations, highest priority first."""
    recommendations: list[str] = []
    apps = inventory.applications

    for rule in RULES:
        count = sum(1 for app in apps if rule.matches(app))
        if count > 0:
            recommendations.append(rule.message(count))

    inactive = len(inactive_applications(inventory, config, as_of))
    if inactive > 0:
        recommendations.append(
            f"Revoke access for {inactive} accounts inactive for over "
            f"{config.inactive_after_days} days"
        )

    critical = sum(1 for app in apps if BUSINESS_CRITICAL.matches(app))
    if critical > 0:
        recommendations.append(BUSINESS_CRITICAL.message(critical))

    if partial_failures:
        recommendations.append(
            f"Re-run the scan: {len(partial_failures)} sources could not be scanned "
            f"({', '.join(sorted(partial_failures))})"
        )

    recommendations.extend(BEST_PRACTICES)
    return recommendations


def generate_critical_findings(inventory: Inventory) -> list[str]:
    findings: list[str] = []
    apps = inventory.applications

    critical = sum(1 for app in apps if app.risk_level == "critical")
    breached = sum(1 for app in apps if app.has_known_breach)
    missing_dpa = sum(1 for app in apps if _lacks_dpa(app))

    if critical > 0:
        findings.append(f"{critical} CRITICAL risk applications require immediate attention")
    if breached > 0:
        findings.append(f"{breached} applications have known data breaches")
    if missing_dpa > 0:
        findings.append(f"{missing_dpa} vendors lack Data Processing Agreements")
    return findings
