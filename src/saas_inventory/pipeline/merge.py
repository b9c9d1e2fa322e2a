"""Deduplicator/Merger — folds raw observations from every connector into one Inventory.

Observations are keyed by normalized domain (lower-cased, scheme, path,
port and a leading ``www.`` stripped). Per domain:

    permissions / data_types / source_ids  union of all observations
    last_observed_at                       max timestamp seen

Classification runs once per domain on the *merged* sets, so two low-signal
sources can together cross a risk threshold. Every step is a set union or a
max, so the result does not depend on observation order.

The work is split into the three orchestrator stages:
    group_observations  → per-domain DomainSignals        (classify stage input)
    classify_signals    → per-domain Classification       (classify stage)
    build_inventory     → Inventory, invariant-checked    (merge stage)
``merge`` runs all three.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from urllib.parse import urlsplit

from saas_inventory.classification.classifier import Classification, classify
from saas_inventory.classification.table import ClassificationTable
from saas_inventory.errors import InternalInvariantViolation
from saas_inventory.models.application import Application, Inventory
from saas_inventory.models.observation import RawObservation


def normalize_domain(raw: str) -> str:
    """``HTTPS://www.Slack.com:443/apps`` → ``slack.com``. Returns "" if nothing usable."""
    value = raw.strip().lower()
    if "//" not in value:
        value = "//" + value
    try:
        host = urlsplit(value).hostname or ""
    except ValueError:
        # e.g. an unbalanced "[" is parsed as a broken IPv6 literal
        return ""
    host = host.rstrip(".")
    if host.startswith("www."):
        host = host[len("www."):]
    return host


@dataclass
class DomainSignals:
    """Accumulated signals for one domain."""

    domain: str
    permissions: set[str] = field(default_factory=set)
    data_types: set[str] = field(default_factory=set)
    source_ids: set[str] = field(default_factory=set)
    last_observed_at: datetime | None = None

    def absorb(self, observation: RawObservation) -> None:
        self.permissions |= observation.raw_permissions
        self.data_types |= observation.raw_data_types
        self.source_ids.add(observation.source_id)
        if self.last_observed_at is None or observation.observed_at > self.last_observed_at:
            self.last_observed_at = observation.observed_at


def group_observations(observations: Iterable[RawObservation]) -> dict[str, DomainSignals]:
    """Single pass keyed by normalized domain. Unusable domains are dropped."""
    grouped: dict[str, DomainSignals] = {}
    for observation in observations:
        domain = normalize_domain(observation.domain)
        if not domain:
            continue
        if domain not in grouped:
            grouped[domain] = DomainSignals(domain=domain)
        grouped[domain].absorb(observation)
    return grouped


def classify_signals(
    grouped: dict[str, DomainSignals], table: ClassificationTable
) -> dict[str, Classification]:
    return {
        domain: classify(domain, signals.permissions, signals.data_types, table)
        for domain, signals in grouped.items()
    }


def build_inventory(
    grouped: dict[str, DomainSignals],
    classifications: dict[str, Classification],
    table: ClassificationTable,
) -> Inventory:
    """Assemble the domain-ordered Inventory.

    Raises InternalInvariantViolation if the inputs disagree or a domain
    would appear twice.
    """
    if set(grouped) != set(classifications):
        raise InternalInvariantViolation(
            "classification set does not match grouped domains: "
            f"{sorted(set(grouped) ^ set(classifications))}"
        )

    applications: list[Application] = []
    for domain in sorted(grouped):
        signals = grouped[domain]
        classification = classifications[domain]
        profile = table.profile(domain)
        applications.append(
            Application(
                domain=domain,
                display_name=profile.display_name,
                category=classification.category,
                risk_level=classification.risk_level,
                permissions=frozenset(signals.permissions),
                data_types=frozenset(signals.data_types),
                sensitivity_tags=classification.sensitivity_tags,
                has_known_breach=profile.has_known_breach,
                shares_data_with_third_parties=profile.shares_data_with_third_parties,
                has_dpa=profile.has_dpa,
                business_critical=profile.business_critical,
                compliance_impact=profile.compliance_impact,
                password_strength_estimate=profile.password_strength_estimate,
                last_observed_at=signals.last_observed_at,
                source_ids=frozenset(signals.source_ids),
            )
        )

    domains = [app.domain for app in applications]
    if len(domains) != len(set(domains)):
        raise InternalInvariantViolation(f"merge produced duplicate domains: {domains}")

    return Inventory(applications=tuple(applications))


def merge(observations: Iterable[RawObservation], table: ClassificationTable) -> Inventory:
    """Merge observations from all sources into one deduplicated Inventory."""
    grouped = group_observations(observations)
    return build_inventory(grouped, classify_signals(grouped, table), table)
