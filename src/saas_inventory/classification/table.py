"""Classification table — the data behind the Classifier.

The table is plain data: risk tiers, category lists, vendor signals and
sensitive data-type families. Operators change risk policy by editing a YAML
file (``YamlTableSource``) instead of code; ``BuiltinTableSource`` ships the
default lists.

Raw dict layout (YAML or built-in)::

    risk_tiers:
      critical: {domains: [...], permissions: [...]}
      high:     {domains: [...], permissions: [...]}
      medium:   {domains: [...], permission_count_threshold: 3}
    categories:           {<category>: [domain, ...]}
    display_names:        {<domain>: <name>}
    vendor_signals:
      breached: [...]
      third_party_sharing: [...]
      weak_passwords: [...]
      strong_passwords: [...]
      data_processing_agreements: [...]
      business_critical: [...]
    compliance:           {SOX: [...], CCPA: [...], HIPAA: [...]}
    sensitive_data_types: {financial: [...], personal: [...], medical: [...], legal: [...]}

Domain lookups match the domain itself or any parent domain, so
``app.slack.com`` picks up entries for ``slack.com``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from saas_inventory.classification.base import TableSource
from saas_inventory.errors import ConfigurationError
from saas_inventory.models.application import (
    Category,
    ComplianceFramework,
    PasswordStrength,
)

CATEGORIES: tuple[Category, ...] = (
    "productivity",
    "communication",
    "development",
    "marketing",
    "finance",
    "hr",
    "security",
    "other",
)
FRAMEWORKS: tuple[ComplianceFramework, ...] = ("GDPR", "CCPA", "HIPAA", "SOX")


def parent_domains(domain: str) -> list[str]:
    """``a.b.example.com`` → [a.b.example.com, b.example.com, example.com]."""
    labels = domain.split(".")
    return [".".join(labels[i:]) for i in range(max(len(labels) - 1, 1))]


def _in(domain: str, domains: frozenset[str]) -> bool:
    return any(candidate in domains for candidate in parent_domains(domain))


def _get(domain: str, mapping: Mapping[str, str]) -> str | None:
    for candidate in parent_domains(domain):
        if candidate in mapping:
            return mapping[candidate]
    return None


@dataclass(frozen=True)
class RiskTier:
    domains: frozenset[str] = frozenset()
    permissions: frozenset[str] = frozenset()

    def matches(self, domain: str, permissions: Iterable[str]) -> bool:
        return _in(domain, self.domains) or any(p in self.permissions for p in permissions)


@dataclass(frozen=True)
class VendorProfile:
    """Per-vendor facts looked up from the table (no scoring involved)."""

    display_name: str
    has_known_breach: bool
    shares_data_with_third_parties: bool
    password_strength_estimate: PasswordStrength
    has_dpa: bool
    business_critical: bool
    compliance_impact: frozenset[ComplianceFramework]


@dataclass(frozen=True)
class ClassificationTable:
    critical: RiskTier
    high: RiskTier
    medium: RiskTier
    medium_permission_threshold: int = 3
    categories: dict[str, Category] = field(default_factory=dict)  # domain -> category
    display_names: dict[str, str] = field(default_factory=dict)
    breached: frozenset[str] = frozenset()
    third_party_sharing: frozenset[str] = frozenset()
    weak_passwords: frozenset[str] = frozenset()
    strong_passwords: frozenset[str] = frozenset()
    data_processing_agreements: frozenset[str] = frozenset()
    business_critical: frozenset[str] = frozenset()
    compliance: dict[str, frozenset[str]] = field(default_factory=dict)
    sensitive_data_types: dict[str, frozenset[str]] = field(default_factory=dict)

    def category(self, domain: str) -> Category:
        return _get(domain, self.categories) or "other"  # type: ignore[return-value]

    def sensitivity_tags(self, data_types: Iterable[str]) -> frozenset[str]:
        present = set(data_types)
        return frozenset(
            tag for tag, members in self.sensitive_data_types.items() if present & members
        )

    def profile(self, domain: str) -> VendorProfile:
        password: PasswordStrength = "unknown"
        if _in(domain, self.weak_passwords):
            password = "weak"
        elif _in(domain, self.strong_passwords):
            password = "strong"

        impact = {"GDPR"}
        for framework, domains in self.compliance.items():
            if _in(domain, domains):
                impact.add(framework)

        return VendorProfile(
            display_name=_get(domain, self.display_names) or default_display_name(domain),
            has_known_breach=_in(domain, self.breached),
            shares_data_with_third_parties=_in(domain, self.third_party_sharing),
            password_strength_estimate=password,
            has_dpa=_in(domain, self.data_processing_agreements),
            business_critical=_in(domain, self.business_critical),
            compliance_impact=frozenset(impact),  # type: ignore[arg-type]
        )

    @property
    def domain_count(self) -> int:
        known: set[str] = set(self.categories) | set(self.display_names)
        known |= self.critical.domains | self.high.domains | self.medium.domains
        return len(known)


def default_display_name(domain: str) -> str:
    first = domain.split(".")[0]
    return first[:1].upper() + first[1:]


def _domains(raw: Mapping, key: str) -> frozenset[str]:
    return frozenset(d.lower() for d in raw.get(key) or [])


def to_table(raw: dict) -> ClassificationTable:
    """Build a ClassificationTable from its raw dict form.

    Raises ConfigurationError when the risk tiers are missing or any section
    has the wrong shape.
    """
    try:
        return _build_table(raw)
    except (AttributeError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"malformed classification table: {exc}") from exc


def _build_table(raw: dict) -> ClassificationTable:
    tiers = raw.get("risk_tiers")
    if not isinstance(tiers, dict) or not {"critical", "high", "medium"} <= set(tiers):
        raise ConfigurationError(
            "classification table must define risk_tiers.critical, .high and .medium"
        )

    categories: dict[str, Category] = {}
    for category, domains in (raw.get("categories") or {}).items():
        if category not in CATEGORIES:
            raise ConfigurationError(f"unknown category in classification table: {category}")
        for domain in domains:
            categories[domain.lower()] = category

    compliance = {}
    for framework, domains in (raw.get("compliance") or {}).items():
        if framework not in FRAMEWORKS:
            raise ConfigurationError(f"unknown compliance framework: {framework}")
        compliance[framework] = frozenset(d.lower() for d in domains)

    signals = raw.get("vendor_signals") or {}
    medium_raw = tiers["medium"] or {}

    return ClassificationTable(
        critical=RiskTier(
            domains=_domains(tiers["critical"] or {}, "domains"),
            permissions=frozenset((tiers["critical"] or {}).get("permissions") or []),
        ),
        high=RiskTier(
            domains=_domains(tiers["high"] or {}, "domains"),
            permissions=frozenset((tiers["high"] or {}).get("permissions") or []),
        ),
        medium=RiskTier(
            domains=_domains(medium_raw, "domains"),
            permissions=frozenset(medium_raw.get("permissions") or []),
        ),
        medium_permission_threshold=int(medium_raw.get("permission_count_threshold", 3)),
        categories=categories,
        display_names={k.lower(): v for k, v in (raw.get("display_names") or {}).items()},
        breached=_domains(signals, "breached"),
        third_party_sharing=_domains(signals, "third_party_sharing"),
        weak_passwords=_domains(signals, "weak_passwords"),
        strong_passwords=_domains(signals, "strong_passwords"),
        data_processing_agreements=_domains(signals, "data_processing_agreements"),
        business_critical=_domains(signals, "business_critical"),
        compliance=compliance,
        sensitive_data_types={
            tag: frozenset(members)
            for tag, members in (raw.get("sensitive_data_types") or {}).items()
        },
    )


class BuiltinTableSource(TableSource):
    """Default lists. Point ``classification.table_path`` at a YAML file to replace them."""

    def load(self) -> dict:
        return {
            "risk_tiers": {
                "critical": {
                    "domains": ["aws.amazon.com", "console.cloud.google.com", "portal.azure.com"],
                    "permissions": [
                        "admin_access",
                        "full_access",
                        "organization_owner",
                        "infrastructure_admin",
                        "payment_processing",
                    ],
                },
                "high": {
                    "domains": [
                        "github.com",
                        "gitlab.com",
                        "stripe.com",
                        "grammarly.com",
                        "vercel.com",
                        "heroku.com",
                    ],
                    "permissions": [
                        "repo_access",
                        "workspace_admin",
                        "financial_data",
                        "deployment_access",
                    ],
                },
                "medium": {
                    "domains": [
                        "slack.com",
                        "notion.so",
                        "asana.com",
                        "trello.com",
                        "canva.com",
                        "hubspot.com",
                        "airtable.com",
                    ],
                    "permission_count_threshold": 3,
                },
            },
            "categories": {
                "communication": ["slack.com", "teams.microsoft.com", "zoom.us", "discord.com"],
                "productivity": [
                    "notion.so",
                    "asana.com",
                    "trello.com",
                    "monday.com",
                    "clickup.com",
                    "airtable.com",
                ],
                "development": [
                    "github.com",
                    "gitlab.com",
                    "figma.com",
                    "vercel.com",
                    "netlify.com",
                    "heroku.com",
                ],
                "marketing": [
                    "mailchimp.com",
                    "hubspot.com",
                    "canva.com",
                    "buffer.com",
                    "google-analytics.com",
                    "doubleclick.net",
                    "hotjar.com",
                    "mixpanel.com",
                ],
                "finance": ["stripe.com", "quickbooks.intuit.com", "xero.com", "paypal.com"],
                "hr": ["bamboohr.com", "workday.com", "lever.co"],
                "security": ["1password.com", "okta.com", "auth0.com"],
            },
            "display_names": {
                "canva.com": "Canva",
                "adobe.com": "Adobe Creative Cloud",
                "figma.com": "Figma",
                "slack.com": "Slack",
                "zoom.us": "Zoom",
                "teams.microsoft.com": "Microsoft Teams",
                "notion.so": "Notion",
                "monday.com": "Monday.com",
                "clickup.com": "ClickUp",
                "github.com": "GitHub",
                "gitlab.com": "GitLab",
                "quickbooks.intuit.com": "QuickBooks",
                "hubspot.com": "HubSpot",
                "analytics.google.com": "Google Analytics",
                "aws.amazon.com": "Amazon Web Services",
                "bamboohr.com": "BambooHR",
                "1password.com": "1Password",
            },
            "vendor_signals": {
                "breached": ["grammarly.com", "canva.com", "dropbox.com", "adobe.com"],
                "third_party_sharing": [
                    "canva.com",
                    "grammarly.com",
                    "spotify.com",
                    "figma.com",
                    "slack.com",
                ],
                "weak_passwords": ["grammarly.com"],
                "strong_passwords": [
                    "adobe.com",
                    "microsoft.com",
                    "google.com",
                    "slack.com",
                    "notion.so",
                    "figma.com",
                ],
                "data_processing_agreements": ["slack.com", "notion.so"],
                "business_critical": [
                    "slack.com",
                    "teams.microsoft.com",
                    "github.com",
                    "aws.amazon.com",
                    "google.com",
                    "notion.so",
                ],
            },
            "compliance": {
                "SOX": ["stripe.com", "quickbooks.intuit.com"],
                "CCPA": ["bamboohr.com"],
            },
            "sensitive_data_types": {
                "financial": [
                    "financial_data",
                    "payment_info",
                    "billing",
                    "invoices",
                    "bank_accounts",
                ],
                "personal": ["personal_info", "contacts", "pii", "employee_records"],
                "medical": ["health_records", "medical_data", "phi"],
                "legal": ["contracts", "legal_documents"],
            },
        }


class YamlTableSource(TableSource):
    """Reads the table from an operator-maintained YAML file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def load(self) -> dict:
        if not self._path.exists():
            raise ConfigurationError(f"classification table not found: {self._path}")
        try:
            with self._path.open() as f:
                raw = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"cannot read classification table {self._path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigurationError(f"classification table is empty or invalid: {self._path}")
        return raw
