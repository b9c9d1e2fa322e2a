"""Browser-side connector.

Consumes a report captured by the browser extension (visited hosts, cookie
jar, tracking scripts, OAuth buttons on visited pages) and emits one raw
observation per signal:

    visited known SaaS host  → {}                          / {"browsing_history"}
    tracking cookie          → {}                          / {"tracking_cookies"}
    tracking script          → {}                          / {"tracking_scripts"}
    OAuth sign-in button     → {"oauth_login", "oauth:<provider>"} / {"user_data"}

History heuristics are slower and noisier than API data, so this connector
does not take part in quick scans.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from urllib.parse import urlsplit

from saas_inventory.connectors.base import ScanContext, SourceConnector
from saas_inventory.models.observation import RawObservation

KNOWN_SAAS_DOMAINS = (
    "slack.com",
    "zoom.us",
    "notion.so",
    "figma.com",
    "trello.com",
    "asana.com",
    "dropbox.com",
    "box.com",
    "github.com",
    "gitlab.com",
    "salesforce.com",
    "hubspot.com",
    "mailchimp.com",
    "stripe.com",
    "paypal.com",
    "canva.com",
    "airtable.com",
    "zapier.com",
    "calendly.com",
    "typeform.com",
    "zendesk.com",
    "monday.com",
    "clickup.com",
    "linear.app",
)

TRACKING_COOKIE_NAMES = ("_ga", "_gid", "_fbp")
TRACKING_COOKIE_DOMAINS = ("google-analytics", "facebook", "doubleclick")
TRACKING_SCRIPT_MARKERS = ("google-analytics", "facebook", "hotjar", "mixpanel")


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass(frozen=True)
class Cookie:
    name: str
    domain: str


@dataclass(frozen=True)
class OAuthButton:
    page_host: str
    provider: str


@dataclass
class BrowserReport:
    captured_at: datetime = field(default_factory=_utcnow)
    visited_hosts: list[str] = field(default_factory=list)
    cookies: list[Cookie] = field(default_factory=list)
    script_urls: list[str] = field(default_factory=list)
    oauth_buttons: list[OAuthButton] = field(default_factory=list)


class BrowserReportSource(ABC):
    @abstractmethod
    async def latest_report(self, subject_id: str) -> BrowserReport | None:
        """Return the most recent extension report for the subject, if any."""
        ...


class InMemoryReportSource(BrowserReportSource):
    """Holds reports pushed by the extension, keyed by subject."""

    def __init__(self) -> None:
        self._reports: dict[str, BrowserReport] = {}

    def submit(self, subject_id: str, report: BrowserReport) -> None:
        self._reports[subject_id] = report

    async def latest_report(self, subject_id: str) -> BrowserReport | None:
        return self._reports.get(subject_id)


def match_saas_domain(host: str) -> str | None:
    """Map a visited host (``app.slack.com``) to its known SaaS domain."""
    host = host.lower().rstrip(".")
    for domain in KNOWN_SAAS_DOMAINS:
        if host == domain or host.endswith("." + domain):
            return domain
    return None


def script_host(url: str) -> str | None:
    """Host part of a script URL, or None if the URL cannot be parsed."""
    try:
        return urlsplit(url if "//" in url else "//" + url).hostname
    except ValueError:
        return None


def is_tracking_cookie(cookie: Cookie) -> bool:
    return any(marker in cookie.name for marker in TRACKING_COOKIE_NAMES) or any(
        marker in cookie.domain for marker in TRACKING_COOKIE_DOMAINS
    )


class BrowserConnector(SourceConnector):
    """Reference connector for browser-extension reports."""

    quick_capable = False

    def __init__(self, reports: BrowserReportSource, source_id: str = "browser") -> None:
        self.source_id = source_id
        self._reports = reports

    async def scan(self, context: ScanContext) -> list[RawObservation]:
        report = await self._reports.latest_report(context.subject_id)
        if report is None:
            return []

        seen = report.captured_at
        observations: list[RawObservation] = []

        for host in report.visited_hosts:
            domain = match_saas_domain(host)
            if domain:
                observations.append(self._observe(domain, seen, data_types={"browsing_history"}))

        for cookie in report.cookies:
            if is_tracking_cookie(cookie):
                domain = cookie.domain.lstrip(".")
                if domain:
                    observations.append(
                        self._observe(domain, seen, data_types={"tracking_cookies"})
                    )

        for url in report.script_urls:
            if any(marker in url for marker in TRACKING_SCRIPT_MARKERS):
                host = script_host(url)
                if host:
                    observations.append(
                        self._observe(host, seen, data_types={"tracking_scripts"})
                    )

        for button in report.oauth_buttons:
            page_host = button.page_host.strip()
            if not page_host:
                continue
            observations.append(
                self._observe(
                    page_host,
                    seen,
                    permissions={"oauth_login", f"oauth:{button.provider.lower()}"},
                    data_types={"user_data"},
                )
            )

        return observations

    def _observe(
        self,
        domain: str,
        seen_at: datetime,
        permissions: set[str] | None = None,
        data_types: set[str] | None = None,
    ) -> RawObservation:
        return RawObservation(
            source_id=self.source_id,
            domain=domain,
            observed_at=seen_at,
            raw_permissions=frozenset(permissions or ()),
            raw_data_types=frozenset(data_types or ()),
        )
