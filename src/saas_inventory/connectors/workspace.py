"""Workspace-suite connector.

Turns what a workspace suite API exposes about a user's tenant into raw
observations:

    mailbox sender headers   → {"email_access"}                 / {"emails"}
    shared file names        → {"drive_access", "file_creation"} / {"documents"}
    calendar organizers      → {"calendar_access"}              / {"calendar_events"}
    OAuth grants             → granted scopes                   / grant data types

The API itself sits behind ``WorkspaceClient`` so the core never handles
tokens. ``StubWorkspaceClient`` returns a fixed tenant; replace it with a real
API client when credentials are available. The return type contract
(list[RawObservation]) must be preserved.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from saas_inventory.connectors.base import ScanContext, SourceConnector
from saas_inventory.errors import ConnectorFailure
from saas_inventory.models.observation import RawObservation

logger = logging.getLogger(__name__)

_EMAIL_DOMAIN = re.compile(r"@([a-zA-Z0-9.-]+\.[a-zA-Z]{2,})")

# File-name keyword → vendor domain, for files created by third-party apps.
FILE_KEYWORD_DOMAINS: dict[str, str] = {
    "canva": "canva.com",
    "figma": "figma.com",
    "adobe": "adobe.com",
    "miro": "miro.com",
    "lucid": "lucid.app",
}


@dataclass(frozen=True)
class TimestampedValue:
    value: str
    seen_at: datetime


@dataclass(frozen=True)
class OAuthGrant:
    domain: str
    scopes: frozenset[str]
    last_used: datetime
    data_types: frozenset[str] = field(default_factory=frozenset)


class WorkspaceClient(ABC):
    """Read-only view of a workspace tenant, already authenticated."""

    @abstractmethod
    async def message_senders(self) -> list[TimestampedValue]:
        """Sender addresses (``From`` header values) of recent messages."""
        ...

    @abstractmethod
    async def shared_file_names(self) -> list[TimestampedValue]: ...

    @abstractmethod
    async def calendar_organizers(self) -> list[TimestampedValue]: ...

    @abstractmethod
    async def oauth_grants(self) -> list[OAuthGrant]: ...


class StubWorkspaceClient(WorkspaceClient):
    """Stub — replace with a real workspace API client."""

    def __init__(self, now: datetime | None = None) -> None:
        self._now = now or datetime.now(tz=timezone.utc)

    def _ago(self, hours: int) -> datetime:
        return self._now - timedelta(hours=hours)

    async def message_senders(self) -> list[TimestampedValue]:
        return [
            TimestampedValue("Canva <no-reply@canva.com>", self._ago(3)),
            TimestampedValue("Grammarly <info@grammarly.com>", self._ago(30)),
            TimestampedValue("Stripe <receipts@stripe.com>", self._ago(12)),
        ]

    async def shared_file_names(self) -> list[TimestampedValue]:
        return [
            TimestampedValue("Q3 launch deck - Canva export.pdf", self._ago(6)),
            TimestampedValue("Figma handoff v2.fig", self._ago(20)),
        ]

    async def calendar_organizers(self) -> list[TimestampedValue]:
        return [TimestampedValue("events@zoom.us", self._ago(48))]

    async def oauth_grants(self) -> list[OAuthGrant]:
        return [
            OAuthGrant(
                domain="slack.com",
                scopes=frozenset({"profile", "email", "workspace_access", "files_write"}),
                last_used=self._ago(1),
                data_types=frozenset({"messages", "files", "user_data"}),
            ),
            OAuthGrant(
                domain="github.com",
                scopes=frozenset({"profile", "email", "repo_access", "organization_access"}),
                last_used=self._ago(2),
                data_types=frozenset({"code", "user_data"}),
            ),
            OAuthGrant(
                domain="vercel.com",
                scopes=frozenset({"profile", "team_access", "deployment_access"}),
                last_used=self._ago(5),
                data_types=frozenset({"deployments", "user_data"}),
            ),
        ]


def domain_from_address(address: str) -> str | None:
    """Return the domain part of the first email address in ``address``."""
    match = _EMAIL_DOMAIN.search(address)
    return match.group(1).lower() if match else None


def domain_from_file_name(file_name: str) -> str | None:
    lowered = file_name.lower()
    for keyword, domain in FILE_KEYWORD_DOMAINS.items():
        if keyword in lowered:
            return domain
    return None


class WorkspaceConnector(SourceConnector):
    """Reference connector for a workspace suite (mail, files, calendar, OAuth)."""

    def __init__(self, client: WorkspaceClient, source_id: str = "workspace") -> None:
        self.source_id = source_id
        self._client = client

    async def scan(self, context: ScanContext) -> list[RawObservation]:
        try:
            senders = await self._client.message_senders()
            files = await self._client.shared_file_names()
            organizers = await self._client.calendar_organizers()
            grants = await self._client.oauth_grants()
        except OSError as exc:
            raise ConnectorFailure(self.source_id, str(exc) or type(exc).__name__) from exc

        observations: list[RawObservation] = []

        for sender in senders:
            domain = domain_from_address(sender.value)
            if domain:
                observations.append(
                    self._observe(domain, sender.seen_at, {"email_access"}, {"emails"})
                )

        for item in files:
            domain = domain_from_file_name(item.value)
            if domain:
                observations.append(
                    self._observe(
                        domain, item.seen_at, {"drive_access", "file_creation"}, {"documents"}
                    )
                )

        for organizer in organizers:
            domain = domain_from_address(organizer.value)
            if domain:
                observations.append(
                    self._observe(
                        domain, organizer.seen_at, {"calendar_access"}, {"calendar_events"}
                    )
                )

        for grant in grants:
            observations.append(
                self._observe(grant.domain, grant.last_used, grant.scopes, grant.data_types)
            )

        logger.debug(
            "Workspace scan for %s produced %d observations",
            context.subject_id,
            len(observations),
        )
        return observations

    def _observe(
        self,
        domain: str,
        seen_at: datetime,
        permissions: set[str] | frozenset[str],
        data_types: set[str] | frozenset[str],
    ) -> RawObservation:
        return RawObservation(
            source_id=self.source_id,
            domain=domain,
            observed_at=seen_at,
            raw_permissions=frozenset(permissions),
            raw_data_types=frozenset(data_types),
        )
