"""Shared pytest fixtures for the SaaS inventory test suite."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Callable

import pytest

from saas_inventory.classification.base import TableSource
from saas_inventory.classification.manager import ClassificationTableManager
from saas_inventory.classification.table import (
    BuiltinTableSource,
    ClassificationTable,
    to_table,
)
from saas_inventory.config import AppConfig, ClassificationConfig, OrchestratorConfig, ScoringConfig
from saas_inventory.connectors.base import ScanContext, SourceConnector
from saas_inventory.errors import ConnectorFailure
from saas_inventory.models.application import Application, Inventory
from saas_inventory.models.observation import RawObservation

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def scoring_config() -> ScoringConfig:
    return ScoringConfig()


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        orchestrator=OrchestratorConfig(
            max_concurrent_operations=4,
            connector_timeout_seconds=0.5,
            cooldown_seconds=5.0,
        ),
    )


# ---------------------------------------------------------------------------
# Classification fixtures
# ---------------------------------------------------------------------------


SYNTHETIC_TABLE: dict[str, Any] = {
    "risk_tiers": {
        "critical": {"domains": ["infra.example"], "permissions": ["infrastructure_admin"]},
        "high": {"domains": ["code.example"], "permissions": ["repo_access"]},
        "medium": {"domains": ["chat.example"], "permission_count_threshold": 3},
    },
    "categories": {
        "communication": ["chat.example"],
        "development": ["code.example"],
        "finance": ["pay.example"],
    },
    "display_names": {"chat.example": "Chat Example"},
    "vendor_signals": {
        "breached": ["leaky.example"],
        "third_party_sharing": ["leaky.example", "share.example"],
        "weak_passwords": ["leaky.example"],
        "strong_passwords": ["chat.example", "safe.example"],
        "data_processing_agreements": ["share.example"],
        "business_critical": ["chat.example"],
    },
    "compliance": {"SOX": ["pay.example"]},
    "sensitive_data_types": {
        "financial": ["payment_info"],
        "medical": ["health_records"],
    },
}


class DictTableSource(TableSource):
    def __init__(self, raw: dict) -> None:
        self._raw = raw

    def load(self) -> dict:
        return self._raw


@pytest.fixture
def builtin_table() -> ClassificationTable:
    return to_table(BuiltinTableSource().load())


@pytest.fixture
def synthetic_table() -> ClassificationTable:
    return to_table(SYNTHETIC_TABLE)


@pytest.fixture
def table_manager() -> ClassificationTableManager:
    manager = ClassificationTableManager(ClassificationConfig(), DictTableSource(SYNTHETIC_TABLE))
    manager.load_sync()
    return manager


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_observation() -> Callable[..., RawObservation]:
    """Factory: create a RawObservation with sensible defaults, override via kwargs."""

    def _factory(**kwargs: Any) -> RawObservation:
        defaults: dict[str, Any] = {
            "source_id": "workspace",
            "domain": "chat.example",
            "observed_at": NOW,
            "raw_permissions": frozenset({"profile"}),
            "raw_data_types": frozenset({"messages"}),
        }
        defaults.update(kwargs)
        return RawObservation(**defaults)

    return _factory


@pytest.fixture
def make_app() -> Callable[..., Application]:
    def _factory(**kwargs: Any) -> Application:
        defaults: dict[str, Any] = {
            "domain": "app.example",
            "display_name": "App",
            "category": "other",
            "risk_level": "low",
            "password_strength_estimate": "strong",
            "last_observed_at": NOW,
            "source_ids": frozenset({"workspace"}),
        }
        defaults.update(kwargs)
        return Application(**defaults)

    return _factory


def inventory_of(*apps: Application) -> Inventory:
    return Inventory(applications=tuple(sorted(apps, key=lambda a: a.domain)))


# ---------------------------------------------------------------------------
# Connector doubles
# ---------------------------------------------------------------------------


class StaticConnector(SourceConnector):
    """Returns a fixed list of observations, optionally after a delay."""

    def __init__(
        self,
        source_id: str,
        observations: Iterable[RawObservation] = (),
        delay: float = 0.0,
        quick_capable: bool = True,
    ) -> None:
        self.source_id = source_id
        self.quick_capable = quick_capable
        self._observations = list(observations)
        self._delay = delay
        self.calls = 0
        self.completed = 0

    async def scan(self, context: ScanContext) -> list[RawObservation]:
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        self.completed += 1
        return self._observations


class FailingConnector(SourceConnector):
    def __init__(self, source_id: str, error: Exception | None = None) -> None:
        self.source_id = source_id
        self._error = error or ConnectorFailure(source_id, "token expired")

    async def scan(self, context: ScanContext) -> list[RawObservation]:
        raise self._error


class GateConnector(SourceConnector):
    """Blocks until ``release`` is set; lets tests observe a running scan."""

    def __init__(self, source_id: str, observations: Iterable[RawObservation] = ()) -> None:
        self.source_id = source_id
        self._observations = list(observations)
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.completed = False

    async def scan(self, context: ScanContext) -> list[RawObservation]:
        self.started.set()
        await self.release.wait()
        self.completed = True
        return self._observations
