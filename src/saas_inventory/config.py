"""PyYAML loader → typed config dataclasses."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from saas_inventory.errors import ConfigurationError

RISK_LEVELS = ("low", "medium", "high", "critical")
PASSWORD_STRENGTHS = ("weak", "medium", "strong", "unknown")
DIMENSIONS = ("oauth_risk", "data_exposure", "compliance", "access_control")


def _default_base_points() -> dict[str, int]:
    return {"low": 10, "medium": 25, "high": 50, "critical": 75}


def _default_password_penalty() -> dict[str, int]:
    return {"weak": 15, "medium": 5, "strong": 0, "unknown": 5}


def _default_weights() -> dict[str, int]:
    return {"oauth_risk": 40, "data_exposure": 25, "compliance": 20, "access_control": 15}


@dataclass
class DataExposureConfig:
    start: float = 90.0
    breach_penalty: float = 15.0
    sharing_penalty: float = 8.0
    clean_bonus: float = 2.0
    clean_bonus_cap: float = 20.0


@dataclass
class ComplianceConfig:
    start: float = 70.0
    low_risk_bonus: float = 25.0
    high_risk_penalty: float = 30.0
    clean_bonus: float = 10.0
    floor: float = 30.0


@dataclass
class AccessControlConfig:
    start: float = 80.0
    strong_bonus: float = 20.0
    weak_penalty: float = 40.0
    inactive_penalty: float = 5.0
    floor: float = 40.0


@dataclass
class ScoringConfig:
    base_points: dict[str, int] = field(default_factory=_default_base_points)
    breach_penalty: int = 20
    sharing_penalty: int = 15
    password_penalty: dict[str, int] = field(default_factory=_default_password_penalty)
    sensitive_multiplier: float = 1.5
    rank_decay: float = 0.1
    dimension_weights: dict[str, int] = field(default_factory=_default_weights)
    clean_slate_score: float = 90.0
    inactive_after_days: int = 90
    data_exposure: DataExposureConfig = field(default_factory=DataExposureConfig)
    compliance: ComplianceConfig = field(default_factory=ComplianceConfig)
    access_control: AccessControlConfig = field(default_factory=AccessControlConfig)

    def validate(self) -> None:
        """Raise ConfigurationError if any policy constant is missing or inconsistent."""
        missing = [lvl for lvl in RISK_LEVELS if lvl not in self.base_points]
        if missing:
            raise ConfigurationError(f"base_points missing risk levels: {missing}")
        missing = [s for s in PASSWORD_STRENGTHS if s not in self.password_penalty]
        if missing:
            raise ConfigurationError(f"password_penalty missing strengths: {missing}")
        if set(self.dimension_weights) != set(DIMENSIONS):
            raise ConfigurationError(
                f"dimension_weights must name exactly {list(DIMENSIONS)}, "
                f"got {sorted(self.dimension_weights)}"
            )
        total = sum(self.dimension_weights.values())
        if total != 100:
            raise ConfigurationError(f"dimension_weights must sum to 100, got {total}")
        if not 0.0 <= self.rank_decay < 1.0:
            raise ConfigurationError(f"rank_decay must be in [0, 1), got {self.rank_decay}")


@dataclass
class OrchestratorConfig:
    max_concurrent_operations: int = 10
    connector_timeout_seconds: float = 30.0
    cooldown_seconds: float = 5.0


@dataclass
class ClassificationConfig:
    table_path: str | None = None
    refresh_interval_seconds: int = 300


@dataclass
class AppConfig:
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)
    classification: ClassificationConfig = field(default_factory=ClassificationConfig)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load thresholds.yaml and return a typed AppConfig.

    Falls back to defaults if the file is absent or a section is missing.
    Environment variables CLASSIFICATION_TABLE_PATH and SCAN_COOLDOWN_SECONDS
    override the file.
    """
    raw: dict = {}
    if path is None:
        path = Path(__file__).parent.parent.parent / "config" / "thresholds.yaml"

    resolved = Path(path)
    if resolved.exists():
        with resolved.open() as f:
            raw = yaml.safe_load(f) or {}

    scoring_raw = raw.get("scoring", {})
    exposure_raw = scoring_raw.get("data_exposure", {})
    compliance_raw = scoring_raw.get("compliance", {})
    access_raw = scoring_raw.get("access_control", {})
    orchestrator_raw = raw.get("orchestrator", {})
    classification_raw = raw.get("classification", {})

    scoring = ScoringConfig(
        base_points={**_default_base_points(), **scoring_raw.get("base_points", {})},
        breach_penalty=scoring_raw.get("breach_penalty", 20),
        sharing_penalty=scoring_raw.get("sharing_penalty", 15),
        password_penalty={
            **_default_password_penalty(),
            **scoring_raw.get("password_penalty", {}),
        },
        sensitive_multiplier=scoring_raw.get("sensitive_multiplier", 1.5),
        rank_decay=scoring_raw.get("rank_decay", 0.1),
        dimension_weights=scoring_raw.get("dimension_weights", _default_weights()),
        clean_slate_score=scoring_raw.get("clean_slate_score", 90.0),
        inactive_after_days=scoring_raw.get("inactive_after_days", 90),
        data_exposure=DataExposureConfig(**exposure_raw),
        compliance=ComplianceConfig(**compliance_raw),
        access_control=AccessControlConfig(**access_raw),
    )
    scoring.validate()

    return AppConfig(
        scoring=scoring,
        orchestrator=OrchestratorConfig(
            max_concurrent_operations=orchestrator_raw.get("max_concurrent_operations", 10),
            connector_timeout_seconds=orchestrator_raw.get("connector_timeout_seconds", 30.0),
            cooldown_seconds=float(
                os.getenv("SCAN_COOLDOWN_SECONDS", orchestrator_raw.get("cooldown_seconds", 5.0))
            ),
        ),
        classification=ClassificationConfig(
            table_path=os.getenv("CLASSIFICATION_TABLE_PATH", classification_raw.get("table_path")),
            refresh_interval_seconds=classification_raw.get("refresh_interval_seconds", 300),
        ),
    )
