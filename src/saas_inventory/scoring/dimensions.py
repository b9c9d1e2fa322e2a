"""Organization-level dimension scores, each computed independently from the Inventory.

All four are "higher is safer", in [0, 100]. An empty inventory scores the
configured clean-slate value on every dimension: absence of data is not
evidence of risk.

A "clean" app is neither breached nor sharing data with third parties. Every
formula below is non-increasing when a breached or sharing app is added to
an otherwise identical inventory.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from saas_inventory.config import ScoringConfig
from saas_inventory.models.application import Application, Inventory
from saas_inventory.models.scan import DimensionScores
from saas_inventory.scoring.app_score import app_score, clamp


def oauth_risk(inventory: Inventory, config: ScoringConfig) -> float:
    """100 minus a rank-weighted mean of per-app risk.

    Apps are ordered riskiest first and weighted (1 - d), (1 - d)·d,
    (1 - d)·d², ... with d = ``rank_decay``, so the riskiest grant dominates.
    Apps holding sensitive data (any sensitivity tag) count
    ``sensitive_multiplier`` times their score, capped at 100.
    """
    if not inventory.applications:
        return config.clean_slate_score

    effective = sorted(
        (_effective_risk(app, config) for app in inventory.applications), reverse=True
    )
    decay = config.rank_decay
    weighted = sum((1 - decay) * decay**rank * risk for rank, risk in enumerate(effective))
    return clamp(100.0 - weighted)


def _effective_risk(app: Application, config: ScoringConfig) -> float:
    score = float(app_score(app, config))
    if app.sensitivity_tags:
        score *= config.sensitive_multiplier
    return min(100.0, score)


def data_exposure(inventory: Inventory, config: ScoringConfig) -> float:
    if not inventory.applications:
        return config.clean_slate_score

    cfg = config.data_exposure
    apps = inventory.applications
    breached = sum(1 for app in apps if app.has_known_breach)
    sharing = sum(1 for app in apps if app.shares_data_with_third_parties)
    clean = sum(1 for app in apps if app.is_clean)

    score = cfg.start - cfg.breach_penalty * breached - cfg.sharing_penalty * sharing
    score += min(cfg.clean_bonus_cap, cfg.clean_bonus * clean)
    return clamp(score)


def compliance(inventory: Inventory, config: ScoringConfig) -> float:
    """Neutral 70, shifted by the low-risk vs. flagged ratio, plus a clean-ratio bonus.

    Flagged apps are High/Critical or not clean; low-risk apps are Low and clean.
    """
    if not inventory.applications:
        return config.clean_slate_score

    cfg = config.compliance
    apps = inventory.applications
    total = len(apps)
    flagged = sum(1 for app in apps if app.is_high_risk or not app.is_clean)
    low = sum(1 for app in apps if app.risk_level == "low" and app.is_clean)
    clean = sum(1 for app in apps if app.is_clean)

    score = (
        cfg.start
        + cfg.low_risk_bonus * low / total
        - cfg.high_risk_penalty * flagged / total
        + cfg.clean_bonus * clean / total
    )
    return clamp(score, low=cfg.floor)


def access_control(inventory: Inventory, config: ScoringConfig, as_of: datetime) -> float:
    """Start at 80, weighted by strong/weak password ratios, minus inactive accounts.

    Strong passwords only earn credit on clean apps. The weak ratio is taken
    over apps with a decisive estimate (weak, or strong and clean).
    """
    if not inventory.applications:
        return config.clean_slate_score

    cfg = config.access_control
    apps = inventory.applications
    strong = sum(1 for app in apps if app.password_strength_estimate == "strong" and app.is_clean)
    weak = sum(1 for app in apps if app.password_strength_estimate == "weak")
    inactive = len(inactive_applications(inventory, config, as_of))

    strong_ratio = strong / len(apps)
    weak_ratio = weak / (weak + strong) if weak + strong else 0.0

    score = (
        cfg.start
        + cfg.strong_bonus * strong_ratio
        - cfg.weak_penalty * weak_ratio
        - cfg.inactive_penalty * inactive
    )
    return clamp(score, low=cfg.floor)


def inactive_applications(
    inventory: Inventory, config: ScoringConfig, as_of: datetime
) -> list[Application]:
    """Apps not observed within ``inactive_after_days`` of ``as_of``."""
    cutoff = as_of - timedelta(days=config.inactive_after_days)
    return [app for app in inventory.applications if app.last_observed_at < cutoff]


def compute_dimensions(
    inventory: Inventory, config: ScoringConfig, as_of: datetime
) -> DimensionScores:
    return DimensionScores(
        oauth_risk=round(oauth_risk(inventory, config), 1),
        data_exposure=round(data_exposure(inventory, config), 1),
        compliance=round(compliance(inventory, config), 1),
        access_control=round(access_control(inventory, config, as_of), 1),
    )
