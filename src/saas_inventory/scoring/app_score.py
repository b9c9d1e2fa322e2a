"""Per-application risk score.

    score = base(risk_level) + breach + sharing + password, clamped to [0, 100]

With the default policy: Low 10 / Medium 25 / High 50 / Critical 75 base,
+20 for a known breach, +15 for third-party sharing, +15 weak / +5 medium or
unknown / +0 strong password estimate.
"""

from __future__ import annotations

from saas_inventory.config import ScoringConfig
from saas_inventory.models.application import Application, Inventory


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def app_score(app: Application, config: ScoringConfig) -> int:
    score = config.base_points[app.risk_level]
    if app.has_known_breach:
        score += config.breach_penalty
    if app.shares_data_with_third_parties:
        score += config.sharing_penalty
    score += config.password_penalty[app.password_strength_estimate]
    return int(clamp(score))


def score_inventory(inventory: Inventory, config: ScoringConfig) -> dict[str, int]:
    return {app.domain: app_score(app, config) for app in inventory.applications}
