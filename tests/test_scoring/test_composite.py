"""Composite score, grade table and the end-to-end scoring invariants."""

from __future__ import annotations

from typing import Callable

import pytest

from saas_inventory.config import ScoringConfig
from saas_inventory.errors import ConfigurationError
from saas_inventory.models.application import Application, Inventory
from saas_inventory.models.scan import DimensionScores
from saas_inventory.scoring.composite import (
    GRADE_TABLE,
    composite_score,
    grade_for,
)
from saas_inventory.scoring.dimensions import compute_dimensions
from conftest import NOW, inventory_of


def _overall(inventory: Inventory, config: ScoringConfig) -> float:
    return composite_score(compute_dimensions(inventory, config, NOW), config)


def test_default_weights_sum_to_100(scoring_config: ScoringConfig) -> None:
    assert sum(scoring_config.dimension_weights.values()) == 100


def test_weights_not_summing_to_100_rejected(scoring_config: ScoringConfig) -> None:
    scoring_config.dimension_weights["oauth_risk"] = 50
    dims = DimensionScores(oauth_risk=50, data_exposure=50, compliance=50, access_control=50)
    with pytest.raises(ConfigurationError):
        composite_score(dims, scoring_config)


def test_composite_is_weighted_average(scoring_config: ScoringConfig) -> None:
    dims = DimensionScores(oauth_risk=10, data_exposure=50, compliance=80, access_control=100)
    # 0.40*10 + 0.25*50 + 0.20*80 + 0.15*100
    assert composite_score(dims, scoring_config) == pytest.approx(47.5)


@pytest.mark.parametrize(
    ("score", "grade"),
    [
        (100, "A+"),
        (90, "A+"),
        (89.9, "A"),
        (85, "A"),
        (80, "A-"),
        (75, "B+"),
        (70, "B"),
        (65, "B-"),
        (60, "C+"),
        (55, "C"),
        (50, "C-"),
        (49.99, "D"),
        (40, "D"),
        (39.9, "F"),
        (0, "F"),
    ],
)
def test_grade_boundaries(score: float, grade: str) -> None:
    assert grade_for(score) == grade


def test_every_score_has_exactly_one_grade() -> None:
    for tenth in range(0, 1001):
        assert grade_for(tenth / 10) in {grade for _, grade in GRADE_TABLE}


def test_empty_inventory_grades_well(scoring_config: ScoringConfig) -> None:
    score = _overall(Inventory(), scoring_config)
    assert score >= 85
    assert grade_for(score) in ("A+", "A", "A-")


def test_single_worst_case_app_grades_poorly(
    make_app: Callable[..., Application], scoring_config: ScoringConfig
) -> None:
    app = make_app(
        domain="bad.example",
        risk_level="critical",
        has_known_breach=True,
        shares_data_with_third_parties=True,
        password_strength_estimate="weak",
    )
    score = _overall(inventory_of(app), scoring_config)
    assert grade_for(score) in ("D", "F")


@pytest.mark.parametrize(
    "flags",
    [
        {"has_known_breach": True},
        {"shares_data_with_third_parties": True},
        {"has_known_breach": True, "shares_data_with_third_parties": True},
    ],
)
def test_adding_breached_or_sharing_app_never_raises_composite(
    make_app: Callable[..., Application], scoring_config: ScoringConfig, flags: dict
) -> None:
    baselines = [
        (),
        (make_app(domain="a.example"),),
        (
            make_app(domain="a.example", risk_level="high", password_strength_estimate="weak"),
            make_app(domain="b.example", shares_data_with_third_parties=True),
        ),
        tuple(make_app(domain=f"clean{i:02d}.example") for i in range(12)),
    ]
    for risk_level in ("low", "medium", "high", "critical"):
        added = make_app(domain="zz.example", risk_level=risk_level, **flags)
        for apps in baselines:
            before = _overall(inventory_of(*apps), scoring_config)
            after = _overall(inventory_of(*apps, added), scoring_config)
            assert after <= before, (risk_level, len(apps))


def test_composite_always_in_range(
    make_app: Callable[..., Application], scoring_config: ScoringConfig
) -> None:
    apps = [
        make_app(
            domain=f"app{i:02d}.example",
            risk_level=("low", "medium", "high", "critical")[i % 4],
            has_known_breach=i % 3 == 0,
            shares_data_with_third_parties=i % 2 == 0,
            password_strength_estimate=("weak", "medium", "strong", "unknown")[i % 4],
        )
        for i in range(16)
    ]
    for n in range(len(apps) + 1):
        assert 0.0 <= _overall(inventory_of(*apps[:n]), scoring_config) <= 100.0
