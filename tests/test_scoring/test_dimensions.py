"""Unit tests for the four organization-level dimension scores."""

from __future__ import annotations

from datetime import timedelta
from typing import Callable

import pytest

from saas_inventory.config import ScoringConfig
from saas_inventory.models.application import Application, Inventory
from saas_inventory.scoring import dimensions
from conftest import NOW, inventory_of


def test_empty_inventory_is_clean_slate(scoring_config: ScoringConfig) -> None:
    result = dimensions.compute_dimensions(Inventory(), scoring_config, NOW)
    for value in result.as_dict().values():
        assert value >= 85


def test_oauth_risk_single_worst_case_app_is_near_zero(
    make_app: Callable[..., Application], scoring_config: ScoringConfig
) -> None:
    app = make_app(
        risk_level="critical",
        has_known_breach=True,
        shares_data_with_third_parties=True,
        password_strength_estimate="weak",
    )
    assert 0 <= dimensions.oauth_risk(inventory_of(app), scoring_config) <= 10


def test_oauth_risk_sensitive_data_weighs_more(
    make_app: Callable[..., Application], scoring_config: ScoringConfig
) -> None:
    plain = make_app(risk_level="medium")
    sensitive = make_app(risk_level="medium", sensitivity_tags=frozenset({"financial"}))
    assert dimensions.oauth_risk(inventory_of(sensitive), scoring_config) < dimensions.oauth_risk(
        inventory_of(plain), scoring_config
    )


def test_oauth_risk_higher_app_risk_lowers_score(
    make_app: Callable[..., Application], scoring_config: ScoringConfig
) -> None:
    low = dimensions.oauth_risk(inventory_of(make_app(risk_level="low")), scoring_config)
    high = dimensions.oauth_risk(inventory_of(make_app(risk_level="high")), scoring_config)
    assert high < low


def test_data_exposure_penalties_and_bonus(
    make_app: Callable[..., Application], scoring_config: ScoringConfig
) -> None:
    inventory = inventory_of(
        make_app(domain="a.example", has_known_breach=True),
        make_app(domain="b.example", shares_data_with_third_parties=True),
        make_app(domain="c.example"),
    )
    # 90 - 15 - 8 + 2
    assert dimensions.data_exposure(inventory, scoring_config) == pytest.approx(69.0)


def test_data_exposure_clean_bonus_is_capped(
    make_app: Callable[..., Application], scoring_config: ScoringConfig
) -> None:
    inventory = inventory_of(*(make_app(domain=f"app{i:02d}.example") for i in range(30)))
    # 90 + min(20, 60) = 110 → 100
    assert dimensions.data_exposure(inventory, scoring_config) == 100.0


def test_data_exposure_floor(make_app: Callable[..., Application], scoring_config: ScoringConfig) -> None:
    inventory = inventory_of(
        *(make_app(domain=f"app{i}.example", has_known_breach=True) for i in range(10))
    )
    assert dimensions.data_exposure(inventory, scoring_config) == 0.0


def test_compliance_all_low_clean(make_app: Callable[..., Application], scoring_config: ScoringConfig) -> None:
    inventory = inventory_of(make_app(domain="a.example"), make_app(domain="b.example"))
    # 70 + 25 + 10 = 105 → 100
    assert dimensions.compliance(inventory, scoring_config) == 100.0


def test_compliance_mixed(make_app: Callable[..., Application], scoring_config: ScoringConfig) -> None:
    inventory = inventory_of(
        make_app(domain="a.example"),
        make_app(domain="b.example", risk_level="critical"),
    )
    # 70 + 25*0.5 - 30*0.5 + 10*1.0
    assert dimensions.compliance(inventory, scoring_config) == pytest.approx(77.5)


def test_compliance_floor(make_app: Callable[..., Application], scoring_config: ScoringConfig) -> None:
    inventory = inventory_of(
        make_app(domain="a.example", risk_level="critical", has_known_breach=True)
    )
    # 70 - 30 = 40, above the floor of 30
    assert dimensions.compliance(inventory, scoring_config) == pytest.approx(40.0)
    scoring_config.compliance.high_risk_penalty = 100
    assert dimensions.compliance(inventory, scoring_config) == 30.0


def test_access_control_strong_passwords(
    make_app: Callable[..., Application], scoring_config: ScoringConfig
) -> None:
    inventory = inventory_of(make_app(domain="a.example"), make_app(domain="b.example"))
    assert dimensions.access_control(inventory, scoring_config, NOW) == 100.0


def test_access_control_weak_passwords(
    make_app: Callable[..., Application], scoring_config: ScoringConfig
) -> None:
    inventory = inventory_of(
        make_app(domain="a.example"),
        make_app(domain="b.example", password_strength_estimate="weak"),
    )
    # 80 + 20*0.5 - 40*0.5
    assert dimensions.access_control(inventory, scoring_config, NOW) == pytest.approx(70.0)


def test_access_control_inactive_penalty_and_floor(
    make_app: Callable[..., Application], scoring_config: ScoringConfig
) -> None:
    stale = NOW - timedelta(days=scoring_config.inactive_after_days + 1)
    inventory = inventory_of(
        make_app(domain="a.example", password_strength_estimate="unknown", last_observed_at=stale),
    )
    assert dimensions.access_control(inventory, scoring_config, NOW) == pytest.approx(75.0)

    many_stale = inventory_of(
        *(
            make_app(domain=f"app{i:02d}.example", password_strength_estimate="unknown", last_observed_at=stale)
            for i in range(20)
        )
    )
    assert dimensions.access_control(many_stale, scoring_config, NOW) == 40.0


def test_inactive_applications(make_app: Callable[..., Application], scoring_config: ScoringConfig) -> None:
    stale = make_app(domain="old.example", last_observed_at=NOW - timedelta(days=200))
    fresh = make_app(domain="new.example", last_observed_at=NOW - timedelta(days=1))
    inactive = dimensions.inactive_applications(inventory_of(stale, fresh), scoring_config, NOW)
    assert [app.domain for app in inactive] == ["old.example"]


def test_all_dimensions_in_range(make_app: Callable[..., Application], scoring_config: ScoringConfig) -> None:
    inventory = inventory_of(
        make_app(domain="a.example", risk_level="critical", has_known_breach=True, password_strength_estimate="weak"),
        make_app(domain="b.example", shares_data_with_third_parties=True, sensitivity_tags=frozenset({"medical"})),
        make_app(domain="c.example", risk_level="medium", password_strength_estimate="unknown"),
    )
    for value in dimensions.compute_dimensions(inventory, scoring_config, NOW).as_dict().values():
        assert 0.0 <= value <= 100.0
