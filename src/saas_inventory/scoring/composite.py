"""Composite organization score and letter grade."""

from __future__ import annotations

import math

from saas_inventory.config import ScoringConfig
from saas_inventory.errors import ConfigurationError
from saas_inventory.models.scan import DimensionScores, Grade
from saas_inventory.scoring.app_score import clamp

# (minimum score, grade), highest first. The last entry catches everything below 40.
GRADE_TABLE: tuple[tuple[int, Grade], ...] = (
    (90, "A+"),
    (85, "A"),
    (80, "A-"),
    (75, "B+"),
    (70, "B"),
    (65, "B-"),
    (60, "C+"),
    (55, "C"),
    (50, "C-"),
    (40, "D"),
    (0, "F"),
)


def composite_score(dimensions: DimensionScores, config: ScoringConfig) -> float:
    """Weighted average of the four dimensions; weights are integer percentages."""
    weights = config.dimension_weights
    if sum(weights.values()) != 100:
        raise ConfigurationError(f"dimension_weights must sum to 100, got {sum(weights.values())}")
    values = dimensions.as_dict()
    total = sum(weights[name] * values[name] for name in values) / 100
    return round(clamp(total), 1)


def grade_for(score: float) -> Grade:
    """Letter grade for a score. Scores are floored to the integer below first."""
    value = math.floor(clamp(score))
    for minimum, grade in GRADE_TABLE:
        if value >= minimum:
            return grade
    raise AssertionError(f"unreachable: no grade for {score}")
