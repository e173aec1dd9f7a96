"""Tunable constants for the participation score.

Passed explicitly into the calculator so alternate tunings can be tested
side by side.  ``DEFAULT_SCORING_CONFIG`` holds the production values.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoringConfig:
    """Scoring constants.

    Attributes:
        min_score: Global floor of the score.
        max_score: Global ceiling of the score.
        max_score_inactive: Ceiling for inactive voters, applied before the global clamp.
        base_points_active: Base points for an active voter.
        base_points_inactive: Base points for an inactive voter.
        recency_brackets: ``(min_years_ago, points)`` pairs, ascending by years.
        recency_max_years: Most recent votes older than this earn nothing.
        frequency_points_per_event: Linear frequency points per history event.
        max_frequency_points: Saturation cap for frequency points.
        diversity_multiplier: Applied to frequency points when any non-general
            election appears in the history.
    """

    min_score: float = 1.0
    max_score: float = 10.0
    max_score_inactive: float = 4.9
    base_points_active: float = 2.0
    base_points_inactive: float = 1.0
    recency_brackets: tuple[tuple[float, float], ...] = ((0.0, 4.0), (3.0, 2.0), (6.0, 1.0))
    recency_max_years: float = 8.0
    frequency_points_per_event: float = 0.5
    max_frequency_points: float = 4.0
    diversity_multiplier: float = 1.1

    def __post_init__(self) -> None:
        if self.min_score >= self.max_score:
            msg = f"min_score must be below max_score, got {self.min_score} >= {self.max_score}"
            raise ValueError(msg)
        if not (self.min_score <= self.max_score_inactive <= self.max_score):
            msg = (
                f"max_score_inactive must be within [{self.min_score}, {self.max_score}], "
                f"got {self.max_score_inactive}"
            )
            raise ValueError(msg)
        if not self.recency_brackets:
            msg = "recency_brackets must not be empty"
            raise ValueError(msg)
        years = [min_years for min_years, _ in self.recency_brackets]
        if years[0] != 0 or years != sorted(set(years)):
            msg = f"recency_brackets must start at 0 years and be strictly ascending, got {years}"
            raise ValueError(msg)
        points = [p for _, p in self.recency_brackets]
        if points != sorted(points, reverse=True):
            msg = f"recency_brackets points must not increase with age, got {points}"
            raise ValueError(msg)
        if years[-1] > self.recency_max_years:
            msg = "recency_max_years must not be below the oldest bracket"
            raise ValueError(msg)
        if self.frequency_points_per_event < 0 or self.max_frequency_points < 0:
            msg = "frequency points must be non-negative"
            raise ValueError(msg)
        if self.diversity_multiplier < 1.0:
            msg = f"diversity_multiplier must be at least 1.0, got {self.diversity_multiplier}"
            raise ValueError(msg)


DEFAULT_SCORING_CONFIG = ScoringConfig()
