"""Participation score calculator.

Converts a voter's registration status and voting history into a score in
``[min_score, max_score]`` (1.0-10.0 by default):

    raw = base(status) + recency(most recent vote) + frequency(count) * diversity

Inactive voters are capped at ``max_score_inactive`` before the global clamp,
and the result is rounded half-up to one decimal place.

Frequency uses a linear-with-cap curve: ``min(count * per_event, cap)``.
"""

import math
from collections.abc import Sequence
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal

from voter_scoring.lib.participation_score.config import DEFAULT_SCORING_CONFIG, ScoringConfig
from voter_scoring.lib.participation_score.errors import ValidationError
from voter_scoring.lib.participation_score.history import has_non_general_event, normalize_history
from voter_scoring.lib.participation_score.types import NormalizedEvent, RawHistoryEvent, VoterStatus

_DAYS_PER_YEAR = 365.25


def round_half_up(value: float, places: int = 1) -> float:
    """Round to ``places`` decimals with halves rounded away from zero.

    Uses the shortest decimal representation of the float so that e.g.
    ``7.65`` rounds to ``7.7`` rather than ``7.6``.
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def validate_status(status: object) -> VoterStatus:
    """Return the status as a ``VoterStatus``.

    Raises:
        ValidationError: If status is not exactly "Active" or "Inactive".
    """
    if not isinstance(status, str) or status not in (VoterStatus.ACTIVE, VoterStatus.INACTIVE):
        msg = f"status must be 'Active' or 'Inactive', got {status!r}"
        raise ValidationError(msg)
    return VoterStatus(status)


def years_between(earlier: date, later: date) -> float:
    """Fractional years from ``earlier`` to ``later``; never negative."""
    return max((later - earlier).days / _DAYS_PER_YEAR, 0.0)


def base_points(status: VoterStatus, config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> float:
    """Base points awarded for registration status."""
    if status is VoterStatus.ACTIVE:
        return config.base_points_active
    return config.base_points_inactive


def recency_points(
    history: Sequence[NormalizedEvent],
    as_of: date,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> float:
    """Points for how recently the voter last voted.

    Args:
        history: Normalized history, most recent first.
        as_of: Evaluation date.
        config: Scoring constants.

    Returns:
        Points of the bracket with the largest minimum age not exceeding the
        age of the most recent vote; 0.0 with no history or when the most
        recent vote is older than ``recency_max_years``.
    """
    if not history:
        return 0.0
    years_ago = years_between(history[0].parsed_date, as_of)
    if years_ago > config.recency_max_years:
        return 0.0
    points = 0.0
    for min_years, bracket_points in config.recency_brackets:
        if years_ago >= min_years:
            points = bracket_points
    return points


def frequency_points(event_count: int, config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> float:
    """Linear frequency points, saturating at ``max_frequency_points``."""
    if event_count <= 0:
        return 0.0
    return min(event_count * config.frequency_points_per_event, config.max_frequency_points)


def diversity_multiplier(
    history: Sequence[NormalizedEvent],
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> float:
    """Bonus multiplier on frequency points; one non-general vote is enough."""
    if has_non_general_event(history):
        return config.diversity_multiplier
    return 1.0


def calculate_participation_score(
    status: str,
    history: Sequence[RawHistoryEvent],
    *,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    as_of: date | None = None,
) -> float:
    """Calculate the participation score for a single voter.

    Args:
        status: "Active" or "Inactive".
        history: The voter's history events, in any order.  Callers decide
            which lookback window to load; every event given is counted.
        config: Scoring constants.
        as_of: Evaluation date; defaults to today (UTC).

    Returns:
        Score rounded to one decimal place, within ``[min_score, max_score]``.

    Raises:
        ValidationError: If the status is invalid, history is not a list, or
            any event date is malformed.
    """
    voter_status = validate_status(status)
    normalized = normalize_history(history)
    evaluation_date = as_of or datetime.now(UTC).date()

    score = (
        base_points(voter_status, config)
        + recency_points(normalized, evaluation_date, config)
        + frequency_points(len(normalized), config) * diversity_multiplier(normalized, config)
    )

    if voter_status is VoterStatus.INACTIVE:
        score = min(score, config.max_score_inactive)
    score = max(config.min_score, min(score, config.max_score))

    return round_half_up(score)


def is_valid_score(score: object, config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> bool:
    """Whether a value is a finite score within the configured range."""
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return False
    return math.isfinite(score) and config.min_score <= score <= config.max_score
