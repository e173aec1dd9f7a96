"""Cohort averaging of participation scores."""

import math
from collections.abc import Sequence
from datetime import date

from loguru import logger

from voter_scoring.lib.participation_score.calculator import calculate_participation_score, round_half_up
from voter_scoring.lib.participation_score.config import DEFAULT_SCORING_CONFIG, ScoringConfig
from voter_scoring.lib.participation_score.types import VoterRecord


def average_score(
    voters: Sequence[VoterRecord] | None = None,
    *,
    scores: Sequence[float] | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    as_of: date | None = None,
) -> float | None:
    """Average participation score of a cohort.

    Exactly one of ``voters`` or ``scores`` must be given.  Voter records are
    scored first; precomputed scores are averaged as-is.  Only the final mean
    is rounded (half-up, one decimal).

    Args:
        voters: Raw voter records to score and average.
        scores: Precomputed per-voter scores.
        config: Scoring constants used when scoring ``voters``.
        as_of: Evaluation date used when scoring ``voters``.

    Returns:
        The rounded mean, or None for an empty cohort.

    Raises:
        ValueError: If both or neither of ``voters`` and ``scores`` are given.
        ValidationError: If any voter record fails validation.
    """
    if (voters is None) == (scores is None):
        msg = "Provide exactly one of voters or scores"
        raise ValueError(msg)

    if voters is not None:
        values = [calculate_participation_score(v.status, v.history, config=config, as_of=as_of) for v in voters]
    else:
        values = list(scores or [])

    if not values:
        return None

    average = round_half_up(math.fsum(values) / len(values))
    logger.debug(f"Average participation score for {len(values)} voters: {average}")
    return average
