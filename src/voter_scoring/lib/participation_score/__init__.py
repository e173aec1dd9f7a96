"""Participation scoring library.

Public API:
    - calculate_participation_score: Score one voter from status + history
    - average_score: Mean score of a cohort (records or precomputed scores)
    - normalize_history / classify_election_type / parse_event_date: History normalization
    - score_label / SCORE_RANGES: Score bands
    - ScoringConfig / DEFAULT_SCORING_CONFIG: Tunable constants
    - HistoryEvent / VoterRecord / VoterStatus / ElectionCategory: Data types
    - ScoringError and subclasses: Error taxonomy
"""

from voter_scoring.lib.participation_score.aggregate import average_score
from voter_scoring.lib.participation_score.calculator import (
    calculate_participation_score,
    frequency_points,
    is_valid_score,
    recency_points,
    round_half_up,
)
from voter_scoring.lib.participation_score.config import DEFAULT_SCORING_CONFIG, ScoringConfig
from voter_scoring.lib.participation_score.errors import (
    CalculationError,
    FatalRunError,
    PersistenceError,
    ScoringError,
    ValidationError,
)
from voter_scoring.lib.participation_score.history import (
    classify_election_type,
    normalize_history,
    parse_event_date,
)
from voter_scoring.lib.participation_score.labels import SCORE_RANGES, ScoreRange, score_label
from voter_scoring.lib.participation_score.types import (
    ElectionCategory,
    HistoryEvent,
    NormalizedEvent,
    ScoreUpdate,
    VoterRecord,
    VoterStatus,
)

__all__ = [
    "DEFAULT_SCORING_CONFIG",
    "SCORE_RANGES",
    "CalculationError",
    "ElectionCategory",
    "FatalRunError",
    "HistoryEvent",
    "NormalizedEvent",
    "PersistenceError",
    "ScoreRange",
    "ScoreUpdate",
    "ScoringConfig",
    "ScoringError",
    "ValidationError",
    "VoterRecord",
    "VoterStatus",
    "average_score",
    "calculate_participation_score",
    "classify_election_type",
    "frequency_points",
    "is_valid_score",
    "normalize_history",
    "parse_event_date",
    "recency_points",
    "round_half_up",
    "score_label",
]
