"""Batch recomputation pipeline for participation scores.

Public API:
    - BatchScoreUpdater: Paginated fetch -> score -> persist orchestrator
    - ScoreRunStats: Run totals and final status
    - VoterRegistry: Abstract paginated voter source
    - ScorePersistence: Abstract score writer
    - FallbackScorePersistence: Primary tier with fallback on PersistenceError
"""

from voter_scoring.lib.score_pipeline.persistence import FallbackScorePersistence, ScorePersistence
from voter_scoring.lib.score_pipeline.registry import VoterRegistry
from voter_scoring.lib.score_pipeline.updater import (
    DEFAULT_BATCH_SIZE,
    BatchScoreUpdater,
    PageResult,
    ScoreRunStats,
)

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "BatchScoreUpdater",
    "FallbackScorePersistence",
    "PageResult",
    "ScorePersistence",
    "ScoreRunStats",
    "VoterRegistry",
]
