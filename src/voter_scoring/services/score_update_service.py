"""Score update service: wires the SQL registry and persistence tiers into a batch run."""

import asyncio
from datetime import UTC, date, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from voter_scoring.core.config import Settings
from voter_scoring.core.database import is_postgres_url
from voter_scoring.lib.score_pipeline import (
    BatchScoreUpdater,
    FallbackScorePersistence,
    ScorePersistence,
    ScoreRunStats,
)
from voter_scoring.services.score_store import BulkScorePersistence, PerRowScorePersistence, SqlVoterRegistry


def build_score_persistence(session: AsyncSession, settings: Settings, *, bulk: bool = True) -> ScorePersistence:
    """Build the persistence strategy for a run.

    Args:
        session: Database session shared for the lifetime of the run.
        settings: Application settings.
        bulk: When False, skip the bulk tier and write one row at a time.

    Returns:
        Bulk-with-per-row-fallback strategy, or the per-row tier alone.
    """
    per_row = PerRowScorePersistence(session)
    if not bulk:
        return per_row
    # statement_timeout is a PostgreSQL setting
    timeout_ms = settings.score_statement_timeout_ms if is_postgres_url(settings.database_url) else None
    return FallbackScorePersistence(BulkScorePersistence(session, statement_timeout_ms=timeout_ms), per_row)


async def run_score_update(
    session: AsyncSession,
    settings: Settings,
    *,
    as_of: date | None = None,
    batch_size: int | None = None,
    bulk: bool = True,
    stop_event: asyncio.Event | None = None,
) -> ScoreRunStats:
    """Recompute and persist participation scores for every voter.

    Args:
        session: Database session shared for the lifetime of the run.
        settings: Application settings (batch size, lookback, scoring tunables).
        as_of: Evaluation date; defaults to today (UTC).
        batch_size: Overrides ``settings.score_batch_size``.
        bulk: Whether to try the bulk update tier first.
        stop_event: Set to stop the run between batches.

    Returns:
        Final run statistics.

    Raises:
        FatalRunError: If a page of voters cannot be fetched.
    """
    evaluation_date = as_of or datetime.now(UTC).date()
    registry = SqlVoterRegistry(
        session,
        as_of=evaluation_date,
        lookback_years=settings.score_history_lookback_years,
    )
    updater = BatchScoreUpdater(
        registry,
        build_score_persistence(session, settings, bulk=bulk),
        batch_size=batch_size or settings.score_batch_size,
        config=settings.scoring_config(),
        as_of=evaluation_date,
        stop_event=stop_event,
    )
    return await updater.run()
