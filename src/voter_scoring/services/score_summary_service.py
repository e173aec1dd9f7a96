"""Score summary service: live single-voter scores and cohort averages."""

from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from voter_scoring.lib.participation_score import (
    DEFAULT_SCORING_CONFIG,
    ScoringConfig,
    VoterStatus,
    average_score,
    calculate_participation_score,
)
from voter_scoring.models.voter import Voter
from voter_scoring.services.score_store import SqlVoterRegistry

# Raw registry values for each normalized status
_RAW_STATUS_CODES: dict[VoterStatus, tuple[str, ...]] = {
    VoterStatus.ACTIVE: ("ACTIVE", "A"),
    VoterStatus.INACTIVE: ("INACTIVE", "I"),
}


async def get_voter_score(
    session: AsyncSession,
    voter_registration_number: str,
    *,
    as_of: date,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    lookback_years: int | None = 8,
) -> float | None:
    """Compute a voter's score live from the registry.

    Args:
        session: Database session.
        voter_registration_number: The voter's registration number.
        as_of: Evaluation date.
        config: Scoring constants.
        lookback_years: History window loaded for the calculation.

    Returns:
        The score, or None if the voter is not registered.

    Raises:
        ValidationError: If the voter's stored status or history is invalid.
    """
    registry = SqlVoterRegistry(session, as_of=as_of, lookback_years=lookback_years)
    record = await registry.fetch_voter(voter_registration_number)
    if record is None:
        return None
    return calculate_participation_score(record.status, record.history, config=config, as_of=as_of)


async def get_cohort_score(
    session: AsyncSession,
    *,
    county: str | None = None,
    status: VoterStatus | None = None,
) -> tuple[float | None, int]:
    """Average the stored scores of a cohort of voters.

    Voters not yet scored are ignored.

    Args:
        session: Database session.
        county: Restrict to one county (case-insensitive).
        status: Restrict to active or inactive voters.

    Returns:
        Tuple of (average score or None when no voter is scored, voter count).
    """
    query = select(Voter.participation_score).where(Voter.participation_score.is_not(None))
    if county:
        query = query.where(func.upper(Voter.county) == county.strip().upper())
    if status is not None:
        query = query.where(func.upper(Voter.status).in_(_RAW_STATUS_CODES[status]))

    result = await session.execute(query)
    scores = [float(s) for s in result.scalars().all()]
    return average_score(scores=scores), len(scores)
