"""SQL-backed voter registry and score persistence tiers.

The registry reads voters in registration-number order with a keyset cursor
and loads each page's history in bounded ``IN`` chunks.  Scores are written
either with one bulk ``UPDATE ... FROM (VALUES ...)`` per page or, as a
fallback, one ``UPDATE`` per voter inside a single transaction.  Every value
reaches the database as a bound parameter.
"""

from collections import defaultdict
from collections.abc import Sequence
from datetime import date

from loguru import logger
from sqlalchemy import Float, String, Update, column, func, select, update, values
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from voter_scoring.lib.participation_score.errors import PersistenceError
from voter_scoring.lib.participation_score.types import HistoryEvent, ScoreUpdate, VoterRecord, VoterStatus
from voter_scoring.lib.score_pipeline.persistence import ScorePersistence
from voter_scoring.lib.score_pipeline.registry import VoterRegistry
from voter_scoring.models.voter import Voter
from voter_scoring.models.voter_history import VoterHistory

# asyncpg has a hard limit of 32767 query parameters
_IN_CLAUSE_BATCH = 5000

# Raw status values seen in GA SoS voter files
_REGISTRY_STATUS_MAP: dict[str, VoterStatus] = {
    "ACTIVE": VoterStatus.ACTIVE,
    "A": VoterStatus.ACTIVE,
    "INACTIVE": VoterStatus.INACTIVE,
    "I": VoterStatus.INACTIVE,
}


def normalize_registry_status(raw_status: str | None) -> str:
    """Map a raw registry status to "Active"/"Inactive".

    Unknown values are returned unchanged so the calculator rejects them.

    Args:
        raw_status: Status as stored in the voters table (e.g., "ACTIVE", "I").

    Returns:
        The normalized status, or the raw value when it is not recognized.
    """
    if raw_status is None:
        return ""
    return _REGISTRY_STATUS_MAP.get(raw_status.strip().upper(), raw_status)


def lookback_start(as_of: date, years: int) -> date:
    """Return the date ``years`` calendar years before ``as_of`` (Feb 29 maps to Feb 28)."""
    try:
        return as_of.replace(year=as_of.year - years)
    except ValueError:
        return as_of.replace(year=as_of.year - years, day=28)


class SqlVoterRegistry(VoterRegistry):
    """Voter registry backed by the ``voters`` and ``voter_history`` tables.

    Args:
        session: Database session shared for the lifetime of the run.
        as_of: Evaluation date the lookback window is measured from.
        lookback_years: Only history within this many years is loaded; None loads all.
    """

    def __init__(self, session: AsyncSession, *, as_of: date, lookback_years: int | None = 8) -> None:
        self._session = session
        self._as_of = as_of
        self._lookback_years = lookback_years

    async def fetch_page(self, after: str | None, limit: int) -> list[VoterRecord]:
        query = (
            select(Voter.voter_registration_number, Voter.status)
            .order_by(Voter.voter_registration_number)
            .limit(limit)
        )
        if after is not None:
            query = query.where(Voter.voter_registration_number > after)

        result = await self._session.execute(query)
        rows = result.all()
        if not rows:
            return []

        history = await self.load_history([row[0] for row in rows])
        return [
            VoterRecord(
                registration_number=reg_num,
                status=normalize_registry_status(status),
                history=tuple(history.get(reg_num, ())),
            )
            for reg_num, status in rows
        ]

    async def fetch_voter(self, voter_registration_number: str) -> VoterRecord | None:
        """Load a single voter with its history, or None if not registered."""
        result = await self._session.execute(
            select(Voter.status).where(Voter.voter_registration_number == voter_registration_number)
        )
        status = result.scalar_one_or_none()
        if status is None:
            return None
        history = await self.load_history([voter_registration_number])
        return VoterRecord(
            registration_number=voter_registration_number,
            status=normalize_registry_status(status),
            history=tuple(history.get(voter_registration_number, ())),
        )

    async def load_history(self, reg_numbers: Sequence[str]) -> dict[str, list[HistoryEvent]]:
        """Load history events for a set of voters, grouped by registration number.

        Args:
            reg_numbers: Registration numbers to load.

        Returns:
            Mapping of registration number to its events (voters without
            history are absent).
        """
        grouped: dict[str, list[HistoryEvent]] = defaultdict(list)
        for i in range(0, len(reg_numbers), _IN_CLAUSE_BATCH):
            batch = list(reg_numbers[i : i + _IN_CLAUSE_BATCH])
            query = select(
                VoterHistory.voter_registration_number,
                VoterHistory.election_date,
                VoterHistory.election_type,
                VoterHistory.party,
                VoterHistory.ballot_style,
                VoterHistory.absentee,
                VoterHistory.provisional,
                VoterHistory.supplemental,
            ).where(VoterHistory.voter_registration_number.in_(batch))
            if self._lookback_years is not None:
                query = query.where(VoterHistory.election_date >= lookback_start(self._as_of, self._lookback_years))

            result = await self._session.execute(query)
            for row in result.all():
                grouped[row.voter_registration_number].append(
                    HistoryEvent(
                        election_date=row.election_date.isoformat(),
                        election_type=row.election_type,
                        party=row.party,
                        ballot_style=row.ballot_style,
                        absentee=bool(row.absentee),
                        provisional=bool(row.provisional),
                        supplemental=bool(row.supplemental),
                    )
                )
        return grouped


def build_bulk_score_update(batch: Sequence[ScoreUpdate]) -> Update:
    """Build one ``UPDATE voters ... FROM (VALUES ...)`` joining the batch on registration number.

    Each pair is rendered as bound parameters, never as literal SQL.
    """
    source = values(
        column("voter_registration_number", String),
        column("participation_score", Float),
        name="score_source",
    ).data([(reg_num, float(score)) for reg_num, score in batch])
    return (
        update(Voter)
        .where(Voter.voter_registration_number == source.c.voter_registration_number)
        .values(participation_score=source.c.participation_score)
        .execution_options(synchronize_session=False)
    )


def build_single_score_update(voter_registration_number: str, score: float) -> Update:
    """Build the per-voter score ``UPDATE``."""
    return (
        update(Voter)
        .where(Voter.voter_registration_number == voter_registration_number)
        .values(participation_score=float(score))
        .execution_options(synchronize_session=False)
    )


class BulkScorePersistence(ScorePersistence):
    """Write a whole page with a single parameterized bulk statement.

    Args:
        session: Database session shared for the lifetime of the run.
        statement_timeout_ms: Optional PostgreSQL ``statement_timeout`` for the
            update, scoped to the current transaction.
    """

    def __init__(self, session: AsyncSession, *, statement_timeout_ms: int | None = None) -> None:
        self._session = session
        self._statement_timeout_ms = statement_timeout_ms

    @property
    def tier_name(self) -> str:
        return "bulk"

    async def persist(self, batch: Sequence[ScoreUpdate]) -> int:
        if not batch:
            return 0
        try:
            async with self._session.begin_nested():
                if self._statement_timeout_ms is not None:
                    await self._session.execute(
                        select(func.set_config("statement_timeout", str(self._statement_timeout_ms), True))
                    )
                result = await self._session.execute(build_bulk_score_update(batch))
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise PersistenceError(self.tier_name, str(e), batch_size=len(batch)) from e

        updated = result.rowcount or 0  # type: ignore[attr-defined]
        logger.debug(f"Bulk score update wrote {updated} of {len(batch)} rows")
        return updated


class PerRowScorePersistence(ScorePersistence):
    """Write each score with its own ``UPDATE`` inside one transaction.

    A failing row is rolled back to its savepoint, logged and skipped; the
    transaction still commits every row that succeeded.

    Args:
        session: Database session shared for the lifetime of the run.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @property
    def tier_name(self) -> str:
        return "per_row"

    async def persist(self, batch: Sequence[ScoreUpdate]) -> int:
        if not batch:
            return 0
        updated = 0
        failed = 0
        try:
            for reg_num, score in batch:
                try:
                    async with self._session.begin_nested():
                        result = await self._session.execute(build_single_score_update(reg_num, score))
                except SQLAlchemyError as e:
                    failed += 1
                    logger.error(f"Error updating score for voter {reg_num}: {e}")
                    continue
                if (result.rowcount or 0) > 0:  # type: ignore[attr-defined]
                    updated += 1
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise PersistenceError(self.tier_name, str(e), batch_size=len(batch)) from e
        except BaseException:
            await self._session.rollback()
            raise

        logger.info(f"Per-row score update wrote {updated} of {len(batch)} rows ({failed} failed)")
        return updated
