"""Integration tests for the SQL voter registry and score summaries against SQLite."""

from datetime import date

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from voter_scoring.lib.participation_score import ValidationError, VoterStatus
from voter_scoring.models.voter import Voter
from voter_scoring.models.voter_history import VoterHistory
from voter_scoring.services.score_store import SqlVoterRegistry
from voter_scoring.services.score_summary_service import get_cohort_score, get_voter_score

AS_OF = date(2026, 6, 1)


async def _seed(session: AsyncSession) -> None:
    session.add_all(
        [
            Voter(county="FULTON", voter_registration_number="00000001", status="ACTIVE", participation_score=7.5),
            Voter(county="FULTON", voter_registration_number="00000002", status="I", participation_score=3.0),
            Voter(county="COBB", voter_registration_number="00000003", status="A", participation_score=6.5),
            Voter(county="COBB", voter_registration_number="00000004", status="PENDING"),
            VoterHistory(
                voter_registration_number="00000001",
                county="FULTON",
                election_date=date(2024, 11, 5),
                election_type="GENERAL ELECTION",
            ),
            VoterHistory(
                voter_registration_number="00000001",
                county="FULTON",
                election_date=date(2024, 5, 21),
                election_type="GENERAL PRIMARY",
                absentee=True,
            ),
            # Outside the default 8 year lookback
            VoterHistory(
                voter_registration_number="00000001",
                county="FULTON",
                election_date=date(2016, 11, 8),
                election_type="GENERAL ELECTION",
            ),
            VoterHistory(
                voter_registration_number="00000003",
                county="COBB",
                election_date=date(2021, 1, 5),
                election_type="SPECIAL ELECTION RUNOFF",
            ),
        ]
    )
    await session.commit()


class TestSqlVoterRegistry:
    @pytest.mark.asyncio
    async def test_pages_in_registration_order(self, async_session: AsyncSession) -> None:
        await _seed(async_session)
        registry = SqlVoterRegistry(async_session, as_of=AS_OF)

        first = await registry.fetch_page(None, 2)
        second = await registry.fetch_page(first[-1].registration_number, 2)
        third = await registry.fetch_page(second[-1].registration_number, 2)

        assert [r.registration_number for r in first] == ["00000001", "00000002"]
        assert [r.registration_number for r in second] == ["00000003", "00000004"]
        assert third == []

    @pytest.mark.asyncio
    async def test_statuses_normalized(self, async_session: AsyncSession) -> None:
        await _seed(async_session)
        records = await SqlVoterRegistry(async_session, as_of=AS_OF).fetch_page(None, 10)

        assert [r.status for r in records] == ["Active", "Inactive", "Active", "PENDING"]

    @pytest.mark.asyncio
    async def test_history_limited_to_lookback(self, async_session: AsyncSession) -> None:
        await _seed(async_session)
        records = await SqlVoterRegistry(async_session, as_of=AS_OF).fetch_page(None, 1)

        dates = sorted(e.election_date for e in records[0].history)
        assert dates == ["2024-05-21", "2024-11-05"]
        assert any(e.absentee for e in records[0].history)

    @pytest.mark.asyncio
    async def test_unbounded_lookback(self, async_session: AsyncSession) -> None:
        await _seed(async_session)
        records = await SqlVoterRegistry(async_session, as_of=AS_OF, lookback_years=None).fetch_page(None, 1)

        assert len(records[0].history) == 3

    @pytest.mark.asyncio
    async def test_voter_without_history(self, async_session: AsyncSession) -> None:
        await _seed(async_session)
        record = await SqlVoterRegistry(async_session, as_of=AS_OF).fetch_voter("00000002")

        assert record is not None
        assert record.history == ()

    @pytest.mark.asyncio
    async def test_fetch_unknown_voter(self, async_session: AsyncSession) -> None:
        assert await SqlVoterRegistry(async_session, as_of=AS_OF).fetch_voter("99999999") is None


class TestGetVoterScore:
    @pytest.mark.asyncio
    async def test_live_score(self, async_session: AsyncSession) -> None:
        await _seed(async_session)
        # 2.0 base + 4.0 recency + 2 events * 0.5
        assert await get_voter_score(async_session, "00000001", as_of=AS_OF) == 7.0

    @pytest.mark.asyncio
    async def test_non_general_bonus(self, async_session: AsyncSession) -> None:
        await _seed(async_session)
        # 2.0 base + 2.0 recency (5.4 years) + 0.5 * 1.1
        assert await get_voter_score(async_session, "00000003", as_of=AS_OF) == 4.6

    @pytest.mark.asyncio
    async def test_inactive_without_history(self, async_session: AsyncSession) -> None:
        await _seed(async_session)
        assert await get_voter_score(async_session, "00000002", as_of=AS_OF) == 1.0

    @pytest.mark.asyncio
    async def test_unknown_voter(self, async_session: AsyncSession) -> None:
        assert await get_voter_score(async_session, "99999999", as_of=AS_OF) is None

    @pytest.mark.asyncio
    async def test_unrecognized_status_rejected(self, async_session: AsyncSession) -> None:
        await _seed(async_session)
        with pytest.raises(ValidationError):
            await get_voter_score(async_session, "00000004", as_of=AS_OF)


class TestGetCohortScore:
    @pytest.mark.asyncio
    async def test_all_scored_voters(self, async_session: AsyncSession) -> None:
        await _seed(async_session)
        # (7.5 + 3.0 + 6.5) / 3 = 5.666 -> 5.7; the unscored voter is ignored
        assert await get_cohort_score(async_session) == (5.7, 3)

    @pytest.mark.asyncio
    async def test_county_filter_case_insensitive(self, async_session: AsyncSession) -> None:
        await _seed(async_session)
        assert await get_cohort_score(async_session, county="fulton") == (5.3, 2)

    @pytest.mark.asyncio
    async def test_status_filter_matches_raw_codes(self, async_session: AsyncSession) -> None:
        await _seed(async_session)
        assert await get_cohort_score(async_session, status=VoterStatus.ACTIVE) == (7.0, 2)
        assert await get_cohort_score(async_session, status=VoterStatus.INACTIVE) == (3.0, 1)

    @pytest.mark.asyncio
    async def test_empty_cohort(self, async_session: AsyncSession) -> None:
        await _seed(async_session)
        assert await get_cohort_score(async_session, county="DEKALB") == (None, 0)
