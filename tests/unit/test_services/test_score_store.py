"""Unit tests for the SQL score store: status mapping, statements and persistence tiers.

The persistence tiers are exercised against mocked sessions; statement
shape is checked by compiling with the PostgreSQL dialect.
"""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from voter_scoring.lib.participation_score import PersistenceError
from voter_scoring.services.score_store import (
    BulkScorePersistence,
    PerRowScorePersistence,
    build_bulk_score_update,
    build_single_score_update,
    lookback_start,
    normalize_registry_status,
)

BATCH = [("00000001", 7.5), ("00000002", 3.0), ("00000003", 10.0)]

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mock_session() -> AsyncMock:
    """Create a mock session whose begin_nested() works as an async context manager."""
    session = AsyncMock()
    session.begin_nested = MagicMock(
        return_value=MagicMock(
            __aenter__=AsyncMock(),
            __aexit__=AsyncMock(return_value=False),
        )
    )
    return session


def _result(rowcount: int) -> MagicMock:
    result = MagicMock()
    result.rowcount = rowcount
    return result


def _db_error() -> OperationalError:
    return OperationalError("UPDATE voters", {}, Exception("canceling statement due to statement timeout"))


# ---------------------------------------------------------------------------
# Status mapping and lookback
# ---------------------------------------------------------------------------


class TestNormalizeRegistryStatus:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("ACTIVE", "Active"),
            ("active", "Active"),
            ("A", "Active"),
            ("INACTIVE", "Inactive"),
            (" I ", "Inactive"),
        ],
    )
    def test_known_values(self, raw: str, expected: str) -> None:
        assert normalize_registry_status(raw) == expected

    def test_unknown_value_passed_through(self) -> None:
        assert normalize_registry_status("PENDING") == "PENDING"

    def test_none_becomes_empty(self) -> None:
        assert normalize_registry_status(None) == ""


class TestLookbackStart:
    def test_plain_date(self) -> None:
        assert lookback_start(date(2026, 6, 1), 8) == date(2018, 6, 1)

    def test_leap_day_falls_back(self) -> None:
        assert lookback_start(date(2028, 2, 29), 1) == date(2027, 2, 28)


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


class TestBuildBulkScoreUpdate:
    def test_single_parameterized_statement(self) -> None:
        compiled = build_bulk_score_update(BATCH).compile(dialect=postgresql.dialect())
        sql = str(compiled)

        assert sql.startswith("UPDATE voters SET participation_score=")
        assert "VALUES" in sql
        assert "00000001" not in sql
        assert "00000001" in compiled.params.values()
        assert 7.5 in compiled.params.values()

    def test_hostile_registration_number_is_bound(self) -> None:
        hostile = "1'); DROP TABLE voters; --"
        compiled = build_bulk_score_update([(hostile, 5.0)]).compile(dialect=postgresql.dialect())

        assert "DROP TABLE" not in str(compiled)
        assert hostile in compiled.params.values()

    def test_single_update(self) -> None:
        compiled = build_single_score_update("00000001", 7.5).compile(dialect=postgresql.dialect())

        assert "WHERE voters.voter_registration_number =" in str(compiled)
        assert set(compiled.params.values()) == {"00000001", 7.5}


# ---------------------------------------------------------------------------
# Persistence tiers
# ---------------------------------------------------------------------------


class TestBulkScorePersistence:
    @pytest.mark.asyncio
    async def test_returns_rows_updated(self) -> None:
        session = _mock_session()
        session.execute.return_value = _result(2)

        updated = await BulkScorePersistence(session).persist(BATCH)

        assert updated == 2
        assert session.execute.await_count == 1
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_statement_timeout_set_first(self) -> None:
        session = _mock_session()
        session.execute.side_effect = [MagicMock(), _result(3)]

        await BulkScorePersistence(session, statement_timeout_ms=30000).persist(BATCH)

        first_stmt = session.execute.await_args_list[0].args[0]
        assert "set_config" in str(first_stmt.compile(dialect=postgresql.dialect()))
        assert session.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_database_error_raises_persistence_error(self) -> None:
        session = _mock_session()
        session.execute.side_effect = _db_error()

        with pytest.raises(PersistenceError) as exc_info:
            await BulkScorePersistence(session).persist(BATCH)

        assert exc_info.value.tier == "bulk"
        assert exc_info.value.batch_size == 3
        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_batch(self) -> None:
        session = _mock_session()
        assert await BulkScorePersistence(session).persist([]) == 0
        session.execute.assert_not_awaited()


class TestPerRowScorePersistence:
    @pytest.mark.asyncio
    async def test_all_rows_written(self) -> None:
        session = _mock_session()
        session.execute.return_value = _result(1)

        assert await PerRowScorePersistence(session).persist(BATCH) == 3
        assert session.begin_nested.call_count == 3
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_row_skipped_others_committed(self) -> None:
        session = _mock_session()
        session.execute.side_effect = [_result(1), _db_error(), _result(1)]

        assert await PerRowScorePersistence(session).persist(BATCH) == 2
        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unmatched_row_not_counted(self) -> None:
        session = _mock_session()
        session.execute.side_effect = [_result(1), _result(0), _result(1)]

        assert await PerRowScorePersistence(session).persist(BATCH) == 2

    @pytest.mark.asyncio
    async def test_commit_failure_raises_persistence_error(self) -> None:
        session = _mock_session()
        session.execute.return_value = _result(1)
        session.commit.side_effect = _db_error()

        with pytest.raises(PersistenceError) as exc_info:
            await PerRowScorePersistence(session).persist(BATCH)

        assert exc_info.value.tier == "per_row"
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cancellation_rolls_back(self) -> None:
        import asyncio

        session = _mock_session()
        session.execute.side_effect = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await PerRowScorePersistence(session).persist(BATCH)

        session.rollback.assert_awaited_once()
