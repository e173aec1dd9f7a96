"""Batch score updater: paginated fetch -> score -> persist -> advance.

Pages are processed strictly one after another, so only one page is
resident at a time and no two writers race on the same rows.  Record-level
failures are counted and skipped; a page that cannot be written is counted
and skipped; only a failure to fetch the next page ends the run.
"""

import asyncio
import time
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime

from loguru import logger

from voter_scoring.lib.participation_score.calculator import calculate_participation_score, is_valid_score
from voter_scoring.lib.participation_score.config import DEFAULT_SCORING_CONFIG, ScoringConfig
from voter_scoring.lib.participation_score.errors import (
    CalculationError,
    FatalRunError,
    PersistenceError,
    ValidationError,
)
from voter_scoring.lib.participation_score.types import ScoreUpdate, VoterRecord
from voter_scoring.lib.score_pipeline.persistence import ScorePersistence
from voter_scoring.lib.score_pipeline.registry import VoterRegistry

DEFAULT_BATCH_SIZE = 5000


@dataclass
class ScoreRunStats:
    """Running totals for one score run.

    Attributes:
        processed: Records fetched from the registry.
        updated: Rows the persistence tiers reported as actually updated.
        errored: Records that failed validation or scoring.
        batches: Pages fetched (excluding the final empty page).
        failed_batches: Pages whose scores could not be written at all.
        offset: Position in the roll, advanced by records fetched.
        cancelled: Whether the run stopped early on request.
        elapsed_seconds: Wall-clock duration of the run.
    """

    processed: int = 0
    updated: int = 0
    errored: int = 0
    batches: int = 0
    failed_batches: int = 0
    offset: int = 0
    cancelled: bool = False
    elapsed_seconds: float = 0.0

    @property
    def status(self) -> str:
        """``completed``, ``completed_with_errors`` or ``cancelled``."""
        if self.cancelled:
            return "cancelled"
        if self.errored or self.failed_batches or self.updated < self.processed:
            return "completed_with_errors"
        return "completed"


@dataclass
class PageResult:
    """Scores computed for one page, plus the records that could not be scored."""

    updates: list[ScoreUpdate]
    errored: int


class BatchScoreUpdater:
    """Recompute and persist participation scores for the whole voter roll.

    Args:
        registry: Source of voter pages, ordered by registration number.
        persistence: Strategy that writes each page's scores.
        batch_size: Records per page.
        config: Scoring constants.
        as_of: Evaluation date for every voter in the run; defaults to today (UTC).
        stop_event: Checked between pages; when set, the run stops cleanly.
        run_id: Identifier attached to progress records.
    """

    def __init__(
        self,
        registry: VoterRegistry,
        persistence: ScorePersistence,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        config: ScoringConfig = DEFAULT_SCORING_CONFIG,
        as_of: date | None = None,
        stop_event: asyncio.Event | None = None,
        run_id: str | None = None,
    ) -> None:
        if batch_size <= 0:
            msg = f"batch_size must be positive, got {batch_size}"
            raise ValueError(msg)
        self._registry = registry
        self._persistence = persistence
        self._batch_size = batch_size
        self._config = config
        self._as_of = as_of or datetime.now(UTC).date()
        self._stop_event = stop_event
        self.run_id = run_id or uuid.uuid4().hex[:12]
        self._log = logger.bind(json_output=True, run_id=self.run_id)

    def score_record(self, record: VoterRecord) -> float:
        """Score a single record.

        Raises:
            ValidationError: If the record's status or history is invalid.
            CalculationError: For any other scoring failure, a missing
                registration number, or an out-of-range result.
        """
        if not record.registration_number:
            raise CalculationError(None, "Voter without registration number")
        try:
            score = calculate_participation_score(
                record.status,
                record.history,
                config=self._config,
                as_of=self._as_of,
            )
        except ValidationError:
            raise
        except Exception as e:
            raise CalculationError(record.registration_number, str(e)) from e
        if not is_valid_score(score, self._config):
            raise CalculationError(record.registration_number, f"Calculated score {score!r} is out of range")
        return score

    def score_page(self, records: Sequence[VoterRecord]) -> PageResult:
        """Score every record of a page, excluding (and counting) the failures."""
        updates: list[ScoreUpdate] = []
        errored = 0
        for record in records:
            try:
                score = self.score_record(record)
            except ValidationError as e:
                errored += 1
                logger.warning(f"Invalid voter data for {record.registration_number}: {e}")
                continue
            except CalculationError as e:
                errored += 1
                logger.error(f"Error calculating score: {e}")
                continue
            updates.append((record.registration_number, score))  # type: ignore[arg-type]
        return PageResult(updates=updates, errored=errored)

    async def _fetch_page(self, cursor: str | None, stats: ScoreRunStats) -> list[VoterRecord]:
        try:
            return await self._registry.fetch_page(cursor, self._batch_size)
        except Exception as e:
            msg = f"Failed to fetch batch at offset {stats.offset}: {e}"
            raise FatalRunError(msg) from e

    async def run(self) -> ScoreRunStats:
        """Run to completion (or until stopped).

        Returns:
            Final run statistics.

        Raises:
            FatalRunError: If a page cannot be fetched or pagination cannot
                advance.  Pages already written stay committed.
        """
        stats = ScoreRunStats()
        cursor: str | None = None
        started = time.monotonic()
        self._log.info(
            f"Starting participation score run {self.run_id} "
            f"(batch_size={self._batch_size}, as_of={self._as_of.isoformat()})"
        )

        try:
            while True:
                if self._stop_event is not None and self._stop_event.is_set():
                    stats.cancelled = True
                    self._log.warning(f"Score run {self.run_id} cancelled at offset {stats.offset}")
                    break

                logger.debug(f"Fetching next batch (offset: {stats.offset}, size: {self._batch_size})")
                page = await self._fetch_page(cursor, stats)
                if not page:
                    logger.debug("No more voters to score")
                    break

                result = self.score_page(page)
                updated = 0
                if result.updates:
                    try:
                        updated = await self._persistence.persist(result.updates)
                    except PersistenceError as e:
                        stats.failed_batches += 1
                        logger.error(f"Could not persist {len(result.updates)} scores at offset {stats.offset}: {e}")
                else:
                    logger.info(f"No valid scores in batch at offset {stats.offset}")

                stats.batches += 1
                stats.processed += len(page)
                stats.updated += updated
                stats.errored += result.errored
                stats.offset += len(page)
                cursor = self._advance_cursor(cursor, page)

                self._log.info(
                    f"Batch {stats.batches} complete: fetched={len(page)}, scored={len(result.updates)}, "
                    f"updated={updated}, errors={result.errored}. "
                    f"Totals: processed={stats.processed}, updated={stats.updated}, errored={stats.errored}"
                )
        finally:
            stats.elapsed_seconds = time.monotonic() - started

        self._log.info(
            f"Score run {self.run_id} {stats.status}: processed={stats.processed}, updated={stats.updated}, "
            f"errored={stats.errored}, failed_batches={stats.failed_batches} in {stats.elapsed_seconds:.1f}s"
        )
        return stats

    @staticmethod
    def _advance_cursor(cursor: str | None, page: Sequence[VoterRecord]) -> str:
        """Return the keyset cursor after ``page``.

        Raises:
            FatalRunError: If the page carries no usable registration number or
                the registry returned the same page again.
        """
        next_cursor = next((r.registration_number for r in reversed(page) if r.registration_number), None)
        if next_cursor is None or next_cursor == cursor:
            msg = f"Pagination cannot advance past cursor {cursor!r}"
            raise FatalRunError(msg)
        return next_cursor
