"""Score persistence strategy interface and the bulk-then-per-row fallback."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from loguru import logger

from voter_scoring.lib.participation_score.errors import PersistenceError
from voter_scoring.lib.participation_score.types import ScoreUpdate


class ScorePersistence(ABC):
    """Writes one batch of computed scores. All tiers implement this."""

    @property
    @abstractmethod
    def tier_name(self) -> str:
        """Short name identifying this tier in logs and errors."""

    @abstractmethod
    async def persist(self, batch: Sequence[ScoreUpdate]) -> int:
        """Persist a batch of ``(registration_number, score)`` pairs.

        Args:
            batch: Pairs to write.

        Returns:
            Number of rows actually updated (not merely attempted).

        Raises:
            PersistenceError: If the tier could not write the batch.
        """


class FallbackScorePersistence(ScorePersistence):
    """Try a primary tier; on ``PersistenceError`` retry the batch on a fallback tier.

    Args:
        primary: Preferred tier (typically the bulk update).
        fallback: Tier used when the primary fails (typically per-row updates).
    """

    def __init__(self, primary: ScorePersistence, fallback: ScorePersistence) -> None:
        self._primary = primary
        self._fallback = fallback

    @property
    def tier_name(self) -> str:
        return f"{self._primary.tier_name}->{self._fallback.tier_name}"

    async def persist(self, batch: Sequence[ScoreUpdate]) -> int:
        if not batch:
            return 0
        try:
            return await self._primary.persist(batch)
        except PersistenceError as e:
            logger.warning(
                f"{self._primary.tier_name} failed for {len(batch)} scores ({e}); "
                f"falling back to {self._fallback.tier_name}"
            )
        return await self._fallback.persist(batch)
