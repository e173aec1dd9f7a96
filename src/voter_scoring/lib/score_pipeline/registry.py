"""Abstract voter registry interface consumed by the batch score updater."""

from abc import ABC, abstractmethod

from voter_scoring.lib.participation_score.types import VoterRecord


class VoterRegistry(ABC):
    """Paginated, deterministically ordered read access to the voter roll."""

    @abstractmethod
    async def fetch_page(self, after: str | None, limit: int) -> list[VoterRecord]:
        """Fetch the next page of voters.

        Pages are ordered by registration number; ``after`` is the last
        registration number of the previous page (None for the first page).

        Args:
            after: Keyset cursor, exclusive.
            limit: Maximum number of records to return.

        Returns:
            Up to ``limit`` voter records; an empty list once the roll is exhausted.
        """
