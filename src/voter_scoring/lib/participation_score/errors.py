"""Error taxonomy for participation scoring and batch recomputation.

Record- and row-level errors are recovered by the batch pipeline and folded
into run statistics; only ``FatalRunError`` is allowed to end a run.
"""


class ScoringError(Exception):
    """Base class for all participation scoring errors."""


class ValidationError(ScoringError, ValueError):
    """Raised when a voter's status or history fails input validation.

    Record-local: the voter is excluded from the current run's update.
    """


class CalculationError(ScoringError):
    """Raised when scoring a single voter fails for a reason other than validation.

    Args:
        registration_number: Voter whose score could not be computed.
        message: Human-readable error description.
    """

    def __init__(self, registration_number: str | None, message: str) -> None:
        self.registration_number = registration_number
        self.message = message
        super().__init__(f"{registration_number or '<missing registration number>'}: {message}")


class PersistenceError(ScoringError):
    """Raised when a persistence tier cannot write a batch of scores.

    Args:
        tier: Name of the failing persistence tier.
        message: Human-readable error description.
        batch_size: Number of (id, score) pairs in the failed batch.
    """

    def __init__(self, tier: str, message: str, batch_size: int = 0) -> None:
        self.tier = tier
        self.message = message
        self.batch_size = batch_size
        super().__init__(f"{tier}: {message}")


class FatalRunError(ScoringError):
    """Raised when a score run cannot continue (e.g., the next page cannot be fetched).

    Batches persisted before the failure remain committed.
    """
