"""Human-readable bands for participation scores."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoreRange:
    """An inclusive score band and its label."""

    min: float
    max: float
    label: str


SCORE_RANGES: tuple[ScoreRange, ...] = (
    ScoreRange(1.0, 2.9, "Needs Attention"),
    ScoreRange(3.0, 4.9, "Needs Review"),
    ScoreRange(5.0, 6.4, "Participates"),
    ScoreRange(6.5, 9.9, "Power Voter"),
    ScoreRange(10.0, 10.0, "Super Power Voter"),
)


def score_label(score: float | None) -> str | None:
    """Return the band label for a one-decimal score, or None if it fits no band."""
    if score is None:
        return None
    for band in SCORE_RANGES:
        if band.min <= score <= band.max:
            return band.label
    return None
