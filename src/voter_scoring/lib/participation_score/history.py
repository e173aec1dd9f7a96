"""History normalization: strict date validation, election classification, recency sort.

Events are validated and classified but never discarded.  Restricting
history to a lookback window is left to whoever loads it.
"""

import re
from collections.abc import Mapping, Sequence
from datetime import date, datetime

from voter_scoring.lib.participation_score.errors import ValidationError
from voter_scoring.lib.participation_score.types import (
    ElectionCategory,
    HistoryEvent,
    NormalizedEvent,
    RawHistoryEvent,
)

GENERAL_KEYWORDS: tuple[str, ...] = ("GENERAL",)
NON_GENERAL_KEYWORDS: tuple[str, ...] = ("PRIMARY", "SPECIAL", "RUNOFF", "RECALL")

_ISO_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def classify_election_type(election_type: str | None) -> ElectionCategory:
    """Classify a free-text election type as general or non-general.

    PRIMARY, SPECIAL, RUNOFF and RECALL denote a non-general election unless
    GENERAL also appears (e.g. "GENERAL PRIMARY" counts as general).

    Args:
        election_type: Raw election type (e.g., "SPECIAL ELECTION RUNOFF").

    Returns:
        The election category.  Missing types are treated as general.
    """
    if not election_type:
        return ElectionCategory.GENERAL
    upper = election_type.strip().upper()
    if any(keyword in upper for keyword in GENERAL_KEYWORDS):
        return ElectionCategory.GENERAL
    if any(keyword in upper for keyword in NON_GENERAL_KEYWORDS):
        return ElectionCategory.NON_GENERAL
    return ElectionCategory.GENERAL


def parse_event_date(value: object) -> date:
    """Parse a history event date strictly.

    Args:
        value: ``YYYY-MM-DD`` string, or a ``date`` instance.

    Returns:
        The parsed date.

    Raises:
        ValidationError: If the value is not an ISO date string or is not a
            real calendar date (e.g. month 13, February 30).
    """
    if isinstance(value, datetime):
        msg = f"Invalid date format in history event: {value!r} (expected a date, got a datetime)"
        raise ValidationError(msg)
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _ISO_DATE_RE.fullmatch(value):
        msg = f"Invalid date format in history event: {value}"
        raise ValidationError(msg)
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        msg = f"Invalid date value in history event: {value}"
        raise ValidationError(msg) from e


def coerce_history_event(raw: RawHistoryEvent) -> HistoryEvent:
    """Accept a ``HistoryEvent`` or a JSON-shaped mapping and return a ``HistoryEvent``.

    Raises:
        ValidationError: If the value is neither, or lacks an election date.
    """
    if isinstance(raw, HistoryEvent):
        return raw
    if not isinstance(raw, Mapping):
        msg = f"History event must be a mapping, got {type(raw).__name__}"
        raise ValidationError(msg)
    if raw.get("election_date") is None:
        msg = "History event is missing election_date"
        raise ValidationError(msg)
    return HistoryEvent(
        election_date=raw["election_date"],
        election_type=raw.get("election_type"),
        party=raw.get("party"),
        ballot_style=raw.get("ballot_style"),
        absentee=bool(raw.get("absentee")),
        provisional=bool(raw.get("provisional")),
        supplemental=bool(raw.get("supplemental")),
    )


def normalize_history(events: Sequence[RawHistoryEvent]) -> list[NormalizedEvent]:
    """Validate, classify and sort a voter's history, most recent first.

    Args:
        events: History events in any order.

    Returns:
        One ``NormalizedEvent`` per input event, sorted by date descending.

    Raises:
        ValidationError: If ``events`` is not a list or tuple, or if any event
            is malformed.
    """
    if not isinstance(events, (list, tuple)):
        msg = f"History events must be a list, got {type(events).__name__}"
        raise ValidationError(msg)

    normalized: list[NormalizedEvent] = []
    for raw in events:
        event = coerce_history_event(raw)
        normalized.append(
            NormalizedEvent(
                parsed_date=parse_event_date(event.election_date),
                category=classify_election_type(event.election_type),
                event=event,
            )
        )

    normalized.sort(key=lambda e: e.parsed_date, reverse=True)
    return normalized


def has_non_general_event(events: Sequence[NormalizedEvent]) -> bool:
    """Whether any event in a normalized history is a non-general election."""
    return any(e.category is ElectionCategory.NON_GENERAL for e in events)
