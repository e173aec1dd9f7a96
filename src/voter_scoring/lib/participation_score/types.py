"""Data types shared by the scoring engine and the batch pipeline."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from typing import Any, TypeAlias


class VoterStatus(StrEnum):
    """Normalized registration status accepted by the calculator."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"


class ElectionCategory(StrEnum):
    """Coarse election classification used by the diversity bonus."""

    GENERAL = "general"
    NON_GENERAL = "non_general"


@dataclass(frozen=True)
class HistoryEvent:
    """A single observed participation in one election.

    Attributes:
        election_date: ISO ``YYYY-MM-DD`` string (or a ``date``).
        election_type: Free-text election type, e.g. ``"GENERAL PRIMARY"``.
        party: Party ballot requested, if any.
        ballot_style: Ballot style code, if any.
        absentee: Voted absentee.
        provisional: Voted a provisional ballot.
        supplemental: Supplemental ballot flag.
    """

    election_date: str | date
    election_type: str | None = None
    party: str | None = None
    ballot_style: str | None = None
    absentee: bool = False
    provisional: bool = False
    supplemental: bool = False


@dataclass(frozen=True)
class NormalizedEvent:
    """A validated history event with its parsed date and election category."""

    parsed_date: date
    category: ElectionCategory
    event: HistoryEvent


RawHistoryEvent: TypeAlias = HistoryEvent | Mapping[str, Any]


@dataclass(frozen=True)
class VoterRecord:
    """Read-only view of one voter as supplied by the registry.

    Attributes:
        registration_number: Unique voter registration number.
        status: Normalized status (``"Active"``/``"Inactive"``); anything else
            is rejected by the calculator.
        history: Participation history, in any order.
    """

    registration_number: str | None
    status: str
    history: Sequence[RawHistoryEvent] = field(default_factory=tuple)


# (registration_number, score) pair written by the persistence tiers
ScoreUpdate: TypeAlias = tuple[str, float]
