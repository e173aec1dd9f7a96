"""ORM model registry: the voter registry tables the scoring engine reads and writes."""

from voter_scoring.models.voter import Voter
from voter_scoring.models.voter_history import VoterHistory

__all__ = [
    "Voter",
    "VoterHistory",
]
