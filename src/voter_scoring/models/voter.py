"""Voter model: registry entity sourced from the Georgia Secretary of State voter file.

Only the columns the scoring engine reads or writes are mapped here.
"""

from sqlalchemy import Float, String
from sqlalchemy.orm import Mapped, mapped_column

from voter_scoring.models.base import Base, TimestampMixin, UUIDMixin


class Voter(Base, UUIDMixin, TimestampMixin):
    """Individual voter record from the GA Secretary of State voter file."""

    __tablename__ = "voters"

    county: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    voter_registration_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    # Recomputed in full by each score run; NULL until the first run reaches the voter
    participation_score: Mapped[float | None] = mapped_column(Float, nullable=True, index=True)
