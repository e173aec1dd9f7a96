"""VoterHistory ORM model: stores individual voter participation records."""

from datetime import date

from sqlalchemy import Boolean, Date, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from voter_scoring.models.base import Base, UUIDMixin


class VoterHistory(Base, UUIDMixin):
    """A single voter's participation in a single election.

    Records join to voters by registration number rather than via a
    foreign key.
    """

    __tablename__ = "voter_history"

    voter_registration_number: Mapped[str] = mapped_column(String(20), nullable=False)
    county: Mapped[str] = mapped_column(String(100), nullable=False)
    election_date: Mapped[date] = mapped_column(Date, nullable=False)
    election_type: Mapped[str] = mapped_column(String(50), nullable=False)
    party: Mapped[str | None] = mapped_column(String(50), nullable=True)
    ballot_style: Mapped[str | None] = mapped_column(String(100), nullable=True)
    absentee: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    provisional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    supplemental: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    __table_args__ = (
        UniqueConstraint(
            "voter_registration_number",
            "election_date",
            "election_type",
            name="uq_voter_history_participation",
        ),
        Index("idx_voter_history_reg_num_date", "voter_registration_number", "election_date"),
    )
