"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
Scoring tunables are exposed to the engine as a frozen ``ScoringConfig``.
"""

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from voter_scoring.lib.participation_score import ScoringConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        description="PostgreSQL async connection string",
    )
    database_schema: str | None = Field(
        default=None,
        description="PostgreSQL schema holding the voter registry (e.g., ga_voters)",
    )

    @field_validator("database_schema")
    @classmethod
    def validate_database_schema(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if not re.match(r"^[a-z_][a-z0-9_]{0,62}$", v):
            msg = "Invalid database_schema: must match ^[a-z_][a-z0-9_]{0,62}$"
            raise ValueError(msg)
        return v

    # Batch recomputation
    score_batch_size: int = Field(
        default=5000,
        description="Voters fetched, scored and persisted per batch",
        gt=0,
        # asyncpg has a hard limit of 32767 query parameters; the bulk update binds two per voter
        le=16000,
    )
    score_history_lookback_years: int = Field(
        default=8,
        description="Only history events within this many years of the evaluation date are loaded",
        gt=0,
    )
    score_statement_timeout_ms: int | None = Field(
        default=60000,
        description="PostgreSQL statement_timeout applied to the bulk score update (None disables)",
        gt=0,
    )

    # Scoring tunables
    score_min: float = Field(default=1.0, description="Lowest possible participation score")
    score_max: float = Field(default=10.0, description="Highest possible participation score")
    score_max_inactive: float = Field(default=4.9, description="Cap applied to inactive voters")
    score_base_points_active: float = Field(default=2.0, ge=0, description="Base points for active voters")
    score_base_points_inactive: float = Field(default=1.0, ge=0, description="Base points for inactive voters")
    score_recency_brackets: str = Field(
        default="0:4.0,3:2.0,6:1.0",
        description="Comma-separated min_years:points recency brackets",
    )
    score_recency_max_years: float = Field(
        default=8.0,
        gt=0,
        description="Votes older than this earn no recency points",
    )
    score_frequency_points_per_event: float = Field(
        default=0.5,
        ge=0,
        description="Frequency points earned per history event",
    )
    score_max_frequency_points: float = Field(
        default=4.0,
        ge=0,
        description="Saturation cap for frequency points",
    )
    score_diversity_multiplier: float = Field(
        default=1.1,
        ge=1.0,
        description="Multiplier on frequency points when any non-general election was voted",
    )

    @field_validator("score_recency_brackets")
    @classmethod
    def validate_recency_brackets(cls, v: str) -> str:
        if not re.fullmatch(r"\s*\d+(\.\d+)?\s*:\s*\d+(\.\d+)?\s*(,\s*\d+(\.\d+)?\s*:\s*\d+(\.\d+)?\s*)*", v):
            msg = "score_recency_brackets must look like '0:4.0,3:2.0,6:1.0'"
            raise ValueError(msg)
        return v

    @property
    def recency_bracket_list(self) -> list[tuple[float, float]]:
        """Parse the recency bracket string into (min_years, points) pairs.

        Returns:
            Bracket pairs in the order they were configured.
        """
        pairs: list[tuple[float, float]] = []
        for item in self.score_recency_brackets.split(","):
            min_years, points = item.split(":")
            pairs.append((float(min_years), float(points)))
        return pairs

    def scoring_config(self) -> ScoringConfig:
        """Build the scoring engine configuration from these settings.

        Raises:
            ValueError: If the tunables are mutually inconsistent.
        """
        return ScoringConfig(
            min_score=self.score_min,
            max_score=self.score_max,
            max_score_inactive=self.score_max_inactive,
            base_points_active=self.score_base_points_active,
            base_points_inactive=self.score_base_points_inactive,
            recency_brackets=tuple(self.recency_bracket_list),
            recency_max_years=self.score_recency_max_years,
            frequency_points_per_event=self.score_frequency_points_per_event,
            max_frequency_points=self.score_max_frequency_points,
            diversity_multiplier=self.score_diversity_multiplier,
        )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()  # type: ignore[call-arg]
