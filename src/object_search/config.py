"""Centralized configuration for object-search using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Strictly typed engine configuration loaded from environment variables.

    Every setting can be overridden with an ``OBJECT_SEARCH_`` prefixed
    environment variable, e.g. ``OBJECT_SEARCH_DEFAULT_MAX_RESULTS=50``.
    """

    model_config = SettingsConfigDict(
        env_prefix="OBJECT_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Result sizing
    default_max_results: int = Field(default=20, ge=1, description="Results returned when max_results is omitted")
    fetch_multiplier: int = Field(
        default=2,
        ge=1,
        description="Per-field hits fetched per requested result before re-ranking",
    )

    # Query planning
    analyzer_name: str = Field(default="default", description="Analyzer used for indexing and query words")
    tier_decay_step: float = Field(
        default=0.05,
        ge=0.0,
        lt=0.2,
        description="Score decay applied per query tier (tier n scores 1 - n * step)",
    )
    near_phrase_slop: int = Field(default=2, ge=0, description="Intervening tokens allowed in near-phrase tiers")
    majority_ratio: float = Field(
        default=0.6,
        gt=0.0,
        le=1.0,
        description="Share of query words required by the majority-words tier",
    )
    fuzzy_min_word_length: int = Field(default=4, ge=1, description="Shortest word eligible for fuzzy matching")
    fuzzy_max_edits: int = Field(default=1, ge=0, le=2, description="Maximum edit distance of fuzzy terms")

    # Ranking
    bm25_k1: float = Field(default=1.2, gt=0.0, description="BM25 term frequency saturation")
    bm25_b: float = Field(default=0.75, ge=0.0, le=1.0, description="BM25 length normalization")
    relation_score: float = Field(default=0.1, gt=0.0, description="Score given to relation-expanded results")
    tie_break_by_similarity: bool = Field(
        default=False,
        description="Order equal scores by name similarity to the query instead of collection order",
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    """Return the process-wide settings instance."""
    return EngineSettings()
