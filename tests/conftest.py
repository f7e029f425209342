"""Shared test fixtures and configuration."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from object_search.config import EngineSettings
from object_search.engine import ObjectSearchEngine
from object_search.search.schema import SearchableField


@dataclass(frozen=True)
class Issuer:
    """Sample indexed type declaring its own searchable fields."""

    code: str
    name: str
    parent_code: str | None = None
    country: str = ""

    @classmethod
    def search_fields(cls) -> tuple[SearchableField, ...]:
        return (
            SearchableField.attribute("name", priority=1, match_threshold=50),
            SearchableField.attribute("code", priority=2, exact_match_only=True),
        )


@dataclass
class Untagged:
    """Type without a search field table."""

    name: str


ISSUERS = (
    Issuer(code="ACM", name="Acme Corp", parent_code="ACM", country="US"),
    Issuer(code="ACH", name="Acme Corp Holdings", parent_code="ACM", country="US"),
    Issuer(code="GLB", name="Global Widgets Limited", parent_code="GLB", country="GB"),
    Issuer(code="BET", name="Beta Industries", parent_code="BET", country="DE"),
    Issuer(code="ZEN", name="Zenith Bank of Commerce", parent_code="ZEN", country="FR"),
    Issuer(code="NON", name="   ", parent_code=None, country="US"),
)


@pytest.fixture
def settings() -> EngineSettings:
    """Settings with defaults only, independent of the environment."""
    return EngineSettings(_env_file=None)


@pytest.fixture
def issuers() -> list[Issuer]:
    return list(ISSUERS)


@pytest.fixture
def engine(issuers: list[Issuer], settings: EngineSettings) -> ObjectSearchEngine[Issuer]:
    return ObjectSearchEngine(issuers, settings=settings, name="issuers")


@pytest.fixture
def issuer_type() -> type[Issuer]:
    return Issuer


@pytest.fixture
def untagged_type() -> type[Untagged]:
    return Untagged
