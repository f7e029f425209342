"""Unit tests for engine settings."""

from pydantic import ValidationError
import pytest

from object_search.config import EngineSettings, get_settings


@pytest.mark.unit
class TestEngineSettings:
    """Defaults, environment overrides and validation."""

    def test_defaults(self, settings):
        assert settings.default_max_results == 20
        assert settings.fetch_multiplier == 2
        assert settings.tier_decay_step == pytest.approx(0.05)
        assert settings.near_phrase_slop == 2
        assert settings.majority_ratio == pytest.approx(0.6)
        assert settings.fuzzy_min_word_length == 4
        assert settings.fuzzy_max_edits == 1
        assert settings.relation_score == pytest.approx(0.1)
        assert settings.tie_break_by_similarity is False
        assert settings.analyzer_name == "default"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("OBJECT_SEARCH_DEFAULT_MAX_RESULTS", "50")
        monkeypatch.setenv("OBJECT_SEARCH_TIE_BREAK_BY_SIMILARITY", "true")

        settings = EngineSettings(_env_file=None)

        assert settings.default_max_results == 50
        assert settings.tie_break_by_similarity is True

    def test_unrelated_environment_ignored(self, monkeypatch):
        monkeypatch.setenv("OBJECT_SEARCH_NOT_A_SETTING", "1")

        assert EngineSettings(_env_file=None).default_max_results == 20

    @pytest.mark.parametrize(
        "overrides",
        [
            {"default_max_results": 0},
            {"tier_decay_step": 0.2},
            {"tier_decay_step": -0.01},
            {"majority_ratio": 0},
            {"fuzzy_max_edits": 3},
            {"bm25_b": 1.5},
        ],
    )
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValidationError):
            EngineSettings(_env_file=None, **overrides)

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
