"""
Tests for trend_intel.config module.

Covers:
    - WeightsConfig defaults, range checks, lookups and file loading
    - Settings defaults, YAML loading and env overrides
    - Scoring mode resolution from credential presence
    - Singleton get_settings / reset_settings behaviour
    - validate_env reporting
"""

import json

import pytest

from trend_intel.config import (
    DEFAULT_CATEGORY_WEIGHTS,
    PROJECT_ROOT,
    ScoringMode,
    Settings,
    WeightsConfig,
    get_settings,
    reset_settings,
    validate_env,
)
from trend_intel.exceptions import ConfigurationError


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_singleton():
    """Ensure the Settings singleton is cleared before and after each test."""
    reset_settings()
    yield
    reset_settings()


# ===========================================================================
# 1. WeightsConfig
# ===========================================================================


class TestWeightsConfig:
    def test_defaults(self):
        weights = WeightsConfig()
        assert weights.recency_boost == 1.5
        assert weights.confidence_threshold == 60.0
        assert weights.categories == DEFAULT_CATEGORY_WEIGHTS

    def test_default_tables_are_not_shared(self):
        assert WeightsConfig().categories is not WeightsConfig().categories

    def test_unknown_keys_weigh_one(self):
        weights = WeightsConfig(categories={"AI/ML": 1.2}, sources={})
        assert weights.category_weight("AI/ML") == 1.2
        assert weights.category_weight("Underwater Basket Weaving") == 1.0
        assert weights.source_weight("Nobody's Blog") == 1.0

    @pytest.mark.parametrize("boost", [-0.1, 2.5])
    def test_recency_boost_out_of_range(self, boost):
        with pytest.raises(ConfigurationError, match="recency_boost"):
            WeightsConfig(recency_boost=boost)

    @pytest.mark.parametrize("threshold", [-1, 101])
    def test_confidence_threshold_out_of_range(self, threshold):
        with pytest.raises(ConfigurationError, match="confidence_threshold"):
            WeightsConfig(confidence_threshold=threshold)

    def test_negative_category_weight(self):
        with pytest.raises(ConfigurationError, match="category weight"):
            WeightsConfig(categories={"Design": -1})

    def test_non_numeric_source_weight(self):
        with pytest.raises(ConfigurationError, match="source weight"):
            WeightsConfig(sources={"Adweek": "heavy"})

    def test_from_dict_camel_case(self):
        weights = WeightsConfig.from_dict(
            {"recencyBoost": 1.2, "confidenceThreshold": 50, "categories": {"Design": 1.3}}
        )
        assert weights.recency_boost == 1.2
        assert weights.confidence_threshold == 50.0
        assert weights.categories == {"Design": 1.3}
        # absent section keeps defaults
        assert weights.source_weight("Creative Review") == 1.1

    def test_from_dict_snake_case(self):
        weights = WeightsConfig.from_dict({"recency_boost": 1.0, "confidence_threshold": 70})
        assert weights.recency_boost == 1.0
        assert weights.confidence_threshold == 70.0

    def test_from_dict_non_numeric(self):
        with pytest.raises(ConfigurationError):
            WeightsConfig.from_dict({"recencyBoost": "fast"})

    def test_from_yaml_missing_file_returns_defaults(self, tmp_path):
        weights = WeightsConfig.from_yaml(tmp_path / "nope.yaml")
        assert weights == WeightsConfig()

    def test_from_yaml_reads_file(self, tmp_path):
        path = tmp_path / "weights.yaml"
        path.write_text("recency_boost: 1.1\nsources:\n  Adweek: 1.4\n", encoding="utf-8")
        weights = WeightsConfig.from_yaml(path)
        assert weights.recency_boost == 1.1
        assert weights.sources == {"Adweek": 1.4}

    def test_from_yaml_reads_json(self, tmp_path):
        path = tmp_path / "weights.json"
        path.write_text(json.dumps({"recencyBoost": 0.5}), encoding="utf-8")
        assert WeightsConfig.from_yaml(path).recency_boost == 0.5

    def test_from_yaml_bad_content(self, tmp_path):
        path = tmp_path / "weights.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="mapping"):
            WeightsConfig.from_yaml(path)

    def test_from_yaml_unparsable(self, tmp_path):
        path = tmp_path / "weights.yaml"
        path.write_text("categories: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Failed to parse"):
            WeightsConfig.from_yaml(path)

    def test_shipped_weights_file_matches_defaults(self):
        weights = WeightsConfig.from_yaml(PROJECT_ROOT / "config" / "weights.yaml")
        assert weights == WeightsConfig()

    def test_to_dict_round_trip(self):
        weights = WeightsConfig(recency_boost=1.25)
        assert WeightsConfig.from_dict(weights.to_dict()) == weights


# ===========================================================================
# 2. Settings
# ===========================================================================


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.anthropic_model == "claude-sonnet-4-5-20250929"
        assert settings.openai_model == "gpt-4o"
        assert settings.max_concurrency == 4
        assert settings.daily_top_n == 8
        assert settings.podcast_max_trends == 6
        assert settings.fallback_seed is None

    def test_from_yaml_missing_file(self, tmp_path):
        settings = Settings.from_yaml(tmp_path / "absent.yaml")
        assert settings == Settings()

    def test_from_yaml_values(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("max_concurrency: 2\ndaily_top_n: 5\nunknown_key: 1\n", encoding="utf-8")
        settings = Settings.from_yaml(path)
        assert settings.max_concurrency == 2
        assert settings.daily_top_n == 5

    def test_api_keys_never_read_from_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("anthropic_api_key: sk-from-yaml\n", encoding="utf-8")
        assert Settings.from_yaml(path).anthropic_api_key is None

    def test_env_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MAX_CONCURRENCY", "8")
        monkeypatch.setenv("FALLBACK_SEED", "42")
        monkeypatch.setenv("SCORING_TIMEOUT", "10.5")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        settings = Settings.from_yaml(tmp_path / "absent.yaml")
        assert settings.max_concurrency == 8
        assert settings.fallback_seed == 42
        assert settings.scoring_timeout_seconds == 10.5
        assert settings.anthropic_api_key == "sk-test"

    def test_bad_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DAILY_TOP_N", "lots")
        with pytest.raises(ConfigurationError, match="DAILY_TOP_N"):
            Settings.from_yaml(tmp_path / "absent.yaml")

    def test_zero_concurrency_rejected(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MAX_CONCURRENCY", "0")
        with pytest.raises(ConfigurationError, match="max_concurrency"):
            Settings.from_yaml(tmp_path / "absent.yaml")

    def test_lowercase_log_level_normalized(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("log_level: info\n", encoding="utf-8")
        assert Settings.from_yaml(path).log_level == "INFO"

    def test_log_level_env_normalized(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert Settings.from_yaml(tmp_path / "absent.yaml").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        with pytest.raises(ConfigurationError, match="log_level"):
            Settings.from_yaml(tmp_path / "absent.yaml")

    def test_resolve_path(self, tmp_path):
        settings = Settings()
        assert settings.resolve_path("data") == PROJECT_ROOT / "data"
        assert settings.resolve_path(str(tmp_path)) == tmp_path

    def test_repr_hides_keys(self):
        text = repr(Settings(anthropic_api_key="sk-secret"))
        assert "sk-secret" not in text
        assert "mode=anthropic" in text


# ===========================================================================
# 3. Scoring mode
# ===========================================================================


class TestScoringMode:
    def test_no_keys_is_fallback(self):
        assert Settings().scoring_mode() is ScoringMode.FALLBACK

    def test_openai_only(self):
        assert Settings(openai_api_key="sk-o").scoring_mode() is ScoringMode.OPENAI

    def test_anthropic_preferred(self):
        settings = Settings(anthropic_api_key="sk-a", openai_api_key="sk-o")
        assert settings.scoring_mode() is ScoringMode.ANTHROPIC


# ===========================================================================
# 4. Singleton and env validation
# ===========================================================================


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_reset_settings_drops_cache():
    first = get_settings()
    reset_settings()
    assert get_settings() is not first


def test_validate_env_reports_presence(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-o")
    assert validate_env() == {"ANTHROPIC_API_KEY": False, "OPENAI_API_KEY": True}


def test_validate_env_without_keys_only_warns(caplog):
    status = validate_env()
    assert not any(status.values())
    assert "fallback" in caplog.text


def test_validate_env_strict_raises():
    with pytest.raises(ConfigurationError, match="No AI provider"):
        validate_env(strict=True)
