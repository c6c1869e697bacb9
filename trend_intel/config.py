"""
Centralized configuration loader for the trend intelligence core.

Loads settings from YAML files and environment variables, providing
sensible defaults when configuration files are absent.

Provides:
    - ScoringMode: Which scoring path the batch uses (chosen once at startup)
    - WeightsConfig: Category/source weights, recency boost, confidence threshold
    - Settings: Global application settings loaded from YAML + env vars
    - get_settings(): Singleton accessor for Settings
    - validate_env(): Startup report of provider credential presence
"""

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from trend_intel.exceptions import ConfigurationError

# ---------------------------------------------------------------------------
# Load .env file (no-op if file does not exist)
# ---------------------------------------------------------------------------
load_dotenv()

# ---------------------------------------------------------------------------
# Project root directory (parent of trend_intel/)
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent

logger = logging.getLogger(__name__)


# ===========================================================================
# SCORING MODE
# ===========================================================================


class ScoringMode(str, Enum):
    """
    Scoring path for a batch.

    Resolved once from credential presence.  Anthropic is preferred when
    both keys are configured; with neither, every item goes straight to
    the deterministic fallback scorer.
    """

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    FALLBACK = "fallback"


# ===========================================================================
# WEIGHTS CONFIGURATION
# ===========================================================================

DEFAULT_CATEGORY_WEIGHTS: Dict[str, float] = {
    "AI/ML": 1.2,
    "Marketing": 1.0,
    "Design": 1.1,
    "Technology": 1.0,
    "Social Media": 0.9,
    "Advertising": 1.0,
    "Branding": 1.1,
    "Consumer Behavior": 1.0,
    "Innovation": 1.2,
    "Data/Analytics": 1.0,
    "Sustainability": 1.1,
    "E-commerce": 0.9,
}

DEFAULT_SOURCE_WEIGHTS: Dict[str, float] = {
    "Marketing Brew": 1.0,
    "Creative Review": 1.1,
    "Adweek": 1.0,
    "Campaign Live": 1.0,
}

DEFAULT_RECENCY_BOOST = 1.5
DEFAULT_CONFIDENCE_THRESHOLD = 60.0

MAX_RECENCY_BOOST = 2.0


@dataclass(frozen=True)
class WeightsConfig:
    """
    Read-only ranking configuration.

    Missing categories or sources get weight ``1.0`` at lookup time.  The
    same instance may be shared by concurrent batches.

    Usage::

        weights = WeightsConfig.from_yaml()
        w = weights.category_weight("AI/ML")
    """

    categories: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_CATEGORY_WEIGHTS))
    sources: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_SOURCE_WEIGHTS))
    recency_boost: float = DEFAULT_RECENCY_BOOST
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD

    def __post_init__(self) -> None:
        if not 0 <= self.recency_boost <= MAX_RECENCY_BOOST:
            raise ConfigurationError(
                f"recency_boost must be in [0, {MAX_RECENCY_BOOST}], got {self.recency_boost}"
            )
        if not 0 <= self.confidence_threshold <= 100:
            raise ConfigurationError(
                f"confidence_threshold must be in [0, 100], got {self.confidence_threshold}"
            )
        for label, table in (("category", self.categories), ("source", self.sources)):
            for key, value in table.items():
                if not isinstance(value, (int, float)) or value < 0:
                    raise ConfigurationError(
                        f"Invalid {label} weight for '{key}': {value!r}"
                    )

    def category_weight(self, category: str) -> float:
        return float(self.categories.get(category, 1.0))

    def source_weight(self, source: str) -> float:
        return float(self.sources.get(source, 1.0))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeightsConfig":
        """
        Build from a dict using either snake_case or the camelCase keys of
        the JSON weights files (``recencyBoost``, ``confidenceThreshold``).

        Sections that are absent keep their defaults; sections that are
        present replace the defaults entirely.

        Raises:
            ConfigurationError: On out-of-range or non-numeric values.
        """
        recency = data.get("recency_boost", data.get("recencyBoost", DEFAULT_RECENCY_BOOST))
        threshold = data.get(
            "confidence_threshold",
            data.get("confidenceThreshold", DEFAULT_CONFIDENCE_THRESHOLD),
        )
        try:
            recency = float(recency)
            threshold = float(threshold)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid weights value: {exc}") from exc

        categories = data.get("categories")
        sources = data.get("sources")
        return cls(
            categories=dict(categories) if categories is not None else dict(DEFAULT_CATEGORY_WEIGHTS),
            sources=dict(sources) if sources is not None else dict(DEFAULT_SOURCE_WEIGHTS),
            recency_boost=recency,
            confidence_threshold=threshold,
        )

    @classmethod
    def from_yaml(cls, path: Optional[Path] = None) -> "WeightsConfig":
        """
        Load weights from a YAML (or JSON) file.

        If the file does not exist, returns the defaults of the daily run.

        Args:
            path: Path to the weights file. Defaults to
                ``<PROJECT_ROOT>/config/weights.yaml``.

        Raises:
            ConfigurationError: If the file exists but cannot be parsed.
        """
        path = Path(path) if path else PROJECT_ROOT / "config" / "weights.yaml"
        if not path.exists():
            logger.info("No weights file at %s, using defaults", path)
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as fh:
                if path.suffix == ".json":
                    data = json.load(fh)
                else:
                    data = yaml.safe_load(fh) or {}
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise ConfigurationError(
                f"Failed to parse weights file at {path}: {exc}"
            ) from exc

        if not isinstance(data, dict):
            raise ConfigurationError(f"Weights file at {path} must contain a mapping")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categories": dict(self.categories),
            "sources": dict(self.sources),
            "recencyBoost": self.recency_boost,
            "confidenceThreshold": self.confidence_threshold,
        }


# ===========================================================================
# GLOBAL SETTINGS
# ===========================================================================

LOG_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Settings:
    """
    Global application settings.

    Loaded from ``config/settings.yaml`` when available, falling back to
    sensible defaults. Environment variables override YAML values for
    secrets and deployment-specific configuration.
    """

    # Provider credentials (env only, never read from YAML)
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None

    # LLM settings
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    openai_model: str = "gpt-4o"
    max_tokens: int = 2000

    # Scoring
    scoring_timeout_seconds: float = 45.0
    max_concurrency: int = 4
    fallback_seed: Optional[int] = None
    fallback_default_category: str = "Technology"

    # Selection
    daily_top_n: int = 8
    podcast_max_trends: int = 6

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    # Output
    data_dir: str = "data"
    weights_path: str = "config/weights.yaml"

    def scoring_mode(self) -> ScoringMode:
        """Resolve the scoring path from credential presence."""
        if self.anthropic_api_key:
            return ScoringMode.ANTHROPIC
        if self.openai_api_key:
            return ScoringMode.OPENAI
        return ScoringMode.FALLBACK

    def resolve_path(self, value: str) -> Path:
        """Resolve a settings path relative to the project root."""
        path = Path(value)
        return path if path.is_absolute() else PROJECT_ROOT / path

    @classmethod
    def from_yaml(cls, path: Optional[Path] = None) -> "Settings":
        """
        Load settings from a YAML file.

        If the file does not exist, returns an instance with all defaults.
        Environment variables override YAML values for specific keys.

        Args:
            path: Path to the YAML file. Defaults to
                ``<PROJECT_ROOT>/config/settings.yaml``.

        Returns:
            Populated Settings instance.

        Raises:
            ConfigurationError: If the YAML file cannot be parsed or an
                environment override has the wrong type.
        """
        path = path or PROJECT_ROOT / "config" / "settings.yaml"

        data: Dict[str, Any] = {}
        if path.exists():
            try:
                with open(path, "r", encoding="utf-8") as fh:
                    data = yaml.safe_load(fh) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(
                    f"Failed to parse settings YAML at {path}: {exc}"
                ) from exc

        kwargs: Dict[str, Any] = {
            key: value
            for key, value in data.items()
            if key in cls.__dataclass_fields__
            and key not in ("anthropic_api_key", "openai_api_key")
        }

        # -----------------------------------------------------------------
        # Environment variable overrides
        # -----------------------------------------------------------------
        env_overrides = {
            "ANTHROPIC_MODEL": ("anthropic_model", str),
            "OPENAI_MODEL": ("openai_model", str),
            "SCORING_TIMEOUT": ("scoring_timeout_seconds", float),
            "MAX_CONCURRENCY": ("max_concurrency", int),
            "DAILY_TOP_N": ("daily_top_n", int),
            "PODCAST_MAX_TRENDS": ("podcast_max_trends", int),
            "FALLBACK_SEED": ("fallback_seed", int),
            "LOG_LEVEL": ("log_level", str),
        }
        for env_key, (attr_name, cast_fn) in env_overrides.items():
            env_val = os.environ.get(env_key)
            if env_val is not None:
                try:
                    kwargs[attr_name] = cast_fn(env_val)
                except (ValueError, TypeError) as exc:
                    raise ConfigurationError(
                        f"Invalid value for env var {env_key}='{env_val}': {exc}"
                    ) from exc

        kwargs["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY") or None
        kwargs["openai_api_key"] = os.environ.get("OPENAI_API_KEY") or None

        settings = cls(**kwargs)
        if settings.max_concurrency < 1:
            raise ConfigurationError(
                f"max_concurrency must be >= 1, got {settings.max_concurrency}"
            )
        if settings.scoring_timeout_seconds <= 0:
            raise ConfigurationError(
                f"scoring_timeout_seconds must be > 0, got {settings.scoring_timeout_seconds}"
            )
        settings.log_level = str(settings.log_level).upper()
        if settings.log_level not in LOG_LEVEL_NAMES:
            raise ConfigurationError(
                f"log_level must be one of {', '.join(LOG_LEVEL_NAMES)}, got {settings.log_level!r}"
            )
        return settings

    def __repr__(self) -> str:
        return (
            f"Settings(mode={self.scoring_mode().value}, "
            f"anthropic_model={self.anthropic_model!r}, "
            f"openai_model={self.openai_model!r}, "
            f"max_concurrency={self.max_concurrency})"
        )


# ===========================================================================
# SINGLETON SETTINGS ACCESSOR
# ===========================================================================

_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global Settings singleton.

    On first call, loads from ``config/settings.yaml`` (or defaults).
    Subsequent calls return the cached instance.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings.from_yaml()
    return _settings_instance


def reset_settings() -> None:
    """
    Reset the cached Settings singleton.

    Useful for testing or when configuration files have been updated
    at runtime.
    """
    global _settings_instance
    _settings_instance = None


# ===========================================================================
# ENVIRONMENT VARIABLE VALIDATION
# ===========================================================================

# At least one of these selects an AI scoring path; none is required.
PROVIDER_ENV_VARS: List[str] = [
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
]


def validate_env(strict: bool = False) -> Dict[str, bool]:
    """
    Report which provider credentials are present.

    Running without credentials is a supported mode (fallback scoring), so
    by default this only logs.

    Args:
        strict: If ``True``, raise ``ConfigurationError`` when no provider
            credential is configured.

    Returns:
        Dict mapping variable name to presence status.

    Raises:
        ConfigurationError: If ``strict=True`` and no provider key is set.
    """
    status = {var: bool(os.environ.get(var)) for var in PROVIDER_ENV_VARS}

    if not any(status.values()):
        if strict:
            raise ConfigurationError(
                f"No AI provider configured: set one of {PROVIDER_ENV_VARS}. "
                f"Copy .env.example to .env and fill in the values."
            )
        logger.warning(
            "No AI provider configured. Items will be processed with fallback logic."
        )

    return status


__all__ = [
    "PROJECT_ROOT",
    "ScoringMode",
    "WeightsConfig",
    "DEFAULT_CATEGORY_WEIGHTS",
    "DEFAULT_SOURCE_WEIGHTS",
    "DEFAULT_RECENCY_BOOST",
    "DEFAULT_CONFIDENCE_THRESHOLD",
    "Settings",
    "get_settings",
    "reset_settings",
    "PROVIDER_ENV_VARS",
    "validate_env",
]
