"""Shared fixtures for the trend intelligence test suite."""

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import pytest

from trend_intel.config import WeightsConfig
from trend_intel.models import (
    CreativeBundle,
    RawItem,
    ScoreSet,
    ScoringMethod,
    TrendRecord,
)
from trend_intel.scoring.viz import derive_viz
from trend_intel.utils import generate_id


# ---------------------------------------------------------------------------
# Ensure we don't hit real APIs during tests
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _block_env_keys(monkeypatch):
    """Clear API keys and overrides so tests never hit real services."""
    keys = [
        "ANTHROPIC_API_KEY",
        "OPENAI_API_KEY",
        "ANTHROPIC_MODEL",
        "OPENAI_MODEL",
        "SCORING_TIMEOUT",
        "MAX_CONCURRENCY",
        "DAILY_TOP_N",
        "PODCAST_MAX_TRENDS",
        "FALLBACK_SEED",
        "LOG_LEVEL",
    ]
    for key in keys:
        monkeypatch.delenv(key, raising=False)


# ---------------------------------------------------------------------------
# Common datetime fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def sample_utc_now():
    """A fixed UTC datetime for deterministic tests."""
    return datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def default_weights():
    return WeightsConfig()


@pytest.fixture
def raw_item(sample_utc_now):
    return RawItem(
        title="AI-Powered Personalization Reaches New Heights in 2025 Marketing",
        url="https://example.com/ai-personalization-2025",
        source="Marketing Brew",
        published_at=sample_utc_now - timedelta(hours=2),
        summary="Machine learning algorithms now enable hyper-personalized experiences.",
    )


@pytest.fixture
def make_record(sample_utc_now):
    """Factory for valid TrendRecords with controllable scores and metadata."""

    def _make(
        title: str = "Trend headline for testing",
        category: str = "Marketing",
        source: str = "Adweek",
        scores: Tuple[float, float, float, float] = (70.0, 70.0, 70.0, 70.0),
        hours_old: float = 2.0,
        rank_score: Optional[float] = None,
        record_id: Optional[str] = None,
    ) -> TrendRecord:
        score_set = ScoreSet(*scores)
        return TrendRecord(
            id=record_id or generate_id(),
            title=title,
            url="https://example.com/" + title.lower().replace(" ", "-"),
            source=source,
            published_at=sample_utc_now - timedelta(hours=hours_old),
            summary="A short summary.",
            category=category,
            tags=["trend", "testing"],
            scores=score_set,
            why_it_matters="It matters for brands.",
            brand_angles=["Brand awareness"],
            example_use_cases=["Marketing campaigns"],
            creative=CreativeBundle(
                short_card_copy=title,
                image_prompt="Professional illustration",
                alt_text="Visual representation",
                podcast_snippet=f"Here's the story on {title}.",
            ),
            viz=derive_viz(score_set.total, score_set.velocity, category),
            scoring_method=ScoringMethod.FALLBACK,
            rank_score=rank_score,
        )

    return _make
