"""
Deterministic-shape fallback scoring.

Used when no AI provider is configured and whenever an AI call fails.
It never fails for a valid ``RawItem`` and never returns ``None``.

Category comes from ordered keyword patterns over the lower-cased title
(first match wins).  Scores are drawn from fixed ranges that keep fallback
records above the default confidence threshold.  The injected
``random.Random`` supplies one base seed; each item then reseeds it from
that base and its content hash, so an item draws the same scores whatever
order a concurrent batch reaches it in.
"""

import logging
import random
import re
from typing import List, Optional, Tuple

from trend_intel.ingest import content_hash
from trend_intel.models import (
    MAX_TAGS,
    MAX_WHY_IT_MATTERS_LENGTH,
    CreativeBundle,
    RawItem,
    ScoreSet,
    ScoringMethod,
    TrendRecord,
)
from trend_intel.scoring.viz import derive_viz
from trend_intel.utils import generate_id, truncate_text

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_CATEGORY = "Technology"

FALLBACK_CONFIDENCE = 70.0

# (base, spread): score = base + U(0, spread)
NOVELTY_RANGE = (50.0, 30.0)
VELOCITY_RANGE = (40.0, 40.0)
RELEVANCE_RANGE = (60.0, 25.0)

SHORT_CARD_TITLE_CHARS = 80
SNIPPET_SUMMARY_CHARS = 400
MAX_FALLBACK_TAGS = 5

# Priority order matters: the first matching pattern decides the category.
CATEGORY_KEYWORDS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\bai\b"), "AI/ML"),
    (re.compile(r"artificial intelligence"), "AI/ML"),
    (re.compile(r"machine learning"), "AI/ML"),
    (re.compile(r"marketing"), "Marketing"),
    (re.compile(r"advertis"), "Advertising"),
    (re.compile(r"\bbrand"), "Branding"),
    (re.compile(r"design"), "Design"),
    (re.compile(r"\btech"), "Technology"),
    (re.compile(r"social"), "Social Media"),
    (re.compile(r"\bdata\b"), "Data/Analytics"),
    (re.compile(r"consumer"), "Consumer Behavior"),
    (re.compile(r"innovat"), "Innovation"),
    (re.compile(r"sustainab"), "Sustainability"),
    (re.compile(r"e-?commerce"), "E-commerce"),
]

STOP_WORDS = frozenset(
    {"the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"}
)

FALLBACK_BRAND_ANGLES = ["Brand awareness", "Innovation positioning"]
FALLBACK_USE_CASES = ["Marketing campaigns", "Product development"]


def categorize_from_title(title: str, default: str = DEFAULT_FALLBACK_CATEGORY) -> str:
    """Return the first keyword category matching *title*, else *default*."""
    lower_title = title.lower()
    for pattern, category in CATEGORY_KEYWORDS:
        if pattern.search(lower_title):
            return category
    return default


def extract_tags(title: str) -> List[str]:
    """Lower-cased title words longer than 3 chars, stop-words removed, first 5."""
    words = title.lower().split()
    tags = [w for w in words if len(w) > 3 and w not in STOP_WORDS]
    return tags[: min(MAX_FALLBACK_TAGS, MAX_TAGS)]


class FallbackScorer:
    """
    Heuristic scorer for items that never reached (or came back from) an LLM.

    Args:
        default_category: Category used when no keyword matches.
        rng: Random source for the score draws.  Pass a seeded
            ``random.Random`` for reproducible output; it is reseeded
            per item.
    """

    def __init__(
        self,
        default_category: str = DEFAULT_FALLBACK_CATEGORY,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.default_category = default_category
        self.rng = rng or random.Random()
        self._base_seed = self.rng.getrandbits(64)

    def _draw(self, score_range: Tuple[float, float]) -> float:
        base, spread = score_range
        return base + self.rng.random() * spread

    def process_with_fallback(self, raw: RawItem) -> TrendRecord:
        """Build a complete ``TrendRecord`` for *raw* without any LLM."""
        category = categorize_from_title(raw.title, self.default_category)
        self.rng.seed(f"{self._base_seed}:{content_hash(raw.title, raw.url)}")
        scores = ScoreSet(
            novelty=self._draw(NOVELTY_RANGE),
            velocity=self._draw(VELOCITY_RANGE),
            relevance=self._draw(RELEVANCE_RANGE),
            confidence=FALLBACK_CONFIDENCE,
        )

        if len(raw.title) > SHORT_CARD_TITLE_CHARS:
            short_copy = raw.title[:SHORT_CARD_TITLE_CHARS] + "..."
        else:
            short_copy = raw.title

        creative = CreativeBundle(
            short_card_copy=short_copy,
            image_prompt=f"Professional illustration of {raw.title.lower()}",
            alt_text=f"Visual representation of {raw.title}",
            podcast_snippet=(
                f"Here's what {raw.source} is reporting about {raw.title}: "
                f"{raw.summary[:SNIPPET_SUMMARY_CHARS]}"
            ),
        )

        record = TrendRecord(
            id=generate_id(),
            title=raw.title,
            url=raw.url,
            source=raw.source,
            published_at=raw.published_at,
            summary=raw.summary,
            category=category,
            tags=extract_tags(raw.title),
            scores=scores,
            why_it_matters=truncate_text(
                f"{raw.title} represents a significant development in {category.lower()}.",
                MAX_WHY_IT_MATTERS_LENGTH,
            ),
            brand_angles=list(FALLBACK_BRAND_ANGLES),
            example_use_cases=list(FALLBACK_USE_CASES),
            creative=creative,
            viz=derive_viz(scores.total, scores.velocity, category),
            scoring_method=ScoringMethod.FALLBACK,
        )
        logger.debug(
            "[SCORER] Fallback scored '%s' as %s (total=%.1f)",
            raw.title[:60],
            category,
            scores.total,
        )
        return record
