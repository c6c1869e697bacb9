"""
Trend scoring, validation, ranking and selection.

- AIScoringAdapter: LLM scoring with fallback-on-failure
- FallbackScorer: heuristic scoring without an LLM
- derive_viz / category_color / hsl_to_hex: rendering hints
- TrendValidator: contract check before ranking
- WeightedRanker: category/source/recency weighting and ordering
- select_diverse: category-diverse top-N selection
"""

from trend_intel.scoring.ai_scorer import (
    AIScoringAdapter,
    build_prompt,
    normalize_ai_payload,
    strip_code_fences,
)
from trend_intel.scoring.fallback import (
    FALLBACK_CONFIDENCE,
    FallbackScorer,
    categorize_from_title,
    extract_tags,
)
from trend_intel.scoring.ranker import WeightedRanker
from trend_intel.scoring.selector import select_diverse
from trend_intel.scoring.validator import TrendValidator
from trend_intel.scoring.viz import category_color, derive_viz, hsl_to_hex

__all__ = [
    "AIScoringAdapter",
    "build_prompt",
    "normalize_ai_payload",
    "strip_code_fences",
    "FALLBACK_CONFIDENCE",
    "FallbackScorer",
    "categorize_from_title",
    "extract_tags",
    "WeightedRanker",
    "select_diverse",
    "TrendValidator",
    "category_color",
    "derive_viz",
    "hsl_to_hex",
]
