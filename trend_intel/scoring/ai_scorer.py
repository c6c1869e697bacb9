"""
LLM-backed trend scoring with fallback-on-failure.

The adapter builds one prompt per raw item, sends it to the single
provider chosen at construction, and normalizes the JSON reply into a
``TrendRecord``.  Any failure on the way (transport error, timeout,
non-JSON reply, missing or mistyped field) is logged at WARNING and the
item is scored by ``FallbackScorer`` instead.  The caller never sees a
provider exception.

Only a malformed ``RawItem`` raises, and it does so before any provider
call is made.
"""

import asyncio
import json
import logging
import random
from collections import Counter
from numbers import Real
from typing import Any, Dict, List, Optional

from trend_intel.config import ScoringMode, Settings
from trend_intel.exceptions import ProviderError, SchemaMismatchError, ValidationError
from trend_intel.models import (
    DEFAULT_CATEGORIES,
    MAX_BRAND_ANGLES,
    MAX_CATEGORY_LENGTH,
    MAX_TAGS,
    MAX_USE_CASES,
    MAX_WHY_IT_MATTERS_LENGTH,
    CreativeBundle,
    RawItem,
    ScoreSet,
    ScoringMethod,
    TrendRecord,
)
from trend_intel.scoring.fallback import FallbackScorer
from trend_intel.scoring.viz import derive_viz
from trend_intel.tools import LLMProvider, build_provider
from trend_intel.utils import generate_id, to_iso, truncate_text

logger = logging.getLogger(__name__)

SCORE_FIELDS = ("novelty", "velocity", "relevance", "confidence")
CREATIVE_FIELDS = {
    "shortCardCopy": "short_card_copy",
    "imagePrompt": "image_prompt",
    "altText": "alt_text",
    "podcastSnippet": "podcast_snippet",
}

PROMPT_TEMPLATE = """Analyze this trend item and return a JSON object with the following structure:

{{
  "category": "string ({categories})",
  "tags": ["array", "of", "strings", "max", "5"],
  "scores": {{
    "novelty": number_0_to_100,
    "velocity": number_0_to_100,
    "relevance": number_0_to_100,
    "confidence": number_0_to_100,
    "total": number_0_to_100
  }},
  "whyItMatters": "Brief explanation (max 300 chars) of significance for brands/marketers",
  "brandAngles": ["array", "of", "brand", "opportunity", "strings"],
  "exampleUseCases": ["practical", "applications", "for", "businesses"],
  "creative": {{
    "shortCardCopy": "Punchy headline for display (max 100 chars)",
    "imagePrompt": "Detailed prompt for image generation",
    "altText": "Accessible description of the concept",
    "podcastSnippet": "Conversational explanation for audio (max 500 chars)"
  }}
}}

Input:
Title: {title}
URL: {url}
Source: {source}
Published: {published_at}
Summary: {summary}

Guidelines:
- Scores should reflect real impact potential
- Confidence < 60 means low-quality content
- Keep creative copy engaging but professional
- Focus on business/brand implications
- Ensure all fields are complete and within limits

Return only the JSON object, no additional text."""


# =============================================================================
# PROMPT AND RESPONSE HANDLING
# =============================================================================


def build_prompt(raw: RawItem) -> str:
    """Render the scoring prompt for one raw item."""
    return PROMPT_TEMPLATE.format(
        categories=", ".join(DEFAULT_CATEGORIES),
        title=raw.title,
        url=raw.url,
        source=raw.source,
        published_at=to_iso(raw.published_at),
        summary=raw.summary,
    )


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence (```json ... ```), if any."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        # Remove opening fence (e.g. ```json)
        first_newline = cleaned.find("\n")
        if first_newline != -1:
            cleaned = cleaned[first_newline + 1 :]
        else:
            cleaned = cleaned[3:]
        # Remove closing fence
        if cleaned.rstrip().endswith("```"):
            cleaned = cleaned.rstrip()[:-3]
    return cleaned.strip()


def _require_str(data: Dict[str, Any], key: str, path: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise SchemaMismatchError(path, "expected a non-empty string")
    return value.strip()


def _optional_str_list(data: Dict[str, Any], key: str, limit: int) -> List[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise SchemaMismatchError(key, "expected a list of strings")
    return [v.strip() for v in value if v.strip()][:limit]


def normalize_ai_payload(payload: Any) -> Dict[str, Any]:
    """
    Normalize a parsed LLM reply into ``TrendRecord`` keyword arguments.

    This is the one documented response schema:

    - ``category``: non-empty string (truncated to 50 chars)
    - ``tags``, ``brandAngles``, ``exampleUseCases``: optional lists of
      strings (capped at 10 / 5 / 5)
    - ``scores``: object with numeric ``novelty``, ``velocity``,
      ``relevance`` and ``confidence``; values are clamped to [0, 100].
      Any ``total`` the model sends is ignored and recomputed.
    - ``whyItMatters``: non-empty string (truncated to 300 chars)
    - ``creative``: object with non-empty ``shortCardCopy``,
      ``imagePrompt``, ``altText`` and ``podcastSnippet``

    Raises:
        SchemaMismatchError: On any missing or mistyped required field.
    """
    if not isinstance(payload, dict):
        raise SchemaMismatchError("$", f"expected an object, got {type(payload).__name__}")

    category = truncate_text(_require_str(payload, "category", "category"), MAX_CATEGORY_LENGTH)
    if category not in DEFAULT_CATEGORIES:
        logger.debug("[SCORER] Model returned non-standard category '%s'", category)

    scores_data = payload.get("scores")
    if not isinstance(scores_data, dict):
        raise SchemaMismatchError("scores", "expected an object")
    score_values: Dict[str, float] = {}
    for name in SCORE_FIELDS:
        value = scores_data.get(name)
        if isinstance(value, bool) or not isinstance(value, Real):
            raise SchemaMismatchError(f"scores.{name}", "expected a number")
        score_values[name] = float(value)

    creative_data = payload.get("creative")
    if not isinstance(creative_data, dict):
        raise SchemaMismatchError("creative", "expected an object")
    creative_kwargs = {
        attr: _require_str(creative_data, key, f"creative.{key}")
        for key, attr in CREATIVE_FIELDS.items()
    }

    return {
        "category": category,
        "tags": _optional_str_list(payload, "tags", MAX_TAGS),
        "scores": ScoreSet(**score_values),
        "why_it_matters": truncate_text(
            _require_str(payload, "whyItMatters", "whyItMatters"), MAX_WHY_IT_MATTERS_LENGTH
        ),
        "brand_angles": _optional_str_list(payload, "brandAngles", MAX_BRAND_ANGLES),
        "example_use_cases": _optional_str_list(payload, "exampleUseCases", MAX_USE_CASES),
        "creative": CreativeBundle(**creative_kwargs),
    }


# =============================================================================
# ADAPTER
# =============================================================================


class AIScoringAdapter:
    """
    Scores raw items with an LLM, falling back to heuristics on failure.

    Args:
        provider: Client with an async ``generate(prompt)`` method and a
            ``method`` attribute, or ``None`` to score everything with the
            fallback scorer.
        fallback: Scorer used when the provider is absent or fails.
        timeout: Seconds allowed for one provider call.

    Attributes:
        stats: Counter of ``ai`` successes and ``fallback`` results.
    """

    def __init__(
        self,
        provider: Optional[LLMProvider] = None,
        fallback: Optional[FallbackScorer] = None,
        timeout: float = 45.0,
    ) -> None:
        self.provider = provider
        self.fallback = fallback or FallbackScorer()
        self.timeout = timeout
        self.stats: Counter = Counter()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        rng: Optional[random.Random] = None,
    ) -> "AIScoringAdapter":
        """Build an adapter with the provider chosen by ``settings``."""
        if rng is None and settings.fallback_seed is not None:
            rng = random.Random(settings.fallback_seed)
        return cls(
            provider=build_provider(settings),
            fallback=FallbackScorer(
                default_category=settings.fallback_default_category,
                rng=rng,
            ),
            timeout=settings.scoring_timeout_seconds,
        )

    @property
    def mode(self) -> ScoringMode:
        if self.provider is None:
            return ScoringMode.FALLBACK
        return ScoringMode(self.provider.method.value)

    def parse_response(self, text: str, raw: RawItem) -> TrendRecord:
        """
        Turn a provider reply into a ``TrendRecord``.

        Raises:
            ProviderError: If the reply is empty or not JSON.
            SchemaMismatchError: If the JSON does not match the schema.
        """
        cleaned = strip_code_fences(text or "")
        if not cleaned:
            raise ProviderError("Empty response from provider")
        try:
            payload = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise ProviderError(f"Provider returned non-JSON response: {exc}") from exc

        fields = normalize_ai_payload(payload)
        scores: ScoreSet = fields["scores"]
        return TrendRecord(
            id=generate_id(),
            title=raw.title,
            url=raw.url,
            source=raw.source,
            published_at=raw.published_at,
            summary=raw.summary,
            viz=derive_viz(scores.total, scores.velocity, fields["category"]),
            scoring_method=ScoringMethod(self.provider.method.value)
            if self.provider is not None
            else ScoringMethod.FALLBACK,
            **fields,
        )

    async def process_item(self, raw: RawItem) -> TrendRecord:
        """
        Score one raw item.

        Returns the AI-scored record when the provider answers with a valid
        payload, otherwise the fallback record.  Never returns ``None``.

        Raises:
            ValidationError: If *raw* is not a valid ``RawItem``.
        """
        if not isinstance(raw, RawItem):
            raise ValidationError(
                f"process_item expects a RawItem, got {type(raw).__name__}"
            )

        if self.provider is None:
            self.stats["fallback"] += 1
            return self.fallback.process_with_fallback(raw)

        try:
            text = await asyncio.wait_for(
                self.provider.generate(build_prompt(raw)), timeout=self.timeout
            )
            record = self.parse_response(text, raw)
        except asyncio.TimeoutError:
            logger.warning(
                "[SCORER] AI scoring timed out after %.1fs for '%s', falling back",
                self.timeout,
                raw.title[:60],
            )
        except Exception as exc:
            logger.warning(
                "[SCORER] AI scoring failed for '%s', falling back: %s: %s",
                raw.title[:60],
                type(exc).__name__,
                exc,
            )
        else:
            self.stats["ai"] += 1
            return record

        self.stats["fallback"] += 1
        return self.fallback.process_with_fallback(raw)
