"""
Contract check for scored trend records.

Two layers:
    - Structural: required fields present, length ceilings, numeric ranges.
    - Business: ``scores.confidence >= weights.confidence_threshold``.

Invalid records are dropped from the batch and logged with their title;
validation never raises for a bad record and never aborts a batch.
"""

import logging
from typing import List, Optional, Sequence

from trend_intel.config import WeightsConfig
from trend_intel.models import (
    MAX_ALT_TEXT_LENGTH,
    MAX_BRAND_ANGLES,
    MAX_CATEGORY_LENGTH,
    MAX_IMAGE_PROMPT_LENGTH,
    MAX_PODCAST_SNIPPET_LENGTH,
    MAX_SHORT_CARD_COPY_LENGTH,
    MAX_SUMMARY_LENGTH,
    MAX_TAGS,
    MAX_TITLE_LENGTH,
    MAX_USE_CASES,
    MAX_WHY_IT_MATTERS_LENGTH,
    SCORE_MAX,
    SCORE_MIN,
    TrendRecord,
)
from trend_intel.scoring.viz import HSL_PATTERN

logger = logging.getLogger(__name__)

VIZ_SIZE_RANGE = (1, 20)
VIZ_INTENSITY_RANGE = (0.1, 3.0)


def _check_text(
    issues: List[str], name: str, value: object, max_len: int, required: bool = True
) -> None:
    if not isinstance(value, str):
        issues.append(f"{name}: expected string")
        return
    if required and not value.strip():
        issues.append(f"{name}: required")
    elif len(value) > max_len:
        issues.append(f"{name}: {len(value)} chars exceeds {max_len}")


def _check_list(issues: List[str], name: str, value: object, max_items: int) -> None:
    if not isinstance(value, list):
        issues.append(f"{name}: expected list")
    elif len(value) > max_items:
        issues.append(f"{name}: {len(value)} items exceeds {max_items}")


class TrendValidator:
    """
    Validates ``TrendRecord`` instances against the trend contract.

    Args:
        weights: Provides the confidence threshold.

    Usage::

        validator = TrendValidator(weights)
        valid = validator.filter_valid(records)
    """

    def __init__(self, weights: Optional[WeightsConfig] = None) -> None:
        self.weights = weights or WeightsConfig()

    def collect_issues(self, record: TrendRecord) -> List[str]:
        """Return every contract violation of *record* (empty when valid)."""
        issues: List[str] = []

        # -----------------------------------------------------------------
        # Structural
        # -----------------------------------------------------------------
        if not record.id:
            issues.append("id: required")
        _check_text(issues, "title", record.title, MAX_TITLE_LENGTH)
        _check_text(issues, "url", record.url, 2048)
        _check_text(issues, "source", record.source, 200)
        _check_text(issues, "summary", record.summary, MAX_SUMMARY_LENGTH, required=False)
        _check_text(issues, "category", record.category, MAX_CATEGORY_LENGTH)
        _check_list(issues, "tags", record.tags, MAX_TAGS)
        _check_text(issues, "whyItMatters", record.why_it_matters, MAX_WHY_IT_MATTERS_LENGTH)
        _check_list(issues, "brandAngles", record.brand_angles, MAX_BRAND_ANGLES)
        _check_list(issues, "exampleUseCases", record.example_use_cases, MAX_USE_CASES)

        creative = record.creative
        if creative is None:
            issues.append("creative: required")
        else:
            _check_text(issues, "creative.shortCardCopy", creative.short_card_copy, MAX_SHORT_CARD_COPY_LENGTH)
            _check_text(issues, "creative.imagePrompt", creative.image_prompt, MAX_IMAGE_PROMPT_LENGTH)
            _check_text(issues, "creative.altText", creative.alt_text, MAX_ALT_TEXT_LENGTH)
            _check_text(issues, "creative.podcastSnippet", creative.podcast_snippet, MAX_PODCAST_SNIPPET_LENGTH)

        scores = record.scores
        if scores is None:
            issues.append("scores: required")
        else:
            for name in ("novelty", "velocity", "relevance", "confidence", "total"):
                value = getattr(scores, name)
                if not SCORE_MIN <= value <= SCORE_MAX:
                    issues.append(f"scores.{name}: {value} outside [0, 100]")

        viz = record.viz
        if viz is None:
            issues.append("viz: required")
        else:
            if not VIZ_SIZE_RANGE[0] <= viz.size <= VIZ_SIZE_RANGE[1]:
                issues.append(f"viz.size: {viz.size} outside {list(VIZ_SIZE_RANGE)}")
            if not VIZ_INTENSITY_RANGE[0] <= viz.intensity <= VIZ_INTENSITY_RANGE[1]:
                issues.append(f"viz.intensity: {viz.intensity} outside {list(VIZ_INTENSITY_RANGE)}")
            if not isinstance(viz.color_hint, str) or not HSL_PATTERN.match(viz.color_hint):
                issues.append(f"viz.colorHint: {viz.color_hint!r} is not hsl(h, s%, l%)")

        # -----------------------------------------------------------------
        # Business
        # -----------------------------------------------------------------
        if scores is not None and scores.confidence < self.weights.confidence_threshold:
            issues.append(
                f"scores.confidence: {scores.confidence} below threshold "
                f"{self.weights.confidence_threshold}"
            )

        return issues

    def validate(self, record: TrendRecord) -> bool:
        """Return ``True`` if *record* passes; log the issues otherwise."""
        issues = self.collect_issues(record)
        if issues:
            logger.warning(
                "[VALIDATOR] Rejected '%s': %s",
                (record.title or "")[:60],
                "; ".join(issues),
            )
            return False
        return True

    def filter_valid(self, records: Sequence[TrendRecord]) -> List[TrendRecord]:
        """Keep the valid records, preserving input order."""
        valid = [r for r in records if self.validate(r)]
        if len(valid) < len(records):
            logger.info(
                "[VALIDATOR] %d/%d records passed validation", len(valid), len(records)
            )
        return valid
