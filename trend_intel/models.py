"""
Centralized shared data types for the trend intelligence core.

This module is THE single source of truth for the records that flow through
the pipeline.  Scoring produces ``TrendRecord`` instances from ``RawItem``
instances; validation, ranking and diversity selection consume them; the
storage and podcast layers serialise them with ``to_dict()``.

Hierarchy of types
------------------
- **Ingestion**: ``RawItem``
- **Scoring**: ``ScoreSet``, ``CreativeBundle``, ``VizHints``, ``TrendRecord``
- **Storage envelope**: ``SourceSummary``, ``TrendsData``
- **Podcast**: ``PodcastEpisode``, ``PodcastFeed``
- **Constants**: ``DEFAULT_CATEGORIES``, field length limits

Wire format
-----------
``to_dict()`` / ``from_dict()`` use the camelCase keys read by the
dashboards, TV screens and chat consumers (``publishedAt``,
``whyItMatters``, ``shortCardCopy`` ...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from statistics import fmean
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from trend_intel.exceptions import RawItemValidationError
from trend_intel.utils import parse_iso_datetime, to_iso, truncate_text, utc_now


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_CATEGORIES: List[str] = [
    "AI/ML",
    "Marketing",
    "Design",
    "Technology",
    "Social Media",
    "Advertising",
    "Branding",
    "Consumer Behavior",
    "Innovation",
    "Data/Analytics",
    "Sustainability",
    "E-commerce",
]

# Field ceilings shared by the normaliser (truncates) and the validator (rejects).
MAX_TITLE_LENGTH = 200
MAX_SUMMARY_LENGTH = 500
MAX_CATEGORY_LENGTH = 50
MAX_TAGS = 10
MAX_WHY_IT_MATTERS_LENGTH = 300
MAX_BRAND_ANGLES = 5
MAX_USE_CASES = 5
MAX_SHORT_CARD_COPY_LENGTH = 140
MAX_IMAGE_PROMPT_LENGTH = 200
MAX_ALT_TEXT_LENGTH = 100
MAX_PODCAST_SNIPPET_LENGTH = 500

SCORE_MIN = 0.0
SCORE_MAX = 100.0


class ScoringMethod(str, Enum):
    """
    How a trend record was scored.

    Inherits from ``str`` so that ``ScoringMethod.FALLBACK == "fallback"``
    and JSON serialisation needs no special casing.
    """

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    FALLBACK = "fallback"


def is_absolute_url(url: str) -> bool:
    """Return ``True`` when *url* has both a scheme and a host."""
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def clamp_score(value: Any) -> float:
    """Clamp *value* to [0, 100] and round it to one decimal."""
    return round(min(SCORE_MAX, max(SCORE_MIN, float(value))), 1)


# =============================================================================
# INGESTION
# =============================================================================


@dataclass(frozen=True)
class RawItem:
    """
    One ingested news/RSS item.  Immutable once created.

    Construction fails loud: a trend record synthesised from garbage input
    is worse than no record, so a missing title, a relative URL or an empty
    source raise ``RawItemValidationError`` here rather than later.
    """

    title: str
    url: str
    source: str
    published_at: datetime
    summary: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.title, str) or not self.title.strip():
            raise RawItemValidationError("RawItem.title is required and cannot be empty")
        if not isinstance(self.url, str) or not is_absolute_url(self.url):
            raise RawItemValidationError(
                f"RawItem.url must be an absolute URL, got {self.url!r}"
            )
        if not isinstance(self.source, str) or not self.source.strip():
            raise RawItemValidationError(
                f"RawItem.source is required for '{self.title[:60]}'"
            )
        if not isinstance(self.published_at, datetime):
            raise RawItemValidationError(
                f"RawItem.published_at must be a datetime, got {type(self.published_at).__name__}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawItem":
        """
        Build a ``RawItem`` from its wire representation.

        Accepts ``publishedAt`` (camelCase) or ``published_at``.

        Raises:
            RawItemValidationError: On missing fields or an unparsable timestamp.
        """
        published = data.get("publishedAt", data.get("published_at"))
        if published is None:
            raise RawItemValidationError(
                f"RawItem.publishedAt is required for '{str(data.get('title', ''))[:60]}'"
            )
        try:
            published_at = parse_iso_datetime(published)
        except ValueError as exc:
            raise RawItemValidationError(
                f"RawItem.publishedAt is not ISO-8601: {published!r}"
            ) from exc

        return cls(
            title=data.get("title", ""),
            url=data.get("url", ""),
            source=data.get("source", ""),
            published_at=published_at,
            summary=data.get("summary") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "source": self.source,
            "publishedAt": to_iso(self.published_at),
            "summary": self.summary,
        }


# =============================================================================
# SCORING
# =============================================================================


@dataclass(frozen=True)
class ScoreSet:
    """
    The four sub-scores of a trend plus their derived mean.

    ``total`` is never passed in: it is recomputed from the sub-scores on
    every construction (including ``dataclasses.replace``), so
    ``total == round(mean(novelty, velocity, relevance, confidence), 1)``
    holds for every instance.
    """

    novelty: float
    velocity: float
    relevance: float
    confidence: float
    total: float = field(init=False)

    def __post_init__(self) -> None:
        for name in ("novelty", "velocity", "relevance", "confidence"):
            object.__setattr__(self, name, clamp_score(getattr(self, name)))
        object.__setattr__(
            self,
            "total",
            round(fmean((self.novelty, self.velocity, self.relevance, self.confidence)), 1),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoreSet":
        """Build from a dict; any supplied ``total`` is ignored."""
        return cls(
            novelty=data["novelty"],
            velocity=data["velocity"],
            relevance=data["relevance"],
            confidence=data["confidence"],
        )

    def to_dict(self, total: Optional[float] = None) -> Dict[str, float]:
        return {
            "novelty": self.novelty,
            "velocity": self.velocity,
            "relevance": self.relevance,
            "confidence": self.confidence,
            "total": self.total if total is None else total,
        }


@dataclass
class CreativeBundle:
    """Copy and prompts for the rendering and audio layers.

    Every field has a soft length contract enforced by truncation.
    """

    short_card_copy: str
    image_prompt: str
    alt_text: str
    podcast_snippet: str

    def __post_init__(self) -> None:
        self.short_card_copy = truncate_text(self.short_card_copy, MAX_SHORT_CARD_COPY_LENGTH)
        self.image_prompt = truncate_text(self.image_prompt, MAX_IMAGE_PROMPT_LENGTH)
        self.alt_text = truncate_text(self.alt_text, MAX_ALT_TEXT_LENGTH)
        self.podcast_snippet = truncate_text(self.podcast_snippet, MAX_PODCAST_SNIPPET_LENGTH)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CreativeBundle":
        return cls(
            short_card_copy=data.get("shortCardCopy", ""),
            image_prompt=data.get("imagePrompt", ""),
            alt_text=data.get("altText", ""),
            podcast_snippet=data.get("podcastSnippet", ""),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "shortCardCopy": self.short_card_copy,
            "imagePrompt": self.image_prompt,
            "altText": self.alt_text,
            "podcastSnippet": self.podcast_snippet,
        }


@dataclass(frozen=True)
class VizHints:
    """Purely cosmetic rendering hints; never used for scoring or ranking."""

    size: int  # 2-12 in practice
    intensity: float  # 0.1-2.0
    color_hint: str  # hsl(h, s%, l%)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VizHints":
        return cls(
            size=int(data["size"]),
            intensity=float(data["intensity"]),
            color_hint=str(data["colorHint"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "intensity": self.intensity,
            "colorHint": self.color_hint,
        }


@dataclass
class TrendRecord:
    """
    A scored, categorized, creative-enriched representation of one
    ``RawItem``.

    ``rank_score`` is ``None`` until ``WeightedRanker`` has run; after that
    it holds the weighted rank score while ``scores.total`` keeps the
    mean-of-four.  Downstream JSON consumers historically read the weighted
    value from ``scores.total``, which ``to_dict(legacy_total=True)``
    reproduces.
    """

    # Identification
    id: str

    # Embedded raw item
    title: str
    url: str
    source: str
    published_at: datetime
    summary: str

    # Classification
    category: str
    tags: List[str]

    # Scoring
    scores: ScoreSet

    # Editorial
    why_it_matters: str
    brand_angles: List[str]
    example_use_cases: List[str]
    creative: CreativeBundle

    # Rendering
    viz: VizHints

    scoring_method: ScoringMethod = ScoringMethod.FALLBACK
    rank_score: Optional[float] = None

    @property
    def effective_score(self) -> float:
        """Rank score when ranked, otherwise the raw mean-of-four."""
        return self.scores.total if self.rank_score is None else self.rank_score

    def to_dict(self, legacy_total: bool = True) -> Dict[str, Any]:
        """
        Serialise to the camelCase wire format.

        Args:
            legacy_total: When ``True`` and the record has been ranked,
                ``scores.total`` carries the weighted rank score (the shape
                existing consumers read).  ``rankScore`` is always emitted
                for ranked records.
        """
        total_override = (
            self.rank_score if legacy_total and self.rank_score is not None else None
        )
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "source": self.source,
            "publishedAt": to_iso(self.published_at),
            "summary": self.summary,
            "category": self.category,
            "tags": list(self.tags),
            "scores": self.scores.to_dict(total=total_override),
            "whyItMatters": self.why_it_matters,
            "brandAngles": list(self.brand_angles),
            "exampleUseCases": list(self.example_use_cases),
            "creative": self.creative.to_dict(),
            "viz": self.viz.to_dict(),
            "scoringMethod": self.scoring_method.value,
        }
        if self.rank_score is not None:
            data["rankScore"] = self.rank_score
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrendRecord":
        """Rebuild a record written by ``to_dict``."""
        return cls(
            id=data["id"],
            title=data["title"],
            url=data.get("url", ""),
            source=data.get("source", ""),
            published_at=parse_iso_datetime(data["publishedAt"]),
            summary=data.get("summary", ""),
            category=data["category"],
            tags=list(data.get("tags", [])),
            scores=ScoreSet.from_dict(data["scores"]),
            why_it_matters=data.get("whyItMatters", ""),
            brand_angles=list(data.get("brandAngles", [])),
            example_use_cases=list(data.get("exampleUseCases", [])),
            creative=CreativeBundle.from_dict(data.get("creative", {})),
            viz=VizHints.from_dict(data["viz"]),
            scoring_method=ScoringMethod(data.get("scoringMethod", "fallback")),
            rank_score=data.get("rankScore"),
        )

    def __repr__(self) -> str:
        ranked = f", rank={self.rank_score:.1f}" if self.rank_score is not None else ""
        return (
            f"TrendRecord(id='{self.id}', "
            f"title='{self.title[:40]}...', "
            f"category={self.category}, "
            f"total={self.scores.total:.1f}{ranked})"
        )


# =============================================================================
# STORAGE ENVELOPE
# =============================================================================


@dataclass
class SourceSummary:
    """Ingestion statistics carried next to a persisted batch."""

    total_fetched: int
    after_dedupe: int
    sources: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalFetched": self.total_fetched,
            "afterDedupe": self.after_dedupe,
            "sources": list(self.sources),
        }


@dataclass
class TrendsData:
    """A persisted batch of ranked trends keyed by generation timestamp."""

    generated_at: datetime
    source_summary: SourceSummary
    trends: List[TrendRecord]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedAt": to_iso(self.generated_at),
            "sourceSummary": self.source_summary.to_dict(),
            "trends": [t.to_dict() for t in self.trends],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrendsData":
        summary = data.get("sourceSummary", {})
        return cls(
            generated_at=parse_iso_datetime(data["generatedAt"]),
            source_summary=SourceSummary(
                total_fetched=int(summary.get("totalFetched", 0)),
                after_dedupe=int(summary.get("afterDedupe", 0)),
                sources=list(summary.get("sources", [])),
            ),
            trends=[TrendRecord.from_dict(t) for t in data.get("trends", [])],
        )


# =============================================================================
# PODCAST
# =============================================================================


@dataclass
class PodcastEpisode:
    """Metadata for one weekly episode (audio is produced elsewhere)."""

    title: str
    description: str
    url: str
    duration: int  # seconds, estimated from the script
    trends: List[str]  # trend IDs, in segment order
    script: List[str] = field(default_factory=list)
    generated_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "duration": self.duration,
            "generatedAt": to_iso(self.generated_at),
            "trends": list(self.trends),
        }


@dataclass
class PodcastFeed:
    """Rolling feed of recent episodes, newest first."""

    title: str
    description: str
    episodes: List[Dict[str, Any]] = field(default_factory=list)
    last_updated: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "episodes": list(self.episodes),
            "lastUpdated": to_iso(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PodcastFeed":
        return cls(
            title=data["title"],
            description=data.get("description", ""),
            episodes=list(data.get("episodes", [])),
            last_updated=parse_iso_datetime(data["lastUpdated"]),
        )
