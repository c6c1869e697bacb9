"""
Batch driver for the trend pipeline.

Flow
----
raw items -> score (AI adapter or fallback, concurrently)
    -> validate (drop invalid records)
    -> rank (weighted, whole batch)
    -> optional diversity selection for a bounded consumer

Key design decisions
--------------------
- **Bounded fan-out**: scoring runs under an ``asyncio.Semaphore`` and
  results are recombined in input order, so concurrency never changes the
  outcome of a seeded run.
- **Per-item isolation**: a malformed raw item is logged and skipped; the
  rest of the batch proceeds.  Empty or entirely invalid input yields an
  empty list, never an exception.
- **No shared state**: weights are read-only.  The adapter keeps running
  scoring counters; each batch reports only its own share of them.
"""

import asyncio
import logging
import random
from collections import Counter
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from trend_intel.config import Settings, WeightsConfig
from trend_intel.exceptions import ValidationError
from trend_intel.logging import AgentLogger, BatchRunLogger, LogComponent, LogLevel
from trend_intel.models import RawItem, ScoringMethod, TrendRecord
from trend_intel.scoring.ai_scorer import AIScoringAdapter
from trend_intel.scoring.ranker import WeightedRanker
from trend_intel.scoring.selector import select_diverse
from trend_intel.scoring.validator import TrendValidator
from trend_intel.utils import generate_id

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 4


class TrendPipeline:
    """
    Scores, validates and ranks a batch of raw items.

    Args:
        adapter: Scoring adapter (AI with fallback, or fallback only).
        validator: Record contract check.
        ranker: Weighted ranker.
        max_concurrency: Upper bound on concurrent scoring calls.
        agent_logger: Optional structured logger; when given, each batch
            records stage timings through ``BatchRunLogger``.

    Usage::

        pipeline = TrendPipeline.from_settings(get_settings(), WeightsConfig.from_yaml())
        ranked = await pipeline.process_items(raw_items)
        podcast_trends = pipeline.select(ranked, 6)
    """

    def __init__(
        self,
        adapter: AIScoringAdapter,
        validator: TrendValidator,
        ranker: WeightedRanker,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        agent_logger: Optional[AgentLogger] = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.adapter = adapter
        self.validator = validator
        self.ranker = ranker
        self.max_concurrency = max_concurrency
        self.agent_logger = agent_logger
        self.last_run_summary: Optional[Dict[str, Any]] = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        weights: Optional[WeightsConfig] = None,
        rng: Optional[random.Random] = None,
        now: Optional[Callable[[], datetime]] = None,
        agent_logger: Optional[AgentLogger] = None,
    ) -> "TrendPipeline":
        """Wire the pipeline from settings; the provider is chosen here, once."""
        weights = weights or WeightsConfig()
        return cls(
            adapter=AIScoringAdapter.from_settings(settings, rng=rng),
            validator=TrendValidator(weights),
            ranker=WeightedRanker(weights, now=now),
            max_concurrency=settings.max_concurrency,
            agent_logger=agent_logger,
        )

    # ------------------------------------------------------------------
    # Structured events
    # ------------------------------------------------------------------

    async def _event(
        self, level: LogLevel, component: LogComponent, message: str, **kwargs: Any
    ) -> None:
        """Send an event to the run log, or to the module logger without one."""
        if self.agent_logger is not None:
            await self.agent_logger.log(level, component, message, **kwargs)
        else:
            logger.log(level.value, "[%s] %s", component.value.upper(), message)

    async def _trace_fallbacks(self, scored: Sequence[TrendRecord]) -> None:
        if self.agent_logger is None or self.adapter.provider is None:
            return
        for record in scored:
            if record.scoring_method is ScoringMethod.FALLBACK:
                await self.agent_logger.warning(
                    LogComponent.SCORER,
                    f"Heuristic fallback used for '{record.title[:60]}'",
                    trend_id=record.id,
                )

    async def _trace_rejections(
        self, scored: Sequence[TrendRecord], valid: Sequence[TrendRecord]
    ) -> None:
        if self.agent_logger is None:
            return
        kept = {record.id for record in valid}
        for record in scored:
            if record.id not in kept:
                await self.agent_logger.warning(
                    LogComponent.VALIDATOR,
                    f"Rejected '{record.title[:60]}'",
                    trend_id=record.id,
                    data={"issues": self.validator.collect_issues(record)},
                )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def score_items(self, raw_items: Sequence[RawItem]) -> List[TrendRecord]:
        """Score every item concurrently; skipped items are logged."""
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _score(raw: RawItem) -> TrendRecord:
            async with semaphore:
                return await self.adapter.process_item(raw)

        results = await asyncio.gather(
            *(_score(raw) for raw in raw_items), return_exceptions=True
        )

        records: List[TrendRecord] = []
        for raw, result in zip(raw_items, results):
            if isinstance(result, ValidationError):
                await self._event(
                    LogLevel.WARNING,
                    LogComponent.SCORER,
                    f"Skipping malformed item: {result}",
                    error=result,
                )
            elif isinstance(result, Exception):
                await self._event(
                    LogLevel.ERROR,
                    LogComponent.SCORER,
                    f"Scoring failed for '{getattr(raw, 'title', '?')[:60]}': "
                    f"{type(result).__name__}: {result}",
                    error=result,
                )
            elif isinstance(result, BaseException):
                raise result
            else:
                records.append(result)
        return records

    async def process_items(self, raw_items: Sequence[RawItem]) -> List[TrendRecord]:
        """
        Run score -> validate -> rank over one batch.

        Returns:
            Ranked records (best first), each of which passed validation.
        """
        run = (
            BatchRunLogger(generate_id(), self.agent_logger)
            if self.agent_logger is not None
            else None
        )
        logger.info(
            "[PIPELINE] Processing %d items (mode=%s)",
            len(raw_items),
            self.adapter.mode.value,
        )

        if run:
            await run.start_stage("score")
        counts_before = Counter(self.adapter.stats)
        scored = await self.score_items(raw_items)
        await self._trace_fallbacks(scored)
        if run:
            await run.end_stage(
                data={
                    "in": len(raw_items),
                    "out": len(scored),
                    "ai": self.adapter.stats["ai"] - counts_before["ai"],
                    "fallback": self.adapter.stats["fallback"] - counts_before["fallback"],
                }
            )

        if run:
            await run.start_stage("validate")
        valid = self.validator.filter_valid(scored)
        await self._trace_rejections(scored, valid)
        if run:
            await run.end_stage(data={"in": len(scored), "out": len(valid)})

        if run:
            await run.start_stage("rank")
        ranked = self.ranker.rank_and_filter(valid)
        if run:
            if ranked:
                await self.agent_logger.info(
                    LogComponent.RANKER,
                    f"Ranked {len(ranked)} records",
                    data={"top": ranked[0].title, "top_score": ranked[0].rank_score},
                    trend_id=ranked[0].id,
                )
            await run.end_stage(data={"in": len(valid), "out": len(ranked)})

        logger.info(
            "[PIPELINE] %d raw -> %d scored -> %d valid -> %d ranked",
            len(raw_items),
            len(scored),
            len(valid),
            len(ranked),
        )
        if run:
            self.last_run_summary = await run.finish()
            logger.info("[PIPELINE]\n%s", run.get_summary_text())
        return ranked

    def select(self, ranked: Sequence[TrendRecord], max_count: int) -> List[TrendRecord]:
        """Category-diverse subset of a ranked batch."""
        return select_diverse(ranked, max_count)
