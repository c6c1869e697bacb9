"""
Weighted ranking of validated trend records.

    rank_score = scores.total * category_weight * source_weight * recency

where ``recency`` is ``weights.recency_boost`` for items under 24 hours old
and ``1.0`` otherwise.  Ranking is a total order over the batch: nothing is
dropped, and equal rank scores keep their input order.
"""

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

from trend_intel.config import WeightsConfig
from trend_intel.models import TrendRecord
from trend_intel.utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

RECENCY_WINDOW = timedelta(hours=24)


class WeightedRanker:
    """
    Applies category, source and recency multipliers and sorts descending.

    Args:
        weights: Read-only weights configuration.
        now: Clock used for the recency window.  Inject a fixed clock in
            tests to make ranking deterministic.
    """

    def __init__(
        self,
        weights: Optional[WeightsConfig] = None,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.weights = weights or WeightsConfig()
        self._now = now or utc_now

    def recency_multiplier(self, published_at: datetime, now: datetime) -> float:
        age = now - ensure_utc(published_at)
        return self.weights.recency_boost if age < RECENCY_WINDOW else 1.0

    def weighted_score(self, record: TrendRecord, now: Optional[datetime] = None) -> float:
        now = ensure_utc(now) if now else self._now()
        return (
            record.scores.total
            * self.weights.category_weight(record.category)
            * self.weights.source_weight(record.source)
            * self.recency_multiplier(record.published_at, now)
        )

    def rank_and_filter(self, records: Sequence[TrendRecord]) -> List[TrendRecord]:
        """
        Return copies of *records* carrying ``rank_score``, best first.

        The input records are not modified and ``scores.total`` keeps the
        mean of the four sub-scores.
        """
        now = self._now()
        ranked = [
            replace(record, rank_score=self.weighted_score(record, now))
            for record in records
        ]
        # sorted() is stable, so ties keep input order
        ranked = sorted(ranked, key=lambda r: r.rank_score, reverse=True)
        if ranked:
            logger.info(
                "[RANKER] Ranked %d records (top: '%s' %.2f)",
                len(ranked),
                ranked[0].title[:60],
                ranked[0].rank_score,
            )
        return ranked
