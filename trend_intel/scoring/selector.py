"""
Category-diverse selection of the top trends.

Used by consumers that take a small fixed number of trends (six for the
weekly podcast) and should not be dominated by one category.
"""

import logging
from typing import List, Sequence, Set

from trend_intel.models import TrendRecord

logger = logging.getLogger(__name__)


def select_diverse(records: Sequence[TrendRecord], max_count: int) -> List[TrendRecord]:
    """
    Pick up to *max_count* records, preferring one per category.

    1. Order by rank score (``rank_score``, or ``scores.total`` for unranked
       records), descending and stable.
    2. Walk that order, taking a record only when its category has not been
       taken yet, while ``len(categories) < max_count``.
    3. If still short, back-fill with the best records not yet taken.

    Returns ``min(max_count, len(records))`` records; ``[]`` when
    ``max_count <= 0``.  With a single category the result is simply the
    top *max_count* records.
    """
    if max_count <= 0 or not records:
        return []

    ordered = sorted(records, key=lambda r: r.effective_score, reverse=True)
    categories: Set[str] = set()
    selected: List[TrendRecord] = []

    for record in ordered:
        if len(selected) >= max_count:
            break
        if len(categories) < max_count and record.category in categories:
            continue
        selected.append(record)
        categories.add(record.category)

    if len(selected) < max_count:
        taken = {r.id for r in selected}
        for record in ordered:
            if len(selected) >= max_count:
                break
            if record.id not in taken:
                selected.append(record)
                taken.add(record.id)

    logger.info(
        "[SELECTOR] Selected %d of %d records across %d categories",
        len(selected),
        len(records),
        len(categories),
    )
    return selected
