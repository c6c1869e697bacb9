"""
File storage for ranked trend batches.

Each batch is written twice: ``<YYYY-MM-DD>.json`` for the day and
``latest.json`` for consumers that only want the newest batch.  Files use
the camelCase wire format of ``TrendsData.to_dict()``.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Union

import aiofiles

from trend_intel.exceptions import StorageError
from trend_intel.models import SourceSummary, TrendRecord, TrendsData
from trend_intel.utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

LATEST_FILENAME = "latest.json"


def build_trends_data(
    trends: List[TrendRecord],
    total_fetched: int,
    after_dedupe: int,
    sources: List[str],
) -> TrendsData:
    """Wrap ranked trends in the persisted envelope, stamped now."""
    return TrendsData(
        generated_at=utc_now(),
        source_summary=SourceSummary(
            total_fetched=total_fetched,
            after_dedupe=after_dedupe,
            sources=list(dict.fromkeys(sources)),
        ),
        trends=list(trends),
    )


class TrendStore:
    """
    Reads and writes ``TrendsData`` JSON files under one directory.

    Args:
        base_dir: Output directory (created on first save).
    """

    def __init__(self, base_dir: Union[str, Path]) -> None:
        self.base_dir = Path(base_dir)

    @property
    def latest_path(self) -> Path:
        return self.base_dir / LATEST_FILENAME

    def daily_path(self, data: TrendsData) -> Path:
        day = ensure_utc(data.generated_at).strftime("%Y-%m-%d")
        return self.base_dir / f"{day}.json"

    async def _write(self, path: Path, content: str) -> None:
        try:
            async with aiofiles.open(path, "w", encoding="utf-8") as f:
                await f.write(content)
        except OSError as exc:
            raise StorageError(f"Failed to write {path}: {exc}") from exc

    async def save(self, data: TrendsData) -> Path:
        """
        Write the batch to its daily file and to ``latest.json``.

        Returns:
            Path of the daily file.

        Raises:
            StorageError: If either file cannot be written.
        """
        self.base_dir.mkdir(parents=True, exist_ok=True)
        content = json.dumps(data.to_dict(), indent=2, ensure_ascii=False)

        daily = self.daily_path(data)
        await self._write(daily, content)
        await self._write(self.latest_path, content)

        logger.info(
            "[STORAGE] Saved %d trends to %s (latest updated)",
            len(data.trends),
            daily,
        )
        return daily

    async def load(self, path: Union[str, Path]) -> TrendsData:
        """
        Load a batch file.

        Raises:
            StorageError: If the file is missing, not JSON, or malformed.
        """
        path = Path(path)
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                content = await f.read()
        except OSError as exc:
            raise StorageError(f"Failed to read {path}: {exc}") from exc

        try:
            return TrendsData.from_dict(json.loads(content))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            raise StorageError(f"Malformed trends file {path}: {exc}") from exc

    async def load_latest(self) -> Optional[TrendsData]:
        """Load ``latest.json``, or ``None`` when nothing has been saved yet."""
        if not self.latest_path.exists():
            return None
        return await self.load(self.latest_path)
