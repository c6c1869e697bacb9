"""
Weekly podcast episode planning.

Selects a category-diverse set of ranked trends, assembles the episode
script (fixed intro, one segment per trend from ``creative.podcast_snippet``,
fixed outro) and maintains the rolling ``feed.json``.  Audio synthesis is
done by a separate service that reads the script; durations here are
estimates from script length.
"""

import json
import logging
import math
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Union

import aiofiles

from trend_intel.exceptions import StorageError
from trend_intel.models import PodcastEpisode, PodcastFeed, TrendRecord
from trend_intel.scoring.selector import select_diverse
from trend_intel.utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

SHOW_TITLE = "Trend Intelligence Weekly"
SHOW_DESCRIPTION = "Weekly podcast covering the latest marketing and innovation trends"

INTRO_TEMPLATE = (
    "Welcome to Trend Intelligence Weekly, your source for the latest marketing "
    "and innovation insights. This week, we're covering {count} key trends that "
    "are shaping the industry. Let's dive in."
)
OUTRO_TEXT = (
    "That's all for this week's Trend Intelligence update. Stay ahead of the "
    "curve, and we'll see you next week with more insights that matter."
)

DEFAULT_MAX_TRENDS = 6
MAX_FEED_EPISODES = 52
DESCRIPTION_TITLES_CHARS = 200

# Estimated speech time: 3 seconds per started 100 characters, 2s minimum.
SECONDS_PER_100_CHARS = 3
MIN_SEGMENT_SECONDS = 2


def week_number(date: datetime) -> int:
    """Week of the year, counting the partial first week as week 1."""
    date = ensure_utc(date)
    start = date.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    days = (date - start).days
    # Sunday-based weekday of January 1st
    start_weekday = (start.weekday() + 1) % 7
    return math.ceil((days + start_weekday + 1) / 7)


def week_label(date: datetime) -> str:
    """``YYYY-WW`` label used in audio file names."""
    return f"{ensure_utc(date).year}-{week_number(date):02d}"


def estimate_segment_seconds(text: str) -> int:
    return max(MIN_SEGMENT_SECONDS, math.ceil(len(text) / 100) * SECONDS_PER_100_CHARS)


def build_script(trends: Sequence[TrendRecord]) -> List[str]:
    """Intro, one segment per trend, outro."""
    script = [INTRO_TEMPLATE.format(count=len(trends))]
    script.extend(t.creative.podcast_snippet for t in trends)
    script.append(OUTRO_TEXT)
    return script


def episode_description(trends: Sequence[TrendRecord]) -> str:
    categories = list(dict.fromkeys(t.category for t in trends))
    titles = ", ".join(t.title for t in trends)[:DESCRIPTION_TITLES_CHARS]
    return (
        f"This week's trends cover {', '.join(categories)}, "
        f"featuring insights on {titles}..."
    )


class EpisodePlanner:
    """
    Plans the weekly episode from a ranked batch.

    Args:
        max_trends: Number of trend segments per episode.
        audio_base_url: URL prefix of the published audio files.
    """

    def __init__(
        self,
        max_trends: int = DEFAULT_MAX_TRENDS,
        audio_base_url: str = "/audio/weekly",
    ) -> None:
        self.max_trends = max_trends
        self.audio_base_url = audio_base_url.rstrip("/")

    def plan_episode(
        self,
        trends: Sequence[TrendRecord],
        now: Optional[datetime] = None,
    ) -> PodcastEpisode:
        """Select trends and assemble the episode metadata and script."""
        now = ensure_utc(now) if now else utc_now()
        selected = select_diverse(trends, self.max_trends)
        logger.info(
            "[PODCAST] Selected %d of %d trends for the episode",
            len(selected),
            len(trends),
        )

        script = build_script(selected)
        return PodcastEpisode(
            title=f"{SHOW_TITLE} - Week {week_number(now)}",
            description=episode_description(selected),
            url=f"{self.audio_base_url}/{week_label(now)}.mp3",
            duration=sum(estimate_segment_seconds(s) for s in script),
            trends=[t.id for t in selected],
            script=script,
            generated_at=now,
        )


async def update_feed(
    feed_path: Union[str, Path],
    episode: PodcastEpisode,
    max_episodes: int = MAX_FEED_EPISODES,
) -> PodcastFeed:
    """
    Prepend *episode* to the feed file, keeping the newest *max_episodes*.

    A missing feed file starts a new feed.

    Raises:
        StorageError: If an existing feed file is unreadable or malformed.
    """
    feed_path = Path(feed_path)
    if feed_path.exists():
        try:
            async with aiofiles.open(feed_path, "r", encoding="utf-8") as f:
                feed = PodcastFeed.from_dict(json.loads(await f.read()))
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            raise StorageError(f"Malformed podcast feed {feed_path}: {exc}") from exc
    else:
        feed = PodcastFeed(title=SHOW_TITLE, description=SHOW_DESCRIPTION)

    feed.episodes.insert(0, episode.to_dict())
    feed.episodes = feed.episodes[:max_episodes]
    feed.last_updated = utc_now()

    feed_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        async with aiofiles.open(feed_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(feed.to_dict(), indent=2, ensure_ascii=False))
    except OSError as exc:
        raise StorageError(f"Failed to write podcast feed {feed_path}: {exc}") from exc

    logger.info("[PODCAST] Feed updated: %d episodes", len(feed.episodes))
    return feed
