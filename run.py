"""
Entry point: score a batch of raw items and write the daily trends file.

Usage::

    # Score the built-in sample batch (no feed needed):
    python run.py --sample

    # Score raw feed entries from a JSON file:
    python run.py --input data/raw_items.json

    # Also plan this week's podcast episode and update feed.json:
    python run.py --sample --podcast

    # Reproducible fallback scores and custom weights:
    python run.py --sample --seed 42 --weights config/weights.yaml
"""

import argparse
import asyncio
import logging
import random
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("run")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Score, rank and store marketing trends"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--input",
        metavar="FILE",
        help="JSON file with raw feed entries (list or {\"items\": [...]})",
    )
    source.add_argument(
        "--sample",
        action="store_true",
        help="Use the built-in 8-item sample batch",
    )
    parser.add_argument(
        "--weights",
        metavar="FILE",
        help="Weights file (YAML or JSON); default from settings",
    )
    parser.add_argument(
        "--out",
        metavar="DIR",
        help="Output directory for trends files (default: <data_dir>/trends)",
    )
    parser.add_argument(
        "--top",
        type=int,
        help="Number of ranked trends to keep (default: settings.daily_top_n)",
    )
    parser.add_argument(
        "--podcast",
        action="store_true",
        help="Plan the weekly podcast episode and update feed.json",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed for fallback scoring randomness",
    )
    return parser


async def main() -> None:
    args = build_parser().parse_args()

    from trend_intel.config import WeightsConfig, get_settings, validate_env
    from trend_intel.exceptions import ConfigurationError, StorageError
    from trend_intel.ingest import parse_raw_items, read_feed_file
    from trend_intel.logging import LogComponent, LogLevel, init_logger
    from trend_intel.pipeline import TrendPipeline
    from trend_intel.podcast import EpisodePlanner, update_feed
    from trend_intel.samples import sample_raw_items
    from trend_intel.storage import TrendStore, build_trends_data

    # --- Configuration ----------------------------------------------------
    try:
        settings = get_settings()
        weights_path = Path(args.weights) if args.weights else settings.resolve_path(settings.weights_path)
        weights = WeightsConfig.from_yaml(weights_path)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        sys.exit(2)

    validate_env()
    log_level = settings.log_level.upper()
    logging.getLogger().setLevel(log_level)
    agent_logger = init_logger(
        log_dir=str(settings.resolve_path(settings.log_dir)),
        min_level=LogLevel[log_level],
    )

    # --- Ingest -----------------------------------------------------------
    if args.sample:
        raw_items = sample_raw_items()
        total_fetched = len(raw_items)
    else:
        try:
            entries = await read_feed_file(args.input)
        except StorageError as exc:
            await agent_logger.error(LogComponent.INGEST, f"Cannot read input feed: {exc}", error=exc)
            sys.exit(1)
        total_fetched = len(entries)
        raw_items = parse_raw_items(entries)
    await agent_logger.info(
        LogComponent.INGEST,
        f"Ingested {len(raw_items)} of {total_fetched} entries",
        data={"total_fetched": total_fetched, "after_dedupe": len(raw_items)},
    )

    if not raw_items:
        logger.error("No valid raw items. Nothing to do.")
        sys.exit(1)

    # --- Score, validate, rank ------------------------------------------
    rng = random.Random(args.seed) if args.seed is not None else None
    pipeline = TrendPipeline.from_settings(
        settings, weights, rng=rng, agent_logger=agent_logger
    )
    ranked = await pipeline.process_items(raw_items)
    top_n = args.top if args.top is not None else settings.daily_top_n
    top = ranked[:top_n]

    # --- Store ------------------------------------------------------------
    out_dir = Path(args.out) if args.out else settings.resolve_path(settings.data_dir) / "trends"
    data = build_trends_data(
        top,
        total_fetched=total_fetched,
        after_dedupe=len(raw_items),
        sources=[item.source for item in raw_items],
    )
    try:
        daily_path = await TrendStore(out_dir).save(data)
    except StorageError as exc:
        await agent_logger.error(LogComponent.STORAGE, f"Saving trends failed: {exc}", error=exc)
        sys.exit(1)
    await agent_logger.info(
        LogComponent.STORAGE,
        f"Generated {len(top)} trends -> {daily_path}",
        data={"path": str(daily_path), "count": len(top)},
    )

    # --- Podcast ----------------------------------------------------------
    if args.podcast:
        planner = EpisodePlanner(max_trends=settings.podcast_max_trends)
        episode = planner.plan_episode(ranked)
        feed = await update_feed(out_dir.parent / "podcast" / "feed.json", episode)
        await agent_logger.info(
            LogComponent.PODCAST,
            f"Planned '{episode.title}' ({len(episode.trends)} segments, "
            f"~{episode.duration}s); feed has {len(feed.episodes)} episodes",
            data={"url": episode.url, "trends": episode.trends},
        )


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(0)
