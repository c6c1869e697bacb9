"""
Raw item ingestion: parsing, cleaning and deduplication.

Turns loosely shaped feed dicts (RSS-style ``link`` / ``pubDate`` /
``contentSnippet`` or the camelCase wire format) into ``RawItem`` objects.
Malformed entries are dropped with a warning; a bad entry never aborts
the batch.
"""

import html
import json
import logging
import re
from datetime import datetime
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import aiofiles

from trend_intel.exceptions import RawItemValidationError, StorageError
from trend_intel.models import MAX_SUMMARY_LENGTH, RawItem
from trend_intel.utils import ensure_utc, parse_iso_datetime, rolling_hash32, utc_now

logger = logging.getLogger(__name__)

HTML_TAG_PATTERN = re.compile(r"<[^>]*>")
WHITESPACE_PATTERN = re.compile(r"\s+")

DEFAULT_SOURCE = "RSS Source"

# Alternative keys seen in feed payloads, in order of preference.
TITLE_KEYS = ("title",)
URL_KEYS = ("url", "link")
SOURCE_KEYS = ("source", "creator")
PUBLISHED_KEYS = ("publishedAt", "published_at", "pubDate", "published", "isoDate")
SUMMARY_KEYS = ("summary", "contentSnippet", "description", "content")


def content_hash(title: str, url: str) -> str:
    """Hex content hash of ``"{title}|{url}"`` used as the dedupe key."""
    return format(abs(rolling_hash32(f"{title}|{url}")), "x")


def deduplicate_items(items: Iterable[RawItem]) -> List[RawItem]:
    """Drop items whose title/url hash was already seen, keeping the first."""
    seen = set()
    unique: List[RawItem] = []
    for item in items:
        key = content_hash(item.title, item.url)
        if key in seen:
            logger.debug("[INGEST] Duplicate dropped: '%s'", item.title[:50])
            continue
        seen.add(key)
        unique.append(item)
    return unique


def clean_summary(text: str, limit: int = MAX_SUMMARY_LENGTH) -> str:
    """Strip HTML tags and entities, collapse whitespace, cut to *limit*."""
    text = html.unescape(HTML_TAG_PATTERN.sub("", text or ""))
    return WHITESPACE_PATTERN.sub(" ", text).strip()[:limit]


def parse_published(value: Any) -> datetime:
    """
    Parse an ISO-8601 or RFC 2822 (RSS ``pubDate``) timestamp.

    Raises:
        RawItemValidationError: If neither format matches.
    """
    try:
        return parse_iso_datetime(value)
    except ValueError:
        pass
    try:
        return ensure_utc(parsedate_to_datetime(str(value)))
    except (TypeError, ValueError) as exc:
        raise RawItemValidationError(f"Unparsable publish date: {value!r}") from exc


def _first(data: Dict[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        value = data.get(key)
        if value:
            return value
    return None


def raw_item_from_feed(data: Dict[str, Any]) -> RawItem:
    """
    Build a ``RawItem`` from one feed dict.

    Raises:
        RawItemValidationError: On a missing title/url or a bad timestamp.
    """
    if not isinstance(data, dict):
        raise RawItemValidationError(f"Expected an object, got {type(data).__name__}")

    published = _first(data, PUBLISHED_KEYS)
    return RawItem.from_dict(
        {
            "title": str(_first(data, TITLE_KEYS) or "").strip(),
            "url": str(_first(data, URL_KEYS) or "").strip(),
            "source": str(_first(data, SOURCE_KEYS) or DEFAULT_SOURCE).strip(),
            "publishedAt": parse_published(published) if published is not None else utc_now(),
            "summary": clean_summary(str(_first(data, SUMMARY_KEYS) or "")),
        }
    )


def parse_raw_items(
    entries: Iterable[Dict[str, Any]],
    limit: Optional[int] = None,
) -> List[RawItem]:
    """
    Parse, deduplicate and order feed entries, newest first.

    Args:
        entries: Feed dicts in any of the supported shapes.
        limit: Keep at most this many items after ordering.

    Returns:
        Valid unique items, newest first.
    """
    items: List[RawItem] = []
    total = 0
    for index, entry in enumerate(entries):
        total += 1
        try:
            items.append(raw_item_from_feed(entry))
        except RawItemValidationError as exc:
            logger.warning("[INGEST] Skipping entry %d: %s", index, exc)

    unique = deduplicate_items(items)
    unique.sort(key=lambda item: item.published_at, reverse=True)
    if limit is not None:
        unique = unique[:limit]

    logger.info("[INGEST] %d unique items from %d entries", len(unique), total)
    return unique


async def read_feed_file(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Read raw entries from a JSON file.

    The file holds either a list of entries or an object with an ``items``
    list (the shape the feed-merge step writes).

    Raises:
        StorageError: If the file is missing or not valid JSON.
    """
    path = Path(path)
    try:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            content = await f.read()
    except OSError as exc:
        raise StorageError(f"Cannot read raw items from {path}: {exc}") from exc

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise StorageError(f"Raw items file {path} is not valid JSON: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("items", [])
    if not isinstance(data, list):
        raise StorageError(f"Raw items file {path} must contain a list of entries")
    return data
