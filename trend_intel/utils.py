"""
Shared utility functions used throughout the trend pipeline.

Provides:
    - utc_now(): Timezone-aware UTC datetime
    - generate_id(): UUID4 string generator for trend record identity
    - ensure_utc(dt): Convert any datetime to timezone-aware UTC
    - parse_iso_datetime(value): ISO-8601 parsing that accepts a trailing ``Z``
    - to_iso(dt): ISO-8601 rendering with a ``Z`` suffix for UTC
    - truncate_text(text, limit): soft length contracts (truncate, never raise)
    - rolling_hash32(text): process-stable 32-bit string hash
    - backoff_delay() / @with_retry: exponential backoff for transient failures
"""

from datetime import datetime, timezone
import uuid
import asyncio
import inspect
import logging
import time as time_module
from functools import wraps
from typing import Callable, TypeVar, Any, Tuple, Type, Optional, Union

from trend_intel.exceptions import RetryExhaustedError

# ---------------------------------------------------------------------------
# Type variable for generic return types in the retry decorator
# ---------------------------------------------------------------------------
T = TypeVar("T")

logger = logging.getLogger(__name__)

ELLIPSIS = "..."


# ===========================================================================
# TIMEZONE UTILITIES
# Every timestamp that leaves the core is timezone-aware UTC.
# ===========================================================================


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    ALWAYS use this instead of ``datetime.now()`` or ``datetime.utcnow()``
    so recency arithmetic never mixes naive and aware values.

    Returns:
        Timezone-aware datetime in UTC.
    """
    return datetime.now(timezone.utc)


def generate_id() -> str:
    """
    Generate an opaque unique ID for a trend record.

    Returns:
        A unique UUID4 string.  IDs are never reused.
    """
    return str(uuid.uuid4())


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure a datetime is timezone-aware in UTC.

    Args:
        dt: Datetime to convert (naive or aware).

    Returns:
        Timezone-aware datetime in UTC.
    """
    if dt.tzinfo is None:
        # Assume naive datetime is UTC
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso_datetime(value: Union[str, datetime]) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts ``datetime`` instances unchanged (normalised to UTC) and
    strings with a trailing ``Z`` as produced by JavaScript's
    ``toISOString()``.

    Raises:
        ValueError: If *value* is not a valid ISO-8601 timestamp.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid ISO-8601 timestamp: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def to_iso(dt: datetime) -> str:
    """Render *dt* as ISO-8601 UTC with millisecond precision and ``Z``."""
    return ensure_utc(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ===========================================================================
# TEXT UTILITIES
# ===========================================================================


def truncate_text(text: str, limit: int) -> str:
    """
    Truncate *text* so that it fits within *limit* characters.

    Text that is cut gets an ``"..."`` suffix (counted inside the limit).
    Soft length contracts in the trend schema are enforced with this helper
    rather than by raising.
    """
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    if limit <= len(ELLIPSIS):
        return text[:limit]
    return text[: limit - len(ELLIPSIS)].rstrip() + ELLIPSIS


def rolling_hash32(text: str) -> int:
    """
    Signed 32-bit ``h * 31 + c`` hash over the UTF-16 code units of *text*.

    Stable across processes and identical to the hash the dashboards
    compute in the browser, unlike the salted built-in ``hash()``.
    """
    encoded = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = ((h << 5) - h + unit) & 0xFFFFFFFF
        if h >= 0x80000000:
            h -= 0x100000000
    return h


# ===========================================================================
# RETRY WITH EXPONENTIAL BACKOFF
# Transport-level only (provider clients).  Scoring itself never retries:
# a failed attempt goes straight to fallback.
# ===========================================================================


def backoff_delay(base_delay: float, attempt: int) -> float:
    """Delay after failed *attempt* (1-based): ``base_delay * 2 ** (attempt - 1)``."""
    return base_delay * (2 ** (attempt - 1))


def _next_delay(
    op_name: str,
    attempt: int,
    max_attempts: int,
    base_delay: float,
    error: Exception,
) -> Optional[float]:
    """Log a failed attempt and return the wait before the next one.

    Returns ``None`` when *attempt* was the last one.
    """
    if attempt >= max_attempts:
        logger.error(
            "[RETRY EXHAUSTED] %s failed after %d attempts: %s",
            op_name,
            max_attempts,
            error,
        )
        return None
    delay = backoff_delay(base_delay, attempt)
    logger.warning(
        "[RETRY] %s attempt %d/%d failed: %s. Retrying in %.1fs...",
        op_name,
        attempt,
        max_attempts,
        error,
        delay,
    )
    return delay


def with_retry(
    max_attempts: int = 3,
    base_delay: float = 2.0,
    retryable_exceptions: Tuple[Type[Exception], ...] = (Exception,),
    operation_name: Optional[str] = None,
) -> Callable:
    """
    Decorator retrying transient failures with exponential backoff.

    Works on both coroutine functions and plain functions.  Exceptions not
    listed in *retryable_exceptions* propagate immediately.

    Args:
        max_attempts: Total attempts, including the first call.
        base_delay: Wait after the first failure; doubles on each retry.
        retryable_exceptions: Exception types worth another attempt.
        operation_name: Name used in logs and in ``RetryExhaustedError``;
            defaults to the wrapped function's ``__name__``.

    Raises:
        RetryExhaustedError: After the last failed attempt, with the final
            exception kept as ``last_error``.

    Usage::

        @with_retry(max_attempts=2, base_delay=1.0,
                    retryable_exceptions=(httpx.TransportError,))
        async def _post(self, payload): ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        op_name = operation_name or func.__name__

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> T:
                last_error: Optional[Exception] = None
                for attempt in range(1, max_attempts + 1):
                    try:
                        return await func(*args, **kwargs)
                    except retryable_exceptions as e:
                        last_error = e
                        delay = _next_delay(op_name, attempt, max_attempts, base_delay, e)
                        if delay is not None:
                            await asyncio.sleep(delay)
                raise RetryExhaustedError(op_name, max_attempts, last_error)  # type: ignore[arg-type]

            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> T:
            last_error: Optional[Exception] = None
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except retryable_exceptions as e:
                    last_error = e
                    delay = _next_delay(op_name, attempt, max_attempts, base_delay, e)
                    if delay is not None:
                        time_module.sleep(delay)
            raise RetryExhaustedError(op_name, max_attempts, last_error)  # type: ignore[arg-type]

        return sync_wrapper

    return decorator
