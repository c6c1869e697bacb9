"""Structured run logger writing JSON lines.

Entries are appended to JSON-lines files under ``log_dir`` with
``aiofiles`` and mirrored to the stdlib ``logging`` tree, so console
output keeps a single format.  The most recent entries stay in memory for
``get_recent()``.

Files:
    - ``agent.log``  -- every entry at or above ``min_level``
    - ``errors.log`` -- ERROR and CRITICAL
    - ``debug.log``  -- DEBUG (only reached with ``min_level=DEBUG``)
"""

import logging
from collections import deque
from pathlib import Path
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

import aiofiles

from trend_intel.logging.models import LogComponent, LogEntry, LogLevel
from trend_intel.utils import utc_now

_std_logger = logging.getLogger("trend_intel.run")

_ROUTES: Tuple[Tuple[str, Callable[[LogEntry], bool]], ...] = (
    ("agent.log", lambda entry: True),
    ("errors.log", lambda entry: entry.level.value >= LogLevel.ERROR.value),
    ("debug.log", lambda entry: entry.level is LogLevel.DEBUG),
)


class AgentLogger:
    """Structured logger shared by the stages of a batch run.

    Parameters:
        log_dir: Directory for the JSON-lines files (created if missing).
        min_level: Entries below this level are kept in memory only.
        max_recent: Capacity of the in-memory buffer.
    """

    def __init__(
        self,
        log_dir: str = "logs",
        min_level: LogLevel = LogLevel.INFO,
        max_recent: int = 1000,
    ) -> None:
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.min_level = min_level
        self._run_id: Optional[str] = None
        self._recent: Deque[LogEntry] = deque(maxlen=max_recent)

    def set_context(self, run_id: Optional[str] = None) -> None:
        if run_id is not None:
            self._run_id = run_id

    def clear_context(self) -> None:
        self._run_id = None

    async def log(
        self,
        level: LogLevel,
        component: LogComponent,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        error: Optional[Exception] = None,
        duration_ms: Optional[int] = None,
        trend_id: Optional[str] = None,
    ) -> LogEntry:
        entry = LogEntry(
            timestamp=utc_now(),
            level=level,
            component=component,
            message=message,
            run_id=self._run_id,
            trend_id=trend_id,
            data=data or {},
            duration_ms=duration_ms,
        )
        if error is not None:
            entry.attach_error(error)

        self._recent.append(entry)
        _std_logger.log(level.value, "[%s] %s", component.value.upper(), message)

        if level.value >= self.min_level.value:
            await self._persist(entry)
        return entry

    async def debug(self, component: LogComponent, message: str, **kwargs: Any) -> LogEntry:
        return await self.log(LogLevel.DEBUG, component, message, **kwargs)

    async def info(self, component: LogComponent, message: str, **kwargs: Any) -> LogEntry:
        return await self.log(LogLevel.INFO, component, message, **kwargs)

    async def warning(self, component: LogComponent, message: str, **kwargs: Any) -> LogEntry:
        return await self.log(LogLevel.WARNING, component, message, **kwargs)

    async def error(self, component: LogComponent, message: str, **kwargs: Any) -> LogEntry:
        return await self.log(LogLevel.ERROR, component, message, **kwargs)

    def get_recent(
        self,
        limit: int = 20,
        level: Optional[LogLevel] = None,
        component: Optional[LogComponent] = None,
        run_id: Optional[str] = None,
    ) -> List[LogEntry]:
        """Newest ``limit`` buffered entries matching every given filter, oldest first."""
        matches = [
            entry
            for entry in self._recent
            if (level is None or entry.level == level)
            and (component is None or entry.component == component)
            and (run_id is None or entry.run_id == run_id)
        ]
        return matches[-limit:]

    async def _persist(self, entry: LogEntry) -> None:
        line = entry.to_json() + "\n"
        for filename, wants in _ROUTES:
            if wants(entry):
                async with aiofiles.open(self.log_dir / filename, "a", encoding="utf-8") as f:
                    await f.write(line)



# Process-wide instance used by run.py and BatchRunLogger.
_logger: Optional[AgentLogger] = None


def init_logger(
    log_dir: str = "logs",
    min_level: LogLevel = LogLevel.INFO,
) -> AgentLogger:
    global _logger
    _logger = AgentLogger(log_dir=log_dir, min_level=min_level)
    return _logger


def get_logger() -> AgentLogger:
    """Return the registered logger.

    Raises:
        RuntimeError: If ``init_logger()`` has not been called yet.
    """
    if _logger is None:
        raise RuntimeError("Logger not initialized. Call init_logger() first.")
    return _logger


def reset_logger() -> None:
    global _logger
    _logger = None
