"""Record types for structured run logs."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class LogLevel(Enum):
    """Severity of a structured entry.

    Values are the stdlib ``logging`` numbers, so an entry can be mirrored
    with ``logging.log(entry.level.value, ...)`` and compared numerically.
    """

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50

    @property
    def name_str(self) -> str:
        return self.name.lower()


class LogComponent(Enum):
    """Pipeline stage that emitted an entry."""

    PIPELINE = "pipeline"
    INGEST = "ingest"
    SCORER = "scorer"
    VALIDATOR = "validator"
    RANKER = "ranker"
    STORAGE = "storage"
    PODCAST = "podcast"


@dataclass
class LogEntry:
    """One structured event of a pipeline run."""

    timestamp: datetime
    level: LogLevel
    component: LogComponent
    message: str

    run_id: Optional[str] = None
    trend_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    error_type: Optional[str] = None
    error_message: Optional[str] = None
    duration_ms: Optional[int] = None

    def attach_error(self, error: BaseException) -> None:
        self.error_type = type(error).__name__
        self.error_message = str(error)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.value,
            "level_name": self.level.name_str,
            "component": self.component.value,
            "message": self.message,
            "run_id": self.run_id,
            "trend_id": self.trend_id,
            "data": self.data,
            "error_type": self.error_type,
            "error_message": self.error_message,
            "duration_ms": self.duration_ms,
        }

    def to_json(self) -> str:
        """One JSON line; datetimes and other odd values go through ``str``."""
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)
