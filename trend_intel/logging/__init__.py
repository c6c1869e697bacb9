"""Structured logging for trend pipeline runs."""
from trend_intel.logging.models import LogLevel, LogComponent, LogEntry
from trend_intel.logging.agent_logger import AgentLogger, init_logger, get_logger, reset_logger
from trend_intel.logging.run_logger import BatchRunLogger

__all__ = [
    "LogLevel", "LogComponent", "LogEntry",
    "AgentLogger", "init_logger", "get_logger", "reset_logger",
    "BatchRunLogger",
]
