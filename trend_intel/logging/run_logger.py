"""Per-stage timing for one ``TrendPipeline.process_items`` batch.

Usage::

    run = BatchRunLogger(generate_id(), agent_logger)
    await run.start_stage("score")
    ...
    await run.end_stage(data={"in": 8, "out": 8})
    summary = await run.finish()
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from trend_intel.logging.agent_logger import AgentLogger, get_logger
from trend_intel.logging.models import LogComponent
from trend_intel.utils import utc_now


def _elapsed_ms(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() * 1000)


@dataclass
class StageTiming:
    stage: str
    start: datetime
    end: Optional[datetime] = None
    status: str = "running"
    duration_ms: Optional[int] = None
    data: Optional[Dict[str, Any]] = None

    def close(self, status: str, data: Optional[Dict[str, Any]]) -> None:
        self.end = utc_now()
        self.status = status
        self.duration_ms = _elapsed_ms(self.start, self.end)
        self.data = data

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage,
            "start": self.start.isoformat(),
            "end": self.end.isoformat() if self.end else None,
            "status": self.status,
            "duration_ms": self.duration_ms,
            "data": self.data,
        }


class BatchRunLogger:
    """Stage tracker bound to one run id.

    Creating it sets the run id on the logger context; ``finish()`` clears
    it again.
    """

    def __init__(self, run_id: str, agent_logger: Optional[AgentLogger] = None) -> None:
        self.run_id = run_id
        self.logger = agent_logger or get_logger()
        self.logger.set_context(run_id=run_id)
        self.start_time = utc_now()
        self.stages: List[StageTiming] = []

    async def start_stage(self, stage: str) -> None:
        self.stages.append(StageTiming(stage=stage, start=utc_now()))
        await self.logger.info(LogComponent.PIPELINE, f"Stage started: {stage}")

    async def end_stage(
        self,
        status: str = "success",
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Close the most recently started stage; a no-op before any start."""
        if not self.stages:
            return
        current = self.stages[-1]
        current.close(status, data)
        await self.logger.info(
            LogComponent.PIPELINE,
            f"Stage completed: {current.stage} ({status})",
            data=data,
            duration_ms=current.duration_ms,
        )

    async def finish(self, status: str = "success") -> Dict[str, Any]:
        end_time = utc_now()
        summary: Dict[str, Any] = {
            "run_id": self.run_id,
            "status": status,
            "start_time": self.start_time.isoformat(),
            "end_time": end_time.isoformat(),
            "total_duration_ms": _elapsed_ms(self.start_time, end_time),
            "stages": [stage.to_dict() for stage in self.stages],
        }
        await self.logger.info(
            LogComponent.PIPELINE,
            f"Batch run completed: {status}",
            data=summary,
            duration_ms=summary["total_duration_ms"],
        )
        self.logger.clear_context()
        return summary

    def get_summary_text(self) -> str:
        lines = [f"Batch Run: {self.run_id}", ""]
        for stage in self.stages:
            marker = "[OK]" if stage.status == "success" else "[FAIL]"
            counts = ""
            if stage.data:
                counts = " " + ", ".join(f"{k}={v}" for k, v in stage.data.items())
            lines.append(f"{marker} {stage.stage}: {stage.duration_ms or 0}ms{counts}")
        total = sum(stage.duration_ms or 0 for stage in self.stages)
        lines.append(f"\nTotal: {total}ms")
        return "\n".join(lines)
