"""Tests for trend_intel.logging -- structured run logging."""

import json
from datetime import datetime, timezone

import pytest

from trend_intel.logging import (
    AgentLogger,
    BatchRunLogger,
    LogComponent,
    LogEntry,
    LogLevel,
    get_logger,
    init_logger,
    reset_logger,
)


@pytest.fixture(autouse=True)
def _reset_global_logger():
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def agent_logger(tmp_path):
    return AgentLogger(log_dir=str(tmp_path / "logs"))


def _read_lines(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


# ===========================================================================
# LogEntry
# ===========================================================================


class TestLogEntry:
    def test_to_dict(self):
        entry = LogEntry(
            timestamp=datetime(2025, 6, 15, 12, tzinfo=timezone.utc),
            level=LogLevel.WARNING,
            component=LogComponent.SCORER,
            message="AI scoring timed out",
            run_id="run-1",
            trend_id="t-1",
        )
        data = entry.to_dict()
        assert data["level"] == 30
        assert data["level_name"] == "warning"
        assert data["component"] == "scorer"
        assert data["trend_id"] == "t-1"

    def test_to_json_handles_odd_values(self):
        entry = LogEntry(
            timestamp=datetime(2025, 6, 15, tzinfo=timezone.utc),
            level=LogLevel.INFO,
            component=LogComponent.PIPELINE,
            message="done",
            data={"when": datetime(2025, 6, 15, tzinfo=timezone.utc)},
        )
        assert json.loads(entry.to_json())["data"]["when"].startswith("2025-06-15")

    def test_attach_error(self):
        entry = LogEntry(
            timestamp=datetime(2025, 6, 15, 9, 30, 5, tzinfo=timezone.utc),
            level=LogLevel.ERROR,
            component=LogComponent.STORAGE,
            message="write failed",
        )
        entry.attach_error(OSError("disk full"))
        assert entry.to_dict()["error_type"] == "OSError"
        assert entry.error_message == "disk full"

    def test_levels_match_stdlib(self):
        import logging

        assert LogLevel.WARNING.value == logging.WARNING


# ===========================================================================
# AgentLogger
# ===========================================================================


class TestAgentLogger:
    @pytest.mark.asyncio
    async def test_info_written_to_main_log(self, agent_logger):
        await agent_logger.info(LogComponent.RANKER, "Ranked 8 records", data={"count": 8})
        lines = _read_lines(agent_logger.log_dir / "agent.log")
        assert lines[0]["message"] == "Ranked 8 records"
        assert lines[0]["data"] == {"count": 8}
        assert not (agent_logger.log_dir / "errors.log").exists()

    @pytest.mark.asyncio
    async def test_error_also_written_to_errors_log(self, agent_logger):
        await agent_logger.error(
            LogComponent.STORAGE, "Save failed", error=OSError("disk full")
        )
        lines = _read_lines(agent_logger.log_dir / "errors.log")
        assert lines[0]["error_type"] == "OSError"
        assert lines[0]["error_message"] == "disk full"

    @pytest.mark.asyncio
    async def test_below_min_level_stays_in_memory(self, agent_logger):
        entry = await agent_logger.debug(LogComponent.SCORER, "prompt built")
        assert not (agent_logger.log_dir / "agent.log").exists()
        assert agent_logger.get_recent() == [entry]

    @pytest.mark.asyncio
    async def test_debug_level_writes_debug_log(self, tmp_path):
        verbose = AgentLogger(log_dir=str(tmp_path), min_level=LogLevel.DEBUG)
        await verbose.debug(LogComponent.SCORER, "prompt built")
        assert (tmp_path / "debug.log").exists()

    @pytest.mark.asyncio
    async def test_context_attached(self, agent_logger):
        agent_logger.set_context(run_id="run-42")
        entry = await agent_logger.info(LogComponent.PIPELINE, "started")
        agent_logger.clear_context()
        later = await agent_logger.info(LogComponent.PIPELINE, "after")
        assert entry.run_id == "run-42"
        assert later.run_id is None

    @pytest.mark.asyncio
    async def test_get_recent_filters(self, agent_logger):
        await agent_logger.info(LogComponent.INGEST, "a")
        await agent_logger.warning(LogComponent.VALIDATOR, "b")
        await agent_logger.info(LogComponent.VALIDATOR, "c")
        assert [e.message for e in agent_logger.get_recent(component=LogComponent.VALIDATOR)] == ["b", "c"]
        assert [e.message for e in agent_logger.get_recent(level=LogLevel.WARNING)] == ["b"]
        assert [e.message for e in agent_logger.get_recent(limit=1)] == ["c"]

    @pytest.mark.asyncio
    async def test_ring_buffer_bounded(self, tmp_path):
        small = AgentLogger(log_dir=str(tmp_path), max_recent=3)
        for i in range(5):
            await small.debug(LogComponent.SCORER, f"m{i}")
        assert [e.message for e in small.get_recent()] == ["m2", "m3", "m4"]

    @pytest.mark.asyncio
    async def test_mirrors_to_stdlib(self, agent_logger, caplog):
        await agent_logger.warning(LogComponent.INGEST, "Skipping entry 3")
        assert "[INGEST] Skipping entry 3" in caplog.text


# ===========================================================================
# Singleton
# ===========================================================================


def test_get_logger_requires_init():
    with pytest.raises(RuntimeError, match="not initialized"):
        get_logger()


def test_init_logger_registers_singleton(tmp_path):
    created = init_logger(log_dir=str(tmp_path), min_level=LogLevel.WARNING)
    assert get_logger() is created
    assert created.min_level is LogLevel.WARNING


# ===========================================================================
# BatchRunLogger
# ===========================================================================


class TestBatchRunLogger:
    @pytest.mark.asyncio
    async def test_stage_lifecycle(self, agent_logger):
        run = BatchRunLogger("run-7", agent_logger)
        await run.start_stage("score")
        await run.end_stage(data={"in": 8, "out": 8})
        await run.start_stage("validate")
        await run.end_stage(status="failed")

        summary = await run.finish()

        assert summary["run_id"] == "run-7"
        assert [s["stage"] for s in summary["stages"]] == ["score", "validate"]
        assert summary["stages"][0]["data"] == {"in": 8, "out": 8}
        assert summary["stages"][1]["status"] == "failed"
        entries = agent_logger.get_recent(run_id="run-7")
        assert entries[0].message == "Stage started: score"

    @pytest.mark.asyncio
    async def test_finish_clears_context(self, agent_logger):
        run = BatchRunLogger("run-8", agent_logger)
        await run.finish()
        entry = await agent_logger.info(LogComponent.PIPELINE, "after run")
        assert entry.run_id is None

    @pytest.mark.asyncio
    async def test_end_stage_without_start_is_noop(self, agent_logger):
        run = BatchRunLogger("run-9", agent_logger)
        await run.end_stage()
        assert run.stages == []

    @pytest.mark.asyncio
    async def test_summary_text(self, agent_logger):
        run = BatchRunLogger("run-10", agent_logger)
        await run.start_stage("rank")
        await run.end_stage(data={"in": 3, "out": 3})
        await run.start_stage("select")
        await run.end_stage(status="failed")

        text = run.get_summary_text()

        assert text.startswith("Batch Run: run-10")
        assert "[OK] rank:" in text
        assert "in=3, out=3" in text
        assert "[FAIL] select:" in text
        assert "Total:" in text

    def test_defaults_to_global_logger(self, tmp_path):
        created = init_logger(log_dir=str(tmp_path))
        assert BatchRunLogger("run-11").logger is created
