"""Tests for trend_intel.storage -- trends envelope persistence."""

import json

import pytest

from trend_intel.exceptions import StorageError
from trend_intel.models import SourceSummary, TrendsData
from trend_intel.storage import TrendStore, build_trends_data


@pytest.fixture
def trends_data(make_record, sample_utc_now):
    return TrendsData(
        generated_at=sample_utc_now,
        source_summary=SourceSummary(12, 9, ["Adweek", "Creative Review"]),
        trends=[make_record(title="first", rank_score=90.0), make_record(title="second", rank_score=80.0)],
    )


def test_build_trends_data_dedupes_sources(make_record):
    data = build_trends_data(
        [make_record()],
        total_fetched=5,
        after_dedupe=4,
        sources=["Adweek", "Adweek", "The Verge", "Adweek"],
    )
    assert data.source_summary.sources == ["Adweek", "The Verge"]
    assert data.source_summary.total_fetched == 5
    assert data.generated_at.tzinfo is not None


@pytest.mark.asyncio
async def test_save_writes_daily_and_latest(tmp_path, trends_data):
    store = TrendStore(tmp_path / "trends")

    daily = await store.save(trends_data)

    assert daily == tmp_path / "trends" / "2025-06-15.json"
    assert daily.read_text(encoding="utf-8") == store.latest_path.read_text(encoding="utf-8")
    wire = json.loads(daily.read_text(encoding="utf-8"))
    assert wire["generatedAt"] == "2025-06-15T12:00:00.000Z"
    # legacy consumers read the weighted score from scores.total
    assert wire["trends"][0]["scores"]["total"] == 90.0
    assert wire["trends"][0]["rankScore"] == 90.0


@pytest.mark.asyncio
async def test_load_round_trip(tmp_path, trends_data):
    store = TrendStore(tmp_path)
    daily = await store.save(trends_data)

    loaded = await store.load(daily)

    assert [t.title for t in loaded.trends] == ["first", "second"]
    assert loaded.trends[0].rank_score == 90.0
    assert loaded.trends[0].scores.total == 70.0
    assert loaded.source_summary.after_dedupe == 9


@pytest.mark.asyncio
async def test_load_latest_none_when_empty(tmp_path):
    assert await TrendStore(tmp_path).load_latest() is None


@pytest.mark.asyncio
async def test_load_latest(tmp_path, trends_data):
    store = TrendStore(tmp_path)
    await store.save(trends_data)
    latest = await store.load_latest()
    assert latest.generated_at == trends_data.generated_at


@pytest.mark.asyncio
async def test_load_missing_file(tmp_path):
    with pytest.raises(StorageError, match="Failed to read"):
        await TrendStore(tmp_path).load(tmp_path / "nope.json")


@pytest.mark.asyncio
async def test_load_malformed(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"trends": []}), encoding="utf-8")
    with pytest.raises(StorageError, match="Malformed"):
        await TrendStore(tmp_path).load(path)
