"""Tests for trend_intel.scoring.selector -- category-diverse selection."""

import pytest

from trend_intel.scoring.selector import select_diverse


@pytest.fixture
def mixed_batch(make_record):
    """Ten ranked records across three categories (4/3/3)."""
    layout = [
        ("AI/ML", 95), ("AI/ML", 93), ("AI/ML", 91), ("AI/ML", 89),
        ("Design", 80), ("Design", 78), ("Design", 76),
        ("Marketing", 70), ("Marketing", 68), ("Marketing", 66),
    ]
    return [
        make_record(title=f"{cat} {score}", category=cat, rank_score=float(score))
        for cat, score in layout
    ]


def test_one_per_category(mixed_batch):
    selected = select_diverse(mixed_batch, 3)
    assert [r.title for r in selected] == ["AI/ML 95", "Design 80", "Marketing 70"]


def test_backfills_with_best_remaining(mixed_batch):
    selected = select_diverse(mixed_batch, 5)
    assert [r.title for r in selected] == [
        "AI/ML 95",
        "Design 80",
        "Marketing 70",
        "AI/ML 93",
        "AI/ML 91",
    ]


def test_one_more_than_category_count(mixed_batch):
    selected = select_diverse(mixed_batch, 4)
    assert [r.title for r in selected] == ["AI/ML 95", "Design 80", "Marketing 70", "AI/ML 93"]


def test_sorts_unordered_input(mixed_batch):
    selected = select_diverse(list(reversed(mixed_batch)), 3)
    assert [r.title for r in selected] == ["AI/ML 95", "Design 80", "Marketing 70"]


@pytest.mark.parametrize("n", [0, 1, 2, 3, 4, 7, 10, 12])
def test_length_is_min_of_n_and_batch(mixed_batch, n):
    assert len(select_diverse(mixed_batch, n)) == min(n, len(mixed_batch))


def test_no_duplicates(mixed_batch):
    selected = select_diverse(mixed_batch, 10)
    assert len({r.id for r in selected}) == 10


def test_negative_count(mixed_batch):
    assert select_diverse(mixed_batch, -1) == []


def test_empty_input():
    assert select_diverse([], 6) == []


def test_single_category_is_plain_top_n(make_record):
    records = [
        make_record(title=f"ai {s}", category="AI/ML", rank_score=float(s))
        for s in (50, 90, 70, 60, 80)
    ]
    selected = select_diverse(records, 3)
    assert [r.title for r in selected] == ["ai 90", "ai 80", "ai 70"]


def test_unranked_records_use_total(make_record):
    low = make_record(title="low", category="Design", scores=(50, 50, 50, 70))
    high = make_record(title="high", category="Design", scores=(90, 90, 90, 70))
    assert select_diverse([low, high], 1)[0].title == "high"


def test_rank_score_beats_raw_total(make_record):
    # after ranking, the weighted score decides, not the mean-of-four
    a = make_record(title="a", scores=(90, 90, 90, 90), rank_score=60.0)
    b = make_record(title="b", scores=(60, 60, 60, 60), rank_score=95.0)
    assert select_diverse([a, b], 1)[0].title == "b"
