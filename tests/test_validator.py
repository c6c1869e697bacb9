"""Tests for trend_intel.scoring.validator -- record contract checks."""

import dataclasses

import pytest

from trend_intel.config import WeightsConfig
from trend_intel.models import CreativeBundle, VizHints
from trend_intel.scoring.validator import TrendValidator


@pytest.fixture
def validator(default_weights):
    return TrendValidator(default_weights)


class TestCollectIssues:
    def test_valid_record_has_no_issues(self, validator, make_record):
        assert validator.collect_issues(make_record()) == []

    def test_empty_summary_allowed(self, validator, make_record):
        record = dataclasses.replace(make_record(), summary="")
        assert validator.collect_issues(record) == []

    def test_long_summary(self, validator, make_record):
        record = dataclasses.replace(make_record(), summary="s" * 501)
        assert validator.collect_issues(record) == ["summary: 501 chars exceeds 500"]

    @pytest.mark.parametrize(
        "field,value,expected",
        [
            ("id", "", "id: required"),
            ("title", "  ", "title: required"),
            ("title", "t" * 201, "title: 201 chars exceeds 200"),
            ("category", "", "category: required"),
            ("why_it_matters", "", "whyItMatters: required"),
            ("tags", [f"t{i}" for i in range(11)], "tags: 11 items exceeds 10"),
            ("brand_angles", "angle", "brandAngles: expected list"),
            ("example_use_cases", ["u"] * 6, "exampleUseCases: 6 items exceeds 5"),
        ],
    )
    def test_structural_issues(self, validator, make_record, field, value, expected):
        record = dataclasses.replace(make_record(), **{field: value})
        assert expected in validator.collect_issues(record)

    def test_missing_creative_text(self, validator, make_record):
        record = dataclasses.replace(
            make_record(),
            creative=CreativeBundle("copy", "prompt", "", "snippet"),
        )
        assert validator.collect_issues(record) == ["creative.altText: required"]

    @pytest.mark.parametrize(
        "viz,prefix",
        [
            (VizHints(0, 1.0, "hsl(10, 60%, 50%)"), "viz.size"),
            (VizHints(25, 1.0, "hsl(10, 60%, 50%)"), "viz.size"),
            (VizHints(5, 0.05, "hsl(10, 60%, 50%)"), "viz.intensity"),
            (VizHints(5, 3.5, "hsl(10, 60%, 50%)"), "viz.intensity"),
            (VizHints(5, 1.0, "#ff0000"), "viz.colorHint"),
        ],
    )
    def test_viz_issues(self, validator, make_record, viz, prefix):
        record = dataclasses.replace(make_record(), viz=viz)
        issues = validator.collect_issues(record)
        assert len(issues) == 1
        assert issues[0].startswith(prefix)

    def test_low_confidence(self, validator, make_record):
        record = make_record(scores=(80, 80, 80, 59))
        assert validator.collect_issues(record) == [
            "scores.confidence: 59.0 below threshold 60.0"
        ]

    def test_confidence_equal_to_threshold_passes(self, validator, make_record):
        assert validator.collect_issues(make_record(scores=(80, 80, 80, 60))) == []

    def test_threshold_comes_from_weights(self, make_record):
        strict = TrendValidator(WeightsConfig(confidence_threshold=75))
        assert not strict.validate(make_record(scores=(80, 80, 80, 70)))

    def test_all_issues_reported(self, validator, make_record):
        record = dataclasses.replace(make_record(scores=(10, 10, 10, 10)), title="", category="")
        assert len(validator.collect_issues(record)) == 3


class TestValidateAndFilter:
    def test_validate_logs_rejection(self, validator, make_record, caplog):
        record = make_record(title="Low confidence story", scores=(50, 50, 50, 20))
        assert validator.validate(record) is False
        assert "[VALIDATOR] Rejected 'Low confidence story'" in caplog.text

    def test_filter_valid_keeps_order(self, validator, make_record):
        records = [
            make_record(title="first"),
            make_record(title="dropped", scores=(90, 90, 90, 30)),
            make_record(title="second"),
        ]
        assert [r.title for r in validator.filter_valid(records)] == ["first", "second"]

    def test_filter_valid_empty(self, validator):
        assert validator.filter_valid([]) == []

    def test_fallback_records_pass_default_threshold(self, validator, raw_item):
        from trend_intel.scoring.fallback import FallbackScorer

        record = FallbackScorer().process_with_fallback(raw_item)
        assert validator.validate(record)
