"""Tests for trend_intel.exceptions -- custom exception hierarchy.

Validates the hierarchy, attribute storage and message formatting for the
exception classes the pipeline raises or converts into fallbacks.
"""

import pytest

from trend_intel.exceptions import (
    ConfigurationError,
    ProviderError,
    RawItemValidationError,
    RetryExhaustedError,
    SchemaMismatchError,
    StorageError,
    TrendIntelError,
    ValidationError,
)


# =========================================================================
# Hierarchy tests -- isinstance checks
# =========================================================================


class TestExceptionHierarchy:
    """Verify that every exception sits in the correct inheritance chain."""

    @pytest.mark.parametrize(
        "exc_cls",
        [ProviderError, StorageError],
    )
    def test_trend_intel_error_subclasses(self, exc_cls):
        assert issubclass(exc_cls, TrendIntelError)

    def test_schema_mismatch_is_trend_intel_error(self):
        assert issubclass(SchemaMismatchError, TrendIntelError)

    def test_validation_error_is_value_error(self):
        assert issubclass(ValidationError, ValueError)

    def test_raw_item_validation_error_is_validation_error(self):
        err = RawItemValidationError("bad item")
        assert isinstance(err, ValidationError)
        assert isinstance(err, ValueError)

    def test_configuration_error_not_trend_intel_error(self):
        assert not issubclass(ConfigurationError, TrendIntelError)

    def test_validation_error_not_trend_intel_error(self):
        assert not issubclass(ValidationError, TrendIntelError)


# =========================================================================
# RetryExhaustedError
# =========================================================================


class TestRetryExhaustedError:
    """Attribute storage and message format."""

    def test_stores_attributes(self):
        cause = ConnectionError("reset")
        err = RetryExhaustedError("generate", 2, cause)
        assert err.operation == "generate"
        assert err.attempts == 2
        assert err.last_error is cause

    def test_message_format(self):
        err = RetryExhaustedError("generate", 2, ConnectionError("reset"))
        assert str(err) == "generate failed after 2 attempts. Last error: reset"


# =========================================================================
# SchemaMismatchError
# =========================================================================


class TestSchemaMismatchError:
    """Field path and reason are kept and rendered."""

    def test_stores_field_and_reason(self):
        err = SchemaMismatchError("scores.novelty", "expected a number")
        assert err.field == "scores.novelty"
        assert err.reason == "expected a number"

    def test_message_contains_field(self):
        err = SchemaMismatchError("creative.altText", "expected a non-empty string")
        assert "creative.altText" in str(err)
        assert "expected a non-empty string" in str(err)

    def test_can_be_caught_as_base(self):
        with pytest.raises(TrendIntelError):
            raise SchemaMismatchError("category", "missing")
