"""
Custom exception classes for the trend intelligence core.

Scoring follows a fallback-on-failure contract: provider problems are
recovered locally and never surface to the batch caller.  The exceptions
below mark the places where the core refuses to continue instead
(malformed input, broken configuration) and name the failure modes that
the AI adapter converts into a fallback.

Hierarchy:
    Exception
    +-- TrendIntelError (base for all core errors)
    |   +-- SchemaMismatchError
    |   +-- ProviderError
    |   +-- StorageError
    +-- ValidationError (ValueError)
    |   +-- RawItemValidationError
    +-- ConfigurationError
    +-- RetryExhaustedError
"""

# =============================================================================
# BASE EXCEPTION
# =============================================================================


class TrendIntelError(Exception):
    """Base exception for all trend-pipeline errors."""

    pass


# =============================================================================
# CORE EXCEPTIONS
# =============================================================================


class ValidationError(ValueError):
    """Raised when input validation fails."""

    pass


class ConfigurationError(Exception):
    """Raised when system configuration is invalid."""

    pass


class RetryExhaustedError(Exception):
    """Raised when all retry attempts have been exhausted.

    Attributes:
        operation: Name of the operation that was retried.
        attempts: Total number of attempts made.
        last_error: The last exception raised before giving up.
    """

    def __init__(self, operation: str, attempts: int, last_error: Exception):
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{operation} failed after {attempts} attempts. "
            f"Last error: {last_error}"
        )


# =============================================================================
# SCORING EXCEPTIONS
# =============================================================================


class SchemaMismatchError(TrendIntelError):
    """Raised when an LLM response does not match the trend response schema.

    Attributes:
        field: Dotted path of the offending field (e.g. ``"scores.novelty"``).
    """

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"AI response schema mismatch at '{field}': {reason}")


class ProviderError(TrendIntelError):
    """Raised when an LLM provider returns an unusable response."""

    pass


class StorageError(TrendIntelError):
    """Raised when a trends envelope cannot be read or written."""

    pass


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================


class RawItemValidationError(ValidationError):
    """Raised when a raw ingested item is missing required fields."""

    pass


# =============================================================================
# PUBLIC API
# =============================================================================

__all__ = [
    # Base
    "TrendIntelError",
    # Core
    "ValidationError",
    "ConfigurationError",
    "RetryExhaustedError",
    # Scoring
    "SchemaMismatchError",
    "ProviderError",
    "StorageError",
    # Validation
    "RawItemValidationError",
]
