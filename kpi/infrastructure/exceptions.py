"""
Custom exception classes for the KPI evaluation engine.

Provides structured error handling with user-friendly messages and proper
error categorization for rubric configuration, rating lookup and export
failures.
"""

from __future__ import annotations

from typing import Any


class KPIAssessmentError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.user_message = user_message or self._get_default_user_message()

    def _get_default_user_message(self) -> str:
        """Provide a user-friendly version of the error message."""
        return "An unexpected error occurred. Please try again."

    def __str__(self) -> str:
        return f"{self.__class__.__name__}: {self.message}"


class ValidationError(KPIAssessmentError):
    """Raised when input validation fails."""

    def __init__(
        self, field: str, message: str, value: Any = None, details: dict[str, Any] | None = None
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=f"Validation failed for field '{field}': {message}",
            details=details or {"field": field, "value": value},
            user_message=f"Invalid {field.replace('_', ' ')}: {message}",
        )

    def _get_default_user_message(self) -> str:
        return f"Please check your input for {self.field.replace('_', ' ')} and try again."


class MultipleValidationError(KPIAssessmentError):
    """Raised when multiple validation errors occur."""

    def __init__(self, errors: list[ValidationError]):
        self.validation_errors = errors
        messages = [f"{e.field}: {e.message}" for e in errors]
        super().__init__(
            message=f"Multiple validation errors: {'; '.join(messages)}",
            details={
                "errors": [
                    {"field": e.field, "message": e.message, "value": e.value} for e in errors
                ]
            },
            user_message="Please correct the following errors and try again.",
        )


class RubricValidationError(KPIAssessmentError):
    """Raised when a rubric fails structural validation before scoring."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(
            message=f"Rubric is malformed ({len(self.errors)} problems): {'; '.join(self.errors)}",
            details={"errors": self.errors},
            user_message="The evaluation rubric is misconfigured. Please contact an administrator.",
        )


class UnknownCriterionError(KPIAssessmentError):
    """Raised when an item has no criterion for the requested rating level."""

    def __init__(self, item_id: str, level: Any):
        self.item_id = item_id
        self.level = level
        level_name = getattr(level, "value", level)
        super().__init__(
            message=f"Criterion {level_name} not found for item {item_id}",
            details={"item_id": item_id, "level": level_name},
            user_message="The rubric does not define this rating for the selected item.",
        )


class RatingError(KPIAssessmentError):
    """Raised when rating operations fail."""

    def __init__(
        self,
        message: str,
        rating_level: Any = None,
        details: dict[str, Any] | None = None,
    ):
        self.rating_level = rating_level
        super().__init__(
            message=message,
            details=details or {"rating_level": rating_level},
        )

    def _get_default_user_message(self) -> str:
        return "Rating error occurred. Please check your rating and try again."


class InvalidRatingError(RatingError):
    """Raised when a rating entry carries a level outside GOOD / AVERAGE / WEAK."""

    def __init__(self, key: str, rating_level: Any):
        self.key = key
        super().__init__(
            message=f"Invalid rating level for {key}: {rating_level!r}. Must be GOOD, AVERAGE or WEAK",
            rating_level=rating_level,
            details={"key": key, "rating_level": rating_level},
        )

    def _get_default_user_message(self) -> str:
        return "Please select a valid rating: GOOD, AVERAGE or WEAK."


class ConfigurationError(KPIAssessmentError):
    """Raised when configuration is invalid."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            details=details or {"config_key": config_key},
            user_message="Configuration error. Please check your settings.",
        )


class ExportError(KPIAssessmentError):
    """Raised when data export fails."""

    def __init__(
        self,
        message: str,
        export_format: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.export_format = export_format
        super().__init__(
            message=message,
            details=details or {"export_format": export_format},
            user_message="Export failed. Please try again or choose a different format.",
        )


def create_user_friendly_error_message(error: Exception) -> str:
    """
    Create a user-friendly error message from any exception.

    Args:
        error: The exception to convert

    Returns:
        User-friendly error message

    Example:
        >>> error = ValidationError("name", "cannot be empty")
        >>> message = create_user_friendly_error_message(error)
        >>> print(message)  # "Invalid name: cannot be empty"
    """
    if isinstance(error, KPIAssessmentError):
        return error.user_message

    error_type = type(error).__name__
    messages = {
        "ValueError": "Invalid input provided. Please check your data and try again.",
        "KeyError": "Required information is missing. Please check your input.",
        "TypeError": "Incorrect data type provided. Please check your input format.",
    }
    return messages.get(
        error_type, "An unexpected error occurred. Please try again or contact support."
    )


def log_error_details(error: Exception, context: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Create structured error details for logging.

    Args:
        error: The exception to log
        context: Additional context information

    Returns:
        Dictionary with structured error details
    """
    details = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "context": context or {},
    }

    if isinstance(error, KPIAssessmentError):
        details.update({"user_message": error.user_message, "error_details": error.details})

    return details
