"""
Application API layer for the KPI evaluation engine.

High-level entry points used by the form, results panel and report
renderers: load a rubric, turn submitted ratings into rating entries, score
them and summarise the outcome. Validation failures surface as the
application's own exceptions with user-friendly messages.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..domain.models import (
    DEFAULT_POLICY,
    DetailedRating,
    EmployeeInfo,
    Evaluation,
    RatingEntry,
    RatingLevel,
    Rubric,
    ScoreResult,
    ScoringPolicy,
    SimpleRating,
)
from ..domain.report import ItemReportRow, build_item_report_rows
from ..domain.rubric_data import default_rubric
from ..domain.schemas import EmployeeInfoInput, RatingEntryInput, RubricInput
from ..domain.services import ScoringService
from ..domain.validation import ensure_valid_rubric
from ..infrastructure.config import get_settings
from ..infrastructure.exceptions import (
    InvalidRatingError,
    MultipleValidationError,
    ValidationError,
)
from ..infrastructure.logging import LogContext, get_logger, log_operation

logger = get_logger(__name__)

PERIOD_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def _to_validation_errors(exc: PydanticValidationError, prefix: str = "") -> list[ValidationError]:
    errors = []
    for error in exc.errors():
        loc = ".".join(str(x) for x in error["loc"])
        field = f"{prefix}.{loc}" if prefix and loc else (prefix or loc or "general")
        errors.append(ValidationError(field, error["msg"], error.get("input")))
    return errors


@log_operation("load_rubric")
def load_rubric(data: Mapping[str, Any] | None = None, validate: bool | None = None) -> Rubric:
    """
    Build a rubric from configuration.

    Args:
        data: Raw rubric mapping (``{"name": ..., "categories": [...]}``);
            the canonical rubric when omitted
        validate: Run structural validation; defaults to ``APP_VALIDATE_ON_LOAD``

    Raises:
        MultipleValidationError: If the configuration does not parse
        RubricValidationError: If the built rubric is structurally invalid
    """
    if data is None:
        rubric = default_rubric()
    else:
        try:
            rubric = RubricInput.model_validate(data).to_rubric()
        except PydanticValidationError as e:
            raise MultipleValidationError(_to_validation_errors(e, "rubric")) from e

    if validate is None:
        validate = get_settings().app.validate_on_load
    if validate:
        ensure_valid_rubric(rubric)

    logger.info(
        f"Loaded rubric with {len(rubric)} categories, "
        f"{sum(len(c.items) for c in rubric)} items, max {rubric.total_max:g} points"
    )
    return rubric


def coerce_rating(key: str, value: Any) -> RatingEntry:
    """
    Turn one submitted rating into a rating entry.

    A bare level (``"GOOD"`` or ``RatingLevel.GOOD``) becomes a SimpleRating;
    a mapping with ``level`` / ``actualScore`` / ``notes`` becomes a
    DetailedRating, whose level may be empty.

    Raises:
        InvalidRatingError: If the level is not GOOD, AVERAGE or WEAK
    """
    if isinstance(value, (SimpleRating, DetailedRating)):
        return value
    if isinstance(value, RatingLevel):
        return SimpleRating(value)
    if isinstance(value, str):
        try:
            return SimpleRating(RatingLevel(value.strip().upper()))
        except ValueError as e:
            raise InvalidRatingError(key, value) from e
    if isinstance(value, Mapping):
        try:
            return RatingEntryInput.model_validate(dict(value)).to_entry()
        except PydanticValidationError as e:
            if any(err["loc"][:1] == ("level",) for err in e.errors()):
                raise InvalidRatingError(key, value.get("level")) from e
            raise MultipleValidationError(_to_validation_errors(e, key)) from e
    raise InvalidRatingError(key, value)


def coerce_ratings(raw: Mapping[str, Any] | None) -> dict[str, RatingEntry]:
    """Coerce a whole submitted rating map; ``None`` values are dropped as unrated."""
    return {
        str(key): coerce_rating(str(key), value)
        for key, value in (raw or {}).items()
        if value is not None
    }


def coerce_employee(raw: EmployeeInfo | Mapping[str, Any] | None) -> EmployeeInfo:
    if raw is None:
        return EmployeeInfo()
    if isinstance(raw, EmployeeInfo):
        return raw
    try:
        return EmployeeInfoInput.model_validate(dict(raw)).to_domain()
    except PydanticValidationError as e:
        raise MultipleValidationError(_to_validation_errors(e, "employee")) from e


@log_operation("evaluate")
def evaluate(
    ratings: Mapping[str, Any] | None,
    rubric: Rubric | None = None,
    employee: EmployeeInfo | Mapping[str, Any] | None = None,
    period: str | None = None,
    policy: ScoringPolicy | None = None,
) -> Evaluation:
    """
    Score one evaluation.

    Args:
        ratings: Submitted ratings keyed by item id or code
        rubric: Rubric to score against; the canonical rubric when omitted
        employee: Employee details, passed through to the report
        period: Evaluation month as ``YYYY-MM``
        policy: Scoring rules; the standard 30 / 90 / 70 rules when omitted.
            Pass ``get_scoring_policy()`` to apply the ``SCORING_*`` settings.

    Returns:
        Evaluation bundling the coerced ratings and the ScoreResult

    Example:
        >>> evaluation = evaluate({"1.1": "GOOD", "1.2": {"level": "AVERAGE"}})
        >>> evaluation.result.total_points
        16.0
    """
    if period is not None and not PERIOD_PATTERN.match(period):
        raise ValidationError("period", "must look like YYYY-MM", period)

    entries = coerce_ratings(ratings)
    info = coerce_employee(employee)
    if rubric is None:
        rubric = default_rubric()
    if policy is None:
        policy = DEFAULT_POLICY
    elif policy != DEFAULT_POLICY:
        logger.info(f"Scoring with non-standard policy {policy}")

    unknown = sorted(key for key in entries if rubric.find_item(key) is None)
    if unknown:
        logger.warning(f"Ignoring ratings for unknown items: {', '.join(unknown)}")

    with LogContext(employee_id=info.employee_id or None, period=period):
        result = ScoringService(rubric, policy, logger=logger).evaluate(entries)
        logger.info(
            f"Evaluation scored {result.total_points:g}/{result.total_max:g} "
            f"({result.percent:g}%), ranking {result.ranking.value}"
        )

    return Evaluation(
        result=result, ratings=entries, employee=info, period=period, rubric=rubric
    )


def item_report_rows(evaluation: Evaluation, rubric: Rubric | None = None) -> list[ItemReportRow]:
    """
    Printable per-item rows for an evaluation.

    Rows are built from the rubric the evaluation was scored against unless
    another one is passed explicitly.
    """
    if rubric is None:
        rubric = evaluation.rubric if evaluation.rubric is not None else default_rubric()
    return build_item_report_rows(rubric, evaluation.ratings)


def result_summary(result: ScoreResult) -> dict[str, Any]:
    """Plain summary of a result for the results panel and JSON exports."""
    return {
        "total_points": result.total_points,
        "total_max": result.total_max,
        "percent": result.percent,
        "penalty_applied": result.penalty_applied,
        "penalty_deduction": result.penalty_deduction,
        "ranking": result.ranking.value,
        "ranking_description": result.ranking.description,
        "is_rated": result.is_rated,
        "breakdown": [
            {
                "category_id": b.category_id,
                "category_name": b.category_name,
                "short_name": b.short_name,
                "points": b.points,
                "max_points": b.max_points,
                "percent": b.percent,
            }
            for b in result.breakdown
        ],
    }
