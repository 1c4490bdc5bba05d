from __future__ import annotations

import logging
from collections.abc import Mapping
from numbers import Real
from typing import Any

from ..infrastructure.exceptions import RubricValidationError
from .models import RatingLevel

LEVELS = (RatingLevel.GOOD, RatingLevel.AVERAGE, RatingLevel.WEAK)

logger = logging.getLogger(__name__)


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and value > 0


def validate_rubric(rubric: Any) -> list[str]:
    """
    Check a rubric for structural problems.

    Every check runs independently and all problems are returned; an empty
    list means the rubric is well formed. Scoring never calls this itself.
    """
    errors: list[str] = []
    categories = list(getattr(rubric, "categories", rubric or ()))
    if not categories:
        errors.append("KPI data must be a non-empty sequence of categories")
        return errors

    for cat in categories:
        cat_id = getattr(cat, "id", None)
        if not cat_id or not getattr(cat, "name", None):
            errors.append(f"Category missing id/name: {cat!r}")
        items = list(getattr(cat, "items", None) or ())
        if not items:
            errors.append(f"Category {cat_id} has no items")

        for item in items:
            item_id = getattr(item, "id", None)
            if not item_id or not getattr(item, "code", None) or not getattr(item, "name", None):
                errors.append(f"Item missing core fields: {item!r}")
            if not _is_positive_number(getattr(item, "max_points", None)):
                errors.append(f"Item {item_id} invalid max_points")

            criteria = getattr(item, "criteria", None)
            keys = set(criteria) if isinstance(criteria, Mapping) else set()
            missing = [level.value for level in LEVELS if level not in keys]
            if missing:
                errors.append(f"Item {item_id} missing criteria keys: {','.join(missing)}")

    return errors


def ensure_valid_rubric(rubric: Any) -> None:
    """Raise RubricValidationError listing every problem found in ``rubric``."""
    errors = validate_rubric(rubric)
    if errors:
        logger.error("Rubric failed validation with %d problems", len(errors))
        raise RubricValidationError(errors)
