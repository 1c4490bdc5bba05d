"""
Pydantic schemas for validating data that crosses into the scoring engine.

Rubric configuration is trusted and only normalised; rating entries and
employee details come from a data-entry form and are sanitised.
"""

from __future__ import annotations

import re
from datetime import date
from html import unescape
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator, model_validator

from .models import (
    Category,
    Criterion,
    DetailedRating,
    EmployeeInfo,
    Item,
    RatingLevel,
    Rubric,
)
from .services import format_points

LEVELS = (RatingLevel.GOOD, RatingLevel.AVERAGE, RatingLevel.WEAK)


class BaseValidationSchema(BaseModel):
    """Base schema for form input with string sanitising."""

    model_config = {"str_strip_whitespace": True, "validate_assignment": True, "populate_by_name": True}

    @field_validator("*", mode="before")
    def sanitize_strings(cls, v):
        """Sanitize string inputs to prevent XSS and injection attacks."""
        if isinstance(v, str):
            cleaned = unescape(v.strip())
            cleaned = re.sub(
                r"<\s*script[^>]*>.*?<\s*/\s*script\s*>",
                "",
                cleaned,
                flags=re.IGNORECASE | re.DOTALL,
            )
            cleaned = re.sub(r"<[^>]+>", "", cleaned)
            cleaned = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]", "", cleaned)
            return cleaned
        return v


class RubricSchema(BaseModel):
    """Base schema for rubric configuration."""

    model_config = {"str_strip_whitespace": True, "populate_by_name": True, "frozen": True}


class CriterionInput(RubricSchema):
    label: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=1000)
    score_percent: float = Field(
        ..., ge=0, le=1, validation_alias=AliasChoices("score_percent", "scorePercent")
    )

    def to_domain(self) -> Criterion:
        return Criterion(self.label, self.description, float(self.score_percent))


class ItemInput(RubricSchema):
    id: str | None = Field(None, max_length=64)
    code: str | None = Field(None, max_length=32)
    name: str = Field(..., min_length=1, max_length=500)
    max_points: float = Field(
        ..., gt=0, validation_alias=AliasChoices("max_points", "maxPoints")
    )
    unit: str | None = Field(None, max_length=32)
    checklist: list[str] = Field(default_factory=list)
    criteria: dict[RatingLevel, CriterionInput]

    @field_validator("criteria")
    def validate_criteria_complete(cls, v):
        """Every rating level needs its own criterion."""
        missing = [level.value for level in LEVELS if level not in v]
        if missing:
            raise ValueError(f"missing criteria keys: {','.join(missing)}")
        return v

    @field_validator("checklist")
    def drop_blank_checklist_lines(cls, v):
        return [line.strip() for line in v if line and line.strip()]


class CategoryInput(RubricSchema):
    id: str | None = Field(None, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    items: list[ItemInput] = Field(..., min_length=1)


class RubricInput(RubricSchema):
    """
    Rubric configuration as loaded from static data.

    Missing ids, codes and units are generated from position: category
    ``cat_<n>``, item code ``<n>.<m>``, item id equal to its code and unit
    ``<max_points>đ``.

    Example:
        >>> rubric = RubricInput.model_validate(raw).to_rubric()
    """

    name: str = Field("", max_length=255)
    categories: list[CategoryInput] = Field(..., min_length=1)

    @model_validator(mode="after")
    def validate_unique_ids(self):
        """Item ids (explicit or generated) must not collide."""
        seen: set[str] = set()
        for cat_index, cat in enumerate(self.categories, start=1):
            for item_index, item in enumerate(cat.items, start=1):
                item_id = item.id or item.code or f"{cat_index}.{item_index}"
                if item_id in seen:
                    raise ValueError(f"Duplicate item id: {item_id}")
                seen.add(item_id)
        return self

    def to_rubric(self) -> Rubric:
        categories = []
        for cat_index, cat in enumerate(self.categories, start=1):
            items = []
            for item_index, item in enumerate(cat.items, start=1):
                code = item.code or f"{cat_index}.{item_index}"
                items.append(
                    Item(
                        id=item.id or code,
                        code=code,
                        name=item.name,
                        max_points=float(item.max_points),
                        criteria={level: item.criteria[level].to_domain() for level in LEVELS},
                        unit=item.unit or f"{format_points(item.max_points)}đ",
                        checklist=tuple(item.checklist),
                    )
                )
            categories.append(Category(cat.id or f"cat_{cat_index}", cat.name, tuple(items)))
        return Rubric(tuple(categories), name=self.name)


class RatingEntryInput(BaseValidationSchema):
    """A rating entry as submitted by the evaluation form."""

    level: RatingLevel | None = None
    actual_score: float | None = Field(
        None, ge=0, validation_alias=AliasChoices("actual_score", "actualScore")
    )
    notes: str = Field("", max_length=2000)

    @field_validator("level", mode="before")
    def normalise_level(cls, v):
        if isinstance(v, str):
            v = v.strip().upper()
            return v or None
        return v

    @field_validator("notes", mode="before")
    def none_notes_to_empty(cls, v):
        return "" if v is None else v

    def to_entry(self) -> DetailedRating:
        return DetailedRating(self.level, self.actual_score, self.notes)


class EmployeeInfoInput(BaseValidationSchema):
    """Employee details printed on the evaluation report."""

    name: str = Field("", max_length=255)
    employee_id: str = Field(
        "", max_length=64, validation_alias=AliasChoices("employee_id", "id")
    )
    position: str = Field("", max_length=255)
    department: str = Field("", max_length=255)
    report_date: str = Field(
        "", max_length=32, validation_alias=AliasChoices("report_date", "reportDate")
    )

    @field_validator("report_date", mode="before")
    def date_to_iso(cls, v):
        if isinstance(v, date):
            return v.isoformat()
        return "" if v is None else v

    def to_domain(self) -> EmployeeInfo:
        return EmployeeInfo(
            name=self.name,
            employee_id=self.employee_id,
            position=self.position,
            department=self.department,
            report_date=self.report_date,
        )


class ValidationErrorDetail(BaseModel):
    """Schema for validation error details."""

    field: str
    message: str
    value: Any = None


class ValidationResponse(BaseModel):
    """Schema for validation responses."""

    success: bool
    errors: list[ValidationErrorDetail] = []
    data: dict[str, Any] | None = None


def validate_input(schema_class: type[BaseModel], data: dict[str, Any]) -> ValidationResponse:
    """
    Centralized validation function that returns structured validation results.

    Args:
        schema_class: Pydantic model class to use for validation
        data: Input data to validate

    Returns:
        ValidationResponse with success status and any errors

    Example:
        >>> result = validate_input(RatingEntryInput, {"level": "GOOD", "notes": "ok"})
        >>> if not result.success:
        ...     for error in result.errors:
        ...         print(f"Error in {error.field}: {error.message}")
    """
    try:
        validated = schema_class.model_validate(data)
        return ValidationResponse(success=True, data=validated.model_dump())
    except ValidationError as e:
        errors = [
            ValidationErrorDetail(
                field=".".join(str(x) for x in error["loc"]) or "general",
                message=error["msg"],
                value=error.get("input"),
            )
            for error in e.errors()
        ]
        return ValidationResponse(success=False, errors=errors)
