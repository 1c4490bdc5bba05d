"""
Plain-text report and printable rows for a scored evaluation.

Nothing here recomputes totals; item scores on the printable rows are
recomputed from the rating level, never taken from the form's stored score.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..infrastructure.exceptions import UnknownCriterionError
from .models import RatingLevel, Rubric, ScoreResult
from .services import Ratings, format_points, lookup_rating, resolve_level, score_item

TARGET_PREFIX = "Mục tiêu: "


def format_report(result: ScoreResult) -> str:
    """
    Render ``result`` as text: a summary line, a penalty notice when one was
    applied, then one line per category in rubric order.
    """
    lines = [
        f"Tổng điểm: {format_points(result.total_points)}/{format_points(result.total_max)} "
        f"({format_points(result.percent)}%)"
    ]
    if result.penalty_applied:
        lines.append(
            f"(*) Đã bị trừ {format_points(result.penalty_deduction)} điểm "
            "do có hạng mục đánh giá loại Yếu."
        )
    lines.append("Phân tích theo mục:")
    for entry in result.breakdown:
        lines.append(
            f"- {entry.category_name}: {format_points(entry.points)}/{format_points(entry.max_points)}"
        )
    return "\n".join(lines)


@dataclass(slots=True, frozen=True)
class ItemReportRow:
    category_name: str
    code: str
    name: str
    max_points: float
    level: RatingLevel | None
    level_label: str
    score: float | None
    description: str
    notes: str = ""

    @property
    def is_rated(self) -> bool:
        return self.level is not None


def build_item_report_rows(rubric: Rubric, ratings: Ratings) -> list[ItemReportRow]:
    """
    One row per item for the printable report.

    Rated items show the criterion text of their level; unrated items show
    the GOOD criterion as the target.
    """
    rows: list[ItemReportRow] = []
    for category, item in rubric.iter_items():
        entry = lookup_rating(item, ratings)
        level = resolve_level(entry)
        notes = getattr(entry, "notes", "") or ""
        if level is not None:
            score = score_item(item, level)
            criterion = item.criteria[level]
            rows.append(
                ItemReportRow(
                    category_name=category.name,
                    code=item.code,
                    name=item.name,
                    max_points=item.max_points,
                    level=level,
                    level_label=criterion.label,
                    score=score,
                    description=criterion.description,
                    notes=notes,
                )
            )
        else:
            target = item.criteria.get(RatingLevel.GOOD)
            if target is None:
                raise UnknownCriterionError(item.id, RatingLevel.GOOD)
            rows.append(
                ItemReportRow(
                    category_name=category.name,
                    code=item.code,
                    name=item.name,
                    max_points=item.max_points,
                    level=None,
                    level_label="",
                    score=None,
                    description=f"{TARGET_PREFIX}{target.description}",
                    notes=notes,
                )
            )
    return rows
