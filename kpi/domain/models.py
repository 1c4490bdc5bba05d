from __future__ import annotations

import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum


class RatingLevel(str, Enum):
    GOOD = "GOOD"
    AVERAGE = "AVERAGE"
    WEAK = "WEAK"


class Ranking(str, Enum):
    """Qualitative outcome of an evaluation, anchored to the 100-point scale."""

    EXCELLENT = "Xuất Sắc"
    MEETS = "Đạt Yêu Cầu"
    FAILS = "Không Đạt"
    UNRATED = "---"  # nothing rated and no penalty

    @property
    def description(self) -> str:
        return _RANKING_DESCRIPTIONS[self]

    @property
    def band(self) -> str:
        return _RANKING_BANDS[self]


_RANKING_DESCRIPTIONS = {
    Ranking.EXCELLENT: "Hoàn thành xuất sắc nhiệm vụ, không xảy ra sự cố, tuân thủ tuyệt đối quy trình.",
    Ranking.MEETS: "Hoàn thành nhiệm vụ được giao, còn sai sót nhỏ nhưng đã khắc phục kịp thời.",
    Ranking.FAILS: "Vi phạm quy trình vận hành, để xảy ra sự cố nghiêm trọng hoặc thiếu trách nhiệm.",
    Ranking.UNRATED: "Chưa có đánh giá.",
}

_RANKING_BANDS = {
    Ranking.EXCELLENT: "90 - 100 điểm",
    Ranking.MEETS: "70 - 90 điểm",
    Ranking.FAILS: "< 70 điểm",
    Ranking.UNRATED: "",
}


@dataclass(slots=True, frozen=True)
class Criterion:
    label: str
    description: str
    score_percent: float  # fraction of max_points, 0..1


@dataclass(slots=True, frozen=True)
class Item:
    id: str
    code: str  # "<category>.<item>", e.g. "2.1"
    name: str
    max_points: float
    criteria: Mapping[RatingLevel, Criterion]
    unit: str = ""
    checklist: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class Category:
    id: str
    name: str
    items: tuple[Item, ...]


@dataclass(slots=True, frozen=True)
class Rubric:
    """Ordered categories of a scoring rubric. Read-only once built."""

    categories: tuple[Category, ...]
    name: str = ""

    def __iter__(self) -> Iterator[Category]:
        return iter(self.categories)

    def __len__(self) -> int:
        return len(self.categories)

    def iter_items(self) -> Iterator[tuple[Category, Item]]:
        for category in self.categories:
            for item in category.items:
                yield category, item

    def find_item(self, key: str) -> Item | None:
        """Look an item up by id, then by code."""
        for _category, item in self.iter_items():
            if item.id == key:
                return item
        for _category, item in self.iter_items():
            if item.code == key:
                return item
        return None

    @property
    def total_max(self) -> float:
        return sum(item.max_points for _category, item in self.iter_items())


@dataclass(slots=True, frozen=True)
class SimpleRating:
    level: RatingLevel


@dataclass(slots=True, frozen=True)
class DetailedRating:
    """Rating as captured by the entry form.

    ``actual_score`` is whatever the form displayed; scoring always recomputes
    from the level. ``level`` is None when only a note has been typed.
    """

    level: RatingLevel | None
    actual_score: float | None = None
    notes: str = ""


RatingEntry = SimpleRating | DetailedRating


@dataclass(slots=True, frozen=True)
class ScoringPolicy:
    penalty_points: float = 30.0
    excellent_threshold: float = 90.0
    meets_threshold: float = 70.0


DEFAULT_POLICY = ScoringPolicy()


@dataclass(slots=True, frozen=True)
class CategoryScore:
    category_id: str
    category_name: str
    points: float
    max_points: float

    @property
    def short_name(self) -> str:
        """Category name without its ordinal prefix, e.g. "1. VẬN HÀNH" -> "Vận hành"."""
        head, sep, tail = self.category_name.partition(".")
        name = tail.strip() if sep and head.strip().isdigit() and tail.strip() else self.category_name
        return name.strip().capitalize()

    @property
    def percent(self) -> int:
        if self.max_points <= 0:
            return 0
        return math.floor(self.points / self.max_points * 100 + 0.5)


@dataclass(slots=True, frozen=True)
class ScoreResult:
    total_points: float
    total_max: float
    percent: float
    penalty_applied: bool
    breakdown: tuple[CategoryScore, ...]
    ranking: Ranking
    penalty_deduction: float = 0.0

    @property
    def is_rated(self) -> bool:
        return self.ranking is not Ranking.UNRATED


@dataclass(slots=True, frozen=True)
class EmployeeInfo:
    name: str = ""
    employee_id: str = ""
    position: str = ""
    department: str = ""
    report_date: str = ""


@dataclass(slots=True, frozen=True)
class Evaluation:
    result: ScoreResult
    ratings: Mapping[str, RatingEntry] = field(default_factory=dict)
    employee: EmployeeInfo = field(default_factory=EmployeeInfo)
    period: str | None = None  # "YYYY-MM"
    rubric: Rubric | None = None  # rubric the result was scored against
