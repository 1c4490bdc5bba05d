from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from ..infrastructure.exceptions import UnknownCriterionError
from .models import (
    DEFAULT_POLICY,
    Category,
    CategoryScore,
    DetailedRating,
    Item,
    Ranking,
    RatingLevel,
    Rubric,
    ScoreResult,
    ScoringPolicy,
    SimpleRating,
)

Ratings = Mapping[str, Any]


def round_half_up(value: float, digits: int = 2) -> float:
    """Round half up at ``digits`` decimals: scale, floor(x + 0.5), unscale."""
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


def format_points(value: float) -> str:
    """Print a point value without a trailing ``.0`` when it is integral."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def resolve_level(entry: Any) -> RatingLevel | None:
    """
    Reduce a rating entry to its level.

    Accepts SimpleRating, DetailedRating, a bare RatingLevel or its string
    value. Anything else, including a DetailedRating without a level, is
    unresolvable and returns None.
    """
    if entry is None:
        return None
    if isinstance(entry, (SimpleRating, DetailedRating)):
        entry = entry.level
    if isinstance(entry, RatingLevel):
        return entry
    if isinstance(entry, str):
        try:
            return RatingLevel(entry)
        except ValueError:
            return None
    return None


def lookup_rating(item: Item, ratings: Ratings) -> Any:
    """Rating entry for ``item``, keyed by id with the code as fallback."""
    entry = ratings.get(item.id)
    if entry is None:
        entry = ratings.get(item.code)
    return entry


def score_item(item: Item, level: RatingLevel) -> float:
    criterion = item.criteria.get(level)
    if criterion is None:
        raise UnknownCriterionError(item.id, level)
    return round_half_up(item.max_points * criterion.score_percent)


def score_category(category: Category, ratings: Ratings) -> tuple[float, float]:
    """
    Sum item scores and item maxima for one category.

    Unrated items add nothing to the points but their full maximum to the
    denominator. Returns ``(points, max_points)`` with points rounded once
    after summation.
    """
    points = 0.0
    max_points = 0.0
    for item in category.items:
        level = resolve_level(lookup_rating(item, ratings))
        if level is not None:
            points += score_item(item, level)
        max_points += item.max_points
    return round_half_up(points), max_points


def any_weak(rubric: Rubric, ratings: Ratings) -> bool:
    """True when any item anywhere in the rubric resolves to WEAK."""
    return any(
        resolve_level(lookup_rating(item, ratings)) is RatingLevel.WEAK
        for _category, item in rubric.iter_items()
    )


def classify_ranking(
    total_points: float, penalty_applied: bool, policy: ScoringPolicy = DEFAULT_POLICY
) -> Ranking:
    """
    Rank a final point total.

    Thresholds compare absolute points, not the percentage. A zero total
    without a penalty means nothing was rated and yields UNRATED.
    """
    if not (total_points > 0 or penalty_applied):
        return Ranking.UNRATED
    if total_points >= policy.excellent_threshold:
        return Ranking.EXCELLENT
    if total_points >= policy.meets_threshold:
        return Ranking.MEETS
    return Ranking.FAILS


def score_total(
    rubric: Rubric, ratings: Ratings, policy: ScoringPolicy = DEFAULT_POLICY
) -> ScoreResult:
    """
    Score a full evaluation.

    Category subtotals are summed, a flat penalty is deducted once if any
    item is WEAK, the total is floored at 0 and rounded, and the percentage
    is taken from the rounded total.
    """
    total_points = 0.0
    total_max = 0.0
    breakdown: list[CategoryScore] = []

    for category in rubric:
        points, max_points = score_category(category, ratings)
        breakdown.append(CategoryScore(category.id, category.name, points, max_points))
        total_points += points
        total_max += max_points

    penalty_applied = any_weak(rubric, ratings)
    if penalty_applied:
        total_points -= policy.penalty_points

    if total_points < 0:
        total_points = 0.0

    total_points = round_half_up(total_points)
    percent = math.floor(total_points / total_max * 10000 + 0.5) / 100 if total_max > 0 else 0.0

    return ScoreResult(
        total_points=total_points,
        total_max=total_max,
        percent=percent,
        penalty_applied=penalty_applied,
        breakdown=tuple(breakdown),
        ranking=classify_ranking(total_points, penalty_applied, policy),
        penalty_deduction=policy.penalty_points if penalty_applied else 0.0,
    )


class ScoringService:
    """Scores evaluations against one loaded rubric."""

    def __init__(
        self,
        rubric: Rubric,
        policy: ScoringPolicy | None = None,
        logger: logging.Logger | None = None,
    ):
        self.rubric = rubric
        self.policy = policy or DEFAULT_POLICY
        self.logger = logger or logging.getLogger(__name__)

    def score_item(self, item_key: str, level: RatingLevel) -> float:
        """Score one item, looked up by id or code, at ``level``."""
        item = self.rubric.find_item(item_key)
        if item is None:
            raise KeyError(f"Unknown item: {item_key}")
        return score_item(item, level)

    def evaluate(self, ratings: Ratings) -> ScoreResult:
        try:
            result = score_total(self.rubric, ratings, self.policy)
        except UnknownCriterionError:
            self.logger.exception("Rubric and ratings disagree on available criteria")
            raise

        self.logger.debug(
            "Scored %d categories: %s/%s points",
            len(result.breakdown),
            format_points(result.total_points),
            format_points(result.total_max),
        )
        if result.penalty_applied:
            self.logger.info(
                "WEAK rating present; deducted %s points", format_points(result.penalty_deduction)
            )
        return result
