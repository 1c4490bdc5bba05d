import pytest

from kpi.domain.models import (
    Category,
    Criterion,
    DetailedRating,
    Item,
    Ranking,
    RatingLevel,
    Rubric,
    ScoringPolicy,
    SimpleRating,
)
from kpi.domain.rubric_data import default_rubric
from kpi.domain.services import (
    ScoringService,
    any_weak,
    classify_ranking,
    format_points,
    resolve_level,
    round_half_up,
    score_category,
    score_item,
    score_total,
)
from kpi.infrastructure.exceptions import UnknownCriterionError

from conftest import make_criteria

GOOD, AVERAGE, WEAK = RatingLevel.GOOD, RatingLevel.AVERAGE, RatingLevel.WEAK


def all_items(rubric):
    return [item for _cat, item in rubric.iter_items()]


def rate_all(rubric, level):
    return {item.id: SimpleRating(level) for item in all_items(rubric)}


class TestRounding:
    def test_half_rounds_up(self):
        assert round_half_up(0.125) == 0.13
        assert round_half_up(2.5, 0) == 3.0

    def test_absorbs_summation_drift(self):
        assert round_half_up(69.99999999999999) == 70.0

    def test_format_points(self):
        assert format_points(16.0) == "16"
        assert format_points(84.21) == "84.21"
        assert format_points(0) == "0"


class TestScoreItem:
    def test_good_is_max_points_times_percent(self, two_item_rubric):
        for item in all_items(two_item_rubric):
            assert score_item(item, GOOD) == round_half_up(
                item.max_points * item.criteria[GOOD].score_percent
            )

    def test_average_and_weak(self, two_item_rubric):
        first, second = all_items(two_item_rubric)
        assert score_item(first, AVERAGE) == 6.3
        assert score_item(second, AVERAGE) == 7.0
        assert score_item(first, WEAK) == 0.0

    def test_monotonic_in_score_percent(self):
        scores = [
            score_item(Item("x", "1.1", "X", 9.0, make_criteria(good=p)), GOOD)
            for p in (0.0, 0.25, 0.5, 0.7, 1.0)
        ]
        assert scores == sorted(scores)

    def test_unknown_criterion(self):
        item = Item("x", "1.1", "X", 9.0, {GOOD: Criterion("Tốt", "", 1.0)})
        with pytest.raises(UnknownCriterionError) as excinfo:
            score_item(item, WEAK)
        assert excinfo.value.item_id == "x"


class TestResolveLevel:
    @pytest.mark.parametrize(
        "entry",
        [SimpleRating(GOOD), DetailedRating(GOOD, 9.0, "ok"), GOOD, "GOOD"],
    )
    def test_resolves(self, entry):
        assert resolve_level(entry) is GOOD

    @pytest.mark.parametrize("entry", [None, DetailedRating(None, None, "note only"), "EXCELLENT", 3])
    def test_unresolvable(self, entry):
        assert resolve_level(entry) is None


class TestScoreCategory:
    def test_no_ratings(self, two_item_rubric):
        category = two_item_rubric.categories[0]
        assert score_category(category, {}) == (0.0, 19.0)

    def test_mixed_ratings(self, two_item_rubric):
        category = two_item_rubric.categories[0]
        ratings = {"incident_control": SimpleRating(GOOD), "service_quality": SimpleRating(AVERAGE)}
        assert score_category(category, ratings) == (16.0, 19.0)

    def test_code_fallback_matches_id(self, two_item_rubric):
        category = two_item_rubric.categories[0]
        by_id = {"incident_control": SimpleRating(AVERAGE)}
        by_code = {"1.1": SimpleRating(AVERAGE)}
        assert score_category(category, by_id) == score_category(category, by_code) == (6.3, 19.0)

    def test_id_wins_over_code(self, two_item_rubric):
        category = two_item_rubric.categories[0]
        ratings = {"incident_control": SimpleRating(GOOD), "1.1": SimpleRating(WEAK)}
        assert score_category(category, ratings)[0] == 9.0

    def test_unresolvable_entry_counts_as_unrated(self, two_item_rubric):
        category = two_item_rubric.categories[0]
        ratings = {"incident_control": DetailedRating(None, 9.0, "chưa chấm")}
        assert score_category(category, ratings) == (0.0, 19.0)

    def test_item_rounding_happens_before_summation(self):
        items = tuple(
            Item(f"i{n}", f"1.{n}", f"Item {n}", 3.333, make_criteria()) for n in range(1, 4)
        )
        category = Category("cat_1", "Rounding", items)
        ratings = {item.id: SimpleRating(AVERAGE) for item in items}
        points, max_points = score_category(category, ratings)
        assert points == 6.99
        assert max_points == pytest.approx(9.999)

    def test_actual_score_is_not_trusted(self, two_item_rubric):
        category = two_item_rubric.categories[0]
        ratings = {"incident_control": DetailedRating(AVERAGE, 9.0, "")}
        assert score_category(category, ratings)[0] == 6.3

    def test_missing_criterion_propagates(self):
        item = Item("x", "1.1", "X", 9.0, {GOOD: Criterion("Tốt", "", 1.0)})
        with pytest.raises(UnknownCriterionError):
            score_category(Category("c", "C", (item,)), {"x": SimpleRating(AVERAGE)})


class TestAnyWeak:
    def test_no_weak(self, two_item_rubric):
        assert not any_weak(two_item_rubric, {"1.1": SimpleRating(AVERAGE)})

    def test_weak_by_code(self, two_item_rubric):
        assert any_weak(two_item_rubric, {"1.2": DetailedRating(WEAK, 0, "")})


class TestRanking:
    @pytest.mark.parametrize(
        "points, expected",
        [
            (100.0, Ranking.EXCELLENT),
            (90.0, Ranking.EXCELLENT),
            (89.99, Ranking.MEETS),
            (70.0, Ranking.MEETS),
            (69.99, Ranking.FAILS),
            (0.01, Ranking.FAILS),
        ],
    )
    def test_boundaries(self, points, expected):
        assert classify_ranking(points, False) is expected

    def test_zero_without_penalty_is_unrated(self):
        assert classify_ranking(0.0, False) is Ranking.UNRATED

    def test_zero_with_penalty_fails(self):
        assert classify_ranking(0.0, True) is Ranking.FAILS

    def test_custom_policy(self):
        policy = ScoringPolicy(excellent_threshold=80.0, meets_threshold=50.0)
        assert classify_ranking(80.0, False, policy) is Ranking.EXCELLENT
        assert classify_ranking(49.99, False, policy) is Ranking.FAILS

    def test_ranking_values(self):
        assert Ranking.EXCELLENT == "Xuất Sắc"
        assert Ranking.MEETS == "Đạt Yêu Cầu"
        assert Ranking.FAILS == "Không Đạt"
        assert Ranking.FAILS.band == "< 70 điểm"


class TestScoreTotal:
    def test_good_and_average_scenario(self, two_item_rubric):
        ratings = {"incident_control": SimpleRating(GOOD), "service_quality": SimpleRating(AVERAGE)}
        result = score_total(two_item_rubric, ratings)

        assert result.breakdown[0].points == 16.0
        assert result.breakdown[0].max_points == 19.0
        assert result.breakdown[0].category_id == "cat_1"
        assert result.penalty_applied is False
        assert result.total_points == 16.0
        assert result.total_max == 19.0
        assert result.percent == 84.21
        assert result.ranking is Ranking.FAILS

    def test_penalty_clamps_to_zero(self, two_item_rubric):
        ratings = {"incident_control": SimpleRating(WEAK), "service_quality": SimpleRating(GOOD)}
        result = score_total(two_item_rubric, ratings)

        assert result.breakdown[0].points == 10.0
        assert result.penalty_applied is True
        assert result.penalty_deduction == 30.0
        assert result.total_points == 0.0
        assert result.percent == 0.0
        assert result.ranking is Ranking.FAILS

    def test_empty_ratings(self, two_item_rubric):
        result = score_total(two_item_rubric, {})
        assert result.total_points == 0.0
        assert result.total_max == 19.0
        assert result.percent == 0.0
        assert result.penalty_applied is False
        assert result.ranking is Ranking.UNRATED
        assert not result.is_rated

    def test_empty_rubric(self):
        result = score_total(Rubric(()), {})
        assert result.total_max == 0
        assert result.percent == 0.0
        assert result.breakdown == ()

    def test_idempotent(self):
        rubric = default_rubric()
        ratings = rate_all(rubric, AVERAGE)
        ratings["2.1"] = DetailedRating(WEAK, 0.0, "vi phạm")
        assert score_total(rubric, ratings) == score_total(rubric, ratings)


class TestCanonicalRubric:
    def test_totals_100(self):
        assert default_rubric().total_max == 100.0

    def test_all_good_is_excellent(self):
        rubric = default_rubric()
        result = score_total(rubric, rate_all(rubric, GOOD))
        assert result.total_points == 100.0
        assert result.percent == 100.0
        assert result.ranking is Ranking.EXCELLENT

    def test_all_average_meets_requirements(self):
        rubric = default_rubric()
        result = score_total(rubric, rate_all(rubric, AVERAGE))
        assert [b.points for b in result.breakdown] == [19.6, 12.6, 25.2, 12.6]
        assert result.total_points == 70.0
        assert result.ranking is Ranking.MEETS

    def test_single_weak_with_nothing_else_rated(self):
        rubric = default_rubric()
        result = score_total(rubric, {"3.2": SimpleRating(WEAK)})
        assert result.total_points == 0.0
        assert result.penalty_applied is True
        assert result.ranking is Ranking.FAILS

    def test_penalty_is_flat_not_cumulative(self):
        rubric = default_rubric()
        one_weak = rate_all(rubric, GOOD)
        one_weak["1.1"] = SimpleRating(WEAK)
        two_weak = dict(one_weak)
        two_weak["1.3"] = SimpleRating(WEAK)

        first = score_total(rubric, one_weak)
        second = score_total(rubric, two_weak)

        assert first.total_points == 100.0 - 9.0 - 30.0
        assert second.total_points == 100.0 - 18.0 - 30.0
        assert first.penalty_deduction == second.penalty_deduction == 30.0

    def test_short_names(self):
        rubric = default_rubric()
        result = score_total(rubric, {})
        assert [b.short_name for b in result.breakdown] == [
            "Vận hành",
            "An toàn",
            "Thiết bị",
            "Nhân sự",
        ]


class TestScoringService:
    def test_evaluate(self, two_item_rubric):
        service = ScoringService(two_item_rubric)
        result = service.evaluate({"1.1": SimpleRating(GOOD), "1.2": SimpleRating(GOOD)})
        assert result.total_points == 19.0
        assert result.breakdown[0].percent == 100

    def test_score_item_by_code(self, two_item_rubric):
        service = ScoringService(two_item_rubric)
        assert service.score_item("1.2", AVERAGE) == 7.0
        with pytest.raises(KeyError):
            service.score_item("9.9", GOOD)

    def test_policy_penalty(self, two_item_rubric):
        service = ScoringService(two_item_rubric, ScoringPolicy(penalty_points=5.0))
        result = service.evaluate({"1.1": SimpleRating(WEAK), "1.2": SimpleRating(GOOD)})
        assert result.total_points == 5.0
