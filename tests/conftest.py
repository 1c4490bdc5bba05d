import os

os.environ.setdefault("ENVIRONMENT", "test")

import pytest

from kpi.domain.models import Category, Criterion, Item, RatingLevel, Rubric
from kpi.infrastructure.config import reset_settings


def make_criteria(good=1.0, average=0.7, weak=0.0):
    return {
        RatingLevel.GOOD: Criterion("Tốt", "Không có gián đoạn", good),
        RatingLevel.AVERAGE: Criterion("Trung bình", "Có sự cố nhỏ", average),
        RatingLevel.WEAK: Criterion("Yếu", "Gián đoạn phải bồi thường", weak),
    }


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def two_item_rubric() -> Rubric:
    """One category, items worth 9 and 10 points (19 in total)."""
    items = (
        Item("incident_control", "1.1", "Kiểm soát sự cố", 9.0, make_criteria(), unit="9đ"),
        Item("service_quality", "1.2", "Chất lượng dịch vụ", 10.0, make_criteria(), unit="10đ"),
    )
    return Rubric((Category("cat_1", "1. VẬN HÀNH", items),))
