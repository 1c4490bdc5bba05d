import io
import json

import pandas as pd
import pytest

from kpi.application.api import evaluate, item_report_rows
from kpi.utils.exports import (
    BREAKDOWN_COLUMNS,
    ITEM_COLUMNS,
    breakdown_dataframe,
    item_rows_dataframe,
    make_csv_export,
    make_json_export_payload,
    make_xlsx_export_bytes,
)


@pytest.fixture
def evaluation():
    return evaluate(
        {"1.1": "GOOD", "1.2": {"level": "WEAK", "notes": "Khách hàng phản ánh"}, "2.1": "AVERAGE"},
        employee={"name": "Lê C", "id": "NV003", "department": "Phân xưởng lò hơi"},
        period="2025-04",
    )


def test_breakdown_dataframe(evaluation):
    df = breakdown_dataframe(evaluation.result)
    assert list(df.columns) == BREAKDOWN_COLUMNS
    assert df["ShortName"].tolist() == ["Vận hành", "An toàn", "Thiết bị", "Nhân sự"]
    assert df["Points"].tolist() == [9.0, 6.3, 0.0, 0.0]
    assert df["MaxPoints"].sum() == 100.0


def test_item_rows_dataframe(evaluation):
    df = item_rows_dataframe(item_report_rows(evaluation))
    assert list(df.columns) == ITEM_COLUMNS
    assert len(df) == 11
    weak = df[df["Code"] == "1.2"].iloc[0]
    assert weak["Level"] == "WEAK"
    assert weak["Score"] == 0.0
    assert weak["Notes"] == "Khách hàng phản ánh"


def test_json_payload(evaluation):
    payload = json.loads(make_json_export_payload(evaluation, item_report_rows(evaluation)))
    assert payload["period"] == "2025-04"
    assert payload["employee"]["employee_id"] == "NV003"
    assert payload["result"]["penalty_applied"] is True
    assert payload["result"]["total_points"] == 0.0
    assert payload["result"]["ranking"] == "Không Đạt"

    unrated = next(i for i in payload["items"] if i["Code"] == "4.1")
    assert unrated["Score"] is None
    assert unrated["Level"] is None
    assert unrated["Description"].startswith("Mục tiêu: ")


def test_csv_export(evaluation):
    text = make_csv_export(item_report_rows(evaluation))
    df = pd.read_csv(io.StringIO(text), dtype={"Code": str})
    assert list(df.columns) == ITEM_COLUMNS
    assert df.loc[df["Code"] == "2.1", "Level"].iloc[0] == "AVERAGE"


def test_xlsx_export(evaluation):
    pytest.importorskip("openpyxl")
    payload = make_xlsx_export_bytes(evaluation, item_report_rows(evaluation))
    assert payload[:2] == b"PK"

    sheets = pd.read_excel(io.BytesIO(payload), sheet_name=None)
    assert set(sheets) == {"Tổng hợp", "Chi tiết"}
    summary = sheets["Tổng hợp"]
    assert summary.iloc[-1]["Category"] == "Tổng điểm"
    assert summary.iloc[-1]["MaxPoints"] == 100
    assert len(sheets["Chi tiết"]) == 11
