from __future__ import annotations

import io
import json
from collections.abc import Sequence

import pandas as pd

from ..application.api import result_summary
from ..domain.models import Evaluation, ScoreResult
from ..domain.report import ItemReportRow
from ..infrastructure.exceptions import ExportError

BREAKDOWN_COLUMNS = ["CategoryID", "Category", "ShortName", "Points", "MaxPoints", "Percent"]
ITEM_COLUMNS = [
    "Category",
    "Code",
    "Item",
    "MaxPoints",
    "Level",
    "LevelLabel",
    "Score",
    "Description",
    "Notes",
]


def breakdown_dataframe(result: ScoreResult) -> pd.DataFrame:
    """Per-category subtotals in rubric order."""
    return pd.DataFrame(
        [
            (b.category_id, b.category_name, b.short_name, b.points, b.max_points, b.percent)
            for b in result.breakdown
        ],
        columns=BREAKDOWN_COLUMNS,
    )


def item_rows_dataframe(rows: Sequence[ItemReportRow]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            (
                r.category_name,
                r.code,
                r.name,
                r.max_points,
                r.level.value if r.level is not None else None,
                r.level_label,
                r.score,
                r.description,
                r.notes,
            )
            for r in rows
        ],
        columns=ITEM_COLUMNS,
    )


def _employee_payload(evaluation: Evaluation) -> dict[str, str]:
    e = evaluation.employee
    return {
        "name": e.name,
        "employee_id": e.employee_id,
        "position": e.position,
        "department": e.department,
        "report_date": e.report_date,
    }


def make_json_export_payload(
    evaluation: Evaluation, rows: Sequence[ItemReportRow], indent: int = 2
) -> str:
    items_df = item_rows_dataframe(rows).astype(object)
    payload = {
        "period": evaluation.period,
        "employee": _employee_payload(evaluation),
        "result": result_summary(evaluation.result),
        "items": items_df.where(items_df.notna(), None).to_dict(orient="records"),
    }
    return json.dumps(payload, indent=indent, ensure_ascii=False)


def make_csv_export(rows: Sequence[ItemReportRow]) -> str:
    return item_rows_dataframe(rows).to_csv(index=False)


def make_xlsx_export_bytes(
    evaluation: Evaluation,
    rows: Sequence[ItemReportRow],
    summary_sheet: str = "Tổng hợp",
    items_sheet: str = "Chi tiết",
) -> bytes:
    """Workbook with the category breakdown plus totals, and one row per item."""
    result = evaluation.result
    summary_df = breakdown_dataframe(result)
    totals = pd.DataFrame(
        [
            {
                "CategoryID": "",
                "Category": "Tổng điểm",
                "ShortName": result.ranking.value,
                "Points": result.total_points,
                "MaxPoints": result.total_max,
                "Percent": result.percent,
            }
        ],
        columns=BREAKDOWN_COLUMNS,
    )
    summary_df = pd.concat([summary_df, totals], ignore_index=True)

    bio = io.BytesIO()
    try:
        with pd.ExcelWriter(bio, engine="xlsxwriter") as writer:
            summary_df.to_excel(writer, index=False, sheet_name=summary_sheet)
            item_rows_dataframe(rows).to_excel(writer, index=False, sheet_name=items_sheet)
    except Exception as e:
        raise ExportError(str(e), export_format="xlsx") from e
    return bio.getvalue()
