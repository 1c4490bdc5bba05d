from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from kpi.application.api import evaluate, item_report_rows, load_rubric
from kpi.domain.report import format_report
from kpi.infrastructure.config import get_scoring_policy, get_settings
from kpi.infrastructure.exceptions import KPIAssessmentError, create_user_friendly_error_message
from kpi.utils.exports import make_csv_export, make_json_export_payload, make_xlsx_export_bytes


def read_json(path: Path) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return data


def split_submission(data: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any], str | None]:
    """
    A submission file is either a bare ``{item: rating}`` map or an object with
    ``ratings`` and optional ``employee`` / ``period`` keys.
    """
    if "ratings" in data and isinstance(data["ratings"], dict):
        return data["ratings"], data.get("employee") or {}, data.get("period")
    return data, {}, None


def build_parser() -> argparse.ArgumentParser:
    export = get_settings().export
    parser = argparse.ArgumentParser(description="Score a KPI evaluation and print the report")
    parser.add_argument("--ratings", required=True, type=Path, help="Submission JSON file")
    parser.add_argument("--rubric", type=Path, default=None, help="Rubric JSON (default: built-in)")
    parser.add_argument(
        "--format", choices=["text", "json", "csv", "xlsx"], default=export.default_format
    )
    parser.add_argument("--output", type=Path, default=None, help="Write to file instead of stdout")
    parser.add_argument("--period", default=None, help="Evaluation month, YYYY-MM")
    parser.add_argument("--employee-name", default=None)
    parser.add_argument("--employee-id", default=None)
    parser.add_argument("--position", default=None)
    parser.add_argument("--department", default=None)
    parser.add_argument(
        "--configured-policy",
        action="store_true",
        help="Score with the SCORING_* settings instead of the standard 30/90/70 rules",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    export = get_settings().export
    if args.format == "xlsx" and args.output is None:
        print("[score-evaluation] --output is required for xlsx", file=sys.stderr)
        return 2

    try:
        ratings, employee, period = split_submission(read_json(args.ratings))
        overrides = {
            "name": args.employee_name,
            "employee_id": args.employee_id,
            "position": args.position,
            "department": args.department,
        }
        employee = {**employee, **{k: v for k, v in overrides.items() if v is not None}}

        rubric = load_rubric(read_json(args.rubric) if args.rubric else None)
        policy = get_scoring_policy() if args.configured_policy else None
        evaluation = evaluate(ratings, rubric, employee, args.period or period, policy)
        rows = item_report_rows(evaluation)

        if args.format == "xlsx":
            payload = make_xlsx_export_bytes(
                evaluation, rows, export.summary_sheet_name, export.items_sheet_name
            )
            args.output.write_bytes(payload)
            return 0

        if args.format == "json":
            text = make_json_export_payload(evaluation, rows, indent=export.json_indent)
        elif args.format == "csv":
            text = make_csv_export(rows)
        else:
            text = format_report(evaluation.result)

        if args.output is not None:
            args.output.write_text(text, encoding="utf-8")
        else:
            print(text)
    except (KPIAssessmentError, OSError, ValueError) as exc:
        print(f"[score-evaluation] {create_user_friendly_error_message(exc)}", file=sys.stderr)
        print(f"[score-evaluation] {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
