from __future__ import annotations
import json
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd
from xlsxwriter.utility import xl_col_to_name

from .extract import ExtractStats, Student
from .layout import COMPONENT_NAMES, component_label
from .ranking import RankedEntry
from .utils import load_json, save_json

REPORT_FILE = "report.json"


def flag_formula(col: int) -> str:
    """Conditional-format rule: true when row 2 of column `col` (0-based) is non-empty."""
    return f'=${xl_col_to_name(col)}2<>""'


@dataclass(frozen=True)
class GradebookReport:
    averages: Dict[str, float]
    branch_averages: Dict[str, float]
    top_students: Dict[str, List[RankedEntry]]
    students: List[Student]
    summary: Dict[str, Any] = field(default_factory=dict)

    @property
    def discrepancies(self) -> List[Student]:
        return [s for s in self.students if s.discrepancy]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": dict(self.summary),
            "averages": dict(self.averages),
            "branch_averages": dict(self.branch_averages),
            "top_students": {
                comp: [e.to_dict() for e in entries] for comp, entries in self.top_students.items()
            },
            "students": [s.to_dict() for s in self.students],
        }


def assemble_report(
    students: Sequence[Student],
    averages: Dict[str, float],
    branch_averages: Dict[str, float],
    rankings: Dict[str, List[RankedEntry]],
    stats: Optional[ExtractStats] = None,
    **summary: Any,
) -> GradebookReport:
    info: Dict[str, Any] = dict(stats.to_dict()) if stats is not None else {}
    info["students"] = len(students)
    info["discrepancies"] = sum(1 for s in students if s.discrepancy)
    info.update(summary)
    return GradebookReport(
        averages=dict(averages),
        branch_averages=dict(branch_averages),
        top_students={k: list(v) for k, v in rankings.items()},
        students=list(students),
        summary=info,
    )
# =========================

# JSON sink
# =========================
def report_to_json(report: GradebookReport) -> str:
    return json.dumps(report.to_dict(), ensure_ascii=False, indent=2)


def write_report(report: GradebookReport, path: Union[str, Path] = REPORT_FILE) -> Path:
    p = Path(path)
    save_json(p, report.to_dict())
    return p


def load_report(path: Union[str, Path] = REPORT_FILE) -> Dict[str, Any]:
    data = load_json(Path(path), None)
    if not isinstance(data, dict):
        raise ValueError(f"Not a gradebook report: {path}")
    return data
# =========================

# Excel export (UI download)
# =========================
def _frames(report: GradebookReport) -> Dict[str, pd.DataFrame]:
    averages_df = pd.DataFrame(
        [{"Component": component_label(k), "Average": round(v, 2)} for k, v in report.averages.items()]
    )
    branch_df = pd.DataFrame(
        [{"Branch": k, "Average total": round(v, 2)} for k, v in report.branch_averages.items()]
    )
    top_rows = []
    for comp, entries in report.top_students.items():
        for e in entries:
            top_rows.append({"Component": component_label(comp), "Rank": e.rank, "EmplID": e.student_id, "Score": e.score})
    top_df = pd.DataFrame(top_rows)

    student_rows = []
    for s in report.students:
        row = {"Class No.": s.class_no, "EmplID": s.student_id, "Campus ID": s.cohort_id, "Branch": s.branch_code}
        for name in COMPONENT_NAMES:
            row[component_label(name)] = s.scores.get(name)
        row["Computed total"] = round(s.computed_total, 2)
        row["Discrepancy"] = s.discrepancy or ""
        student_rows.append(row)
    students_df = pd.DataFrame(student_rows)

    return {
        "Averages": averages_df,
        "Branch averages": branch_df,
        "Top students": top_df,
        "Students": students_df,
    }


def export_to_excel_bytes(report: GradebookReport) -> bytes:
    bio = BytesIO()
    frames = _frames(report)

    with pd.ExcelWriter(bio, engine="xlsxwriter") as writer:
        for sheet, df in frames.items():
            df.to_excel(writer, index=False, sheet_name=sheet)

        wb = writer.book
        fmt_header = wb.add_format({"bold": True, "bg_color": "#F2F2F2", "border": 1, "valign": "vcenter"})
        fmt_err = wb.add_format({"bg_color": "#FCE8E6"})

        for sheet, df in frames.items():
            ws = writer.sheets.get(sheet)
            if ws is None:
                continue
            ws.freeze_panes(1, 0)
            if len(df.columns):
                ws.autofilter(0, 0, max(1, len(df)), len(df.columns) - 1)
            for col, name in enumerate(df.columns):
                ws.write(0, col, name, fmt_header)
                ws.set_column(col, col, max(12, min(40, len(str(name)) + 6)))

        students_df = frames["Students"]
        ws = writer.sheets.get("Students")
        if ws is not None and not students_df.empty:
            j = list(students_df.columns).index("Discrepancy")
            last_col = len(students_df.columns) - 1
            ws.set_column(j, j, 45)
            # whole row tinted when the discrepancy cell is filled
            ws.conditional_format(1, 0, len(students_df), last_col, {
                "type": "formula",
                "criteria": flag_formula(j),
                "format": fmt_err,
            })

    return bio.getvalue()
