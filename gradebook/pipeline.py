from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

from .export import GradebookReport, assemble_report
from .extract import extract_students
from .ingest import SheetRef, load_rows
from .layout import resolve_layout
from .ranking import top_students_by_component
from .rules import load_rules
from .scoring import branch_averages, global_averages

logger = logging.getLogger(__name__)


def build_report(rows: Sequence[Sequence[Any]], rules: Optional[Dict[str, Any]] = None) -> GradebookReport:
    """
    Parse pass over all rows first; averages, branch averages and rankings
    then read the same finished list of students.
    """
    rules = rules if rules is not None else load_rules()
    layout = resolve_layout(rows, rules)
    logger.info("Using layout %r (%d columns), branch policy %r", layout.name, layout.min_columns, rules["branch_policy"])

    students, stats = extract_students(rows, layout, rules)

    return assemble_report(
        students,
        global_averages(students),
        branch_averages(students),
        top_students_by_component(students, int(rules.get("top_k", 3))),
        stats,
        layout=layout.name,
        branch_policy=rules["branch_policy"],
        admission_year=rules.get("admission_year", ""),
        top_k=int(rules.get("top_k", 3)),
    )


def run(path: Union[str, Path], sheet: SheetRef = None, rules: Optional[Dict[str, Any]] = None) -> GradebookReport:
    rows = load_rows(path, sheet)
    return build_report(rows, rules)
