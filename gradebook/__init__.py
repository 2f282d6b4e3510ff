"""
This package contains:
- gradebook loading (XLSX/CSV)
- column layouts and header-based layout detection
- row parsing into student records
- branch classification from campus IDs
- total discrepancy checks
- component and branch averages
- top-N rankings per component
- report assembly and export (JSON/Excel)
"""
from .ingest import GradebookLoadError, load_rows, load_rows_from_bytes, sheet_names
from .rules import RulesError, load_rules
from .layout import COMPONENTS, COMPONENT_NAMES, Layout, infer_layout, resolve_layout
from .entity import BranchClassifier, BranchPolicy, classify_branch
from .audit import check_discrepancy, compute_total
from .extract import Student, parse_row, extract_students
from .scoring import global_average, global_averages, branch_averages
from .ranking import top_students, top_students_by_component
from .export import GradebookReport, assemble_report, write_report, export_to_excel_bytes
from .pipeline import build_report, run

__all__ = [
    "GradebookLoadError",
    "load_rows",
    "load_rows_from_bytes",
    "sheet_names",
    "RulesError",
    "load_rules",
    "COMPONENTS",
    "COMPONENT_NAMES",
    "Layout",
    "infer_layout",
    "resolve_layout",
    "BranchClassifier",
    "BranchPolicy",
    "classify_branch",
    "check_discrepancy",
    "compute_total",
    "Student",
    "parse_row",
    "extract_students",
    "global_average",
    "global_averages",
    "branch_averages",
    "top_students",
    "top_students_by_component",
    "GradebookReport",
    "assemble_report",
    "write_report",
    "export_to_excel_bytes",
    "build_report",
    "run",
]
