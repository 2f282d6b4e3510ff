"""Audit a gradebook sheet and write report.json."""
from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional, Sequence

from .export import GradebookReport, write_report
from .ingest import GradebookLoadError
from .layout import component_label
from .pipeline import run
from .rules import BRANCH_POLICIES, RulesError, load_rules

logger = logging.getLogger("gradebook")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="gradebook-audit", description=__doc__)
    parser.add_argument("path", help="Gradebook file (.xlsx, .xlsm or .csv)")
    parser.add_argument("--sheet", default=None, help="Sheet name or 0-based position (default: first sheet)")
    parser.add_argument("--rules", default=None, help="JSON rules file merged over the packaged defaults")
    parser.add_argument("--layout", default=None, help="Column layout name, or 'auto' to detect from the header")
    parser.add_argument("--policy", choices=BRANCH_POLICIES, default=None, help="Branch classification policy")
    parser.add_argument("--year", default=None, help="Admission year prefix of campus IDs")
    parser.add_argument("--top", type=int, default=None, help="Number of students ranked per component")
    parser.add_argument("-o", "--output", default=None, help="Report path (default: report.json)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def _sheet_arg(value: Optional[str]):
    if value is None:
        return None
    return int(value) if value.strip().isdigit() else value


def summary_lines(report: GradebookReport) -> List[str]:
    lines = ["General Averages:"]
    for comp, avg in report.averages.items():
        lines.append(f"{component_label(comp)}: {avg:.2f}")

    year = report.summary.get("admission_year", "")
    lines.append("")
    lines.append(f"Branch-wise Averages ({year} Batch):" if year else "Branch-wise Averages:")
    for branch, avg in report.branch_averages.items():
        lines.append(f"Branch {branch}: {avg:.2f}")

    lines.append("")
    k = report.summary.get("top_k", "")
    lines.append(f"Top {k} Students Per Component:" if k else "Top Students Per Component:")
    for comp, entries in report.top_students.items():
        lines.append("")
        lines.append(f"{component_label(comp)} Rankings:")
        for e in entries:
            lines.append(f"{e.rank}: EmplID {e.student_id} - Marks: {e.score:.2f}")
    return lines


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        rules = load_rules(
            args.rules,
            layout=args.layout,
            branch_policy=args.policy,
            admission_year=args.year,
            top_k=args.top,
        )
        report = run(args.path, _sheet_arg(args.sheet), rules)
    except (GradebookLoadError, RulesError) as e:
        logger.error("%s", e)
        return 1

    for s in report.discrepancies:
        logger.warning("EmplID %s (row %d): %s", s.student_id, s.row_index + 1, s.discrepancy)

    print("\n".join(summary_lines(report)))

    try:
        out = write_report(report, args.output or rules.get("report_file", "report.json"))
    except OSError as e:
        logger.error("Cannot write report: %s", e)
        return 1
    logger.info("Report written to %s", out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
