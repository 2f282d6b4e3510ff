from __future__ import annotations
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .audit import DEFAULT_EPSILON, check_discrepancy, compute_total
from .entity import BranchClassifier
from .layout import COMPONENT_NAMES, IDENTIFIER_FIELDS, Layout
from .utils import parse_score

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Student:
    """One gradebook row that passed column-count (and branch) validation."""
    class_no: str
    student_id: str
    cohort_id: str
    branch_code: str
    # component -> score, unparsable cells absent; read-only view, left out of the hash
    scores: Mapping[str, float] = field(default_factory=dict, hash=False)
    computed_total: float = 0.0
    discrepancy: Optional[str] = None
    row_index: int = 0

    def __post_init__(self):
        object.__setattr__(self, "scores", MappingProxyType(dict(self.scores)))

    def score(self, component: str) -> Optional[float]:
        return self.scores.get(component)

    @property
    def total(self) -> Optional[float]:
        return self.scores.get("total")

    def to_dict(self) -> Dict[str, Any]:
        # report layout: absent components and an empty discrepancy are left out
        out: Dict[str, Any] = {
            "class_no": self.class_no,
            "student_id": self.student_id,
            "cohort_id": self.cohort_id,
            "branch_code": self.branch_code,
        }
        for name in COMPONENT_NAMES:
            if name in self.scores:
                out[name] = self.scores[name]
        out["computed_total"] = self.computed_total
        if self.discrepancy:
            out["error"] = self.discrepancy
        return out


@dataclass
class ExtractStats:
    rows_seen: int = 0
    kept: int = 0
    short_rows: int = 0
    branch_rejected: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "rows_seen": self.rows_seen,
            "kept": self.kept,
            "short_rows": self.short_rows,
            "branch_rejected": self.branch_rejected,
        }
# =========================

# Row -> Student
# =========================
def _cell(cells: Sequence[Any], idx: Optional[int]) -> str:
    if idx is None or idx >= len(cells):
        return ""
    v = cells[idx]
    return "" if v is None else str(v).strip()


def _read_scores(cells: Sequence[Any], layout: Layout) -> Dict[str, float]:
    scores: Dict[str, float] = {}
    for name in layout.components:
        val = parse_score(_cell(cells, layout.index_of(name)))
        if val is not None:
            scores[name] = val
    return scores


def _parse(
    cells: Sequence[Any],
    index: int,
    layout: Layout,
    classifier: BranchClassifier,
    epsilon: float,
) -> Tuple[Optional[Student], str]:
    if index == 0:
        return None, "header"
    if len(cells) < layout.min_columns:
        return None, "short"

    ids = {f: _cell(cells, layout.index_of(f)) for f in IDENTIFIER_FIELDS}
    branch = classifier.classify(ids["cohort_id"])
    if not branch.accepted:
        return None, "branch"

    scores = _read_scores(cells, layout)
    computed = compute_total(scores)
    student = Student(
        class_no=ids["class_no"],
        student_id=ids["student_id"],
        cohort_id=ids["cohort_id"],
        branch_code=branch.code,
        scores=scores,
        computed_total=computed,
        discrepancy=check_discrepancy(computed, scores.get("total"), epsilon),
        row_index=index,
    )
    return student, "ok"


def parse_row(
    cells: Sequence[Any],
    index: int,
    layout: Layout,
    classifier: Optional[BranchClassifier] = None,
    epsilon: float = DEFAULT_EPSILON,
) -> Optional[Student]:
    """
    One sheet row -> Student, or None when the row is the header (index 0),
    is shorter than the layout requires, or fails the whitelist branch policy.
    """
    student, _ = _parse(cells, index, layout, classifier or BranchClassifier(), epsilon)
    return student


def extract_students(
    rows: Sequence[Sequence[Any]],
    layout: Layout,
    rules: Dict[str, Any],
) -> Tuple[List[Student], ExtractStats]:
    classifier = BranchClassifier.from_rules(rules)
    epsilon = float(rules.get("epsilon", DEFAULT_EPSILON))
    stats = ExtractStats()
    students: List[Student] = []

    for i, cells in enumerate(rows):
        if i == 0:
            continue
        stats.rows_seen += 1
        student, reason = _parse(cells, i, layout, classifier, epsilon)
        if student is None:
            if reason == "short":
                stats.short_rows += 1
                logger.debug("Row %d skipped: %d cells, layout %s needs %d", i, len(cells), layout.name, layout.min_columns)
            elif reason == "branch":
                stats.branch_rejected += 1
                logger.debug("Row %d skipped: no recognised branch in %r", i, _cell(cells, layout.index_of("cohort_id")))
            continue
        students.append(student)

    stats.kept = len(students)
    logger.info(
        "Parsed %d students from %d rows (%d short, %d without branch)",
        stats.kept, stats.rows_seen, stats.short_rows, stats.branch_rejected,
    )
    return students, stats
