from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .utils import norm_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Component:
    name: str
    label: str
    summable: bool


# Fixed order used by parsing, averages, rankings and the report
COMPONENTS: Tuple[Component, ...] = (
    Component("quiz", "Quiz", True),
    Component("mid_sem", "Mid-Sem", True),
    Component("lab_test", "Lab Test", True),
    Component("weekly_labs", "Weekly Labs", True),
    Component("pre_compre", "Pre-Compre", False),
    Component("compre", "Compre", True),
    Component("total", "Total", False),
)

COMPONENT_NAMES: Tuple[str, ...] = tuple(c.name for c in COMPONENTS)
SUMMABLE: Tuple[str, ...] = tuple(c.name for c in COMPONENTS if c.summable)
IDENTIFIER_FIELDS: Tuple[str, ...] = ("class_no", "student_id", "cohort_id")


def component_label(name: str) -> str:
    for c in COMPONENTS:
        if c.name == name:
            return c.label
    return name


@dataclass(frozen=True)
class Layout:
    """Field map of one gradebook variant: field name -> column index."""
    name: str
    columns: Dict[str, int] = field(default_factory=dict)

    @property
    def min_columns(self) -> int:
        # a row must reach every referenced column
        return max(self.columns.values()) + 1 if self.columns else 0

    @property
    def components(self) -> List[str]:
        return [c for c in COMPONENT_NAMES if c in self.columns]

    def index_of(self, field_name: str) -> Optional[int]:
        return self.columns.get(field_name)


def layout_from_rules(rules: Dict[str, Any], name: str) -> Layout:
    cols = rules.get("layouts", {}).get(name)
    if not cols:
        raise KeyError(name)
    unknown = [f for f in cols if f not in COMPONENT_NAMES and f not in IDENTIFIER_FIELDS]
    if unknown:
        logger.debug("Layout %s: ignoring unknown fields %s", name, unknown)
    return Layout(name=name, columns={f: int(i) for f, i in cols.items() if f not in unknown})


def _header_score(header: Sequence[str], layout: Layout, hints: Dict[str, List[str]]) -> int:
    score = 0
    for fname, idx in layout.columns.items():
        if idx >= len(header):
            continue
        h = norm_text(header[idx])
        if not h:
            continue
        if any(norm_text(k) in h for k in hints.get(fname, [])):
            score += 1
    return score


def infer_layout(header: Sequence[str], rules: Dict[str, Any]) -> Layout:
    """
    Pick the layout whose header hints match the header row best.
    Nothing matching -> configured fallback layout.
    """
    hints = rules.get("header_hints", {}) or {}
    best: Optional[Layout] = None
    best_score = 0
    for name in rules.get("layouts", {}):
        lay = layout_from_rules(rules, name)
        sc = _header_score(header, lay, hints)
        logger.debug("Header match for layout %s: %d", name, sc)
        if sc > best_score:
            best, best_score = lay, sc

    if best is None:
        fallback = rules.get("fallback_layout", "full")
        logger.info("Header not recognised, using fallback layout %r", fallback)
        return layout_from_rules(rules, fallback)
    return best


def resolve_layout(rows: Sequence[Sequence[str]], rules: Dict[str, Any]) -> Layout:
    name = rules.get("layout", "auto")
    if name != "auto":
        return layout_from_rules(rules, name)
    header = list(rows[0]) if rows else []
    return infer_layout(header, rules)
