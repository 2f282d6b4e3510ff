from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Sequence

from .extract import Student
from .layout import COMPONENT_NAMES
from .scoring import students_frame

DEFAULT_TOP_K = 3


@dataclass(frozen=True)
class RankedEntry:
    rank: str
    student_id: str
    score: float

    def to_dict(self) -> Dict[str, object]:
        return {"rank": self.rank, "student_id": self.student_id, "score": self.score}


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def top_students(students: Sequence[Student], component: str, k: int = DEFAULT_TOP_K) -> List[RankedEntry]:
    """
    Highest `k` scores for one component, descending. Students without the
    component do not compete; equal scores keep their input order.
    """
    if component not in COMPONENT_NAMES:
        raise KeyError(component)
    if k < 1:
        return []

    df = students_frame(students)
    df = df[df[component].notna()]
    if df.empty:
        return []

    # mergesort is the stable one
    best = df.sort_values(component, ascending=False, kind="mergesort").head(k)
    return [
        RankedEntry(rank=ordinal(pos), student_id=str(sid), score=float(score))
        for pos, (sid, score) in enumerate(zip(best["student_id"], best[component]), start=1)
    ]


def top_students_by_component(students: Sequence[Student], k: int = DEFAULT_TOP_K) -> Dict[str, List[RankedEntry]]:
    out: Dict[str, List[RankedEntry]] = {}
    for name in COMPONENT_NAMES:
        ranked = top_students(students, name, k)
        if ranked:
            out[name] = ranked
    return out
