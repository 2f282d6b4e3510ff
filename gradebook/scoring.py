from __future__ import annotations
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

from .extract import Student
from .layout import COMPONENT_NAMES


def students_frame(students: Sequence[Student]) -> pd.DataFrame:
    """
    One row per student in input order; absent components are NaN so that
    pandas reductions skip them instead of counting them as zero.
    """
    cols = ["student_id", "branch_code", *COMPONENT_NAMES, "computed_total"]
    if not students:
        return pd.DataFrame(columns=cols)

    data = []
    for s in students:
        row = {"student_id": s.student_id, "branch_code": s.branch_code, "computed_total": s.computed_total}
        for name in COMPONENT_NAMES:
            row[name] = s.scores.get(name, np.nan)
        data.append(row)

    df = pd.DataFrame(data, columns=cols)
    df[list(COMPONENT_NAMES)] = df[list(COMPONENT_NAMES)].astype(float)
    return df


def global_average(students: Sequence[Student], component: str) -> Optional[float]:
    if component not in COMPONENT_NAMES:
        raise KeyError(component)
    vals = students_frame(students)[component].dropna()
    if vals.empty:
        return None
    return float(vals.mean())


def global_averages(students: Sequence[Student]) -> Dict[str, float]:
    # sum of present scores / number of students with the component present
    if not students:
        return {}
    df = students_frame(students)
    means = df[list(COMPONENT_NAMES)].mean(skipna=True)
    return {name: float(means[name]) for name in COMPONENT_NAMES if not pd.isna(means[name])}


def _branch_totals(students: Sequence[Student]) -> pd.DataFrame:
    df = students_frame(students)
    df = df[df["branch_code"].astype(str) != ""]
    return df[df["total"].notna()]


def branch_averages(students: Sequence[Student]) -> Dict[str, float]:
    # students without a branch code are left out, not grouped under a placeholder
    df = _branch_totals(students)
    if df.empty:
        return {}
    means = df.groupby("branch_code", sort=True)["total"].mean()
    return {str(code): float(avg) for code, avg in means.items()}


def branch_counts(students: Sequence[Student]) -> Dict[str, int]:
    df = _branch_totals(students)
    if df.empty:
        return {}
    counts = df.groupby("branch_code", sort=True)["total"].count()
    return {str(code): int(n) for code, n in counts.items()}
