from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Sequence

DEFAULT_BRANCH_CODES = ("A3", "A4", "A5", "A7", "A8", "AA", "AD")


class BranchPolicy(str, Enum):
    # whitelist: unknown branch -> row dropped; positional: slice kept as is, row always kept
    WHITELIST = "whitelist"
    POSITIONAL = "positional"


@dataclass(frozen=True)
class BranchResult:
    code: str
    accepted: bool


@dataclass(frozen=True)
class BranchClassifier:
    """
    Branch code from a cohort identifier such as "2024A3PS0001P".

    The identifier must start with the admission year and be long enough to
    slice `length` characters at `offset` (right after the year by default).
    """
    policy: BranchPolicy = BranchPolicy.POSITIONAL
    year_prefix: str = "2024"
    offset: int = 4
    length: int = 2
    codes: Sequence[str] = DEFAULT_BRANCH_CODES

    @classmethod
    def from_rules(cls, rules: Dict[str, Any]) -> "BranchClassifier":
        return cls(
            policy=BranchPolicy(rules.get("branch_policy", "positional")),
            year_prefix=str(rules.get("admission_year", "2024")),
            offset=int(rules.get("branch_offset", 4)),
            length=int(rules.get("branch_length", 2)),
            codes=tuple(rules.get("branch_codes") or DEFAULT_BRANCH_CODES),
        )

    def _structurally_valid(self, cohort_id: str) -> bool:
        return cohort_id.startswith(self.year_prefix) and len(cohort_id) >= self.offset + self.length

    def classify(self, cohort_id: str) -> BranchResult:
        cid = (cohort_id or "").strip()
        if self.policy is BranchPolicy.POSITIONAL:
            if not self._structurally_valid(cid):
                return BranchResult("", True)
            return BranchResult(cid[self.offset:self.offset + self.length], True)

        if not self._structurally_valid(cid):
            return BranchResult("", False)
        # first whitelisted code found anywhere in the identifier, whitelist order
        for code in self.codes:
            if code and code in cid:
                return BranchResult(code, True)
        return BranchResult("", False)


def classify_branch(cohort_id: str, rules: Dict[str, Any]) -> BranchResult:
    return BranchClassifier.from_rules(rules).classify(cohort_id)
