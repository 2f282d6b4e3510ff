import os
import re
import json
import math
from pathlib import Path
from typing import Any, Optional

BASE_DIR = Path(__file__).resolve().parent
DEFAULT_DATA_DIR = BASE_DIR / "data"

RULES_ENV = "GRADEBOOK_RULES"

def load_json(path: Path, default: Any):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError):
        return default

def save_json(path: Path, obj: Any):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2)

_DASH_CHARS_RE = re.compile(r"[\u2010\u2011\u2012\u2013\u2014\u2212]")
_NBSP_RE = re.compile(r"[\u00A0\u2007\u202F]")  # NBSP variants


def norm_text(s: Any) -> str:
    """
    General text normalisation for header matching:
    - lower
    - BOM / non-breaking spaces
    - outer quotes
    - every dash variant -> '-'
    - collapsed whitespace
    """
    if s is None:
        return ""

    s = str(s)

    # invisible characters common in CSV/Excel exports
    s = s.replace("\ufeff", "")
    s = _NBSP_RE.sub(" ", s)
    s = s.strip()
    # drop outer quotes
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ('"', "'"):
        s = s[1:-1].strip()
    s = s.lower()
    s = _DASH_CHARS_RE.sub("-", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s

def cell_text(v: Any) -> str:
    # Excel/CSV cell -> text as it would be typed in the sheet
    if v is None:
        return ""
    if isinstance(v, float):
        if math.isnan(v):
            return ""
        if v.is_integer():
            return str(int(v))
    s = str(v)
    if s.lower() == "nan":
        return ""
    return s

def parse_score(x: Any) -> Optional[float]:
    """
    Numeric cell -> float, or None when the text is not a finite number.
    Decimal comma is accepted ("12,5"), anything else (blank, "AB", "NaN", "inf") is not.
    """
    if x is None:
        return None
    if isinstance(x, bool):
        return None
    if isinstance(x, (int, float)):
        val = float(x)
    else:
        s = _NBSP_RE.sub("", str(x)).strip()
        if not s:
            return None
        if s.count(",") == 1 and "." not in s:
            s = s.replace(",", ".")
        try:
            val = float(s)
        except ValueError:
            return None
    if not math.isfinite(val):
        return None
    return val

def default_rules_path() -> Path:
    return DEFAULT_DATA_DIR / "rules.json"

def rules_path(explicit: Optional[str] = None) -> Path:
    # explicit path > environment > packaged defaults
    if explicit:
        return Path(explicit)
    env = os.environ.get(RULES_ENV)
    if env:
        return Path(env)
    return default_rules_path()
