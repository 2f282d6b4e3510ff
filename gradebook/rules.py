from __future__ import annotations
import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .utils import load_json, default_rules_path, rules_path

logger = logging.getLogger(__name__)

BRANCH_POLICIES = ("positional", "whitelist")


class RulesError(ValueError):
    """Invalid gradebook configuration."""


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    # nested dicts are merged key by key, everything else is replaced
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = copy.deepcopy(v)
    return out


def default_rules() -> Dict[str, Any]:
    rules = load_json(default_rules_path(), None)
    if not isinstance(rules, dict):
        raise RulesError(f"Packaged rules file is missing or broken: {default_rules_path()}")
    return rules


def validate_rules(rules: Dict[str, Any]) -> Dict[str, Any]:
    policy = str(rules.get("branch_policy", "")).strip().lower()
    if policy not in BRANCH_POLICIES:
        raise RulesError(f"Unknown branch_policy {rules.get('branch_policy')!r}, expected one of {BRANCH_POLICIES}")
    rules["branch_policy"] = policy

    layouts = rules.get("layouts")
    if not isinstance(layouts, dict) or not layouts:
        raise RulesError("No column layouts configured")
    for name, fields in layouts.items():
        if not isinstance(fields, dict) or not fields:
            raise RulesError(f"Layout {name!r} has no fields")
        for field, idx in fields.items():
            if not isinstance(idx, int) or isinstance(idx, bool) or idx < 0:
                raise RulesError(f"Layout {name!r}: column index for {field!r} must be a non-negative integer")

    layout = rules.get("layout", "auto")
    if layout != "auto" and layout not in layouts:
        raise RulesError(f"Unknown layout {layout!r}")
    if rules.get("fallback_layout") not in layouts:
        raise RulesError(f"Unknown fallback_layout {rules.get('fallback_layout')!r}")

    try:
        top_k = int(rules.get("top_k", 3))
        epsilon = float(rules.get("epsilon", 0.01))
        offset = int(rules.get("branch_offset", 4))
        length = int(rules.get("branch_length", 2))
    except (TypeError, ValueError) as e:
        raise RulesError(f"Bad numeric setting: {e}") from e
    if top_k < 1:
        raise RulesError("top_k must be at least 1")
    if epsilon < 0:
        raise RulesError("epsilon must not be negative")
    if offset < 0 or length < 1:
        raise RulesError("branch_offset must be >= 0 and branch_length >= 1")

    rules["top_k"] = top_k
    rules["epsilon"] = epsilon
    rules["branch_offset"] = offset
    rules["branch_length"] = length
    rules["admission_year"] = str(rules.get("admission_year", ""))
    rules["branch_codes"] = [str(c) for c in rules.get("branch_codes", []) if str(c).strip()]
    return rules


def load_rules(path: Optional[str] = None, **overrides: Any) -> Dict[str, Any]:
    """
    Packaged defaults, merged with the user rules file (explicit path or
    GRADEBOOK_RULES) and then with keyword overrides (None values ignored).
    """
    rules = default_rules()
    src = rules_path(path)
    if src != default_rules_path():
        if not Path(src).exists():
            raise RulesError(f"Rules file not found: {src}")
        user = load_json(src, None)
        if not isinstance(user, dict):
            raise RulesError(f"Rules file is not a JSON object: {src}")
        logger.debug("Loaded rules from %s", src)
        rules = _merge(rules, user)

    rules = _merge(rules, {k: v for k, v in overrides.items() if v is not None})
    return validate_rules(rules)
