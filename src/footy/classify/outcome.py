"""
Outcome classification from free-text notes.

`classify_notes` turns a notes cell into the five outcome flags using the patterns of an `OutcomeRules`
table. `resolve_outcomes` layers explicit flags (already present on a row) over the derived ones.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, fields
from functools import lru_cache
from typing import Any, Mapping

from src.footy.rules import DEFAULT_OUTCOME_RULES, OutcomeRules


@dataclass(frozen=True)
class OutcomeFlags:

    was_relegated: bool = False
    was_promoted: bool = False
    is_expansion_team: bool = False
    was_re_elected: bool = False
    was_reprieved: bool = False

    def as_dict(self) -> dict[str, bool]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


OUTCOME_FIELDS = tuple(f.name for f in fields(OutcomeFlags))

# JSON spelling of each flag
OUTCOME_JSON_KEYS = {
    "was_relegated": "wasRelegated",
    "was_promoted": "wasPromoted",
    "is_expansion_team": "isExpansionTeam",
    "was_re_elected": "wasReElected",
    "was_reprieved": "wasReprieved",
}


@lru_cache(maxsize=64)
def _compile(patterns: tuple[str, ...]) -> re.Pattern | None:
    if not patterns:
        return None
    return re.compile("|".join(f"(?:{p})" for p in patterns), re.IGNORECASE)


def matches_any(text: str | None, patterns: list[str]) -> bool:
    if not text:
        return False
    compiled = _compile(tuple(patterns))
    return bool(compiled and compiled.search(text))


def classify_notes(
    notes: str | None,
    rules: OutcomeRules = DEFAULT_OUTCOME_RULES,
    *,
    suppress_promotion: bool = False,
) -> OutcomeFlags:
    """Derive outcome flags from notes. Top-flight rows pass `suppress_promotion=True`."""
    text = (notes or "").strip()
    if not text:
        return OutcomeFlags()
    return OutcomeFlags(
        was_relegated=matches_any(text, rules.relegated),
        was_promoted=not suppress_promotion and matches_any(text, rules.promoted),
        is_expansion_team=matches_any(text, rules.expansion),
        was_re_elected=matches_any(text, rules.re_elected),
        was_reprieved=matches_any(text, rules.reprieved),
    )


def to_boolean(value: Any) -> bool | None:
    """Interpret stored flag values; returns None when the value carries no decision."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "y", "1", "promoted", "relegated"):
            return True
        if lowered in ("false", "no", "n", "0"):
            return False
    return None


def resolve_outcomes(
    explicit: Mapping[str, Any],
    notes: str | None,
    rules: OutcomeRules = DEFAULT_OUTCOME_RULES,
    *,
    suppress_promotion: bool = False,
) -> OutcomeFlags:
    """Explicit values (keyed by attribute or JSON name) win over notes-derived ones."""
    derived = classify_notes(notes, rules, suppress_promotion=suppress_promotion).as_dict()
    resolved: dict[str, bool] = {}
    for name in OUTCOME_FIELDS:
        value = explicit.get(name, explicit.get(OUTCOME_JSON_KEYS[name]))
        decided = to_boolean(value)
        resolved[name] = derived[name] if decided is None else decided
    return OutcomeFlags(**resolved)
