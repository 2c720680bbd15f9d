"""
Legend (footnote key) handling.

A legend block reads like "(C) Champions; (P) Promoted; (R) Relegated". `parse_legend_text` maps each
symbol to the outcome it implies, `extract_team_symbols` finds the symbols attached to one team cell and
`apply_legend` switches outcome flags on for those symbols.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Iterable

from src.footy.classify.outcome import OutcomeFlags, matches_any
from src.footy.rules import DEFAULT_OUTCOME_RULES, OutcomeRules

LEGEND_ENTRY_RE = re.compile(r"\(([^)]+)\)\s*([^(),;]+)")
CODE_SPLIT_RE = re.compile(r"[,/]|\band\b|\bor\b", re.IGNORECASE)
PARENTHESIZED_RE = re.compile(r"\(([^)]+)\)")
SHORT_SYMBOL_RE = re.compile(r"^[A-Za-z0-9]{1,3}$")


@dataclass(frozen=True)
class LegendEntry:

    promoted: bool = False
    relegated: bool = False


Legend = dict[str, LegendEntry]


def normalize_code(code: str) -> str:
    return re.sub(r"[^A-Za-z0-9+]", "", code).upper()


def split_legend_codes(raw: str) -> list[str]:
    """Split grouped codes such as "P1, P2" or "P1 and P2"."""
    codes = [normalize_code(part) for part in CODE_SPLIT_RE.split(raw or "")]
    return [code for code in codes if code]


def parse_legend_text(text: str | None, rules: OutcomeRules = DEFAULT_OUTCOME_RULES) -> Legend | None:
    if not text:
        return None
    legend: Legend = {}
    for match in LEGEND_ENTRY_RE.finditer(text):
        descriptor = match.group(2).strip()
        entry = LegendEntry(
            promoted=matches_any(descriptor, rules.legend_promoted),
            relegated=matches_any(descriptor, rules.legend_relegated),
        )
        for code in split_legend_codes(match.group(1)):
            known = legend.get(code, LegendEntry())
            legend[code] = LegendEntry(
                promoted=known.promoted or entry.promoted,
                relegated=known.relegated or entry.relegated,
            )
    return legend or None


def extract_team_symbols(cell_text: str, fragments: Iterable[str] = ()) -> set[str]:
    """Collect legend symbols from a team cell's text and the texts of its descendant nodes."""
    symbols: set[str] = set()
    for match in PARENTHESIZED_RE.finditer(cell_text or ""):
        symbols.update(split_legend_codes(match.group(1)))
    for fragment in fragments:
        stripped = re.sub(r"[()]", "", fragment or "").strip()
        if SHORT_SYMBOL_RE.match(stripped):
            symbols.add(stripped.upper())
    return symbols


def apply_legend(
    flags: OutcomeFlags,
    symbols: Iterable[str],
    legend: Legend | None,
    *,
    suppress_promotion: bool = False,
) -> OutcomeFlags:
    """Legend entries only ever switch a flag on."""
    if not legend:
        return flags
    promoted = flags.was_promoted
    relegated = flags.was_relegated
    for symbol in symbols:
        entry = legend.get(symbol)
        if entry is None:
            continue
        if entry.promoted and not suppress_promotion:
            promoted = True
        if entry.relegated:
            relegated = True
    return replace(flags, was_promoted=promoted, was_relegated=relegated)


TEAM_MARKER_RE = re.compile(r"\s*\(\s*[A-Za-z0-9+]{1,3}(?:\s*[,/]\s*[A-Za-z0-9+]{1,3})*\s*\)")


def strip_symbols(team: str) -> str:
    """Drop legend markers like "(P)" or "(C, Q)" from a team name."""
    return TEAM_MARKER_RE.sub("", team).strip()
