"""
Row-level parsing of league tables.

- `normalize_header` maps the many header spellings ("Pld", "P", "Played", ...) to canonical field names.
- `parse_number` performs the lenient numeric coercion used for every stat cell.
- `TableRowParser` turns one data row (cell texts) into a `LeagueTableEntry`, carrying row-spanning
  notes cells down to the rows they cover.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Iterable

from src.footy.classify.legend import Legend, apply_legend, strip_symbols
from src.footy.classify.outcome import classify_notes
from src.footy.models.table import LeagueTableEntry
from src.footy.rules import DEFAULT_OUTCOME_RULES, OutcomeRules

HEADER_ALIASES: dict[str, str] = {
    "pos": "pos",
    "position": "pos",
    "no": "pos",
    "team": "team",
    "club": "team",
    "side": "team",
    "pld": "played",
    "p": "played",
    "played": "played",
    "games played": "played",
    "w": "won",
    "won": "won",
    "d": "drawn",
    "draw": "drawn",
    "drawn": "drawn",
    "l": "lost",
    "lost": "lost",
    "gf": "goalsFor",
    "goals for": "goalsFor",
    "f": "goalsFor",
    "for": "goalsFor",
    "ga": "goalsAgainst",
    "goals against": "goalsAgainst",
    "a": "goalsAgainst",
    "against": "goalsAgainst",
    "gd": "goalDifference",
    "goal difference": "goalDifference",
    "difference": "goalDifference",
    "gav": "goalAverage",
    "gavg": "goalAverage",
    "goal average": "goalAverage",
    "ga v": "goalAverage",
    "g av": "goalAverage",
    "pts": "points",
    "points": "points",
    "points total": "points",
    "notes": "notes",
    "remarks": "notes",
}

CANONICAL_FIELDS = frozenset(HEADER_ALIASES.values()) - {"notes"}

NOTES_HEADER_RE = re.compile(r"qualification|relegation")
HEADER_KEYWORD_RE = re.compile(r"team|club|pld|pts", re.IGNORECASE)
LEADING_INT_RE = re.compile(r"^\s*[-+]?\d")
NUMBER_RE = re.compile(r"^-?(?:\d+\.?\d*|\.\d+)")

REQUIRED_NUMBER_FIELDS = {
    "played": "played",
    "won": "won",
    "drawn": "drawn",
    "lost": "lost",
    "goalsFor": "goals_for",
    "goalsAgainst": "goals_against",
    "points": "points",
}


def normalize_header(text: str) -> str:
    """Canonical field name for a header cell, or the cleaned text when it is unknown."""
    cleaned = re.sub(r"\s+", " ", (text or "").strip().lower()).replace(".", "")
    if cleaned in HEADER_ALIASES:
        return HEADER_ALIASES[cleaned]
    if NOTES_HEADER_RE.search(cleaned):
        return "notes"
    return cleaned


def parse_number(value: Any) -> int | float | None:
    """Strip everything but digits, '.' and '-' and read the leading number.

    Returns an int when the value is integral, a float otherwise, None when nothing numeric is left.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    else:
        # typographic minus signs are common in goal-difference columns
        text = str(value).replace("−", "-").replace("–", "-")
        match = NUMBER_RE.match(re.sub(r"[^\d.-]", "", text))
        if not match:
            return None
        number = float(match.group(0))
    if not math.isfinite(number):
        return None
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def looks_like_header(cells: list[str]) -> bool:
    """A repeated header row: nothing starts with a number and some cell names a header column."""
    if not cells:
        return False
    if any(LEADING_INT_RE.match(cell or "") for cell in cells):
        return False
    return any(HEADER_KEYWORD_RE.search(cell or "") for cell in cells)


@dataclass
class NotesCell:

    text: str
    rowspan: int = 1


class TableRowParser:
    """Parse the data rows of one table against its header row.

    The parser is stateful across rows of a single table: a notes cell with rowspan > 1 is remembered and
    handed to the following rows that have no notes cell of their own.

    Without a notes header the last column is read as notes, unless that column is a known stat column
    (e.g. "Pts"), in which case the table has no notes column.
    """

    def __init__(
        self,
        header: list[str],
        rules: OutcomeRules = DEFAULT_OUTCOME_RULES,
        *,
        suppress_promotion: bool = False,
        legend: Legend | None = None,
    ):
        self.header = [normalize_header(text) for text in header]
        self.columns: dict[str, int] = {}
        for index, name in enumerate(self.header):
            self.columns.setdefault(name, index)
        self.notes_index: int | None = self.columns.get("notes")
        # an unlabelled trailing column holds the notes; a known stat column never does
        if self.notes_index is None and self.header and self.header[-1] not in CANONICAL_FIELDS:
            self.notes_index = len(self.header) - 1
        self.rules = rules
        self.suppress_promotion = suppress_promotion
        self.legend = legend
        self._carry_text: str | None = None
        self._carry_remaining = 0

    def _cell(self, cells: list[str], field: str) -> str | None:
        index = self.columns.get(field)
        if index is None or index >= len(cells):
            return None
        return cells[index]

    def _resolve_notes(self, cells: list[str], notes_cell: NotesCell | None) -> str | None:
        if notes_cell is None and self.notes_index is not None and self.notes_index < len(cells):
            notes_cell = NotesCell(text=cells[self.notes_index])
        if notes_cell is not None:
            if notes_cell.rowspan > 1:
                self._carry_text = notes_cell.text
                self._carry_remaining = notes_cell.rowspan - 1
            else:
                self._carry_text = None
                self._carry_remaining = 0
            return notes_cell.text or None
        if self._carry_text is not None and self._carry_remaining > 0:
            self._carry_remaining -= 1
            return self._carry_text or None
        return None

    def parse(
        self,
        cells: list[str],
        notes_cell: NotesCell | None = None,
        team_symbols: Iterable[str] = (),
    ) -> LeagueTableEntry | None:
        """Parse one data row; returns None for header-like, short or incomplete rows."""
        if len(cells) < 2 or looks_like_header(cells):
            return None

        notes = self._resolve_notes(cells, notes_cell)

        team = strip_symbols(self._cell(cells, "team") or "")
        pos = parse_number(self._cell(cells, "pos"))
        if not team or pos is None:
            return None

        numbers: dict[str, Any] = {}
        for field, attr in REQUIRED_NUMBER_FIELDS.items():
            value = parse_number(self._cell(cells, field))
            numbers[attr] = 0 if value is None else value
        goal_difference = parse_number(self._cell(cells, "goalDifference"))
        goal_average = parse_number(self._cell(cells, "goalAverage"))

        flags = classify_notes(notes, self.rules, suppress_promotion=self.suppress_promotion)
        flags = apply_legend(flags, team_symbols, self.legend, suppress_promotion=self.suppress_promotion)

        return LeagueTableEntry(
            pos=int(pos),
            team=team,
            goal_difference=None if goal_difference is None else int(goal_difference),
            goal_average=None if goal_average is None else float(goal_average),
            notes=notes,
            **numbers,
            **flags.as_dict(),
        )
