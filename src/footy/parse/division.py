"""
Division tables on single-season Football League pages ("1897–98 Football League").

These pages carry one anchor per division ("First_Division", "Second_Division", or the legacy
"Final_league_table") followed by the table itself.
"""
from __future__ import annotations

from src.footy.models.table import LeagueTableEntry
from src.footy.parse.document import DocumentNode, DocumentTree
from src.footy.parse.html_tables import extract_legend_for_table, parse_table_rows
from src.footy.rules import DEFAULT_OUTCOME_RULES, OutcomeRules

DIVISION_ANCHORS = {
    "first": ["First_Division", "Football_League_First_Division", "First_Division_table"],
    "second": ["Second_Division", "Football_League_Second_Division", "Second_Division_table"],
}
GENERIC_ANCHORS = ["Final_league_table", "League_table"]


def is_first_division(division: str) -> bool:
    return "first" in (division or "").lower()


def find_division_anchor(tree: DocumentTree, division: str) -> DocumentNode | None:
    key = "first" if is_first_division(division) else "second"
    for anchor_id in DIVISION_ANCHORS[key]:
        node = tree.by_id(anchor_id)
        if node is not None:
            return node

    phrase = f"{key} division"
    for headline in tree.find_all("span.mw-headline"):
        if phrase in headline.text.lower():
            return headline

    for anchor_id in GENERIC_ANCHORS:
        node = tree.by_id(anchor_id)
        if node is not None:
            return node
    return None


def find_division_table(anchor: DocumentNode) -> DocumentNode | None:
    """First `wikitable` sibling following the anchor's enclosing block."""
    container = anchor.closest("div") or anchor.heading_wrapper
    for sibling in container.following_siblings():
        if sibling.has_class("wikitable"):
            return sibling
        nested = sibling.find("table.wikitable")
        if nested is not None:
            return nested
    return None


def parse_division_table(
    html: str,
    division: str,
    *,
    top_flight: bool | None = None,
    rules: OutcomeRules = DEFAULT_OUTCOME_RULES,
) -> list[LeagueTableEntry]:
    """Rows of the requested division ("first" or "second"); empty when the page has no such table."""
    tree = DocumentTree(html)
    anchor = find_division_anchor(tree, division)
    if anchor is None:
        return []
    table = find_division_table(anchor)
    if table is None:
        return []

    suppress = is_first_division(division) if top_flight is None else top_flight
    return parse_table_rows(
        table,
        rules,
        suppress_promotion=suppress,
        legend=extract_legend_for_table(table, rules),
    )
