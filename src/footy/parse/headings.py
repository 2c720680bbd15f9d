"""
Locate league tables inside a season-overview page.

Overview pages ("1950–51 in English football") nest one heading per competition under a "League tables"
section. `parse_overview_league_tables` finds that section (known ids first, then scored heading texts)
and collects every table of each nested competition heading. Pages without such a section are scanned
heading by heading, keeping the ancestor chain so that a bare "League table" heading borrows the title of
the nearest league-like ancestor.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from src.footy.models.table import LeagueTableEntry
from src.footy.parse.document import DocumentNode, DocumentTree
from src.footy.parse.html_tables import extract_legend_for_table, parse_table_rows
from src.footy.rules import DEFAULT_HEADING_RULES, DEFAULT_OUTCOME_RULES, HeadingRules, OutcomeRules


@dataclass
class OverviewTable:

    title: str
    id: str | None
    table_index: int
    rows: list[LeagueTableEntry] = field(default_factory=list)


@dataclass
class _Ancestor:

    level: int
    title: str | None
    id: str | None
    has_league_context: bool


def has_premier_league_heading(tree: DocumentTree) -> bool:
    return any("premier league" in node.text.lower() for node in tree.find_all("h2, h3, h4, h5"))


def is_top_flight(title: str | None, has_premier_league: bool, rules: HeadingRules = DEFAULT_HEADING_RULES) -> bool:
    """Loose title test for the top division; "First Division" stops counting once the Premier League exists."""
    normalized = (title or "").lower()
    if any(keyword in normalized for keyword in rules.top_flight_titles):
        return True
    if any(keyword in normalized for keyword in rules.legacy_top_flight_titles):
        return not has_premier_league
    return False


def has_league_keyword(title: str | None, rules: HeadingRules = DEFAULT_HEADING_RULES) -> bool:
    normalized = (title or "").lower()
    return any(keyword in normalized for keyword in rules.league_keywords)


def is_generic_heading(title: str | None, rules: HeadingRules = DEFAULT_HEADING_RULES) -> bool:
    return bool(title) and title.strip().lower() in rules.generic_headings


def score_heading(text: str, rules: HeadingRules = DEFAULT_HEADING_RULES) -> int:
    normalized = text.strip().lower()
    score = 0
    for phrase in rules.scored_phrases:
        if re.search(phrase.pattern, normalized):
            score = phrase.score
            break
    if not score:
        return 0
    if "men" in normalized:
        score += 5
    if "women" in normalized:
        score -= 5
    return score


def find_league_section_heading(tree: DocumentTree, rules: HeadingRules = DEFAULT_HEADING_RULES) -> DocumentNode | None:
    """The level-2 heading opening the league-tables section, if the page has one."""
    for section_id in rules.section_ids:
        node = tree.by_id(section_id)
        if node is None:
            continue
        heading = node if node.name == "h2" else node.closest("h2")
        if heading is not None:
            return heading

    best: DocumentNode | None = None
    best_score = 0
    for heading in tree.find_all("h2"):
        text = heading.text.strip()
        if not text:
            continue
        score = score_heading(text, rules)
        if score > best_score:
            best, best_score = heading, score
    return best


def skip_section(heading: DocumentNode, level: int) -> DocumentNode | None:
    """First node after `heading`'s section, i.e. the next heading of level <= `level`, or None."""
    cursor = heading.next_sibling
    while cursor is not None:
        cursor_level = cursor.heading_level
        if cursor_level is not None:
            if cursor_level <= level:
                return cursor
            cursor = skip_section(cursor, cursor_level)
            continue
        cursor = cursor.next_sibling
    return None


def collect_section_tables(heading: DocumentNode, level: int) -> list[DocumentNode]:
    """Wikitables directly under a heading; deeper subsections are skipped, the next peer heading ends the scan."""
    tables: list[DocumentNode] = []
    cursor = heading.next_sibling
    while cursor is not None:
        cursor_level = cursor.heading_level
        if cursor_level is not None:
            if cursor_level <= level:
                break
            cursor = skip_section(cursor, cursor_level)
            continue
        if cursor.name == "table" and cursor.has_class("wikitable"):
            tables.append(cursor)
        else:
            tables.extend(cursor.find_all("table.wikitable"))
        cursor = cursor.next_sibling
    return tables


def parse_tables_for_heading(
    heading: DocumentNode,
    *,
    has_premier_league: bool,
    league_title: str | None = None,
    league_id: str | None = None,
    top_flight: bool | None = None,
    heading_rules: HeadingRules = DEFAULT_HEADING_RULES,
    outcome_rules: OutcomeRules = DEFAULT_OUTCOME_RULES,
) -> list[OverviewTable]:
    level = heading.heading_level
    if level is None:
        return []

    heading_title = heading.heading_text
    heading_id = heading.heading_id or league_id
    title = heading_title or league_title or heading_id or "Unknown league"
    if league_title and (not heading_title or is_generic_heading(heading_title, heading_rules)):
        title = league_title

    suppress = top_flight if top_flight is not None else is_top_flight(title, has_premier_league, heading_rules)
    tables = collect_section_tables(heading, level)

    results: list[OverviewTable] = []
    for index, table in enumerate(tables):
        rows = parse_table_rows(
            table,
            outcome_rules,
            suppress_promotion=suppress,
            legend=extract_legend_for_table(table, outcome_rules),
        )
        if not rows:
            continue
        results.append(
            OverviewTable(
                title=title,
                id=heading_id,
                table_index=index if len(tables) > 1 else 0,
                rows=rows,
            )
        )
    return results


def _scan_all_headings(
    tree: DocumentTree,
    has_premier_league: bool,
    heading_rules: HeadingRules,
    outcome_rules: OutcomeRules,
    top_flight: bool | None = None,
) -> list[OverviewTable]:
    results: list[OverviewTable] = []
    stack: list[_Ancestor] = []
    for heading in tree.headings():
        level = heading.heading_level
        if level is None or level < 2 or level > heading_rules.max_section_level:
            continue
        while stack and stack[-1].level >= level:
            stack.pop()

        title = heading.heading_text or None
        inherits = any(ancestor.has_league_context for ancestor in stack)
        has_context = has_league_keyword(title, heading_rules) or inherits
        fallback = next(
            (ancestor for ancestor in reversed(stack) if ancestor.has_league_context and ancestor.title),
            None,
        )
        stack.append(_Ancestor(level, title, heading.heading_id, has_context))
        if not has_context:
            continue

        league_title = league_id = None
        if fallback is not None and is_generic_heading(title, heading_rules):
            league_title, league_id = fallback.title, fallback.id
        results.extend(
            parse_tables_for_heading(
                heading,
                has_premier_league=has_premier_league,
                league_title=league_title,
                league_id=league_id,
                top_flight=top_flight,
                heading_rules=heading_rules,
                outcome_rules=outcome_rules,
            )
        )
    return results


def parse_overview_league_tables(
    html: str,
    heading_rules: HeadingRules = DEFAULT_HEADING_RULES,
    outcome_rules: OutcomeRules = DEFAULT_OUTCOME_RULES,
    top_flight: bool | None = None,
) -> list[OverviewTable]:
    """All competition tables of an overview page, in page order. An empty list means nothing was found.

    `top_flight` forces promotion suppression on (True) or off (False) for every table instead of judging
    each competition title.
    """
    tree = DocumentTree(html)
    has_premier_league = has_premier_league_heading(tree)

    section = find_league_section_heading(tree, heading_rules)
    if section is None:
        results = _scan_all_headings(tree, has_premier_league, heading_rules, outcome_rules, top_flight)
        if not results:
            logging.warning("League tables section not found on this page")
        return results

    results: list[OverviewTable] = []
    for node in section.heading_wrapper.following_siblings():
        level = node.heading_level
        if level is not None and level <= 2:
            break
        if level is not None and heading_rules.min_section_level <= level <= heading_rules.max_section_level:
            results.extend(
                parse_tables_for_heading(
                    node,
                    has_premier_league=has_premier_league,
                    top_flight=top_flight,
                    heading_rules=heading_rules,
                    outcome_rules=outcome_rules,
                )
            )
    return results
