"""
Turn an HTML league table into `LeagueTableEntry` rows.

Shared by the season-overview and the division-page parsers: reads the header row, feeds every data row
through a `TableRowParser`, resolves legend symbols from the team cell and the table's legend block.
"""
from __future__ import annotations

from src.footy.classify.legend import Legend, extract_team_symbols, parse_legend_text
from src.footy.models.table import LeagueTableEntry
from src.footy.parse.document import DocumentNode
from src.footy.parse.rows import NotesCell, TableRowParser, parse_number
from src.footy.rules import DEFAULT_OUTCOME_RULES, OutcomeRules

LEGEND_CLASSES = ("sports-table-notes", "legend")
DATA_CELL_SELECTOR = "td, th[scope=row]"


def _is_heading(node: DocumentNode) -> bool:
    return node.heading_level is not None


def _legend_block_text(node: DocumentNode) -> str | None:
    if any(node.has_class(cls) for cls in LEGEND_CLASSES):
        return node.text
    for cls in LEGEND_CLASSES:
        nested = node.find(f".{cls}")
        if nested is not None:
            return nested.text
    return None


def extract_legend_for_table(table: DocumentNode, rules: OutcomeRules = DEFAULT_OUTCOME_RULES) -> Legend | None:
    """Find the legend block following a table, stopping at the next table or heading."""
    anchor = table
    if table.next_sibling is None and table.tag.parent is not None and table.tag.parent.name != "[document]":
        anchor = DocumentNode(table.tag.parent)
    for sibling in anchor.following_siblings():
        if sibling.name == "table" or _is_heading(sibling):
            break
        text = _legend_block_text(sibling)
        if text:
            return parse_legend_text(text, rules)
    return None


def header_texts(table: DocumentNode) -> list[str]:
    first_row = table.find("tr")
    if first_row is None:
        return []
    return [cell.clean_text for cell in first_row.children if cell.name in ("th", "td")]


def data_cell_text(cell: DocumentNode) -> str:
    """Row-header cells hold the team, usually as a link."""
    if cell.name == "th":
        link = cell.find("a")
        if link is not None and link.text.strip():
            return link.text.strip()
    return cell.clean_text


def team_cell_symbols(cell: DocumentNode) -> set[str]:
    return extract_team_symbols(cell.clean_text, (node.text for node in cell.descendants()))


def parse_table_rows(
    table: DocumentNode,
    rules: OutcomeRules = DEFAULT_OUTCOME_RULES,
    *,
    suppress_promotion: bool = False,
    legend: Legend | None = None,
) -> list[LeagueTableEntry]:
    rows = table.find_all("tr")
    if not rows:
        return []
    parser = TableRowParser(
        header_texts(table),
        rules,
        suppress_promotion=suppress_promotion,
        legend=legend,
    )
    team_index = parser.columns.get("team")

    entries: list[LeagueTableEntry] = []
    for row in rows[1:]:
        data_cells = row.find_all(DATA_CELL_SELECTOR)
        all_cells = row.find_all("td, th")

        notes_cell = None
        if parser.notes_index is not None and parser.notes_index < len(all_cells):
            cell = all_cells[parser.notes_index]
            rowspan = parse_number(cell.attr("rowspan")) or 1
            notes_cell = NotesCell(text=cell.clean_text, rowspan=int(rowspan))

        symbols: set[str] = set()
        if team_index is not None and team_index < len(data_cells):
            symbols = team_cell_symbols(data_cells[team_index])

        entry = parser.parse([data_cell_text(cell) for cell in data_cells], notes_cell, symbols)
        if entry is not None:
            entries.append(entry)
    return entries
