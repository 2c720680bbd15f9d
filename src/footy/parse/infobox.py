"""
Football League season infobox: season label plus the clubs relegated, newly elected, folded or resigned.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from src.footy.parse.document import DocumentNode, DocumentTree

INFOBOX_CAPTION = "football league"

ROW_FIELDS = {
    "season": "season",
    "relegated": "relegated",
    "new clubs in league": "new_clubs",
    "new clubs": "new_clubs",
    "folded": "folded",
    "resigned": "resigned",
}


@dataclass
class InfoboxSummary:

    season: str = ""
    relegated: list[str] = field(default_factory=list)
    new_clubs: list[str] = field(default_factory=list)
    folded: list[str] = field(default_factory=list)
    resigned: list[str] = field(default_factory=list)


def _find_league_infobox(tree: DocumentTree) -> DocumentNode | None:
    for box in tree.find_all("table.infobox"):
        caption = box.find("caption")
        if caption is not None and INFOBOX_CAPTION in caption.text.lower():
            return box
    return None


def _club_names(cell: DocumentNode) -> list[str]:
    names = [link.text.strip() for link in cell.find_all("a") if link.text.strip()]
    if names:
        return names
    return [part.strip() for part in cell.clean_text.split(",") if part.strip()]


def parse_infobox(html: str) -> InfoboxSummary:
    summary = InfoboxSummary()
    box = _find_league_infobox(DocumentTree(html))
    if box is None:
        return summary

    for row in box.find_all("tr"):
        label = row.find("th")
        value = row.find("td")
        if label is None or value is None:
            continue
        attr = ROW_FIELDS.get(label.clean_text.lower())
        if attr is None:
            continue
        if attr == "season":
            summary.season = value.clean_text
        else:
            getattr(summary, attr).extend(_club_names(value))
    return summary
