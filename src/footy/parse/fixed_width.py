"""
Parser for RSSSF fixed-width league tables.

RSSSF pages hold one `<pre>` block per competition:

    First Division - 1950/51

                                 P  W  D  L  F  A  W  D  L  F  A  Pts
     1 Tottenham Hotspur        42 17  2  2 54 21  8  8  5 28 23  60
    ...
    22 EVERTON                  42  7  5  9 26 35  5  3 13 22 51  32 +
    + relegated to the Second Division

Each data row is tokenized on whitespace; the stat columns are found by sliding a 13-column (with goal
difference) or 12-column (without) window over the tokens. Upper-case team names mark promotion or
relegation; footnote lines keyed by marker symbols add notes to the rows that carry the marker.
"""
from __future__ import annotations

import re
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from email.message import Message

from pydantic import BaseModel, Field

from src.footy.classify.outcome import classify_notes
from src.footy.models.table import LeagueTableEntry
from src.footy.parse.document import DocumentTree
from src.footy.rules import RSSSF_OUTCOME_RULES, OutcomeRules

DEFAULT_ENCODING = "windows-1252"

STAT_COLUMNS = (
    "played",
    "homeWins",
    "homeDraws",
    "homeLosses",
    "homeGoalsFor",
    "homeGoalsAgainst",
    "awayWins",
    "awayDraws",
    "awayLosses",
    "awayGoalsFor",
    "awayGoalsAgainst",
    "goalDifference",
    "points",
)
FULL_STAT_COUNT = len(STAT_COLUMNS)
SHORT_STAT_COUNT = FULL_STAT_COUNT - 1

NUMERIC_TOKEN_RE = re.compile(r"^-?\d+$")
STATS_HEADER_RE = re.compile(r"\bP\s+W\s+D\s+L\s+F\s+A\s+W\s+D\s+L\s+F\s+A\b", re.IGNORECASE)
NOTE_MARKER_RE = re.compile(r"^([+*#@^]+)")
DATA_LINE_RE = re.compile(r"^\s*\d+")
RULE_LINE_RE = re.compile(r"^<hr", re.IGNORECASE)


class SideRecord(BaseModel):
    wins: int
    draws: int
    losses: int
    goals_for: int
    goals_against: int


class OverallRecord(SideRecord):
    played: int
    goal_difference: int


class NoteLine(BaseModel):
    symbol: str
    text: str


class FixedWidthRow(BaseModel):
    entry: LeagueTableEntry
    home: SideRecord
    away: SideRecord
    overall: OverallRecord
    raw_line: str
    markers: list[str] = Field(default_factory=list)
    highlighted: bool = False


class ParsedCompetition(BaseModel):
    heading: str | None = None
    league: str | None = None
    season: str | None = None
    season_slug: str | None = None
    notes: list[NoteLine] = Field(default_factory=list)
    rows: list[FixedWidthRow] = Field(default_factory=list)

    @property
    def entries(self) -> list[LeagueTableEntry]:
        return [row.entry for row in self.rows]


class ParsedPage(BaseModel):
    source: str | None = None
    scraped_at: datetime
    season: str | list[str] | None = None
    season_slug: str | None = None
    competitions: list[ParsedCompetition] = Field(default_factory=list)


@dataclass
class _StatWindow:

    start: int
    length: int


@dataclass
class _ParsedLine:

    pos: int
    team: str
    played: int
    points: int
    goal_difference: int
    home: SideRecord
    away: SideRecord
    markers: list[str]
    raw_line: str

    @property
    def highlighted(self) -> bool:
        return self.team == self.team.upper() and any(ch.isalpha() for ch in self.team)


def decode_document(content: bytes, content_type: str | None = None) -> str:
    """Decode an RSSSF payload: the declared charset when present, windows-1252 otherwise."""
    encoding = DEFAULT_ENCODING
    if content_type:
        message = Message()
        message["content-type"] = content_type
        encoding = message.get_content_charset() or DEFAULT_ENCODING
    try:
        return content.decode(encoding)
    except (LookupError, UnicodeDecodeError):
        return content.decode(DEFAULT_ENCODING, errors="replace")


def find_stats_window(tokens: list[str]) -> _StatWindow | None:
    """First run of 13 (or, failing that at the same offset, 12) purely numeric tokens."""
    for start in range(len(tokens)):
        for length in (FULL_STAT_COUNT, SHORT_STAT_COUNT):
            if start + length > len(tokens):
                continue
            if all(NUMERIC_TOKEN_RE.match(token) for token in tokens[start : start + length]):
                return _StatWindow(start, length)
    return None


def parse_table_line(line: str) -> _ParsedLine | None:
    tokens = line.split()
    if len(tokens) < SHORT_STAT_COUNT + 1:
        return None

    position = re.sub(r"[^\d]", "", tokens[0])
    rest = tokens[1:]
    window = find_stats_window(rest)
    if not position or window is None:
        return None

    team = " ".join(rest[: window.start]).strip()
    if not team:
        return None

    values = [int(token) for token in rest[window.start : window.start + window.length]]
    played, hw, hd, hl, hgf, hga, aw, ad, al, agf, aga = values[:11]
    if window.length == FULL_STAT_COUNT:
        goal_difference, points = values[11], values[12]
    else:
        goal_difference, points = (hgf + agf) - (hga + aga), values[11]

    return _ParsedLine(
        pos=int(position),
        team=team,
        played=played,
        points=points,
        goal_difference=goal_difference,
        home=SideRecord(wins=hw, draws=hd, losses=hl, goals_for=hgf, goals_against=hga),
        away=SideRecord(wins=aw, draws=ad, losses=al, goals_for=agf, goals_against=aga),
        markers=[token for token in rest[window.start + window.length :] if token],
        raw_line=line,
    )


def parse_note_line(line: str) -> NoteLine:
    trimmed = line.strip()
    match = NOTE_MARKER_RE.match(trimmed)
    if not match:
        return NoteLine(symbol="+", text=trimmed)
    symbol = match.group(1)
    return NoteLine(symbol=symbol, text=trimmed[len(symbol) :].strip())


def split_heading(raw: str | None) -> tuple[str | None, str | None, str | None, str | None]:
    """Split "League - Season" into (heading, league, season, season slug)."""
    if not raw:
        return None, None, None, None
    heading = raw.strip()
    parts = heading.split(" - ")
    if len(parts) == 1:
        return heading, heading, None, None
    season = parts[-1].strip()
    league = " - ".join(parts[:-1]).strip()
    slug = None
    if season:
        slug = re.sub(r"[^\d]+", "", season)[:8] or re.sub(r"\s+", "-", season)
    return heading, league, season, slug


def sanitise_season_slug(season: str | None) -> str | None:
    """"1950/51" -> "1950-51"."""
    if not season:
        return None
    cleaned = re.sub(r"[/\\]", "-", re.sub(r"[^\d/\\-]+", "", season))
    condensed = re.sub(r"-{2,}", "-", cleaned).strip("-")
    return condensed or None


def display_team_name(team: str) -> str:
    """RSSSF shouts promoted/relegated clubs in capitals; store them title-cased."""
    if team == team.upper():
        return string.capwords(team.lower())
    return team


def _build_row(
    line: _ParsedLine,
    half: int,
    notes: dict[str, list[str]],
    is_top_flight: bool,
    rules: OutcomeRules,
) -> FixedWidthRow:
    attached = [text for marker in line.markers for text in notes.get(marker, [])]
    note_text = " ".join(attached) if attached else None
    flags = classify_notes(note_text, rules, suppress_promotion=is_top_flight)

    highlighted = line.highlighted
    in_top_half = line.pos <= half
    structural_relegated = highlighted and not in_top_half
    structural_promoted = highlighted and in_top_half and not is_top_flight

    overall = OverallRecord(
        played=line.home.wins + line.home.draws + line.home.losses + line.away.wins + line.away.draws + line.away.losses,
        wins=line.home.wins + line.away.wins,
        draws=line.home.draws + line.away.draws,
        losses=line.home.losses + line.away.losses,
        goals_for=line.home.goals_for + line.away.goals_for,
        goals_against=line.home.goals_against + line.away.goals_against,
        goal_difference=(line.home.goals_for + line.away.goals_for) - (line.home.goals_against + line.away.goals_against),
    )
    entry = LeagueTableEntry(
        pos=line.pos,
        team=display_team_name(line.team),
        played=line.played,
        won=overall.wins,
        drawn=overall.draws,
        lost=overall.losses,
        goals_for=overall.goals_for,
        goals_against=overall.goals_against,
        goal_difference=line.goal_difference,
        goal_average=None,
        points=line.points,
        notes=note_text,
        was_relegated=structural_relegated or flags.was_relegated,
        was_promoted=structural_promoted or flags.was_promoted,
        is_expansion_team=flags.is_expansion_team,
        was_re_elected=flags.was_re_elected,
        was_reprieved=flags.was_reprieved,
    )
    return FixedWidthRow(
        entry=entry,
        home=line.home,
        away=line.away,
        overall=overall,
        raw_line=line.raw_line,
        markers=line.markers,
        highlighted=highlighted,
    )


def parse_competition_block(
    text: str,
    is_top_flight: bool,
    rules: OutcomeRules = RSSSF_OUTCOME_RULES,
) -> ParsedCompetition | None:
    """Parse one `<pre>` block; None when it holds no recognizable table."""
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    first_content = next((i for i, line in enumerate(lines) if line.strip()), None)
    if first_content is None:
        return None
    header_index = next(
        (i for i in range(first_content + 1, len(lines)) if STATS_HEADER_RE.search(lines[i])),
        None,
    )
    if header_index is None:
        return None

    note_lines: list[NoteLine] = []
    parsed: list[_ParsedLine] = []
    for line in lines[header_index + 1 :]:
        trimmed = line.strip()
        if not trimmed:
            continue
        if RULE_LINE_RE.match(trimmed):
            break
        if NOTE_MARKER_RE.match(trimmed):
            note_lines.append(parse_note_line(trimmed))
            continue
        if not DATA_LINE_RE.match(trimmed):
            break
        row = parse_table_line(line)
        if row is None:
            break
        parsed.append(row)

    if not parsed:
        return None

    notes: dict[str, list[str]] = {}
    for note in note_lines:
        notes.setdefault(note.symbol, []).append(note.text)

    half = len(parsed) // 2
    heading, league, season, slug = split_heading(lines[first_content])
    return ParsedCompetition(
        heading=heading,
        league=league,
        season=season,
        season_slug=sanitise_season_slug(season) or slug,
        notes=note_lines,
        rows=[_build_row(line, half, notes, is_top_flight, rules) for line in parsed],
    )


def parse_rsssf_page(
    html: str,
    source: str | None = None,
    rules: OutcomeRules = RSSSF_OUTCOME_RULES,
    top_flight: bool | None = None,
) -> ParsedPage:
    """Parse every `<pre>` competition on a page; the first competition found is the top flight unless
    `top_flight` forces it for every competition."""
    competitions: list[ParsedCompetition] = []
    for block in DocumentTree(html).find_all("pre"):
        block_top_flight = not competitions if top_flight is None else top_flight
        competition = parse_competition_block(block.text, is_top_flight=block_top_flight, rules=rules)
        if competition is not None:
            competitions.append(competition)

    labels: list[str] = []
    for competition in competitions:
        if competition.season and competition.season not in labels:
            labels.append(competition.season)
    season: str | list[str] = labels[0] if len(labels) == 1 else labels
    slug = next((c.season_slug for c in competitions if c.season_slug), None)

    return ParsedPage(
        source=source,
        scraped_at=datetime.now(timezone.utc),
        season=season,
        season_slug=slug,
        competitions=competitions,
    )
