"""
Season record building and normalisation.

Responsibilities:
- Normalise raw rows (parsed or loaded from JSON) into `LeagueTableEntry` with coerced numbers and
  resolved outcome flags
- Build `TierData` for one tier, deriving the promoted/relegated lists from row flags
- Assemble whole season records for each source: overview pages (`seasonInfo` + one tier per table),
  division pages (tier1/tier2) and RSSSF pages (full tier1, compact lower tiers)
- Turn a raw FootballData mapping into typed `FootballData`
"""
from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any, Iterable, Mapping

from src.footy.classify.outcome import resolve_outcomes
from src.footy.models.table import (
    SEASON_INFO_KEY,
    CompactTier,
    FootballData,
    LeagueTableEntry,
    SeasonData,
    Tier,
    TierData,
    holds_tier,
    season_key_to_year,
)
from src.footy.parse.fixed_width import ParsedPage
from src.footy.parse.headings import OverviewTable
from src.footy.parse.rows import parse_number
from src.footy.rules import DEFAULT_OUTCOME_RULES, OutcomeRules

WIKIPEDIA_PAGE_URL = "https://en.wikipedia.org/wiki/{slug}"

# JSON key -> attribute, for fields that default to 0
REQUIRED_NUMBER_KEYS = {
    "pos": "pos",
    "played": "played",
    "won": "won",
    "drawn": "drawn",
    "lost": "lost",
    "goalsFor": "goals_for",
    "goalsAgainst": "goals_against",
    "points": "points",
}

TIER_FIELDS = ("season", "table", "promoted", "relegated")

RowLike = LeagueTableEntry | Mapping[str, Any]


def _lookup(row: Mapping[str, Any], json_key: str, attr: str) -> Any:
    if json_key in row:
        return row[json_key]
    return row.get(attr)


def _as_int(value: Any) -> int | None:
    number = parse_number(value)
    return None if number is None else int(number)


def normalise_league_table_entry(
    row: RowLike,
    *,
    suppress_promotion: bool = False,
    rules: OutcomeRules = DEFAULT_OUTCOME_RULES,
) -> LeagueTableEntry:
    """Coerce one row into a `LeagueTableEntry`.

    Required numbers fall back to 0 and goal difference/average to None. Explicit boolean flags on the
    row are kept, missing ones are derived from the notes text.
    """
    if isinstance(row, LeagueTableEntry):
        return replace(row)
    if not isinstance(row, Mapping):
        raise TypeError(f"League table entry must be a mapping, got {type(row).__name__}")

    team = str(row.get("team") or "").strip()
    if not team:
        raise TypeError("League table entry is missing a team name")

    numbers = {attr: _as_int(_lookup(row, key, attr)) or 0 for key, attr in REQUIRED_NUMBER_KEYS.items()}
    goal_average = parse_number(_lookup(row, "goalAverage", "goal_average"))
    notes = row.get("notes")
    if notes is not None:
        notes = str(notes).strip() or None

    flags = resolve_outcomes(row, notes, rules, suppress_promotion=suppress_promotion)
    return LeagueTableEntry(
        team=team,
        goal_difference=_as_int(_lookup(row, "goalDifference", "goal_difference")),
        goal_average=None if goal_average is None else float(goal_average),
        notes=notes,
        **numbers,
        **flags.as_dict(),
    )


def sanitize_rows(rows: Iterable[Any] | None) -> list[RowLike]:
    """Keep only rows that can become entries: objects with a team name."""
    kept: list[RowLike] = []
    for row in rows or []:
        if isinstance(row, LeagueTableEntry):
            kept.append(row)
        elif isinstance(row, Mapping) and str(row.get("team") or "").strip():
            kept.append(row)
    return kept


def _dedupe(names: Iterable[Any]) -> list[str]:
    result: list[str] = []
    for name in names:
        text = str(name).strip() if name is not None else ""
        if text and text not in result:
            result.append(text)
    return result


def union_outcome_list(explicit: Iterable[Any] | None, entries: list[LeagueTableEntry], attr: str) -> list[str]:
    """Explicitly supplied names first, then every flagged team not already listed."""
    return _dedupe([*(explicit or []), *(entry.team for entry in entries if getattr(entry, attr))])


def build_tier_data(
    season: int,
    rows: Iterable[Any] | None,
    *,
    promoted: Iterable[str] | None = None,
    relegated: Iterable[str] | None = None,
    metadata: Mapping[str, Any] | None = None,
    rules: OutcomeRules = DEFAULT_OUTCOME_RULES,
) -> TierData:
    """One normalised tier; promoted/relegated are the union of the given lists and the row flags."""
    table = [normalise_league_table_entry(row, rules=rules) for row in sanitize_rows(rows)]
    extra = {key: value for key, value in (metadata or {}).items() if key not in ("season", "table")}
    return TierData(
        season=season,
        table=table,
        promoted=union_outcome_list(promoted, table, "was_promoted"),
        relegated=union_outcome_list(relegated, table, "was_relegated"),
        metadata=extra,
    )


def _resolve_season(value: Any, fallback: Any) -> int:
    for candidate in (value, fallback):
        number = parse_number(candidate) if not isinstance(candidate, bool) else None
        if number is not None:
            return int(number)
    return 0


def normalise_tier(raw: Any, season_key: Any = None) -> Tier:
    """Typed tier from stored JSON. Non-empty stored outcome lists are kept as given."""
    if isinstance(raw, (TierData, CompactTier)):
        return raw
    if isinstance(raw, list):
        return CompactTier([normalise_league_table_entry(row) for row in sanitize_rows(raw)])
    if not isinstance(raw, Mapping):
        raise TypeError(f"Tier data must be a mapping or a list of rows, got {type(raw).__name__}")

    table = [normalise_league_table_entry(row) for row in sanitize_rows(raw.get("table"))]
    promoted = _dedupe(raw.get("promoted") or []) or union_outcome_list(None, table, "was_promoted")
    relegated = _dedupe(raw.get("relegated") or []) or union_outcome_list(None, table, "was_relegated")
    return TierData(
        season=_resolve_season(raw.get("season"), season_key),
        table=table,
        promoted=promoted,
        relegated=relegated,
        metadata={key: value for key, value in raw.items() if key not in TIER_FIELDS},
    )


def normalise_season_record(raw: Any, season_key: Any = None) -> SeasonData:
    """Tiers under `tier*` keys and `seasonInfo`; other season fields pass through untouched."""
    if not isinstance(raw, Mapping):
        return {}
    record: SeasonData = {}
    for key, value in raw.items():
        key = str(key)
        if not holds_tier(key):
            record[key] = value
        elif isinstance(value, (list, Mapping, TierData, CompactTier)):
            record[key] = normalise_tier(value, season_key)
        else:
            logging.warning("Dropping %s of season %s: not a tier (%s)", key, season_key, type(value).__name__)
    return record


def create_football_data(raw: Any = None) -> FootballData:
    if raw is None:
        return FootballData()
    if isinstance(raw, FootballData):
        return raw
    if not isinstance(raw, Mapping):
        raise TypeError(f"Football data must be a mapping, got {type(raw).__name__}")
    # a bare season map is accepted as well as {"seasons": {...}}
    seasons = (raw.get("seasons") or {}) if "seasons" in raw else raw
    if not isinstance(seasons, Mapping):
        raise TypeError("Football data 'seasons' must be a mapping")
    return FootballData(
        seasons={str(key): normalise_season_record(value, key) for key, value in seasons.items()}
    )


def set_season_record(dataset: FootballData, season: int | str, raw: Any) -> SeasonData:
    return dataset.set_season_record(season, normalise_season_record(raw, season))


def upsert_season_tier(dataset: FootballData, season: int | str, tier_key: str, raw: Any) -> SeasonData:
    if not isinstance(tier_key, str) or not tier_key:
        raise ValueError("Tier key must be a non-empty string")
    return dataset.upsert_season_tier(season, tier_key, normalise_tier(raw, season))


def merge_football_data(existing: Any, incoming: Any) -> FootballData:
    """Write incoming seasons over existing ones, whole season at a time."""
    return create_football_data(existing).merge_from(create_football_data(incoming))


def build_season_info(
    season: int,
    *,
    promoted: Iterable[str] = (),
    relegated: Iterable[str] = (),
    metadata: Mapping[str, Any] | None = None,
) -> TierData:
    """Season-wide outcome summary, kept apart from the numbered tiers."""
    return build_tier_data(season, [], promoted=promoted, relegated=relegated, metadata=metadata)


def season_key_from_slug(slug: str | None) -> str:
    if not slug:
        return "unknown-season"
    match = re.search(r"\d{4}", slug)
    return match.group(0) if match else slug


def build_overview_season_record(
    season_key: str,
    season_year: int | None,
    season_slug: str,
    tables: list[OverviewTable],
) -> SeasonData:
    """`seasonInfo` plus one tier per overview table, numbered in page order."""
    season = season_year if season_year is not None else (season_key_to_year(season_key) or 0)
    promoted = _dedupe(row.team for table in tables for row in table.rows if row.was_promoted)
    relegated = _dedupe(row.team for table in tables for row in table.rows if row.was_relegated)

    record: SeasonData = {
        SEASON_INFO_KEY: build_season_info(
            season,
            promoted=promoted,
            relegated=relegated,
            metadata={"seasonSlug": season_slug, "tableCount": len(tables)},
        )
    }
    for index, table in enumerate(tables):
        record[f"tier{index + 1}"] = build_tier_data(
            season,
            table.rows,
            metadata={
                "title": table.title,
                "seasonMetadata": {
                    "leagueId": table.id,
                    "tableIndex": table.table_index,
                    "tableCount": len(tables),
                    "seasonSlug": season_slug,
                },
            },
        )
    return record


def construct_tier1_season_results(
    tier1_rows: list[RowLike],
    tier2_rows: list[RowLike],
    year: int,
    slug: str,
    *,
    relegated: Iterable[str] = (),
) -> SeasonData:
    """Division-page season: tier1 lists its relegated clubs and the clubs promoted into it from tier2."""
    metadata = {"seasonSlug": slug, "sourceUrl": WIKIPEDIA_PAGE_URL.format(slug=slug)}
    tier2 = build_tier_data(year, tier2_rows, metadata=metadata)
    tier1 = build_tier_data(year, tier1_rows, relegated=relegated, metadata=metadata)
    # only clubs coming up from tier2 count as promoted into tier1
    tier1.promoted = tier2.flagged_promoted()
    return {"tier1": tier1, "tier2": tier2}


def build_rsssf_season_record(parsed: ParsedPage, season: int, source_url: str | None = None) -> SeasonData:
    """Full tier1 from the first competition, compact row lists for the lower ones."""
    if not parsed.competitions:
        return empty_season_record(season)
    metadata: dict[str, Any] = {}
    if parsed.season_slug:
        metadata["seasonSlug"] = parsed.season_slug
    if source_url:
        metadata["sourceUrl"] = source_url

    first, *lower = parsed.competitions
    record: SeasonData = {"tier1": build_tier_data(season, first.entries, metadata=metadata)}
    for index, competition in enumerate(lower):
        record[f"tier{index + 2}"] = CompactTier(list(competition.entries))
    return record


def empty_season_record(season: int) -> SeasonData:
    """Placeholder for a season whose source could not be fetched."""
    return {"tier1": TierData(season=season)}
