"""
Runner for single-season "{year}-{yy} Football League" pages.

Each page yields the First and Second Division tables. tier1 lists the clubs relegated from it (the
infobox "Relegated" row plus flagged rows) and the clubs promoted into it from tier2.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from src.footy.loader.fetch import DocumentFetcher, DocumentFetchError
from src.footy.loader.store import JsonDatasetStore
from src.footy.models.table import FootballData, LeagueTableEntry, TierData
from src.footy.parse.division import parse_division_table
from src.footy.parse.infobox import InfoboxSummary, parse_infobox
from src.footy.rules import DEFAULT_OUTCOME_RULES, OutcomeRules
from src.footy.season import WIKIPEDIA_PAGE_URL, construct_tier1_season_results, set_season_record

DEFAULT_SEASONS_OUTPUT = "data-output/wiki_promotion_relegations_by_season.json"


@dataclass
class SeasonTeams:

    first: list[LeagueTableEntry] = field(default_factory=list)
    second: list[LeagueTableEntry] = field(default_factory=list)
    infobox: InfoboxSummary = field(default_factory=InfoboxSummary)


def build_season_slug(year: int) -> str:
    next_year = year + 1
    suffix = f"{next_year % 100:02d}"
    return f"{year}-{next_year if suffix == '00' else suffix}_Football_League"


async def fetch_season_teams(
    fetcher: DocumentFetcher,
    season_slug: str,
    rules: OutcomeRules = DEFAULT_OUTCOME_RULES,
) -> SeasonTeams:
    """Both division tables of a season page; empty on fetch failure."""
    page_url = WIKIPEDIA_PAGE_URL.format(slug=season_slug)
    try:
        html = await fetcher.fetch(season_slug)
    except DocumentFetchError as exc:
        logging.error("Failed to fetch page for %s (%s): %s", season_slug, page_url, exc.reason)
        return SeasonTeams()

    first = parse_division_table(html, "first", rules=rules)
    if not first:
        logging.warning("Missing First Division table data on %s (%s)", season_slug, page_url)
    second = parse_division_table(html, "second", rules=rules)
    if not second:
        logging.warning("Missing Second Division table data on %s (%s)", season_slug, page_url)
    return SeasonTeams(first=first, second=second, infobox=parse_infobox(html))


def _log_outcomes(year: int, slug: str, tier1: TierData) -> None:
    page_url = WIKIPEDIA_PAGE_URL.format(slug=slug)
    if not tier1.relegated and not tier1.promoted:
        logging.info("No promotions/relegations found for %d (%s)", year, page_url)
        return
    logging.info("%d-%s (%s)", year, str(year + 1)[-2:], page_url)
    if tier1.relegated:
        logging.info("Relegated: %s", ", ".join(tier1.relegated))
    if tier1.promoted:
        logging.info("Promoted: %s", ", ".join(tier1.promoted))


async def build_promotion_relegation(
    start_year: int,
    end_year: int,
    store: JsonDatasetStore,
    fetcher: DocumentFetcher,
    rules: OutcomeRules = DEFAULT_OUTCOME_RULES,
) -> FootballData:
    dataset = store.load()
    for year in range(start_year, end_year + 1):
        slug = build_season_slug(year)
        print(f"[seasons] fetching {slug}")
        teams = await fetch_season_teams(fetcher, slug, rules)

        record = construct_tier1_season_results(
            teams.first,
            teams.second,
            year,
            slug,
            relegated=teams.infobox.relegated,
        )
        _log_outcomes(year, slug, record["tier1"])
        set_season_record(dataset, year, record)
        store.write(dataset)

    print(f"[seasons] finished building data for {len(dataset)} seasons")
    return dataset
