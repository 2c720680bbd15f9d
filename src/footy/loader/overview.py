"""
Runner for "{year}–{yy} in English football" overview pages.

Every league table on the page becomes one tier (`tier1`, `tier2`, ...) of the season, and a `seasonInfo`
record summarises all promoted and relegated clubs. The dataset is persisted after each season, so an
interrupted run keeps everything fetched so far.
"""
from __future__ import annotations

import logging

from src.footy.loader.fetch import DocumentFetcher, DocumentFetchError
from src.footy.loader.store import JsonDatasetStore
from src.footy.models.table import FootballData, SeasonData, is_tier_key, season_key_to_year
from src.footy.parse.headings import OverviewTable, parse_overview_league_tables
from src.footy.rules import (
    DEFAULT_HEADING_RULES,
    DEFAULT_MERGE_RULES,
    DEFAULT_OUTCOME_RULES,
    HeadingRules,
    MergeRules,
    OutcomeRules,
)
from src.footy.season import (
    WIKIPEDIA_PAGE_URL,
    build_overview_season_record,
    season_key_from_slug,
    set_season_record,
)

DEFAULT_OVERVIEW_OUTPUT = "data-output/wiki_overview_tables_by_season.json"


def build_season_overview_slug(year: int) -> str:
    next_year = year + 1
    suffix = str(next_year) if next_year % 100 == 0 else f"{next_year % 100:02d}"
    return f"{year}–{suffix}_in_English_football"


async def fetch_season_overview_tables(
    fetcher: DocumentFetcher,
    season_slug: str,
    heading_rules: HeadingRules = DEFAULT_HEADING_RULES,
    outcome_rules: OutcomeRules = DEFAULT_OUTCOME_RULES,
    top_flight: bool | None = None,
) -> list[OverviewTable]:
    """Fetch and parse one overview page; fetch failures are logged and give no tables."""
    page_url = WIKIPEDIA_PAGE_URL.format(slug=season_slug)
    try:
        html = await fetcher.fetch(season_slug)
    except DocumentFetchError as exc:
        logging.error("Failed to fetch page for %s (%s): %s", season_slug, page_url, exc.reason)
        return []

    tables = parse_overview_league_tables(html, heading_rules, outcome_rules, top_flight)
    if not tables:
        logging.warning("No league tables found on %s (%s)", season_slug, page_url)
    else:
        print(f"[overview] found {len(tables)} league tables on {season_slug}")
    return tables


def _has_table_rows(record: SeasonData | None) -> bool:
    if not record:
        return False
    return any(tier.table for key, tier in record.items() if is_tier_key(key))


async def build_season_overview(
    start_year: int,
    end_year: int,
    store: JsonDatasetStore,
    fetcher: DocumentFetcher,
    *,
    update_only: bool = False,
    force_update: bool = False,
    ignore_war_years: bool = False,
    heading_rules: HeadingRules = DEFAULT_HEADING_RULES,
    outcome_rules: OutcomeRules = DEFAULT_OUTCOME_RULES,
    merge_rules: MergeRules = DEFAULT_MERGE_RULES,
) -> FootballData:
    dataset = store.load()

    for year in range(start_year, end_year + 1):
        season_key = str(year)
        existing = dataset.season(season_key)
        if update_only and not force_update and _has_table_rows(existing):
            print(f"[overview] skipping {season_key} (existing tier data)")
            continue
        if ignore_war_years and merge_rules.report_bucket(year) is not None:
            print(f"[overview] skipping {season_key} (WWI/WWII suspension)")
            continue

        slug = build_season_overview_slug(year)
        print(f"[overview] fetching {slug}")
        tables = await fetch_season_overview_tables(fetcher, slug, heading_rules, outcome_rules)
        if force_update and existing and not any(table.rows for table in tables):
            print(f"[overview] keeping existing {season_key} (no tables returned)")
            continue

        set_season_record(dataset, season_key, build_overview_season_record(season_key, year, slug, tables))
        store.write(dataset)

    print(f"[overview] finished building overview data for {len(dataset)} seasons")
    return dataset


async def build_season_overview_for_slug(
    season_slug: str,
    store: JsonDatasetStore,
    fetcher: DocumentFetcher,
    *,
    heading_rules: HeadingRules = DEFAULT_HEADING_RULES,
    outcome_rules: OutcomeRules = DEFAULT_OUTCOME_RULES,
) -> tuple[str, SeasonData]:
    """Parse a single page by slug; the season key is the slug's first four digits."""
    print(f"[overview] fetching {season_slug}")
    tables = await fetch_season_overview_tables(fetcher, season_slug, heading_rules, outcome_rules)
    season_key = season_key_from_slug(season_slug)

    dataset = store.load()
    record = build_overview_season_record(season_key, season_key_to_year(season_key), season_slug, tables)
    set_season_record(dataset, season_key, record)
    store.write(dataset)
    return season_key, dataset.season(season_key)
