"""
Runner for RSSSF season pages.

Season URLs come from a template filled with the fields of `season_parts` (e.g. `{seasonSlug}` ->
"1950-51"). Each season stores a full tier1 and compact lower tiers; a failed fetch stores an empty
tier1 placeholder so the gap stays visible.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from src.footy.loader.fetch import DocumentFetcher, DocumentFetchError
from src.footy.loader.store import JsonDatasetStore
from src.footy.loader.utils import write_json_atomic
from src.footy.models.table import FootballData
from src.footy.parse.fixed_width import ParsedPage, parse_rsssf_page
from src.footy.rules import RSSSF_OUTCOME_RULES, OutcomeRules
from src.footy.season import build_rsssf_season_record, empty_season_record, set_season_record

DEFAULT_URL_TEMPLATE = "https://www.rsssf.org/engpaul/FLA/{seasonSlug}.html"
DEFAULT_RSSSF_OUTPUT = "data-output/rsssf/rsssf_promotion_relegations_by_season.json"

TEMPLATE_FIELD_RE = re.compile(r"\{([^}]+)\}")


@dataclass(frozen=True)
class SeasonSource:

    year: int
    url: str
    parts: dict[str, str | int]


def season_parts(start_year: int) -> dict[str, str | int]:
    end_year = start_year + 1
    end_year_short = f"{end_year % 100:02d}"
    return {
        "startYear": start_year,
        "endYear": end_year,
        "endYearShort": end_year_short,
        "seasonSlug": f"{start_year}-{end_year_short}",
        "seasonSlugFull": f"{start_year}-{end_year}",
        "seasonSlugUnderscore": f"{start_year}_{end_year_short}",
        "seasonSlugCompact": f"{start_year}{end_year_short}",
        "seasonLabel": f"{start_year}/{end_year}",
    }


def apply_template(template: str, parts: dict[str, str | int]) -> str:
    """Fill `{field}` placeholders; unknown fields are left as they are."""
    return TEMPLATE_FIELD_RE.sub(lambda m: str(parts[m.group(1)]) if m.group(1) in parts else m.group(0), template)


def build_season_range_urls(start_year: int, end_year: int, template: str = DEFAULT_URL_TEMPLATE) -> list[SeasonSource]:
    if start_year > end_year:
        raise ValueError("Start year must be less than or equal to end year.")
    sources = []
    for year in range(start_year, end_year + 1):
        parts = season_parts(year)
        sources.append(SeasonSource(year=year, url=apply_template(template, parts), parts=parts))
    return sources


def page_output_path(parsed: ParsedPage, directory: str = "data-output/rsssf") -> str:
    """Default per-page output file, named after the page's season slug."""
    source = parsed.season_slug
    if source is None and isinstance(parsed.season, str):
        source = parsed.season
    elif source is None and isinstance(parsed.season, list) and len(parsed.season) == 1:
        source = parsed.season[0]
    slug = re.sub(r"[^a-z0-9-]+", "-", re.sub(r"[/\\\s]+", "-", (source or "season").lower())).strip("-")
    return f"{directory}/rsssf-{slug or 'season'}.json"


def write_parsed_page(parsed: ParsedPage, path: str, *, pretty: bool = True) -> str:
    return write_json_atomic(path, parsed.model_dump(mode="json"), pretty=pretty)


async def scrape_rsssf_page(
    fetcher: DocumentFetcher,
    identifier: str,
    rules: OutcomeRules = RSSSF_OUTCOME_RULES,
    top_flight: bool | None = None,
) -> ParsedPage:
    html = await fetcher.fetch(identifier)
    parsed = parse_rsssf_page(html, source=identifier, rules=rules, top_flight=top_flight)
    if not parsed.competitions:
        logging.warning("No competitions parsed from %s", identifier)
    for competition in parsed.competitions:
        print(f"[rsssf] - {competition.league or competition.heading} ({len(competition.rows)} clubs)")
    return parsed


async def scrape_rsssf_range(
    start_year: int,
    end_year: int,
    store: JsonDatasetStore,
    fetcher: DocumentFetcher,
    url_template: str = DEFAULT_URL_TEMPLATE,
    rules: OutcomeRules = RSSSF_OUTCOME_RULES,
) -> FootballData:
    dataset = store.load()
    for source in build_season_range_urls(start_year, end_year, url_template):
        print(f"[rsssf] fetching {source.parts['seasonLabel']}: {source.url}")
        try:
            parsed = await scrape_rsssf_page(fetcher, source.url, rules)
        except DocumentFetchError as exc:
            logging.error("Skipping %s (%s) due to fetch error: %s", source.parts["seasonLabel"], source.url, exc.reason)
            set_season_record(dataset, source.year, empty_season_record(source.year))
            store.write(dataset)
            continue

        set_season_record(dataset, source.year, build_rsssf_season_record(parsed, source.year, source.url))
        store.write(dataset)

    print(f"[rsssf] finished building data for {len(dataset)} seasons")
    return dataset
