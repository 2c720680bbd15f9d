"""
Command line entry point.

Subcommands:
- seasons: First/Second Division tables from "{year}-{yy} Football League" pages
- overview: every league table from "{year}–{yy} in English football" pages
- rsssf: RSSSF fixed-width tables, by URL, local file or season range
- combine: merge several FootballData files in priority order
- verify: report consistency issues in FootballData files
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
from typing import List

import httpx

from src.footy.loader.fetch import DocumentFetchError, LocalFileFetcher, RsssfFetcher, WikipediaFetcher, DEFAULT_SLEEP_SEC
from src.footy.loader.overview import DEFAULT_OVERVIEW_OUTPUT, build_season_overview, build_season_overview_for_slug
from src.footy.loader.rsssf import (
    DEFAULT_RSSSF_OUTPUT,
    DEFAULT_URL_TEMPLATE,
    page_output_path,
    scrape_rsssf_page,
    scrape_rsssf_range,
    write_parsed_page,
)
from src.footy.loader.seasons import DEFAULT_SEASONS_OUTPUT, build_promotion_relegation
from src.footy.loader.store import JsonDatasetStore
from src.footy.merge import combine_football_data_files
from src.footy.rules import DEFAULT_RULE_SET, RuleSet, load_rules
from src.footy.verify import verify_dataset

USER_AGENT = "footy-tables/0.1 (league table extraction)"


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(headers={"User-Agent": USER_AGENT}, timeout=30.0)


def _run_interruptible(coro) -> None:
    """Run a season loop; Ctrl-C ends it, keeping every season already saved."""
    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        print("\nInterrupted, last entry saved will be the last one")


def run_seasons(args: argparse.Namespace, rules: RuleSet) -> int:
    store = JsonDatasetStore(args.output)
    print(f"Generating data from {args.start} to {args.end}...")

    async def _run() -> None:
        async with _client() as client:
            fetcher = WikipediaFetcher(client, sleep_sec=args.sleep_sec)
            await build_promotion_relegation(args.start, args.end, store, fetcher, rules.outcome)
        print(f"Final output written to {store.path}")

    _run_interruptible(_run())
    return 0


def run_overview(args: argparse.Namespace, rules: RuleSet) -> int:
    store = JsonDatasetStore(args.output)

    async def _run() -> None:
        async with _client() as client:
            fetcher = WikipediaFetcher(client, sleep_sec=args.sleep_sec)
            if args.slug:
                season_key, _ = await build_season_overview_for_slug(
                    args.slug,
                    store,
                    fetcher,
                    heading_rules=rules.heading,
                    outcome_rules=rules.outcome,
                )
                print(f"Overview tables for {season_key} written to {store.path}")
                return
            await build_season_overview(
                args.start,
                args.end,
                store,
                fetcher,
                update_only=args.update_only,
                force_update=args.force_update,
                ignore_war_years=args.ignore_war_years,
                heading_rules=rules.heading,
                outcome_rules=rules.outcome,
                merge_rules=rules.merge,
            )
            print(f"Overview tables written to {store.path}")

    _run_interruptible(_run())
    return 0


def run_rsssf(args: argparse.Namespace, rules: RuleSet) -> int:
    has_range = args.start is not None or args.end is not None
    if has_range and (args.start is None or args.end is None):
        print("Both --start and --end must be provided when using a year range.")
        return 1
    if not args.url and not args.from_file and not has_range:
        print("Please provide --url, --from-file, or a --start/--end range so the scraper has HTML to parse.")
        return 1

    failed: list[str] = []

    async def _run() -> None:
        if has_range:
            store = JsonDatasetStore(args.output or DEFAULT_RSSSF_OUTPUT)
            async with _client() as client:
                fetcher = RsssfFetcher(client, sleep_sec=args.sleep_sec)
                await scrape_rsssf_range(args.start, args.end, store, fetcher, args.url_template, rules.rsssf)
            return

        sources = [(url, None) for url in args.url] + [(path, LocalFileFetcher()) for path in args.from_file]
        async with _client() as client:
            remote = RsssfFetcher(client, sleep_sec=args.sleep_sec)
            for identifier, fetcher in sources:
                try:
                    parsed = await scrape_rsssf_page(fetcher or remote, identifier, rules.rsssf)
                except DocumentFetchError as exc:
                    logging.error("Skipping %s due to fetch error: %s", identifier, exc.reason)
                    failed.append(identifier)
                    continue
                if args.output and len(sources) > 1:
                    path = os.path.join(args.output, os.path.basename(page_output_path(parsed)))
                else:
                    path = args.output or page_output_path(parsed)
                write_parsed_page(parsed, path, pretty=args.pretty)
                print(f"Saved JSON to {path}")

    _run_interruptible(_run())
    return 1 if failed else 0


def run_combine(args: argparse.Namespace, rules: RuleSet) -> int:
    result = combine_football_data_files(
        args.inputs,
        args.output,
        include_empty=args.include_empty,
        ignore_war_years=not args.keep_war_years,
        pretty=not args.compact,
        rules=rules.merge,
    )
    for line in result.report.summary_lines():
        print(line)
    print(f"Combined output written to {args.output}")
    return 0


def expand_targets(targets: List[str]) -> List[str]:
    """JSON files named directly or found directly inside the given directories."""
    files: List[str] = []
    for target in targets:
        if os.path.isdir(target):
            for entry in sorted(os.listdir(target)):
                child = os.path.join(target, entry)
                if os.path.isfile(child) and entry.lower().endswith(".json") and child not in files:
                    files.append(child)
        elif os.path.isfile(target) and target.lower().endswith(".json"):
            if target not in files:
                files.append(target)
        else:
            logging.warning("Skipping missing or unsupported path: %s", target)
    return sorted(files)


def run_verify(args: argparse.Namespace, rules: RuleSet) -> int:
    files = expand_targets(args.targets or [args.data_dir])
    if not files:
        print("No JSON files found to inspect.")
        return 1

    total = 0
    for path in files:
        dataset = JsonDatasetStore(path).load()
        issues = verify_dataset(dataset)
        total += len(issues)
        print(f"\n{path}")
        print(f"  Seasons scanned: {len(dataset)}")
        if not issues:
            print("  No issues detected")
            continue
        print(f"  Issues found: {len(issues)}")
        for issue in issues:
            print(f"    {issue}")

    return 1 if args.fail_on_issues and total else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract English league tables from Wikipedia and RSSSF into FootballData JSON",
        epilog="Examples:\n"
               "  %(prog)s seasons --start 1888 --end 1891\n"
               "  %(prog)s overview --start 1992 --end 1995 --update-only\n"
               "  %(prog)s rsssf --start 1950 --end 1952\n"
               "  %(prog)s combine a.json b.json --output merged.json\n"
               "  %(prog)s verify data-output --fail-on-issues",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--rules", default=None, help="JSON file overriding the heuristic keyword tables")
    subparsers = parser.add_subparsers(dest="command", required=True)

    seasons = subparsers.add_parser("seasons", help="Build First/Second Division data from season pages")
    seasons.add_argument("-s", "--start", type=int, default=1888, help="First season start year (default: 1888)")
    seasons.add_argument("-e", "--end", type=int, default=2000, help="Last season start year (default: 2000)")
    seasons.add_argument("-o", "--output", default=DEFAULT_SEASONS_OUTPUT, help="Output JSON file")
    seasons.add_argument("--sleep-sec", type=float, default=DEFAULT_SLEEP_SEC, help="Delay between page requests in seconds")
    seasons.set_defaults(handler=run_seasons)

    overview = subparsers.add_parser("overview", help="Build every league table from season overview pages")
    overview.add_argument("-s", "--start", type=int, default=1888, help="First season start year (default: 1888)")
    overview.add_argument("-e", "--end", type=int, default=2000, help="Last season start year (default: 2000)")
    overview.add_argument("--slug", default=None, help="Parse a single page by slug instead of a year range")
    overview.add_argument("-o", "--output", default=DEFAULT_OVERVIEW_OUTPUT, help="Output JSON file")
    overview.add_argument("--update-only", action="store_true", help="Skip seasons that already have tier data")
    overview.add_argument("--force-update", action="store_true", help="Refetch seasons even with --update-only")
    overview.add_argument("--ignore-war-years", action="store_true", help="Skip WWI/WWII suspension seasons")
    overview.add_argument("--sleep-sec", type=float, default=DEFAULT_SLEEP_SEC, help="Delay between page requests in seconds")
    overview.set_defaults(handler=run_overview)

    rsssf = subparsers.add_parser("rsssf", help="Scrape RSSSF league tables")
    rsssf.add_argument("-u", "--url", action="append", default=[], help="RSSSF page to fetch (repeatable)")
    rsssf.add_argument("-f", "--from-file", action="append", default=[], help="Parse a local HTML file (repeatable)")
    rsssf.add_argument("-s", "--start", type=int, default=None, help="First season (inclusive) to fetch by range")
    rsssf.add_argument("-e", "--end", type=int, default=None, help="Final season (inclusive) to fetch by range")
    rsssf.add_argument("--url-template", default=DEFAULT_URL_TEMPLATE, help="Template for season URLs")
    rsssf.add_argument("-o", "--output", default=None, help="Output JSON path (a directory for several sources)")
    rsssf.add_argument("--pretty", action="store_true", help="Pretty-print per-page JSON output")
    rsssf.add_argument("--sleep-sec", type=float, default=DEFAULT_SLEEP_SEC, help="Delay between page requests in seconds")
    rsssf.set_defaults(handler=run_rsssf)

    combine = subparsers.add_parser("combine", help="Merge FootballData files, earlier inputs win")
    combine.add_argument("inputs", nargs="+", help="Input JSON files in priority order")
    combine.add_argument("-o", "--output", required=True, help="Merged output JSON file")
    combine.add_argument("--include-empty", action="store_true", help="Keep seasons without any data")
    combine.add_argument("--keep-war-years", action="store_true", help="Do not drop WWI/WWII suspension seasons")
    combine.add_argument("--compact", action="store_true", help="Write compact JSON")
    combine.set_defaults(handler=run_combine)

    verify = subparsers.add_parser("verify", help="Scan FootballData files for seasons that need attention")
    verify.add_argument("targets", nargs="*", help="JSON files or directories (default: --data-dir)")
    verify.add_argument("-d", "--data-dir", default="data-output", help="Directory to scan when no targets are given")
    verify.add_argument("--fail-on-issues", action="store_true", help="Exit with code 1 if any issues are found")
    verify.set_defaults(handler=run_verify)

    return parser


def main(argv: List[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)
    rules = load_rules(args.rules, RuleSet, DEFAULT_RULE_SET)
    return args.handler(args, rules)


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
