"""
Merge several FootballData datasets into one.

Inputs are given in priority order. Per season and tier the first tier carrying data wins; an empty
incumbent is replaced by a later tier with data. After merging, war-suspension seasons and (unless asked
to keep them) seasons without data are dropped, and every goal difference is recomputed from goals
for/against. The `MergeReport` records what happened for human review.
"""
from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass, field
from typing import Iterable

from src.footy.loader.store.json import JsonDatasetStore
from src.footy.models.table import FootballData, SeasonData, Tier, is_tier_key, season_key_to_year, season_tiers
from src.footy.rules import DEFAULT_MERGE_RULES, MergeRules


@dataclass
class MergeReport:

    input_count: int = 0
    total_input_seasons: int = 0
    merged_seasons: int = 0
    conflicts: int = 0
    goal_differences_repaired: int = 0
    removed_war_seasons: list[str] = field(default_factory=list)
    # excluded (empty) seasons, bucketed as ww1 / ww2 / needs_attention
    excluded: dict[str, list[int]] = field(
        default_factory=lambda: {"ww1": [], "ww2": [], "needs_attention": []}
    )
    non_numeric_missing: list[str] = field(default_factory=list)

    @property
    def missing_season_numbers(self) -> list[int]:
        return sorted(year for years in self.excluded.values() for year in years)

    @property
    def excluded_count(self) -> int:
        return len(self.missing_season_numbers) + len(self.non_numeric_missing)

    def summary_lines(self) -> list[str]:
        lines = [
            f"Merged {self.merged_seasons} seasons from {self.input_count} input(s)"
            + (f" (skipped {self.excluded_count} empty)" if self.excluded_count else ""),
            f"Total seasons encountered across inputs: {self.total_input_seasons}",
        ]
        if self.removed_war_seasons:
            lines.append(f"Removed war suspension seasons: {', '.join(self.removed_war_seasons)}")
        if self.conflicts:
            lines.append(f"Tiers kept from a higher-priority input: {self.conflicts}")
        if self.goal_differences_repaired:
            lines.append(f"Goal differences recomputed: {self.goal_differences_repaired}")
        if not self.excluded_count:
            lines.append("All encountered seasons were included in the merged output.")
            return lines
        lines.append("Missing seasons (no table/promoted/relegated data in output):")
        labels = {"ww1": "WW1 suspensions", "ww2": "WW2 suspensions", "needs_attention": "Needs attention"}
        for bucket, label in labels.items():
            years = self.excluded.get(bucket)
            if years:
                lines.append(f"  {label}: {', '.join(str(year) for year in years)}")
        if self.non_numeric_missing:
            lines.append(f"  Unparsed season keys: {', '.join(self.non_numeric_missing)}")
        return lines


@dataclass
class MergeResult:

    dataset: FootballData
    report: MergeReport


def merge_tier(existing: Tier | None, incoming: Tier | None, report: MergeReport | None = None) -> Tier | None:
    if existing is None:
        return incoming
    if incoming is None:
        return existing
    if not existing.has_data() and incoming.has_data():
        return incoming
    if existing.has_data() and incoming.has_data() and report is not None:
        report.conflicts += 1
    return existing


def merge_season_records(
    current: SeasonData | None,
    incoming: SeasonData | None,
    report: MergeReport | None = None,
) -> SeasonData:
    if not current:
        return dict(incoming or {})
    if not incoming:
        return current
    merged = dict(current)
    for key, value in incoming.items():
        if is_tier_key(key):
            merged[key] = merge_tier(merged.get(key), value, report)
        elif merged.get(key) is None:
            merged[key] = value
    return merged


def season_has_data(record: SeasonData) -> bool:
    return any(tier.has_data() for _, tier in season_tiers(record))


def repair_goal_differences(dataset: FootballData) -> int:
    """Force goalDifference = goalsFor - goalsAgainst on every row; returns how many rows changed."""
    repaired = 0
    for _, record in dataset:
        for _, tier in season_tiers(record):
            for entry in tier.table:
                if not entry.has_consistent_goal_difference():
                    entry.goal_difference = entry.computed_goal_difference
                    repaired += 1
    return repaired


def merge_datasets(
    datasets: Iterable[FootballData],
    *,
    include_empty: bool = False,
    ignore_war_years: bool = True,
    rules: MergeRules = DEFAULT_MERGE_RULES,
) -> MergeResult:
    """Merge in priority order; inputs are left untouched."""
    report = MergeReport()
    combined = FootballData()
    for dataset in datasets:
        report.input_count += 1
        report.total_input_seasons += len(dataset)
        for key, record in copy.deepcopy(dataset.seasons).items():
            combined.seasons[key] = merge_season_records(combined.seasons.get(key), record, report)

    kept: dict[str, SeasonData] = {}
    for key in combined.sorted_season_keys():
        record = combined.seasons[key]
        year = season_key_to_year(key)
        if ignore_war_years and year is not None and rules.is_war_year(year):
            report.removed_war_seasons.append(key)
            continue
        if include_empty or season_has_data(record):
            kept[key] = record
            continue
        if year is None:
            report.non_numeric_missing.append(key)
        else:
            report.excluded.setdefault(rules.report_bucket(year) or "needs_attention", []).append(year)

    if report.removed_war_seasons:
        logging.info("Removing %d war suspension season(s) from output", len(report.removed_war_seasons))

    result = FootballData(seasons=kept)
    report.goal_differences_repaired = repair_goal_differences(result)
    report.merged_seasons = len(kept)
    return MergeResult(dataset=result, report=report)


def combine_football_data_files(
    inputs: list[str],
    output: str,
    *,
    include_empty: bool = False,
    ignore_war_years: bool = True,
    pretty: bool = True,
    rules: MergeRules = DEFAULT_MERGE_RULES,
) -> MergeResult:
    """Load every input file, merge them in the given order and write the result to `output`."""
    datasets: list[FootballData] = []
    for path in inputs:
        if not os.path.isfile(path):
            raise FileNotFoundError(f"Input file not found: {path}")
        datasets.append(JsonDatasetStore(path).load())

    result = merge_datasets(datasets, include_empty=include_empty, ignore_war_years=ignore_war_years, rules=rules)
    JsonDatasetStore(output).write(result.dataset, pretty=pretty)
    return result
