"""
Consistency checks over a FootballData dataset.

Each tier is checked for empty content, a season field that disagrees with its key, duplicated teams or
positions, played != won+drawn+lost, goal difference != GF-GA, and outcome lists that disagree with
the row flags. A season without any tier content is reported once as `missing-season-data`.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Hashable, Iterable

from src.footy.models.table import CompactTier, FootballData, Tier, is_tier_key, season_key_to_year

NAME_PUNCTUATION_RE = re.compile(r"[^\w\s]")


@dataclass(frozen=True)
class Issue:

    type: str
    season: str
    message: str
    tier: str | None = None

    def __str__(self):
        tier = f" {self.tier}" if self.tier else ""
        return f"[{self.type}] {self.season}{tier}: {self.message}"


def normalize_name(name: str) -> str:
    """Compare names ignoring case, punctuation and repeated whitespace."""
    return " ".join(NAME_PUNCTUATION_RE.sub("", name or "").lower().split())


def names_match(a: str, b: str) -> bool:
    return normalize_name(a) == normalize_name(b)


def find_duplicates(values: Iterable, key=None) -> list:
    """Values seen more than once, reported by their first original spelling."""
    counts: dict[Hashable, int] = {}
    originals: dict[Hashable, object] = {}
    for value in values:
        normalized = key(value) if key else value
        if normalized is None:
            continue
        counts[normalized] = counts.get(normalized, 0) + 1
        originals.setdefault(normalized, value)
    return [originals[k] for k, count in counts.items() if count > 1]


def _outcome_issues(
    season_key: str,
    tier_key: str,
    tier: Tier,
    label: str,
    listed: list[str],
    attr: str,
) -> list[Issue]:
    issues = []
    flagged = [entry.team for entry in tier.table if getattr(entry, attr)]
    missing = [team for team in flagged if not any(names_match(name, team) for name in listed)]
    unknown = [name for name in listed if not any(names_match(entry.team, name) for entry in tier.table)]
    if missing:
        issues.append(Issue(
            type=f"{label}-mismatch",
            season=season_key,
            tier=tier_key,
            message=f"{label.capitalize()} list missing flagged teams: {', '.join(missing)}",
        ))
    if unknown:
        issues.append(Issue(
            type=f"{label}-unknown",
            season=season_key,
            tier=tier_key,
            message=f"{label.capitalize()} list includes teams not in table: {', '.join(unknown)}",
        ))
    return issues


def verify_tier(season_key: str, tier_key: str, tier: Tier) -> list[Issue]:
    issues = []
    table = tier.table

    if not tier.has_data():
        issues.append(Issue("empty-tier", season_key, "Tier has no table rows or outcome lists", tier_key))

    key_year = season_key_to_year(season_key)
    if not isinstance(tier, CompactTier) and key_year is not None and tier.season != key_year:
        issues.append(Issue(
            "season-mismatch", season_key, f"Tier season ({tier.season}) does not match key {key_year}", tier_key
        ))

    duplicate_teams = find_duplicates((entry.team for entry in table), key=normalize_name)
    if duplicate_teams:
        issues.append(Issue(
            "duplicate-teams", season_key, f"Duplicate teams detected: {', '.join(duplicate_teams)}", tier_key
        ))

    duplicate_positions = find_duplicates(entry.pos for entry in table)
    if duplicate_positions:
        positions = ", ".join(str(pos) for pos in duplicate_positions)
        issues.append(Issue("duplicate-positions", season_key, f"Duplicate position values detected: {positions}", tier_key))

    miscounted = [entry.team for entry in table if entry.played != entry.won + entry.drawn + entry.lost]
    if miscounted:
        issues.append(Issue(
            "match-count-mismatch",
            season_key,
            f"Played totals do not equal won+drawn+lost for: {', '.join(miscounted)}",
            tier_key,
        ))

    bad_goal_difference = [
        entry.team for entry in table
        if entry.goal_difference is not None and not entry.has_consistent_goal_difference()
    ]
    if bad_goal_difference:
        issues.append(Issue(
            "goal-diff-mismatch",
            season_key,
            f"Goal difference does not equal GF-GA for: {', '.join(bad_goal_difference)}",
            tier_key,
        ))

    # compact tiers carry no outcome lists to compare against
    if not isinstance(tier, CompactTier):
        issues.extend(_outcome_issues(season_key, tier_key, tier, "promoted", tier.promoted, "was_promoted"))
        issues.extend(_outcome_issues(season_key, tier_key, tier, "relegated", tier.relegated, "was_relegated"))
    return issues


def _sort_key(issue: Issue) -> tuple:
    year = season_key_to_year(issue.season)
    season_order = (0, year, "") if year is not None else (1, 0, issue.season)
    # season-wide issues sort after the tier issues of the same season
    tier_order = (0, issue.tier) if issue.tier else (1, "")
    return season_order, tier_order, issue.type


def verify_dataset(dataset: FootballData) -> list[Issue]:
    issues: list[Issue] = []
    for season_key, record in dataset:
        tiers = [(key, tier) for key, tier in record.items() if is_tier_key(key)]
        if not tiers or not any(tier.has_data() for _, tier in tiers):
            issues.append(Issue(
                "missing-season-data",
                season_key,
                "No tier table/promoted/relegated data detected for this season",
            ))
            continue
        for tier_key, tier in tiers:
            issues.extend(verify_tier(season_key, tier_key, tier))
    return sorted(issues, key=_sort_key)
