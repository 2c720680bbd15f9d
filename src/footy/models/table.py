"""
Core data models for extracted league tables.

Classes:
- LeagueTableEntry: one team's row in one tier for one season
- TierData: a full tier record (table, promoted/relegated lists, provenance metadata)
- CompactTier: legacy tier representation holding only the table rows
- FootballData: root container mapping season keys to season records

`Tier` is the tagged variant `TierData | CompactTier`. Both expose `table`, `promoted`, `relegated`,
`metadata`, `has_data()` and `view()`, so callers never need to check which one they hold.

A season record maps `tier*` keys and `seasonInfo` to tiers; any other season field is kept as stored.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Union


@dataclass
class LeagueTableEntry:

    pos: int
    team: str
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    goal_difference: int | None = None
    goal_average: float | None = None
    points: int = 0
    notes: str | None = None
    was_relegated: bool = False
    was_promoted: bool = False
    is_expansion_team: bool = False
    was_re_elected: bool = False
    was_reprieved: bool = False

    def __repr__(self):
        return f'{self.pos}. {self.team}'

    @property
    def computed_goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def has_consistent_goal_difference(self) -> bool:
        return self.goal_difference == self.computed_goal_difference


def _flagged(entries: list[LeagueTableEntry], attr: str) -> list[str]:
    names: list[str] = []
    for entry in entries:
        if getattr(entry, attr) and entry.team not in names:
            names.append(entry.team)
    return names


@dataclass
class TierData:

    season: int
    table: list[LeagueTableEntry] = field(default_factory=list)
    promoted: list[str] = field(default_factory=list)
    relegated: list[str] = field(default_factory=list)
    # provenance such as seasonSlug, sourceUrl, title, tier, seasonMetadata; serialized flat next to the table
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def season_metadata(self) -> dict[str, Any]:
        value = self.metadata.get("seasonMetadata")
        return value if isinstance(value, dict) else {}

    def has_data(self) -> bool:
        return bool(self.table or self.promoted or self.relegated or self.season_metadata)

    def flagged_promoted(self) -> list[str]:
        return _flagged(self.table, "was_promoted")

    def view(self, season: int | None = None) -> TierData:
        return self


@dataclass
class CompactTier:

    entries: list[LeagueTableEntry] = field(default_factory=list)

    @property
    def table(self) -> list[LeagueTableEntry]:
        return self.entries

    @property
    def promoted(self) -> list[str]:
        return []

    @property
    def relegated(self) -> list[str]:
        return []

    @property
    def metadata(self) -> dict[str, Any]:
        return {}

    @property
    def season_metadata(self) -> dict[str, Any]:
        return {}

    def has_data(self) -> bool:
        return bool(self.entries)

    def view(self, season: int | None = None) -> TierData:
        """Expand into a full tier, deriving the outcome lists from row flags."""
        return TierData(
            season=season or 0,
            table=list(self.entries),
            promoted=_flagged(self.entries, "was_promoted"),
            relegated=_flagged(self.entries, "was_relegated"),
        )


Tier = Union[TierData, CompactTier]
SeasonData = dict[str, Any]

SEASON_INFO_KEY = "seasonInfo"


def is_tier_key(key: str) -> bool:
    return key.lower().startswith("tier")


def holds_tier(key: str) -> bool:
    return is_tier_key(key) or key == SEASON_INFO_KEY


def season_tiers(record: SeasonData) -> Iterator[tuple[str, Tier]]:
    for key, value in record.items():
        if isinstance(value, (TierData, CompactTier)):
            yield key, value


def season_key_to_year(key: str) -> int | None:
    """Season keys are stringified years; anything else has no year."""
    try:
        return int(key)
    except (TypeError, ValueError):
        return None


@dataclass
class FootballData:

    seasons: dict[str, SeasonData] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.seasons)

    def __iter__(self) -> Iterator[tuple[str, SeasonData]]:
        return iter(self.seasons.items())

    def season(self, season: int | str) -> SeasonData | None:
        return self.seasons.get(str(season))

    def tier(self, season: int | str, tier_key: str) -> Tier | None:
        record = self.season(season)
        if record is None:
            return None
        return record.get(tier_key)

    def set_season_record(self, season: int | str, record: SeasonData) -> SeasonData:
        self.seasons[str(season)] = record
        return record

    def upsert_season_tier(self, season: int | str, tier_key: str, tier: Tier) -> SeasonData:
        if not tier_key:
            raise ValueError("Tier key must be a non-empty string")
        record = self.seasons.setdefault(str(season), {})
        record[tier_key] = tier
        return record

    def merge_from(self, other: FootballData) -> FootballData:
        """Replace whole seasons with those of `other`."""
        for key, record in other.seasons.items():
            self.seasons[key] = record
        return self

    def sorted_season_keys(self) -> list[str]:
        def _order(key: str) -> tuple[int, int, str]:
            year = season_key_to_year(key)
            return (0, year, key) if year is not None else (1, 0, key)

        return sorted(self.seasons, key=_order)
