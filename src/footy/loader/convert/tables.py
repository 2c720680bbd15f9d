from __future__ import annotations

from typing import Any, Dict, List

from src.footy.classify.outcome import OUTCOME_JSON_KEYS
from src.footy.models.table import CompactTier, FootballData, LeagueTableEntry, Tier, TierData
from src.footy.season import create_football_data, normalise_league_table_entry, normalise_tier


def entry_json_to_entry(item: Dict[str, Any]) -> LeagueTableEntry:
    """Convert a stored table row (camelCase keys) to a LeagueTableEntry."""
    return normalise_league_table_entry(item)


def entry_to_json(entry: LeagueTableEntry) -> Dict[str, Any]:
    body = {
        "pos": entry.pos,
        "team": entry.team,
        "played": entry.played,
        "won": entry.won,
        "drawn": entry.drawn,
        "lost": entry.lost,
        "goalsFor": entry.goals_for,
        "goalsAgainst": entry.goals_against,
        "goalDifference": entry.goal_difference,
        "goalAverage": entry.goal_average,
        "points": entry.points,
        "notes": entry.notes,
    }
    for attr, key in OUTCOME_JSON_KEYS.items():
        body[key] = getattr(entry, attr)
    return body


def tier_json_to_tier(item: Dict[str, Any] | List[Dict[str, Any]], season_key: str | None = None) -> Tier:
    """Mappings become full tiers, bare row lists become compact tiers."""
    return normalise_tier(item, season_key)


def tier_to_json(tier: Tier) -> Dict[str, Any] | List[Dict[str, Any]]:
    if isinstance(tier, CompactTier):
        return [entry_to_json(entry) for entry in tier.entries]
    body: Dict[str, Any] = {
        "season": tier.season,
        "table": [entry_to_json(entry) for entry in tier.table],
        "promoted": list(tier.promoted),
        "relegated": list(tier.relegated),
    }
    body.update(tier.metadata)
    return body


def season_value_to_json(value: Any) -> Any:
    """Tiers are serialised, other season fields are written as stored."""
    if isinstance(value, (TierData, CompactTier)):
        return tier_to_json(value)
    return value


def dataset_json_to_dataset(body: Dict[str, Any]) -> FootballData:
    return create_football_data(body)


def dataset_to_json(dataset: FootballData) -> Dict[str, Any]:
    """Seasons in chronological order, non-numeric keys last."""
    return {
        "seasons": {
            key: {field: season_value_to_json(value) for field, value in dataset.seasons[key].items()}
            for key in dataset.sorted_season_keys()
        }
    }
