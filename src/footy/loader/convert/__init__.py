from .tables import (
    entry_json_to_entry,
    entry_to_json,
    tier_json_to_tier,
    tier_to_json,
    season_value_to_json,
    dataset_json_to_dataset,
    dataset_to_json,
)

__all__ = [
    "entry_json_to_entry",
    "entry_to_json",
    "tier_json_to_tier",
    "tier_to_json",
    "season_value_to_json",
    "dataset_json_to_dataset",
    "dataset_to_json",
]
