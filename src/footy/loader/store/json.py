from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any

from src.footy.loader.convert import dataset_json_to_dataset, dataset_to_json
from src.footy.loader.utils import write_json_atomic
from src.footy.models.table import FootballData
from src.footy.season import upsert_season_tier


@dataclass(frozen=True)
class DatasetSpec:
    """Describe where a FootballData JSON file lives."""

    path: str


class JsonDatasetStore:
    """Load and persist a single FootballData JSON file."""

    def __init__(self, spec: DatasetSpec | str):
        self._spec = spec if isinstance(spec, DatasetSpec) else DatasetSpec(path=spec)

    @property
    def path(self) -> str:
        return self._spec.path

    def exists(self) -> bool:
        return os.path.isfile(self.path)

    def load(self) -> FootballData:
        """The stored dataset, or an empty one when nothing has been written yet."""
        if not self.exists():
            return FootballData()
        with open(self.path, "r", encoding="utf-8") as fh:
            body = json.load(fh)
        return dataset_json_to_dataset(body)

    def write(self, dataset: FootballData, *, pretty: bool = True) -> str:
        filepath = write_json_atomic(self.path, dataset_to_json(dataset), pretty=pretty)
        logging.info("Saved %d season(s) to %s", len(dataset), filepath)
        return filepath


def update_football_data_file(
    path: str,
    season: int | str,
    tier_key: str,
    tier: Any,
    *,
    pretty: bool = True,
) -> FootballData:
    """Load the file, replace one tier of one season and write it back."""
    store = JsonDatasetStore(path)
    dataset = store.load()
    upsert_season_tier(dataset, season, tier_key, tier)
    store.write(dataset, pretty=pretty)
    return dataset
