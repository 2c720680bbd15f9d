"""
Tests for JSON conversion and the dataset store.
"""
import json
import os

from src.footy.loader.convert import (
    dataset_json_to_dataset,
    dataset_to_json,
    entry_json_to_entry,
    entry_to_json,
    tier_json_to_tier,
    tier_to_json,
)
from src.footy.loader.store import JsonDatasetStore, update_football_data_file
from src.footy.loader.utils import write_json_atomic
from src.footy.models.table import CompactTier, FootballData, LeagueTableEntry, TierData
from tests.pages import full_row


class TestConvert:
    """Test JSON <-> model conversion."""

    def test_entry_to_json_uses_camel_case(self):
        body = entry_to_json(LeagueTableEntry(pos=1, team="Alpha", goals_for=3, was_re_elected=True))
        assert body["goalsFor"] == 3
        assert body["wasReElected"] is True
        assert body["goalDifference"] is None
        assert list(body) == list(full_row(1, "Alpha"))

    def test_entry_json_to_entry(self):
        entry = entry_json_to_entry(full_row(4, "Delta", wasRelegated=True))
        assert entry.pos == 4
        assert entry.was_relegated

    def test_tier_shapes(self):
        compact = tier_json_to_tier([full_row(1, "Alpha")])
        full = tier_json_to_tier({"table": [full_row(1, "Alpha")], "title": "First Division"}, "1950")

        assert isinstance(compact, CompactTier)
        assert isinstance(tier_to_json(compact), list)
        assert tier_to_json(full) == {
            "season": 1950,
            "table": [full_row(1, "Alpha")],
            "promoted": [],
            "relegated": [],
            "title": "First Division",
        }

    def test_dataset_keys_are_ordered(self):
        dataset = dataset_json_to_dataset({"seasons": {"abc": {}, "1951": {}, "1950": {}}})
        assert list(dataset_to_json(dataset)["seasons"]) == ["1950", "1951", "abc"]

    def test_non_tier_season_fields_are_kept(self):
        dataset = dataset_json_to_dataset({"seasons": {"1950": {"tier1": [full_row(1, "Alpha")], "note": "x", "sources": ["rsssf"]}}})
        season = dataset_to_json(dataset)["seasons"]["1950"]
        assert season["note"] == "x"
        assert season["sources"] == ["rsssf"]
        assert isinstance(dataset.tier(1950, "tier1"), CompactTier)


class TestJsonDatasetStore:

    def test_missing_file_is_empty(self, tmp_path):
        store = JsonDatasetStore(str(tmp_path / "none.json"))
        assert not store.exists()
        assert len(store.load()) == 0

    def test_round_trip(self, tmp_path):
        store = JsonDatasetStore(str(tmp_path / "nested" / "data.json"))
        dataset = FootballData()
        dataset.upsert_season_tier(1950, "tier1", TierData(season=1950, table=[LeagueTableEntry(pos=1, team="Alpha")], promoted=["Alpha"]))
        dataset.upsert_season_tier(1950, "tier2", CompactTier([LeagueTableEntry(pos=1, team="Beta")]))

        store.write(dataset)
        loaded = store.load()

        assert dataset_to_json(loaded) == dataset_to_json(dataset)
        assert [name for name in os.listdir(tmp_path / "nested")] == ["data.json"]

    def test_pretty_and_compact_output(self, tmp_path):
        pretty = tmp_path / "pretty.json"
        compact = tmp_path / "compact.json"
        write_json_atomic(str(pretty), {"team": "Málaga"})
        write_json_atomic(str(compact), {"team": "Málaga"}, pretty=False)

        assert pretty.read_text(encoding="utf-8") == '{\n  "team": "Málaga"\n}'
        assert compact.read_text(encoding="utf-8") == '{"team":"Málaga"}'


class TestUpdateFootballDataFile:

    def test_replaces_one_tier(self, write_json):
        path = write_json("data.json", {
            "seasons": {
                "1950": {
                    "tier1": {"season": 1950, "table": [full_row(1, "Alpha")], "promoted": []},
                    "tier2": [full_row(1, "Old")],
                }
            }
        })
        update_football_data_file(
            path,
            1950,
            "tier1",
            {"table": [full_row(1, "Alpha", wasPromoted=True)], "promoted": ["Another Club"]},
        )

        with open(path, "r", encoding="utf-8") as fh:
            body = json.load(fh)
        season = body["seasons"]["1950"]
        assert season["tier1"]["promoted"] == ["Another Club"]
        assert season["tier1"]["season"] == 1950
        assert season["tier2"][0]["team"] == "Old"
