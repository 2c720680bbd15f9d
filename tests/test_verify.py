"""
Tests for dataset consistency checks.
"""
from src.footy.models.table import CompactTier, LeagueTableEntry, TierData
from src.footy.season import create_football_data
from src.footy.verify import Issue, find_duplicates, names_match, normalize_name, verify_dataset, verify_tier
from tests.pages import full_row


def _types(issues):
    return [issue.type for issue in issues]


class TestNames:

    def test_normalize_name(self):
        assert normalize_name("  Brighton & Hove  Albion ") == "brighton hove albion"
        assert names_match("Nott'm Forest", "nottm forest")
        assert not names_match("Arsenal", "Woolwich Arsenal")

    def test_find_duplicates(self):
        assert find_duplicates([1, 2, 2, 3, 3, 3]) == [2, 3]
        assert find_duplicates(["Stoke", "STOKE."], key=normalize_name) == ["Stoke"]


class TestVerifyTier:
    """Test per-tier checks."""

    def test_clean_tier(self):
        tier = TierData(season=1950, table=[LeagueTableEntry(pos=1, team="Alpha", played=1, won=1, goals_for=2, goal_difference=2)])
        assert verify_tier("1950", "tier1", tier) == []

    def test_empty_tier(self):
        assert _types(verify_tier("1950", "tier2", TierData(season=1950))) == ["empty-tier"]

    def test_season_mismatch(self):
        tier = TierData(season=1949, promoted=[])
        assert "season-mismatch" in _types(verify_tier("1950", "tier1", tier))

    def test_row_checks(self):
        tier = TierData(
            season=1950,
            table=[
                LeagueTableEntry(pos=1, team="Alpha", played=3, won=1, goals_for=2, goal_difference=5),
                LeagueTableEntry(pos=1, team="ALPHA.", played=0),
            ],
        )
        issues = verify_tier("1950", "tier1", tier)
        assert _types(issues) == ["duplicate-teams", "duplicate-positions", "match-count-mismatch", "goal-diff-mismatch"]
        assert issues[2].message == "Played totals do not equal won+drawn+lost for: Alpha"

    def test_missing_goal_difference_is_not_checked(self):
        tier = TierData(season=1950, table=[LeagueTableEntry(pos=1, team="Alpha", goals_for=2)])
        assert verify_tier("1950", "tier1", tier) == []

    def test_outcome_lists(self):
        tier = TierData(
            season=1950,
            table=[LeagueTableEntry(pos=1, team="Alpha", was_promoted=True), LeagueTableEntry(pos=2, team="Beta")],
            promoted=["Gamma"],
            relegated=["beta"],
        )
        issues = verify_tier("1950", "tier1", tier)
        assert _types(issues) == ["promoted-mismatch", "promoted-unknown"]
        assert issues[0].message == "Promoted list missing flagged teams: Alpha"

    def test_compact_tier_skips_outcome_checks(self):
        tier = CompactTier([LeagueTableEntry(pos=1, team="Alpha", was_promoted=True)])
        assert verify_tier("1950", "tier2", tier) == []


class TestVerifyDataset:

    def test_missing_season_data(self):
        dataset = create_football_data({"1950": {"tier1": []}, "1951": {}})
        issues = verify_dataset(dataset)
        assert [(issue.type, issue.season) for issue in issues] == [
            ("missing-season-data", "1950"),
            ("missing-season-data", "1951"),
        ]
        assert str(issues[0]) == "[missing-season-data] 1950: No tier table/promoted/relegated data detected for this season"

    def test_issues_are_sorted(self):
        dataset = create_football_data({
            "abc": {"tier1": []},
            "1951": {"tier2": {"season": 1951, "table": []}, "tier1": [full_row(1, "Alpha")]},
            "1950": {"tier1": {"season": 1949, "table": [full_row(1, "Beta")]}},
        })
        issues = verify_dataset(dataset)
        assert [(issue.season, issue.tier, issue.type) for issue in issues] == [
            ("1950", "tier1", "season-mismatch"),
            ("1951", "tier2", "empty-tier"),
            ("abc", None, "missing-season-data"),
        ]

    def test_seasoninfo_is_not_a_tier(self):
        dataset = create_football_data({"1950": {"seasonInfo": {"promoted": ["Alpha"]}}})
        assert _types(verify_dataset(dataset)) == ["missing-season-data"]

    def test_issue_str_with_tier(self):
        issue = Issue("empty-tier", "1950", "Tier has no table rows or outcome lists", "tier2")
        assert str(issue) == "[empty-tier] 1950 tier2: Tier has no table rows or outcome lists"
