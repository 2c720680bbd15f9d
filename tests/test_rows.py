"""
Unit tests for row-level table parsing.

Tests cover:
- Header normalisation (aliases, notes detection, unknown headers)
- Lenient numeric coercion
- TableRowParser: header rows, incomplete rows, notes columns and row-spanning notes
"""
from src.footy.classify.legend import LegendEntry
from src.footy.parse.rows import NotesCell, TableRowParser, looks_like_header, normalize_header, parse_number


class TestNormalizeHeader:
    """Test header aliases."""

    def test_known_aliases(self):
        """Common spellings map to canonical names."""
        assert normalize_header("Pld") == "played"
        assert normalize_header(" Club ") == "team"
        assert normalize_header("G.Av") == "goalAverage"
        assert normalize_header("Pts.") == "points"
        assert normalize_header("Remarks") == "notes"

    def test_qualification_header_is_notes(self):
        """Qualification or relegation headers hold the notes."""
        assert normalize_header("Qualification or relegation") == "notes"

    def test_unknown_header_is_cleaned(self):
        """Unknown headers come back lower-cased."""
        assert normalize_header("Manager") == "manager"


class TestParseNumber:
    """Test numeric coercion."""

    def test_integers_and_signs(self):
        assert parse_number("42") == 42
        assert parse_number("+12") == 12
        assert parse_number("−11") == -11
        assert parse_number(7) == 7

    def test_floats(self):
        """Goal averages keep their fraction."""
        assert parse_number("1.523") == 1.523
        assert parse_number("2.0") == 2

    def test_garbage_is_none(self):
        """Nothing numeric left means no value."""
        assert parse_number("") is None
        assert parse_number(None) is None
        assert parse_number("n/a") is None
        assert parse_number(True) is None

    def test_footnote_markers_are_stripped(self):
        assert parse_number("38[a]") == 38


class TestLooksLikeHeader:

    def test_repeated_header_row(self):
        assert looks_like_header(["Pos", "Team", "Pld", "Pts"])

    def test_data_row(self):
        assert not looks_like_header(["1", "Team FC", "30", "45"])


class TestTableRowParser:
    """Test parsing of data rows."""

    HEADER = ["Pos", "Team", "Pld", "W", "D", "L", "GF", "GA", "GD", "Pts", "Notes"]

    def test_parses_full_row(self):
        """All stat columns are read into the entry."""
        parser = TableRowParser(self.HEADER)
        entry = parser.parse(["1", "Arsenal", "38", "26", "9", "3", "73", "26", "+47", "87", "Champions"])
        assert entry.pos == 1
        assert entry.team == "Arsenal"
        assert (entry.played, entry.won, entry.drawn, entry.lost) == (38, 26, 9, 3)
        assert entry.goal_difference == 47
        assert entry.points == 87
        assert entry.notes == "Champions"
        assert not entry.was_relegated

    def test_missing_stats_default_to_zero(self):
        """Missing required numbers become 0, missing goal difference stays None."""
        parser = TableRowParser(["Pos", "Team", "Pld", "Pts"])
        entry = parser.parse(["3", "Stoke", "", "36"])
        assert entry.played == 0
        assert entry.points == 36
        assert entry.goal_difference is None
        assert entry.goal_average is None

    def test_header_like_and_short_rows_are_skipped(self):
        parser = TableRowParser(self.HEADER)
        assert parser.parse(["Pos", "Team", "Pld", "Pts"]) is None
        assert parser.parse(["1"]) is None

    def test_row_without_team_or_position_is_skipped(self):
        parser = TableRowParser(self.HEADER)
        assert parser.parse(["", "Arsenal", "38"]) is None
        assert parser.parse(["1", "", "38"]) is None

    def test_notes_drive_flags(self):
        """Relegation and promotion come from the notes."""
        parser = TableRowParser(self.HEADER)
        relegated = parser.parse(["20", "Bottom FC", "38", "3", "5", "30", "20", "80", "-60", "14", "Relegated to the Championship"])
        promoted = parser.parse(["1", "Top FC", "46", "30", "10", "6", "90", "40", "50", "100", "Promoted to the Premier League"])
        assert relegated.was_relegated
        assert promoted.was_promoted

    def test_relegation_note_with_stats(self):
        parser = TableRowParser(self.HEADER)
        entry = parser.parse(["22", "Everton", "42", "12", "8", "22", "48", "86", "-38", "32", "Relegated to the Second Division"])
        assert entry.pos == 22
        assert entry.team == "Everton"
        assert entry.points == 32
        assert entry.goal_difference == -38
        assert entry.was_relegated
        assert not entry.was_promoted

    def test_top_flight_suppresses_promotion(self):
        parser = TableRowParser(self.HEADER, suppress_promotion=True)
        entry = parser.parse(["1", "Top FC", "38", "30", "5", "3", "90", "30", "60", "95", "Promoted to Europe"])
        assert not entry.was_promoted

    def test_last_unknown_column_is_notes(self):
        """An unlabelled trailing column holds the notes."""
        parser = TableRowParser(["Pos", "Team", "Pld", "Pts", "Comment"])
        assert parser.notes_index == 4
        entry = parser.parse(["18", "Down FC", "38", "30", "Relegation to Division Two"])
        assert entry.was_relegated

    def test_last_stat_column_is_never_notes(self):
        parser = TableRowParser(["Pos", "Team", "Pld", "Pts"])
        assert parser.notes_index is None

    def test_first_header_occurrence_wins(self):
        """Home/away tables repeat W/D/L; the first block is used."""
        parser = TableRowParser(["Pos", "Team", "W", "D", "L", "W", "D", "L"])
        entry = parser.parse(["1", "Derby", "10", "2", "1", "5", "4", "4"])
        assert (entry.won, entry.drawn, entry.lost) == (10, 2, 1)

    def test_rowspan_notes_are_carried(self):
        """A notes cell spanning rows applies to every covered row."""
        parser = TableRowParser(["No", "Side", "P", "Pts", "Remarks"])
        first = parser.parse(["2", "Sheffield United", "34", "38"], NotesCell("Promoted to First Division", rowspan=2))
        second = parser.parse(["3", "Stoke", "34", "36"])
        third = parser.parse(["4", "Walsall", "34", "30"])
        assert first.was_promoted and second.was_promoted
        assert second.notes == "Promoted to First Division"
        assert third.notes is None
        assert not third.was_promoted

    def test_team_symbols_are_stripped_and_resolved(self):
        """Legend markers leave the team name and switch flags on."""
        legend = {"P": LegendEntry(promoted=True), "R": LegendEntry(relegated=True)}
        parser = TableRowParser(["Pos", "Team", "Pld", "Pts"], legend=legend)
        entry = parser.parse(["2", "Beta (P)", "10", "21"], team_symbols={"P"})
        assert entry.team == "Beta"
        assert entry.was_promoted
        assert not entry.was_relegated
