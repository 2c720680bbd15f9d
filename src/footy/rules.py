"""
Keyword and regex tables driving the heuristic parts of extraction.

Classes:
- OutcomeRules: patterns turning free-text notes into outcome flags
- HeadingRules: heading ids, scored phrases and keywords used to find league-table sections
- MergeRules: war-suspension spans used when merging datasets
- RuleSet: all of the above, as read from a `--rules` file

All tables are plain pydantic models so a JSON file can override any of them (see `load_rules`).
"""
from __future__ import annotations

from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, Field


class OutcomeRules(BaseModel):
    relegated: list[str] = Field(default_factory=lambda: ["relegat", "demoted to the"])
    promoted: list[str] = Field(default_factory=lambda: ["promot"])
    expansion: list[str] = Field(default_factory=lambda: ["expansion", "new club", "admitted", "joined league"])
    re_elected: list[str] = Field(default_factory=lambda: ["re-elected"])
    reprieved: list[str] = Field(default_factory=lambda: [r"repri(?:e)?ved from re-election"])
    legend_promoted: list[str] = Field(default_factory=lambda: ["promot", r"play-?off"])
    legend_relegated: list[str] = Field(default_factory=lambda: ["relegat", "demot"])


class ScoredPhrase(BaseModel):
    pattern: str
    score: int


class HeadingRules(BaseModel):
    section_ids: list[str] = Field(
        default_factory=lambda: [
            "League_tables",
            "League_table",
            "League_season",
            "League_season_(Men's)",
            "League_competitions",
            "League_competitions_(Men's)",
            "League_Competitions",
            "League_Competitions_(Men's)",
            "Final_standings",
            "Final_Standings",
            "Men's_football",
            "Mens_football",
        ]
    )
    scored_phrases: list[ScoredPhrase] = Field(
        default_factory=lambda: [
            ScoredPhrase(pattern=r"^league tables?", score=100),
            ScoredPhrase(pattern=r"^final standings", score=95),
            ScoredPhrase(pattern=r"^league season", score=90),
            ScoredPhrase(pattern=r"^league competitions", score=80),
            ScoredPhrase(pattern=r"^men'?s football", score=75),
            ScoredPhrase(pattern=r"league.*table|table.*league", score=70),
        ]
    )
    league_keywords: list[str] = Field(
        default_factory=lambda: [
            "league",
            "division",
            "championship",
            "premier",
            "conference",
            "alliance",
            "combination",
            "section",
            "group",
        ]
    )
    generic_headings: list[str] = Field(
        default_factory=lambda: [
            "league table",
            "league tables",
            "final table",
            "final tables",
            "table",
            "tables",
            "league standings",
            "standings",
        ]
    )
    top_flight_titles: list[str] = Field(
        default_factory=lambda: ["premier league", "football league premier division"]
    )
    # only top flight while no Premier League heading exists on the page
    legacy_top_flight_titles: list[str] = Field(default_factory=lambda: ["first division"])
    min_section_level: int = 3
    max_section_level: int = 5


class WarSpan(BaseModel):
    name: str
    start: int
    end: int

    def __contains__(self, year: int) -> bool:
        return self.start <= year <= self.end


class MergeRules(BaseModel):
    war_spans: list[WarSpan] = Field(
        default_factory=lambda: [
            WarSpan(name="ww1", start=1915, end=1918),
            WarSpan(name="ww2", start=1940, end=1945),
        ]
    )
    # wider spans used to bucket excluded seasons in the merge report and skip overview fetches
    report_spans: list[WarSpan] = Field(
        default_factory=lambda: [
            WarSpan(name="ww1", start=1915, end=1919),
            WarSpan(name="ww2", start=1940, end=1946),
        ]
    )

    def is_war_year(self, year: int) -> bool:
        return any(year in span for span in self.war_spans)

    def report_bucket(self, year: int) -> str | None:
        for span in self.report_spans:
            if year in span:
                return span.name
        return None


DEFAULT_OUTCOME_RULES = OutcomeRules()

RSSSF_OUTCOME_RULES = OutcomeRules(
    relegated=[r"relegat", r"demoted to the", r"dropped to the", r"sent down to"],
    re_elected=[r"re-?elected"],
    reprieved=[r"repri(?:e)?ved from re-?election"],
    expansion=[r"expansion", r"new club", r"admitted", r"joined league", r"first time in the league"],
)

DEFAULT_HEADING_RULES = HeadingRules()

DEFAULT_MERGE_RULES = MergeRules()


class RuleSet(BaseModel):
    """Everything a `--rules` file may override; omitted sections keep their defaults."""

    outcome: OutcomeRules = Field(default_factory=OutcomeRules)
    rsssf: OutcomeRules = Field(default_factory=lambda: RSSSF_OUTCOME_RULES.model_copy(deep=True))
    heading: HeadingRules = Field(default_factory=HeadingRules)
    merge: MergeRules = Field(default_factory=MergeRules)


DEFAULT_RULE_SET = RuleSet()


RulesT = TypeVar("RulesT", bound=BaseModel)


def load_rules(path: str | Path | None, model: type[RulesT], default: RulesT) -> RulesT:
    """Load a rules override from JSON, falling back to the given default."""
    if path is None:
        return default
    return model.model_validate_json(Path(path).read_text(encoding="utf-8"))
