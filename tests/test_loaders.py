"""
Tests for the season runners, the document fetchers and the command line.

Runners are driven with `asyncio.run` against `FakeFetcher`; HTTP fetchers use `httpx.MockTransport`.
"""
import asyncio
import json

import httpx
import pytest

from src.footy.cli import expand_targets, main
from src.footy.loader.fetch import DocumentFetchError, LocalFileFetcher, RsssfFetcher, WikipediaFetcher
from src.footy.loader.overview import (
    build_season_overview,
    build_season_overview_for_slug,
    build_season_overview_slug,
    fetch_season_overview_tables,
)
from src.footy.loader.rsssf import (
    apply_template,
    build_season_range_urls,
    page_output_path,
    scrape_rsssf_range,
    season_parts,
    write_parsed_page,
)
from src.footy.loader.seasons import build_promotion_relegation, build_season_slug
from src.footy.loader.store import JsonDatasetStore
from src.footy.models.table import CompactTier
from src.footy.parse.fixed_width import parse_rsssf_page
from tests.pages import (
    RSSSF_PAGE,
    FakeFetcher,
    division_page_html,
    division_row,
    full_row,
    overview_page_html,
    overview_table_html,
)

SEASON_INFOBOX = """
<table class="infobox">
  <caption>The Football League</caption>
  <tr><th>Season</th><td>1897–98</td></tr>
  <tr><th>Relegated</th><td><a>Notts County</a></td></tr>
</table>"""

EXISTING_1900 = {
    "seasons": {
        "1900": {
            "seasonInfo": {"seasonSlug": "1900-01", "tableCount": 1},
            "tier1": {"table": [{"team": "Legacy FC"}]},
        }
    }
}


class TestOverviewRunner:
    """Test the overview page runner."""

    def test_slug(self):
        assert build_season_overview_slug(1950) == "1950–51_in_English_football"
        assert build_season_overview_slug(1999) == "1999–2000_in_English_football"

    def test_update_only_skips_existing_seasons(self, write_json):
        store = JsonDatasetStore(write_json("overview.json", EXISTING_1900))
        page = overview_page_html(
            ("Test League", overview_table_html("Rising Club", 40, "Promoted")),
            ("Second League", overview_table_html("Relegated Town", 10, "Relegated")),
        )
        fetcher = FakeFetcher({"1901–02_in_English_football": page})

        asyncio.run(build_season_overview(1900, 1901, store, fetcher, update_only=True))

        assert fetcher.calls == ["1901–02_in_English_football"]
        dataset = store.load()
        assert dataset.tier(1900, "tier1").table[0].team == "Legacy FC"
        info = dataset.tier(1901, "seasonInfo")
        assert info.promoted == ["Rising Club"]
        assert info.relegated == ["Relegated Town"]
        assert dataset.tier(1901, "tier2").metadata["title"] == "Second League"

    def test_force_update_keeps_existing_when_nothing_found(self, write_json):
        store = JsonDatasetStore(write_json("overview.json", EXISTING_1900))
        fetcher = FakeFetcher({})

        asyncio.run(build_season_overview(1900, 1900, store, fetcher, update_only=True, force_update=True))

        assert fetcher.calls == ["1900–01_in_English_football"]
        assert store.load().tier(1900, "tier1").table[0].team == "Legacy FC"

    def test_war_years_are_skipped(self, tmp_path):
        store = JsonDatasetStore(str(tmp_path / "overview.json"))
        fetcher = FakeFetcher({})

        dataset = asyncio.run(build_season_overview(1914, 1916, store, fetcher, ignore_war_years=True))

        assert fetcher.calls == ["1914–15_in_English_football"]
        assert dataset.sorted_season_keys() == ["1914"]
        assert dataset.tier(1914, "seasonInfo").metadata["tableCount"] == 0

    def test_single_slug(self, tmp_path):
        store = JsonDatasetStore(str(tmp_path / "overview.json"))
        slug = "1950–51_in_English_football"
        fetcher = FakeFetcher({slug: overview_page_html(("Second Division", overview_table_html("Preston", 57)))})

        season_key, record = asyncio.run(build_season_overview_for_slug(slug, store, fetcher))

        assert season_key == "1950"
        assert record["tier1"].table[0].points == 57
        assert store.load().sorted_season_keys() == ["1950"]


class TestSeasonsRunner:
    """Test the division page runner."""

    def test_slug(self):
        assert build_season_slug(1897) == "1897-98_Football_League"
        assert build_season_slug(1899) == "1899-1900_Football_League"

    def test_builds_tier1_and_tier2(self, tmp_path):
        first = division_row(1, "Sheffield United", 42) + division_row(16, "Oldham", 20, "Relegated to Second Division")
        second = division_row(1, "Sunderland", 44, "Promoted to First Division") + division_row(2, "Burnley", 30)
        fetcher = FakeFetcher({"1897-98_Football_League": division_page_html(first, second, SEASON_INFOBOX)})
        store = JsonDatasetStore(str(tmp_path / "seasons.json"))

        asyncio.run(build_promotion_relegation(1897, 1898, store, fetcher))

        dataset = store.load()
        tier1 = dataset.tier(1897, "tier1")
        assert tier1.season == 1897
        assert tier1.relegated == ["Notts County", "Oldham"]
        assert tier1.promoted == ["Sunderland"]
        assert dataset.tier(1897, "tier2").promoted == ["Sunderland"]

        missing = dataset.tier(1898, "tier1")
        assert not missing.has_data()
        assert missing.metadata["seasonSlug"] == "1898-99_Football_League"


class TestRsssfRunner:
    """Test season URL templating and the RSSSF range runner."""

    def test_season_parts(self):
        parts = season_parts(1999)
        assert parts["seasonSlug"] == "1999-00"
        assert parts["seasonSlugFull"] == "1999-2000"
        assert parts["seasonLabel"] == "1999/2000"
        assert parts["seasonSlugCompact"] == "199900"

    def test_apply_template_keeps_unknown_fields(self):
        assert apply_template("{seasonSlug}/{other}", season_parts(1950)) == "1950-51/{other}"

    def test_range_urls(self):
        sources = build_season_range_urls(1950, 1951, "https://example.org/{seasonSlugUnderscore}.html")
        assert [source.url for source in sources] == [
            "https://example.org/1950_51.html",
            "https://example.org/1951_52.html",
        ]
        with pytest.raises(ValueError):
            build_season_range_urls(1952, 1951)

    def test_scrape_range_with_placeholder(self, tmp_path):
        first_url = "https://www.rsssf.org/engpaul/FLA/1950-51.html"
        fetcher = FakeFetcher({first_url: RSSSF_PAGE})
        store = JsonDatasetStore(str(tmp_path / "rsssf.json"))

        asyncio.run(scrape_rsssf_range(1950, 1951, store, fetcher))

        dataset = store.load()
        assert fetcher.calls == [first_url, "https://www.rsssf.org/engpaul/FLA/1951-52.html"]
        assert dataset.tier(1950, "tier1").relegated == ["Everton"]
        assert dataset.tier(1950, "tier1").metadata["sourceUrl"] == first_url
        assert isinstance(dataset.tier(1950, "tier2"), CompactTier)
        assert not dataset.tier(1951, "tier1").has_data()

    def test_parsed_page_output(self, tmp_path):
        parsed = parse_rsssf_page(RSSSF_PAGE, source="local.html")
        path = page_output_path(parsed, str(tmp_path))
        assert path.endswith("rsssf-1950-51.json")

        write_parsed_page(parsed, path)
        with open(path, "r", encoding="utf-8") as fh:
            body = json.load(fh)
        assert body["season_slug"] == "1950-51"
        assert body["competitions"][0]["rows"][3]["entry"]["team"] == "Everton"


class TestFetchers:
    """Test fetchers against mocked transports and local files."""

    def test_wikipedia_fetcher(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["page"] == "1950–51_in_English_football"
            assert request.url.params["action"] == "parse"
            return httpx.Response(200, json={"parse": {"title": "1950–51", "text": "<p>page</p>"}})

        async def _run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await WikipediaFetcher(client, sleep_sec=0).fetch("1950–51_in_English_football")

        assert asyncio.run(_run()) == "<p>page</p>"

    def test_wikipedia_api_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"error": {"code": "missingtitle", "info": "The page does not exist."}})

        async def _run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await WikipediaFetcher(client, sleep_sec=0).fetch("Nowhere")

        with pytest.raises(DocumentFetchError) as excinfo:
            asyncio.run(_run())
        assert excinfo.value.identifier == "Nowhere"
        assert excinfo.value.reason == "The page does not exist."

    def test_unexpected_wikipedia_bodies_are_wrapped(self):
        bodies = [
            httpx.Response(200, text="<html>maintenance</html>"),
            httpx.Response(200, json={"batchcomplete": True}),
            httpx.Response(200, json=["not", "an", "object"]),
            httpx.Response(200, json={"error": "rate limited"}),
        ]

        async def _run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(lambda request: bodies.pop(0))) as client:
                fetcher = WikipediaFetcher(client, sleep_sec=0)
                for _ in range(4):
                    with pytest.raises(DocumentFetchError):
                        await fetcher.fetch("1950–51_in_English_football")

        asyncio.run(_run())

    def test_runner_treats_bad_body_as_no_tables(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>maintenance</html>")

        async def _run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                fetcher = WikipediaFetcher(client, sleep_sec=0)
                return await fetch_season_overview_tables(fetcher, "1950–51_in_English_football")

        assert asyncio.run(_run()) == []

    def test_http_error_is_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        async def _run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await RsssfFetcher(client, sleep_sec=0).fetch("https://example.org/page.html")

        with pytest.raises(DocumentFetchError):
            asyncio.run(_run())

    def test_rsssf_fetcher_decodes_windows_1252(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<pre>Cardiff caf\xe9</pre>", headers={"content-type": "text/html"})

        async def _run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await RsssfFetcher(client, sleep_sec=0).fetch("https://example.org/page.html")

        assert asyncio.run(_run()) == "<pre>Cardiff café</pre>"

    def test_local_file_fetcher(self, tmp_path):
        (tmp_path / "page.html").write_text("<p>Málaga</p>", encoding="utf-8")
        fetcher = LocalFileFetcher(str(tmp_path))

        assert asyncio.run(fetcher.fetch("page")) == "<p>Málaga</p>"
        with pytest.raises(DocumentFetchError):
            asyncio.run(fetcher.fetch("missing.html"))


class TestCli:
    """Test the command line entry point end to end on local files."""

    def test_verify_exit_codes(self, tmp_path, write_json):
        write_json("clean.json", {"seasons": {"1950": {"tier1": [full_row(1, "Alpha")]}}})
        assert main(["verify", str(tmp_path), "--fail-on-issues"]) == 0

        write_json("broken.json", {"seasons": {"1951": {"tier1": []}}})
        assert main(["verify", str(tmp_path), "--fail-on-issues"]) == 1
        assert main(["verify", str(tmp_path)]) == 0

    def test_verify_without_files(self, tmp_path):
        assert main(["verify", str(tmp_path / "nothing")]) == 1

    def test_expand_targets(self, tmp_path, write_json):
        first = write_json("a.json", {})
        (tmp_path / "notes.txt").write_text("x", encoding="utf-8")
        assert expand_targets([str(tmp_path), first]) == [first]

    def test_combine(self, tmp_path, write_json):
        first = write_json("a.json", {"seasons": {"1915": {"tier1": [full_row(1, "Alpha")]}}})
        second = write_json("b.json", {"seasons": {"1950": {"tier1": [full_row(1, "Beta")]}}})
        output = tmp_path / "merged.json"

        assert main(["combine", first, second, "--output", str(output)]) == 0
        assert list(json.loads(output.read_text(encoding="utf-8"))["seasons"]) == ["1950"]

    def test_rules_file_overrides_war_spans(self, tmp_path, write_json):
        rules = write_json("rules.json", {"merge": {"war_spans": []}})
        first = write_json("a.json", {"seasons": {"1915": {"tier1": [full_row(1, "Alpha")]}}})
        output = tmp_path / "merged.json"

        assert main(["--rules", rules, "combine", first, "--output", str(output)]) == 0
        assert list(json.loads(output.read_text(encoding="utf-8"))["seasons"]) == ["1915"]

    def test_rsssf_from_file(self, tmp_path):
        page = tmp_path / "1950-51.html"
        page.write_bytes(RSSSF_PAGE.encode("utf-8"))
        output = tmp_path / "parsed.json"

        assert main(["rsssf", "--from-file", str(page), "--output", str(output), "--pretty"]) == 0
        body = json.loads(output.read_text(encoding="utf-8"))
        assert [c["league"] for c in body["competitions"]] == ["First Division", "Second Division"]

    def test_rsssf_skips_unreadable_files(self, tmp_path):
        page = tmp_path / "1950-51.html"
        page.write_bytes(RSSSF_PAGE.encode("utf-8"))
        out_dir = tmp_path / "out"

        code = main([
            "rsssf",
            "--from-file", str(tmp_path / "missing.html"),
            "--from-file", str(page),
            "--output", str(out_dir),
        ])

        assert code == 1
        assert [p.name for p in out_dir.iterdir()] == ["rsssf-1950-51.json"]

    def test_rsssf_needs_complete_range(self):
        assert main(["rsssf", "--start", "1950"]) == 1
