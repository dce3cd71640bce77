"""Tests for src/docset_mcp/docset/search.py — static index search."""

import json

import httpx
import pytest

from docset_mcp.docset.search import (
    SEARCH_INDEX_CANDIDATES,
    parse_mkdocs_index,
    parse_sitemap,
    parse_sphinx_index,
    probe,
    score_sphinx_documents,
    search_documents,
    tokenize_query,
)
from docset_mcp.errors import InvalidInput
from docset_mcp.fetch import HttpFetcher

MKDOCS_INDEX = json.dumps(
    {
        "docs": [
            {"location": "install/", "title": "Install", "text": "Use pip"},
            {"location": "usage/", "title": "Usage", "text": "Run the tool"},
        ]
    }
)


def sphinx_js(data: dict) -> str:
    return f"Search.setIndex({json.dumps(data)})"


SPHINX_DATA = {
    "docnames": ["index", "api/client", "tutorial"],
    "filenames": ["index.rst", "api/client.rst", "tutorial.rst"],
    "titles": ["Welcome", "Client API", "Tutorial"],
    "terms": {"client": [1, 2], "session": [[1, 3], [2, 1]], "welcome": 0},
}
SPHINX_INDEX = sphinx_js(SPHINX_DATA)

SITEMAP = """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>https://docs.example.com/</loc></url>
  <url><loc>https://docs.example.com/guide/installation/</loc></url>
  <url><loc>https://docs.example.com/guide/usage/?a=1&amp;b=2</loc></url>
</urlset>
"""


# -----------------------------------------------------------------------
# search_documents
# -----------------------------------------------------------------------


class TestSearchDocuments:
    async def test_mkdocs_index(self, fake_fetcher, fixed_user_agent):
        fetcher = fake_fetcher(
            {"https://docs.example.com/search/search_index.json": MKDOCS_INDEX}
        )
        results = await search_documents(
            "https://docs.example.com", "install", fetcher=fetcher, user_agent=fixed_user_agent
        )
        assert [r.to_dict() for r in results] == [
            {
                "title": "Install",
                "url": "https://docs.example.com/install/",
                "snippet": "Use pip",
                "source": "mkdocs",
            }
        ]
        assert fetcher.calls == ["https://docs.example.com/search/search_index.json"]
        assert fetcher.headers[0]["User-Agent"] == "docset-tests/1.0"

    async def test_query_is_trimmed_and_lowercased(self, fake_fetcher, fixed_user_agent):
        fetcher = fake_fetcher(
            {"https://docs.example.com/search/search_index.json": MKDOCS_INDEX}
        )
        results = await search_documents(
            "https://docs.example.com", "  INSTALL ", fetcher=fetcher, user_agent=fixed_user_agent
        )
        assert [r.title for r in results] == ["Install"]

    async def test_versioned_base_probes_version_root_first(
        self, fake_fetcher, fixed_user_agent
    ):
        fetcher = fake_fetcher(
            {"https://docs.example.com/en/stable/searchindex.js": SPHINX_INDEX}
        )
        results = await search_documents(
            "https://docs.example.com/en/stable/reference/foo/",
            "client",
            docset_type="sphinx",
            fetcher=fetcher,
            user_agent=fixed_user_agent,
        )
        assert fetcher.calls[0] == "https://docs.example.com/en/stable/searchindex.js"
        assert len(fetcher.calls) == 1
        assert results[0].url == "https://docs.example.com/en/stable/api/client.html"
        assert all(r.source == "sphinx" for r in results)

    async def test_sitemap_fallback(self, fake_fetcher, fixed_user_agent):
        fetcher = fake_fetcher({"https://docs.example.com/sitemap.xml": SITEMAP})
        results = await search_documents(
            "https://docs.example.com", "install", fetcher=fetcher, user_agent=fixed_user_agent
        )
        assert [r.to_dict() for r in results] == [
            {
                "title": "installation",
                "url": "https://docs.example.com/guide/installation/",
                "snippet": "",
                "source": "sitemap",
            }
        ]
        assert fetcher.calls[-1] == "https://docs.example.com/sitemap.xml"
        assert "application/xml" in fetcher.headers[-1]["Accept"]

    async def test_blank_query_makes_no_calls(self, fake_fetcher):
        fetcher = fake_fetcher()
        assert await search_documents("https://docs.example.com", "   ", fetcher=fetcher) == []
        assert fetcher.calls == []

    async def test_blank_base_rejected(self, fake_fetcher):
        fetcher = fake_fetcher()
        with pytest.raises(InvalidInput):
            await search_documents("", "install", fetcher=fetcher)
        with pytest.raises(InvalidInput):
            await search_documents(" ", "", fetcher=fetcher)
        assert fetcher.calls == []

    async def test_unknown_hint_rejected(self, fake_fetcher):
        fetcher = fake_fetcher()
        with pytest.raises(InvalidInput):
            await search_documents(
                "https://docs.example.com", "install", docset_type="hugo", fetcher=fetcher
            )
        assert fetcher.calls == []

    async def test_first_hit_short_circuits(self, fake_fetcher, fixed_user_agent):
        fetcher = fake_fetcher(
            {
                "https://docs.example.com/searchindex.json": MKDOCS_INDEX,
                "https://docs.example.com/search.json": MKDOCS_INDEX,
                "https://docs.example.com/sitemap.xml": SITEMAP,
            }
        )
        await search_documents(
            "https://docs.example.com", "usage", fetcher=fetcher, user_agent=fixed_user_agent
        )
        assert fetcher.calls == [
            "https://docs.example.com/search/search_index.json",
            "https://docs.example.com/searchindex.json",
        ]

    async def test_full_probe_order_when_nothing_matches(
        self, fake_fetcher, fixed_user_agent
    ):
        fetcher = fake_fetcher()
        results = await search_documents(
            "https://docs.example.com/guide/intro.html",
            "install",
            fetcher=fetcher,
            user_agent=fixed_user_agent,
        )
        assert results == []
        bases = ["https://docs.example.com/guide/", "https://docs.example.com/"]
        expected = [
            f"{base}{candidate.path}"
            for base in bases
            for candidate in SEARCH_INDEX_CANDIDATES
        ] + [f"{base}sitemap.xml" for base in bases]
        assert fetcher.calls == expected

    async def test_empty_index_falls_through(self, fake_fetcher, fixed_user_agent):
        fetcher = fake_fetcher(
            {
                "https://docs.example.com/search/search_index.json": MKDOCS_INDEX,
                "https://docs.example.com/sitemap.xml": SITEMAP,
            }
        )
        results = await search_documents(
            "https://docs.example.com", "installation", fetcher=fetcher, user_agent=fixed_user_agent
        )
        assert [r.source for r in results] == ["sitemap"]

    async def test_mkdocs_hint_skips_sphinx_index(self, fake_fetcher, fixed_user_agent):
        fetcher = fake_fetcher()
        await search_documents(
            "https://docs.example.com",
            "x",
            docset_type="mkdocs",
            fetcher=fetcher,
            user_agent=fixed_user_agent,
        )
        assert not any(call.endswith(".js") for call in fetcher.calls)
        assert fetcher.calls[-1].endswith("sitemap.xml")

    async def test_invalid_json_falls_through(self, fake_fetcher, fixed_user_agent):
        fetcher = fake_fetcher(
            {
                "https://docs.example.com/search/search_index.json": "<html>not json</html>",
                "https://docs.example.com/searchindex.json": MKDOCS_INDEX,
            }
        )
        results = await search_documents(
            "https://docs.example.com", "install", fetcher=fetcher, user_agent=fixed_user_agent
        )
        assert [r.title for r in results] == ["Install"]


# -----------------------------------------------------------------------
# probe
# -----------------------------------------------------------------------


class TestProbe:
    async def test_fetch_failure_recorded(self, fake_fetcher):
        outcome = await probe(
            fake_fetcher(),
            "https://docs.example.com/search.json",
            {},
            parse_mkdocs_index,
            "https://docs.example.com/",
            "x",
        )
        assert not outcome.found
        assert "404" in outcome.error

    async def test_parse_failure_recorded(self, fake_fetcher):
        url = "https://docs.example.com/searchindex.js"
        outcome = await probe(
            fake_fetcher({url: "Search.setIndex({broken})"}),
            url,
            {},
            parse_sphinx_index,
            "https://docs.example.com/",
            "x",
        )
        assert not outcome.found
        assert outcome.error.startswith("Unparseable index")

    async def test_results(self, fake_fetcher):
        url = "https://docs.example.com/search.json"
        outcome = await probe(
            fake_fetcher({url: MKDOCS_INDEX}),
            url,
            {},
            parse_mkdocs_index,
            "https://docs.example.com/",
            "usage",
        )
        assert outcome.found
        assert outcome.error is None
        assert outcome.results[0].url == "https://docs.example.com/usage/"


# -----------------------------------------------------------------------
# Parsers
# -----------------------------------------------------------------------


class TestParseMkdocsIndex:
    def test_missing_fields(self):
        raw = json.dumps({"docs": [{"text": "install guide"}, "junk", {"title": None}]})
        results = parse_mkdocs_index(raw, "https://docs.example.com/", "install")
        assert len(results) == 1
        assert results[0].title == "Untitled"
        assert results[0].url == "https://docs.example.com/"

    def test_snippet_truncated(self):
        raw = json.dumps({"docs": [{"title": "Long", "text": "word " * 100, "location": "l/"}]})
        results = parse_mkdocs_index(raw, "https://docs.example.com/", "long")
        assert len(results[0].snippet) == 200

    def test_no_docs_key(self):
        assert parse_mkdocs_index("[]", "https://docs.example.com/", "x") == []
        assert parse_mkdocs_index("{}", "https://docs.example.com/", "x") == []

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError):
            parse_mkdocs_index("not json", "https://docs.example.com/", "x")


class TestParseSphinxIndex:
    def test_ranking(self):
        results = parse_sphinx_index(SPHINX_INDEX, "https://docs.example.com/", "client")
        # client API: +2 term, +3 title/docname; tutorial: +2 term only
        assert [r.title for r in results] == ["Client API", "Tutorial"]
        assert results[0].url == "https://docs.example.com/api/client.html"
        assert results[0].snippet == ""

    def test_nested_postings(self):
        scores = score_sphinx_documents(SPHINX_DATA, "session")
        assert scores == {1: 2, 2: 2}

    def test_multi_token_query(self):
        scores = score_sphinx_documents(SPHINX_DATA, "client session")
        assert scores[1] == 4
        assert scores[2] == 4

    def test_var_index_variant(self):
        raw = "var index = " + json.dumps(
            {"docnames": ["intro"], "titles": ["Intro"], "terms": {}}
        )
        results = parse_sphinx_index(raw, "https://docs.example.com/en/latest/", "intro")
        assert results[0].url == "https://docs.example.com/en/latest/intro.html"

    def test_html_filenames_used_directly(self):
        raw = sphinx_js(
            {"docnames": ["intro"], "filenames": ["intro/index.html"], "titles": ["Intro"]}
        )
        results = parse_sphinx_index(raw, "https://docs.example.com/", "intro")
        assert results[0].url == "https://docs.example.com/intro/index.html"

    def test_capped_at_twenty(self):
        count = 30
        raw = sphinx_js(
            {
                "docnames": [f"page{i}" for i in range(count)],
                "titles": [f"Page {i}" for i in range(count)],
                "terms": {"page": list(range(count))},
            }
        )
        results = parse_sphinx_index(raw, "https://docs.example.com/", "page")
        assert len(results) == 20
        assert results[0].title == "Page 0"

    def test_no_index_call(self):
        assert parse_sphinx_index("console.log(1)", "https://docs.example.com/", "x") == []

    def test_malformed_json_raises(self):
        with pytest.raises(ValueError):
            parse_sphinx_index("Search.setIndex({oops})", "https://docs.example.com/", "x")


class TestParseSitemap:
    def test_entities_unescaped(self):
        results = parse_sitemap(SITEMAP, "https://docs.example.com/", "usage")
        assert results[0].url == "https://docs.example.com/guide/usage/?a=1&b=2"

    def test_title_is_last_segment(self):
        results = parse_sitemap(SITEMAP, "https://docs.example.com/", "installation")
        assert results[0].title == "installation"

    def test_no_matches(self):
        assert parse_sitemap(SITEMAP, "https://docs.example.com/", "missing") == []


def test_tokenize_query():
    assert tokenize_query("Async  IO, event-loop!") == ["async", "io", "event-loop"]
    assert tokenize_query("  ") == []


async def test_unencodable_host_returns_no_results():
    fetcher = HttpFetcher(
        min_interval=0,
        allow_private_hosts=False,
        transport=httpx.MockTransport(lambda request: httpx.Response(404)),
    )
    results = await search_documents(
        "https://" + "a" * 64 + ".example.com/docs/", "x", fetcher=fetcher
    )
    assert results == []
