"""Search a docset through the static index its generator publishes.

No search API is called: the generator's pre-built index file is fetched
and filtered locally.

Probe order (first non-empty result list wins):

1. For each candidate base (see ``bases.build_search_bases``), for each
   known index path: MkDocs JSON indexes, then the Sphinx ``searchindex.js``.
2. Only when every index probe across every base came back empty:
   ``sitemap.xml`` at each base, substring match on ``<loc>`` entries.

Failed probes are expected (most sites publish at most one of these
files) and are recorded as ``ProbeOutcome`` errors, never raised.
"""

import html
import json
import re
from collections.abc import Callable
from urllib.parse import urljoin

from loguru import logger

from docset_mcp.docset.bases import build_search_bases
from docset_mcp.docset.types import (
    DocsetType,
    IndexCandidate,
    ProbeOutcome,
    SearchResult,
    coerce_docset_type,
)
from docset_mcp.errors import FetchFailure
from docset_mcp.fetch import Fetcher, get_default_fetcher, random_user_agent

SEARCH_INDEX_CANDIDATES: tuple[IndexCandidate, ...] = (
    IndexCandidate("search/search_index.json", "json"),
    IndexCandidate("searchindex.json", "json"),
    IndexCandidate("search.json", "json"),
    IndexCandidate("search-index.json", "json"),
    IndexCandidate("searchindex.js", "js"),
)

SITEMAP_PATH = "sitemap.xml"
SNIPPET_LENGTH = 200
SPHINX_MAX_RESULTS = 20
SPHINX_TERM_SCORE = 2
SPHINX_TITLE_SCORE = 3

INDEX_ACCEPT = "application/json, text/javascript, text/plain, text/html"
SITEMAP_ACCEPT = "application/xml, text/xml, */*"

_SPHINX_SET_INDEX_RE = re.compile(r"Search\.setIndex\(\s*(\{.*\})\s*\)", re.DOTALL)
_SPHINX_VAR_INDEX_RE = re.compile(r"\bvar\s+index\s*=\s*(\{.*\})", re.DOTALL)
_TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9_-]+")
_LOC_RE = re.compile(r"<loc>\s*(.*?)\s*</loc>", re.IGNORECASE | re.DOTALL)

Parser = Callable[[str, str, str], list[SearchResult]]


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------


def normalize_query(query: str) -> str:
    return (query or "").strip().lower()


def tokenize_query(query: str) -> list[str]:
    """Split a lower-cased query on anything but letters, digits, ``_`` and ``-``."""
    return [token for token in _TOKEN_SPLIT_RE.split(query.lower()) if token]


def index_candidates_for(docset_type: DocsetType | None) -> list[IndexCandidate]:
    """Index paths to probe, narrowed by an optional docset hint."""
    if docset_type == DocsetType.MKDOCS:
        return [c for c in SEARCH_INDEX_CANDIDATES if c.format == "json"]
    if docset_type == DocsetType.SPHINX:
        return [c for c in SEARCH_INDEX_CANDIDATES if c.format == "js"]
    return list(SEARCH_INDEX_CANDIDATES)


def _as_list(value) -> list:
    return value if isinstance(value, list) else []


def _as_text(value) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


# ---------------------------------------------------------------------------
# MkDocs: search/search_index.json
# ---------------------------------------------------------------------------


def parse_mkdocs_index(raw: str, base_url: str, query: str) -> list[SearchResult]:
    """Filter an MkDocs ``{"docs": [{title, text, location}]}`` index.

    Raises:
        ValueError: If *raw* is not JSON.
    """
    data = json.loads(raw)
    docs = data.get("docs") if isinstance(data, dict) else None
    if not isinstance(docs, list):
        return []

    results: list[SearchResult] = []
    for doc in docs:
        if not isinstance(doc, dict):
            continue
        title = _as_text(doc.get("title"))
        text = _as_text(doc.get("text"))
        if query not in title.lower() and query not in text.lower():
            continue
        location = _as_text(doc.get("location"))
        results.append(
            SearchResult(
                title=title or "Untitled",
                url=urljoin(base_url, location) if location else base_url,
                snippet=text[:SNIPPET_LENGTH],
                source="mkdocs",
            )
        )
    return results


# ---------------------------------------------------------------------------
# Sphinx: searchindex.js
# ---------------------------------------------------------------------------


def extract_sphinx_index(raw: str) -> dict | None:
    """Pull the JSON object out of ``Search.setIndex(...)`` / ``var index = ...``.

    Returns None when no index call is present.

    Raises:
        ValueError: If the embedded object is not valid JSON.
    """
    match = _SPHINX_SET_INDEX_RE.search(raw) or _SPHINX_VAR_INDEX_RE.search(raw)
    if not match:
        return None
    data = json.loads(match.group(1))
    return data if isinstance(data, dict) else None


def _posting_doc_ids(postings) -> list[int]:
    """Document ids in a ``terms`` entry: a bare id, or a list of ids / [id, ...]."""
    if isinstance(postings, bool):
        return []
    if isinstance(postings, int):
        return [postings]
    ids: list[int] = []
    if isinstance(postings, list):
        for entry in postings:
            if isinstance(entry, list) and entry:
                entry = entry[0]
            if isinstance(entry, int) and not isinstance(entry, bool):
                ids.append(entry)
    return ids


def score_sphinx_documents(data: dict, query: str) -> dict[int, int]:
    """Score each document index: +2 per term posting hit, +3 for a title/docname match."""
    docnames = _as_list(data.get("docnames"))
    titles = _as_list(data.get("titles"))
    terms = data.get("terms") or {}
    if not isinstance(terms, dict):
        terms = {}

    scores: dict[int, int] = {}
    for token in tokenize_query(query):
        for doc_id in _posting_doc_ids(terms.get(token)):
            scores[doc_id] = scores.get(doc_id, 0) + SPHINX_TERM_SCORE

    for doc_id in range(max(len(docnames), len(titles))):
        title = _as_text(titles[doc_id]) if doc_id < len(titles) else ""
        docname = _as_text(docnames[doc_id]) if doc_id < len(docnames) else ""
        if query in title.lower() or query in docname.lower():
            scores[doc_id] = scores.get(doc_id, 0) + SPHINX_TITLE_SCORE

    return scores


def _sphinx_page(docname: str, filename: str) -> str:
    """Relative page URL for a document.

    ``filenames`` holds built page names in some index flavours and source
    names (``intro.rst``) in stock Sphinx; only the former is a URL.
    """
    if filename and filename.lower().endswith((".html", ".htm")):
        return filename
    if docname:
        return f"{docname}.html"
    if filename:
        return f"{filename.rsplit('.', 1)[0]}.html"
    return ""


def parse_sphinx_index(raw: str, base_url: str, query: str) -> list[SearchResult]:
    """Rank documents of a Sphinx ``searchindex.js`` against *query*.

    Raises:
        ValueError: If the embedded index object is not valid JSON.
    """
    data = extract_sphinx_index(raw)
    if data is None:
        return []

    docnames = _as_list(data.get("docnames"))
    titles = _as_list(data.get("titles"))
    filenames = _as_list(data.get("filenames"))

    scores = score_sphinx_documents(data, query)
    ranked = sorted(
        (doc_id for doc_id, score in scores.items() if score > 0),
        key=lambda doc_id: (-scores[doc_id], doc_id),
    )[:SPHINX_MAX_RESULTS]

    results: list[SearchResult] = []
    for doc_id in ranked:
        docname = _as_text(docnames[doc_id]) if 0 <= doc_id < len(docnames) else ""
        filename = _as_text(filenames[doc_id]) if 0 <= doc_id < len(filenames) else ""
        page = _sphinx_page(docname, filename)
        if not page:
            continue
        title = _as_text(titles[doc_id]) if 0 <= doc_id < len(titles) else ""
        results.append(
            SearchResult(
                title=title or docname or page,
                url=urljoin(base_url, page),
                snippet="",
                source="sphinx",
            )
        )
    return results


# ---------------------------------------------------------------------------
# Sitemap fallback
# ---------------------------------------------------------------------------


def _last_segment(loc: str) -> str:
    segment = loc.rstrip("/").rsplit("/", 1)[-1]
    if not segment or segment.endswith(":"):
        return loc
    return segment


def parse_sitemap(raw: str, base_url: str, query: str) -> list[SearchResult]:
    """Substring-match ``<loc>`` entries of a sitemap."""
    results: list[SearchResult] = []
    for match in _LOC_RE.finditer(raw):
        loc = html.unescape(match.group(1))
        if not loc or query not in loc.lower():
            continue
        results.append(
            SearchResult(
                title=_last_segment(loc),
                url=urljoin(base_url, loc),
                snippet="",
                source="sitemap",
            )
        )
    return results


# ---------------------------------------------------------------------------
# Probe loop
# ---------------------------------------------------------------------------

_PARSERS: dict[str, Parser] = {
    "json": parse_mkdocs_index,
    "js": parse_sphinx_index,
}


async def probe(
    fetcher: Fetcher,
    url: str,
    headers: dict[str, str],
    parser: Parser,
    base_url: str,
    query: str,
) -> ProbeOutcome:
    """Fetch one candidate file and parse it into an outcome."""
    try:
        raw = await fetcher.fetch_text(url, headers)
    except FetchFailure as e:
        return ProbeOutcome(url=url, error=str(e))

    try:
        results = parser(raw, base_url, query)
    except (ValueError, TypeError) as e:
        return ProbeOutcome(url=url, error=f"Unparseable index: {e}")
    return ProbeOutcome(url=url, results=results)


async def search_documents(
    base_url: str,
    query: str,
    docset_type: DocsetType | str | None = None,
    fetcher: Fetcher | None = None,
    user_agent: Callable[[], str] | None = None,
) -> list[SearchResult]:
    """Search a documentation site through its published index or sitemap.

    Returns an empty list for a blank query (without network access) or
    when nothing matched after every candidate was tried.

    Raises:
        InvalidInput: If *base_url* is blank or has no host,
            or *docset_type* is not a known type.
    """
    bases = build_search_bases(base_url)
    normalized_query = normalize_query(query)
    if not normalized_query:
        return []

    hint = coerce_docset_type(docset_type)
    fetcher = fetcher or get_default_fetcher()
    agent = (user_agent or random_user_agent)()
    candidates = index_candidates_for(hint)

    index_headers = {"User-Agent": agent, "Accept": INDEX_ACCEPT}
    for base in bases:
        for candidate in candidates:
            outcome = await probe(
                fetcher,
                urljoin(base, candidate.path),
                index_headers,
                _PARSERS[candidate.format],
                base,
                normalized_query,
            )
            if outcome.found:
                logger.info(
                    f"Search '{normalized_query}': {len(outcome.results)} "
                    f"result(s) from {outcome.url}"
                )
                return outcome.results
            if outcome.error:
                logger.debug(f"Index probe {outcome.url}: {outcome.error}")

    sitemap_headers = {"User-Agent": agent, "Accept": SITEMAP_ACCEPT}
    for base in bases:
        outcome = await probe(
            fetcher,
            urljoin(base, SITEMAP_PATH),
            sitemap_headers,
            parse_sitemap,
            base,
            normalized_query,
        )
        if outcome.found:
            logger.info(
                f"Search '{normalized_query}': {len(outcome.results)} "
                f"sitemap result(s) from {outcome.url}"
            )
            return outcome.results
        if outcome.error:
            logger.debug(f"Sitemap probe {outcome.url}: {outcome.error}")

    logger.info(f"Search '{normalized_query}': no results under {base_url}")
    return []
