"""Docset generator detection.

Detection is an ordered chain of rules, evaluated first-match-wins:

1. First-party hosts (Apple) short-circuit everything else.
2. ``<meta name="generator">`` keywords.
3. Generator-specific CSS class/id markers in the page.
4. Package-documentation hosts in the URL.
5. ``generic``.

Each rule takes the raw HTML, the lower-cased generator string and the
URL, and returns a ``DocsetType`` or ``None``. Missing or malformed
markup simply fails a rule.
"""

import re
from collections.abc import Callable
from urllib.parse import urlsplit

from docset_mcp.docset.types import DocsetType

_META_TAG_RE = re.compile(r"<meta\b[^>]*>", re.IGNORECASE)
_META_NAME_RE = re.compile(r"""\bname\s*=\s*["']?generator["']?""", re.IGNORECASE)
_META_CONTENT_RE = re.compile(
    r"""\bcontent\s*=\s*(?:"([^"]*)"|'([^']*)')""", re.IGNORECASE
)

_APPLE_HOSTS = ("developer.apple.com", "sosumi.ai")

# Generator meta keywords, in DocsetType declaration order.
GENERATOR_KEYWORDS: tuple[tuple[DocsetType, str], ...] = (
    (DocsetType.DOCUSAURUS, "docusaurus"),
    (DocsetType.MKDOCS, "mkdocs"),
    (DocsetType.SPHINX, "sphinx"),
    (DocsetType.TYPEDOC, "typedoc"),
    (DocsetType.JSDOC, "jsdoc"),
    (DocsetType.RUSTDOC, "rustdoc"),
    (DocsetType.PDOC, "pdoc"),
)

# Markup fingerprints, same order as the keywords (godoc has no meta tag).
HTML_MARKERS: tuple[tuple[DocsetType, tuple[str, ...]], ...] = (
    (DocsetType.DOCUSAURUS, ('id="__docusaurus"', "data-docusaurus")),
    (DocsetType.MKDOCS, ("md-content", "data-md-color-scheme")),
    (DocsetType.SPHINX, ("sphinxsidebar", "wy-nav-side", "documentation_options.js")),
    (DocsetType.TYPEDOC, ("tsd-kind", "tsd-page-title")),
    (DocsetType.JSDOC, ("jsdoc", 'class="page" id="main"')),
    (DocsetType.RUSTDOC, ("rustdoc", "rustdoc-search")),
    (DocsetType.GODOC, ("pkg-overview",)),
    (DocsetType.PDOC, ("pdoc", "module-list")),
)

URL_MARKERS: tuple[tuple[DocsetType, tuple[str, ...]], ...] = (
    (DocsetType.GODOC, ("pkg.go.dev", "godoc.org")),
    (DocsetType.RUSTDOC, ("docs.rs",)),
    (DocsetType.SPHINX, ("readthedocs.io", "readthedocs.org")),
)


def get_generator(html: str) -> str:
    """Return the lower-cased ``<meta name="generator">`` content, or ''."""
    for tag in _META_TAG_RE.findall(html or ""):
        if not _META_NAME_RE.search(tag):
            continue
        match = _META_CONTENT_RE.search(tag)
        if match:
            return (match.group(1) or match.group(2) or "").strip().lower()
    return ""


def _hostname(url: str) -> str:
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def match_first_party_host(html: str, generator: str, url: str) -> DocsetType | None:
    host = _hostname(url)
    if any(host == h or host.endswith(f".{h}") for h in _APPLE_HOSTS):
        return DocsetType.APPLE
    return None


def match_generator_meta(html: str, generator: str, url: str) -> DocsetType | None:
    if not generator:
        return None
    for docset_type, keyword in GENERATOR_KEYWORDS:
        if keyword in generator:
            return docset_type
    return None


def match_html_markers(html: str, generator: str, url: str) -> DocsetType | None:
    if not html:
        return None
    for docset_type, needles in HTML_MARKERS:
        if any(needle in html for needle in needles):
            return docset_type
    return None


def match_url_markers(html: str, generator: str, url: str) -> DocsetType | None:
    lower_url = (url or "").lower()
    for docset_type, needles in URL_MARKERS:
        if any(needle in lower_url for needle in needles):
            return docset_type
    return None


DetectionRule = Callable[[str, str, str], DocsetType | None]

DETECTION_RULES: tuple[DetectionRule, ...] = (
    match_first_party_host,
    match_generator_meta,
    match_html_markers,
    match_url_markers,
)


def detect_docset_type(html: str, url: str) -> DocsetType:
    """Classify a fetched page into a ``DocsetType``."""
    html = html or ""
    generator = get_generator(html)
    for rule in DETECTION_RULES:
        detected = rule(html, generator, url)
        if detected is not None:
            return detected
    return DocsetType.GENERIC
