"""Main-content extraction from documentation pages."""

from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag
from loguru import logger

from docset_mcp.docset.types import DocsetType

# Preferred content roots per generator, most specific first.
SELECTORS_BY_TYPE: dict[DocsetType, tuple[str, ...]] = {
    DocsetType.APPLE: (),
    DocsetType.DOCUSAURUS: ("main article", ".theme-doc-markdown", ".markdown"),
    DocsetType.MKDOCS: (".md-content__inner", ".md-content", "main"),
    DocsetType.SPHINX: ("div[role='main']", ".document", "#content"),
    DocsetType.TYPEDOC: ("#main-content", ".tsd-panel", "main"),
    DocsetType.JSDOC: ("#main", "section#main", ".page"),
    DocsetType.RUSTDOC: ("main", "#main-content", ".docblock"),
    DocsetType.GODOC: ("main", "#pkg-overview", "#pkg-index"),
    DocsetType.PDOC: ("main", "#content", ".pdoc"),
    DocsetType.GENERIC: ("article", "main", "div[role='main']", "#content", ".content"),
    DocsetType.HTML: (),
}

FALLBACK_SELECTORS: tuple[str, ...] = (
    "article",
    "main",
    "div[role='main']",
    "#content",
    ".content",
    "body",
)

# Boilerplate removed from inside the chosen root.
STRIP_SELECTORS: tuple[str, ...] = (
    "nav",
    "header",
    "footer",
    "aside",
    "form",
    "button",
    "script",
    "style",
    "noscript",
    "svg",
    ".toc",
    ".table-of-contents",
    ".breadcrumbs",
    ".breadcrumb",
    ".pagination",
    ".sidebar",
    ".theme-doc-sidebar-container",
    ".theme-doc-toc",
    ".theme-doc-toc-mobile",
    ".md-sidebar",
    ".wy-nav-side",
    ".rst-versions",
    # Permalink glyphs next to headings (Sphinx/MkDocs "¶", Docusaurus "#")
    ".headerlink",
    ".hash-link",
)


@dataclass(frozen=True)
class ExtractedContent:
    title: str
    content_html: str


def find_main_content(soup: BeautifulSoup, docset_type: DocsetType) -> Tag | None:
    """Return the first node matched by the type's selectors, then the fallbacks."""
    selectors = SELECTORS_BY_TYPE.get(docset_type, ()) + FALLBACK_SELECTORS
    for selector in selectors:
        node = soup.select_one(selector)
        if node is not None:
            return node
    # Bare fragments have no <body>; the parsed document itself is the root.
    return soup if soup.contents else None


def remove_unwanted(root: Tag) -> int:
    """Detach every denylisted node below *root*. Returns the count removed."""
    removed = 0
    for selector in STRIP_SELECTORS:
        for node in root.select(selector):
            node.extract()
            removed += 1
    return removed


def _text(node: Tag | None) -> str:
    if node is None:
        return ""
    return " ".join(node.get_text(" ", strip=True).split())


def extract_doc_content(html: str, docset_type: DocsetType) -> ExtractedContent:
    """Select the article body of a page and strip navigation chrome.

    Title is the first ``<h1>``, else ``<title>``, else empty. An absent or
    empty root yields an empty title and empty content so the caller can
    fall back to the whole page.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    root = find_main_content(soup, docset_type)
    if root is None:
        return ExtractedContent(title="", content_html="")

    removed = remove_unwanted(root)
    content_html = root.decode_contents().strip()
    if not content_html:
        logger.debug(f"Empty content root for docset type {docset_type}")
        return ExtractedContent(title="", content_html="")

    title = _text(soup.find("h1")) or _text(soup.find("title"))
    logger.debug(f"Extracted content ({len(content_html)} chars, {removed} nodes stripped)")
    return ExtractedContent(title=title, content_html=content_html)
