"""Document resolution: normalize, fetch with fallbacks, extract, convert.

Fetch fallback order for one request:

1. The normalized target URL.
2. The target with a trailing slash, when it has none and no file extension
   (directory-style sites that 404 without the slash).
3. The URL as the caller wrote it, when normalization changed it
   (sites that only serve the ``.html`` form).

The first candidate that fetches is processed; if every candidate fails the
last ``FetchFailure`` is raised.
"""

from collections.abc import Callable
from urllib.parse import urlsplit

from loguru import logger

from docset_mcp.docset.detect import detect_docset_type
from docset_mcp.docset.extract import extract_doc_content
from docset_mcp.docset.markdown import html_to_markdown
from docset_mcp.docset.types import (
    DocsetType,
    DocumentationRequest,
    ResolvedDocument,
    coerce_docset_type,
)
from docset_mcp.docset.urls import looks_like_file, normalize_doc_url, resolve_target_url
from docset_mcp.errors import FetchFailure
from docset_mcp.fetch import Fetcher, get_default_fetcher, random_user_agent

HTML_ACCEPT = "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8"


def fetch_candidates(resolved_url: str, target_url: str) -> list[str]:
    """Ordered, de-duplicated URLs to try for one document."""
    candidates = [target_url]
    if not target_url.endswith("/") and not looks_like_file(urlsplit(target_url).path):
        candidates.append(f"{target_url}/")
    if resolved_url != target_url:
        candidates.append(resolved_url)
    return list(dict.fromkeys(candidates))


def with_title(markdown: str, title: str) -> str:
    """Prepend ``# title`` unless the Markdown already opens with it."""
    if title and not markdown.startswith(f"# {title}"):
        return f"# {title}\n\n{markdown}"
    return markdown


def render_document(
    html: str, url: str, docset_type: DocsetType | None = None
) -> ResolvedDocument:
    """Turn fetched HTML into a ``ResolvedDocument``.

    Uses *docset_type* when given, otherwise detects it. When the extracted
    fragment converts to nothing, the whole page is converted instead and
    the type is reported as ``html``.
    """
    resolved_type = docset_type or detect_docset_type(html, url)
    extracted = extract_doc_content(html, resolved_type)
    markdown = html_to_markdown(extracted.content_html)

    if not markdown:
        logger.debug(f"Extraction yielded no content for {url}, converting whole page")
        markdown = html_to_markdown(html)
        resolved_type = DocsetType.HTML

    return ResolvedDocument(
        markdown=with_title(markdown, extracted.title),
        url=url,
        docset_type=resolved_type,
    )


async def resolve_document(
    request: DocumentationRequest,
    fetcher: Fetcher | None = None,
    user_agent: Callable[[], str] | None = None,
) -> ResolvedDocument:
    """Fetch one documentation page and render it as Markdown.

    Raises:
        InvalidInput: If the base URL is blank or unparseable, or the
            docset type hint is unknown.
        FetchFailure: If every fetch candidate failed.
    """
    resolved_url = resolve_target_url(request.base_url, request.path)
    hint = coerce_docset_type(request.docset_type)
    target_url = normalize_doc_url(resolved_url)
    fetcher = fetcher or get_default_fetcher()
    headers = {
        "User-Agent": (user_agent or random_user_agent)(),
        "Accept": HTML_ACCEPT,
    }

    last_error: FetchFailure | None = None
    for candidate in fetch_candidates(resolved_url, target_url):
        try:
            html = await fetcher.fetch_text(candidate, headers)
        except FetchFailure as e:
            logger.debug(f"Fetch failed for {candidate}: {e}")
            last_error = e
            continue

        document = render_document(html, candidate, hint)
        logger.info(
            f"Resolved {candidate} as {document.docset_type} "
            f"({len(document.markdown)} chars)"
        )
        return document

    assert last_error is not None
    logger.warning(f"All fetch candidates failed for {target_url}: {last_error}")
    raise last_error
