"""docset MCP Server - Main server definition."""

import asyncio
import functools
import json
import sys

from loguru import logger
from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from docset_mcp.config import settings
from docset_mcp.docset import DocumentationRequest, resolve_document, search_documents
from docset_mcp.docset.types import HINTABLE_TYPES
from docset_mcp.errors import DocsetError
from docset_mcp.security import wrap_external_content

# Configure logging (stdout belongs to the stdio transport)
logger.remove()
logger.add(sys.stderr, level=settings.log_level)

_DOCSET_HINTS = ", ".join(t.value for t in HINTABLE_TYPES)

mcp = FastMCP(
    name="docset",
    instructions=(
        "Documentation fetcher for arbitrary documentation sites. "
        "Use `fetch_documentation` to read a page as Markdown. "
        "Use `search_documentation` to search a site's published search "
        "index or sitemap. Generators (Docusaurus, MkDocs, Sphinx, TypeDoc, "
        "JSDoc, rustdoc, godoc, pdoc) are detected automatically."
    ),
)


def _wrap_tool(tool_name: str):
    """Decorator to wrap tool results with untrusted-content markers.

    Error responses are passed through unwrapped.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            result = await func(*args, **kwargs)
            return wrap_external_content(tool_name, result)

        return wrapper

    return decorator


async def _with_timeout(coro):
    """Await *coro* under ``settings.tool_timeout`` (0 disables the limit)."""
    timeout = settings.tool_timeout
    if timeout <= 0:
        return await coro
    return await asyncio.wait_for(coro, timeout=timeout)


@mcp.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        openWorldHint=True,
        idempotentHint=True,
    ),
)
@_wrap_tool("fetch_documentation")
async def fetch_documentation(
    base_url: str,
    path: str | None = None,
    docset_type: str | None = None,
) -> str:
    """Fetch a documentation page from any docs site and return it as Markdown.
    - base_url: Docs URL, e.g. 'https://docs.example.com' or a full page URL
    - path: Optional page path ('/guide/intro', 'api.html') or absolute URL
    - docset_type: Optional generator hint (docusaurus, mkdocs, sphinx, ...)
    """
    request = DocumentationRequest(base_url=base_url, path=path, docset_type=docset_type)
    try:
        document = await _with_timeout(resolve_document(request))
    except TimeoutError:
        logger.error(f"fetch_documentation timed out after {settings.tool_timeout}s")
        return f"Error: fetch_documentation timed out after {settings.tool_timeout}s"
    except DocsetError as e:
        return f"Error fetching documentation: {e}"

    if len(document.markdown.strip()) < settings.min_content_length:
        logger.warning(f"Insufficient content at {document.url}")
        return (
            f"Error fetching documentation: Insufficient content at {document.url} "
            f"(docset type: {document.docset_type})"
        )

    return (
        f"Source: {document.url}\n"
        f"Docset type: {document.docset_type}\n\n"
        f"{document.markdown}"
    )


@mcp.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        openWorldHint=True,
        idempotentHint=True,
    ),
)
@_wrap_tool("search_documentation")
async def search_documentation(
    base_url: str,
    query: str,
    docset_type: str | None = None,
) -> str:
    """Search a documentation site via its published search index or sitemap.
    - base_url: Any page URL of the docs site
    - query: Search text
    - docset_type: Optional hint ('mkdocs' probes JSON indexes only, 'sphinx' searchindex.js only)
    Returns JSON: {"query": ..., "results": [{title, url, snippet, source}]}
    """
    try:
        results = await _with_timeout(search_documents(base_url, query, docset_type))
    except TimeoutError:
        logger.error(f"search_documentation timed out after {settings.tool_timeout}s")
        return f"Error: search_documentation timed out after {settings.tool_timeout}s"
    except DocsetError as e:
        return f"Error searching documentation: {e}"

    return json.dumps(
        {"query": query, "results": [r.to_dict() for r in results]},
        ensure_ascii=False,
        indent=2,
    )


@mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))
async def help() -> str:
    """Describe the docset tools and the supported generator hints."""
    return (
        "fetch_documentation(base_url, path?, docset_type?)\n"
        "  Fetches one page, strips navigation chrome and returns Markdown.\n"
        "  Relative paths resolve against the base URL's directory.\n\n"
        "search_documentation(base_url, query, docset_type?)\n"
        "  Probes search/search_index.json, searchindex.json, search.json,\n"
        "  search-index.json and searchindex.js under likely docs roots,\n"
        "  then falls back to sitemap.xml.\n\n"
        f"docset_type hints: {_DOCSET_HINTS}"
    )


def main() -> None:
    """Entry point for the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
