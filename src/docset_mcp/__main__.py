"""docset MCP Server entry point."""

import asyncio
import json
import sys

_USAGE = (
    "usage: docset-mcp                      run the MCP server (stdio)\n"
    "       docset-mcp fetch URL [PATH]     print one page as Markdown\n"
    "       docset-mcp search URL QUERY     print search results as JSON"
)


def _fetch(base_url: str, path: str | None) -> int:
    """Resolve one page and print its Markdown."""
    from docset_mcp.docset import DocumentationRequest, resolve_document
    from docset_mcp.errors import DocsetError

    try:
        document = asyncio.run(
            resolve_document(DocumentationRequest(base_url=base_url, path=path))
        )
    except DocsetError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"<!-- {document.url} ({document.docset_type}) -->\n")
    print(document.markdown)
    return 0


def _search(base_url: str, query: str) -> int:
    """Run one search and print the results."""
    from docset_mcp.docset import search_documents
    from docset_mcp.errors import DocsetError

    try:
        results = asyncio.run(search_documents(base_url, query))
    except DocsetError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps([r.to_dict() for r in results], ensure_ascii=False, indent=2))
    return 0


def _cli() -> None:
    """CLI dispatcher: server (default), fetch, or search subcommand."""
    args = sys.argv[1:]
    if args and args[0] == "fetch" and len(args) in (2, 3):
        sys.exit(_fetch(args[1], args[2] if len(args) == 3 else None))
    elif args and args[0] == "search" and len(args) == 3:
        sys.exit(_search(args[1], args[2]))
    elif args and args[0] in ("fetch", "search", "-h", "--help"):
        print(_USAGE, file=sys.stderr)
        sys.exit(2)
    else:
        from docset_mcp.server import main

        main()


if __name__ == "__main__":
    _cli()
