"""Docset resolution pipeline: fetch any documentation page or search any docset."""

from docset_mcp.docset.resolve import resolve_document
from docset_mcp.docset.search import search_documents
from docset_mcp.docset.types import (
    DocsetType,
    DocumentationRequest,
    ResolvedDocument,
    SearchResult,
)

__all__ = [
    "DocsetType",
    "DocumentationRequest",
    "ResolvedDocument",
    "SearchResult",
    "resolve_document",
    "search_documents",
]
