"""Value objects shared by the docset pipeline."""

from dataclasses import dataclass, field
from enum import StrEnum

from docset_mcp.errors import InvalidInput


class DocsetType(StrEnum):
    """Documentation generator families.

    Declaration order matters: detection rules walk the members in this
    order. ``HTML`` is never detected; it marks a whole-page fallback.
    """

    APPLE = "apple"
    DOCUSAURUS = "docusaurus"
    MKDOCS = "mkdocs"
    SPHINX = "sphinx"
    TYPEDOC = "typedoc"
    JSDOC = "jsdoc"
    RUSTDOC = "rustdoc"
    GODOC = "godoc"
    PDOC = "pdoc"
    GENERIC = "generic"
    HTML = "html"


# Types a caller may pass as a hint (``html`` is output-only).
HINTABLE_TYPES: tuple[DocsetType, ...] = tuple(
    t for t in DocsetType if t is not DocsetType.HTML
)


@dataclass(frozen=True)
class DocumentationRequest:
    base_url: str
    path: str | None = None
    docset_type: DocsetType | None = None


@dataclass(frozen=True)
class ResolvedDocument:
    markdown: str
    url: str
    docset_type: DocsetType


@dataclass(frozen=True)
class SearchResult:
    title: str
    url: str
    snippet: str
    source: str

    def to_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "url": self.url,
            "snippet": self.snippet,
            "source": self.source,
        }


@dataclass(frozen=True)
class IndexCandidate:
    """A well-known search index path and the format it implies."""

    path: str
    format: str  # "json" (MkDocs) or "js" (Sphinx)


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of fetching and parsing one candidate URL during search."""

    url: str
    results: list[SearchResult] = field(default_factory=list)
    error: str | None = None

    @property
    def found(self) -> bool:
        return bool(self.results)


def coerce_docset_type(value: DocsetType | str | None) -> DocsetType | None:
    """Turn a caller-supplied hint into a ``DocsetType`` (blank -> None).

    Raises:
        InvalidInput: If *value* names no known docset type.
    """
    if value is None or isinstance(value, DocsetType):
        return value
    cleaned = value.strip().lower()
    if not cleaned:
        return None
    try:
        return DocsetType(cleaned)
    except ValueError:
        valid = ", ".join(t.value for t in DocsetType)
        raise InvalidInput(
            f"Unknown docset type {value!r}. Valid types: {valid}"
        ) from None
