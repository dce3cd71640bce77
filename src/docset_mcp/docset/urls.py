"""URL canonicalization for documentation requests.

Everything here is pure string work: no network access, no logging.
"""

import re
from urllib.parse import urljoin, urlsplit, urlunsplit

from docset_mcp.errors import InvalidInput

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)

# A trailing ".ext" where ext starts with a letter, so that version
# segments such as "2.3" are not mistaken for files.
_FILE_EXT_RE = re.compile(r"\.[a-z][a-z0-9]*$", re.IGNORECASE)

# Sites that serve their glossary only under this literal filename.
_KEEP_HTML_FILENAMES = frozenset({"glossary.html"})


def is_absolute_http(value: str) -> bool:
    return bool(_SCHEME_RE.match(value))


def looks_like_file(path: str) -> bool:
    """Return True if the last path segment has a dot-extension."""
    last = path.rsplit("/", 1)[-1]
    return bool(last) and bool(_FILE_EXT_RE.search(last))


def with_scheme(raw: str) -> str:
    """Prepend ``https://`` unless the value already carries http(s)."""
    return raw if is_absolute_http(raw) else f"https://{raw}"


def parse_base(base_url: str):
    """Trim, add a scheme and split a base URL.

    Raises:
        InvalidInput: If the base is blank or has no host.
    """
    trimmed = (base_url or "").strip()
    if not trimmed:
        raise InvalidInput("base_url is required")
    try:
        parts = urlsplit(with_scheme(trimmed))
        host = parts.hostname
    except ValueError as e:
        raise InvalidInput(f"Invalid base_url {trimmed!r}: {e}") from e
    if not host:
        raise InvalidInput(f"Invalid base_url {trimmed!r}: missing host")
    return parts


def base_directory(path: str) -> str:
    """Directory a relative path is resolved against.

    ``/a/b.html`` -> ``/a/``, ``/a/b`` -> ``/a/b/``, ``/a/`` -> ``/a/``.
    """
    if not path:
        return "/"
    if path.endswith("/"):
        return path
    if looks_like_file(path):
        return path[: path.rfind("/") + 1]
    return f"{path}/"


def resolve_target_url(base_url: str, path: str | None = None) -> str:
    """Combine a base URL and an optional path into one absolute URL.

    This is the pre-normalization URL; fragments and ``.html`` suffixes
    are kept so the original location can still be fetched as a fallback.
    """
    parts = parse_base(base_url)
    trimmed_path = (path or "").strip()

    if trimmed_path and is_absolute_http(trimmed_path):
        return trimmed_path

    if not trimmed_path:
        return urlunsplit(
            (parts.scheme, parts.netloc, parts.path or "/", parts.query, parts.fragment)
        )

    base_dir = base_directory(parts.path)
    if trimmed_path.startswith("/") and base_dir != "/":
        # Root-relative to the docs base directory, not to the origin.
        trimmed_path = trimmed_path.lstrip("/")

    return urljoin(f"{parts.scheme}://{parts.netloc}{base_dir}", trimmed_path)


def _strip_trailing_slash(path: str) -> str:
    if path != "/" and path.endswith("/"):
        return path.rstrip("/") or "/"
    return path


def _strip_doc_suffixes(path: str) -> str:
    """One pass of trailing-slash, ``/index.html`` and ``.html`` stripping."""
    path = _strip_trailing_slash(path)
    if path.endswith("/index.html"):
        path = path[: -len("/index.html")] or "/"
    elif path.endswith(".html") and path.rsplit("/", 1)[-1] not in _KEEP_HTML_FILENAMES:
        path = path[: -len(".html")]
    return _strip_trailing_slash(path) or "/"


def normalize_doc_url(url: str) -> str:
    """Canonicalize a documentation URL.

    Drops query and fragment, collapses ``/index.html`` to its directory,
    strips ``.html`` (except ``glossary.html``) and trailing slashes.
    Stacked suffixes (``page.html.html``, ``v.html/index.html``) are
    stripped until none remain, so normalizing an already normalized URL
    returns it unchanged.
    """
    parts = urlsplit(url)
    path = parts.path or "/"
    while True:
        stripped = _strip_doc_suffixes(path)
        if stripped == path:
            break
        path = stripped
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def normalize_request_url(base_url: str, path: str | None = None) -> str:
    """Resolve and canonicalize in one step."""
    return normalize_doc_url(resolve_target_url(base_url, path))
