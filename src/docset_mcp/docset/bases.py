"""Guess documentation roots from a page URL.

Search indexes live at the root of a docset, which is rarely the page the
user is looking at. From ``https://host/en/stable/reference/foo/`` we try,
in order::

    https://host/en/stable/              language/version root
    https://host/en/                     first path segment
    https://host/en/stable/reference/foo/  current directory
    https://host/                        origin
"""

import re

from docset_mcp.docset.urls import looks_like_file, parse_base

VERSION_LITERALS = frozenset(
    {"latest", "stable", "dev", "devel", "main", "master", "nightly", "current"}
)

_VERSION_RE = re.compile(r"^v?\d")
_LANGUAGE_RE = re.compile(r"^[a-z]{2}(?:[-_][a-z]{2,4})?$", re.IGNORECASE)


def is_version_segment(segment: str) -> bool:
    """True for ``latest``/``stable``-style literals and ``2.3``/``v1``-style tokens."""
    return segment.lower() in VERSION_LITERALS or bool(_VERSION_RE.match(segment))


def is_language_segment(segment: str) -> bool:
    return bool(_LANGUAGE_RE.match(segment))


def build_search_bases(url: str) -> list[str]:
    """Return candidate docset roots for *url*, most likely first.

    Every candidate is absolute and ends with ``/``.

    Raises:
        InvalidInput: If *url* is blank or has no host.
    """
    parts = parse_base(url)
    origin = f"{parts.scheme}://{parts.netloc}"
    path = parts.path or "/"
    segments = [s for s in path.split("/") if s]

    # Segments naming directories; a trailing file name is not one.
    dir_segments = segments
    if segments and not path.endswith("/") and looks_like_file(segments[-1]):
        dir_segments = segments[:-1]

    candidates: list[str] = []

    if (
        len(dir_segments) >= 2
        and is_language_segment(dir_segments[0])
        and is_version_segment(dir_segments[1])
    ):
        candidates.append(f"{origin}/{dir_segments[0]}/{dir_segments[1]}/")

    if dir_segments:
        candidates.append(f"{origin}/{dir_segments[0]}/")
        candidates.append(f"{origin}/{'/'.join(dir_segments)}/")

    candidates.append(f"{origin}/")
    return list(dict.fromkeys(candidates))
