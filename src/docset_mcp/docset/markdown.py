"""HTML fragment to Markdown conversion (markdownify)."""

import re

from markdownify import ATX, MarkdownConverter

_LANG_CLASS_RE = re.compile(r"^(?:language|lang|highlight)-([\w+#.-]+)$")
_EXCESS_BLANK_LINES_RE = re.compile(r"\n{3,}")
_TRAILING_SPACE_RE = re.compile(r"[ \t]+$", re.MULTILINE)
# A whole fenced block, opening fence line through closing fence line.
_FENCED_BLOCK_RE = re.compile(r"(^```[^\n]*\n.*?^```[ \t]*$)", re.MULTILINE | re.DOTALL)


def _classes(el) -> list[str]:
    if el is None or not hasattr(el, "get"):
        return []
    value = el.get("class") or []
    return value.split() if isinstance(value, str) else list(value)


def _code_language(el) -> str:
    """Guess a fence language from ``language-*``-style classes.

    Looks at the ``<pre>``, its ``<code>`` child and two ancestors, which
    covers highlight.js, Prism, Pygments (Sphinx) and MkDocs markup.
    """
    candidates = [el, el.find("code")]
    parent = el.parent
    for _ in range(2):
        if parent is None:
            break
        candidates.append(parent)
        parent = parent.parent

    for node in candidates:
        for cls in _classes(node):
            match = _LANG_CLASS_RE.match(cls)
            if match and match.group(1) not in ("default", "none", "text"):
                return match.group(1)
    return ""


class DocsMarkdownConverter(MarkdownConverter):
    """markdownify converter tuned for documentation pages.

    - Anchors with no visible text (permalinks, icon buttons) are dropped.
    - Checkbox inputs render as GitHub task-list markers.
    """

    def convert_a(self, el, text, parent_tags):
        """Drop anchors with no rendered text and no element text.

        Deliberately looser than a plain text-content check: an anchor that
        wraps only an ``<img>`` renders as a linked image and is kept.
        """
        if not (text or "").strip() and not el.get_text(strip=True):
            return ""
        return super().convert_a(el, text, parent_tags)

    def convert_input(self, el, text, parent_tags):
        if (el.get("type") or "").lower() != "checkbox":
            return ""
        return "[x] " if el.has_attr("checked") else "[ ] "


_converter = DocsMarkdownConverter(
    heading_style=ATX,
    bullets="-",
    code_language_callback=_code_language,
    escape_underscores=False,
    newline_style="backslash",
    wrap=False,
)


def _tidy_outside_fences(markdown: str) -> str:
    """Drop trailing spaces and collapse blank-line runs, leaving code fences as-is."""
    chunks = _FENCED_BLOCK_RE.split(markdown)
    # re.split with one group: even chunks are prose, odd chunks are fences.
    for i in range(0, len(chunks), 2):
        chunk = _TRAILING_SPACE_RE.sub("", chunks[i])
        chunks[i] = _EXCESS_BLANK_LINES_RE.sub("\n\n", chunk)
    return "".join(chunks)


def html_to_markdown(html: str) -> str:
    """Render an HTML fragment as Markdown.

    Non-breaking spaces become plain spaces, blank input returns ``""``
    without invoking the parser, and the output has no leading/trailing
    blank lines. Output is deterministic for a given input.
    """
    cleaned = (html or "").replace("\u00a0", " ").strip()
    if not cleaned:
        return ""

    markdown = _converter.convert(cleaned)
    return _tidy_outside_fences(markdown).strip()
