"""
HTML Sanitizer.

Strips disallowed markup from submitted note content, leaving a relaxed
rich-text subset plus the task-list elements produced by the editor
(checkbox inputs, labels, and list items carrying data-type/data-checked).

Disallowed tags are removed and their text is kept. Script and style
elements are removed together with their content.

Usage:
    from modules.backend.core.sanitizer import sanitize

    sanitize("<script>x</script><b>hi</b>")  # -> "<b>hi</b>"
"""

import nh3

ALLOWED_TAGS: frozenset[str] = frozenset({
    "a", "b", "blockquote", "br", "caption", "cite", "code", "col",
    "colgroup", "dd", "div", "dl", "dt", "em", "h1", "h2", "h3", "h4",
    "h5", "h6", "i", "img", "li", "ol", "p", "pre", "q", "small", "span",
    "strike", "strong", "sub", "sup", "table", "tbody", "td", "tfoot",
    "th", "thead", "tr", "u", "ul",
    # Task lists
    "input", "label",
})

ALLOWED_ATTRIBUTES: dict[str, frozenset[str]] = {
    "*": frozenset({"class", "style"}),
    "a": frozenset({"href", "title"}),
    "blockquote": frozenset({"cite"}),
    "col": frozenset({"span", "width"}),
    "colgroup": frozenset({"span", "width"}),
    "img": frozenset({"align", "alt", "height", "src", "title", "width"}),
    "ol": frozenset({"start", "type"}),
    "q": frozenset({"cite"}),
    "table": frozenset({"summary", "width"}),
    "td": frozenset({"abbr", "axis", "colspan", "rowspan", "width"}),
    "th": frozenset({"abbr", "axis", "colspan", "rowspan", "scope", "width"}),
    "ul": frozenset({"type", "data-type"}),
    "li": frozenset({"data-type", "data-checked"}),
    "input": frozenset({"type", "checked", "disabled"}),
    "label": frozenset({"for"}),
}

ALLOWED_URL_SCHEMES: frozenset[str] = frozenset({"http", "https", "mailto", "ftp"})

# Dropped along with everything inside them
STRIPPED_CONTENT_TAGS: frozenset[str] = frozenset({"script", "style"})


def sanitize(raw: str | None) -> str | None:
    """
    Return the safe-to-render subset of the given HTML.

    None and whitespace-only input are returned unchanged so that each
    caller decides whether blank content is acceptable.

    Args:
        raw: Untrusted HTML submitted by a client

    Returns:
        Sanitized HTML
    """
    if raw is None or not raw.strip():
        return raw

    return nh3.clean(
        raw,
        tags=set(ALLOWED_TAGS),
        clean_content_tags=set(STRIPPED_CONTENT_TAGS),
        attributes={tag: set(attrs) for tag, attrs in ALLOWED_ATTRIBUTES.items()},
        url_schemes=set(ALLOWED_URL_SCHEMES),
    )


def is_blank(content: str | None) -> bool:
    """Check whether sanitized content carries nothing to store."""
    return content is None or not content.strip()
