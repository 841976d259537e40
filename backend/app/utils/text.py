"""Strip markup from user-supplied text before it is stored."""

from __future__ import annotations

from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.element import PreformattedString
from bs4.formatter import HTMLFormatter

# Elements removed together with everything inside them
DROPPED_ELEMENTS = [
    "script",
    "style",
    "iframe",
    "object",
    "embed",
    "noscript",
    "template",
    "textarea",
    "title",
    "svg",
    "math",
]

# Formatting kept in listing descriptions
HTML_WHITELIST = frozenset(
    {"p", "br", "strong", "em", "u", "ul", "ol", "li", "h1", "h2", "h3", "h4", "h5", "h6"}
)

# Escapes &, < and > in text; leaves other characters alone and writes <br> not <br/>
_OUTPUT_FORMATTER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)


def _clean(value: str, allowed: frozenset[str]) -> str:
    """Parse ``value`` and keep only ``allowed`` tags, without attributes.

    Text is re-serialized from the parse tree, so anything that only looks like
    markup once a tag is removed ends up escaped instead of live.
    """
    soup = BeautifulSoup(value, "html.parser")

    # Comments, CDATA, doctypes and processing instructions
    for node in soup.find_all(string=lambda text: isinstance(text, PreformattedString)):
        node.extract()

    dropped = soup.find(DROPPED_ELEMENTS)
    while dropped is not None:
        dropped.decompose()
        dropped = soup.find(DROPPED_ELEMENTS)

    for tag in soup.find_all(True):
        if tag.name in allowed:
            tag.attrs = {}
        else:
            tag.unwrap()

    return soup.decode(formatter=_OUTPUT_FORMATTER).strip()


def sanitize_text(value: str | None) -> str | None:
    """Remove all HTML, leaving escaped plain text."""
    if not value:
        return value
    return _clean(value, frozenset())


def sanitize_html(value: str | None) -> str | None:
    """Keep basic formatting tags, stripped of attributes; drop everything else."""
    if not value:
        return value
    return _clean(value, HTML_WHITELIST)
