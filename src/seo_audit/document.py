"""Parsed HTML document with typed element queries.

Element lookups are described by ElementQuery values (tag names plus
attribute constraints) and evaluated by a small matcher over the
BeautifulSoup tree, so the checks never build selector strings.
"""

from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag


@dataclass(frozen=True)
class ElementQuery:
    """Which elements to match.

    Attributes:
        tags: Tag names to consider (empty = any tag)
        equals: Attribute values that must match, case-insensitively. For
            multi-valued attributes (rel, class) any token may match.
        present: Attributes that must exist
        prefixed: Attributes whose value must start with the given prefix
    """

    tags: Tuple[str, ...] = ()
    equals: Mapping[str, str] = field(default_factory=dict)
    present: Tuple[str, ...] = ()
    prefixed: Mapping[str, str] = field(default_factory=dict)

    def matches(self, element: Tag) -> bool:
        if self.tags and element.name not in self.tags:
            return False

        for name in self.present:
            if not element.has_attr(name):
                return False

        for name, expected in self.equals.items():
            value = element.get(name)
            if value is None:
                return False
            if isinstance(value, list):
                if expected.lower() not in (token.lower() for token in value):
                    return False
            elif value.strip().lower() != expected.lower():
                return False

        for name, prefix in self.prefixed.items():
            value = ParsedDocument.attribute(element, name)
            if value is None or not value.lower().startswith(prefix.lower()):
                return False

        return True


# Queries shared by the analyzer and the probes
TITLE = ElementQuery(tags=("title",))
META_DESCRIPTION = ElementQuery(tags=("meta",), equals={"name": "description"})
META_KEYWORDS = ElementQuery(tags=("meta",), equals={"name": "keywords"})
META_ROBOTS = ElementQuery(tags=("meta",), equals={"name": "robots"})
META_VIEWPORT = ElementQuery(tags=("meta",), equals={"name": "viewport"})
META_CHARSET = ElementQuery(tags=("meta",), present=("charset",))
CANONICAL_LINK = ElementQuery(tags=("link",), equals={"rel": "canonical"})
HEADINGS = ElementQuery(tags=("h1", "h2", "h3", "h4", "h5", "h6"))
IMAGES = ElementQuery(tags=("img",))
ANCHORS = ElementQuery(tags=("a",), present=("href",))
JSON_LD_SCRIPTS = ElementQuery(tags=("script",), equals={"type": "application/ld+json"})
MICRODATA_ITEMS = ElementQuery(present=("itemscope",))
OPEN_GRAPH_META = ElementQuery(tags=("meta",), prefixed={"property": "og:"})
TWITTER_NAME_META = ElementQuery(tags=("meta",), prefixed={"name": "twitter:"})
TWITTER_PROPERTY_META = ElementQuery(tags=("meta",), prefixed={"property": "twitter:"})
HREFLANG_LINKS = ElementQuery(
    tags=("link",), equals={"rel": "alternate"}, present=("hreflang",)
)


class ParsedDocument:
    """An HTML page parsed once and shared read-only by every check."""

    def __init__(self, html: str, url: str):
        """Parse the page.

        Args:
            html: Raw HTML
            url: URL the HTML was served from (base for relative links)
        """
        self.url = url
        self.soup = BeautifulSoup(html or "", "html.parser")

    def elements_by_tag(self, *names: str) -> List[Tag]:
        """All elements with one of the given tag names, in document order."""
        return self.soup.find_all(list(names))

    def select(self, query: ElementQuery) -> List[Tag]:
        """All elements matching `query`, in document order."""
        candidates = (
            self.soup.find_all(list(query.tags)) if query.tags
            else self.soup.find_all(True)
        )
        return [element for element in candidates if query.matches(element)]

    def first(self, query: ElementQuery) -> Optional[Tag]:
        for element in self.select(query):
            return element
        return None

    def first_attribute(self, query: ElementQuery, name: str, default: str = "") -> str:
        element = self.first(query)
        if element is None:
            return default
        value = self.attribute(element, name)
        return value if value is not None else default

    @staticmethod
    def attribute(element: Tag, name: str) -> Optional[str]:
        """Attribute value as a string (multi-valued attributes are space-joined)."""
        value = element.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return value

    @staticmethod
    def text(element: Tag) -> str:
        return element.get_text(" ", strip=True)

    def root_attribute(self, name: str) -> Optional[str]:
        """Attribute of the <html> element."""
        html = self.soup.find("html")
        if html is None:
            return None
        return self.attribute(html, name)
