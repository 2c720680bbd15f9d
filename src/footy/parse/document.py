"""
Thin document-tree layer over BeautifulSoup.

`DocumentTree` owns the parsed page; `DocumentNode` wraps one element and exposes the few navigation
primitives the table finders need (siblings, heading level, text, selector lookups). Heading levels are
read from the `mw-headingN` wrapper class of current Wikipedia markup, or from bare `<hN>` tags.
"""
from __future__ import annotations

import copy
import re
from typing import Iterator

from bs4 import BeautifulSoup, Tag

HEADING_CLASS_RE = re.compile(r"^mw-heading(\d)$")
HEADING_TAG_RE = re.compile(r"^h([1-6])$")
CITATION_RE = re.compile(r"\[\d+\]")
NOISE_SELECTORS = "sup.reference, span.reference, style, script, .navbar, .plainlinks, .hlist"


def clean_text(tag: Tag) -> str:
    """Visible text of a cell without citation markers, navboxes or inline styles."""
    clone = copy.copy(tag)
    for noise in clone.select(NOISE_SELECTORS):
        noise.decompose()
    return CITATION_RE.sub("", clone.get_text()).strip()


class DocumentNode:

    def __init__(self, tag: Tag):
        self.tag = tag

    def __eq__(self, other):
        return isinstance(other, DocumentNode) and other.tag is self.tag

    def __hash__(self):
        return id(self.tag)

    def __repr__(self):
        return f'<{self.name} id={self.id!r}>'

    @property
    def name(self) -> str:
        return self.tag.name

    @property
    def id(self) -> str | None:
        return self.tag.get("id")

    @property
    def classes(self) -> list[str]:
        return list(self.tag.get("class") or [])

    @property
    def text(self) -> str:
        return self.tag.get_text()

    @property
    def clean_text(self) -> str:
        return clean_text(self.tag)

    def attr(self, name: str, default: str | None = None) -> str | None:
        value = self.tag.get(name, default)
        if isinstance(value, list):
            return " ".join(value)
        return value

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def is_wrapper_heading(self) -> bool:
        return any(HEADING_CLASS_RE.match(cls) for cls in self.classes)

    @property
    def heading_level(self) -> int | None:
        for cls in self.classes:
            match = HEADING_CLASS_RE.match(cls)
            if match:
                return int(match.group(1))
        match = HEADING_TAG_RE.match(self.name or "")
        if match:
            return int(match.group(1))
        return None

    @property
    def heading_element(self) -> DocumentNode:
        """The `<hN>` element for a heading wrapper, or the node itself."""
        if self.is_wrapper_heading():
            inner = self.tag.find(HEADING_TAG_RE)
            if inner is not None:
                return DocumentNode(inner)
        return self

    @property
    def heading_text(self) -> str:
        return self.heading_element.text.strip()

    @property
    def heading_id(self) -> str | None:
        """Id of the heading; legacy markup keeps it on a nested `.mw-headline` span."""
        element = self.heading_element
        if element.id:
            return element.id
        headline = element.find(".mw-headline[id]")
        if headline is not None:
            return headline.id
        return self.id

    @property
    def children(self) -> list[DocumentNode]:
        return [DocumentNode(child) for child in self.tag.find_all(True, recursive=False)]

    @property
    def next_sibling(self) -> DocumentNode | None:
        sibling = self.tag.find_next_sibling(True)
        return DocumentNode(sibling) if sibling is not None else None

    def following_siblings(self) -> Iterator[DocumentNode]:
        node = self.next_sibling
        while node is not None:
            yield node
            node = node.next_sibling

    def descendants(self) -> Iterator[DocumentNode]:
        for tag in self.tag.find_all(True):
            yield DocumentNode(tag)

    def find_all(self, selector: str) -> list[DocumentNode]:
        return [DocumentNode(tag) for tag in self.tag.select(selector)]

    def find(self, selector: str) -> DocumentNode | None:
        tag = self.tag.select_one(selector)
        return DocumentNode(tag) if tag is not None else None

    def closest(self, name: str | None = None, class_: str | None = None) -> DocumentNode | None:
        """Nearest ancestor-or-self with the given tag name and/or class."""
        tag: Tag | None = self.tag
        while isinstance(tag, Tag) and tag.name != "[document]":
            node = DocumentNode(tag)
            if (name is None or tag.name == name) and (class_ is None or node.has_class(class_)):
                return node
            tag = tag.parent
        return None

    @property
    def heading_wrapper(self) -> DocumentNode:
        wrapper = self.closest(class_="mw-heading")
        return wrapper if wrapper is not None else self


class DocumentTree:

    def __init__(self, html: str):
        self.soup = BeautifulSoup(html or "", "html.parser")

    @property
    def text(self) -> str:
        return self.soup.get_text()

    def by_id(self, element_id: str) -> DocumentNode | None:
        tag = self.soup.find(id=element_id)
        return DocumentNode(tag) if isinstance(tag, Tag) else None

    def find_all(self, selector: str) -> list[DocumentNode]:
        return [DocumentNode(tag) for tag in self.soup.select(selector)]

    def find(self, selector: str) -> DocumentNode | None:
        tag = self.soup.select_one(selector)
        return DocumentNode(tag) if tag is not None else None

    def headings(self) -> list[DocumentNode]:
        """Section headings in document order: `mw-heading` wrappers plus bare `<hN>` tags outside them."""
        found: list[DocumentNode] = []
        for tag in self.soup.find_all(True):
            node = DocumentNode(tag)
            if node.is_wrapper_heading():
                found.append(node)
            elif HEADING_TAG_RE.match(tag.name) and node.closest(class_="mw-heading") is None:
                found.append(node)
        return found
