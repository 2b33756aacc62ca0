"""Tree helpers shared by every parsing stage.

BeautifulSoup compares tags structurally and strings by value, so two
unrelated ``<br>`` elements are ``==``. Parsing depends on *which* node is
meant, so every helper here works by identity: membership tests, index
lookups and containment never rely on ``==``.

The :class:`TreeWalker` mirrors the DOM traversal primitives the stages are
written against: parent, sibling and child moves bounded by a root, plus
document-order ``next_node``. Comments, CDATA and other
preformatted strings are invisible to walkers and text helpers.

Examples
--------
>>> from bs4 import BeautifulSoup
>>> soup = BeautifulSoup("<div><p>One <b>two</b></p></div>", "html.parser")
>>> walker = ElementsTreeWalker(soup.div, soup.b)
>>> walker.parent_node().name
'p'
>>> is_inline(soup.b), is_inline(soup.p)
(True, False)
"""

from __future__ import annotations

import re
import typing as typ

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from ._constants import (
    BLOCK_TAGS,
    HEADING_TAGS,
    HEADING_WRAPPER_CLASS,
    INLINE_TAGS,
    METADATA_TAGS,
    TOC_META_PROPERTY,
)

if typ.TYPE_CHECKING:
    from bs4 import PageElement

Node = typ.Union[Tag, NavigableString]

_DISPLAY_PATTERN = re.compile(r"display\s*:\s*([a-z-]+)", re.IGNORECASE)
_HEADING_CLASS_PATTERN = re.compile(r"\bmw-heading([1-6])\b")
_FACTORY = BeautifulSoup("", "html.parser")


def new_tag(name: str, *, classes: typ.Iterable[str] = ()) -> Tag:
    """Create a detached element, optionally carrying ``classes``."""
    tag = _FACTORY.new_tag(name)
    names = list(classes)
    if names:
        tag["class"] = names
    return tag


def new_text(text: str) -> NavigableString:
    """Create a detached text node."""
    return NavigableString(text)


def is_element(node: PageElement | None) -> typ.TypeGuard[Tag]:
    """Return whether ``node`` is an element."""
    return isinstance(node, Tag)


def is_text(node: PageElement | None) -> typ.TypeGuard[NavigableString]:
    """Return whether ``node`` is a plain text leaf (not a comment or CDATA)."""
    return isinstance(node, NavigableString) and not isinstance(
        node, PreformattedString
    )


def is_node(node: PageElement | None) -> bool:
    """Return whether ``node`` is an element or a plain text leaf."""
    return is_element(node) or is_text(node)


def text_of(node: PageElement | None) -> str:
    """Return the concatenated text of ``node`` (``textContent`` semantics)."""
    if node is None:
        return ""
    if is_element(node):
        return node.get_text()
    if is_text(node):
        return str(node)
    return ""


def classes_of(tag: Tag) -> list[str]:
    """Return the class names of ``tag`` whatever form the attribute has."""
    value = tag.get("class")
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return list(value)


def has_class(node: PageElement | None, name: str | None) -> bool:
    """Return whether ``node`` is an element carrying the class ``name``."""
    if not name or not is_element(node):
        return False
    return name in classes_of(node)


def add_class(tag: Tag, *names: str) -> None:
    """Append ``names`` to the class list of ``tag`` keeping existing order."""
    current = classes_of(tag)
    for name in names:
        if name not in current:
            current.append(name)
    tag["class"] = current


def style_of(node: PageElement | None) -> str:
    """Return the inline ``style`` attribute of an element, or ``""``."""
    if not is_element(node):
        return ""
    value = node.get("style")
    return value if isinstance(value, str) else ""


def is_inline(node: PageElement | None, *, text_as_inline: bool = False) -> bool | None:
    """Tell whether ``node`` renders inline.

    Parameters
    ----------
    node : PageElement or None
        Node to check.
    text_as_inline : bool, optional
        Report plain text leaves as inline instead of unknown.

    Returns
    -------
    bool or None
        ``True`` for inline elements, ``False`` for block elements and
        ``None`` when the tag is neither known nor hinted by a ``display``
        declaration.
    """
    if text_as_inline and is_text(node):
        return True
    if not is_element(node):
        return None
    name = node.name
    if name in INLINE_TAGS or (
        name == "meta" and node.get("property") == TOC_META_PROPERTY
    ):
        return True
    if name in BLOCK_TAGS:
        return False
    match = _DISPLAY_PATTERN.search(style_of(node))
    if match:
        return match.group(1).startswith("inline")
    return None


def is_metadata(node: PageElement | None) -> bool:
    """Return whether ``node`` is a ``<style>`` or ``<link>`` element."""
    return is_element(node) and node.name in METADATA_TAGS


def is_heading(node: PageElement | None, *, only_h_elements: bool = False) -> bool:
    """Return whether ``node`` is a heading or a heading wrapper."""
    if not is_element(node):
        return False
    if node.name in HEADING_TAGS:
        return True
    return not only_h_elements and has_class(node, HEADING_WRAPPER_CLASS)


def heading_level(tag: Tag) -> int | None:
    """Return the level (1-6) of a heading or heading wrapper."""
    if tag.name in HEADING_TAGS:
        return int(tag.name[1])
    match = _HEADING_CLASS_PATTERN.search(" ".join(classes_of(tag)))
    return int(match.group(1)) if match else None


def contains(ancestor: PageElement | None, node: PageElement | None) -> bool:
    """Return whether ``node`` is ``ancestor`` or one of its descendants."""
    if ancestor is None or node is None:
        return False
    if node is ancestor:
        return True
    return any(parent is ancestor for parent in node.parents)


def index_by_identity(items: typ.Sequence[typ.Any], item: object) -> int:
    """Return the index of ``item`` in ``items`` by identity, or ``-1``."""
    for index, candidate in enumerate(items):
        if candidate is item:
            return index
    return -1


def element_children(tag: Tag) -> list[Tag]:
    """Return the element children of ``tag``."""
    return [child for child in tag.children if is_element(child)]


def first_element_child(tag: Tag | None) -> Tag | None:
    """Return the first element child of ``tag``."""
    if tag is None:
        return None
    return next((child for child in tag.children if is_element(child)), None)


def last_element_child(tag: Tag | None) -> Tag | None:
    """Return the last element child of ``tag``."""
    if tag is None:
        return None
    children = element_children(tag)
    return children[-1] if children else None


def previous_element_sibling(node: PageElement | None) -> Tag | None:
    """Return the closest preceding sibling that is an element."""
    sibling = node.previous_sibling if node is not None else None
    while sibling is not None and not is_element(sibling):
        sibling = sibling.previous_sibling
    return sibling


def next_element_sibling(node: PageElement | None) -> Tag | None:
    """Return the closest following sibling that is an element."""
    sibling = node.next_sibling if node is not None else None
    while sibling is not None and not is_element(sibling):
        sibling = sibling.next_sibling
    return sibling


def find_by_class(tag: Tag, name: str | None) -> Tag | None:
    """Return the first descendant of ``tag`` carrying the class ``name``."""
    if not name:
        return None
    return tag.find(class_=name)


def count_by_class(tag: Tag, name: str, limit: int | None = None) -> int:
    """Count descendants of ``tag`` carrying the class ``name``."""
    return len(tag.find_all(class_=name, limit=limit))


def text_nodes(root: Tag) -> list[NavigableString]:
    """Return the plain text leaves under ``root`` in document order."""
    return [node for node in root.descendants if is_text(node)]


def document_positions(root: Tag) -> dict[int, int]:
    """Map ``id(node)`` to its document-order position under ``root``."""
    positions = {id(root): -1}
    for position, node in enumerate(root.descendants):
        positions[id(node)] = position
    return positions


def insert_before(new: PageElement, reference: PageElement) -> None:
    """Insert ``new`` right before ``reference`` (moving it if attached)."""
    parent = reference.parent
    if parent is None:  # pragma: no cover - callers work on attached nodes
        msg = "Cannot insert next to a detached node."
        raise ValueError(msg)
    if new.parent is not None:
        new.extract()
    parent.insert(parent.index(reference), new)


def insert_after(new: PageElement, reference: PageElement) -> None:
    """Insert ``new`` right after ``reference`` (moving it if attached)."""
    parent = reference.parent
    if parent is None:  # pragma: no cover - callers work on attached nodes
        msg = "Cannot insert next to a detached node."
        raise ValueError(msg)
    if new.parent is not None:
        new.extract()
    parent.insert(parent.index(reference) + 1, new)


def replace_text(node: NavigableString, text: str) -> NavigableString:
    """Replace the text leaf ``node`` with a new leaf holding ``text``."""
    replacement = new_text(text)
    node.replace_with(replacement)
    return replacement


class TreeWalker:
    """Walk a subtree the way a DOM ``TreeWalker`` does.

    Moves other than child moves return ``None`` when the current node is the
    root, so walks never leave the subtree through siblings. ``parent_node``
    from a child of the root returns the root itself.
    """

    def __init__(
        self,
        root: Tag,
        start: Node | None = None,
        *,
        elements_only: bool = False,
    ) -> None:
        self.root = root
        self.current: Node = root if start is None else start
        self.elements_only = elements_only

    def _accepts(self, node: PageElement | None) -> bool:
        if self.elements_only:
            return is_element(node)
        return is_node(node)

    def _sibling(self, node: PageElement, *, forward: bool) -> Node | None:
        sibling = node.next_sibling if forward else node.previous_sibling
        while sibling is not None and not self._accepts(sibling):
            sibling = sibling.next_sibling if forward else sibling.previous_sibling
        return sibling

    def _child(self, node: PageElement, *, last: bool) -> Node | None:
        if not is_element(node):
            return None
        children = reversed(node.contents) if last else iter(node.contents)
        return next((child for child in children if self._accepts(child)), None)

    def _move(self, node: Node | None) -> Node | None:
        if node is not None:
            self.current = node
        return node

    def parent_node(self) -> Tag | None:
        """Move to the parent of the current node."""
        if self.current is self.root:
            return None
        return self._move(self.current.parent)

    def previous_sibling(self) -> Node | None:
        """Move to the previous accepted sibling."""
        if self.current is self.root:
            return None
        return self._move(self._sibling(self.current, forward=False))

    def next_sibling(self) -> Node | None:
        """Move to the next accepted sibling."""
        if self.current is self.root:
            return None
        return self._move(self._sibling(self.current, forward=True))

    def last_child(self) -> Node | None:
        """Move to the last accepted child."""
        return self._move(self._child(self.current, last=True))

    def next_node(self) -> Node | None:
        """Move to the next node in document order within the root."""
        node: Node | None = self.current
        child = self._child(node, last=False)
        if child is not None:
            return self._move(child)
        while node is not None and node is not self.root:
            sibling = self._sibling(node, forward=True)
            if sibling is not None:
                return self._move(sibling)
            if node.parent is self.root:
                return None
            node = node.parent
        return None


class ElementsTreeWalker(TreeWalker):
    """Tree walker that only visits elements."""

    def __init__(self, root: Tag, start: Node | None = None) -> None:
        super().__init__(root, start, elements_only=True)


class ElementsAndTextTreeWalker(TreeWalker):
    """Tree walker that visits elements and plain text leaves."""

    def __init__(self, root: Tag, start: Node | None = None) -> None:
        super().__init__(root, start, elements_only=False)


__all__ = [
    "ElementsAndTextTreeWalker",
    "ElementsTreeWalker",
    "Node",
    "TreeWalker",
    "add_class",
    "classes_of",
    "contains",
    "count_by_class",
    "document_positions",
    "element_children",
    "find_by_class",
    "first_element_child",
    "has_class",
    "heading_level",
    "index_by_identity",
    "insert_after",
    "insert_before",
    "is_element",
    "is_heading",
    "is_inline",
    "is_metadata",
    "is_node",
    "is_text",
    "last_element_child",
    "new_tag",
    "new_text",
    "next_element_sibling",
    "previous_element_sibling",
    "replace_text",
    "style_of",
    "text_nodes",
    "text_of",
]
