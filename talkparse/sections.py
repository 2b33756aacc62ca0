"""Group comments into sections delimited by headings."""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ
from urllib.parse import parse_qs, urlsplit

from ._constants import HEADING_WRAPPER_CLASS
from .dom import (
    classes_of,
    document_positions,
    find_by_class,
    first_element_child,
    has_class,
    heading_level,
    is_element,
    is_heading,
    is_metadata,
    is_text,
)
from .models import Section

if typ.TYPE_CHECKING:
    from bs4 import Tag

    from .context import ParseContext
    from .models import Comment, Signature

logger = logging.getLogger(__name__)

_HEADING_SELECTOR = ["h1", "h2", "h3", "h4", "h5", "h6"]
_TITLE_EXCLUDED_CLASSES = ("mw-headline-number", "mw-editsection-like", "mw-editsection")
_DIGITS_PATTERN = re.compile(r"\d+")


@dc.dataclass(slots=True, eq=False)
class HeadingTarget:
    """A heading found on the page.

    Attributes
    ----------
    element : Tag
        The ``.mw-heading`` wrapper when there is one, else the ``h1``-``h6``.
    level : int
        Heading level, 1 to 6.
    is_wrapper : bool
        Whether ``element`` is a wrapper rather than the heading itself.
    """

    element: Tag
    level: int
    is_wrapper: bool


def parse_section_number(href: str) -> int | None:
    """Return the section number carried by an edit link.

    Examples
    --------
    >>> parse_section_number("/w/index.php?title=Talk:Foo&action=edit&section=3")
    3
    >>> parse_section_number("/w/index.php?title=Template:Bar&action=edit&section=T-2")
    2
    """
    values = parse_qs(urlsplit(href).query).get("section")
    if not values:
        return None
    value = values[0]
    if value.startswith("T-"):
        match = _DIGITS_PATTERN.search(value)
        return int(match.group(0)) if match else None
    try:
        return int(value)
    except ValueError:
        return None


class SectionAssembler:
    """Find headings and build the section tree of a page."""

    def __init__(self, context: ParseContext) -> None:
        self.context = context
        self.root = context.root

    def _wrapper_of(self, element: Tag) -> Tag:
        node: Tag | None = element
        while node is not None and node is not self.root:
            if has_class(node, HEADING_WRAPPER_CLASS):
                return node
            node = node.parent
        return element

    def find_headings(self) -> list[HeadingTarget]:
        """Return the page's headings in document order."""
        targets: list[HeadingTarget] = []
        seen: set[int] = set()
        for heading in self.root.find_all(_HEADING_SELECTOR):
            element = self._wrapper_of(heading)
            if id(element) in seen:
                continue
            if element.get("id") == "mw-toc-heading" or heading.get("id") == "mw-toc-heading":
                continue
            if self.context.in_no_signature_element(element):
                continue
            seen.add(id(element))
            level = heading_level(heading)
            if level is None:  # pragma: no cover - find_all only returns h1-h6
                continue
            targets.append(
                HeadingTarget(
                    element=element,
                    level=level,
                    is_wrapper=not is_heading(element, only_h_elements=True),
                )
            )
        return targets

    def _h_element(self, element: Tag) -> Tag | None:
        if is_heading(element, only_h_elements=True):
            return element
        first = first_element_child(element)
        if is_heading(first, only_h_elements=True):
            return first
        return element.find(_HEADING_SELECTOR)

    def _title_of(self, headline: Tag) -> str:
        excluded = (*_TITLE_EXCLUDED_CLASSES, *self.context.config.foreign_classes)
        pieces = [
            str(child) if is_text(child) else child.get_text()
            for child in headline.children
            if is_text(child)
            or (
                is_element(child)
                and not is_metadata(child)
                and not any(name in classes_of(child) for name in excluded)
            )
        ]
        return "".join(pieces).strip()

    def _section_number_of(self, element: Tag) -> int | None:
        menu = find_by_class(element, "mw-editsection")
        if menu is None:
            return None
        for link in menu.find_all("a"):
            href = link.get("href")
            if isinstance(href, str) and "action=edit" in href:
                return parse_section_number(href)
        return None

    def build_section(self, target: HeadingTarget, index: int) -> Section | None:
        """Describe the heading ``target`` as a section without comments."""
        h_element = self._h_element(target.element)
        if h_element is None:
            logger.debug("Heading wrapper without a heading element skipped")
            return None
        headline = find_by_class(h_element, "mw-headline") or h_element
        anchor = headline.get("id")
        return Section(
            heading_node=target.element,
            level=heading_level(h_element) or target.level,
            title=self._title_of(headline),
            anchor=anchor if isinstance(anchor, str) else None,
            section_number=self._section_number_of(target.element),
            index=index,
        )

    def assemble(
        self,
        targets: typ.Sequence[HeadingTarget | Signature],
        comment_for: typ.Callable[[Signature], Comment | None],
    ) -> tuple[list[Section], list[Section]]:
        """Build sections from headings and signatures in document order.

        Parameters
        ----------
        targets : Sequence[HeadingTarget | Signature]
            Headings and signatures sorted by document position.
        comment_for : Callable[[Signature], Comment | None]
            Returns the comment built from a signature, if any.

        Returns
        -------
        tuple[list[Section], list[Section]]
            Top-level sections and all sections in document order.
        """
        all_sections: list[Section] = []
        top_sections: list[Section] = []
        stack: list[Section] = []
        for position, target in enumerate(targets):
            if not isinstance(target, HeadingTarget):
                continue
            section = self.build_section(target, len(all_sections))
            if section is None:
                continue
            own_comments = True
            for following in targets[position + 1 :]:
                if isinstance(following, HeadingTarget):
                    own_comments = False
                    if following.level <= target.level:
                        break
                    continue
                comment = comment_for(following)
                if comment is None:
                    continue
                section.comments.append(comment)
                if own_comments:
                    section.own_comments.append(comment)
                    comment.section = section

            while stack and stack[-1].level >= section.level:
                stack.pop()
            if stack:
                section.parent = stack[-1]
                stack[-1].children.append(section)
            else:
                top_sections.append(section)
            stack.append(section)
            all_sections.append(section)
        logger.debug("Built %d sections", len(all_sections))
        return top_sections, all_sections


def sort_targets(
    root: Tag,
    headings: typ.Iterable[HeadingTarget],
    signatures: typ.Iterable[Signature],
) -> list[HeadingTarget | Signature]:
    """Merge headings and signatures into document order.

    Signatures without a position (never attached to the tree) sort last,
    after the dated ones, keeping their relative order.
    """
    positions = document_positions(root)
    targets: list[HeadingTarget | Signature] = [*headings, *signatures]
    last = len(positions)

    def key(target: HeadingTarget | Signature) -> int:
        return positions.get(id(target.element), last)

    return sorted(targets, key=key)


__all__ = [
    "HeadingTarget",
    "SectionAssembler",
    "parse_section_number",
    "sort_targets",
]
