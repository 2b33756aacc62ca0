"""Indentation levels of comments and the list repairs they depend on.

A comment's level is the number of list containers (``ul``, ``dl``, ``ol``)
around it. Wiki markup produces lists that are fragmented, split by stray
blocks or shifted by a missing colon, so before the levels are final the
assembler merges adjacent reply lists, drops dives into other comments, lifts
parts stranded outside their list and splits lists after a comment's last
item. Once a level is known, the containers up the tree are tagged
``tp-commentLevel tp-commentLevel-N`` which also serves as a cache for the
comments that follow.
"""

from __future__ import annotations

import logging
import re
import typing as typ

from ._constants import (
    COMMENT_LEVEL_CLASS,
    COMMENT_LEVEL_TEMPLATE,
    COMMENT_PART_CLASS,
    LIST_TAGS,
    NO_HIGHLIGHT_CLASSES,
    TIMESTAMP_CLASS,
)
from .dom import (
    add_class,
    classes_of,
    contains,
    element_children,
    first_element_child,
    has_class,
    insert_after,
    is_element,
    is_heading,
    is_metadata,
    is_text,
    last_element_child,
    new_tag,
    previous_element_sibling,
    style_of,
)
from .models import CommentBoundaryError

if typ.TYPE_CHECKING:
    from bs4 import Tag

    from .context import ParseContext
    from .models import Comment

logger = logging.getLogger(__name__)

_LEVEL_CLASS_PATTERN = re.compile(r"tp-commentLevel-(\d+)")
_FILE_TYPEOF_PATTERN = re.compile(r"\bmw:File/(?:Thumb|Frame)")
_HIDDEN_STYLE_PATTERN = re.compile(r"float: *(?:left|right)|display: *none")
_MERGEABLE_LISTS = ("ul", "dl")
_ITEM_RENAMES = {"ul": {"dd": "li"}, "dl": {"li": "dd"}}
_MEDIA_CLASSES = ("thumb", "tleft", "tright", "floatleft", "floatright")


def lists_up_tree(
    element: Tag, root: Tag, *, include_first_match: bool = False
) -> list[Tag | None]:
    """Return the list containers above ``element``, outermost first.

    Climbing stops at a container already tagged ``tp-commentLevel-N``: its
    ancestors are not visited and are represented by ``None`` placeholders,
    ``N`` entries in total. With ``include_first_match`` the last placeholder
    is the tagged container itself.

    Examples
    --------
    >>> from bs4 import BeautifulSoup
    >>> soup = BeautifulSoup("<dl><dd><ul><li>x</li></ul></dd></dl>", "html.parser")
    >>> [el.name for el in lists_up_tree(soup.li, soup)]
    ['dl', 'ul']
    """
    lists: list[Tag | None] = []
    node = element.parent
    while node is not None and node is not root:
        if node.name in LIST_TAGS:
            if has_class(node, COMMENT_LEVEL_CLASS):
                match = _LEVEL_CLASS_PATTERN.search(" ".join(classes_of(node)))
                if match:
                    placeholders: list[Tag | None] = [None] * int(match.group(1))
                    if include_first_match and placeholders:
                        placeholders[-1] = node
                    lists[:0] = placeholders
                return lists
            lists.insert(0, node)
        node = node.parent
    return lists


def split_parent_after(node: Tag) -> tuple[Tag, Tag]:
    """Move the siblings following ``node`` into a copy of its parent.

    The copy is inserted right after the parent when it received an element
    or some non-blank text.

    Returns
    -------
    tuple[Tag, Tag]
        The original parent and its copy.
    """
    parent = node.parent
    clone = new_tag(parent.name)
    clone.attrs = {
        key: list(value) if isinstance(value, list) else value
        for key, value in parent.attrs.items()
    }
    moved = []
    while parent.contents and parent.contents[-1] is not node:
        moved.append(parent.contents[-1].extract())
    for child in reversed(moved):
        clone.append(child)
    if element_children(clone) or clone.get_text().strip():
        insert_after(clone, parent)
    return parent, clone


def _is_level_list(element: Tag) -> bool:
    return (
        element.name in _MERGEABLE_LISTS
        and not has_class(element, COMMENT_PART_CLASS)
        and element.find(class_=COMMENT_PART_CLASS) is not None
    )


def _is_or_has_level_list(element: Tag) -> bool:
    return _is_level_list(element) or any(
        _is_level_list(descendant) for descendant in element.find_all(_MERGEABLE_LISTS)
    )


def _merge_into(top: Tag, bottom: Tag) -> Tag | None:
    """Move the children of ``bottom`` into ``top`` and return the first moved element."""
    renames = _ITEM_RENAMES.get(top.name, {})
    first_moved: Tag | None = None
    seen_content = False
    for child in list(bottom.contents):
        moved = child.extract()
        if is_element(moved):
            if moved.name in renames:
                moved.name = renames[moved.name]
            if not seen_content:
                first_moved = moved
                seen_content = True
        elif not seen_content and is_text(moved) and moved.strip():
            # Stray text between replies stays visible as an element.
            seen_content = True
            wrapper = new_tag("span")
            wrapper.append(moved)
            moved = wrapper
        top.append(moved)
    bottom.extract()
    return first_moved


def _is_interleaved_media(element: Tag) -> bool:
    """Tell whether ``element`` is an image block splitting a reply list."""
    if has_class(element, COMMENT_PART_CLASS) or element.find(class_=COMMENT_PART_CLASS):
        return False
    return (
        element.name in ("figure", "img")
        or any(has_class(element, name) for name in _MEDIA_CLASSES)
        or bool(_FILE_TYPEOF_PATTERN.search(element.get("typeof", "")))
    )


def _previous_level_list(element: Tag) -> tuple[Tag, list[Tag]] | None:
    """Return the reply list above ``element`` and the media blocks in between."""
    media: list[Tag] = []
    sibling = previous_element_sibling(element)
    while sibling is not None and _is_interleaved_media(sibling):
        media.insert(0, sibling)
        sibling = previous_element_sibling(sibling)
    if sibling is None or not _is_level_list(sibling):
        return None
    return sibling, media


def _move_media(top: Tag, media: list[Tag]) -> None:
    """Keep ``media`` between the replies by giving them an item of ``top``."""
    if not media:
        return
    item = new_tag("dd" if top.name == "dl" else "li")
    for element in media:
        item.append(element.extract())
    top.append(item)


def _merge_pass(root: Tag) -> int:
    changes = 0
    bottoms = [
        element
        for element in root.find_all(_MERGEABLE_LISTS)
        if _is_level_list(element) and _previous_level_list(element) is not None
    ]
    for bottom in bottoms:
        if bottom.parent is None:
            continue
        found = _previous_level_list(bottom)
        if found is None:
            continue
        top, media = found
        while top is not None and bottom is not None:
            first_moved: Tag | None = None
            if _is_or_has_level_list(top):
                first_child = first_element_child(bottom)
                if first_child is not None and first_child.name in ("dl", "dd", "ul", "li"):
                    _move_media(top, media)
                    first_moved = _merge_into(top, bottom)
                    changes += 1
            media = []
            bottom = first_moved
            top = previous_element_sibling(first_moved) if first_moved is not None else None
            if bottom is None or not _is_or_has_level_list(bottom):
                break
    return changes


def merge_adjacent_lists(root: Tag) -> int:
    """Coalesce adjacent reply lists holding comment parts.

    Replies written with mismatched indentation characters produce sibling
    ``ul``/``dl`` containers where one list is meant. Items of the lower list
    move into the upper one, renamed to fit it, and the merge recurses into
    the first moved item. Passes repeat until nothing changes.

    Returns
    -------
    int
        Number of lists merged away.
    """
    total = 0
    while changes := _merge_pass(root):
        total += changes
    if total:
        logger.debug("Merged %d adjacent lists", total)
    return total


class LevelAssembler:
    """Compute comment levels and repair the list structure around comments."""

    def __init__(self, context: ParseContext) -> None:
        self.context = context
        self.root = context.root
        self.no_highlight_classes = (
            *NO_HIGHLIGHT_CLASSES,
            *context.config.no_highlight_classes,
        )

    def is_highlightable(self, element: Tag) -> bool:
        """Tell whether ``element`` shows comment content rather than decoration."""
        if is_heading(element) or is_metadata(element):
            return False
        if any(has_class(element, name) for name in self.no_highlight_classes):
            return False
        typeof = element.get("typeof")
        if element.name == "figure" and isinstance(typeof, str) and (
            _FILE_TYPEOF_PATTERN.search(typeof)
        ):
            return False
        return not _HIDDEN_STYLE_PATTERN.search(style_of(element))

    def highlightables_of(self, elements: typ.Iterable[Tag]) -> list[Tag]:
        """Return the highlightable ``elements``.

        Raises
        ------
        CommentBoundaryError
            If none of the elements is highlightable.
        """
        highlightables = [element for element in elements if self.is_highlightable(element)]
        if not highlightables:
            msg = "Comment has no highlightable elements."
            raise CommentBoundaryError(msg, kind="highlightables")
        return highlightables

    def lists_of(self, element: Tag, *, include_first_match: bool = False) -> list[Tag | None]:
        """Return the list containers above ``element`` within the page root."""
        return lists_up_tree(element, self.root, include_first_match=include_first_match)

    def prepare(self, comment: Comment, *, has_dive: bool) -> None:
        """Compute a provisional level and repair the markup around ``comment``."""
        comment.highlightables = self.highlightables_of(comment.body_nodes)
        level_elements = [self.lists_of(element) for element in comment.highlightables]
        comment.level = min(len(level_elements[0]), len(level_elements[-1]))
        comment.logical_level = comment.level
        if self.review_dives(comment, has_dive=has_dive):
            level_elements = [self.lists_of(element) for element in comment.highlightables]
        self.fix_indentation_holes(comment)
        self.fix_end_level(comment, level_elements)

    def review_dives(self, comment: Comment, *, has_dive: bool) -> bool:
        """Drop leading elements reached by a dive into a deeper, finished comment.

        Returns
        -------
        bool
            Whether the comment's elements changed.
        """
        elements = comment.body_nodes
        if len(elements) <= 1 or not has_dive:
            return False
        all_levels = [self.lists_of(element) for element in elements]
        last_ancestors = all_levels[-1]
        if len(all_levels[0]) <= len(last_ancestors):
            return False
        first_wrong = 0
        for i in range(len(all_levels) - 2, -1, -1):
            if len(all_levels[i]) > len(last_ancestors):
                first_wrong = i
                break
        lower_element = elements[first_wrong]
        # A deeper block followed by a shallower signed block is one comment
        # unless the deeper block ends with its own timestamp.
        if last_ancestors or has_class(last_element_child(lower_element), TIMESTAMP_CLASS):
            del elements[: first_wrong + 1]
            comment.highlightables = self.highlightables_of(elements)
            return True
        return False

    def fix_indentation_holes(self, comment: Comment) -> None:
        """Move parts standing outside the comment's lists into a new item."""
        elements = comment.body_nodes
        if not comment.level or len(elements) <= 2:  # noqa: PLR2004
            return
        all_levels = [
            self.lists_of(element, include_first_match=True) for element in elements
        ]
        groups: list[list[int]] = []
        for i, ancestors in enumerate(all_levels[1:-1]):
            if ancestors:
                continue
            if not groups or groups[-1][-1] != i:
                groups.append([])
            groups[-1].append(i + 1)
        for indexes in groups:
            level_element = next(
                (
                    ancestors[-1]
                    for ancestors in reversed(all_levels[: indexes[0]])
                    if ancestors and ancestors[-1] is not None
                ),
                None,
            )
            if level_element is None:
                continue
            item = new_tag("dd" if level_element.name == "dl" else "li")
            for index in indexes:
                item.append(elements[index].extract())
            level_element.append(item)

    def fix_end_level(self, comment: Comment, level_elements: list[list[Tag | None]]) -> None:
        """Replace the trailing items of a list signed in its last item by the list.

        Handles an introduction followed by a list whose last item carries the
        signature: the whole list belongs to the comment, at the level of the
        introduction.
        """
        highlightables = comment.highlightables
        if classes_of(highlightables[0]):
            return
        last_ancestors = level_elements[-1]
        if len(level_elements[0]) != len(last_ancestors) - 1:
            return
        closest = last_ancestors[-1]
        if closest is None:
            return
        parent: Tag | None = highlightables[-1]
        while parent is not None and parent is not closest and parent is not self.root:
            parent, _ = split_parent_after(parent)
        if parent is not closest:
            return

        elements = comment.body_nodes
        first_item_index = len(elements) - 1
        for i in range(len(elements) - 2, 0, -1):
            if contains(closest, elements[i]):
                first_item_index = i
            else:
                break
        elements[first_item_index:] = [closest]
        comment.highlightables = self.highlightables_of(elements)

    def assign(self, comment: Comment) -> None:
        """Set the final level of ``comment`` and tag its level containers."""
        level_elements = [self.lists_of(element) for element in comment.highlightables]
        comment.level = min(len(level_elements[0]), len(level_elements[-1]))
        comment.logical_level = comment.level
        for i in range(comment.level):
            level_class = COMMENT_LEVEL_TEMPLATE.format(level=i + 1)
            for ancestors in level_elements:
                if i < len(ancestors) and ancestors[i] is not None:
                    add_class(ancestors[i], COMMENT_LEVEL_CLASS, level_class)


__all__ = [
    "LevelAssembler",
    "lists_up_tree",
    "merge_adjacent_lists",
    "split_parent_after",
]
