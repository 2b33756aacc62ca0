"""Turn collected comment parts into the elements forming a comment.

The collector returns every node it stepped on, nearest to the signature
first. :class:`StructuralNormalizer` removes parts nested in other parts,
wraps loose inline runs into ``div`` elements, drops what cannot open a
comment, flips the parts into document order and replaces indentation lists
with their items.
"""

from __future__ import annotations

import logging
import typing as typ

from ._constants import ITEM_TAGS, LIST_TAGS, REFERENCE_LIST_CLASSES, SIGNATURE_CLASS
from .collector import (
    CommentPart,
    Step,
    is_other_kind_of_list,
    is_part_of_list,
    top_elements_with_text,
)
from .dom import (
    contains,
    count_by_class,
    element_children,
    first_element_child,
    find_by_class,
    has_class,
    insert_before,
    is_element,
    is_inline,
    is_metadata,
    new_tag,
    next_element_sibling,
    previous_element_sibling,
    text_of,
)

if typ.TYPE_CHECKING:
    from bs4 import Tag

    from .collector import CommentCollector

logger = logging.getLogger(__name__)


class StructuralNormalizer:
    """Clean up the parts found by a :class:`~talkparse.collector.CommentCollector`."""

    def __init__(self, collector: CommentCollector) -> None:
        self.collector = collector
        self.context = collector.context
        self.signature_element = collector.signature_element

    def normalize(self, parts: list[CommentPart]) -> list[CommentPart]:
        """Return the comment's parts in document order, restructured.

        ``parts`` must be in the nearest-first order the collector produces.
        The tree is modified: inline runs get wrapped and numbered lists used
        for indentation get rewrapped.
        """
        parts = list(parts)
        self.remove_nested_parts(parts)
        self.wrap_inline_parts(parts)
        parts = self.filter_parts(parts)
        parts.reverse()
        self.replace_lists_with_items(parts)
        self.wrap_numbered_list(parts)
        return parts

    def remove_nested_parts(self, parts: list[CommentPart]) -> None:
        """Drop parts contained by a later ``UP`` part without foreign content."""
        i = len(parts) - 1
        while i >= 0:
            part = parts[i]
            if part.step is Step.UP and not part.has_foreign_content:
                dive_index = 0
                for j in range(i - 1, 0, -1):
                    if parts[j].step is Step.DIVE:
                        dive_index = j
                        break
                del parts[dive_index:i]
                i = dive_index
            i -= 1

    def wrap_inline_parts(self, parts: list[CommentPart]) -> None:
        """Move runs of sibling inline parts into ``div`` wrappers."""
        sequences: list[tuple[int, int]] = []
        start: int | None = None
        enclose = False
        skip_until_up = False
        for i in range(len(parts) + 1):
            part = parts[i] if i < len(parts) else None
            if skip_until_up:
                if part is not None and part.step is not Step.UP:
                    continue
                skip_until_up = False
            if (
                part is not None
                and (start is None or part.step in (Step.BACK, Step.START))
                and not part.has_foreign_content
                and not part.is_heading
            ):
                if start is None:
                    # Nodes whose parent is inline stay where they are.
                    if is_inline(part.node.parent) is True:
                        skip_until_up = True
                        continue
                    start = i
                if not enclose and is_inline(part.node, text_as_inline=True) is True and (
                    text_of(part.node).strip()
                ):
                    enclose = True
            elif start is not None:
                if enclose:
                    sequences.append((start, i - 1))
                start = None
                enclose = False

        for first, last in reversed(sequences):
            wrapper = new_tag("div")
            parent = parts[first].node.parent
            following = parts[first].node.next_sibling
            for j in range(last, first - 1, -1):
                wrapper.append(parts[j].node.extract())
            if following is not None:
                insert_before(wrapper, following)
            else:
                parent.append(wrapper)
            parts[first : last + 1] = [
                CommentPart(
                    wrapper,
                    Step.REPLACED,
                    has_own_signature=contains(wrapper, self.signature_element),
                )
            ]

    def _is_removable_lead(self, parts: list[CommentPart], i: int) -> bool:
        node = parts[i].node
        if node.name == "p" and not text_of(node).strip() and all(
            child.name == "br" for child in element_children(node)
        ):
            return True
        if node.name == "hr" or is_metadata(node):
            return True
        if any(has_class(node, name) for name in REFERENCE_LIST_CLASSES):
            return True
        if node.name == "dl" and first_element_child(
            first_element_child(next_element_sibling(node))
        ) is parts[i - 1].node:
            return True
        if self.context.in_no_signature_element(node):
            return True
        outdent_class = self.context.config.outdent_class
        return (
            parts[i].step is not Step.UP
            and self.context.has_outdents
            and (has_class(node, outdent_class) or find_by_class(node, outdent_class) is not None)
        )

    def is_unsigned_item(self, part: CommentPart) -> bool:
        """Tell whether ``part`` is a list item holding an earlier, unsigned reply."""
        node = part.node
        if part.step is not Step.BACK or node.name != "li":
            return False
        link = node.find("a")
        if link is None or node.find(["ul", "ol", "dl"]) is not None:
            return False
        return self.context.classifier.classify(link) is not None

    def filter_parts(self, parts: list[CommentPart]) -> list[CommentPart]:
        """Drop foreign, text and lead-in parts."""
        parts = [
            part for part in parts if not part.has_foreign_content and not part.is_text
        ]
        if not parts:
            return parts

        for i in range(len(parts) - 1, 0, -1):
            if not self._is_removable_lead(parts, i):
                break
            del parts[i]

        first_node = parts[-1].node
        if first_node.name == "p" and first_node.contents:
            first_child = first_node.contents[0]
            if is_element(first_child) and first_child.name == "br":
                insert_before(first_child, first_node)

        collector = self.collector
        start_node: Tag | None = None
        i = len(parts) - 1
        while i >= 1:
            part = parts[i]
            if part.is_heading:
                i -= 1
                continue
            if self.is_unsigned_item(part):
                del parts[i:]
                i -= 1
                continue
            if start_node is None:
                start_node = part.node
                if (
                    start_node.name in LIST_TAGS or start_node.name in ITEM_TAGS
                ) and not collector.is_intro_list(
                    start_node, check_next=True, last_part_node=parts[0].node
                ):
                    break
            following = next_element_sibling(part.node)
            if following is not None and collector.is_intro(
                part.step, 2, part.node, following, last_part_node=parts[0].node
            ):
                del parts[i:]
            i -= 1
        return parts

    def is_comment_level(self, parts: list[CommentPart], i: int, last_part_node: Tag) -> bool:
        """Tell whether the list part ``parts[i]`` is an indentation level of the comment."""
        part = parts[i]
        node = part.node
        if (
            (node.name not in LIST_TAGS and node.name not in ITEM_TAGS)
            or is_other_kind_of_list(node)
        ):
            return False
        following = parts[i + 1] if i + 1 < len(parts) else None
        preceding = parts[i - 1] if i > 0 else None
        children = element_children(node)
        # Lists that are content of the comment, not its indentation.
        if (
            part.step is Step.UP
            and following is not None
            and (
                (
                    node.name != "ul"
                    and is_part_of_list(following.node, definition_only=False)
                    and following.step is not Step.REPLACED
                )
                or len(children) > 1
            )
            and is_part_of_list(last_part_node, definition_only=True)
        ):
            return False
        if part.step is Step.UP and (preceding is None or preceding.step is not Step.BACK):
            return True
        previous_sibling = previous_element_sibling(node)
        if (
            is_part_of_list(last_part_node, definition_only=True)
            and not (part.step is Step.BACK and node.name in ITEM_TAGS)
            and not (
                i != 0
                and node.name in ("ul", "ol")
                and previous_sibling is not None
                and previous_sibling.name in ("dl", "ul")
            )
        ):
            return True
        return (
            node.name == "ul"
            and len(children) == 1
            and is_part_of_list(last_part_node, definition_only=False)
        )

    def replace_lists_with_items(self, parts: list[CommentPart]) -> None:
        """Replace indentation lists with the items carrying the comment's text."""
        last_part_node = parts[-1].node
        for i in range(len(parts) - 1, -1, -1):
            part = parts[i]
            if not self.is_comment_level(parts, i, last_part_node):
                continue
            nodes = top_elements_with_text(part.node).nodes
            if len(nodes) > 1:
                parts[i : i + 1] = [
                    CommentPart(
                        element,
                        Step.REPLACED,
                        has_own_signature=contains(element, self.signature_element),
                    )
                    for element in nodes
                ]
            elif nodes[0] is not part.node:
                part.node = nodes[0]
                part.step = Step.REPLACED

    def wrap_numbered_list(self, parts: list[CommentPart]) -> None:
        """Wrap a numbered list opening the comment into ``dl > dd`` or a ``div``."""
        if len(parts) < 2:  # noqa: PLR2004
            return
        parent = parts[0].node.parent
        if parent is None or parent.name != "ol":
            return
        own = int(contains(parent, self.signature_element))
        if count_by_class(parent, SIGNATURE_CLASS) - own != 0:
            return
        items = [part for part in parts if part.node.parent is parent]
        used_as_indentation = not any(
            part.node.parent is not parent and contains(part.node.parent, parent)
            for part in parts
        )
        if used_as_indentation:
            inner = new_tag("dd")
            outer = new_tag("dl")
            outer.append(inner)
        else:
            inner = new_tag("div")
            outer = inner
        parent.replace_with(outer)
        inner.append(parent)
        parts[: len(items)] = [
            CommentPart(inner, Step.REPLACED, has_own_signature=True)
        ]


__all__ = ["StructuralNormalizer"]
