"""Collect the nodes forming a comment, walking back from its signature.

The walk is a small state machine. Every step moves to the previous sibling
(``BACK``), to the parent (``UP``) or down into the last block child of a part
holding foreign content (``DIVE``), and records a :class:`CommentPart` for the
node it reached. The walk ends at headings, at elements that cannot belong to
a comment (other comments, closed discussions, the table of contents) and at
the lead-in of a section, and is bounded so malformed trees cannot keep it
going forever.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import logging
import re
import typing as typ

from ._constants import (
    COMMENT_PART_CLASS,
    ITEM_TAGS,
    LIST_TAGS,
    MAX_COLLECT_STEPS,
    SIGNATURE_CLASS,
    TALK_MESSAGE_BOX_CLASS,
    TOC_META_PROPERTY,
)
from .dom import (
    ElementsAndTextTreeWalker,
    contains,
    count_by_class,
    element_children,
    find_by_class,
    has_class,
    is_element,
    is_heading,
    is_inline,
    is_metadata,
    is_text,
    next_element_sibling,
    previous_element_sibling,
    style_of,
    text_of,
)
from .models import CommentBoundaryError

if typ.TYPE_CHECKING:
    from bs4 import Tag

    from .context import ParseContext
    from .dom import Node

logger = logging.getLogger(__name__)

_WHITESPACE_PATTERN = re.compile(r"\s+")
_BACKGROUND_STYLE = "background-"


class Step(enum.Enum):
    """How a comment part was reached."""

    START = "start"
    BACK = "back"
    UP = "up"
    DIVE = "dive"
    REPLACED = "replaced"


@dc.dataclass(slots=True, eq=False)
class CommentPart:
    """A node collected while walking back from a signature.

    Attributes
    ----------
    node : Tag or NavigableString
        The collected node.
    step : Step
        How the walk reached the node.
    is_text : bool
        Whether the node is a text leaf.
    is_heading : bool
        Whether the node is a heading or heading wrapper.
    has_own_signature : bool
        Whether the node contains the signature being collected.
    has_foreign_content : bool
        Whether the node holds content of another comment.
    """

    node: Node
    step: Step
    is_text: bool = False
    is_heading: bool = False
    has_own_signature: bool = False
    has_foreign_content: bool = False


class TopElements(typ.NamedTuple):
    """Innermost elements carrying all the text of a list, and the depth reached."""

    nodes: list[Tag]
    levels_passed: int


def _squeeze(text: str) -> str:
    return _WHITESPACE_PATTERN.sub("", text)


def _is_list_level_child(child: Tag) -> bool:
    if child.name in LIST_TAGS or child.name in ITEM_TAGS:
        return True
    # An inline tag wrapped around block tags by broken markup.
    return not text_of(child).strip() and is_inline(child) is True


def top_elements_with_text(element: Tag) -> TopElements:
    """Dive through list wrappers that hold nothing but the list's text.

    A reply written with deeper indentation than its parent comment creates
    its own nested list tree rather than a subtree. Descending while every
    child is a list or list item and the children together hold all the text
    gives the elements that really carry the content.

    Examples
    --------
    >>> from bs4 import BeautifulSoup
    >>> soup = BeautifulSoup("<dl><dd><dl><dd>Hi</dd></dl></dd></dl>", "html.parser")
    >>> found = top_elements_with_text(soup.dl)
    >>> [node.name for node in found.nodes], found.levels_passed
    (['dd'], 2)
    """
    text = _squeeze(text_of(element))
    children = [element]
    levels_passed = 0
    while True:
        nodes = children
        children = [child for node in nodes for child in element_children(node)]
        if nodes[0].name in LIST_TAGS:
            levels_passed += 1
        if not (
            children
            and all(_is_list_level_child(child) for child in children)
            and _squeeze("".join(text_of(child) for child in children)) == text
        ):
            return TopElements(nodes, levels_passed)


def is_part_of_list(node: Node | None, *, definition_only: bool) -> bool:
    """Tell whether ``node`` is, or sits directly in, a bulleted or definition list."""
    if node is None:
        return False
    names = {"dd", "dl"} if definition_only else {"dd", "dl", "li", "ul"}
    parent = node.parent
    return (is_element(node) and node.name in names) or (
        parent is not None and parent.name in names
    )


def is_other_kind_of_list(element: Tag) -> bool:
    """Tell whether ``element`` is a gallery or navigation list, not a thread."""
    return element.name == "ul" and (
        has_class(element, "gallery") or element.get("role") == "navigation"
    )


class CommentCollector:
    """Walk the tree from one signature and collect the comment's parts.

    Parameters
    ----------
    context : ParseContext
        State of the current parse pass.
    signature_element : Tag
        The ``span.tp-signature`` wrapper of the comment's signature.
    preceding_heading : Tag, optional
        Heading found right before the signature in document order, if any.
    """

    def __init__(
        self,
        context: ParseContext,
        signature_element: Tag,
        preceding_heading: Tag | None = None,
    ) -> None:
        self.context = context
        self.root = context.root
        self.signature_element = signature_element
        self.preceding_heading = preceding_heading

    def collect(self) -> list[CommentPart]:
        """Return the comment's parts, nearest to the signature first.

        Raises
        ------
        CommentBoundaryError
            If the walk re-enters another comment or exceeds its step bound.
        """
        walker = ElementsAndTextTreeWalker(self.root, self.signature_element)
        parts, first_foreign = self._start_parts(walker)
        return self._traverse(parts, walker, first_foreign)

    def _start_parts(
        self, walker: ElementsAndTextTreeWalker
    ) -> tuple[list[CommentPart], Node | None]:
        while walker.current is not self.root and is_inline(walker.current.parent) is True:
            walker.parent_node()
        farthest_inline = walker.current

        # A block after the signature inside the same container belongs to
        # someone else, e.g. a reply list nested into the item.
        first_foreign: Node | None = None
        while first_foreign is None:
            node = walker.next_sibling()
            while node is None and walker.parent_node() is not None:
                node = walker.next_sibling()
            if node is None:
                break
            if is_inline(node, text_as_inline=True) is not True and not is_metadata(node):
                first_foreign = node

        parent = farthest_inline.parent
        parts: list[CommentPart] = []
        if (
            (first_foreign is not None and contains(parent, first_foreign))
            or count_by_class(parent, SIGNATURE_CLASS, 2) > 1
            or not self.is_element_eligible(parent, Step.START)
            or any(
                self.context.has_reject_class(child) for child in element_children(parent)
            )
        ):
            walker.current = farthest_inline
            trailing: list[CommentPart] = []
            while (node := walker.next_sibling()) is not None:
                if is_inline(node, text_as_inline=True) is not True and not is_metadata(node):
                    break
                trailing.append(CommentPart(node, Step.START, is_text=is_text(node)))
            parts.extend(reversed(trailing))
            walker.current = farthest_inline
        else:
            walker.current = parent
        parts.append(CommentPart(walker.current, Step.START, has_own_signature=True))
        return parts, first_foreign

    def _is_cell_of_multi_comment_table(self, element: Tag) -> bool:
        if element.name not in ("td", "th"):
            return False
        table: Tag | None = None
        node: Tag | None = element
        while node is not None and node is not self.root:
            if node.name == "table":
                table = node
                break
            node = node.parent
        return table is None or count_by_class(table, SIGNATURE_CLASS, 2) > 1

    def is_element_eligible(self, element: Tag, step: Step) -> bool:
        """Tell whether ``element`` may be part of a comment when reached by ``step``."""
        context = self.context
        if element is self.root:
            return False
        if step is not Step.UP and (
            context.has_reject_class(element)
            or (
                context.config.is_talk_namespace
                and has_class(element, TALK_MESSAGE_BOX_CLASS)
            )
        ):
            return False
        if element.name == "meta" and element.get("property") == TOC_META_PROPERTY:
            return False
        if element.get("id") == "toc" or element.name == "dt":
            return False
        if self._is_cell_of_multi_comment_table(element):
            return False
        if element.name == "hr":
            # Horizontal lines often separate blocks after a signed comment.
            previous = previous_element_sibling(element)
            if previous is not None and find_by_class(previous, SIGNATURE_CLASS):
                return False
        reject_node = context.config.reject_node
        return reject_node is None or not reject_node(element)

    def is_intro_list(
        self,
        element: Node,
        *,
        check_next: bool,
        last_part_node: Node | None = None,
    ) -> bool:
        """Tell whether a list holds introductory text rather than comment content."""
        if not is_element(element) or element.name not in LIST_TAGS:
            return False
        name = element.name
        previous = previous_element_sibling(element)
        following = next_element_sibling(element)
        first_child = element.contents[0] if element.contents else None
        result = (
            (name == "dl" and is_element(first_child) and first_child.name == "dt")
            or (
                name in ("dl", "ul")
                and previous is not None
                and is_heading(previous)
                and following is not None
                and following.name not in ("dl", "ol")
                and not is_part_of_list(last_part_node, definition_only=True)
                and find_by_class(element, SIGNATURE_CLASS) is None
            )
            or is_other_kind_of_list(element)
        )
        if check_next and not result and following is not None and name != "ol":
            levels = top_elements_with_text(element).levels_passed
            next_levels = top_elements_with_text(following).levels_passed
            result = next_levels > levels or (
                levels == 1
                and next_levels == levels
                and len(element_children(element)) > 1
                and name != following.name
            )
        return result

    def is_intro(
        self,
        step: Step | None,
        stage: int,
        node: Node,
        next_node: Node,
        *,
        last_part_node: Node | None = None,
        previous_part: CommentPart | None = None,
    ) -> bool:
        """Tell whether ``node`` introduces the list that follows it.

        Stage 1 runs during the walk, stage 2 while filtering parts once text
        nodes are gone.
        """
        if step is not Step.BACK or not is_element(next_node):
            return False
        if previous_part is not None and previous_part.step is not Step.UP:
            return False
        next_children = element_children(next_node)
        parent = node.parent
        in_item = parent is not None and parent.name in ITEM_TAGS
        if in_item and not (
            next_node.name == "ol"
            and next_children
            and contains(next_children[0], self.signature_element)
        ):
            return False
        if next_node.name == "dl":
            list_parent = next_node.parent
            deep_enough = (
                list_parent is not self.root
                and list_parent is not None
                and list_parent.parent is not self.root
            )
            if stage != 2 and not deep_enough:
                return False
        elif next_node.name not in ("ul", "ol"):
            return False

        if is_element(node) and node.name in LIST_TAGS:
            if not self.is_intro_list(
                node, check_next=stage == 2, last_part_node=last_part_node
            ):
                return False
        if is_text(node):
            previous = node.previous_sibling
            if (
                is_element(previous)
                and previous.name in LIST_TAGS
                and not self.is_intro_list(
                    previous, check_next=False, last_part_node=last_part_node
                )
            ):
                return False
        if last_part_node is not None and not is_part_of_list(
            last_part_node, definition_only=False
        ):
            return False
        # A list at the end of the comment is not an introduction.
        return not (
            next_node.name in ("ul", "ol")
            and len(next_children) > 1
            and not contains(next_children[0], self.signature_element)
        )

    def _is_section_lead_in_item(self, node: Node, next_node: Node) -> bool:
        """Tell whether ``node`` is an unsigned item opening a list under a heading."""
        if not is_element(node) or node.name not in ITEM_TAGS:
            return False
        container = node.parent
        if (
            container is None
            or container.name not in LIST_TAGS
            or next_node.parent is not container
            or find_by_class(node, SIGNATURE_CLASS) is not None
        ):
            return False
        return is_heading(previous_element_sibling(container))

    def _next_step(
        self, walker: ElementsAndTextTreeWalker, previous: CommentPart
    ) -> Step | None:
        if previous.has_own_signature or not previous.has_foreign_content:
            if walker.previous_sibling() is not None:
                return Step.BACK
            if walker.parent_node() is None:
                return None
            return Step.UP

        # Look for parts of this comment at the bottom of a foreign element.
        step: Step | None = None
        while True:
            parent = walker.current
            if walker.last_child() is None:
                break
            while (
                is_text(walker.current)
                and not str(walker.current).strip()
                and walker.previous_sibling() is not None
            ):
                pass
            if (
                is_inline(walker.current, text_as_inline=True) is True
                or _BACKGROUND_STYLE in style_of(previous.node)
            ):
                walker.current = parent
                break
            step = Step.DIVE
        return step

    def _has_foreign_content(self, node: Tag, first_foreign: Node | None, own: bool) -> bool:
        if is_inline(node) is True:
            return False
        count = count_by_class(node, SIGNATURE_CLASS, int(own) + 1)
        if count - int(own) > 0:
            return True
        if (
            first_foreign is not None
            and contains(node, first_foreign)
            and not (node.name == "table" or _BACKGROUND_STYLE in style_of(node))
        ):
            return True
        heading = self.preceding_heading
        return heading is not None and node is not heading and contains(node, heading)

    def _ends_with_signature_trace(self, node: Tag, own: bool) -> bool:
        pattern = self.context.signature_ending
        if pattern is None or own or is_inline(node) is True:
            return False
        if not pattern.search(text_of(node)):
            return False
        return not any(
            contains(element, node) for element in self.context.no_signature_elements
        )

    def _traverse(
        self,
        parts: list[CommentPart],
        walker: ElementsAndTextTreeWalker,
        first_foreign: Node | None,
    ) -> list[CommentPart]:
        for _ in range(MAX_COLLECT_STEPS):
            previous = parts[-1]
            step = self._next_step(walker, previous)
            if step is None:
                return parts
            node = walker.current

            if self.is_intro(step, 1, node, previous.node, previous_part=previous):
                return parts
            if step is Step.BACK and self._is_section_lead_in_item(node, previous.node):
                return parts

            part = CommentPart(node, step, is_text=is_text(node))
            if is_element(node):
                if not self.is_element_eligible(node, step):
                    return parts
                if step is Step.UP and has_class(node, COMMENT_PART_CLASS):
                    msg = "Comment walk climbed into an element of another comment."
                    raise CommentBoundaryError(msg)
                own = contains(node, self.signature_element)
                part.is_heading = is_heading(node)
                part.has_own_signature = own
                part.has_foreign_content = self._has_foreign_content(
                    node, first_foreign, own
                )
                # A trace of "~~~" at the end of a block means an unsigned comment.
                if self._ends_with_signature_trace(node, own):
                    return parts

            parts.append(part)
            if part.is_heading:
                return parts

        msg = f"Comment walk did not finish within {MAX_COLLECT_STEPS} steps."
        raise CommentBoundaryError(msg)


__all__ = [
    "CommentCollector",
    "CommentPart",
    "Step",
    "TopElements",
    "is_other_kind_of_list",
    "is_part_of_list",
    "top_elements_with_text",
]
