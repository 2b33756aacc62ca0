"""Reply structure: outdent templates, logical levels and parent comments."""

from __future__ import annotations

import logging
import typing as typ

from ._constants import COMMENT_INDEX_ATTR
from .dom import ElementsTreeWalker

if typ.TYPE_CHECKING:
    from .context import ParseContext
    from .models import Comment

logger = logging.getLogger(__name__)


def _is_earlier_or_same(candidate: Comment, child: Comment) -> bool:
    if child.date is None or candidate.date is None:
        return True
    return child.date >= candidate.date


def _shift_following(comments: list[Comment], child: Comment, parent: Comment) -> None:
    # Outdents are processed last to first, so ``child.level`` still equals
    # its logical level before the shift.
    for comment in comments[child.index :]:
        if (
            comment.section is not parent.section
            or comment.logical_level < child.level
            or (comment is not child and comment.logical_level == child.level)
            or (
                comment.date is not None
                and child.date is not None
                and comment.date < child.date
            )
        ):
            break
        comment.logical_level = parent.level + 1 + (comment.logical_level - child.level)


def process_outdents(context: ParseContext, comments: list[Comment]) -> dict[int, int]:
    """Raise the logical level of comments written after an outdent template.

    An outdent template resets indentation while the conversation goes on, so
    the comment right after one is a reply to the latest earlier comment of
    its section (not newer than itself). That comment and the replies below
    it get logical levels relative to the parent.

    Returns
    -------
    dict[int, int]
        Explicit parents by child index, for children whose parent is not
        the comment right before them.
    """
    explicit: dict[int, int] = {}
    outdent_class = context.config.outdent_class
    if not context.has_outdents or not outdent_class or not comments:
        return explicit

    for element in reversed(context.root.find_all(class_=outdent_class)):
        walker = ElementsTreeWalker(context.root, element)
        while (node := walker.next_node()) is not None:
            value = node.get(COMMENT_INDEX_ATTR)
            if value is None:
                continue
            if value == "0":
                break
            child = comments[int(value)]
            parent: Comment | None = None
            for candidate in reversed(comments[: child.index]):
                if candidate.section is not child.section:
                    break
                if _is_earlier_or_same(candidate, child):
                    parent = candidate
                    break
            if parent is None:
                break
            if parent.index != child.index - 1:
                explicit[child.index] = parent.index
            child.is_outdented = True
            _shift_following(comments, child, parent)
            logger.debug(
                "Comment %d is outdented under comment %d", child.index, parent.index
            )
            break
    return explicit


def assign_parents(comments: list[Comment], explicit: dict[int, int] | None = None) -> None:
    """Set ``parent_index`` on every comment from logical levels.

    The parent is the nearest earlier comment of lower logical level in the
    same section. A sibling at the same level shares its parent.
    """
    explicit = explicit or {}
    for comment in comments:
        if comment.index in explicit:
            comment.parent_index = explicit[comment.index]
            continue
        comment.parent_index = None
        if comment.logical_level == 0:
            continue
        for candidate in reversed(comments[: comment.index]):
            if candidate.section is not comment.section:
                break
            if (
                candidate.logical_level == comment.logical_level
                and candidate.parent_index is not None
            ):
                comment.parent_index = candidate.parent_index
                break
            if candidate.logical_level < comment.logical_level:
                comment.parent_index = candidate.index
                break


__all__ = ["assign_parents", "process_outdents"]
