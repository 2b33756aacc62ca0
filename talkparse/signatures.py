"""Resolve signatures from timestamps.

Starting at each timestamp marker, :class:`SignatureResolver` walks backward
through the tree to find the run of nodes forming the author's signature (the
author links and whatever decorates them) and wraps that run into a
``span.tp-signature`` element. Unsigned templates without a timestamp are
found separately. A timestamp followed by another one in the same block is an
extra signature: it belongs to the same comment as the later sign-off.
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ

from ._constants import (
    EXTERNAL_LINK_CLASS,
    SIGNATURE_CLASS,
    STRIKE_TAGS,
    STRUCK_SIGNATURE_MIN_LENGTH,
    TIMESTAMP_CLASS,
)
from .dom import (
    ElementsAndTextTreeWalker,
    ElementsTreeWalker,
    add_class,
    contains,
    has_class,
    index_by_identity,
    insert_before,
    is_element,
    is_inline,
    is_metadata,
    is_text,
    new_tag,
    style_of,
    text_of,
)
from .links import LinkType
from .models import Signature

if typ.TYPE_CHECKING:
    from bs4 import Tag

    from .context import ParseContext
    from .dom import Node
    from .links import LinkClassifier
    from .models import Timestamp

logger = logging.getLogger(__name__)

# Sentence end: a letter, optional closing brackets, then punctuation. The
# letter requirement keeps abbreviations like "p. 5" from counting.
PUNCTUATION_PATTERN = re.compile(r"(?:^|[^\W\d_])[)\]]*(?:[.!?…।։။۔]+ |[。！？]+)")
DISPLAY_NONE_PATTERN = re.compile(r"display: *none")
WORD_PATTERN = re.compile(r"\w")


@dc.dataclass(slots=True)
class AuthorData:
    """Links met while walking back from a timestamp.

    ``follows_author_link`` is set while nothing but punctuation and spaces
    separates the walk from the last author link it met.
    """

    name: str | None = None
    link: Tag | None = None
    talk_link: Tag | None = None
    local_link: Tag | None = None
    local_talk_link: Tag | None = None
    local_contribs_link: Tag | None = None
    is_last_link_author_link: bool = False
    follows_author_link: bool = False


def process_link_data(link: Tag, data: AuthorData, classifier: LinkClassifier) -> bool:
    """Record what ``link`` says about the author.

    Returns
    -------
    bool
        ``False`` when the link shows the walk has crossed into another
        signature and must stop.
    """
    info = classifier.classify(link)
    if info is None:
        return True
    if data.name is None:
        data.name = info.user_name
    if data.name != info.user_name:
        # Users sometimes mention a redirect to their own page right before
        # signing; any other user's link belongs to the comment text.
        return data.follows_author_link

    has_user_link = data.link is not None or data.talk_link is not None
    match info.link_type:
        case LinkType.USER:
            if data.local_link is not None and info.foreign:
                return False
            if not info.foreign:
                data.local_link = link
            data.link = link
        case LinkType.USER_TALK:
            if data.local_talk_link is not None:
                return False
            if not info.foreign:
                data.local_talk_link = link
            data.talk_link = link
        case LinkType.CONTRIBS:
            if data.local_contribs_link is not None and has_user_link:
                return False
            if not info.foreign:
                data.local_contribs_link = link
        case _:
            # Subpage or unrelated links before a user link are part of the text.
            if has_user_link:
                return False
    data.is_last_link_author_link = True
    return True


class SignatureResolver:
    """Turn timestamp markers into signatures."""

    def __init__(self, context: ParseContext) -> None:
        self.context = context
        self.root = context.root
        self.limit = context.config.signature_scan_limit

    def resolve_all(self, timestamps: typ.Sequence[Timestamp]) -> list[Signature]:
        """Resolve ``timestamps`` in document order, merging extra signatures."""
        signatures: list[Signature] = []
        pending_extras: list[Signature] = []
        for timestamp in timestamps:
            is_extra = self.has_later_timestamp(timestamp.element)
            signature = self.resolve(timestamp, is_extra=is_extra)
            if is_extra:
                if signature is not None:
                    pending_extras.append(signature)
                continue
            if signature is None:
                if pending_extras:
                    signatures.append(_promote(pending_extras))
                    pending_extras = []
                continue
            signature.extra_signatures = pending_extras
            pending_extras = []
            signatures.append(signature)
        if pending_extras:
            signatures.append(_promote(pending_extras))
        return signatures

    def has_later_timestamp(self, marker: Tag) -> bool:
        """Tell whether another timestamp follows ``marker`` in its block."""
        block = marker.parent
        while block is not None and block is not self.root and is_inline(block) is not False:
            block = block.parent
        if block is None:
            block = self.root
        walker = ElementsTreeWalker(self.root, marker)
        while (node := walker.next_node()) is not None:
            if not contains(block, node):
                return False
            if is_inline(node) is False and not is_metadata(node):
                return False
            if has_class(node, TIMESTAMP_CLASS):
                return True
        return False

    def _find_unsigned_ancestor(self, marker: Tag) -> Tag | None:
        unsigned_class = self.context.config.unsigned_class
        if not unsigned_class:
            return None
        element = marker.parent
        while (
            element is not None
            and element is not self.root
            and is_inline(element) is not False
        ):
            if has_class(element, unsigned_class):
                return element
            element = element.parent
        return None

    def _ends_walk(self, node: Node, data: AuthorData, start: Tag) -> bool:
        text = text_of(node)
        # Wrappers the walk climbed out of hold the start marker itself.
        is_wrapper = is_element(node) and not contains(node, start)
        if data.name is not None:
            if is_element(node) and (
                node.name in STRIKE_TAGS
                or DISPLAY_NONE_PATTERN.search(style_of(node))
                or self.context.is_no_signature_element(node)
            ):
                return True
            if is_wrapper and node.find(list(STRIKE_TAGS)) is not None:
                return True
            if is_text(node) and PUNCTUATION_PATTERN.search(text):
                return True
        if is_wrapper and (
            node.find(class_=TIMESTAMP_CLASS) is not None
            or node.find(class_=SIGNATURE_CLASS) is not None
        ):
            return True
        return is_element(node) and (
            has_class(node, TIMESTAMP_CLASS)
            or has_class(node, SIGNATURE_CLASS)
            or (node.name in STRIKE_TAGS and len(text) >= STRUCK_SIGNATURE_MIN_LENGTH)
            or len(text) >= self.limit
        )

    def _process_node(self, node: Node, data: AuthorData) -> bool:
        if not is_element(node):
            if WORD_PATTERN.search(text_of(node)):
                data.follows_author_link = False
            return True
        data.is_last_link_author_link = False
        classifier = self.context.classifier
        if node.name == "a":
            keep_walking = process_link_data(node, data, classifier)
        else:
            keep_walking = True
            for link in reversed(node.find_all("a")):
                if has_class(link, EXTERNAL_LINK_CLASS):
                    continue
                process_link_data(link, data, classifier)
        data.follows_author_link = data.is_last_link_author_link
        return keep_walking

    def resolve(self, timestamp: Timestamp, *, is_extra: bool = False) -> Signature | None:
        """Find and wrap the signature ending at ``timestamp``.

        Returns
        -------
        Signature or None
            ``None`` when no author link is found near the timestamp.
        """
        marker = timestamp.element
        unsigned = self._find_unsigned_ancestor(marker)
        start = unsigned if unsigned is not None else marker
        walker = ElementsAndTextTreeWalker(self.root, start)
        data = AuthorData()
        length = 0
        first_signature_node: Node | None = None
        nodes: list[Node] = []
        node: Node | None
        if unsigned is not None:
            first_signature_node = unsigned
            node = unsigned
        else:
            nodes.append(marker)
            node = None

        while True:
            if node is not None:
                length += len(text_of(node))
                if not self._process_node(node, data):
                    break
                if is_element(node) and data.is_last_link_author_link:
                    first_signature_node = node
                nodes.append(node)
            node = walker.previous_sibling()
            if node is None and first_signature_node is None:
                node = walker.parent_node()
                if node is None or is_inline(node) is False:
                    break
                length = 0
                nodes = []
            if (
                node is None
                or length >= self.limit
                or is_inline(node, text_as_inline=True) is False
                or self._ends_walk(node, data, start)
            ):
                break

        if data.name is None:
            logger.debug("No author found for timestamp %r", timestamp.matched_text)
            return None
        if not nodes:
            nodes = [start]
        boundary = (
            index_by_identity(nodes, first_signature_node)
            if first_signature_node is not None
            else -1
        )
        nodes = nodes[: 1 if boundary == -1 else boundary + 1]
        element = self._wrap(nodes)

        return Signature(
            element=element,
            author_name=data.name,
            timestamp_element=marker,
            timestamp_text=text_of(marker),
            date=timestamp.date,
            author_link=data.link,
            author_talk_link=data.talk_link,
            is_unsigned=unsigned is not None,
            is_extra=is_extra,
        )

    def _wrap(self, nodes: list[Node]) -> Tag:
        container = nodes[0].parent
        following = nodes[0].next_sibling
        element = new_tag("span", classes=[SIGNATURE_CLASS])
        for node in reversed(nodes):
            element.append(node.extract())
        if following is not None:
            insert_before(element, following)
        else:
            container.append(element)
        return element

    def find_remaining_unsigneds(self) -> list[Signature]:
        """Return signatures made by unsigned templates that carry no timestamp."""
        unsigned_class = self.context.config.unsigned_class
        if not unsigned_class:
            return []
        signatures: list[Signature] = []
        for element in self.root.find_all(class_=unsigned_class):
            if element.find(class_=TIMESTAMP_CLASS) is not None:
                continue
            if self._inside_signature(element):
                continue
            for link in element.find_all("a"):
                info = self.context.classifier.classify(link)
                if info is None:
                    continue
                add_class(element, SIGNATURE_CLASS)
                is_local = not info.foreign
                signatures.append(
                    Signature(
                        element=element,
                        author_name=info.user_name,
                        author_link=link
                        if info.link_type is LinkType.USER and is_local
                        else None,
                        author_talk_link=link
                        if info.link_type is LinkType.USER_TALK and is_local
                        else None,
                        is_unsigned=True,
                    )
                )
                break
        return signatures

    def _inside_signature(self, element: Tag) -> bool:
        node: Tag | None = element
        while node is not None and node is not self.root:
            if has_class(node, SIGNATURE_CLASS):
                return True
            node = node.parent
        return False


def _promote(extras: list[Signature]) -> Signature:
    """Make the last of ``extras`` a primary signature holding the others."""
    primary = extras[-1]
    primary.is_extra = False
    primary.extra_signatures = extras[:-1]
    return primary


__all__ = [
    "DISPLAY_NONE_PATTERN",
    "PUNCTUATION_PATTERN",
    "AuthorData",
    "SignatureResolver",
    "process_link_data",
]
