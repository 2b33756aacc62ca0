"""Run one parse pass over a talk page tree.

:class:`TalkPageParser` wires the stages together. Timestamps are marked,
signatures resolved and headings found; comments are then collected one
signature at a time in document order, each marking its elements so the next
walk stops at them. Once every comment is known, adjacent reply lists are
merged, final levels assigned, anchors generated and the section and reply
structure built.

Examples
--------
>>> from bs4 import BeautifulSoup
>>> soup = BeautifulSoup(
...     "<h2>Topic</h2><p>Hi. <a href='/wiki/User:Alice'>Alice</a> "
...     "23:29, 10 May 2019 (UTC)</p>",
...     "html.parser",
... )
>>> result = TalkPageParser().parse(soup)
>>> result.comments[0].anchor, result.sections[0].title
('201905102329_Alice', 'Topic')
"""

from __future__ import annotations

import logging
import typing as typ

from bs4 import BeautifulSoup
from bs4 import Comment as HtmlComment

from ._constants import (
    COMMENT_INDEX_ATTR,
    COMMENT_PART_CLASS,
    REPLY_TOOL_ATTRS,
    REPLY_TOOL_BUTTONS_CLASS,
    REPLY_TOOL_COMMENT_PREFIX,
    REPLY_TOOL_THREAD_ATTR,
)
from .collector import CommentCollector, Step
from .config import WikiConfig
from .context import ParseContext
from .dom import add_class, index_by_identity
from .levels import LevelAssembler, merge_adjacent_lists
from .models import Comment, CommentBoundaryError, ParseResult, ParseWarning
from .normalizer import StructuralNormalizer
from .sections import HeadingTarget, SectionAssembler, sort_targets
from .signatures import SignatureResolver
from .threads import assign_parents, process_outdents
from .timestamps import TimestampScanner

if typ.TYPE_CHECKING:
    from bs4 import Tag

    from .models import Signature

logger = logging.getLogger(__name__)

_ANCHOR_DATE_FORMAT = "%Y%m%d%H%M"


def anchor_base(signature: Signature) -> str | None:
    """Return the ``YYYYMMDDHHmm_Author_Name`` anchor of a dated signature."""
    if signature.date is None:
        return None
    name = signature.author_name.replace(" ", "_")
    return f"{signature.date.strftime(_ANCHOR_DATE_FORMAT)}_{name}"


def strip_reply_tool_markup(root: Tag) -> int:
    """Remove DiscussionTools markup from ``root`` before parsing.

    Comment boundary spans, empty thread markers, reply buttons and the HTML
    comments placeholding those buttons would otherwise be read as comment
    content.

    Returns
    -------
    int
        Number of removed nodes.
    """
    elements: list[Tag] = []
    for span in root.find_all("span"):
        if any(span.has_attr(attr) for attr in REPLY_TOOL_ATTRS) or (
            span.has_attr(REPLY_TOOL_THREAD_ATTR)
            and not span.get("class")
            and not span.get_text()
        ):
            elements.append(span)
    elements.extend(
        element
        for element in root.find_all(class_=REPLY_TOOL_BUTTONS_CLASS)
        if index_by_identity(elements, element) == -1
    )
    placeholders = root.find_all(
        string=lambda text: isinstance(text, HtmlComment)
        and text.startswith(REPLY_TOOL_COMMENT_PREFIX)
    )
    for placeholder in placeholders:
        placeholder.extract()
    for element in elements:
        # Nested matches go with their enclosing element.
        if not element.decomposed:
            element.decompose()
    removed = len(elements) + len(placeholders)
    if removed:
        logger.debug("Removed %d reply tool nodes", removed)
    return removed


class TalkPageParser:
    """Segment talk page trees into comments and sections.

    Parameters
    ----------
    config : WikiConfig, optional
        Wiki grammar and classes; English Wikipedia defaults when omitted.
    """

    def __init__(self, config: WikiConfig | None = None) -> None:
        self.config = config or WikiConfig()

    def parse(self, root: Tag, *, exclude: typ.Iterable[Tag] = ()) -> ParseResult:
        """Parse the tree under ``root``, modifying it in place.

        Parameters
        ----------
        root : Tag
            Element (or whole document) holding the discussion.
        exclude : Iterable[Tag], optional
            Subtrees whose timestamps must be ignored.

        Returns
        -------
        ParseResult
            Comments, sections and warnings found in this pass.
        """
        strip_reply_tool_markup(root)
        context = ParseContext(self.config, root)
        context.exclude(exclude)
        timestamps = TimestampScanner(context).scan(root)
        outdent_class = self.config.outdent_class
        context.has_outdents = bool(outdent_class) and (
            root.find(class_=outdent_class) is not None
        )

        resolver = SignatureResolver(context)
        signatures = resolver.resolve_all(timestamps)
        unsigneds = resolver.find_remaining_unsigneds()
        signatures.extend(unsigneds)

        section_assembler = SectionAssembler(context)
        targets = sort_targets(root, section_assembler.find_headings(), signatures)

        levels = LevelAssembler(context)
        warnings: list[ParseWarning] = []
        comments: list[Comment] = []
        by_signature: dict[int, Comment] = {}
        previous: HeadingTarget | Signature | None = None
        for target in targets:
            preceding = previous
            previous = target
            if isinstance(target, HeadingTarget):
                continue
            heading = preceding.element if isinstance(preceding, HeadingTarget) else None
            comment = self._build_comment(
                context, levels, target, heading, len(comments), warnings
            )
            if comment is not None:
                comments.append(comment)
                by_signature[id(target)] = comment

        merge_adjacent_lists(root)
        for comment in comments:
            levels.assign(comment)
            comment.opens_section = comment.opens_section and comment.level == 0
            base = anchor_base(comment.signature)
            if base is not None:
                comment.anchor = context.register_anchor(base)

        sections, all_sections = section_assembler.assemble(
            targets, lambda signature: by_signature.get(id(signature))
        )
        explicit = process_outdents(context, comments)
        assign_parents(comments, explicit)

        result = ParseResult(
            root=root,
            comments=comments,
            sections=sections,
            all_sections=all_sections,
            signatures_found=len(timestamps) + len(unsigneds),
            warnings=warnings,
        )
        logger.debug(result.summary())
        return result

    def _build_comment(
        self,
        context: ParseContext,
        levels: LevelAssembler,
        signature: Signature,
        heading: Tag | None,
        index: int,
        warnings: list[ParseWarning],
    ) -> Comment | None:
        collector = CommentCollector(context, signature.element, heading)
        try:
            parts = StructuralNormalizer(collector).normalize(collector.collect())
            if not parts:
                msg = "No elements were collected for the comment."
                raise CommentBoundaryError(msg)
            comment = Comment(
                signature=signature,
                body_nodes=[part.node for part in parts],
                index=index,
                follows_heading=heading is not None,
            )
            levels.prepare(
                comment, has_dive=any(part.step is Step.DIVE for part in parts)
            )
        except CommentBoundaryError as error:
            logger.warning(
                "Skipped comment by %s at %s: %s",
                signature.author_name,
                signature.timestamp_text,
                error,
            )
            warnings.append(
                ParseWarning(
                    kind=error.kind,
                    message=str(error),
                    timestamp_text=signature.timestamp_text,
                    author_name=signature.author_name,
                )
            )
            return None

        if parts[0].is_heading and comment.body_nodes and (
            comment.body_nodes[0] is parts[0].node
        ):
            del comment.body_nodes[0]
            comment.opens_section = True
        for element in comment.body_nodes:
            add_class(element, COMMENT_PART_CLASS)
            element[COMMENT_INDEX_ATTR] = str(index)
        return comment


def parse_page(
    root: Tag,
    config: WikiConfig | None = None,
    *,
    exclude: typ.Iterable[Tag] = (),
) -> ParseResult:
    """Parse the talk page tree under ``root`` with ``config``."""
    return TalkPageParser(config).parse(root, exclude=exclude)


def parse_html(
    html: str,
    config: WikiConfig | None = None,
    root_selector: str | None = None,
) -> ParseResult:
    """Parse an HTML string, optionally restricted to the element at ``root_selector``.

    Raises
    ------
    ValueError
        If ``root_selector`` matches no element.
    """
    soup = BeautifulSoup(html, "html.parser")
    root: Tag = soup
    if root_selector:
        selected = soup.select_one(root_selector)
        if selected is None:
            msg = f"No element matches root selector '{root_selector}'."
            raise ValueError(msg)
        root = selected
    return TalkPageParser(config).parse(root)


__all__ = [
    "TalkPageParser",
    "anchor_base",
    "parse_html",
    "parse_page",
    "strip_reply_tool_markup",
]
