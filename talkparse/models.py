"""Dataclasses describing what a parse pass finds on a talk page.

Every record here is created fresh for one pass over one tree. Records keep
references to the live BeautifulSoup nodes they describe, so they compare by
identity (``eq=False``) rather than by the structural equality bs4 nodes
implement.

Example
-------
>>> from talkparse import parse_html
>>> result = parse_html(
...     "<p>Hi. <a href='/wiki/User:Alice'>Alice</a> "
...     "23:29, 10 May 2019 (UTC)</p>"
... )
>>> result.comments[0].author_name
'Alice'
>>> result.summary()
'1 signatures found, 1 comments recognized'
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt  # noqa: TC003 - used for runtime type metadata
import re
import typing as typ

if typ.TYPE_CHECKING:
    from bs4 import Tag

_SPACES_PATTERN = re.compile(r" {2,}")


class TalkParseError(Exception):
    """Base class for errors raised by talkparse."""


class CommentBoundaryError(TalkParseError, RuntimeError):
    """Raised when the extent of a comment cannot be determined.

    Parameters
    ----------
    message : str
        Description of the failure.
    kind : str, optional
        ``"boundary"`` for failed walks, ``"highlightables"`` when the
        collected elements hold nothing that shows the comment.
    """

    def __init__(self, message: str, *, kind: str = "boundary") -> None:
        super().__init__(message)
        self.kind = kind


@dc.dataclass(slots=True, eq=False)
class Timestamp:
    """A timestamp found in a text leaf and wrapped into a marker element.

    Attributes
    ----------
    element : Tag
        The synthesised ``span.tp-timestamp`` marker.
    matched_text : str
        Timestamp substring held by the marker.
    remainder_text : str
        Text that followed the timestamp in the original leaf.
    date : datetime
        Timezone-aware instant in UTC.
    """

    element: Tag
    matched_text: str
    remainder_text: str
    date: dt.datetime


@dc.dataclass(slots=True, eq=False)
class Signature:
    """Author-identifying markup closing a comment."""

    element: Tag
    author_name: str
    timestamp_element: Tag | None = None
    timestamp_text: str | None = None
    date: dt.datetime | None = None
    author_link: Tag | None = dc.field(default=None, repr=False)
    author_talk_link: Tag | None = dc.field(default=None, repr=False)
    is_unsigned: bool = False
    is_extra: bool = False
    extra_signatures: list[Signature] = dc.field(default_factory=list)


@dc.dataclass(slots=True, eq=False)
class Comment:
    """One signed comment and the nodes forming its body.

    Attributes
    ----------
    signature : Signature
        Primary signature; ``signature.extra_signatures`` lists earlier
        sign-offs merged into this comment.
    body_nodes : list[Tag]
        Top-level elements holding the comment, in document order.
    index : int
        Position among the page's comments in document order.
    level : int
        Number of indentation list containers around the comment.
    logical_level : int
        Level adjusted for outdent templates.
    anchor : str or None
        ``YYYYMMDDHHmm_Author`` identifier, ``None`` for dateless comments.
    section : Section or None
        Deepest section containing the comment.
    opens_section : bool
        Whether the comment was written directly under a heading at level 0.
    follows_heading : bool
        Whether the comment is the first thing after a heading.
    is_outdented : bool
        Whether an outdent template precedes the comment.
    parent_index : int or None
        Index of the comment this one replies to.
    """

    signature: Signature
    body_nodes: list[Tag]
    index: int = 0
    level: int = 0
    logical_level: int = 0
    anchor: str | None = None
    section: Section | None = dc.field(default=None, repr=False)
    opens_section: bool = False
    follows_heading: bool = False
    is_outdented: bool = False
    parent_index: int | None = None
    highlightables: list[Tag] = dc.field(default_factory=list, repr=False)

    @property
    def author_name(self) -> str:
        """Return the name of the comment's author."""
        return self.signature.author_name

    @property
    def date(self) -> dt.datetime | None:
        """Return the instant of the primary signature."""
        return self.signature.date

    @property
    def extra_signatures(self) -> list[Signature]:
        """Return the additional signatures merged into the comment."""
        return self.signature.extra_signatures

    @property
    def is_unsigned(self) -> bool:
        """Return whether the comment was signed by an unsigned template."""
        return self.signature.is_unsigned

    @property
    def timestamp(self) -> str | None:
        """Return the timestamp as printed, with doubled spaces collapsed."""
        text = self.signature.timestamp_text
        return _SPACES_PATTERN.sub(" ", text) if text is not None else None

    @property
    def text(self) -> str:
        """Return the whitespace-normalised text of the comment body."""
        return " ".join(
            " ".join(node.get_text(" ").split()) for node in self.body_nodes
        ).strip()


@dc.dataclass(slots=True, eq=False)
class Section:
    """A heading and the comments written under it."""

    heading_node: Tag
    level: int
    title: str
    anchor: str | None = None
    section_number: int | None = None
    index: int = 0
    comments: list[Comment] = dc.field(default_factory=list, repr=False)
    own_comments: list[Comment] = dc.field(default_factory=list, repr=False)
    children: list[Section] = dc.field(default_factory=list)
    parent: Section | None = dc.field(default=None, repr=False)


@dc.dataclass(slots=True)
class ParseWarning:
    """A recoverable problem met while parsing; the comment was omitted."""

    kind: str
    message: str
    timestamp_text: str | None = None
    author_name: str | None = None


@dc.dataclass(slots=True)
class ParseResult:
    """Everything one parse pass produced."""

    root: Tag = dc.field(repr=False)
    comments: list[Comment]
    sections: list[Section]
    all_sections: list[Section]
    signatures_found: int
    warnings: list[ParseWarning] = dc.field(default_factory=list)

    def summary(self) -> str:
        """Return a one-line count of found signatures and recognised comments."""
        return (
            f"{self.signatures_found} signatures found, "
            f"{len(self.comments)} comments recognized"
        )

    def get_comment(self, anchor: str) -> Comment | None:
        """Return the comment with ``anchor``, if any."""
        return next(
            (comment for comment in self.comments if comment.anchor == anchor), None
        )

    def replies_to(self, comment: Comment) -> list[Comment]:
        """Return the direct replies to ``comment``."""
        return [
            candidate
            for candidate in self.comments
            if candidate.parent_index == comment.index
        ]


__all__ = [
    "Comment",
    "CommentBoundaryError",
    "ParseResult",
    "ParseWarning",
    "Section",
    "Signature",
    "TalkParseError",
    "Timestamp",
]
