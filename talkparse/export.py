"""Serialise parse results into plain records and JSON.

Parse results hold live BeautifulSoup nodes, so they are mirrored into
msgspec structures carrying only strings and numbers before encoding.

Examples
--------
>>> import msgspec.json
>>> from talkparse import parse_html
>>> result = parse_html(
...     "<p>Hi. <a href='/wiki/User:Alice'>Alice</a> 23:29, 10 May 2019 (UTC)</p>"
... )
>>> msgspec.json.decode(encode_json(result))["comments"][0]["date"]
'2019-05-10T23:29:00+00:00'
"""

from __future__ import annotations

import typing as typ

import msgspec
import msgspec.json

if typ.TYPE_CHECKING:
    from .models import Comment, ParseResult, ParseWarning, Section


class CommentRecord(msgspec.Struct, kw_only=True):
    """Exported form of a comment."""

    index: int
    author: str
    date: str | None
    timestamp: str | None
    anchor: str | None
    level: int
    logical_level: int
    parent_index: int | None
    section_index: int | None
    is_unsigned: bool
    opens_section: bool
    is_outdented: bool
    extra_signature_dates: list[str | None]
    text: str


class SectionRecord(msgspec.Struct, kw_only=True):
    """Exported form of a section and its subsections."""

    index: int
    title: str
    level: int
    anchor: str | None
    section_number: int | None
    comment_indexes: list[int]
    own_comment_indexes: list[int]
    children: list[SectionRecord]


class WarningRecord(msgspec.Struct, kw_only=True):
    """Exported form of a parse warning."""

    kind: str
    message: str
    timestamp: str | None
    author: str | None


class PageRecord(msgspec.Struct, kw_only=True):
    """Exported form of a whole parse result."""

    signatures_found: int
    comments: list[CommentRecord]
    sections: list[SectionRecord]
    warnings: list[WarningRecord]


def _comment_record(comment: Comment) -> CommentRecord:
    return CommentRecord(
        index=comment.index,
        author=comment.author_name,
        date=comment.date.isoformat() if comment.date is not None else None,
        timestamp=comment.timestamp,
        anchor=comment.anchor,
        level=comment.level,
        logical_level=comment.logical_level,
        parent_index=comment.parent_index,
        section_index=comment.section.index if comment.section is not None else None,
        is_unsigned=comment.is_unsigned,
        opens_section=comment.opens_section,
        is_outdented=comment.is_outdented,
        extra_signature_dates=[
            extra.date.isoformat() if extra.date is not None else None
            for extra in comment.extra_signatures
        ],
        text=comment.text,
    )


def _section_record(section: Section) -> SectionRecord:
    return SectionRecord(
        index=section.index,
        title=section.title,
        level=section.level,
        anchor=section.anchor,
        section_number=section.section_number,
        comment_indexes=[comment.index for comment in section.comments],
        own_comment_indexes=[comment.index for comment in section.own_comments],
        children=[_section_record(child) for child in section.children],
    )


def _warning_record(warning: ParseWarning) -> WarningRecord:
    return WarningRecord(
        kind=warning.kind,
        message=warning.message,
        timestamp=warning.timestamp_text,
        author=warning.author_name,
    )


def to_record(result: ParseResult) -> PageRecord:
    """Mirror ``result`` into msgspec structures."""
    return PageRecord(
        signatures_found=result.signatures_found,
        comments=[_comment_record(comment) for comment in result.comments],
        sections=[_section_record(section) for section in result.sections],
        warnings=[_warning_record(warning) for warning in result.warnings],
    )


def encode_json(result: ParseResult) -> bytes:
    """Return ``result`` as UTF-8 encoded JSON."""
    return msgspec.json.encode(to_record(result))


__all__ = [
    "CommentRecord",
    "PageRecord",
    "SectionRecord",
    "WarningRecord",
    "encode_json",
    "to_record",
]
