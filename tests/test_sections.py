"""Unit tests for headings, section numbers and the section tree."""

from __future__ import annotations

import pytest

from talkparse import parse_html
from talkparse.sections import parse_section_number

ALICE = '<a href="/wiki/User:Alice">Alice</a> 10:00, 1 January 2020 (UTC)'
BOB = '<a href="/wiki/User:Bob">Bob</a> 11:00, 1 January 2020 (UTC)'
CAROL = '<a href="/wiki/User:Carol">Carol</a> 12:00, 1 January 2020 (UTC)'


@pytest.mark.parametrize(
    ("href", "expected"),
    [
        ("/w/index.php?title=Talk:Foo&action=edit&section=3", 3),
        ("/w/index.php?title=Template:Bar&action=edit&section=T-2", 2),
        ("/w/index.php?title=Talk:Foo&action=edit&section=new", None),
        ("/w/index.php?title=Talk:Foo&action=edit", None),
    ],
)
def test_parse_section_number(href: str, expected: int | None) -> None:
    assert parse_section_number(href) == expected


def test_heading_wrapper_provides_anchor_and_number() -> None:
    result = parse_html(
        '<div class="mw-heading mw-heading2"><h2 id="Topic">Topic</h2>'
        '<span class="mw-editsection">[<a href="/w/index.php?title=Talk:Foo'
        '&amp;action=edit&amp;section=1">edit</a>]</span></div>'
        f"<p>Hi. {ALICE}</p>"
    )

    section = result.sections[0]
    assert section.title == "Topic"
    assert section.anchor == "Topic"
    assert section.section_number == 1
    assert section.level == 2
    assert section.heading_node.name == "div"
    comment = result.comments[0]
    assert comment.opens_section
    assert comment.section is section
    assert [node.name for node in comment.body_nodes] == ["p"]


def test_title_leaves_out_edit_links_and_numbering() -> None:
    result = parse_html(
        '<h2><span class="mw-headline-number">1</span> '
        '<span class="mw-headline" id="Plans">Plans</span>'
        '<span class="mw-editsection">edit</span></h2>'
        f"<p>Text. {ALICE}</p>"
    )

    assert result.sections[0].title == "Plans"
    assert result.sections[0].anchor == "Plans"


def test_sections_nest_by_heading_level() -> None:
    result = parse_html(
        f"<h2>A</h2><p>One. {ALICE}</p>"
        f"<h3>B</h3><p>Two. {BOB}</p>"
        f"<h2>C</h2><p>Three. {CAROL}</p>"
    )

    first, second = result.sections
    assert [section.title for section in result.all_sections] == ["A", "B", "C"]
    assert [section.index for section in result.all_sections] == [0, 1, 2]
    assert [child.title for child in first.children] == ["B"]
    assert first.children[0].parent is first
    assert second.title == "C"
    assert [comment.author_name for comment in first.comments] == ["Alice", "Bob"]
    assert [comment.author_name for comment in first.own_comments] == ["Alice"]
    assert result.comments[1].section is first.children[0]
    assert result.comments[2].section is second


def test_comments_before_first_heading_have_no_section() -> None:
    result = parse_html(f"<p>Preface. {ALICE}</p><h2>A</h2><p>Reply. {BOB}</p>")

    assert result.comments[0].section is None
    assert not result.comments[0].opens_section
    assert result.comments[1].section is result.sections[0]


def test_table_of_contents_heading_is_ignored() -> None:
    result = parse_html(
        '<div id="toc"><h2 id="mw-toc-heading">Contents</h2></div>'
        f"<h2>Real</h2><p>Text. {ALICE}</p>"
    )

    assert [section.title for section in result.all_sections] == ["Real"]
