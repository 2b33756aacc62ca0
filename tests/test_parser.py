"""End-to-end tests for :mod:`talkparse.parser`.

These tests parse small rendered talk pages and check the recognised
comments: their elements, levels, anchors and reply structure, along with the
warnings produced for comments that cannot be delimited.

Usage
-----
Run ``pytest tests/test_parser.py -v`` or ``pytest -k parser``. No fixtures
beyond pytest's built-ins are required.
"""

from __future__ import annotations

import datetime as dt

import pytest
from bs4 import BeautifulSoup

from talkparse import TalkPageParser, WikiConfig, parse_html, parse_page
from talkparse._constants import COMMENT_INDEX_ATTR, COMMENT_PART_CLASS
from talkparse.parser import anchor_base


def _sig(name: str, time: str = "10:00", date: str = "1 January 2020") -> str:
    return f'<a href="/wiki/User:{name}">{name}</a> {time}, {date} (UTC)'


def test_single_paragraph_comment() -> None:
    result = parse_html(f"<p>Hello world. --{_sig('Alice', '23:29', '10 May 2019')}</p>")

    assert result.summary() == "1 signatures found, 1 comments recognized"
    comment = result.comments[0]
    assert comment.author_name == "Alice"
    assert comment.date == dt.datetime(2019, 5, 10, 23, 29, tzinfo=dt.UTC)
    assert comment.timestamp == "23:29, 10 May 2019 (UTC)"
    assert comment.anchor == "201905102329_Alice"
    assert comment.level == 0
    assert comment.parent_index is None
    assert not comment.follows_heading
    assert comment.text.startswith("Hello world.")
    assert result.get_comment("201905102329_Alice") is comment


def test_body_elements_are_marked_with_comment_index() -> None:
    result = parse_html(
        f"<p>One. {_sig('Alice')}</p><p>Two. {_sig('Bob', '11:00')}</p>"
    )

    marked = result.root.find_all(class_=COMMENT_PART_CLASS)
    assert [element[COMMENT_INDEX_ATTR] for element in marked] == ["0", "1"]


def test_paragraphs_before_signature_join_the_comment() -> None:
    result = parse_html(
        f"<p>One. {_sig('Alice')}</p><p>First paragraph.</p>"
        f"<p>Second paragraph. {_sig('Bob', '11:00')}</p>"
    )

    bob = result.comments[1]
    assert [node.get_text() for node in bob.body_nodes][0] == "First paragraph."
    assert len(bob.body_nodes) == 2


def test_same_minute_anchors_are_disambiguated() -> None:
    result = parse_html(
        f"<p>One. {_sig('Alice')}</p><p>Two. {_sig('Alice')}</p>"
    )

    assert [comment.anchor for comment in result.comments] == [
        "202001011000_Alice",
        "202001011000_Alice_2",
    ]


def test_anchor_base_replaces_spaces() -> None:
    result = parse_html(
        '<p>Hi. <a href="/wiki/User:Jane_Doe">Jane</a> 10:00, 1 January 2020 (UTC)</p>'
    )

    assert anchor_base(result.comments[0].signature) == "202001011000_Jane_Doe"


def test_heading_opens_section() -> None:
    result = parse_html(f"<h2>Topic</h2><p>Question? {_sig('Alice')}</p>")

    comment = result.comments[0]
    assert comment.opens_section
    assert comment.follows_heading
    assert [node.name for node in comment.body_nodes] == ["p"]


def test_threaded_replies_get_levels_and_parents() -> None:
    result = parse_html(
        f"<p>Start. {_sig('Alice')}</p>"
        f"<dl><dd>Reply. {_sig('Bob', '11:00')}</dd></dl>"
        f"<dl><dd><dl><dd>Reply again. {_sig('Alice', '12:00')}</dd></dl></dd></dl>"
    )

    assert [comment.level for comment in result.comments] == [0, 1, 2]
    assert [comment.parent_index for comment in result.comments] == [None, 0, 1]
    assert [node.name for node in result.comments[1].body_nodes] == ["dd"]
    assert len(result.root.find_all("dl", recursive=False)) == 1


def test_level_containers_are_tagged() -> None:
    result = parse_html(f"<p>Start. {_sig('Alice')}</p><dl><dd>Reply. {_sig('Bob')}</dd></dl>")

    assert result.root.dl["class"] == ["tp-commentLevel", "tp-commentLevel-1"]


def test_signature_in_extra_block_merges_into_one_comment() -> None:
    result = parse_html(
        f"<p>First. {_sig('Alice')} Addendum. {_sig('Alice', '11:00')}</p>"
    )

    assert result.signatures_found == 2
    comment = result.comments[0]
    assert [node.name for node in comment.body_nodes] == ["div"]
    assert comment.body_nodes[0].parent.name == "p"
    assert len(comment.extra_signatures) == 1


def test_numbered_list_is_wrapped_for_indentation() -> None:
    result = parse_html(
        f"<ol><li>First point.</li><li>Second point. {_sig('Alice')}</li></ol>"
    )

    comment = result.comments[0]
    (body,) = comment.body_nodes
    assert body.name == "dd"
    assert body.parent.name == "dl"
    assert body.find("ol") is not None
    assert comment.level == 1


def test_unsigned_comment_without_timestamp() -> None:
    result = parse_html(
        '<p>Question <span class="autosigned">Preceding unsigned comment added by '
        '<a href="/wiki/Special:Contributions/192.0.2.1">192.0.2.1</a></span></p>'
    )

    comment = result.comments[0]
    assert comment.is_unsigned
    assert comment.author_name == "192.0.2.1"
    assert comment.date is None
    assert comment.anchor is None
    assert result.signatures_found == 1


def test_walk_bound_produces_warning() -> None:
    result = parse_html("<p>x</p>" * 600 + f"<p>Reply. {_sig('Alice')}</p>")

    assert result.comments == []
    assert result.signatures_found == 1
    (warning,) = result.warnings
    assert warning.kind == "boundary"
    assert warning.author_name == "Alice"
    assert warning.timestamp_text == "10:00, 1 January 2020 (UTC)"


def test_hidden_comment_produces_highlightables_warning() -> None:
    result = parse_html(f'<p style="display: none">Hidden. {_sig("Alice")}</p>')

    assert result.comments == []
    assert [warning.kind for warning in result.warnings] == ["highlightables"]


def test_root_selector_limits_parse() -> None:
    html = (
        f"<div id='sidebar'><p>Ad. {_sig('Bob')}</p></div>"
        f"<div id='content'><p>Text. {_sig('Alice')}</p></div>"
    )

    result = parse_html(html, root_selector="#content")

    assert [comment.author_name for comment in result.comments] == ["Alice"]


def test_unknown_root_selector_raises() -> None:
    with pytest.raises(ValueError, match="#missing"):
        parse_html("<p>Nothing</p>", root_selector="#missing")


def test_excluded_subtrees_are_not_scanned() -> None:
    soup = BeautifulSoup(
        f"<div class='quote'><p>Old. {_sig('Bob')}</p></div><p>New. {_sig('Alice')}</p>",
        "html.parser",
    )

    result = parse_page(soup, exclude=soup.select(".quote"))

    assert [comment.author_name for comment in result.comments] == ["Alice"]
    assert result.signatures_found == 1


def test_excluded_selectors_from_config() -> None:
    soup = BeautifulSoup(
        f"<div class='quote'><p>Old. {_sig('Bob')}</p></div><p>New. {_sig('Alice')}</p>",
        "html.parser",
    )

    result = TalkPageParser(WikiConfig(excluded_selectors=(".quote",))).parse(soup)

    assert [comment.author_name for comment in result.comments] == ["Alice"]


def test_localised_wiki_configuration() -> None:
    config = WikiConfig(
        host="fr.wikipedia.org",
        user_namespaces=("Utilisateur",),
        user_talk_namespaces=("Discussion utilisateur",),
    )
    result = parse_html(
        '<p>Bonjour. <a href="/wiki/Utilisateur:Zoé">Zoé</a> '
        "10:00, 1 January 2020 (UTC)</p>",
        config,
    )

    assert result.comments[0].author_name == "Zoé"


def test_comment_bodies_are_disjoint() -> None:
    result = parse_html(
        f"<h2>Topic</h2><p>Opening. {_sig('Alice')}</p>"
        f"<ul><li>Reply. {_sig('Bob', '11:00')}"
        f"<ul><li>Nested. {_sig('Carol', '12:00')}</li></ul></li>"
        f"<li>Another. {_sig('Dave', '13:00')}</li></ul>"
    )

    assert len(result.comments) == 4
    seen: list[object] = []
    for comment in result.comments:
        for node in comment.body_nodes:
            assert all(
                node is not other
                and not any(parent is other for parent in node.parents)
                and not any(parent is node for parent in other.parents)
                for other in seen
            )
        seen.extend(comment.body_nodes)


def test_reply_tool_markup_is_removed_before_parsing() -> None:
    result = parse_html(
        '<p><span data-mw-comment-start="" id="c-Alice-20200101100000-Topic"></span>'
        f"Hello. {_sig('Alice')}"
        '<span class="ext-discussiontools-init-replylink-buttons" '
        'data-mw-thread-id="c-Alice-20200101100000-Topic">'
        "<!--__DTREPLYBUTTONS__-->"
        '<span class="ext-discussiontools-init-replylink-bracket">[</span>'
        '<a class="ext-discussiontools-init-replylink-reply" role="button">reply</a>'
        '<span class="ext-discussiontools-init-replylink-bracket">]</span>'
        "</span>"
        '<span data-mw-comment-end="c-Alice-20200101100000-Topic"></span></p>'
    )

    assert len(result.comments) == 1
    comment = result.comments[0]
    assert comment.text == "Hello. Alice 10:00, 1 January 2020 (UTC)"
    assert result.root.find(class_="ext-discussiontools-init-replylink-buttons") is None
    assert result.root.find("span", attrs={"data-mw-comment-start": True}) is None
    assert "__DTREPLYBUTTONS__" not in str(result.root)


def test_reply_lists_split_by_image_are_merged() -> None:
    result = parse_html(
        f"<p>Start. {_sig('Alice')}</p>"
        f"<dl><dd>Reply. {_sig('Bob', '11:00')}</dd></dl>"
        '<figure typeof="mw:File/Thumb"><img src="map.png"/>'
        "<figcaption>Map</figcaption></figure>"
        f"<dl><dd>Another. {_sig('Carol', '12:00')}</dd></dl>"
    )

    assert [comment.level for comment in result.comments] == [0, 1, 1]
    assert [comment.parent_index for comment in result.comments] == [None, 0, 0]
    assert len(result.root.find_all("dl")) == 1
    assert result.root.figure.find_parent("dl") is result.root.dl
    assert result.root.figure.find_parent(class_=COMMENT_PART_CLASS) is None
