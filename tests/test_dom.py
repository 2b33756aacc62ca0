"""Unit tests for the tree helpers and walkers."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from talkparse.dom import (
    ElementsAndTextTreeWalker,
    ElementsTreeWalker,
    add_class,
    contains,
    document_positions,
    heading_level,
    is_heading,
    is_inline,
)


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


@pytest.mark.parametrize(
    ("html", "expected"),
    [
        ("<span>x</span>", True),
        ("<div>x</div>", False),
        ('<custom style="display: inline-block">x</custom>', True),
        ('<custom style="display:block">x</custom>', False),
        ("<custom>x</custom>", None),
    ],
)
def test_is_inline(html: str, expected: bool | None) -> None:  # noqa: FBT001
    assert is_inline(_soup(html).find(True)) is expected


def test_text_counts_as_inline_only_on_request() -> None:
    text = _soup("<p>x</p>").p.contents[0]

    assert is_inline(text) is None
    assert is_inline(text, text_as_inline=True) is True


def test_heading_wrapper_is_a_heading() -> None:
    soup = _soup('<div class="mw-heading mw-heading3"><h3>T</h3></div>')

    assert is_heading(soup.div)
    assert not is_heading(soup.div, only_h_elements=True)
    assert heading_level(soup.div) == 3
    assert heading_level(soup.h3) == 3


def test_add_class_keeps_order_and_skips_duplicates() -> None:
    soup = _soup('<p class="a b">x</p>')
    add_class(soup.p, "b", "c")

    assert soup.p["class"] == ["a", "b", "c"]


def test_contains_and_positions() -> None:
    soup = _soup("<div><p><b>x</b></p><p>y</p></div>")
    first, second = soup.find_all("p")
    positions = document_positions(soup)

    assert contains(soup.div, soup.b)
    assert contains(first, first)
    assert not contains(second, soup.b)
    assert positions[id(first)] < positions[id(soup.b)] < positions[id(second)]


def test_walker_stays_inside_root() -> None:
    soup = _soup("<p>before</p><div><i>a</i>text<b>b</b></div><p>after</p>")
    walker = ElementsAndTextTreeWalker(soup.div, soup.div.b)

    assert str(walker.previous_sibling()) == "text"
    assert walker.previous_sibling().name == "i"
    assert walker.previous_sibling() is None
    assert walker.parent_node() is soup.div
    assert walker.parent_node() is None
    assert walker.next_sibling() is None


def test_elements_walker_skips_text() -> None:
    soup = _soup("<div><i>a</i>text<b>b</b></div>")
    walker = ElementsTreeWalker(soup, soup.i)

    assert walker.next_node() is soup.b
    assert walker.next_node() is None


def test_walker_moves_stay_within_root() -> None:
    soup = _soup("<p>before</p><div><i>a</i></div><p>after</p>")
    walker = ElementsTreeWalker(soup.div, soup.i)

    assert walker.next_node() is None
    assert walker.current is soup.i
    assert walker.parent_node() is soup.div
    assert walker.parent_node() is None
    assert walker.previous_sibling() is None
    assert walker.current is soup.div
