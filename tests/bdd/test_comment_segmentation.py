"""Behaviour tests for comment segmentation using pytest-bdd.

These scenarios parse small rendered talk pages and check which elements each
recognised comment spans and at which indentation level it sits. They cover
plain paragraphs, list replies, unsigned lead-in items under a heading,
struck signatures followed by a correction and numbered lists signed at their
end.

Usage
-----
Run ``pytest tests/bdd/test_comment_segmentation.py -v`` or filter with
``pytest -k comment_segmentation`` to execute only these scenarios. Every
scenario builds its HTML in memory, so no fixtures beyond ``scenario_state``
are needed.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from talkparse import parse_html

if typ.TYPE_CHECKING:
    from talkparse import Comment, ParseResult

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "comment_segmentation.feature"
)
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]


def _signature(name: str, time: str, date: str = "1 January 2020") -> str:
    """Return the HTML of a default English Wikipedia signature."""
    return f'<a href="/wiki/User:{name}">{name}</a> {time}, {date} (UTC)'


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Share mutable scenario data across pytest-bdd steps.

    Parameters
    ----------
    None
        This fixture does not accept parameters.

    Returns
    -------
    ScenarioState
        Mutable dictionary used to exchange state between ``given``, ``when``,
        and ``then`` steps.
    """
    return {}


def _comment(scenario_state: ScenarioState, number: int) -> Comment:
    result = typ.cast("ParseResult", scenario_state["result"])
    return result.comments[number - 1]


@given("a talk page with a single signed paragraph")
def given_signed_paragraph(scenario_state: ScenarioState) -> None:
    """Store a page holding one signed paragraph.

    Parameters
    ----------
    scenario_state : ScenarioState
        Mutable dictionary receiving the page HTML under ``html``.
    """
    scenario_state["html"] = (
        f"<p>Hello world. --{_signature('Alice', '23:29', '10 May 2019')}</p>"
    )


@given("a talk page with two signed list items")
def given_signed_list_items(scenario_state: ScenarioState) -> None:
    """Store a page whose bulleted list holds two signed replies.

    Parameters
    ----------
    scenario_state : ScenarioState
        Mutable dictionary receiving the page HTML under ``html``.
    """
    scenario_state["html"] = (
        "<ul>"
        f"<li>First reply. {_signature('Alice', '10:00')}</li>"
        f"<li>Second reply. {_signature('Bob', '11:00')}</li>"
        "</ul>"
    )


@given("a talk page with an intro item under a heading")
def given_intro_item(scenario_state: ScenarioState) -> None:
    """Store a page where an unsigned list item follows a heading.

    Parameters
    ----------
    scenario_state : ScenarioState
        Mutable dictionary receiving the page HTML under ``html``.
    """
    scenario_state["html"] = (
        "<h2>Topic</h2>"
        "<ul>"
        "<li>Intro item.</li>"
        f"<li>Reply. {_signature('Alice', '10:00')}</li>"
        "</ul>"
    )


@given("a talk page with a struck signature and a correction")
def given_struck_signature(scenario_state: ScenarioState) -> None:
    """Store a paragraph with a struck signature and a later one.

    Parameters
    ----------
    scenario_state : ScenarioState
        Mutable dictionary receiving the page HTML under ``html``.
    """
    scenario_state["html"] = (
        "<p>Comment text "
        f"<s><small>{_signature('Alice', '10:00')}</small></s> "
        f"fixed {_signature('Alice', '11:00')}</p>"
    )


@given("a talk page with a numbered list signed in its last item")
def given_numbered_list(scenario_state: ScenarioState) -> None:
    """Store a numbered list whose final item carries the only signature.

    Parameters
    ----------
    scenario_state : ScenarioState
        Mutable dictionary receiving the page HTML under ``html``.
    """
    scenario_state["html"] = (
        "<ol>"
        "<li>First point.</li>"
        f"<li>Second point. {_signature('Alice', '10:00')}</li>"
        "</ol>"
    )


@when("the page is parsed")
def when_page_parsed(scenario_state: ScenarioState) -> None:
    """Parse the stored HTML with the default wiki configuration.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared dictionary providing ``html`` and receiving ``result``.
    """
    scenario_state["result"] = parse_html(typ.cast("str", scenario_state["html"]))


@then(parsers.parse("{count:d} signatures are found"))
def then_signatures_found(scenario_state: ScenarioState, count: int) -> None:
    """Check how many signatures the parse reported."""
    result = typ.cast("ParseResult", scenario_state["result"])
    assert result.signatures_found == count


@then(parsers.parse("{count:d} comments are recognized"))
def then_comments_recognized(scenario_state: ScenarioState, count: int) -> None:
    """Check how many comments were recognised."""
    result = typ.cast("ParseResult", scenario_state["result"])
    assert len(result.comments) == count
    assert not result.warnings


@then(parsers.parse('comment {number:d} spans the "{name}" element'))
def then_comment_spans(scenario_state: ScenarioState, number: int, name: str) -> None:
    """Check that the comment is made of exactly one element named ``name``.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared dictionary holding the parse result.
    number : int
        One-based position of the comment in document order.
    name : str
        Expected tag name of the single body element.
    """
    comment = _comment(scenario_state, number)
    assert [node.name for node in comment.body_nodes] == [name]


@then(parsers.parse("comment {number:d} is at level {level:d}"))
def then_comment_level(scenario_state: ScenarioState, number: int, level: int) -> None:
    """Check the indentation level of a comment."""
    assert _comment(scenario_state, number).level == level


@then(parsers.parse('comment {number:d} has the anchor "{anchor}"'))
def then_comment_anchor(scenario_state: ScenarioState, number: int, anchor: str) -> None:
    """Check the generated anchor of a comment."""
    assert _comment(scenario_state, number).anchor == anchor


@then(parsers.parse('comment {number:d} contains the text "{text}"'))
def then_comment_contains(scenario_state: ScenarioState, number: int, text: str) -> None:
    """Check that the comment text includes ``text``."""
    assert text in _comment(scenario_state, number).text


@then(parsers.parse('comment {number:d} does not contain the text "{text}"'))
def then_comment_lacks(scenario_state: ScenarioState, number: int, text: str) -> None:
    """Check that the comment text leaves out ``text``."""
    assert text not in _comment(scenario_state, number).text


@then(parsers.parse("comment {number:d} has {count:d} extra signatures"))
def then_extra_signatures(scenario_state: ScenarioState, number: int, count: int) -> None:
    """Check how many additional signatures were merged into the comment."""
    comment = _comment(scenario_state, number)
    assert len(comment.extra_signatures) == count
    assert all(extra.is_extra for extra in comment.extra_signatures)


@then(parsers.parse("comment {number:d} keeps the struck text outside its signature"))
def then_struck_outside(scenario_state: ScenarioState, number: int) -> None:
    """Check that the primary signature element holds no struck run."""
    comment = _comment(scenario_state, number)
    assert comment.signature.element.find("s") is None
    assert comment.date is not None
    assert comment.date.hour == 11
