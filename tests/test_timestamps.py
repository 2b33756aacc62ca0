"""Unit tests for timestamp grammars, parsing and scanning.

These tests cover the translation of PHP-style date formats into patterns,
the interpretation of matched components as UTC instants and the splitting of
text leaves around the timestamps found in a tree.

Usage
-----
Run ``pytest tests/test_timestamps.py -v`` to execute the suite. Trees are
built from literal HTML with BeautifulSoup's ``html.parser``.
"""

from __future__ import annotations

import datetime as dt

import pytest
from bs4 import BeautifulSoup

from talkparse._constants import TIMESTAMP_CLASS
from talkparse.config import TimestampGrammar, WikiConfig, WikiConfigError
from talkparse.context import ParseContext
from talkparse.timestamps import (
    TimestampParser,
    TimestampScanner,
    main_part_pattern,
    matching_groups,
)


def _scan(html: str, config: WikiConfig | None = None) -> tuple[BeautifulSoup, list]:
    soup = BeautifulSoup(html, "html.parser")
    context = ParseContext(config or WikiConfig(), soup)
    return soup, TimestampScanner(context).scan(soup)


def test_matching_groups_skip_literals() -> None:
    assert matching_groups("H:i, j F Y") == ["H", "i", "j", "F", "Y"]
    assert matching_groups('j "de" F \\Y xkY') == ["j", "F", "xkY"]


def test_unsupported_code_is_rejected() -> None:
    with pytest.raises(WikiConfigError, match="xq"):
        main_part_pattern(TimestampGrammar(date_format="j xq Y"))


def test_parse_returns_last_timestamp_and_leading_text() -> None:
    parser = TimestampParser(TimestampGrammar())
    parsed = parser.parse("Thanks. 23:29, 10 May 2019 (UTC)")

    assert parsed is not None
    assert parsed.date == dt.datetime(2019, 5, 10, 23, 29, tzinfo=dt.UTC)
    assert parsed.leading_text == "Thanks. "
    assert parsed.matched_text == "23:29, 10 May 2019 (UTC)"


@pytest.mark.parametrize(
    "text",
    [
        "No timestamp here.",
        "10:00, 31 February 2020 (UTC)",
        "10:00, 1 Januar 2020 (UTC)",
    ],
)
def test_parse_rejects_invalid_text(text: str) -> None:
    assert TimestampParser(TimestampGrammar()).parse(text) is None


def test_fixed_offset_is_converted_to_utc() -> None:
    parser = TimestampParser(TimestampGrammar(timezone=60))
    parsed = parser.parse("10:00, 1 January 2020 (CET)")

    assert parsed is not None
    assert parsed.date == dt.datetime(2020, 1, 1, 9, 0, tzinfo=dt.UTC)


def test_timezone_resolver_takes_precedence() -> None:
    grammar = TimestampGrammar(timezone=60, timezone_resolver=lambda _: -300)
    parsed = TimestampParser(grammar).parse("10:00, 1 January 2020 (EST)")

    assert parsed is not None
    assert parsed.date == dt.datetime(2020, 1, 1, 15, 0, tzinfo=dt.UTC)


def test_transliterated_digits() -> None:
    grammar = TimestampGrammar(digits="٠١٢٣٤٥٦٧٨٩")
    parsed = TimestampParser(grammar).parse("١٠:٣٠, ٥ May ٢٠٢٠ (UTC)")

    assert parsed is not None
    assert parsed.date == dt.datetime(2020, 5, 5, 10, 30, tzinfo=dt.UTC)


def test_thai_solar_year() -> None:
    grammar = TimestampGrammar(date_format="j F xkY H:i")
    parsed = TimestampParser(grammar).parse("1 January 2563 10:00 (UTC)")

    assert parsed is not None
    assert parsed.date == dt.datetime(2020, 1, 1, 10, 0, tzinfo=dt.UTC)


def test_direction_marks_do_not_break_matching() -> None:
    parsed = TimestampParser(TimestampGrammar()).parse(
        "10:00, 1 January 2020\u200e (UTC)"
    )

    assert parsed is not None
    assert parsed.matched_text == "10:00, 1 January 2020  (UTC)"


def test_for_grammar_caches_parsers() -> None:
    grammar = TimestampGrammar()
    assert TimestampParser.for_grammar(grammar) is TimestampParser.for_grammar(grammar)


def test_scan_splits_text_around_each_timestamp() -> None:
    soup, timestamps = _scan(
        "<p>a 10:00, 1 January 2020 (UTC) b 11:00, 1 January 2020 (UTC) c</p>"
    )

    assert [stamp.date.hour for stamp in timestamps] == [10, 11]
    assert [stamp.remainder_text for stamp in timestamps] == [" b ", " c"]
    assert [str(node) for node in soup.p.contents if isinstance(node, str)] == [
        "a ",
        " b ",
        " c",
    ]
    markers = soup.find_all(class_=TIMESTAMP_CLASS)
    assert [marker.get_text() for marker in markers] == [
        "10:00, 1 January 2020 (UTC)",
        "11:00, 1 January 2020 (UTC)",
    ]


def test_rescanning_marked_tree_finds_nothing() -> None:
    soup, first = _scan("<p>Signed 10:00, 1 January 2020 (UTC)</p>")
    context = ParseContext(WikiConfig(), soup)

    assert len(first) == 1
    assert TimestampScanner(context).scan(soup) == []


def test_quoted_and_no_signature_text_is_ignored() -> None:
    _, timestamps = _scan(
        "<blockquote>Quote 10:00, 1 January 2020 (UTC)</blockquote>"
        "<p>Link=10:00, 1 January 2020 (UTC)</p>"
    )

    assert timestamps == []


def test_factotum_outdent_is_wrapped() -> None:
    soup, timestamps = _scan("<p>┌──┘<br/>Next</p>")

    assert timestamps == []
    wrapper = soup.find(class_="outdent-template")
    assert wrapper is not None
    assert wrapper.get_text() == "┌──┘"
    assert soup.find("br") is None
