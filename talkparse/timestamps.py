"""Find signature timestamps in text and mark them in the tree.

A wiki prints signature timestamps with a PHP-style date format such as
``H:i, j F Y`` followed by a timezone in parentheses. :class:`TimestampParser`
compiles that grammar into a regular expression and turns a match into an
aware UTC datetime; :class:`TimestampScanner` walks every text leaf of a page,
splits leaves around each timestamp and wraps the timestamp itself into a
``span.tp-timestamp`` marker so later stages can recognise it structurally.

Example
-------
>>> from talkparse.config import TimestampGrammar
>>> parser = TimestampParser.for_grammar(TimestampGrammar())
>>> parser.parse("Thanks. 23:29, 10 May 2019 (UTC)").date.isoformat()
'2019-05-10T23:29:00+00:00'
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import functools
import logging
import re
import typing as typ
import zoneinfo

from ._constants import TIMESTAMP_CLASS
from .config import WikiConfigError
from .dom import (
    has_class,
    insert_after,
    is_element,
    new_tag,
    new_text,
    replace_text,
    text_nodes,
)
from .models import Timestamp

if typ.TYPE_CHECKING:
    from bs4 import NavigableString, Tag

    from .config import TimestampGrammar
    from .context import ParseContext

logger = logging.getLogger(__name__)

DIR_MARKS = str.maketrans({"\u200e": " ", "\u200f": " "})
FACTOTUM_OUTDENT_PATTERN = re.compile(r"┌─*┘")
THAI_YEAR_OFFSET = 543

_NAME_CODES = frozenset({"xg", "D", "l", "F", "M"})
_DIGIT_WIDTHS = {
    "d": "2",
    "H": "2",
    "i": "2",
    "j": "1,2",
    "n": "1,2",
    "G": "1,2",
    "Y": "4",
    "xkY": "4",
}


def _read_code(date_format: str, position: int) -> tuple[str, int]:
    """Return the format code starting at ``position`` and its last index."""
    code = date_format[position]
    if code == "x" and position < len(date_format) - 1:
        position += 1
        code += date_format[position]
        if code == "xk" and position < len(date_format) - 1:
            position += 1
            code += date_format[position]
    return code, position


def matching_groups(date_format: str) -> list[str]:
    """List the format codes that produce a capturing group, in order.

    Examples
    --------
    >>> matching_groups("H:i, j F Y")
    ['H', 'i', 'j', 'F', 'Y']
    """
    groups: list[str] = []
    position = 0
    while position < len(date_format):
        code, position = _read_code(date_format, position)
        if code in _NAME_CODES or code in _DIGIT_WIDTHS:
            groups.append(code)
        elif code == "\\" and position < len(date_format) - 1:
            position += 1
        elif code == '"' and position < len(date_format) - 1:
            end_quote = date_format.find('"', position + 1)
            if end_quote != -1:
                position = end_quote
        position += 1
    return groups


def _name_table(grammar: TimestampGrammar, code: str) -> tuple[str, ...]:
    match code:
        case "xg":
            return grammar.genitive_months
        case "F":
            return grammar.months
        case "M":
            return grammar.month_abbreviations
        case "l":
            return grammar.weekdays
        case "D":
            return grammar.weekday_abbreviations
    msg = f"Unsupported date format code '{code}'."  # pragma: no cover
    raise WikiConfigError(msg)  # pragma: no cover


def main_part_pattern(grammar: TimestampGrammar) -> str:
    """Return the pattern matching a timestamp without its timezone suffix.

    Only the codes MediaWiki's default date formats use are supported:
    ``D d F G H i j l M n Y xg xkY``, backslash escapes and quoted literals.
    """
    date_format = grammar.date_format
    if grammar.digits:
        digit_class = "[" + "".join(re.escape(char) for char in grammar.digits) + "]"
    else:
        digit_class = r"\d"

    pieces: list[str] = []
    position = 0
    while position < len(date_format):
        code, position = _read_code(date_format, position)
        if code == "xx":
            pieces.append("x")
        elif code in _NAME_CODES:
            names = _name_table(grammar, code)
            pieces.append("(" + "|".join(re.escape(name) for name in names) + ")")
        elif code in _DIGIT_WIDTHS:
            pieces.append(f"({digit_class}{{{_DIGIT_WIDTHS[code]}}})")
        elif code == "\\":
            if position < len(date_format) - 1:
                position += 1
                pieces.append(re.escape(date_format[position]))
            else:
                pieces.append(re.escape("\\"))
        elif code == '"':
            end_quote = date_format.find('"', position + 1)
            if position < len(date_format) - 1 and end_quote != -1:
                pieces.append(re.escape(date_format[position + 1 : end_quote]))
                position = end_quote
            else:
                pieces.append('"')
        elif code.startswith("x") and len(code) > 1:
            msg = f"Unsupported date format code '{code}'."
            raise WikiConfigError(msg)
        else:
            pieces.append(re.escape(code))
        position += 1
    return "".join(pieces)


@dc.dataclass(frozen=True, slots=True)
class ParsedTimestamp:
    """A timestamp match within a string."""

    date: dt.datetime
    leading_text: str
    matched_text: str
    end: int


class TimestampParser:
    """Match and interpret timestamps written with one wiki's grammar."""

    def __init__(self, grammar: TimestampGrammar) -> None:
        self.grammar = grammar
        self.groups = matching_groups(grammar.date_format)
        timezone_pattern = (
            rf"\((?:{re.escape(grammar.utc_label)}|[A-Z]{{1,5}}|[+-]\d{{0,4}})\)"
        )
        self.timestamp_pattern = main_part_pattern(grammar) + " +" + timezone_pattern
        self.timestamp_regex = re.compile(self.timestamp_pattern)
        # The greedy prefix makes the match the last timestamp in the text.
        self.parse_regex = re.compile(
            rf"^([\s\S]*(?:^|[^=])(?:\b| ))({self.timestamp_pattern})(?![\"»])"
        )
        self._zone = (
            zoneinfo.ZoneInfo(grammar.timezone)
            if isinstance(grammar.timezone, str) and grammar.timezone != "UTC"
            else None
        )

    @classmethod
    def for_grammar(cls, grammar: TimestampGrammar) -> TimestampParser:
        """Return a cached parser for ``grammar``."""
        return _cached_parser(grammar)

    def _number(self, text: str) -> int:
        digits = self.grammar.digits
        if digits:
            text = "".join(
                str(digits.index(char)) if char in digits else char for char in text
            )
        return int(text)

    def _offset_minutes(self, wall_clock: dt.datetime) -> int:
        grammar = self.grammar
        if grammar.timezone_resolver is not None:
            return grammar.timezone_resolver(wall_clock)
        if isinstance(grammar.timezone, int):
            return grammar.timezone
        if self._zone is None:
            return 0
        offset = wall_clock.replace(tzinfo=self._zone).utcoffset()
        return int(offset.total_seconds() // 60) if offset is not None else 0

    def date_from_groups(self, values: typ.Sequence[str]) -> dt.datetime | None:
        """Return the UTC instant described by the component ``values``.

        ``values`` holds one string per entry of :attr:`groups`. ``None`` is
        returned when the components do not form a valid calendar date.
        """
        year = 1900
        month_index = 0
        day = 1
        hours = 0
        minutes = 0
        for code, text in zip(self.groups, values, strict=True):
            match code:
                case "xg" | "F" | "M":
                    table = _name_table(self.grammar, code)
                    if text not in table:
                        return None
                    month_index = table.index(text)
                case "d" | "j":
                    day = self._number(text)
                case "n":
                    month_index = self._number(text) - 1
                case "Y":
                    year = self._number(text)
                case "xkY":
                    year = self._number(text) - THAI_YEAR_OFFSET
                case "G" | "H":
                    hours = self._number(text)
                case "i":
                    minutes = self._number(text)
                case _:
                    pass
        try:
            wall_clock = dt.datetime(year, month_index + 1, day, hours, minutes)  # noqa: DTZ001
        except ValueError:
            return None
        offset = dt.timedelta(minutes=self._offset_minutes(wall_clock))
        return (wall_clock - offset).replace(tzinfo=dt.UTC)

    def parse(self, text: str) -> ParsedTimestamp | None:
        """Find the last timestamp in ``text``.

        Left-to-right and right-to-left marks are replaced with spaces first,
        which keeps offsets aligned with ``text``.
        """
        adjusted = text.translate(DIR_MARKS)
        match = self.parse_regex.match(adjusted)
        if match is None:
            return None
        date = self.date_from_groups(match.groups()[2:])
        if date is None:
            return None
        return ParsedTimestamp(
            date=date,
            leading_text=match.group(1),
            matched_text=match.group(2),
            end=match.end(),
        )


@functools.lru_cache(maxsize=16)
def _cached_parser(grammar: TimestampGrammar) -> TimestampParser:
    return TimestampParser(grammar)


class TimestampScanner:
    """Split text leaves around timestamps and mark the timestamps."""

    def __init__(self, context: ParseContext) -> None:
        self.context = context
        self.parser = TimestampParser.for_grammar(context.config.timestamp)

    def scan(self, root: Tag) -> list[Timestamp]:
        """Mark every timestamp under ``root`` and return them in document order."""
        timestamps: list[Timestamp] = []
        for node in text_nodes(root):
            if node.parent is None or self._is_inside_marker(node):
                continue
            if self._wrap_factotum_outdent(node):
                continue
            if self._is_excluded(node):
                continue
            timestamps.extend(self._split(node))
        logger.debug("Found %d timestamps", len(timestamps))
        return timestamps

    def _is_inside_marker(self, node: NavigableString) -> bool:
        return any(has_class(parent, TIMESTAMP_CLASS) for parent in node.parents)

    def _is_excluded(self, node: NavigableString) -> bool:
        context = self.context
        if not context.no_signature_ids and not context.excluded_ids:
            return False
        return any(
            id(parent) in context.no_signature_ids or id(parent) in context.excluded_ids
            for parent in node.parents
        )

    def _wrap_factotum_outdent(self, node: NavigableString) -> bool:
        outdent_class = self.context.config.outdent_class
        text = str(node)
        if not outdent_class or not FACTOTUM_OUTDENT_PATTERN.fullmatch(text):
            return False
        parent = node.parent
        if has_class(parent, outdent_class) or has_class(parent.parent, outdent_class):
            return False
        span = new_tag("span", classes=[outdent_class])
        span.append(new_text(text))
        following = node.next_sibling
        if is_element(following) and following.name == "br":
            following.extract()
        node.replace_with(span)
        return True

    def _split(self, node: NavigableString) -> list[Timestamp]:
        found: list[Timestamp] = []
        current = node
        while True:
            text = str(current)
            parsed = self.parser.parse(text)
            if parsed is None:
                break
            marker = new_tag("span", classes=[TIMESTAMP_CLASS])
            marker.append(new_text(parsed.matched_text))
            remainder = text[parsed.end :]
            insert_after(marker, current)
            if remainder:
                insert_after(new_text(remainder), marker)
            found.append(
                Timestamp(
                    element=marker,
                    matched_text=parsed.matched_text,
                    remainder_text=remainder,
                    date=parsed.date,
                )
            )
            if not parsed.leading_text:
                current.extract()
                break
            current = replace_text(current, parsed.leading_text)
        found.reverse()
        return found


__all__ = [
    "ParsedTimestamp",
    "TimestampParser",
    "TimestampScanner",
    "main_part_pattern",
    "matching_groups",
]
