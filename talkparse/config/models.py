"""Typed dataclasses describing a wiki's parsing configuration."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt  # noqa: TC003 - used for runtime type metadata
import typing as typ

from .._constants import USER_TALK_NAMESPACE
from ..models import TalkParseError

if typ.TYPE_CHECKING:
    from bs4 import Tag

TimezoneResolver = typ.Callable[[dt.datetime], int]
NodePredicate = typ.Callable[["Tag"], bool]

ENGLISH_MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
ENGLISH_MONTH_ABBREVIATIONS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)
ENGLISH_WEEKDAYS = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)
ENGLISH_WEEKDAY_ABBREVIATIONS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


class WikiConfigError(TalkParseError, ValueError):
    """Raised when the wiki configuration is invalid or incomplete."""


@dc.dataclass(frozen=True, slots=True)
class TimestampGrammar:
    """Describe how signature timestamps are written on a wiki.

    Attributes
    ----------
    date_format : str
        PHP-style date format of the timestamp's main part, for example
        ``"H:i, j F Y"``.
    digits : str or None
        Ten characters standing for 0-9 when the wiki transliterates numerals.
    months, month_abbreviations, genitive_months : tuple[str, ...]
        Month name tables used by the ``F``, ``M`` and ``xg`` codes.
    weekdays, weekday_abbreviations : tuple[str, ...]
        Day name tables used by the ``l`` and ``D`` codes.
    timezone : str or int
        ``"UTC"``, an IANA zone name, or a fixed offset in minutes.
    utc_label : str
        Localised name printed in parentheses after UTC timestamps.
    timezone_resolver : callable, optional
        Return the offset in minutes for a naive wall-clock datetime;
        overrides ``timezone`` when given.
    """

    date_format: str = "H:i, j F Y"
    digits: str | None = None
    months: tuple[str, ...] = ENGLISH_MONTHS
    month_abbreviations: tuple[str, ...] = ENGLISH_MONTH_ABBREVIATIONS
    genitive_months: tuple[str, ...] = ENGLISH_MONTHS
    weekdays: tuple[str, ...] = ENGLISH_WEEKDAYS
    weekday_abbreviations: tuple[str, ...] = ENGLISH_WEEKDAY_ABBREVIATIONS
    timezone: str | int = "UTC"
    utc_label: str = "UTC"
    timezone_resolver: TimezoneResolver | None = None


@dc.dataclass(frozen=True, slots=True)
class WikiConfig:
    """Everything the parser needs to know about the wiki and the page."""

    host: str = "en.wikipedia.org"
    article_path: str = "/wiki/$1"
    script_path: str = "/w/index.php"
    user_namespaces: tuple[str, ...] = ("User",)
    user_talk_namespaces: tuple[str, ...] = ("User talk",)
    contributions_pages: tuple[str, ...] = ("Special:Contributions",)
    page_namespace: int = 1
    page_title: str = ""
    signature_scan_limit: int = 100
    unsigned_class: str | None = "autosigned"
    signature_ending_pattern: str | None = None
    foreign_classes: tuple[str, ...] = ("archived", "boilerplate")
    outdent_class: str | None = "outdent-template"
    no_signature_classes: tuple[str, ...] = ("mw-notalk",)
    no_highlight_classes: tuple[str, ...] = ()
    excluded_selectors: tuple[str, ...] = ()
    timestamp: TimestampGrammar = dc.field(default_factory=TimestampGrammar)
    reject_node: NodePredicate | None = None

    @property
    def is_talk_namespace(self) -> bool:
        """Return whether the page lives in a talk namespace (odd number)."""
        return self.page_namespace % 2 == 1

    @property
    def is_user_talk_page(self) -> bool:
        """Return whether the page is in the user talk namespace."""
        return self.page_namespace == USER_TALK_NAMESPACE


__all__ = [
    "ENGLISH_MONTHS",
    "ENGLISH_MONTH_ABBREVIATIONS",
    "ENGLISH_WEEKDAYS",
    "ENGLISH_WEEKDAY_ABBREVIATIONS",
    "NodePredicate",
    "TimestampGrammar",
    "TimezoneResolver",
    "WikiConfig",
    "WikiConfigError",
]
