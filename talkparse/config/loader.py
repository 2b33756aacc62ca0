"""Load wiki configuration YAML into typed dataclasses."""

from __future__ import annotations

import re
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .helpers import (
    MONTH_COUNT,
    WEEKDAY_COUNT,
    _name_table,
    _normalize_classes,
    _optional_str,
    _parse_digits,
    _parse_timezone,
    _section,
    _string_tuple,
)
from .models import TimestampGrammar, WikiConfig, WikiConfigError


def load_wiki_config(path: Path) -> WikiConfig:
    """Load the YAML file describing a wiki's signature and timestamp grammar.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``enwiki.yaml``).

    Returns
    -------
    WikiConfig
        Parsed configuration with defaults applied for every missing key.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    WikiConfigError
        If a section or value is malformed (for example, a month table
        without twelve names).
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> from talkparse.config import load_wiki_config
    >>> config = load_wiki_config(Path("enwiki.yaml"))  # doctest: +SKIP
    >>> config.timestamp.date_format  # doctest: +SKIP
    'H:i, j F Y'
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    return build_wiki_config(loaded)


def build_wiki_config(raw: typ.Mapping[str, typ.Any]) -> WikiConfig:
    """Build a :class:`WikiConfig` from an already-parsed mapping."""
    base = WikiConfig()
    wiki = _section(raw, "wiki")
    namespaces = _section(raw, "namespaces")
    page = _section(raw, "page")
    signatures = _section(raw, "signatures")
    classes = _section(raw, "classes")

    scan_limit = signatures.get("scan_limit", base.signature_scan_limit)
    if isinstance(scan_limit, bool) or not isinstance(scan_limit, int) or scan_limit <= 0:
        msg = "'signatures.scan_limit' must be a positive integer."
        raise WikiConfigError(msg)

    page_namespace = page.get("namespace", base.page_namespace)
    if isinstance(page_namespace, bool) or not isinstance(page_namespace, int):
        msg = "'page.namespace' must be an integer."
        raise WikiConfigError(msg)

    ending_pattern = _optional_str(signatures.get("ending_pattern"))
    if ending_pattern is not None:
        try:
            re.compile(ending_pattern)
        except re.error as exc:
            msg = f"'signatures.ending_pattern' is not a valid pattern: {exc}"
            raise WikiConfigError(msg) from exc

    return WikiConfig(
        host=_optional_str(wiki.get("host")) or base.host,
        article_path=_optional_str(wiki.get("article_path")) or base.article_path,
        script_path=_optional_str(wiki.get("script_path")) or base.script_path,
        user_namespaces=_string_tuple(
            namespaces.get("user"), label="namespaces.user"
        )
        or base.user_namespaces,
        user_talk_namespaces=_string_tuple(
            namespaces.get("user_talk"), label="namespaces.user_talk"
        )
        or base.user_talk_namespaces,
        contributions_pages=_string_tuple(
            namespaces.get("contributions"), label="namespaces.contributions"
        )
        or base.contributions_pages,
        page_namespace=page_namespace,
        page_title=_optional_str(page.get("title")) or base.page_title,
        signature_scan_limit=scan_limit,
        unsigned_class=_optional_str(
            signatures.get("unsigned_class", base.unsigned_class)
        ),
        signature_ending_pattern=ending_pattern,
        foreign_classes=_classes_or_default(
            classes, "foreign", base.foreign_classes
        ),
        outdent_class=_optional_str(classes.get("outdent", base.outdent_class)),
        no_signature_classes=_classes_or_default(
            classes, "no_signature", base.no_signature_classes
        ),
        no_highlight_classes=_classes_or_default(
            classes, "no_highlight", base.no_highlight_classes
        ),
        excluded_selectors=_string_tuple(raw.get("exclude"), label="exclude"),
        timestamp=_build_timestamp_grammar(_section(raw, "timestamp")),
    )


def _classes_or_default(
    classes: typ.Mapping[str, typ.Any], key: str, default: tuple[str, ...]
) -> tuple[str, ...]:
    """Return the configured classes for ``key`` or ``default`` when unset."""
    if key not in classes:
        return default
    return _normalize_classes(classes.get(key))


def _build_timestamp_grammar(payload: typ.Mapping[str, typ.Any]) -> TimestampGrammar:
    """Build a TimestampGrammar instance from the provided mapping payload."""
    base = TimestampGrammar()
    months = _name_table(
        payload.get("months"),
        label="timestamp.months",
        size=MONTH_COUNT,
        default=base.months,
    )
    return TimestampGrammar(
        date_format=_optional_str(payload.get("format")) or base.date_format,
        digits=_parse_digits(payload.get("digits")),
        months=months,
        month_abbreviations=_name_table(
            payload.get("month_abbreviations"),
            label="timestamp.month_abbreviations",
            size=MONTH_COUNT,
            default=base.month_abbreviations,
        ),
        genitive_months=_name_table(
            payload.get("genitive_months"),
            label="timestamp.genitive_months",
            size=MONTH_COUNT,
            default=months,
        ),
        weekdays=_name_table(
            payload.get("weekdays"),
            label="timestamp.weekdays",
            size=WEEKDAY_COUNT,
            default=base.weekdays,
        ),
        weekday_abbreviations=_name_table(
            payload.get("weekday_abbreviations"),
            label="timestamp.weekday_abbreviations",
            size=WEEKDAY_COUNT,
            default=base.weekday_abbreviations,
        ),
        timezone=_parse_timezone(payload.get("timezone")),
        utc_label=_optional_str(payload.get("utc_label")) or base.utc_label,
    )


__all__ = ["build_wiki_config", "load_wiki_config"]
