"""Utility helpers shared by the wiki configuration loader."""

from __future__ import annotations

import typing as typ
import zoneinfo

from .models import WikiConfigError

MONTH_COUNT = 12
WEEKDAY_COUNT = 7
DIGIT_COUNT = 10


def _normalize_classes(value: str | list[object] | None) -> tuple[str, ...]:
    """Normalize class definitions into a tuple of non-empty strings."""
    if isinstance(value, str):
        return tuple(segment for segment in value.split() if segment)
    if isinstance(value, list):
        normalized: list[str] = []
        for segment in value:
            text = str(segment).strip()
            if text:
                normalized.append(text)
        return tuple(normalized)
    return ()


def _string_tuple(value: object, *, label: str) -> tuple[str, ...]:
    """Return a tuple of stripped strings from a scalar or a list."""
    match value:
        case None:
            return ()
        case str() as text:
            return (text.strip(),) if text.strip() else ()
        case list() | tuple():
            return tuple(str(item).strip() for item in value if str(item).strip())
        case _:
            msg = f"'{label}' must be a string or a list of strings."
            raise WikiConfigError(msg)


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _name_table(
    value: object, *, label: str, size: int, default: tuple[str, ...]
) -> tuple[str, ...]:
    """Validate a month or weekday name table, falling back to ``default``."""
    if value is None:
        return default
    names = _string_tuple(value, label=label)
    if len(names) != size:
        msg = f"'{label}' must list exactly {size} names, got {len(names)}."
        raise WikiConfigError(msg)
    return names


def _parse_digits(value: object | None) -> str | None:
    """Return a ten-character digit transliteration string, or None."""
    digits = _optional_str(value)
    if digits is None:
        return None
    if len(digits) != DIGIT_COUNT:
        msg = f"'timestamp.digits' must hold {DIGIT_COUNT} characters."
        raise WikiConfigError(msg)
    return digits


def _parse_timezone(value: object | None) -> str | int:
    """Return ``"UTC"``, a fixed offset in minutes, or a valid IANA name."""
    match value:
        case None:
            return "UTC"
        case bool():
            msg = "'timestamp.timezone' must be a zone name or minutes."
            raise WikiConfigError(msg)
        case int() as minutes:
            return minutes
        case str() as text:
            name = text.strip()
            if not name or name.upper() == "UTC":
                return "UTC"
            try:
                zoneinfo.ZoneInfo(name)
            except (zoneinfo.ZoneInfoNotFoundError, ValueError) as exc:
                msg = f"Unknown timezone '{name}'."
                raise WikiConfigError(msg) from exc
            return name
        case _:
            msg = "'timestamp.timezone' must be a zone name or minutes."
            raise WikiConfigError(msg)


def _section(raw: typ.Mapping[str, typ.Any], key: str) -> typ.Mapping[str, typ.Any]:
    """Return the mapping stored under ``key`` (empty when absent)."""
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        msg = f"'{key}' must be a mapping."
        raise WikiConfigError(msg)
    return value


__all__ = [
    "DIGIT_COUNT",
    "MONTH_COUNT",
    "WEEKDAY_COUNT",
    "_name_table",
    "_normalize_classes",
    "_optional_str",
    "_parse_digits",
    "_parse_timezone",
    "_section",
    "_string_tuple",
]
