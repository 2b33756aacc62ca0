"""Unit tests for loading wiki configuration YAML.

Usage
-----
Run ``pytest tests/test_config.py -v``. Configuration files are written to
pytest's ``tmp_path``.
"""

from __future__ import annotations

import typing as typ
from textwrap import dedent

import pytest

from talkparse.config import (
    TimestampGrammar,
    WikiConfig,
    WikiConfigError,
    build_wiki_config,
    load_wiki_config,
)

if typ.TYPE_CHECKING:
    from pathlib import Path


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "wiki.yaml"
    path.write_text(dedent(text).strip() + "\n", encoding="utf-8")
    return path


def test_empty_file_gives_defaults(tmp_path: Path) -> None:
    assert load_wiki_config(_write(tmp_path, "")) == WikiConfig()


def test_full_configuration(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
        wiki:
          host: fr.wikipedia.org
        namespaces:
          user: [Utilisateur, Utilisatrice]
          user_talk: Discussion utilisateur
          contributions: Spécial:Contributions
        page:
          namespace: 3
          title: Zoé
        signatures:
          scan_limit: 80
          unsigned_class: null
          ending_pattern: '~~~~?'
        classes:
          foreign: archived closed
          outdent: outdent
          no_highlight: [bandeau]
        exclude: [.citation]
        timestamp:
          format: 'j F Y à H:i'
          months: [janvier, février, mars, avril, mai, juin, juillet, août,
                   septembre, octobre, novembre, décembre]
          timezone: 60
          utc_label: UTC
        """,
    )

    config = load_wiki_config(path)

    assert config.host == "fr.wikipedia.org"
    assert config.user_namespaces == ("Utilisateur", "Utilisatrice")
    assert config.user_talk_namespaces == ("Discussion utilisateur",)
    assert config.contributions_pages == ("Spécial:Contributions",)
    assert config.page_namespace == 3
    assert config.is_user_talk_page
    assert config.page_title == "Zoé"
    assert config.signature_scan_limit == 80
    assert config.unsigned_class is None
    assert config.signature_ending_pattern == "~~~~?"
    assert config.foreign_classes == ("archived", "closed")
    assert config.outdent_class == "outdent"
    assert config.no_highlight_classes == ("bandeau",)
    assert config.no_signature_classes == ("mw-notalk",)
    assert config.excluded_selectors == (".citation",)
    assert config.timestamp.date_format == "j F Y à H:i"
    assert config.timestamp.months[1] == "février"
    assert config.timestamp.genitive_months == config.timestamp.months
    assert config.timestamp.timezone == 60


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="not found"):
        load_wiki_config(tmp_path / "missing.yaml")


def test_non_mapping_document_raises(tmp_path: Path) -> None:
    with pytest.raises(TypeError, match="mapping"):
        load_wiki_config(_write(tmp_path, "- just\n- a list"))


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ({"signatures": {"scan_limit": 0}}, "scan_limit"),
        ({"signatures": {"scan_limit": True}}, "scan_limit"),
        ({"page": {"namespace": "talk"}}, "page.namespace"),
        ({"signatures": {"ending_pattern": "("}}, "ending_pattern"),
        ({"timestamp": {"months": ["one", "two"]}}, "exactly 12"),
        ({"timestamp": {"digits": "0123"}}, "digits"),
        ({"timestamp": {"timezone": "Mars/Olympus"}}, "Mars/Olympus"),
        ({"timestamp": {"timezone": True}}, "zone name or minutes"),
        ({"namespaces": {"user": {"a": 1}}}, "namespaces.user"),
        ({"wiki": ["not", "a", "mapping"]}, "'wiki' must be a mapping"),
    ],
)
def test_invalid_values_raise(raw: dict[str, typ.Any], message: str) -> None:
    with pytest.raises(WikiConfigError, match=message):
        build_wiki_config(raw)


def test_config_errors_are_value_errors() -> None:
    with pytest.raises(ValueError, match="scan_limit"):
        build_wiki_config({"signatures": {"scan_limit": -1}})


def test_utc_timezone_names_are_normalised() -> None:
    config = build_wiki_config({"timestamp": {"timezone": "utc"}})

    assert config.timestamp == TimestampGrammar()
