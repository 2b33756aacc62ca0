"""Segment rendered talk pages into signed comments and sections.

The package exposes the parser used by the ``talkparse`` console script and
the records it produces.

Exports
-------
- ``parse_html``: parse an HTML string with an optional root selector.
- ``parse_page``: parse an existing BeautifulSoup tree in place.
- ``TalkPageParser``: reusable parser bound to one wiki configuration.
- ``WikiConfig`` and ``load_wiki_config``: wiki grammar and its YAML loader.
- ``app`` and ``main``: the Cyclopts application and its runner.

Examples
--------
>>> from talkparse import parse_html
>>> result = parse_html(
...     "<ul><li>Yes. <a href='/wiki/User:Alice'>Alice</a> "
...     "10:00, 1 January 2020 (UTC)</li></ul>"
... )
>>> result.comments[0].level
1
"""

from __future__ import annotations

from .cli import app, main
from .config import WikiConfig, WikiConfigError, load_wiki_config
from .models import (
    Comment,
    CommentBoundaryError,
    ParseResult,
    ParseWarning,
    Section,
    Signature,
    TalkParseError,
)
from .parser import TalkPageParser, parse_html, parse_page

__all__ = [
    "Comment",
    "CommentBoundaryError",
    "ParseResult",
    "ParseWarning",
    "Section",
    "Signature",
    "TalkPageParser",
    "TalkParseError",
    "WikiConfig",
    "WikiConfigError",
    "app",
    "main",
    "load_wiki_config",
    "parse_html",
    "parse_page",
]
