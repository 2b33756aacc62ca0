"""Load and validate wiki configuration for talk page parsing.

This subpackage describes everything the parser needs to know about a wiki:
its host and link layout, the namespaces that identify user pages, the classes
that mark unsigned templates and closed discussions, and the grammar of
signature timestamps. :func:`load_wiki_config` reads a YAML file, applies
English Wikipedia defaults for missing keys, and returns a frozen
:class:`WikiConfig`.

Examples
--------
>>> from talkparse.config import WikiConfig, build_wiki_config
>>> config = build_wiki_config({"page": {"namespace": 3, "title": "Alice"}})
>>> config.is_user_talk_page
True
>>> WikiConfig().timestamp.date_format
'H:i, j F Y'
"""

from .loader import build_wiki_config, load_wiki_config
from .models import TimestampGrammar, WikiConfig, WikiConfigError

__all__ = [
    "TimestampGrammar",
    "WikiConfig",
    "WikiConfigError",
    "build_wiki_config",
    "load_wiki_config",
]
