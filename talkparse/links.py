"""Classify links that may identify a comment's author.

Signatures are recognised by their links: a link to a user page, a user talk
page or a contributions page names the author. :func:`parse_wiki_url` reduces
an ``href`` to a page name and host, and :class:`LinkClassifier` tells which of
those link kinds it is, caching results per ``href`` for the page.

Examples
--------
>>> from talkparse.config import WikiConfig
>>> url = parse_wiki_url("/wiki/User_talk:Alice#top", WikiConfig())
>>> url.page_name, url.fragment
('User talk:Alice', 'top')
>>> normalize_user_name(" bob_smith/Archive ")
'Bob smith'
"""

from __future__ import annotations

import dataclasses as dc
import enum
import ipaddress
import re
import typing as typ
from urllib.parse import unquote

from ._constants import SELF_LINK_CLASS
from .dom import has_class

if typ.TYPE_CHECKING:
    from bs4 import Tag

    from .config import WikiConfig

_HOST_PATTERN = re.compile(r"^(?:https?:)?//([^/]+)")
_EDIT_ACTION_PATTERN = re.compile(r"[&?]action=edit.*")
_BAD_ESCAPE_PATTERN = re.compile(r"%(?![0-9A-Fa-f]{2})")
_ANCHOR_ID_PATTERN = re.compile(r"^\d{12}_.+$")
_DT_ANCHOR_PREFIX = "c-"


class LinkType(enum.Enum):
    """Kind of page a link points to."""

    USER = "user"
    USER_TALK = "user_talk"
    CONTRIBS = "contribs"
    USER_SUBPAGE = "user_subpage"
    USER_TALK_SUBPAGE = "user_talk_subpage"
    NONE = "none"


@dc.dataclass(frozen=True, slots=True)
class WikiUrl:
    """Page name, host and fragment extracted from a link target."""

    page_name: str
    host: str
    fragment: str | None = None


@dc.dataclass(frozen=True, slots=True)
class LinkInfo:
    """User name carried by a link and the kind of link it is.

    Attributes
    ----------
    user_name : str
        Normalised user name.
    link_type : LinkType
        Kind of target page.
    foreign : bool
        Whether the link points to another wiki than the current one.
    """

    user_name: str
    link_type: LinkType
    foreign: bool = False


def is_comment_anchor(fragment: str | None) -> bool:
    """Return whether ``fragment`` is a comment anchor rather than a page part."""
    if not fragment:
        return False
    return bool(_ANCHOR_ID_PATTERN.match(fragment)) or fragment.startswith(
        _DT_ANCHOR_PREFIX
    )


def normalize_user_name(name: str) -> str:
    """Strip subpages, turn underscores into spaces and upper-case the first letter."""
    base = name.split("/", 1)[0].replace("_", " ").strip()
    return base[:1].upper() + base[1:]


def _is_ipv6(name: str) -> bool:
    try:
        return ipaddress.ip_address(name).version == 6  # noqa: PLR2004
    except ValueError:
        return False


def parse_wiki_url(url: str, config: WikiConfig) -> WikiUrl | None:
    """Reduce a link target to a page name, host and fragment.

    Parameters
    ----------
    url : str
        The ``href`` of a link, absolute, protocol-relative or relative.
    config : WikiConfig
        Supplies the current host, article path and script path.

    Returns
    -------
    WikiUrl or None
        ``None`` when the page name contains an invalid percent escape.
    """
    host = config.host
    fragment: str | None = None
    text = url
    host_match = _HOST_PATTERN.match(text)
    if host_match:
        host = host_match.group(1)
        text = text[host_match.end() :]

    article_prefix = "^" + re.escape(config.article_path).replace(
        re.escape("$1"), "(.*)"
    )
    text = re.sub(article_prefix, r"\1", text, count=1)
    text = re.sub("^" + re.escape(config.script_path + "?title="), "", text, count=1)
    text = _EDIT_ACTION_PATTERN.sub("", text, count=1)
    hash_index = text.find("#")
    if hash_index != -1:
        fragment = text[hash_index + 1 :]
        text = text[:hash_index]
    text = text.replace("_", " ")
    if _BAD_ESCAPE_PATTERN.search(text):
        return None
    try:
        page_name = unquote(text, errors="strict")
    except UnicodeDecodeError:
        return None
    return WikiUrl(page_name=page_name, host=host, fragment=fragment)


def _alternation(names: typ.Iterable[str]) -> str:
    return "|".join(re.escape(name) for name in names)


class LinkClassifier:
    """Classify user-related links for one wiki, caching results per href."""

    def __init__(self, config: WikiConfig) -> None:
        self.config = config
        user = _alternation(config.user_namespaces)
        user_talk = _alternation(config.user_talk_namespaces)
        self._user_namespaces = re.compile(
            rf"(?:^|:)(?:{user}|{user_talk}):(.+)", re.IGNORECASE
        )
        self._user_link = re.compile(rf"^:?(?:{user}):([^/]+)$", re.IGNORECASE)
        self._user_subpage = re.compile(rf"^:?(?:{user}):.+?/", re.IGNORECASE)
        self._user_talk_link = re.compile(
            rf"^:?(?:{user_talk}):([^/]+)$", re.IGNORECASE
        )
        self._user_talk_subpage = re.compile(
            rf"^:?(?:{user_talk}):.+?/", re.IGNORECASE
        )
        self._contribs = re.compile(
            rf"^(?:{_alternation(config.contributions_pages)})/"
        )
        self._cache: dict[str, LinkInfo | None] = {}

    def classify(self, link: Tag) -> LinkInfo | None:
        """Return the user name and link kind carried by ``link``, if any."""
        href = link.get("href")
        if isinstance(href, str) and href:
            if href not in self._cache:
                self._cache[href] = self.classify_href(href)
            return self._cache[href]
        config = self.config
        if (
            has_class(link, SELF_LINK_CLASS)
            and config.is_user_talk_page
            and config.page_title
            and "/" not in config.page_title
        ):
            return LinkInfo(
                user_name=normalize_user_name(config.page_title),
                link_type=LinkType.NONE,
            )
        return None

    def classify_href(self, href: str) -> LinkInfo | None:
        """Classify a link target string."""
        parsed = parse_wiki_url(href, self.config)
        if parsed is None or not parsed.page_name or is_comment_anchor(parsed.fragment):
            return None

        page_name = parsed.page_name
        user_name: str | None = None
        link_type = LinkType.NONE
        namespace_match = self._user_namespaces.search(page_name)
        if namespace_match:
            user_name = namespace_match.group(1)
            if self._user_link.match(page_name):
                link_type = LinkType.USER
            elif self._user_talk_link.match(page_name):
                link_type = LinkType.USER_TALK
            elif self._user_subpage.match(page_name):
                link_type = LinkType.USER_SUBPAGE
            elif self._user_talk_subpage.match(page_name):
                link_type = LinkType.USER_TALK_SUBPAGE
        elif self._contribs.match(page_name):
            user_name = self._contribs.sub("", page_name, count=1)
            if _is_ipv6(user_name):
                user_name = user_name.upper()
            link_type = LinkType.CONTRIBS

        if not user_name:
            return None
        name = normalize_user_name(user_name)
        if not name:
            return None
        return LinkInfo(
            user_name=name,
            link_type=link_type,
            foreign=parsed.host != self.config.host,
        )


__all__ = [
    "LinkClassifier",
    "LinkInfo",
    "LinkType",
    "WikiUrl",
    "is_comment_anchor",
    "normalize_user_name",
    "parse_wiki_url",
]
