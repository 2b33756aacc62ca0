"""Common literal values used across talkparse.

Marker class names and tag sets live here so the scanner, resolver, collector
and assembler recognise the same structures without drifting. Intended for
internal use within the talkparse package.

Examples
--------
>>> from talkparse import _constants
>>> _constants.COMMENT_LEVEL_TEMPLATE.format(level=2)
'tp-commentLevel-2'
>>> "ul" in _constants.LIST_TAGS
True
"""

TIMESTAMP_CLASS = "tp-timestamp"
SIGNATURE_CLASS = "tp-signature"
COMMENT_PART_CLASS = "tp-comment-part"
COMMENT_LEVEL_CLASS = "tp-commentLevel"
COMMENT_LEVEL_TEMPLATE = "tp-commentLevel-{level}"
COMMENT_INDEX_ATTR = "data-tp-comment-index"

# Tags rendered inline by default browser styles.
INLINE_TAGS = frozenset(
    {
        "a", "abbr", "b", "bdi", "big", "br", "button", "cite", "code", "del",
        "em", "font", "i", "img", "ins", "kbd", "meta", "q", "s", "samp",
        "small", "span", "strike", "strong", "sub", "sup", "time", "tt", "u",
        "var",
    }
)
BLOCK_TAGS = frozenset(
    {
        "blockquote", "caption", "center", "dd", "div", "dl", "dt", "figure",
        "figcaption", "form", "h1", "h2", "h3", "h4", "h5", "h6", "hr",
        "input", "li", "link", "ol", "p", "pre", "section", "style", "table",
        "tbody", "td", "tfoot", "th", "thead", "tr", "ul",
    }
)
HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
LIST_TAGS = frozenset({"dl", "ul", "ol"})
ITEM_TAGS = frozenset({"dd", "li"})
STRIKE_TAGS = frozenset({"s", "strike", "del"})
METADATA_TAGS = frozenset({"style", "link"})
NO_SIGNATURE_TAGS = ("blockquote", "q", "cite", "figure", "th")
NO_HIGHLIGHT_CLASSES = (
    "mw-empty-elt",
    "tleft",
    "tright",
    "floatleft",
    "floatright",
)

# Classes that end a comment walk on any step other than "up".
BASE_REJECT_CLASSES = (
    COMMENT_PART_CLASS,
    "mw-pt-languages",
    "mw-archivedtalk",
    "ombox",
)
TALK_MESSAGE_BOX_CLASS = "tmbox"
HEADING_WRAPPER_CLASS = "mw-heading"
SELF_LINK_CLASS = "mw-selflink"
EXTERNAL_LINK_CLASS = "external"
TOC_META_PROPERTY = "mw:PageProp/toc"
REFERENCE_LIST_CLASSES = ("references", "reflist-talk")

MAX_COLLECT_STEPS = 500
STRUCK_SIGNATURE_MIN_LENGTH = 30
USER_TALK_NAMESPACE = 3

# Markup added by the DiscussionTools reply tool.
REPLY_TOOL_ATTRS = ("data-mw-comment-start", "data-mw-comment-end")
REPLY_TOOL_THREAD_ATTR = "data-mw-thread-id"
REPLY_TOOL_BUTTONS_CLASS = "ext-discussiontools-init-replylink-buttons"
REPLY_TOOL_COMMENT_PREFIX = "__DTREPLYBUTTONS__"
