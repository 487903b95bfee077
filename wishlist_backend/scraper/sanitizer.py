"""Textual HTML sanitizer run on every fetched page before extraction.

Removes active content: ``<script>``, ``<iframe>``, ``<object>``, ``<embed>``
and ``<form>`` elements, inline ``on*=`` event handlers and ``javascript:``
URIs.  JSON-LD blocks are data rather than code, so they are kept (minus any
handlers or script URIs) for the structured-data extractors.

The regexes do not track nesting.  Removal is repeated until the document
stops changing, which also defeats split-tag tricks such as
``<scr<script></script>ipt>``.
"""

from __future__ import annotations

import re

_DANGEROUS_TAGS = ("script", "iframe", "object", "embed", "form")

_ELEMENT_RES = [
    re.compile(rf"<{tag}\b[^>]*>.*?</{tag}\s*>", re.IGNORECASE | re.DOTALL)
    for tag in _DANGEROUS_TAGS
]
_LONE_TAG_RE = re.compile(
    r"</?(?:" + "|".join(_DANGEROUS_TAGS) + r")\b[^>]*>", re.IGNORECASE
)
_EVENT_HANDLER_RE = re.compile(
    r"""(?<=[\s"'/])on[a-z]+\s*=\s*(?:"[^"]*"|'[^']*'|[^\s>]+)""", re.IGNORECASE
)
_JS_URI_RE = re.compile(r"javascript\s*:", re.IGNORECASE)
_SCRIPT_BLOCK_RE = re.compile(r"<script\b([^>]*)>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
_ATTRIBUTE_RE = re.compile(r"""([^\s"'=<>/]+)(?:\s*=\s*("[^"]*"|'[^']*'|[^\s"'>]+))?""")
_JSON_LD_TYPE = "application/ld+json"


def _strip_active(fragment: str) -> str:
    for pattern in _ELEMENT_RES:
        fragment = pattern.sub("", fragment)
    fragment = _LONE_TAG_RE.sub("", fragment)
    fragment = _EVENT_HANDLER_RE.sub("", fragment)
    return _JS_URI_RE.sub("", fragment)


def _script_type(attributes: str) -> str:
    """Value of the first ``type`` attribute, as a browser would read it."""
    for name, value in _ATTRIBUTE_RE.findall(attributes):
        if name.lower() == "type":
            return value.strip("\"'").strip().lower()
    return ""


def _strip_data_block(block: str) -> str:
    # Handlers only live in the opening tag; the JSON body is left parseable.
    tag_end = block.index(">") + 1
    opening = _EVENT_HANDLER_RE.sub("", block[:tag_end])
    return opening + _JS_URI_RE.sub("", block[tag_end:])


def _sanitize_once(html: str) -> str:
    parts: list[str] = []
    position = 0
    for match in _SCRIPT_BLOCK_RE.finditer(html):
        if _script_type(match.group(1)) != _JSON_LD_TYPE:
            continue
        parts.append(_strip_active(html[position:match.start()]))
        parts.append(_strip_data_block(match.group(0)))
        position = match.end()
    parts.append(_strip_active(html[position:]))
    return "".join(parts)


def sanitize_html(html: str) -> str:
    """Return *html* with active content removed.

    Every step only deletes text, so the loop always terminates and the
    result is a fixed point: ``sanitize_html(sanitize_html(x)) == sanitize_html(x)``.
    """
    previous = None
    cleaned = html or ""
    while cleaned != previous:
        previous = cleaned
        cleaned = _sanitize_once(cleaned)
    return cleaned
