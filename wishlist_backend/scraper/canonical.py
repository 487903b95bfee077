"""Canonical URLs: product page URLs stripped of tracking parameters.

The canonical form is the key under which scrape results are cached, so two
links to the same product shared from different campaigns hit the same
entry.
"""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_TRACKING_PARAMS = frozenset({
    "fbclid", "gclid", "dclid", "msclkid", "yclid", "igshid",
    "mc_cid", "mc_eid", "_ga", "_gl",
    "ref", "ref_", "tag", "aff", "aff_id", "affiliate", "affiliate_id",
    "spm", "scm",
})


def is_tracking_param(name: str) -> bool:
    """Return ``True`` for analytics and affiliate query parameter names."""
    lowered = name.lower()
    return lowered.startswith("utm_") or lowered in _TRACKING_PARAMS


def canonicalize_url(url: str) -> str:
    """Drop tracking parameters and the fragment; lowercase scheme and host."""
    parts = urlsplit(url)
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if not is_tracking_param(key)
    ]
    return urlunsplit((
        parts.scheme.lower(),
        parts.netloc.lower(),
        parts.path or "/",
        urlencode(query, doseq=True),
        "",
    ))
