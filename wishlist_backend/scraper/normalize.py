"""Value normalization shared by the extractors and the coordinator."""

from __future__ import annotations

import html
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional
from urllib.parse import urljoin, urlsplit

from wishlist_backend.scraper.models import DEFAULT_PRICE

_WHITESPACE_RE = re.compile(r"\s+")
_PRICE_RE = re.compile(r"^\d{1,15}(\.\d{1,10})?$")
_CURRENCY_CODE_RE = re.compile(r"^[A-Z]{3}$")

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".gif")

CURRENCY_SYMBOLS = {"€": "EUR", "£": "GBP"}


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace; for text an HTML parser already decoded."""
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def clean_text(text: str) -> str:
    """Decode HTML entities and collapse runs of whitespace."""
    return collapse_whitespace(html.unescape(text or ""))


def truncate(text: str, limit: int = 500) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


# ---------------------------------------------------------------------------
# Prices
# ---------------------------------------------------------------------------

def parse_price(raw: object) -> Optional[str]:
    """Disambiguate decimal/thousands separators in *raw*.

    Returns a plain decimal string (at most 15 integer digits) or ``None``
    when *raw* cannot be reduced to one.

    * both ``,`` and ``.`` present: the later one is the decimal point,
    * a single ``,``: decimal point,
    * several ``,`` and no ``.``: thousands separators.
    """
    if raw is None or isinstance(raw, bool):
        return None
    value = _WHITESPACE_RE.sub("", str(raw))

    if "," in value and "." in value:
        if value.rfind(",") > value.rfind("."):
            value = value.replace(".", "").replace(",", ".")
        else:
            value = value.replace(",", "")
    elif value.count(",") == 1:
        value = value.replace(",", ".")
    elif value.count(",") > 1:
        value = value.replace(",", "")

    return value if _PRICE_RE.match(value) else None


def normalize_price(raw: object) -> str:
    """Like :func:`parse_price` but falls back to ``"0.00"``."""
    return parse_price(raw) or DEFAULT_PRICE


def format_price(value: str) -> str:
    """Render a normalized price with exactly two fraction digits."""
    try:
        amount = Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError):
        return DEFAULT_PRICE
    if amount < 0:
        return DEFAULT_PRICE
    return str(amount)


def currency_from_symbol(symbol: str) -> str:
    """Map a detected currency symbol or code to an ISO 4217 code.

    ``€`` and ``£`` map to EUR and GBP; any other symbol is treated as USD.
    """
    symbol = symbol.strip()
    if _CURRENCY_CODE_RE.match(symbol.upper()) and symbol.isalpha():
        return symbol.upper()
    return CURRENCY_SYMBOLS.get(symbol, "USD")


def normalize_currency(raw: object) -> Optional[str]:
    """Accept three-letter codes and known symbols, reject anything else."""
    if not isinstance(raw, str) or not raw.strip():
        return None
    value = raw.strip()
    if _CURRENCY_CODE_RE.match(value.upper()) and value.isalpha():
        return value.upper()
    if value in CURRENCY_SYMBOLS or value == "$":
        return currency_from_symbol(value)
    return None


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

def resolve_image_url(value: str, page_url: str) -> str:
    """Turn a protocol-relative or relative image reference into an absolute URL.

    ``//host/a.jpg`` gets ``https:``; ``/a.jpg`` is resolved against the page
    origin; other relative paths are joined to the page URL.  ``data:`` URIs
    and unsupported schemes resolve to ``""``.
    """
    value = (value or "").strip()
    if not value or value.lower().startswith("data:"):
        return ""
    if value.startswith("//"):
        return "https:" + value
    if value.startswith("/"):
        page = urlsplit(page_url)
        return f"{page.scheme}://{page.netloc}{value}"
    if value.lower().startswith(("http://", "https://")):
        return value
    if ":" in value.split("/", 1)[0]:
        return ""
    return urljoin(page_url, value)


def has_image_extension(url: str) -> bool:
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        return False
    return path.endswith(IMAGE_EXTENSIONS)
