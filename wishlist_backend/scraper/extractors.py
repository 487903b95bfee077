"""Field extraction strategies.

Each strategy takes a :class:`~wishlist_backend.scraper.page.ProductPage`
and returns a candidate value or ``None``.  Strategies never raise for
missing data.  The ``*_STRATEGIES`` tables at the bottom fix the priority
order the coordinator walks for every field.

Structured data and meta tags are trusted as published.  Values scraped out
of arbitrary DOM nodes or free text are checked before being returned
(image extension, positive price, rating range).
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Any, Callable, List, Optional, Tuple

from bs4 import Tag

from wishlist_backend.scraper.normalize import (
    clean_text,
    collapse_whitespace,
    currency_from_symbol,
    has_image_extension,
    normalize_currency,
    parse_price,
    resolve_image_url,
)
from wishlist_backend.scraper.page import ProductPage

PriceCandidate = Tuple[str, Optional[str]]
Strategy = Callable[[ProductPage], Any]

# ---------------------------------------------------------------------------
# Retailer selector tables, keyed by the registered-domain label
# ---------------------------------------------------------------------------
RETAILER_PRICE_SELECTORS: dict[str, List[str]] = {
    "amazon": [
        "#corePrice_feature_div .a-offscreen",
        "#corePriceDisplay_desktop_feature_div .a-offscreen",
        "#priceblock_ourprice",
        "#priceblock_dealprice",
        ".a-price .a-offscreen",
    ],
    "ebay": [".x-price-primary", "#prcIsum", ".x-bin-price__content"],
    "worten": [".price__numbers", ".w-product__price"],
    "fnac": [".f-faPriceBox__price", ".userPrice"],
    "aliexpress": [".product-price-value", "[class*=price--current]"],
    "zalando": ["[data-testid=price]"],
}

GENERIC_PRICE_SELECTORS: List[str] = [
    ".product-price",
    ".price-current",
    ".current-price",
    ".sale-price",
    "[data-price]",
    ".price",
]

RETAILER_IMAGE_SELECTORS: dict[str, List[str]] = {
    "amazon": ["#landingImage", "#imgTagWrapperId img", "#main-image-container img"],
    "ebay": ["#icImg", ".ux-image-carousel-item img"],
    "worten": [".product-gallery img", ".w-product-gallery img"],
    "fnac": [".f-productVisuals-mainMedia img", ".f-productMedias img"],
    "aliexpress": ["[class*=magnifier] img"],
}

GENERIC_IMAGE_SELECTORS: List[str] = [
    ".product-image img",
    ".product-gallery img",
    ".product__media img",
    "#product-image img",
]

DESCRIPTION_KEYWORDS: Tuple[str, ...] = (
    "material", "size", "brand", "feature", "colour", "color", "dimension",
    "weight", "capacity", "design", "quality",
    "tamanho", "cor", "marca", "tecido", "caracter", "medida", "peso",
)

# Amounts with a two-digit fraction: "1.234,56", "1 234,56", "49.99", "1234,56".
_SCAN_AMOUNT = r"(?<![\w.,])(\d{1,3}(?:[.,\u00a0\u202f ]\d{3})*[.,]\d{2}|\d+[.,]\d{2})(?!\d)"
# Any amount, used to pull the number out of a price element's text.
_NUMBER_RE = re.compile(
    r"\d{1,3}(?:[.,\u00a0\u202f ]\d{3})+(?:[.,]\d{1,2})?(?!\d)|\d+(?:[.,]\d+)?"
)
_CURRENCY_SIGN_RE = re.compile(r"€|£|\$|\b(?:EUR|USD|GBP)\b")

_PRICE_SCAN_PATTERNS: List[Tuple[str, re.Pattern[str]]] = [
    (symbol, re.compile(pattern))
    for symbol, pattern in (
        ("€", rf"€\s*{_SCAN_AMOUNT}"),
        ("€", rf"{_SCAN_AMOUNT}\s*€"),
        ("EUR", rf"\bEUR\s*{_SCAN_AMOUNT}"),
        ("EUR", rf"{_SCAN_AMOUNT}\s*EUR\b"),
        ("$", rf"\$\s*{_SCAN_AMOUNT}"),
        ("$", rf"{_SCAN_AMOUNT}\s*\$"),
        ("USD", rf"\bUSD\s*{_SCAN_AMOUNT}"),
        ("USD", rf"{_SCAN_AMOUNT}\s*USD\b"),
        ("£", rf"£\s*{_SCAN_AMOUNT}"),
        ("£", rf"{_SCAN_AMOUNT}\s*£"),
        ("GBP", rf"\bGBP\s*{_SCAN_AMOUNT}"),
        ("GBP", rf"{_SCAN_AMOUNT}\s*GBP\b"),
    )
]

_RATING_RE = re.compile(
    r"(?<![\d.,/])(\d(?:[.,]\d{1,2})?)\s*(?:/\s*5|(?:out\s+of|de|sur|von|su|van)\s+5)(?![\d/])",
    re.IGNORECASE,
)

_AVAILABILITY_RE = re.compile(
    r"(?P<out>out\s+of\s+stock|sold\s+out|esgotado|sem\s+stock|agotado"
    r"|indispon[ií](?:vel|ble)|unavailable|not\s+available|rupture\s+de\s+stock"
    r"|nicht\s+verf[üu]gbar|ausverkauft)"
    r"|(?P<in>in\s+stock|em\s+stock|en\s+stock|auf\s+lager|available"
    r"|dispon[ií]vel|disponible)",
    re.IGNORECASE,
)

_TITLE_CLASS_RE = re.compile("title", re.IGNORECASE)
_DESCRIPTION_CLASS_RE = re.compile("description", re.IGNORECASE)

IN_STOCK = "in stock"
OUT_OF_STOCK = "out of stock"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _tag_text(tag: Optional[Tag]) -> Optional[str]:
    if tag is None:
        return None
    return collapse_whitespace(tag.get_text(separator=" ")) or None


def _string(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return clean_text(value) or None
    return None


def _retailer_selectors(host: str, table: dict[str, List[str]]) -> List[str]:
    labelled = "." + host + "."
    for label, selectors in table.items():
        if f".{label}." in labelled:
            return selectors
    return []


def _is_positive_price(raw: str) -> bool:
    value = parse_price(raw)
    return value is not None and Decimal(value) > 0


def _number_in(text: str) -> Optional[str]:
    match = _NUMBER_RE.search(text)
    return match.group(0) if match else None


def _currency_in(text: str) -> Optional[str]:
    match = _CURRENCY_SIGN_RE.search(text)
    return currency_from_symbol(match.group(0)) if match else None


def _img_src(element: Optional[Tag]) -> str:
    if element is None:
        return ""
    if element.name != "img":
        element = element.find("img")
        if element is None:
            return ""
    for attr in ("data-old-hires", "data-zoom-image", "data-src", "src"):
        value = element.get(attr)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _checked_image(value: str, page: ProductPage) -> Optional[str]:
    url = resolve_image_url(value, page.url)
    if url and has_image_extension(url):
        return url
    return None


def _offers(node: dict[str, Any]) -> List[dict[str, Any]]:
    offers = node.get("offers")
    if isinstance(offers, dict):
        return [offers]
    if isinstance(offers, list):
        return [offer for offer in offers if isinstance(offer, dict)]
    return []


def _present(value: Any) -> bool:
    return value is not None and value != "" and not isinstance(value, (dict, list, bool))


# ---------------------------------------------------------------------------
# Title
# ---------------------------------------------------------------------------

def title_from_structured_data(page: ProductPage) -> Optional[str]:
    node = page.product_node
    return _string(node.get("name")) if node else None


def title_from_og(page: ProductPage) -> Optional[str]:
    return collapse_whitespace(page.meta("og:title")) or None


def title_from_twitter(page: ProductPage) -> Optional[str]:
    return collapse_whitespace(page.meta("twitter:title")) or None


def title_from_title_tag(page: ProductPage) -> Optional[str]:
    return _tag_text(page.soup.title)


def title_from_h1(page: ProductPage) -> Optional[str]:
    return _tag_text(page.soup.find("h1"))


def title_from_class_heuristic(page: ProductPage) -> Optional[str]:
    for tag in page.soup.find_all(["span", "div", "h2", "p"], class_=_TITLE_CLASS_RE):
        text = _tag_text(tag)
        if text:
            return text
    return None


# ---------------------------------------------------------------------------
# Price + currency
# ---------------------------------------------------------------------------

def price_from_structured_data(page: ProductPage) -> Optional[PriceCandidate]:
    node = page.product_node
    if not node:
        return None
    for offer in _offers(node):
        currency = normalize_currency(offer.get("priceCurrency"))
        for key in ("price", "lowPrice"):
            if _present(offer.get(key)):
                return str(offer[key]), currency
        specs = offer.get("priceSpecification")
        for spec in specs if isinstance(specs, list) else [specs]:
            if isinstance(spec, dict) and _present(spec.get("price")):
                return str(spec["price"]), normalize_currency(spec.get("priceCurrency")) or currency
    return None


def price_from_meta(page: ProductPage) -> Optional[PriceCandidate]:
    amount = page.meta("product:price:amount", "og:price:amount")
    currency = normalize_currency(page.meta("product:price:currency", "og:price:currency"))

    if not amount:
        element = page.soup.find(attrs={"itemprop": "price"})
        if element is None:
            return None
        amount = element.get("content") or element.get_text(" ", strip=True)
        if not isinstance(amount, str) or not amount.strip():
            return None
        currency_element = page.soup.find(attrs={"itemprop": "priceCurrency"})
        if currency is None and currency_element is not None:
            currency = normalize_currency(
                currency_element.get("content") or currency_element.get_text(strip=True)
            )

    number = _number_in(amount)
    if number is None:
        return None
    return number, currency or _currency_in(amount)


def price_from_selectors(page: ProductPage) -> Optional[PriceCandidate]:
    selectors = _retailer_selectors(page.host, RETAILER_PRICE_SELECTORS) + GENERIC_PRICE_SELECTORS
    for selector in selectors:
        element = page.select_first(selector)
        if element is None:
            continue
        text = element.get("data-price") or element.get("content") or element.get_text(" ", strip=True)
        if not isinstance(text, str):
            continue
        number = _number_in(text)
        if number and _is_positive_price(number):
            return number, _currency_in(text)
    return None


def price_from_text_scan(page: ProductPage) -> Optional[PriceCandidate]:
    text = page.text
    for symbol, pattern in _PRICE_SCAN_PATTERNS:
        for match in pattern.finditer(text):
            amount = match.group(1)
            if _is_positive_price(amount):
                return amount, currency_from_symbol(symbol)
    return None


# ---------------------------------------------------------------------------
# Image
# ---------------------------------------------------------------------------

def _structured_image(value: Any) -> Optional[str]:
    if isinstance(value, list):
        return _structured_image(value[0]) if value else None
    if isinstance(value, dict):
        return _structured_image(value.get("url") or value.get("contentUrl"))
    return value.strip() if isinstance(value, str) and value.strip() else None


def image_from_structured_data(page: ProductPage) -> Optional[str]:
    node = page.product_node
    value = _structured_image(node.get("image")) if node else None
    if not value:
        return None
    return resolve_image_url(value, page.url) or None


def image_from_og(page: ProductPage) -> Optional[str]:
    value = page.meta("og:image", "og:image:url", "og:image:secure_url")
    return resolve_image_url(value, page.url) or None


def image_from_twitter(page: ProductPage) -> Optional[str]:
    value = page.meta("twitter:image", "twitter:image:src")
    return resolve_image_url(value, page.url) or None


def image_from_link_rel(page: ProductPage) -> Optional[str]:
    link = page.soup.find("link", rel="image_src")
    href = link.get("href") if link is not None else None
    if not isinstance(href, str):
        return None
    return resolve_image_url(href, page.url) or None


def image_from_selectors(page: ProductPage) -> Optional[str]:
    selectors = _retailer_selectors(page.host, RETAILER_IMAGE_SELECTORS) + GENERIC_IMAGE_SELECTORS
    for selector in selectors:
        url = _checked_image(_img_src(page.select_first(selector)), page)
        if url:
            return url
    return None


def image_from_img_heuristic(page: ProductPage) -> Optional[str]:
    for img in page.soup.find_all("img"):
        classes = img.get("class") or []
        hints = " ".join(classes) + " " + (img.get("alt") or "")
        if "product" not in hints.lower():
            continue
        url = _checked_image(_img_src(img), page)
        if url:
            return url
    return None


# ---------------------------------------------------------------------------
# Rating, availability, description
# ---------------------------------------------------------------------------

def rating_from_text(page: ProductPage) -> Optional[str]:
    """First ``N/5`` or ``N out of 5`` style rating within ``[0, 5]``."""
    for match in _RATING_RE.finditer(page.text):
        value = float(match.group(1).replace(",", "."))
        if 0 <= value <= 5:
            return f"{value:.1f}"
    return None


def availability_from_text(page: ProductPage) -> Optional[str]:
    """Classify the earliest stock keyword in the page text."""
    match = _AVAILABILITY_RE.search(page.text)
    if match is None:
        return None
    return OUT_OF_STOCK if match.group("out") else IN_STOCK


def description_from_meta(page: ProductPage) -> Optional[str]:
    return collapse_whitespace(page.meta("og:description", "description")) or None


def description_from_containers(page: ProductPage) -> Optional[str]:
    text = _tag_text(page.select_first("#productDescription", "[itemprop=description]"))
    if text:
        return text
    for tag in page.soup.find_all(["div", "section", "p"], class_=_DESCRIPTION_CLASS_RE):
        text = _tag_text(tag)
        if text:
            return text
    return None


def description_from_paragraphs(page: ProductPage) -> Optional[str]:
    for paragraph in page.soup.find_all("p"):
        text = _tag_text(paragraph)
        if not text or not 50 <= len(text) <= 300:
            continue
        lowered = text.lower()
        if any(keyword in lowered for keyword in DESCRIPTION_KEYWORDS):
            return text
    return None


# ---------------------------------------------------------------------------
# Priority tables
# ---------------------------------------------------------------------------
TITLE_STRATEGIES: List[Tuple[str, Strategy]] = [
    ("structured_data", title_from_structured_data),
    ("og:title", title_from_og),
    ("twitter:title", title_from_twitter),
    ("title_tag", title_from_title_tag),
    ("h1", title_from_h1),
    ("class_heuristic", title_from_class_heuristic),
]

PRICE_STRATEGIES: List[Tuple[str, Strategy]] = [
    ("structured_data", price_from_structured_data),
    ("meta", price_from_meta),
    ("retailer_selectors", price_from_selectors),
    ("text_scan", price_from_text_scan),
]

IMAGE_STRATEGIES: List[Tuple[str, Strategy]] = [
    ("structured_data", image_from_structured_data),
    ("og:image", image_from_og),
    ("twitter:image", image_from_twitter),
    ("link_image_src", image_from_link_rel),
    ("retailer_selectors", image_from_selectors),
    ("img_heuristic", image_from_img_heuristic),
]

RATING_STRATEGIES: List[Tuple[str, Strategy]] = [
    ("text_scan", rating_from_text),
]

AVAILABILITY_STRATEGIES: List[Tuple[str, Strategy]] = [
    ("text_scan", availability_from_text),
]

DESCRIPTION_STRATEGIES: List[Tuple[str, Strategy]] = [
    ("meta", description_from_meta),
    ("containers", description_from_containers),
    ("paragraphs", description_from_paragraphs),
]
