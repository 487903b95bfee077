"""Extraction coordinator: walks each field's strategy list and builds the result.

Every field except category is a priority cascade: strategies are tried in
the order of their table and the first non-empty, well-formed value wins.
Category is scored by :func:`~wishlist_backend.scraper.classifier.classify`
over the chosen title and description.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Callable, List, Optional, Tuple

from wishlist_backend.scraper import extractors
from wishlist_backend.scraper.classifier import classify
from wishlist_backend.scraper.models import (
    DEFAULT_CATEGORY,
    DEFAULT_CURRENCY,
    DEFAULT_PRICE,
    TITLE_PLACEHOLDER,
    UNKNOWN_AVAILABILITY,
    ExtractionCandidate,
    ScrapedProduct,
)
from wishlist_backend.scraper.normalize import format_price, parse_price, truncate
from wishlist_backend.scraper.page import ProductPage

logger = logging.getLogger(__name__)

Validator = Callable[[Any], Optional[Any]]

DESCRIPTION_LIMIT = 500


def _accept_price(candidate: Any) -> Optional[Tuple[str, Optional[str]]]:
    """Normalize a raw ``(amount, currency)`` pair; reject zero and garbage."""
    raw, currency = candidate
    amount = parse_price(raw)
    if amount is None or Decimal(amount) <= 0:
        return None
    return amount, currency


def first_candidate(
    page: ProductPage,
    field: str,
    strategies: List[Tuple[str, extractors.Strategy]],
    accept: Optional[Validator] = None,
) -> Optional[ExtractionCandidate]:
    """Return the first strategy result that is non-empty and passes *accept*."""
    for rank, (source, strategy) in enumerate(strategies):
        value = strategy(page)
        if value is None or value == "":
            continue
        if accept is not None:
            value = accept(value)
            if value is None:
                logger.debug("%s: rejected %s candidate on %s", field, source, page.url)
                continue
        return ExtractionCandidate(field=field, value=value, source=source, rank=rank)
    return None


def collect_candidates(page: ProductPage) -> dict[str, Optional[ExtractionCandidate]]:
    """Winning candidate per cascaded field, for inspection and debugging."""
    return {
        "title": first_candidate(page, "title", extractors.TITLE_STRATEGIES),
        "price": first_candidate(
            page, "price", extractors.PRICE_STRATEGIES, accept=_accept_price
        ),
        "image": first_candidate(page, "image", extractors.IMAGE_STRATEGIES),
        "rating": first_candidate(page, "rating", extractors.RATING_STRATEGIES),
        "availability": first_candidate(
            page, "availability", extractors.AVAILABILITY_STRATEGIES
        ),
        "description": first_candidate(
            page, "description", extractors.DESCRIPTION_STRATEGIES
        ),
    }


def extract_product(html: str, page_url: str) -> ScrapedProduct:
    """Build a :class:`ScrapedProduct` from sanitized *html*.

    Never raises for missing data: every field falls back to its default.
    """
    page = ProductPage(html, page_url)
    candidates = collect_candidates(page)

    title = candidates["title"].value if candidates["title"] else TITLE_PLACEHOLDER

    price, currency = DEFAULT_PRICE, DEFAULT_CURRENCY
    if candidates["price"] is not None:
        amount, detected_currency = candidates["price"].value
        price = format_price(amount)
        currency = detected_currency or DEFAULT_CURRENCY

    description = ""
    if candidates["description"] is not None:
        description = truncate(candidates["description"].value, DESCRIPTION_LIMIT)

    category = classify(f"{title if candidates['title'] else ''} {description}")

    product = ScrapedProduct(
        title=title,
        price=price,
        currency=currency,
        image=candidates["image"].value if candidates["image"] else "",
        description=description,
        category=category or DEFAULT_CATEGORY,
        rating=candidates["rating"].value if candidates["rating"] else None,
        availability=(
            candidates["availability"].value
            if candidates["availability"]
            else UNKNOWN_AVAILABILITY
        ),
    )

    logger.debug(
        "Extracted %s: %s",
        page_url,
        {field: c.source for field, c in candidates.items() if c is not None},
    )
    return product
