"""Request boundary for product enrichment.

``scrape_product`` runs validate -> (cache) -> fetch -> sanitize -> extract
and always hands back a :class:`ScrapedProduct`.  Validation failures are
surfaced as exceptions only in strict mode; fetch failures become a
degraded result carrying ``error``.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Callable, Optional

from wishlist_backend.config import settings
from wishlist_backend.db.cache import get_cached_product, store_product
from wishlist_backend.scraper.canonical import canonicalize_url
from wishlist_backend.scraper.coordinator import extract_product
from wishlist_backend.scraper.errors import ScraperError, UrlValidationError
from wishlist_backend.scraper.fetcher import fetch_document
from wishlist_backend.scraper.models import FetchedDocument, ScrapedProduct, ValidatedUrl
from wishlist_backend.scraper.sanitizer import sanitize_html
from wishlist_backend.scraper.validator import validate_url

logger = logging.getLogger(__name__)

Fetcher = Callable[[ValidatedUrl], FetchedDocument]


def enrich_document(document: FetchedDocument) -> ScrapedProduct:
    """Sanitize a fetched page and extract its product metadata."""
    return extract_product(sanitize_html(document.html), document.url)


def scrape_product(
    raw_url: str,
    *,
    strict: bool = False,
    conn: Optional[sqlite3.Connection] = None,
    ttl_hours: Optional[float] = None,
    fetch: Fetcher = fetch_document,
) -> ScrapedProduct:
    """Validate, fetch and enrich *raw_url*.

    Args:
        raw_url: URL as typed or shared by the user.
        strict: Re-raise URL validation errors instead of degrading.
        conn: Open DB connection; enables the scrape cache when given.
        ttl_hours: Cache freshness window.  Defaults to ``settings.cache_ttl_hours``.
        fetch: Fetch function, replaceable in tests.

    Raises:
        UrlValidationError: Only when *strict* is true.
    """
    try:
        target = validate_url(raw_url)
    except UrlValidationError as exc:
        if strict:
            raise
        logger.info("Rejected %r: %s", raw_url, exc)
        return ScrapedProduct.degraded(str(exc))

    cache_key = canonicalize_url(target.url)
    ttl = settings.cache_ttl_hours if ttl_hours is None else ttl_hours

    if conn is not None:
        cached = get_cached_product(conn, cache_key, ttl)
        if cached is not None:
            logger.info("Cache hit for %s", cache_key)
            return cached

    try:
        document = fetch(target)
    except ScraperError as exc:
        logger.warning("Fetching %s failed: %s", target.url, exc)
        return ScrapedProduct.degraded(str(exc))

    try:
        product = enrich_document(document)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Extraction failed for %s", target.url)
        return ScrapedProduct.degraded(f"Extraction failed: {exc}")

    if conn is not None:
        store_product(conn, cache_key, product)
    return product
