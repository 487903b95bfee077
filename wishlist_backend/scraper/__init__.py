"""Scraper package: product page validation, fetch and metadata extraction.

The request boundary lives in :mod:`wishlist_backend.scraper.service`; it is
not re-exported here because it depends on the DB layer.
"""

from wishlist_backend.scraper.classifier import classify
from wishlist_backend.scraper.coordinator import extract_product
from wishlist_backend.scraper.fetcher import fetch_document
from wishlist_backend.scraper.models import ScrapedProduct, ValidatedUrl
from wishlist_backend.scraper.sanitizer import sanitize_html
from wishlist_backend.scraper.validator import validate_url

__all__ = [
    "validate_url",
    "fetch_document",
    "sanitize_html",
    "extract_product",
    "classify",
    "ScrapedProduct",
    "ValidatedUrl",
]
