"""Tests for the extraction coordinator: priority cascades and defaults."""

from __future__ import annotations

import json
from typing import Any

from wishlist_backend.scraper.coordinator import collect_candidates, extract_product, first_candidate
from wishlist_backend.scraper.page import ProductPage

URL = "https://www.example-shop.com/p/item"


def _html(head: str = "", body: str = "") -> str:
    return f"<html><head>{head}</head><body>{body}</body></html>"


def _json_ld(data: Any) -> str:
    return f'<script type="application/ld+json">{json.dumps(data)}</script>'


class TestExtractProduct:
    def test_structured_data_beats_text(self) -> None:
        node = {
            "@type": "Product",
            "name": "Ceramic Mug",
            "image": "https://x.com/a.jpg",
            "offers": {"price": "29.90", "priceCurrency": "EUR"},
        }
        product = extract_product(_html(_json_ld(node), "<p>$ 99.99</p>"), URL)
        assert product.title == "Ceramic Mug"
        assert product.price == "29.90"
        assert product.currency == "EUR"
        assert product.image == "https://x.com/a.jpg"
        assert product.category == "Home"
        assert product.error is None

    def test_no_signals_gives_defaults(self) -> None:
        product = extract_product(_html(body="<div></div>"), URL)
        assert product.title == "Title not found"
        assert product.price == "0.00"
        assert product.currency == "EUR"
        assert product.image == ""
        assert product.description == ""
        assert product.category == "Other"
        assert product.availability == "unknown"
        assert product.rating is None
        assert set(product.to_dict()) == {
            "title", "price", "currency", "image", "description", "category", "availability",
        }

    def test_pound_price_in_text(self) -> None:
        product = extract_product(_html("<title>Gift</title>", "<p>Now only £49.99</p>"), URL)
        assert product.price == "49.99"
        assert product.currency == "GBP"

    def test_malformed_structured_price_falls_through_to_meta(self) -> None:
        head = _json_ld({"@type": "Product", "offers": {"price": "abc"}}) + (
            '<meta property="product:price:amount" content="12,50">'
            '<meta property="product:price:currency" content="EUR">'
        )
        page = ProductPage(_html(head), URL)
        candidate = collect_candidates(page)["price"]
        assert candidate is not None
        assert candidate.source == "meta"
        assert candidate.rank == 1
        assert extract_product(_html(head), URL).price == "12.50"

    def test_overlong_structured_price_falls_through_to_meta(self) -> None:
        head = _json_ld(
            {"@type": "Product", "offers": {"price": "1234567890123456789012345678901", "priceCurrency": "EUR"}}
        ) + '<meta property="og:price:amount" content="12.50">'
        assert extract_product(_html(head), URL).price == "12.50"

    def test_zero_structured_price_falls_through(self) -> None:
        head = _json_ld({"@type": "Product", "offers": {"price": "0", "priceCurrency": "USD"}})
        product = extract_product(_html(head, "<p>Price: 15,00 €</p>"), URL)
        assert product.price == "15.00"
        assert product.currency == "EUR"

    def test_price_always_has_two_decimals(self) -> None:
        head = '<meta property="product:price:amount" content="1,234,567"><meta property="product:price:currency" content="USD">'
        product = extract_product(_html(head), URL)
        assert product.price == "1234567.00"
        assert product.currency == "USD"

        head = _json_ld({"@type": "Product", "offers": {"price": 30}})
        assert extract_product(_html(head), URL).price == "30.00"

    def test_missing_currency_defaults_to_eur(self) -> None:
        product = extract_product(_html(body='<div data-price="24.90"></div>'), URL)
        assert product.price == "24.90"
        assert product.currency == "EUR"

    def test_category_from_title(self) -> None:
        head = '<meta property="og:title" content="Apple iPhone 15 smartphone">'
        assert extract_product(_html(head), URL).category == "Electronics"

    def test_description_is_truncated(self) -> None:
        head = f'<meta name="description" content="{"a" * 800}">'
        description = extract_product(_html(head), URL).description
        assert description is not None
        assert len(description) == 500
        assert description.endswith("...")

    def test_rating_and_availability(self) -> None:
        body = "<p>4,5 de 5 estrelas</p><p>Em stock</p>"
        product = extract_product(_html("<title>Mug</title>", body), URL)
        assert product.rating == "4.5"
        assert product.availability == "in stock"

    def test_truncated_document_does_not_raise(self) -> None:
        html = '<html><head><title>Mug</title></head><body><div class="price">€ 12,'
        product = extract_product(html, URL)
        assert product.title == "Mug"

    def test_empty_document(self) -> None:
        product = extract_product("", URL)
        assert product.title == "Title not found"
        assert product.price == "0.00"


class TestCandidates:
    def test_source_and_rank_are_reported(self) -> None:
        head = '<meta property="og:title" content="OG Mug"><title>Tag Mug</title>'
        candidates = collect_candidates(ProductPage(_html(head), URL))
        title = candidates["title"]
        assert title is not None
        assert (title.value, title.source, title.rank) == ("OG Mug", "og:title", 1)
        assert candidates["image"] is None

    def test_first_candidate_skips_empty_and_rejected(self) -> None:
        page = ProductPage(_html(), URL)
        strategies = [
            ("empty", lambda p: ""),
            ("none", lambda p: None),
            ("rejected", lambda p: "bad"),
            ("good", lambda p: "ok"),
        ]
        candidate = first_candidate(
            page, "title", strategies, accept=lambda v: None if v == "bad" else v
        )
        assert candidate is not None
        assert (candidate.value, candidate.source, candidate.rank) == ("ok", "good", 3)

    def test_first_candidate_none_when_all_fail(self) -> None:
        page = ProductPage(_html(), URL)
        assert first_candidate(page, "title", [("none", lambda p: None)]) is None
