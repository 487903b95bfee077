"""Tests for the parsed page view and the individual field strategies.

Every test builds a :class:`ProductPage` from an inline HTML snippet and
calls one strategy directly; the priority walk across strategies is covered
in ``test_coordinator.py``.
"""

from __future__ import annotations

import json
from typing import Any

import pytest

from wishlist_backend.scraper import extractors
from wishlist_backend.scraper.page import ProductPage

SHOP_URL = "https://www.example-shop.com/p/mug"


def _page(body: str, url: str = SHOP_URL, head: str = "") -> ProductPage:
    return ProductPage(f"<html><head>{head}</head><body>{body}</body></html>", url)


def _json_ld(data: Any) -> str:
    return f'<script type="application/ld+json">{json.dumps(data)}</script>'


# ---------------------------------------------------------------------------
# ProductPage
# ---------------------------------------------------------------------------

class TestProductPage:
    def test_structured_data_flattens_lists_and_graph(self) -> None:
        head = _json_ld([{"@type": "WebSite"}]) + _json_ld(
            {"@context": "https://schema.org", "@graph": [{"@type": "Organization"}, {"@type": "Product", "name": "Mug"}]}
        )
        page = _page("", head=head)
        types = [node.get("@type") for node in page.structured_data]
        assert types == ["WebSite", None, "Organization", "Product"]
        assert page.product_node == {"@type": "Product", "name": "Mug"}

    def test_malformed_json_ld_is_skipped(self) -> None:
        head = '<script type="application/ld+json">{"@type": "Product",</script>' + _json_ld(
            {"@type": "Product", "name": "Valid"}
        )
        page = _page("", head=head)
        assert page.product_node == {"@type": "Product", "name": "Valid"}

    def test_product_type_list(self) -> None:
        page = _page("", head=_json_ld({"@type": ["Thing", "Product"], "name": "Lamp"}))
        assert page.product_node is not None

    def test_no_product_node(self) -> None:
        page = _page("", head=_json_ld({"@type": "BreadcrumbList"}))
        assert page.product_node is None

    def test_meta_matches_property_name_and_itemprop(self) -> None:
        head = (
            '<meta property="OG:Title" content=" Upper ">'
            '<meta name="description" content="Desc">'
            '<meta itemprop="brand" content="Acme">'
        )
        page = _page("", head=head)
        assert page.meta("og:title") == "Upper"
        assert page.meta("description") == "Desc"
        assert page.meta("brand") == "Acme"
        assert page.meta("missing", "description") == "Desc"
        assert page.meta("missing") == ""

    def test_text_excludes_scripts_and_styles(self) -> None:
        page = _page("<style>.a{}</style><p>Hello</p>", head=_json_ld({"price": "1.00"}))
        assert page.text == "Hello"

    def test_host(self) -> None:
        assert ProductPage("", "https://WWW.Amazon.PT/dp/1").host == "www.amazon.pt"


# ---------------------------------------------------------------------------
# Title
# ---------------------------------------------------------------------------

class TestTitleStrategies:
    def test_structured_data_name(self) -> None:
        page = _page("", head=_json_ld({"@type": "Product", "name": "Caf&eacute; Mug"}))
        assert extractors.title_from_structured_data(page) == "Café Mug"

    def test_og_and_twitter(self) -> None:
        head = '<meta property="og:title" content="OG Mug"><meta name="twitter:title" content="Tw Mug">'
        page = _page("", head=head)
        assert extractors.title_from_og(page) == "OG Mug"
        assert extractors.title_from_twitter(page) == "Tw Mug"

    def test_title_tag_decodes_entities(self) -> None:
        page = _page("", head="<title>Caf&eacute; &amp; Co\n  Mug</title>")
        assert extractors.title_from_title_tag(page) == "Café & Co Mug"

    def test_meta_content_is_decoded_once(self) -> None:
        head = (
            '<meta property="og:title" content="Use &amp;lt;b&amp;gt; tags">'
            '<meta name="twitter:title" content="Fish &amp;amp; Chips">'
        )
        page = _page("", head=head)
        assert extractors.title_from_og(page) == "Use &lt;b&gt; tags"
        assert extractors.title_from_twitter(page) == "Fish &amp; Chips"

    def test_heading_text_is_decoded_once(self) -> None:
        page = _page("<h1>5 &amp;lt; 6\n  mugs</h1>")
        assert extractors.title_from_h1(page) == "5 &lt; 6 mugs"

    def test_h1(self) -> None:
        page = _page("<h1>  Big <b>Mug</b> </h1>")
        assert extractors.title_from_h1(page) == "Big Mug"

    def test_class_heuristic(self) -> None:
        page = _page('<div class="header"></div><span class="product-title">Travel Mug</span>')
        assert extractors.title_from_class_heuristic(page) == "Travel Mug"

    def test_missing_title(self) -> None:
        page = _page("<p>nothing</p>")
        for _, strategy in extractors.TITLE_STRATEGIES:
            assert strategy(page) is None


# ---------------------------------------------------------------------------
# Price
# ---------------------------------------------------------------------------

class TestPriceFromStructuredData:
    def test_offer_list(self) -> None:
        node = {"@type": "Product", "offers": [{"price": "19.99", "priceCurrency": "eur"}]}
        assert extractors.price_from_structured_data(_page("", head=_json_ld(node))) == ("19.99", "EUR")

    def test_numeric_price(self) -> None:
        node = {"@type": "Product", "offers": {"price": 30, "priceCurrency": "USD"}}
        assert extractors.price_from_structured_data(_page("", head=_json_ld(node))) == ("30", "USD")

    def test_aggregate_offer_low_price(self) -> None:
        node = {"@type": "Product", "offers": {"@type": "AggregateOffer", "lowPrice": "9.99", "priceCurrency": "GBP"}}
        assert extractors.price_from_structured_data(_page("", head=_json_ld(node))) == ("9.99", "GBP")

    def test_price_specification(self) -> None:
        node = {
            "@type": "Product",
            "offers": {"priceSpecification": [{"price": 12.5, "priceCurrency": "EUR"}]},
        }
        assert extractors.price_from_structured_data(_page("", head=_json_ld(node))) == ("12.5", "EUR")

    def test_no_offers(self) -> None:
        node = {"@type": "Product", "name": "Mug"}
        assert extractors.price_from_structured_data(_page("", head=_json_ld(node))) is None


class TestPriceFromMeta:
    def test_open_graph_product_price(self) -> None:
        head = (
            '<meta property="product:price:amount" content="19,99">'
            '<meta property="product:price:currency" content="EUR">'
        )
        assert extractors.price_from_meta(_page("", head=head)) == ("19,99", "EUR")

    def test_itemprop_price_and_currency(self) -> None:
        body = '<span itemprop="price" content="1234.50">1.234,50</span><meta itemprop="priceCurrency" content="USD">'
        assert extractors.price_from_meta(_page(body)) == ("1234.50", "USD")

    def test_itemprop_text_with_symbol(self) -> None:
        body = '<span itemprop="price">£ 49.99</span>'
        assert extractors.price_from_meta(_page(body)) == ("49.99", "GBP")

    def test_absent(self) -> None:
        assert extractors.price_from_meta(_page("<p>Mug</p>")) is None


class TestPriceFromSelectors:
    def test_amazon_selector(self) -> None:
        body = '<span class="a-price"><span class="a-offscreen">1.299,00 €</span></span>'
        page = _page(body, url="https://www.amazon.es/dp/B0TEST")
        assert extractors.price_from_selectors(page) == ("1.299,00", "EUR")

    def test_generic_selector(self) -> None:
        page = _page('<div class="price">$ 15.00</div>')
        assert extractors.price_from_selectors(page) == ("15.00", "USD")

    def test_data_price_attribute(self) -> None:
        page = _page('<div data-price="24.90">Buy now</div>')
        assert extractors.price_from_selectors(page) == ("24.90", None)

    def test_zero_price_is_skipped(self) -> None:
        page = _page('<div class="product-price">0,00 €</div><div class="price">24,90 €</div>')
        assert extractors.price_from_selectors(page) == ("24,90", "EUR")


class TestPriceFromTextScan:
    def test_pound_price(self) -> None:
        assert extractors.price_from_text_scan(_page("<p>Only £49.99 today</p>")) == ("49.99", "GBP")

    def test_european_format_after_amount(self) -> None:
        page = _page("<p>Preço: 1.234,56 €</p>")
        assert extractors.price_from_text_scan(page) == ("1.234,56", "EUR")

    def test_euro_patterns_come_first(self) -> None:
        page = _page("<p>£10.00 or 20,00 €</p>")
        assert extractors.price_from_text_scan(page) == ("20,00", "EUR")

    def test_zero_amount_is_skipped(self) -> None:
        page = _page("<p>€0.00 shipping, €12.50 item</p>")
        assert extractors.price_from_text_scan(page) == ("12.50", "EUR")

    def test_currency_code(self) -> None:
        page = _page("<p>Now USD 99.95</p>")
        assert extractors.price_from_text_scan(page) == ("99.95", "USD")

    def test_no_amount(self) -> None:
        assert extractors.price_from_text_scan(_page("<p>Contact us for a quote</p>")) is None


# ---------------------------------------------------------------------------
# Image
# ---------------------------------------------------------------------------

class TestImageStrategies:
    def test_structured_data_list(self) -> None:
        node = {"@type": "Product", "image": ["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"]}
        page = _page("", head=_json_ld(node))
        assert extractors.image_from_structured_data(page) == "https://cdn.example.com/a.jpg"

    def test_structured_data_image_object(self) -> None:
        node = {"@type": "Product", "image": {"@type": "ImageObject", "url": "/img/p.png"}}
        page = _page("", head=_json_ld(node))
        assert extractors.image_from_structured_data(page) == "https://www.example-shop.com/img/p.png"

    def test_og_relative_and_protocol_relative(self) -> None:
        page = _page("", head='<meta property="og:image" content="/img/a.png">')
        assert extractors.image_from_og(page) == "https://www.example-shop.com/img/a.png"
        page = _page("", head='<meta property="og:image" content="//cdn.example.com/a.jpg">')
        assert extractors.image_from_og(page) == "https://cdn.example.com/a.jpg"

    def test_twitter_image(self) -> None:
        page = _page("", head='<meta name="twitter:image" content="https://cdn.example.com/t.jpg">')
        assert extractors.image_from_twitter(page) == "https://cdn.example.com/t.jpg"

    def test_link_image_src(self) -> None:
        page = _page("", head='<link rel="image_src" href="//cdn.example.com/i.jpg">')
        assert extractors.image_from_link_rel(page) == "https://cdn.example.com/i.jpg"

    def test_amazon_landing_image(self) -> None:
        body = '<img id="landingImage" data-old-hires="https://m.media-amazon.com/images/I/x.jpg" src="data:image/gif;base64,R0">'
        page = _page(body, url="https://www.amazon.pt/dp/B0TEST")
        assert extractors.image_from_selectors(page) == "https://m.media-amazon.com/images/I/x.jpg"

    def test_generic_gallery_selector(self) -> None:
        page = _page('<div class="product-gallery"><img data-src="/g/1.webp"></div>')
        assert extractors.image_from_selectors(page) == "https://www.example-shop.com/g/1.webp"

    def test_img_heuristic(self) -> None:
        body = '<img class="tracking" src="/t.gif"><img class="product-photo" src="/p.webp">'
        assert extractors.image_from_img_heuristic(_page(body)) == "https://www.example-shop.com/p.webp"

    def test_img_heuristic_requires_image_extension(self) -> None:
        body = '<img class="product-photo" src="/render.php?id=1">'
        assert extractors.image_from_img_heuristic(_page(body)) is None

    def test_data_uri_is_rejected(self) -> None:
        page = _page("", head='<meta property="og:image" content="data:image/png;base64,AAAA">')
        assert extractors.image_from_og(page) is None


# ---------------------------------------------------------------------------
# Rating, availability, description
# ---------------------------------------------------------------------------

class TestRating:
    def test_portuguese_stars(self) -> None:
        assert extractors.rating_from_text(_page("<p>4,5 de 5 estrelas</p>")) == "4.5"

    def test_out_of_five(self) -> None:
        assert extractors.rating_from_text(_page("<p>Rated 4.7 out of 5</p>")) == "4.7"

    def test_slash_notation(self) -> None:
        assert extractors.rating_from_text(_page("<span>4/5</span>")) == "4.0"

    def test_out_of_range_is_ignored(self) -> None:
        assert extractors.rating_from_text(_page("<p>Rated 9/5 by nobody</p>")) is None

    def test_page_counters_are_not_ratings(self) -> None:
        assert extractors.rating_from_text(_page("<p>Page 1/50</p>")) is None

    @pytest.mark.parametrize("text", ["Delivered 1/5/2024", "Shipped on 2024/1/5", "Ordered 3/5/24"])
    def test_dates_are_not_ratings(self, text: str) -> None:
        assert extractors.rating_from_text(_page(f"<p>{text}</p>")) is None

    def test_rating_after_a_date_is_still_found(self) -> None:
        page = _page("<p>Reviewed 1/5/2024: 4,5 de 5 estrelas</p>")
        assert extractors.rating_from_text(page) == "4.5"


class TestAvailability:
    def test_in_stock_variants(self) -> None:
        for text in ("In stock", "Em stock", "Disponível para entrega"):
            assert extractors.availability_from_text(_page(f"<p>{text}</p>")) == "in stock"

    def test_out_of_stock_variants(self) -> None:
        for text in ("Produto esgotado", "Currently unavailable", "SOLD OUT"):
            assert extractors.availability_from_text(_page(f"<p>{text}</p>")) == "out of stock"

    def test_earliest_keyword_wins(self) -> None:
        page = _page("<p>Not available in your area, but in stock elsewhere</p>")
        assert extractors.availability_from_text(page) == "out of stock"

    def test_no_keyword(self) -> None:
        assert extractors.availability_from_text(_page("<p>Nice mug</p>")) is None


class TestDescription:
    def test_og_description_before_meta_description(self) -> None:
        head = '<meta name="description" content="Plain"><meta property="og:description" content="Rich">'
        assert extractors.description_from_meta(_page("", head=head)) == "Rich"

    def test_meta_description(self) -> None:
        head = '<meta name="description" content="Plain &amp; simple">'
        assert extractors.description_from_meta(_page("", head=head)) == "Plain & simple"

    def test_meta_description_keeps_literal_entity_text(self) -> None:
        head = '<meta name="description" content="Escape &amp;amp; as &amp;amp;amp;">'
        assert extractors.description_from_meta(_page("", head=head)) == "Escape &amp; as &amp;amp;"

    def test_product_description_container(self) -> None:
        body = '<div id="productDescription"><p>Stoneware mug.</p></div>'
        assert extractors.description_from_containers(_page(body)) == "Stoneware mug."

    def test_description_class(self) -> None:
        body = '<section class="product-description">Holds 350ml.</section>'
        assert extractors.description_from_containers(_page(body)) == "Holds 350ml."

    def test_keyword_paragraph(self) -> None:
        body = (
            "<p>Free shipping</p>"
            "<p>Made from recycled material, this mug keeps drinks warm for hours.</p>"
        )
        assert extractors.description_from_paragraphs(_page(body)) == (
            "Made from recycled material, this mug keeps drinks warm for hours."
        )
