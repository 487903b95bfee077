"""Parsed view of a sanitized product page shared by all extractors."""

from __future__ import annotations

import json
import logging
from functools import cached_property
from typing import Any, Iterator, List, Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)


def _iter_json_ld_nodes(data: Any) -> Iterator[dict[str, Any]]:
    """Yield every dict node in a JSON-LD payload, flattening lists and ``@graph``."""
    if isinstance(data, list):
        for item in data:
            yield from _iter_json_ld_nodes(item)
    elif isinstance(data, dict):
        yield data
        if "@graph" in data:
            yield from _iter_json_ld_nodes(data["@graph"])


def _is_product(node: dict[str, Any]) -> bool:
    node_type = node.get("@type", "")
    types = node_type if isinstance(node_type, list) else [node_type]
    return any(isinstance(t, str) and t.lower() in ("product", "productgroup") for t in types)


class ProductPage:
    """A sanitized HTML document plus the URL it came from.

    Parsing is lazy: the soup, the visible text and the JSON-LD nodes are
    each built on first access and reused by every strategy.
    """

    def __init__(self, html: str, url: str) -> None:
        self.html = html
        self.url = url

    @cached_property
    def soup(self) -> BeautifulSoup:
        return BeautifulSoup(self.html, "html.parser")

    @cached_property
    def host(self) -> str:
        return (urlsplit(self.url).hostname or "").lower()

    @cached_property
    def text(self) -> str:
        """Visible text of the page, JSON-LD and style blocks excluded."""
        soup = BeautifulSoup(self.html, "html.parser")
        for tag in soup(["script", "style", "noscript", "template"]):
            tag.decompose()
        return soup.get_text(separator=" ", strip=True)

    @cached_property
    def structured_data(self) -> List[dict[str, Any]]:
        """All JSON-LD nodes found on the page, in document order."""
        nodes: List[dict[str, Any]] = []
        for script in self.soup.find_all("script", type="application/ld+json"):
            payload = script.string or script.get_text()
            if not payload or not payload.strip():
                continue
            try:
                data = json.loads(payload, strict=False)
            except json.JSONDecodeError as exc:
                logger.debug("Skipping malformed JSON-LD on %s: %s", self.url, exc)
                continue
            nodes.extend(_iter_json_ld_nodes(data))
        return nodes

    @cached_property
    def product_node(self) -> Optional[dict[str, Any]]:
        """The first JSON-LD ``Product`` node, if any."""
        for node in self.structured_data:
            if _is_product(node):
                return node
        return None

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------
    def meta(self, *keys: str) -> str:
        """Return the ``content`` of the first ``<meta>`` matching any of *keys*.

        A key matches the ``property``, ``name`` or ``itemprop`` attribute,
        case-insensitively.  Keys are tried in the order given.
        """
        metas = self.soup.find_all("meta")
        for key in keys:
            wanted = key.lower()
            for meta in metas:
                for attr in ("property", "name", "itemprop"):
                    value = meta.get(attr)
                    if isinstance(value, str) and value.lower() == wanted:
                        content = meta.get("content")
                        if isinstance(content, str) and content.strip():
                            return content.strip()
        return ""

    def select_first(self, *selectors: str) -> Optional[Tag]:
        """Return the first element matched by any of *selectors*, tried in order."""
        for selector in selectors:
            element = self.soup.select_one(selector)
            if element is not None:
                return element
        return None
