"""Data models for the product enrichment pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional

TITLE_PLACEHOLDER = "Title not found"
ERROR_TITLE = "Could not fetch title"
DEFAULT_PRICE = "0.00"
DEFAULT_CURRENCY = "EUR"
DEFAULT_CATEGORY = "Other"
UNKNOWN_AVAILABILITY = "unknown"


@dataclass(frozen=True)
class ValidatedUrl:
    """An absolute http(s) URL whose host passed the trust policy."""

    url: str
    scheme: str
    host: str


@dataclass
class FetchedDocument:
    """The (possibly truncated) HTML body of a single fetch."""

    url: str
    html: str
    content_type: str
    status_code: int
    truncated: bool = False


@dataclass(frozen=True)
class ExtractionCandidate:
    """One strategy's winning value for a field.

    ``rank`` is the position of ``source`` in the field's priority list, so
    lower is stronger.
    """

    field: str
    value: Any
    source: str
    rank: int


@dataclass
class ScrapedProduct:
    """Normalized product metadata returned to callers."""

    title: str = TITLE_PLACEHOLDER
    price: str = DEFAULT_PRICE
    currency: str = DEFAULT_CURRENCY
    image: str = ""
    description: Optional[str] = None
    category: Optional[str] = None
    rating: Optional[str] = None
    availability: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-ready dict, dropping unset optional fields."""
        return {key: value for key, value in asdict(self).items() if value is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScrapedProduct:
        known = {key: data[key] for key in cls.__dataclass_fields__ if key in data}
        return cls(**known)

    @classmethod
    def degraded(cls, message: str) -> ScrapedProduct:
        """Placeholder result carrying *message* in ``error``."""
        return cls(title=ERROR_TITLE, error=message)
