"""Product enrichment endpoints.

Routes
------
POST /scrape            Body: {"url": "...", "strict": false}   → scrape_product
POST /scrape/validate   Body: {"url": "..."}                    → validate_url
"""

from __future__ import annotations

import math
from typing import Any, Optional

from fastapi import APIRouter, Header, HTTPException, Request
from pydantic import BaseModel

from wishlist_backend.ratelimit import RateLimitExceeded
from wishlist_backend.scraper.canonical import canonicalize_url
from wishlist_backend.scraper.errors import UrlValidationError
from wishlist_backend.scraper.service import scrape_product
from wishlist_backend.scraper.validator import validate_url

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ScrapeRequest(BaseModel):
    url: str
    strict: bool = False


class ValidateRequest(BaseModel):
    url: str


class ScrapeResponse(BaseModel):
    title: str
    price: str
    currency: str
    image: str
    description: Optional[str] = None
    category: Optional[str] = None
    rating: Optional[str] = None
    availability: Optional[str] = None
    error: Optional[str] = None


class ValidateResponse(BaseModel):
    url: str
    host: str
    canonical_url: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _caller_key(request: Request, user_id: Optional[str]) -> str:
    """Identify the caller for rate limiting: user id header, else client address."""
    if user_id:
        return f"user:{user_id}"
    host = request.client.host if request.client else "anonymous"
    return f"ip:{host}"


def _rejection(exc: UrlValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"error": type(exc).__name__, "message": str(exc)},
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", response_model=ScrapeResponse, response_model_exclude_none=True)
def scrape_endpoint(
    body: ScrapeRequest,
    request: Request,
    x_user_id: Optional[str] = Header(default=None),
) -> dict[str, Any]:
    """Fetch a product page and return its normalized metadata.

    Fetch failures still answer 200 with placeholder values and an ``error``
    field.  URL rejections answer 422 only when ``strict`` is set.
    """
    limiter = request.app.state.rate_limiter
    try:
        limiter.check(_caller_key(request, x_user_id))
    except RateLimitExceeded as exc:
        raise HTTPException(
            status_code=429,
            detail=str(exc),
            headers={"Retry-After": str(math.ceil(exc.retry_after))},
        ) from exc

    try:
        product = scrape_product(body.url, strict=body.strict, conn=request.app.state.db)
    except UrlValidationError as exc:
        raise _rejection(exc) from exc
    return product.to_dict()


@router.post("/validate", response_model=ValidateResponse)
def validate_endpoint(body: ValidateRequest) -> dict[str, Any]:
    """Apply the URL trust policy without fetching anything."""
    try:
        target = validate_url(body.url)
    except UrlValidationError as exc:
        raise _rejection(exc) from exc
    return {
        "url": target.url,
        "host": target.host,
        "canonical_url": canonicalize_url(target.url),
    }
