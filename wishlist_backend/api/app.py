"""FastAPI application factory.

Lifespan
--------
On startup the app configures logging, opens a single SQLite connection for
the scrape cache (shared across all requests via ``request.app.state.db``)
and creates the per-process rate limiter (``request.app.state.rate_limiter``).
On shutdown it closes the connection cleanly.

Routers
-------
    /scrape   product enrichment and URL validation
    /health   liveness probe
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wishlist_backend.config import settings
from wishlist_backend.db import get_connection, init_db
from wishlist_backend.logging_setup import configure_logging
from wishlist_backend.ratelimit import SlidingWindowRateLimiter

from wishlist_backend.api.routers import scrape as scrape_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the DB and build the rate limiter on startup; close the DB on shutdown."""
    configure_logging()
    conn = get_connection()
    init_db(conn)
    app.state.db = conn
    app.state.rate_limiter = SlidingWindowRateLimiter(
        max_calls=settings.rate_limit_max_calls,
        window=settings.rate_limit_window,
    )
    try:
        yield
    finally:
        conn.close()


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="Wishlist Backend API",
        description=(
            "Product enrichment for the wishlist app: validates shared product "
            "links against the store trust policy and extracts title, price, "
            "currency, image, rating, availability and category."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Allow the mobile web build on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(scrape_router.router, prefix="/scrape", tags=["scrape"])

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


# Module-level instance used by uvicorn:
#   uvicorn wishlist_backend.api.app:app --reload
app = create_app()
