"""Scrape cache: ``canonical_url -> ScrapedProduct`` with a freshness window.

Only successful results are stored; callers never cache a product that
carries an ``error``.
"""

from __future__ import annotations

import json
import sqlite3
from time import time
from typing import Optional

from wishlist_backend.scraper.models import ScrapedProduct


def _cutoff(ttl_hours: float, now: Optional[float] = None) -> int:
    return int((now if now is not None else time()) - ttl_hours * 3600)


def get_cached_product(
    conn: sqlite3.Connection,
    canonical_url: str,
    ttl_hours: float,
    now: Optional[float] = None,
) -> Optional[ScrapedProduct]:
    """Return the cached product for *canonical_url* if fresher than *ttl_hours*."""
    row = conn.execute(
        "SELECT payload FROM scrape_cache WHERE canonical_url = ? AND fetched_at >= ?",
        (canonical_url, _cutoff(ttl_hours, now)),
    ).fetchone()
    if row is None:
        return None
    return ScrapedProduct.from_dict(json.loads(row["payload"]))


def store_product(
    conn: sqlite3.Connection,
    canonical_url: str,
    product: ScrapedProduct,
    now: Optional[float] = None,
) -> None:
    """Insert or refresh the cache entry for *canonical_url*.

    Raises:
        ValueError: If *product* is a degraded result.
    """
    if product.error:
        raise ValueError("Degraded results are not cacheable")
    fetched_at = int(now if now is not None else time())
    with conn:
        conn.execute(
            """
            INSERT INTO scrape_cache (canonical_url, payload, fetched_at)
            VALUES (?, ?, ?)
            ON CONFLICT(canonical_url) DO UPDATE SET
                payload = excluded.payload,
                fetched_at = excluded.fetched_at
            """,
            (canonical_url, json.dumps(product.to_dict()), fetched_at),
        )


def purge_expired(
    conn: sqlite3.Connection, ttl_hours: float, now: Optional[float] = None
) -> int:
    """Delete entries older than *ttl_hours*.  Returns the number removed."""
    with conn:
        cursor = conn.execute(
            "DELETE FROM scrape_cache WHERE fetched_at < ?", (_cutoff(ttl_hours, now),)
        )
    return cursor.rowcount


def clear_cache(conn: sqlite3.Connection) -> int:
    """Delete every cache entry.  Returns the number removed."""
    with conn:
        cursor = conn.execute("DELETE FROM scrape_cache")
    return cursor.rowcount


def count_entries(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT COUNT(*) FROM scrape_cache").fetchone()
    return row[0] if row else 0
