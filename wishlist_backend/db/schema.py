"""Database schema for the scrape cache.

``init_db(conn)`` is idempotent and safe to call on an existing database.
"""

from __future__ import annotations

import sqlite3

SCHEMA = """
CREATE TABLE IF NOT EXISTS scrape_cache (
    canonical_url TEXT PRIMARY KEY,
    payload       TEXT NOT NULL,
    fetched_at    INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_scrape_cache_fetched_at
    ON scrape_cache (fetched_at);
"""


def init_db(conn: sqlite3.Connection) -> None:
    """Create the cache table and its index.

    Every DDL statement uses ``IF NOT EXISTS`` so calling this on an
    initialised database is a no-op.
    """
    conn.executescript(SCHEMA)
