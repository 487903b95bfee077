"""Database layer package.

Public re-exports so callers can write::

    from wishlist_backend.db import get_connection, init_db
    from wishlist_backend.db import cache
"""

from wishlist_backend.db.connection import get_connection
from wishlist_backend.db.schema import init_db
from wishlist_backend.db import cache

__all__ = ["get_connection", "init_db", "cache"]
